# hornschunck_flow/core/cpu_backend.py

import numpy as np

from .base import Backend

_FOUR = np.float32(4.0)

class CPUBackend(Backend):
    """使用 NumPy 向量化切片在 CPU 上执行各行带的后端。"""
    name = 'numpy'

    def _setup_backend_specifics(self):
        self.dtype = np.float32

    def setup_computation(self):
        if not self.is_quiet: print("  [Backend Setup] Using NumPy row-band kernels...")

    def derive_band(self, f1, f2, derivs, lo, hi):
        rows = slice(lo, hi)
        a, b = f1[rows, :, 0], f2[rows, :, 0]
        # 水平方向：i+1 与 i-1 之差，两帧平均
        derivs[rows, 1:-1, 0] = ((a[:, 2:] - a[:, :-2]) + (b[:, 2:] - b[:, :-2])) / _FOUR
        # 垂直方向：j+1 与 j-1 之差
        up1, dn1 = f1[lo - 1:hi - 1, :, 0], f1[lo + 1:hi + 1, :, 0]
        up2, dn2 = f2[lo - 1:hi - 1, :, 0], f2[lo + 1:hi + 1, :, 0]
        derivs[rows, 1:-1, 1] = ((dn1[:, 1:-1] - up1[:, 1:-1]) + (dn2[:, 1:-1] - up2[:, 1:-1])) / _FOUR
        derivs[rows, 1:-1, 2] = b[:, 1:-1] - a[:, 1:-1]

    def relax_band(self, help_, derivs, old, new, lo, hi):
        h, w = old.shape[0], old.shape[1]
        n = hi - lo
        rows = slice(lo, hi)
        u_sum = np.zeros((n, w), dtype=np.float32)
        v_sum = np.zeros((n, w), dtype=np.float32)
        nn = np.zeros((n, w), dtype=np.float32)

        # 邻居累加顺序固定为 左、右、上、下，与行带划分无关
        u_sum[:, 1:] += old[rows, :-1, 0]
        v_sum[:, 1:] += old[rows, :-1, 1]
        nn[:, 1:] += 1

        u_sum[:, :-1] += old[rows, 1:, 0]
        v_sum[:, :-1] += old[rows, 1:, 1]
        nn[:, :-1] += 1

        up_lo = max(lo, 1)
        u_sum[up_lo - lo:] += old[up_lo - 1:hi - 1, :, 0]
        v_sum[up_lo - lo:] += old[up_lo - 1:hi - 1, :, 1]
        nn[up_lo - lo:] += 1

        dn_hi = min(hi, h - 1)
        u_sum[:dn_hi - lo] += old[lo + 1:dn_hi + 1, :, 0]
        v_sum[:dn_hi - lo] += old[lo + 1:dn_hi + 1, :, 1]
        nn[:dn_hi - lo] += 1

        fx, fy, fz = derivs[rows, :, 0], derivs[rows, :, 1], derivs[rows, :, 2]
        u_old, v_old = old[rows, :, 0], old[rows, :, 1]

        u_sum -= help_ * fx * (fy * v_old + fz)
        u_sum /= nn + help_ * fx * fx
        v_sum -= help_ * fy * (fx * u_old + fz)
        v_sum /= nn + help_ * fy * fy

        new[rows, :, 0] = u_sum
        new[rows, :, 1] = v_sum

    def magnitude_band(self, uv, mag, lo, hi):
        u, v = uv[lo:hi, :, 0], uv[lo:hi, :, 1]
        mag[lo:hi, :, 0] = np.sqrt(u * u + v * v)
