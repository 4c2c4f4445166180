# hornschunck_flow/core/numba_kernels.py

import math
import numpy as np
from numba import njit

# 以 float32 常量参与运算，避免 Numba 把中间结果提升为 float64
_ZERO = np.float32(0.0)
_ONE = np.float32(1.0)
_FOUR = np.float32(4.0)

# ==============================================================================
#                      CPU Kernels (nogil，行带可真正并行)
# ==============================================================================

@njit(nogil=True, error_model='numpy')
def derive_rows(f1, f2, derivs, lo, hi):
    """在 [lo, hi) 行的内部列上计算 Fx, Fy, Fz。"""
    w = f1.shape[1]
    for j in range(lo, hi):
        for i in range(1, w - 1):
            fx = ((f1[j, i + 1, 0] - f1[j, i - 1, 0]) + (f2[j, i + 1, 0] - f2[j, i - 1, 0])) / _FOUR
            fy = ((f1[j + 1, i, 0] - f1[j - 1, i, 0]) + (f2[j + 1, i, 0] - f2[j - 1, i, 0])) / _FOUR
            fz = f2[j, i, 0] - f1[j, i, 0]
            derivs[j, i, 0] = fx
            derivs[j, i, 1] = fy
            derivs[j, i, 2] = fz

@njit(nogil=True, error_model='numpy')
def relax_rows(help_, derivs, old, new, lo, hi):
    """一次 Jacobi 松弛：邻居和与 (u_old, v_old) 只从 old 读取，结果只写入 new。"""
    h, w = old.shape[0], old.shape[1]
    for j in range(lo, hi):
        for i in range(w):
            nn = _ZERO
            u_sum = _ZERO
            v_sum = _ZERO
            if i > 0:
                nn += _ONE
                u_sum += old[j, i - 1, 0]
                v_sum += old[j, i - 1, 1]
            if i < w - 1:
                nn += _ONE
                u_sum += old[j, i + 1, 0]
                v_sum += old[j, i + 1, 1]
            if j > 0:
                nn += _ONE
                u_sum += old[j - 1, i, 0]
                v_sum += old[j - 1, i, 1]
            if j < h - 1:
                nn += _ONE
                u_sum += old[j + 1, i, 0]
                v_sum += old[j + 1, i, 1]

            fx, fy, fz = derivs[j, i, 0], derivs[j, i, 1], derivs[j, i, 2]
            u_old, v_old = old[j, i, 0], old[j, i, 1]
            u_sum -= help_ * fx * (fy * v_old + fz)
            u_sum /= nn + help_ * fx * fx
            v_sum -= help_ * fy * (fx * u_old + fz)
            v_sum /= nn + help_ * fy * fy
            new[j, i, 0] = u_sum
            new[j, i, 1] = v_sum

@njit(nogil=True, error_model='numpy')
def magnitude_rows(uv, mag, lo, hi):
    w = uv.shape[1]
    for j in range(lo, hi):
        for i in range(w):
            u, v = uv[j, i, 0], uv[j, i, 1]
            mag[j, i, 0] = math.sqrt(u * u + v * v)
