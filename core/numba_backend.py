# hornschunck_flow/core/numba_backend.py

import numpy as np

from .base import Backend
from . import numba_kernels

class NumbaBackend(Backend):
    """使用 Numba 编译的 nogil 核心；行带线程在执行时释放 GIL。"""
    name = 'numba'

    def _setup_backend_specifics(self):
        self.dtype = np.float32

    def setup_computation(self):
        """用一个 3x3 的小网格触发一次 JIT 编译，避免首个行带承担编译耗时。"""
        if not self.is_quiet: print("  [Backend Setup] Compiling Numba row-band kernels...")
        f = np.zeros((3, 3, 1), dtype=self.dtype)
        d = np.zeros((3, 3, 3), dtype=self.dtype)
        uv = np.zeros((3, 3, 2), dtype=self.dtype)
        mag = np.zeros((3, 3, 1), dtype=self.dtype)
        numba_kernels.derive_rows(f, f, d, 1, 2)
        numba_kernels.relax_rows(np.float32(1.0), d, uv, uv.copy(), 0, 3)
        numba_kernels.magnitude_rows(uv, mag, 0, 3)

    def derive_band(self, f1, f2, derivs, lo, hi):
        numba_kernels.derive_rows(f1, f2, derivs, lo, hi)

    def relax_band(self, help_, derivs, old, new, lo, hi):
        numba_kernels.relax_rows(np.float32(help_), derivs, old, new, lo, hi)

    def magnitude_band(self, uv, mag, lo, hi):
        numba_kernels.magnitude_rows(uv, mag, lo, hi)
