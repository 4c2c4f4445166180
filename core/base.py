# hornschunck_flow/core/base.py

from abc import ABC, abstractmethod
from typing import Dict, Any
import numpy as np

class Backend(ABC):
    """
    计算后端抽象基类。
    定义三个按行带执行的核心（导数、Jacobi 松弛、幅值），
    参数都是 FloatBuffer.grid() 给出的 (h, w, c) 数组，lo/hi 为相对网格的行号。
    """
    name = 'abstract'

    def __init__(self, params: Dict[str, Any] = None):
        self.params = params or {}
        self.is_quiet = self.params.get('quiet_mode', True)
        self.dtype = np.float32
        self._setup_backend_specifics()

    @abstractmethod
    def _setup_backend_specifics(self):
        """设置后端特定的属性。"""
        pass

    def setup_computation(self):
        """预先编译/准备计算核心；默认无事可做。"""
        pass

    @abstractmethod
    def derive_band(self, f1: np.ndarray, f2: np.ndarray, derivs: np.ndarray, lo: int, hi: int):
        """对 [lo, hi) 行的内部单元计算 (Fx, Fy, Fz)。"""
        pass

    @abstractmethod
    def relax_band(self, help_: np.float32, derivs: np.ndarray, old: np.ndarray, new: np.ndarray, lo: int, hi: int):
        """对 [lo, hi) 行做一次 Jacobi 松弛：只读 old，只写 new。derivs 与 old/new 对齐。"""
        pass

    @abstractmethod
    def magnitude_band(self, uv: np.ndarray, mag: np.ndarray, lo: int, hi: int):
        """对 [lo, hi) 行计算 sqrt(u^2 + v^2)。"""
        pass
