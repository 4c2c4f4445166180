# hornschunck_flow/solver/jacobi.py

import numbers
import numpy as np
from typing import Callable, Optional

from core.backends import get_backend
from core.base import Backend
from core.bounds import Rect
from core.errors import InvalidArgument
from core.field import FloatBuffer
from core.scheduler import RowBandScheduler
from .derivatives import check_input_pair, derive_mixed


def check_alpha(alpha: float):
    # `not alpha > 0` 同时拒绝 NaN
    if not alpha > 0:
        raise InvalidArgument(f"平滑权重 alpha 必须 > 0，得到 {alpha}")


def check_iterations(iterations: int):
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral) or iterations < 1:
        raise InvalidArgument(f"迭代次数必须是正整数，得到 {iterations!r}")


def check_interior(bounds: Rect) -> Rect:
    """去掉 1 格边框后的内部区域。每个内部单元至少要有 2 个邻居，因此内部至少 2x2。"""
    interior = bounds.inset(1)
    if interior.width < 2 or interior.height < 2:
        raise InvalidArgument(f"边界 {bounds} 太小，去掉边框后的内部区域至少需要 2x2（含边框 4x4）。")
    return interior


class JacobiFlowSolver:
    """
    Horn–Schunck 光流的 Jacobi 松弛求解器。

    状态：只读的导数场 derivs、当前迭代 current 与上一迭代 previous
    （两者都是内部区域上的 2 通道 (u, v) 缓冲区，初值为零）。
    每次扫描所有读取都来自 previous、所有写入都进入 current，
    扫描结束（行带屏障）后再把 current 复制进 previous。
    """

    def __init__(self, derivs: FloatBuffer, alpha: float,
                 scheduler: Optional[RowBandScheduler] = None,
                 backend: Optional[Backend] = None):
        check_alpha(alpha)
        if derivs.channel_count != 3:
            raise InvalidArgument(f"导数场需要 3 个通道，得到 {derivs.channel_count}")
        interior = check_interior(derivs.bounds)

        self.derivs = derivs
        self.alpha = alpha
        self.help = np.float32(1.0) / np.float32(alpha)
        self.interior = interior
        self.current = FloatBuffer.create(interior, 2)
        self.previous = FloatBuffer.create(interior, 2)
        # 与流场逐格对齐的导数视图，边框单元永远不会被访问
        self._aligned_derivs = derivs.subview(interior)
        self.iterations_done = 0

        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler if scheduler is not None else RowBandScheduler()
        self.backend = backend or get_backend()

    def step(self):
        """一次完整的松弛扫描；返回时所有行带都已写完。"""
        d = self._aligned_derivs.grid()
        old, new = self.previous.grid(), self.current.grid()
        y0 = self.interior.min_y

        def work(lo, hi):
            self.backend.relax_band(self.help, d, old, new, lo - y0, hi - y0)

        self.scheduler.run(self.interior.min_y, self.interior.max_y, work)

    def run(self, iterations: int, callback: Optional[Callable[[int, FloatBuffer], None]] = None) -> FloatBuffer:
        """
        固定执行 iterations 次扫描（没有基于收敛的提前退出），返回 current。
        callback(k, current) 在第 k 次扫描及复制之后调用；current 是活动缓冲区，需要保留请自行复制。
        """
        check_iterations(iterations)
        try:
            for k in range(1, iterations + 1):
                self.step()
                self.previous.copy_from(self.current)
                self.iterations_done += 1
                if callback is not None:
                    callback(k, self.current)
        finally:
            if self._owns_scheduler:
                self.scheduler.shutdown()
        return self.current


def optic_flow_horn_schunck(f1: FloatBuffer, f2: FloatBuffer, alpha: float, iterations: int,
                            rows_per_unit: int = 1,
                            backend: Optional[Backend] = None,
                            scheduler: Optional[RowBandScheduler] = None,
                            callback: Optional[Callable[[int, FloatBuffer], None]] = None) -> FloatBuffer:
    """
    计算两帧之间的 Horn–Schunck 光流。

    f1、f2 需为同边界的单通道缓冲区并已带有镜像边框（见 apply_mirror_border）。
    所有参数在计算开始前校验。返回内部区域上的 2 通道 (u, v) 流场。
    传入 scheduler 时忽略 rows_per_unit。
    """
    check_input_pair(f1, f2)
    check_alpha(alpha)
    check_iterations(iterations)
    check_interior(f1.bounds)

    owns_scheduler = scheduler is None
    if owns_scheduler:
        scheduler = RowBandScheduler(rows_per_unit)
    backend = backend or get_backend()
    try:
        derivs = derive_mixed(f1, f2, scheduler, backend)
        solver = JacobiFlowSolver(derivs, alpha, scheduler, backend)
        return solver.run(iterations, callback)
    finally:
        if owns_scheduler:
            scheduler.shutdown()
