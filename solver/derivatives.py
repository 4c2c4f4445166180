# hornschunck_flow/solver/derivatives.py

from typing import Optional

from core.backends import get_backend
from core.base import Backend
from core.errors import InvalidArgument
from core.field import FloatBuffer
from core.scheduler import RowBandScheduler, run_row_bands

# 导数场的通道顺序固定为 (Fx, Fy, Fz)
FX, FY, FZ = 0, 1, 2


def check_input_pair(f1: FloatBuffer, f2: FloatBuffer):
    """两帧必须是单通道且边界完全一致。"""
    if f1.channel_count != 1 or f2.channel_count != 1:
        raise InvalidArgument(f"输入必须是单通道缓冲区，得到 {f1.channel_count} 和 {f2.channel_count} 个通道。")
    if f1.bounds != f2.bounds:
        raise InvalidArgument(f"两帧的边界需要一致: {f1.bounds} != {f2.bounds}")


def derive_mixed(f1: FloatBuffer, f2: FloatBuffer,
                 scheduler: Optional[RowBandScheduler] = None,
                 backend: Optional[Backend] = None) -> FloatBuffer:
    """
    以两帧平均的中心差分计算空间导数，以帧差计算时间导数（网格间距 hx = hy = 1）：

        Fx = ((f1[i+1,j] - f1[i-1,j]) + (f2[i+1,j] - f2[i-1,j])) / 4
        Fy = ((f1[i,j+1] - f1[i,j-1]) + (f2[i,j+1] - f2[i,j-1])) / 4
        Fz = f2[i,j] - f1[i,j]

    输入应已带有 1 格镜像边框。结果是与输入同边界的 3 通道缓冲区，
    边框单元从不写入、保持为零。
    """
    check_input_pair(f1, f2)
    backend = backend or get_backend()
    derivs = FloatBuffer.create(f1.bounds, 3)
    a, b, d = f1.grid(), f2.grid(), derivs.grid()
    y0 = f1.bounds.min_y

    def work(lo, hi):
        backend.derive_band(a, b, d, lo - y0, hi - y0)

    run_row_bands(scheduler, f1.bounds.min_y + 1, f1.bounds.max_y - 1, work)
    return derivs
