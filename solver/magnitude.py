# hornschunck_flow/solver/magnitude.py

from typing import Optional

from core.backends import get_backend
from core.base import Backend
from core.errors import InvalidArgument
from core.field import FloatBuffer
from core.scheduler import RowBandScheduler, run_row_bands


def magnitude_field(uv: FloatBuffer,
                    scheduler: Optional[RowBandScheduler] = None,
                    backend: Optional[Backend] = None) -> FloatBuffer:
    """由 2 通道流场生成同边界的 1 通道幅值场 sqrt(u^2 + v^2)。"""
    if uv.channel_count != 2:
        raise InvalidArgument(f"幅值计算需要 2 通道的向量场，得到 {uv.channel_count}")
    backend = backend or get_backend()
    mag = FloatBuffer.create(uv.bounds, 1)
    src, dst = uv.grid(), mag.grid()
    y0 = uv.bounds.min_y

    def work(lo, hi):
        backend.magnitude_band(src, dst, lo - y0, hi - y0)

    run_row_bands(scheduler, uv.bounds.min_y, uv.bounds.max_y, work)
    return mag
