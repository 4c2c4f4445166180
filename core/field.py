# hornschunck_flow/core/field.py

import numpy as np
from numpy.lib.stride_tricks import as_strided
from typing import Optional, Tuple

from .bounds import Rect
from .errors import InvalidArgument, OutOfBounds

# 8 位编码的满量程
_UNIT_MAX = np.float32(255.0)


class FloatBuffer:
    """
    以 float32 扁平存储的多通道矩形缓冲区。

    (x, y) 处的通道向量位于
    storage[(y - min_y) * stride + (x - min_x) * channel_count : + channel_count]。

    由 subview() 得到的视图与所有者共享同一块 storage（storage 是所有者
    存储的一个后缀切片），经由视图写入会直接修改所有者。视图没有独立的
    生命周期，不得比所有者活得更久，也永远不会重新分配存储。
    """

    def __init__(self, storage: np.ndarray, stride: int, bounds: Rect, channel_count: int,
                 owner: Optional['FloatBuffer'] = None):
        self.storage = storage
        self.stride = stride
        self.bounds = bounds
        self.channel_count = channel_count
        self.owner = owner

    @classmethod
    def create(cls, bounds: Rect, channel_count: int) -> 'FloatBuffer':
        """创建一个全零的拥有型缓冲区。"""
        if channel_count < 0:
            raise InvalidArgument(f"通道数不能为负: {channel_count}")
        if channel_count > 0 and (bounds.width <= 0 or bounds.height <= 0):
            raise InvalidArgument(f"区域 {bounds} 的宽或高非正，无法容纳 {channel_count} 个通道。")
        w, h = max(bounds.width, 0), max(bounds.height, 0)
        storage = np.zeros(channel_count * w * h, dtype=np.float32)
        return cls(storage, channel_count * w, bounds, channel_count)

    @classmethod
    def from_array(cls, array: np.ndarray, origin: Tuple[int, int] = (0, 0)) -> 'FloatBuffer':
        """由 (h, w) 或 (h, w, c) 的数组构建拥有型缓冲区，左上角位于 origin。"""
        data = np.asarray(array, dtype=np.float32)
        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.ndim != 3:
            raise InvalidArgument(f"需要二维或三维数组，得到 shape={data.shape}")
        h, w, c = data.shape
        x0, y0 = origin
        buf = cls.create(Rect(x0, y0, x0 + w, y0 + h), c)
        buf.grid()[...] = data
        return buf

    @property
    def width(self) -> int:
        return self.bounds.width

    @property
    def height(self) -> int:
        return self.bounds.height

    @property
    def is_view(self) -> bool:
        return self.owner is not None

    def __repr__(self):
        kind = "view" if self.is_view else "owner"
        return f"FloatBuffer({kind}, bounds={self.bounds}, channels={self.channel_count}, stride={self.stride})"

    # ------------------------------------------------------------------
    # 寻址
    # ------------------------------------------------------------------

    def pix_offset(self, x: int, y: int) -> int:
        return (y - self.bounds.min_y) * self.stride + (x - self.bounds.min_x) * self.channel_count

    def _check_point(self, x: int, y: int):
        if not self.bounds.contains(x, y):
            raise OutOfBounds(f"坐标 ({x}, {y}) 超出边界 {self.bounds}")

    def _check_channel(self, channel: int):
        if not 0 <= channel < self.channel_count:
            raise OutOfBounds(f"通道 {channel} 超出范围 [0, {self.channel_count})")

    def _extent(self) -> int:
        """逻辑区域在 storage 中跨越的 float 数量。"""
        if self.bounds.empty() or self.channel_count == 0:
            return 0
        return (self.height - 1) * self.stride + self.width * self.channel_count

    def cell(self, x: int, y: int) -> np.ndarray:
        """返回 (x, y) 处通道向量的可写视图；结构性修改之后不得继续持有。"""
        self._check_point(x, y)
        i = self.pix_offset(x, y)
        return self.storage[i:i + self.channel_count]

    def get(self, x: int, y: int, channel: int) -> float:
        self._check_point(x, y)
        self._check_channel(channel)
        return float(self.storage[self.pix_offset(x, y) + channel])

    def set(self, x: int, y: int, channel: int, value: float):
        self._check_point(x, y)
        self._check_channel(channel)
        self.storage[self.pix_offset(x, y) + channel] = value

    def grid(self) -> np.ndarray:
        """
        以 (height, width, channel_count) 的 numpy 视图访问逻辑区域，按 stride 跨行。
        计算核心都在这个视图上工作；写入同样会反映到 storage。
        """
        h, w, c = max(self.height, 0), max(self.width, 0), self.channel_count
        if h == 0 or w == 0 or c == 0:
            return np.zeros((h, w, c), dtype=np.float32)
        item = self.storage.itemsize
        return as_strided(self.storage, shape=(h, w, c), strides=(self.stride * item, c * item, item))

    def to_array(self) -> np.ndarray:
        """逻辑区域的独立副本。"""
        return self.grid().copy()

    # ------------------------------------------------------------------
    # 视图
    # ------------------------------------------------------------------

    def subview(self, rect: Rect) -> 'FloatBuffer':
        """
        返回与 rect 和本缓冲区边界交集相对应的别名视图。
        交集为空时返回零通道、零面积的缓冲区，而不做任何切片运算。
        """
        r = rect.intersect(self.bounds)
        if r.empty():
            return FloatBuffer.create(r, 0)
        i = self.pix_offset(r.min_x, r.min_y)
        return FloatBuffer(self.storage[i:], self.stride, r, self.channel_count,
                           owner=self.owner if self.owner is not None else self)

    def dedummify(self) -> 'FloatBuffer':
        """去掉 1 格镜像边框后的视图。"""
        return self.subview(self.bounds.inset(1))

    # ------------------------------------------------------------------
    # 整体操作
    # ------------------------------------------------------------------

    def copy_from(self, other: 'FloatBuffer'):
        """
        采用 other 的边界/stride/通道数并复制其数据。
        容量足够时沿用现有 storage，Jacobi 迭代的新旧交替靠它完成。
        """
        n = other._extent()
        if self.storage.size < n:
            if self.is_view:
                raise InvalidArgument("视图的存储不足以容纳复制内容，且视图不能重新分配。")
            self.storage = np.empty(n, dtype=np.float32)
        self.bounds = other.bounds
        self.stride = other.stride
        self.channel_count = other.channel_count
        self.storage[:n] = other.storage[:n]

    def apply_mirror_border(self):
        """
        把最外一圈设为镜像边界：先上下两行（仅内部列），再左右两列（所有行）。
        左右一遍覆盖角点，因此四个角点等于对角相邻的内部单元。
        某一方向不足 3 格时，该方向不做处理。
        """
        g = self.grid()
        h, w = g.shape[0], g.shape[1]
        if h >= 3:
            g[0, 1:w - 1] = g[1, 1:w - 1]
            g[h - 1, 1:w - 1] = g[h - 2, 1:w - 1]
        if w >= 3:
            g[:, 0] = g[:, 1]
            g[:, w - 1] = g[:, w - 2]

    def scale_to_unit_range(self):
        """按通道最大值把所有值线性缩放到 0..255（假设数值非负）。最大值非正的通道置零。"""
        g = self.grid()
        if g.size == 0:
            return
        # fmax 忽略 NaN
        maxima = np.fmax.reduce(g.reshape(-1, self.channel_count), axis=0)
        for c in range(self.channel_count):
            m = maxima[c]
            if m > 0:
                g[:, :, c] = g[:, :, c] / m * _UNIT_MAX
            else:
                g[:, :, c] = 0.0
