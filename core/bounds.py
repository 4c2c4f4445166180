# hornschunck_flow/core/bounds.py

from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    """整数矩形区域，max 一侧为开区间 [min, max)。"""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    def empty(self) -> bool:
        return self.min_x >= self.max_x or self.min_y >= self.max_y

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def intersect(self, other: 'Rect') -> 'Rect':
        """求交集；交集为空时返回零矩形，避免出现 min > max 的退化矩形。"""
        r = Rect(max(self.min_x, other.min_x), max(self.min_y, other.min_y),
                 min(self.max_x, other.max_x), min(self.max_y, other.max_y))
        if r.empty():
            return Rect(0, 0, 0, 0)
        return r

    def inset(self, n: int) -> 'Rect':
        """向内收缩 n 个单元（n 为负时向外扩张）。"""
        return Rect(self.min_x + n, self.min_y + n, self.max_x - n, self.max_y - n)
