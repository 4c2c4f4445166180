# hornschunck_flow/imaging/encoding.py

import os
import numpy as np
from PIL import Image

from core.errors import InvalidArgument
from core.field import FloatBuffer

_HALF_RANGE = np.float32(127.5)

# ==============================================================================
# 1. 数值到 8 位的转换
# ==============================================================================

def to_unsigned_byte(values) -> np.ndarray:
    """截断到 0..255 并向零取整；NaN 记为 0。"""
    v = np.nan_to_num(np.asarray(values, dtype=np.float32), nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(v, 0.0, 255.0).astype(np.uint8)

# ==============================================================================
# 2. 颜色映射（只在输出边界上按标签分派，核心不关心显示颜色）
# ==============================================================================

def grayscale(buffer: FloatBuffer, **kwargs) -> Image.Image:
    """第 0 通道作为灰度。"""
    return Image.fromarray(to_unsigned_byte(buffer.grid()[:, :, 0]))

def ycbcr_direction(flow: FloatBuffer, magnitude: FloatBuffer = None, multiplier: float = 100.0, **kwargs) -> Image.Image:
    """
    方向图：Y 取（已缩放到 0..255 的）幅值，Cb/Cr 取 u、v 乘以 multiplier 后平移 127.5。
    """
    if flow.channel_count != 2:
        raise InvalidArgument(f"方向图需要 2 通道的流场，得到 {flow.channel_count}")
    if magnitude is None:
        raise InvalidArgument("方向图需要一个幅值场作为亮度。")
    if magnitude.bounds != flow.bounds:
        raise InvalidArgument(f"幅值场边界 {magnitude.bounds} 与流场 {flow.bounds} 不一致")
    g = flow.grid()
    mult = np.float32(multiplier)
    y = to_unsigned_byte(magnitude.grid()[:, :, 0])
    cb = to_unsigned_byte(g[:, :, 0] * mult + _HALF_RANGE)
    cr = to_unsigned_byte(g[:, :, 1] * mult + _HALF_RANGE)
    return Image.merge('YCbCr', [Image.fromarray(y), Image.fromarray(cb), Image.fromarray(cr)])

def rgba_passthrough(buffer: FloatBuffer, **kwargs) -> Image.Image:
    """按通道数的标准映射：4→RGBA，3→RGBA(alpha=0)，2→YCbCr(128, c0, c1)，1→灰度，其它→黑。"""
    g = buffer.grid()
    h, w = g.shape[0], g.shape[1]
    c = buffer.channel_count
    if c == 4:
        return Image.fromarray(to_unsigned_byte(g))
    if c == 3:
        rgba = np.zeros((h, w, 4), dtype=np.uint8)
        rgba[:, :, :3] = to_unsigned_byte(g)
        return Image.fromarray(rgba)
    if c == 2:
        luma = Image.fromarray(np.full((h, w), 128, dtype=np.uint8))
        return Image.merge('YCbCr', [luma,
                                     Image.fromarray(to_unsigned_byte(g[:, :, 0])),
                                     Image.fromarray(to_unsigned_byte(g[:, :, 1]))])
    if c == 1:
        return grayscale(buffer)
    return Image.fromarray(np.zeros((h, w), dtype=np.uint8))

color_mapping_registry = {
    'grayscale': grayscale,
    'ycbcr_direction': ycbcr_direction,
    'rgba_passthrough': rgba_passthrough,
}

def encode(buffer: FloatBuffer, mapping: str, **kwargs) -> Image.Image:
    if mapping not in color_mapping_registry:
        raise InvalidArgument(f"错误: 颜色映射 '{mapping}' 不存在。可用: {list(color_mapping_registry)}")
    return color_mapping_registry[mapping](buffer, **kwargs)

# ==============================================================================
# 3. 写盘
# ==============================================================================

def save_image(image: Image.Image, path: str):
    """按扩展名保存；.pgm/.ppm/.pnm 走 PPM 写入器，YCbCr 图像先转成 RGB。"""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    if image.mode == 'YCbCr':
        image = image.convert('RGB')
    ext = os.path.splitext(path)[1].lower()
    if ext in ('.pgm', '.ppm', '.pnm'):
        if image.mode not in ('L', 'RGB'):
            image = image.convert('L' if ext == '.pgm' else 'RGB')
        image.save(path, format='PPM')
    else:
        image.save(path)
