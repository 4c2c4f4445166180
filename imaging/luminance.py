# hornschunck_flow/imaging/luminance.py

import os
import numpy as np
from PIL import Image

from core.bounds import Rect
from core.errors import InvalidArgument
from core.field import FloatBuffer


def load_gray_image(path: str) -> Image.Image:
    """用 Pillow 打开一张输入图像（PGM/PNG/JPEG/GIF ...）。"""
    if not os.path.exists(path):
        raise FileNotFoundError(f"错误：输入图像 '{path}' 不存在。")
    img = Image.open(path)
    img.load()
    return img


def check_matching_bounds(img1: Image.Image, img2: Image.Image):
    if img1.size != img2.size:
        raise InvalidArgument(f"The image bounds need to match: {img1.size} != {img2.size}")


def luminance_array(img: Image.Image) -> np.ndarray:
    """
    把图像映射为 0..255 的灰度值，返回 (h, w) float32。
    'L' 模式直接使用；16 位灰度（'I;16*' / 'I'）取高位字节；其余模式先转 RGB，
    再在 16 位通道值上按 ((299R + 587G + 114B + 500) // 1000) >> 8 计算。
    """
    if img.mode == 'L':
        return np.asarray(img, dtype=np.float32)
    if img.mode == 'I' or img.mode.startswith('I;16'):
        # 三个通道相同时加权和等于灰度本身
        gray16 = np.clip(np.asarray(img, dtype=np.int64), 0, 0xFFFF)
        return (gray16 >> 8).astype(np.float32)
    rgb = np.asarray(img.convert('RGB'), dtype=np.uint32)
    # 8 位值 v 对应的 16 位值为 v * 257
    r, g, b = (rgb[..., k] * 257 for k in range(3))
    gray = ((299 * r + 587 * g + 114 * b + 500) // 1000) >> 8
    return gray.astype(np.float32)


def gray_float_with_border_from_array(gray: np.ndarray) -> FloatBuffer:
    """
    由 (h, w) 灰度数组建立带 1 格镜像边框的单通道缓冲区。
    边界为 (-1, -1) 到 (w+1, h+1)，内部单元与原像素坐标一致。
    """
    gray = np.asarray(gray, dtype=np.float32)
    if gray.ndim != 2:
        raise InvalidArgument(f"需要二维灰度数组，得到 shape={gray.shape}")
    h, w = gray.shape
    buf = FloatBuffer.create(Rect(-1, -1, w + 1, h + 1), 1)
    buf.dedummify().grid()[:, :, 0] = gray
    buf.apply_mirror_border()
    return buf


def gray_float_with_border_from_image(img: Image.Image) -> FloatBuffer:
    return gray_float_with_border_from_array(luminance_array(img))
