# hornschunck_flow/imaging/sources.py

import numpy as np
from PIL import Image
from scipy import ndimage
from typing import Tuple

from .luminance import load_gray_image, check_matching_bounds

# ==============================================================================
# 1. 定义输入帧对的来源函数 (Providers)
# ==============================================================================

def from_files(path1: str, path2: str, **kwargs) -> Tuple[Image.Image, Image.Image]:
    """从磁盘读取两帧，并检查尺寸是否一致。"""
    print(f"  [输入] 正在读取 '{path1}' 与 '{path2}'...")
    img1 = load_gray_image(path1)
    img2 = load_gray_image(path2)
    check_matching_bounds(img1, img2)
    return img1, img2

def _fourier_texture(width: int, height: int, alpha: float, seed: int = None) -> np.ndarray:
    """
    傅里叶空间滤波生成统计均匀的平滑随机纹理，线性拉伸到 0..255。
    振幅谱 A(k) ~ k^(-alpha/2)，alpha 越大纹理越平滑。
    """
    rng = np.random.default_rng(seed)
    noise_k = np.fft.fft2(rng.standard_normal(size=(height, width)))

    ky = np.fft.fftfreq(height) * 2 * np.pi
    kx = np.fft.fftfreq(width) * 2 * np.pi
    ky_mesh, kx_mesh = np.meshgrid(ky, kx, indexing='ij')
    k = np.sqrt(kx_mesh**2 + ky_mesh**2)

    # 避免除以零，并去掉直流分量
    k[0, 0] = 1.0
    power_law_filter = k**(-alpha / 2.0)
    power_law_filter[0, 0] = 0

    texture = np.fft.ifft2(noise_k * power_law_filter).real
    lo, hi = texture.min(), texture.max()
    if hi - lo > 1e-9:
        texture = (texture - lo) / (hi - lo)
    else:
        texture = np.zeros_like(texture)
    return texture * 255.0

def smooth_texture_shift(width: int, height: int, shift_x: float, shift_y: float,
                         alpha: float = 3.0, seed: int = None, **kwargs) -> Tuple[Image.Image, Image.Image]:
    """第二帧为第一帧的纹理以亚像素精度平移 (shift_x, shift_y)。"""
    print(f"  [输入] 正在合成 {width}x{height} 的平滑纹理，平移量 ({shift_x}, {shift_y})...")
    frame1 = _fourier_texture(width, height, alpha, seed)
    frame2 = ndimage.shift(frame1, (shift_y, shift_x), order=3, mode='reflect')
    img1 = Image.fromarray(np.clip(frame1, 0, 255).astype(np.uint8))
    img2 = Image.fromarray(np.clip(frame2, 0, 255).astype(np.uint8))
    return img1, img2

def moving_block(width: int, height: int, background: float, block_value: float,
                 block: Tuple[int, int, int, int], offset: Tuple[int, int], **kwargs) -> Tuple[Image.Image, Image.Image]:
    """均匀背景上的一个亮块，第二帧中按整数偏移 offset=(dx, dy) 移动。block 为 (x0, y0, x1, y1)。"""
    print(f"  [输入] 正在创建移动方块：{block} 偏移 {offset}...")
    x0, y0, x1, y1 = block
    dx, dy = offset
    frame1 = np.full((height, width), background, dtype=np.float64)
    frame2 = frame1.copy()
    frame1[y0:y1, x0:x1] = block_value
    frame2[max(y0 + dy, 0):max(y1 + dy, 0), max(x0 + dx, 0):max(x1 + dx, 0)] = block_value
    img1 = Image.fromarray(np.clip(frame1, 0, 255).astype(np.uint8))
    img2 = Image.fromarray(np.clip(frame2, 0, 255).astype(np.uint8))
    return img1, img2

# ==============================================================================
# 2. 注册源函数
# ==============================================================================

source_registry = {
    'image_files': from_files,
    'smooth_texture_shift': smooth_texture_shift,
    'moving_block': moving_block,
}

# ==============================================================================
# 3. 定义配置
# ==============================================================================

source_configs = {
    'image_files': {
        'provider': 'image_files',
        'args': {
            'path1': lambda p: p['input_image_1'],
            'path2': lambda p: p['input_image_2'],
        },
        'description': "从 input_image_1 / input_image_2 读取两帧图像。"
    },
    'smooth_texture': {
        'provider': 'smooth_texture_shift',
        'args': {'width': 64, 'height': 64, 'shift_x': 1.0, 'shift_y': 0.5, 'alpha': 3.0, 'seed': 7},
        'description': "平滑随机纹理，整体平移 (1.0, 0.5) 像素。"
    },
    'moving_block': {
        'provider': 'moving_block',
        'args': {'width': 32, 'height': 32, 'background': 10.0, 'block_value': 120.0,
                 'block': (10, 10, 20, 20), 'offset': (1, 0)},
        'description': "暗背景上的亮方块向右移动 1 像素。"
    },
}
