# hornschunck_flow/analysis/statistics.py

import numpy as np
from typing import Dict, Any, Tuple

from core.field import FloatBuffer

def analyse(img: FloatBuffer) -> Tuple[float, float, float, float]:
    """第 0 通道在内部区域（去掉边框）上的 (min, max, mean, variance)；空缓冲区返回全零。"""
    if img.channel_count == 0 or img.bounds.inset(1).empty():
        return 0.0, 0.0, 0.0, 0.0
    values = img.dedummify().grid()[:, :, 0].astype(np.float64)
    mean = values.mean()
    variance = np.mean((values - mean)**2)
    return float(values.min()), float(values.max()), float(mean), float(variance)

class StatisticsManager:
    """负责计算流场的统计量。"""
    def __init__(self, params: Dict[str, Any] = None):
        self.params = params or {}

    def calculate_flow_stats(self, flow: FloatBuffer, magnitude: FloatBuffer) -> Dict[str, float]:
        g = flow.grid()
        m = magnitude.grid()[:, :, 0]
        finite = np.isfinite(m)

        stats = {
            "mean_magnitude": np.nan,
            "max_magnitude": np.nan,
            "mean_u": np.nan,
            "mean_v": np.nan,
            "nonfinite_count": int(m.size - np.count_nonzero(finite)),
        }
        if finite.any():
            stats["mean_magnitude"] = float(np.mean(m[finite]))
            stats["max_magnitude"] = float(np.max(m[finite]))
            stats["mean_u"] = float(np.mean(g[:, :, 0][finite]))
            stats["mean_v"] = float(np.mean(g[:, :, 1][finite]))
        return stats

    def max_change(self, previous: np.ndarray, current: np.ndarray) -> float:
        """两次快照之间 (u, v) 的最大绝对变化。"""
        if previous is None or previous.shape != current.shape or current.size == 0:
            return np.nan
        return float(np.max(np.abs(current.astype(np.float64) - previous)))
