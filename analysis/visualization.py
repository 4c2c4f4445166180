# hornschunck_flow/analysis/visualization.py

import os
import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, Any, List

from core.field import FloatBuffer

class VisualizationManager:
    """負責把流場結果繪製成 PNG 報告。"""
    def __init__(self, params: Dict[str, Any]):
        self.params = params
        self.is_enabled = params.get('enable_plots', False)
        self.is_quiet = params.get('quiet_mode', False)
        self.output_path = params.get('plot_output_path', 'flow_plots')
        if self.is_enabled:
            os.makedirs(self.output_path, exist_ok=True)

    def plot_flow_report(self, frame: FloatBuffer, flow: FloatBuffer, magnitude: FloatBuffer):
        """左：第一幀亮度；中：幅值熱圖；右：降採樣後的向量場。返回檔案路徑。"""
        if not self.is_enabled: return None

        luminance = frame.dedummify().grid()[:, :, 0]
        g = flow.grid()
        mag = magnitude.grid()[:, :, 0]
        h, w = mag.shape
        step = max(1, max(h, w) // 32)
        ys, xs = np.mgrid[0:h:step, 0:w:step]

        fig, (ax1, ax2, ax3) = plt.subplots(1, 3, figsize=(18, 6))
        ax1.imshow(luminance, cmap='gray', vmin=0, vmax=255)
        ax1.set_title('Frame 1 luminance')

        im = ax2.imshow(mag, cmap='viridis')
        fig.colorbar(im, ax=ax2, fraction=0.046, pad=0.04)
        ax2.set_title('Flow magnitude')

        ax3.imshow(luminance, cmap='gray', vmin=0, vmax=255, alpha=0.5)
        ax3.quiver(xs, ys, g[::step, ::step, 0], g[::step, ::step, 1], color='red',
                   angles='xy', scale_units='xy')
        ax3.set_title(f"Flow field (alpha={self.params.get('alpha')}, K={self.params.get('iterations')})")
        for ax in (ax1, ax2, ax3):
            ax.set_axis_off()

        fig.tight_layout()
        file_path = os.path.join(self.output_path, "flow_report.png")
        fig.savefig(file_path, dpi=100, bbox_inches='tight')
        plt.close(fig)
        return file_path

    def plot_convergence(self, history: List[Dict[str, Any]]):
        """以迭代次數為橫軸，繪製平均/最大幅值與快照間最大變化。"""
        if not self.is_enabled or not history: return None

        iterations = [s['iteration'] for s in history]
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5), sharex=True)
        ax1.plot(iterations, [s['mean_magnitude'] for s in history], 'o-', label='mean |w|')
        ax1.plot(iterations, [s['max_magnitude'] for s in history], 's-', label='max |w|')
        ax1.set_xlabel('Iteration'); ax1.set_title('Flow magnitude'); ax1.legend(); ax1.grid(True)

        ax2.semilogy(iterations, [s['max_change'] for s in history], 'd-', color='green')
        ax2.set_xlabel('Iteration'); ax2.set_title('Max change between snapshots'); ax2.grid(True)

        fig.tight_layout()
        file_path = os.path.join(self.output_path, "convergence.png")
        fig.savefig(file_path, dpi=100, bbox_inches='tight')
        plt.close(fig)
        return file_path

    def finalize(self):
        if self.is_enabled and not self.is_quiet:
            print(f"所有圖像已保存到 '{self.output_path}' 文件夾。")
