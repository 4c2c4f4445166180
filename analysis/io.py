# hornschunck_flow/analysis/io.py

import os
import numpy as np
from typing import Dict, Any, List

class HistoryManager:
    """管理 Jacobi 迭代过程中快照的记录和检索。"""
    def __init__(self, params: Dict[str, Any]):
        self.snapshot_interval = params.get('snapshot_interval', 0)
        self.iteration_history: List[Dict[str, Any]] = []

    def should_snapshot(self, iteration: int, total_iterations: int) -> bool:
        """首次、末次迭代总是记录；snapshot_interval > 0 时另按间隔记录。"""
        is_first = iteration == 1
        is_last = iteration == total_iterations
        is_interval = self.snapshot_interval > 0 and iteration % self.snapshot_interval == 0
        return is_first or is_last or is_interval

    def record_snapshot(self, snapshot_data: Dict[str, Any]):
        self.iteration_history.append(snapshot_data)

    def get_history(self) -> List[Dict[str, Any]]:
        return self.iteration_history

    def as_arrays(self) -> Dict[str, np.ndarray]:
        """把历史记录按键拼成数组，便于导出与绘图。"""
        if not self.iteration_history:
            return {}
        return {key: np.array([s[key] for s in self.iteration_history]) for key in self.iteration_history[0]}

class ExportManager:
    """负责把流场结果的原始数据导出到磁盘。"""
    def __init__(self, params: Dict[str, Any]):
        self.is_enabled = params.get('enable_export', False)
        self.is_quiet = params.get('quiet_mode', False)
        self.export_path = params.get('export_path', 'exported_flow')
        if self.is_enabled:
            if not os.path.isabs(self.export_path):
                self.export_path = os.path.join(os.getcwd(), self.export_path)
            os.makedirs(self.export_path, exist_ok=True)
            if not self.is_quiet: print(f"  [數據導出] 功能已啟用。數據將被保存到: '{self.export_path}'")

    def export_result(self, result: Dict[str, Any], history: Dict[str, np.ndarray] = None):
        """将 u、v、幅值、导数场与迭代历史导出为 flow_result.npz；返回文件路径（未启用时返回 None）。"""
        if not self.is_enabled:
            return None

        file_path = os.path.join(self.export_path, "flow_result.npz")
        flow = result['flow'].grid()
        data_to_save = {
            'u': flow[:, :, 0].copy(),
            'v': flow[:, :, 1].copy(),
            'magnitude': result['magnitude'].grid()[:, :, 0].copy(),
            'derivatives': result['derivatives'].to_array(),
        }
        for key, values in (history or {}).items():
            data_to_save[f'history_{key}'] = values

        try:
            np.savez_compressed(file_path, **data_to_save)
        except OSError as e:
            print(f"警告：寫入文件 {file_path} 失敗: {e}")
            return None
        return file_path
