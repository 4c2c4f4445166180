# hornschunck_flow/config.py

from user_config import *

# ==============================================================================
# 光流計算設定
# ==============================================================================
def get_config() -> dict:
    """返回唯一的光流計算設定字典。"""

    params = {
        # --- 後端與並行 ---
        'backend': backend,
        'rows_per_unit': rows_per_unit,
        'max_workers': max_workers,

        # --- 輸入 ---
        'input_source': input_source,
        'input_image_1': input_image_1,
        'input_image_2': input_image_2,

        # --- 核心數值參數 ---
        'alpha': alpha,
        'iterations': iterations,

        # --- 輸出影像與顏色映射 ---
        'magnitude_image': magnitude_image,
        'direction_image': direction_image,
        'magnitude_mapping': 'grayscale',
        'direction_mapping': 'ycbcr_direction',
        'direction_multiplier': 100.0,

        # --- 分析與監測 ---
        # 0 表示只記錄首末兩次迭代
        'snapshot_interval': 0,
        'check_finite': True,

        # --- 路徑與匯出 ---
        'enable_export': False,
        'export_path': 'exported_flow',
        'enable_plots': False,
        'plot_output_path': 'flow_plots',

        # --- 執行效率 ---
        'quiet_mode': False,
    }

    return params
