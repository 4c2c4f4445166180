# hornschunck_flow/pipeline_setup.py

import numbers
from typing import Dict, Any, Tuple

from core.backends import backend_registry
from core.errors import InvalidArgument
from core.field import FloatBuffer
from imaging import encoding, sources
from imaging.luminance import check_matching_bounds, gray_float_with_border_from_image
from solver.jacobi import check_alpha, check_iterations

def _validate_configs(params: Dict[str, Any]):
    is_quiet = params.get('quiet_mode', False)
    if not is_quiet: print("--- 驗證配置信息 ---")

    config_map = {
        'input_source': (sources.source_configs, "輸入來源"),
        'backend': (backend_registry, "計算後端"),
        'magnitude_mapping': (encoding.color_mapping_registry, "幅值圖顏色映射"),
        'direction_mapping': (encoding.color_mapping_registry, "方向圖顏色映射"),
    }
    for name, (registry, desc) in config_map.items():
        if params.get(name) not in registry:
            raise InvalidArgument(f"错误: {desc}配置 '{params.get(name)}' 不存在。可用: {list(registry)}")

    check_alpha(params['alpha'])
    check_iterations(params['iterations'])
    rows = params['rows_per_unit']
    if isinstance(rows, bool) or not isinstance(rows, numbers.Integral) or rows < 1:
        raise InvalidArgument(f"rows_per_unit 必須是 >= 1 的整數，得到 {rows!r}")
    if params.get('max_workers', 0) < 0:
        raise InvalidArgument(f"max_workers 不能為負，得到 {params['max_workers']}")

    if not is_quiet: print("配置验证通过。")

def _load_input_frames(params: Dict[str, Any]):
    is_quiet = params.get('quiet_mode', False)
    if not is_quiet: print("--- 載入輸入影像 ---")

    s_conf = sources.source_configs[params['input_source']]
    provider = sources.source_registry[s_conf['provider']]
    args = {k: v(params) if callable(v) else v for k, v in s_conf.get('args', {}).items()}
    # 允許呼叫端覆寫來源參數（例如合成輸入的尺寸或平移量）
    args.update(params.get('source_overrides', {}))
    return provider(**args)

def setup_flow_inputs(params: Dict[str, Any]) -> Tuple[FloatBuffer, FloatBuffer, Dict[str, Any]]:
    """驗證設定，載入兩幀並轉成帶鏡像邊框的單通道亮度緩衝區。"""
    _validate_configs(params)
    img1, img2 = _load_input_frames(params)
    check_matching_bounds(img1, img2)

    f1 = gray_float_with_border_from_image(img1)
    f2 = gray_float_with_border_from_image(img2)
    if not params.get('quiet_mode', False):
        print(f"  [輸入] 兩幀尺寸 {img1.size[0]}x{img1.size[1]}，含邊框的緩衝區邊界 {f1.bounds}")
    return f1, f2, params
