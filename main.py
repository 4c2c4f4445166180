# hornschunck_flow/main.py

import sys
import os
import argparse
from timer import SimpleTimer

# --- 專案路徑設定 ---
_current_file_dir = os.path.dirname(os.path.abspath(__file__))
if _current_file_dir not in sys.path:
    sys.path.insert(0, _current_file_dir)

# --- 匯入模組 ---
from config import get_config
from core.errors import FlowError
from pipeline import FlowPipeline, benchmark_band_sizes
from pipeline_setup import setup_flow_inputs

def compute_flow(params: dict) -> dict:
    """讀入兩幀、計算 Horn–Schunck 光流並寫出幅值圖與方向圖。"""
    if params['input_source'] == 'image_files':
        inputs = f"{params['input_image_1']} and {params['input_image_2']}"
    else:
        inputs = f"the frames of synthetic source '{params['input_source']}'"
    print(f"Computing optical flow between {inputs}, "
          f"result will be saved in {params['magnitude_image']} and {params['direction_image']}")

    timer = SimpleTimer()
    with timer.record("初始化"):
        f1, f2, params = setup_flow_inputs(params)
        pipeline = FlowPipeline(params, f1, f2)
        pipeline.set_timer(timer)

    try:
        pipeline.report_inputs()
        result = pipeline.run()
        paths = pipeline.save_outputs(result)
    finally:
        pipeline.close()

    if not params.get('quiet_mode', False):
        for name, path in paths.items():
            print(f"  [輸出] {name}: {path}")
        timer.report()
    return paths

def run_benchmark(params: dict) -> bool:
    """比較不同行帶高度下的耗時與結果一致性。"""
    timer = SimpleTimer()
    f1, f2, params = setup_flow_inputs(params)
    identical = benchmark_band_sizes(params, f1, f2, timer)
    timer.report()
    return identical

def build_parser(base_params: dict) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="以 Horn–Schunck 變分法與 Jacobi 迭代計算兩張灰階影像之間的稠密光流。",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--mode', type=str, default='flow', choices=['flow', 'benchmark'],
                        help='選擇程式運行的模式 ("flow" 計算光流，"benchmark" 比較行帶高度)')

    # 動態地為所有可配置參數添加命令行接口
    for key, value in base_params.items():
        arg_name = f'--{key.replace("_", "-")}'
        if isinstance(value, bool):
            parser.add_argument(arg_name, action=argparse.BooleanOptionalAction, default=None)
        else:
            parser.add_argument(arg_name, type=type(value), default=None, help=f'覆寫 {key} 參數 (預設: {value})')
    return parser

def main(argv=None):
    """程式主入口，解析命令行參數並啟動光流計算。"""
    base_params = get_config()
    parser = build_parser(base_params)
    args = parser.parse_args(argv)

    # 將命令行參數覆寫到基礎設定上
    final_params = base_params.copy()
    for key, value in vars(args).items():
        if value is not None and key != 'mode': # 'mode' 參數另外處理
            final_params[key] = value

    # --- 打印所有生效的參數配置，方便追溯 ---
    if not final_params.get('quiet_mode', False):
        print("\n" + "="*60)
        print("【運行配置報告 (Runtime Configuration Report)】")
        print(f"運行模式 (Mode): {args.mode}")
        print("-" * 60)
        for key in sorted(final_params.keys()):
            print(f"{key:<35}: {final_params[key]}")
        print("="*60 + "\n")

    try:
        if args.mode == 'flow':
            compute_flow(final_params)
        elif args.mode == 'benchmark':
            if not run_benchmark(final_params):
                sys.exit(2)
    except (FlowError, FileNotFoundError) as e:
        print(f"錯誤：{e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
