# hornschunck_flow/pipeline.py

from typing import Dict, Any
from tqdm import tqdm

from core.backends import get_backend
from core.field import FloatBuffer
from core.scheduler import RowBandScheduler
from analysis.statistics import StatisticsManager, analyse
from analysis.io import HistoryManager, ExportManager
from analysis.visualization import VisualizationManager
from imaging.encoding import encode, save_image
from solver.derivatives import derive_mixed
from solver.jacobi import JacobiFlowSolver, optic_flow_horn_schunck
from solver.magnitude import magnitude_field
from timer import SimpleTimer

class FlowPipeline:
    """兩幀 → 導數場 → Jacobi 迭代 → 流場 → 幅值場 → 輸出影像。"""
    def __init__(self, params: Dict[str, Any], f1: FloatBuffer, f2: FloatBuffer):
        self.params = params
        self.is_quiet = self.params.get('quiet_mode', False)
        self.f1 = f1
        self.f2 = f2

        if not self.is_quiet: print("\n--- 初始化核心組件 ---")
        self.backend = get_backend(self.params)
        self.scheduler = RowBandScheduler(self.params['rows_per_unit'], self.params.get('max_workers') or None)
        if not self.is_quiet: print(f"  [後端] {self.backend.name}，行帶高度 {self.params['rows_per_unit']}")

        self.stats_manager = StatisticsManager(self.params)
        self.history_manager = HistoryManager(self.params)
        self.export_manager = ExportManager(self.params)
        self.viz_manager = VisualizationManager(self.params)

        self.timer = SimpleTimer()
        self._progress_bar = None
        self._last_snapshot = None

    def set_timer(self, timer):
        """從外部接收計時器物件。"""
        self.timer = timer

    def close(self):
        self.scheduler.shutdown()

    def report_inputs(self):
        """打印兩幀內部區域的 min/max/mean/variance。"""
        for idx, frame in enumerate((self.f1, self.f2), start=1):
            lo, hi, mean, var = analyse(frame)
            if not self.is_quiet:
                print(f"min{idx} = {lo:f}, max{idx} = {hi:f}, mean{idx} = {mean:f}, var{idx} = {var:f}")

    def _on_iteration(self, iteration: int, current: FloatBuffer):
        if self._progress_bar is not None:
            self._progress_bar.update(1)
        if not self.history_manager.should_snapshot(iteration, self.params['iterations']):
            return

        magnitude = magnitude_field(current, self.scheduler, self.backend)
        stats = self.stats_manager.calculate_flow_stats(current, magnitude)
        snapshot = current.to_array()
        self.history_manager.record_snapshot({
            'iteration': iteration,
            'mean_magnitude': stats['mean_magnitude'],
            'max_magnitude': stats['max_magnitude'],
            'max_change': self.stats_manager.max_change(self._last_snapshot, snapshot),
        })
        self._last_snapshot = snapshot

    def run(self) -> Dict[str, Any]:
        p = self.params
        total_iterations = p['iterations']

        with self.timer.record("導數計算 (derive_mixed)"):
            derivs = derive_mixed(self.f1, self.f2, self.scheduler, self.backend)

        solver = JacobiFlowSolver(derivs, p['alpha'], self.scheduler, self.backend)
        # 使用tqdm顯示迭代進度
        self._progress_bar = tqdm(total=total_iterations, desc="  Jacobi 迭代", leave=False, disable=self.is_quiet)
        try:
            with self.timer.record("Jacobi 迭代 (relax sweeps)"):
                flow = solver.run(total_iterations, callback=self._on_iteration)
        finally:
            self._progress_bar.close()
            self._progress_bar = None

        with self.timer.record("幅值計算 (magnitude_field)"):
            magnitude = magnitude_field(flow, self.scheduler, self.backend)

        stats = self.stats_manager.calculate_flow_stats(flow, magnitude)
        if p.get('check_finite', True) and stats['nonfinite_count'] > 0:
            print(f"警告：流場中有 {stats['nonfinite_count']} 個非有限值 (NaN/Inf)，請檢查 alpha 與輸入影像。")
        if not self.is_quiet:
            print(f"  [結果] 平均幅值 {stats['mean_magnitude']:.6f}，最大幅值 {stats['max_magnitude']:.6f}")

        return {
            'flow': flow,
            'magnitude': magnitude,
            'derivatives': derivs,
            'stats': stats,
            'history': self.history_manager.get_history(),
        }

    def save_outputs(self, result: Dict[str, Any]) -> Dict[str, str]:
        """幅值圖先縮放到 0..255 再編碼；方向圖以縮放後的幅值作為亮度。"""
        p = self.params
        paths = {}
        with self.timer.record("輸出編碼 (encode/save)"):
            magnitude = result['magnitude']
            scaled = FloatBuffer.from_array(magnitude.to_array(), origin=(magnitude.bounds.min_x, magnitude.bounds.min_y))
            scaled.scale_to_unit_range()

            save_image(encode(scaled, p['magnitude_mapping']), p['magnitude_image'])
            paths['magnitude_image'] = p['magnitude_image']

            direction = encode(result['flow'], p['direction_mapping'],
                               magnitude=scaled, multiplier=p['direction_multiplier'])
            save_image(direction, p['direction_image'])
            paths['direction_image'] = p['direction_image']

        export_path = self.export_manager.export_result(result, self.history_manager.as_arrays())
        if export_path:
            paths['export'] = export_path

        report_path = self.viz_manager.plot_flow_report(self.f1, result['flow'], result['magnitude'])
        if report_path:
            paths['flow_report'] = report_path
        convergence_path = self.viz_manager.plot_convergence(result['history'])
        if convergence_path:
            paths['convergence'] = convergence_path
        self.viz_manager.finalize()
        return paths


def benchmark_band_sizes(params: Dict[str, Any], f1: FloatBuffer, f2: FloatBuffer, timer: SimpleTimer = None) -> bool:
    """
    以行帶高度 1、4 與整個內部高度分別求解，計時並比較結果是否逐位元一致。
    """
    timer = timer or SimpleTimer()
    backend = get_backend(params)
    interior_height = f1.height - 2
    flows = {}
    for rows in sorted({1, 4, max(interior_height, 1)}):
        with RowBandScheduler(rows, params.get('max_workers') or None) as scheduler:
            with timer.record(f"rows_per_unit={rows}"):
                flow = optic_flow_horn_schunck(f1, f2, params['alpha'], params['iterations'],
                                               backend=backend, scheduler=scheduler)
        flows[rows] = flow.to_array()

    reference = flows[1].tobytes()
    identical = all(f.tobytes() == reference for f in flows.values())
    if not params.get('quiet_mode', False):
        print(f"  [基準測試] 行帶高度 {sorted(flows)} 的結果{'逐位元一致' if identical else '不一致'}。")
    return identical
