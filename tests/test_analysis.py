"""Tests for statistics, history/export and plotting helpers."""
import os

import numpy as np
import pytest

from analysis.io import ExportManager, HistoryManager
from analysis.statistics import StatisticsManager, analyse
from analysis.visualization import VisualizationManager
from core.bounds import Rect
from core.field import FloatBuffer
from imaging.luminance import gray_float_with_border_from_array
from timer import SimpleTimer


class TestAnalyse:

    def test_interior_statistics(self):
        buf = gray_float_with_border_from_array(np.array([[1.0, 2.0], [3.0, 6.0]]))
        lo, hi, mean, var = analyse(buf)
        assert (lo, hi, mean) == (1.0, 6.0, 3.0)
        assert var == pytest.approx(3.5)

    def test_border_is_ignored(self):
        buf = FloatBuffer.create(Rect(0, 0, 3, 3), 1)
        buf.grid()[:] = 100.0
        buf.set(1, 1, 0, -4.0)
        assert analyse(buf) == (-4.0, -4.0, -4.0, 0.0)

    def test_empty_buffer(self):
        assert analyse(FloatBuffer.create(Rect(0, 0, 0, 0), 0)) == (0.0, 0.0, 0.0, 0.0)
        assert analyse(FloatBuffer.create(Rect(0, 0, 2, 2), 1)) == (0.0, 0.0, 0.0, 0.0)


class TestStatisticsManager:

    def _flow(self):
        uv = np.array([[[3.0, 4.0], [0.0, 0.0]], [[-1.0, 0.0], [np.nan, 1.0]]], dtype=np.float32)
        mag = np.sqrt(np.sum(uv ** 2, axis=2))
        return FloatBuffer.from_array(uv), FloatBuffer.from_array(mag)

    def test_flow_stats_skip_non_finite(self):
        stats = StatisticsManager().calculate_flow_stats(*self._flow())
        assert stats['nonfinite_count'] == 1
        assert stats['max_magnitude'] == 5.0
        assert stats['mean_magnitude'] == pytest.approx(2.0)
        assert stats['mean_u'] == pytest.approx(2.0 / 3.0)
        assert stats['mean_v'] == pytest.approx(4.0 / 3.0)

    def test_all_non_finite(self):
        uv = FloatBuffer.from_array(np.full((1, 2, 2), np.inf, dtype=np.float32))
        mag = FloatBuffer.from_array(np.full((1, 2), np.inf, dtype=np.float32))
        stats = StatisticsManager().calculate_flow_stats(uv, mag)
        assert stats['nonfinite_count'] == 2
        assert np.isnan(stats['mean_magnitude'])

    def test_max_change(self):
        m = StatisticsManager()
        a = np.zeros((2, 2, 2), dtype=np.float32)
        b = a.copy()
        b[1, 0, 1] = -0.25
        assert m.max_change(a, b) == 0.25
        assert np.isnan(m.max_change(None, b))
        assert np.isnan(m.max_change(a[:1], b))


class TestHistoryManager:

    def test_default_records_first_and_last(self):
        h = HistoryManager({})
        picked = [k for k in range(1, 11) if h.should_snapshot(k, 10)]
        assert picked == [1, 10]

    def test_interval(self):
        h = HistoryManager({'snapshot_interval': 4})
        picked = [k for k in range(1, 11) if h.should_snapshot(k, 10)]
        assert picked == [1, 4, 8, 10]

    def test_as_arrays(self):
        h = HistoryManager({})
        assert h.as_arrays() == {}
        h.record_snapshot({'iteration': 1, 'max_change': 0.5})
        h.record_snapshot({'iteration': 2, 'max_change': 0.1})
        arrays = h.as_arrays()
        np.testing.assert_array_equal(arrays['iteration'], [1, 2])
        np.testing.assert_allclose(arrays['max_change'], [0.5, 0.1])
        assert len(h.get_history()) == 2


class TestExportManager:

    def _result(self):
        flow = FloatBuffer.from_array(np.ones((2, 3, 2), dtype=np.float32))
        return {
            'flow': flow,
            'magnitude': FloatBuffer.from_array(np.full((2, 3), 2.0, dtype=np.float32)),
            'derivatives': FloatBuffer.create(Rect(-1, -1, 4, 3), 3),
        }

    def test_disabled_writes_nothing(self, tmp_path):
        m = ExportManager({'export_path': str(tmp_path / "x")})
        assert m.export_result(self._result()) is None
        assert not (tmp_path / "x").exists()

    def test_npz_contents(self, tmp_path):
        m = ExportManager({'enable_export': True, 'quiet_mode': True, 'export_path': str(tmp_path / "out")})
        path = m.export_result(self._result(), {'iteration': np.array([1, 5])})
        assert os.path.basename(path) == "flow_result.npz"
        with np.load(path) as data:
            assert data['u'].shape == (2, 3)
            assert (data['v'] == 1.0).all()
            assert (data['magnitude'] == 2.0).all()
            assert data['derivatives'].shape == (4, 5, 3)
            np.testing.assert_array_equal(data['history_iteration'], [1, 5])


class TestVisualizationManager:

    def test_disabled(self, tmp_path):
        v = VisualizationManager({'plot_output_path': str(tmp_path / "plots")})
        assert v.plot_convergence([{'iteration': 1}]) is None
        assert not (tmp_path / "plots").exists()

    def test_writes_pngs(self, tmp_path, five_by_five_pair):
        f1, _ = five_by_five_pair
        flow = FloatBuffer.from_array(np.full((3, 3, 2), 0.5, dtype=np.float32))
        mag = FloatBuffer.from_array(np.full((3, 3), 0.7, dtype=np.float32))
        v = VisualizationManager({'enable_plots': True, 'quiet_mode': True,
                                  'plot_output_path': str(tmp_path / "plots"), 'alpha': 1.0, 'iterations': 2})
        report = v.plot_flow_report(f1, flow, mag)
        history = [{'iteration': k, 'mean_magnitude': 0.1 * k, 'max_magnitude': 0.2 * k, 'max_change': 1.0 / k}
                   for k in (1, 2)]
        convergence = v.plot_convergence(history)
        v.finalize()
        assert os.path.isfile(report) and report.endswith("flow_report.png")
        assert os.path.isfile(convergence) and convergence.endswith("convergence.png")
        assert v.plot_convergence([]) is None


class TestSimpleTimer:

    def test_record_accumulates(self):
        t = SimpleTimer()
        for _ in range(3):
            with t.record("sweep"):
                pass
        summary = t.summary()
        assert summary['sweep']['count'] == 3
        assert summary['sweep']['total'] >= 0.0
        assert summary['sweep']['mean'] == pytest.approx(summary['sweep']['total'] / 3)

    def test_record_survives_exceptions(self):
        t = SimpleTimer()
        with pytest.raises(ValueError):
            with t.record("fails"):
                raise ValueError("boom")
        assert t.summary()['fails']['count'] == 1

    def test_stop_unknown_name(self):
        assert SimpleTimer().stop("never started") == 0.0

    def test_report_prints(self, capsys):
        t = SimpleTimer()
        t.report()
        with t.record("a"):
            pass
        t.report()
        assert "[a]" in capsys.readouterr().out
