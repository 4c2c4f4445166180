import numpy as np
import matplotlib
matplotlib.use("Agg")
import pytest

from core.backends import get_backend
from core.scheduler import RowBandScheduler
from imaging.luminance import gray_float_with_border_from_array


@pytest.fixture(params=['numpy', 'numba'])
def backend(request):
    """Every solver test runs against both compute backends."""
    return get_backend({'backend': request.param, 'quiet_mode': True})


@pytest.fixture
def scheduler():
    with RowBandScheduler(rows_per_unit=2) as s:
        yield s


@pytest.fixture
def five_by_five_pair():
    """3x3 interior plus a 1-cell border; f2 is brighter by +5 at interior cell (2, 2)."""
    f1 = gray_float_with_border_from_array(np.full((3, 3), 10.0))
    frame2 = np.full((3, 3), 10.0)
    frame2[2, 2] = 15.0
    f2 = gray_float_with_border_from_array(frame2)
    return f1, f2


@pytest.fixture
def textured_pair():
    """Smooth random texture and the same texture shifted by one pixel to the right."""
    rng = np.random.default_rng(3)
    base = rng.uniform(0, 255, size=(18, 22))
    # cheap separable smoothing keeps the gradients moderate
    for _ in range(3):
        base = (np.roll(base, 1, axis=0) + base + np.roll(base, -1, axis=0)) / 3.0
        base = (np.roll(base, 1, axis=1) + base + np.roll(base, -1, axis=1)) / 3.0
    moved = np.roll(base, 1, axis=1)
    return gray_float_with_border_from_array(base), gray_float_with_border_from_array(moved)
