"""Tests for the strided float buffer."""
import numpy as np
import pytest

from core.bounds import Rect
from core.errors import InvalidArgument, OutOfBounds
from core.field import FloatBuffer


class TestRect:

    def test_intersect_empty_returns_zero_rect(self):
        r = Rect(0, 0, 4, 4).intersect(Rect(10, 10, 12, 12))
        assert r == Rect(0, 0, 0, 0)
        assert r.empty()

    def test_inset_and_size(self):
        r = Rect(-1, -1, 6, 5).inset(1)
        assert r == Rect(0, 0, 5, 4)
        assert (r.width, r.height) == (5, 4)
        assert r.contains(0, 0) and not r.contains(5, 0)


class TestCreate:

    def test_zero_initialized_with_expected_layout(self):
        buf = FloatBuffer.create(Rect(2, 3, 6, 5), 3)
        assert buf.storage.dtype == np.float32
        assert buf.storage.size == 3 * 4 * 2
        assert buf.stride == 12
        assert not buf.storage.any()
        assert not buf.is_view

    def test_zero_area_with_channels_is_rejected(self):
        with pytest.raises(InvalidArgument):
            FloatBuffer.create(Rect(0, 0, 0, 5), 1)
        with pytest.raises(InvalidArgument):
            FloatBuffer.create(Rect(0, 0, 3, -1), 2)

    def test_zero_channel_zero_area_is_allowed(self):
        buf = FloatBuffer.create(Rect(0, 0, 0, 0), 0)
        assert buf.storage.size == 0

    def test_negative_channel_count_is_rejected(self):
        with pytest.raises(InvalidArgument):
            FloatBuffer.create(Rect(0, 0, 2, 2), -1)


class TestAddressing:

    def test_cell_uses_stride_and_origin(self):
        buf = FloatBuffer.create(Rect(-1, -1, 3, 2), 2)
        buf.set(1, 0, 1, 7.5)
        offset = (0 - (-1)) * buf.stride + (1 - (-1)) * 2 + 1
        assert buf.storage[offset] == 7.5
        np.testing.assert_array_equal(buf.cell(1, 0), [0.0, 7.5])
        assert buf.get(1, 0, 1) == 7.5

    def test_cell_is_a_mutable_view(self):
        buf = FloatBuffer.create(Rect(0, 0, 2, 2), 3)
        buf.cell(1, 1)[:] = [1, 2, 3]
        np.testing.assert_array_equal(buf.grid()[1, 1], [1, 2, 3])

    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (2, 0), (0, 2)])
    def test_out_of_bounds(self, x, y):
        buf = FloatBuffer.create(Rect(0, 0, 2, 2), 1)
        with pytest.raises(OutOfBounds):
            buf.cell(x, y)
        with pytest.raises(OutOfBounds):
            buf.set(x, y, 0, 1.0)

    def test_channel_out_of_range(self):
        buf = FloatBuffer.create(Rect(0, 0, 2, 2), 2)
        with pytest.raises(OutOfBounds):
            buf.set(0, 0, 2, 1.0)

    def test_from_array_round_trips_values(self):
        data = np.arange(12, dtype=np.float32).reshape(3, 4)
        buf = FloatBuffer.from_array(data, origin=(5, -2))
        assert buf.bounds == Rect(5, -2, 9, 1)
        assert buf.get(6, -1, 0) == data[1, 1]
        np.testing.assert_array_equal(buf.to_array()[:, :, 0], data)


class TestSubview:

    def test_writes_through_view_reach_owner(self):
        owner = FloatBuffer.create(Rect(0, 0, 5, 4), 2)
        view = owner.subview(Rect(1, 1, 4, 3))
        assert view.is_view
        assert view.bounds == Rect(1, 1, 4, 3)
        view.set(3, 2, 0, 4.0)
        view.cell(1, 1)[1] = 9.0
        assert owner.get(3, 2, 0) == 4.0
        assert owner.get(1, 1, 1) == 9.0

    def test_writes_through_owner_reach_view(self):
        owner = FloatBuffer.create(Rect(0, 0, 5, 4), 1)
        view = owner.subview(Rect(2, 1, 5, 4))
        owner.set(4, 3, 0, -2.0)
        assert view.get(4, 3, 0) == -2.0
        assert view.grid()[2, 2, 0] == -2.0

    def test_view_is_clipped_to_owner(self):
        owner = FloatBuffer.create(Rect(0, 0, 3, 3), 1)
        view = owner.subview(Rect(-5, 1, 2, 10))
        assert view.bounds == Rect(0, 1, 2, 3)
        with pytest.raises(OutOfBounds):
            view.cell(2, 1)

    def test_empty_intersection_returns_zero_area_buffer(self):
        owner = FloatBuffer.create(Rect(0, 0, 3, 3), 2)
        view = owner.subview(Rect(10, 10, 12, 12))
        assert view.bounds.empty()
        assert view.channel_count == 0
        assert view.storage.size == 0
        assert not view.is_view

    def test_dedummify_drops_border(self):
        owner = FloatBuffer.create(Rect(-1, -1, 4, 3), 1)
        inner = owner.dedummify()
        assert inner.bounds == Rect(0, 0, 3, 2)
        inner.grid()[:] = 1.0
        g = owner.grid()[:, :, 0]
        assert g[1:-1, 1:-1].all()
        assert not g[0].any() and not g[-1].any()
        assert not g[:, 0].any() and not g[:, -1].any()


class TestCopyFrom:

    def test_copies_values_and_metadata(self):
        src = FloatBuffer.from_array(np.arange(6, dtype=np.float32).reshape(2, 3))
        dst = FloatBuffer.create(Rect(0, 0, 3, 2), 1)
        storage = dst.storage
        dst.copy_from(src)
        assert dst.storage is storage
        assert dst.bounds == src.bounds and dst.stride == src.stride
        np.testing.assert_array_equal(dst.to_array(), src.to_array())
        # the copy is independent of the source
        src.set(0, 0, 0, 100.0)
        assert dst.get(0, 0, 0) == 0.0

    def test_owner_grows_when_capacity_is_short(self):
        src = FloatBuffer.from_array(np.ones((4, 4), dtype=np.float32))
        dst = FloatBuffer.create(Rect(0, 0, 1, 1), 1)
        dst.copy_from(src)
        assert dst.bounds == src.bounds
        np.testing.assert_array_equal(dst.to_array(), src.to_array())

    def test_view_is_never_reallocated(self):
        owner = FloatBuffer.create(Rect(0, 0, 2, 2), 1)
        view = owner.subview(Rect(1, 1, 2, 2))
        big = FloatBuffer.create(Rect(0, 0, 5, 5), 1)
        with pytest.raises(InvalidArgument):
            view.copy_from(big)


class TestMirrorBorder:

    def _bordered(self):
        data = np.arange(1, 31, dtype=np.float32).reshape(5, 6)
        buf = FloatBuffer.from_array(np.stack([data, -data], axis=2), origin=(-1, -1))
        buf.apply_mirror_border()
        return buf

    def test_all_four_sides_copy_adjacent_interior(self):
        buf = self._bordered()
        b = buf.bounds
        for x in range(b.min_x + 1, b.max_x - 1):
            np.testing.assert_array_equal(buf.cell(x, b.min_y), buf.cell(x, b.min_y + 1))
            np.testing.assert_array_equal(buf.cell(x, b.max_y - 1), buf.cell(x, b.max_y - 2))
        for y in range(b.min_y + 1, b.max_y - 1):
            np.testing.assert_array_equal(buf.cell(b.min_x, y), buf.cell(b.min_x + 1, y))
            np.testing.assert_array_equal(buf.cell(b.max_x - 1, y), buf.cell(b.max_x - 2, y))

    def test_corners_take_diagonal_interior_value(self):
        buf = self._bordered()
        b = buf.bounds
        np.testing.assert_array_equal(buf.cell(b.min_x, b.min_y), buf.cell(b.min_x + 1, b.min_y + 1))
        np.testing.assert_array_equal(buf.cell(b.max_x - 1, b.max_y - 1), buf.cell(b.max_x - 2, b.max_y - 2))
        np.testing.assert_array_equal(buf.cell(b.max_x - 1, b.min_y), buf.cell(b.max_x - 2, b.min_y + 1))
        np.testing.assert_array_equal(buf.cell(b.min_x, b.max_y - 1), buf.cell(b.min_x + 1, b.max_y - 2))

    def test_interior_is_untouched(self):
        data = np.arange(1, 31, dtype=np.float32).reshape(5, 6)
        buf = FloatBuffer.from_array(data)
        buf.apply_mirror_border()
        np.testing.assert_array_equal(buf.to_array()[1:-1, 1:-1, 0], data[1:-1, 1:-1])

    def test_too_thin_dimension_is_a_noop(self):
        data = np.arange(1, 9, dtype=np.float32).reshape(2, 4)
        buf = FloatBuffer.from_array(data)
        buf.apply_mirror_border()
        out = buf.to_array()[:, :, 0]
        # height 2: no top/bottom pass; width 4: left/right pass still runs
        np.testing.assert_array_equal(out[:, 1:3], data[:, 1:3])
        np.testing.assert_array_equal(out[:, 0], data[:, 1])
        np.testing.assert_array_equal(out[:, 3], data[:, 2])


class TestScaleToUnitRange:

    def test_maximum_maps_to_255_and_ratios_are_kept(self):
        buf = FloatBuffer.from_array(np.array([[0.0, 10.0, 50.0, 100.0]]))
        buf.scale_to_unit_range()
        out = buf.to_array()[0, :, 0]
        assert out[3] == 255.0
        np.testing.assert_allclose(out, [0.0, 25.5, 127.5, 255.0], atol=1.0)

    def test_all_zero_channel_stays_zero(self):
        data = np.zeros((2, 3, 2), dtype=np.float32)
        data[:, :, 1] = [[1, 2, 4], [0, 0, 8]]
        buf = FloatBuffer.from_array(data)
        buf.scale_to_unit_range()
        out = buf.to_array()
        assert np.isfinite(out).all()
        assert not out[:, :, 0].any()
        assert out[1, 2, 1] == 255.0
        np.testing.assert_allclose(out[0, :, 1], [31.875, 63.75, 127.5])

    def test_scaling_a_view_only_touches_its_region(self):
        owner = FloatBuffer.from_array(np.full((3, 3), 4.0))
        view = owner.subview(Rect(1, 1, 3, 3))
        view.scale_to_unit_range()
        out = owner.to_array()[:, :, 0]
        assert (out[1:, 1:] == 255.0).all()
        assert out[0, 0] == 4.0
