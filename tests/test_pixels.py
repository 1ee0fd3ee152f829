"""Unit tests for skyaper.util.pixels."""

import numpy as np
import pytest

from skyaper.errors import ApertureError, UnsupportedDtypeError
from skyaper.util.pixels import get_converter, sep_compatible, wrap_row


class TestGetConverter:
    """Tests for pixel type resolution."""

    @pytest.mark.parametrize('dtype, size', [
        (np.uint8, 1), (np.int32, 4), (np.float32, 4), (np.float64, 8), (np.bool_, 1), ('>f4', 4), ('>i4', 4),
    ])
    def test_supported(self, dtype, size):
        convert, itemsize = get_converter(dtype)
        assert itemsize == size
        arr = np.arange(6).reshape(2, 3).astype(dtype)
        res = convert(arr)
        assert res.dtype == np.float64
        assert res.flags.c_contiguous
        np.testing.assert_array_equal(res, arr.astype(np.float64))

    @pytest.mark.parametrize('dtype', [np.int64, np.int16, np.complex128, np.float16, 'U3'])
    def test_unsupported(self, dtype):
        with pytest.raises(UnsupportedDtypeError):
            get_converter(dtype)

    def test_error_hierarchy(self):
        assert issubclass(UnsupportedDtypeError, ApertureError)
        assert issubclass(UnsupportedDtypeError, TypeError)


class TestSepCompatible:
    """Tests for buffer conversion."""

    def test_none(self):
        assert sep_compatible(None) is None

    def test_masked_array(self):
        arr = np.ma.MaskedArray(np.ones((2, 2), np.float32), mask=[[True, False], [False, False]])
        res = sep_compatible(arr)
        assert not isinstance(res, np.ma.MaskedArray)
        np.testing.assert_array_equal(res, np.ones((2, 2)))

    def test_swapped_byte_order(self):
        arr = np.arange(4, dtype='>f8').reshape(2, 2)
        res = sep_compatible(arr)
        assert res.dtype.isnative
        np.testing.assert_array_equal(res, [[0, 1], [2, 3]])


class TestWrapRow:
    """Tests for periodic row addressing."""

    def test_inside(self):
        assert wrap_row(0, 10) == 0
        assert wrap_row(9, 10) == 9

    def test_wraps_past_last_row(self):
        assert wrap_row(10, 10) == 0
        assert wrap_row(12, 10) == 2

    def test_wraps_before_first_row(self):
        assert wrap_row(-1, 10) == 9
        assert wrap_row(-10, 10) == 0
