"""Unit tests for skyaper.photometry.ellipse."""

import numpy as np
import pytest

from skyaper.errors import NonEllipseParamsError
from skyaper.photometry.ellipse import axes_from_coeffs, coeffs_from_axes, ellipse_axes, ellipse_coeffs


def _angle_diff(t1, t2):
    """Difference between two position angles modulo pi"""
    return (t1 - t2 + np.pi/2) % np.pi - np.pi/2


class TestEllipseAxes:
    """Tests for conversions between ellipse representations."""

    def test_axis_aligned(self):
        a, b, theta = ellipse_axes(0.25, 1.0, 0.0)
        assert a == pytest.approx(2)
        assert b == pytest.approx(1)
        assert theta == 0

    def test_axis_aligned_vertical(self):
        a, b, theta = ellipse_axes(1.0, 0.25, 0.0)
        assert a == pytest.approx(2)
        assert b == pytest.approx(1)
        assert theta == pytest.approx(np.pi/2)

    def test_coeffs_of_circle(self):
        cxx, cyy, cxy = ellipse_coeffs(2.0, 2.0, 0.7)
        assert cxx == pytest.approx(0.25)
        assert cyy == pytest.approx(0.25)
        assert cxy == pytest.approx(0, abs=1e-15)

    @pytest.mark.parametrize('a, b', [(3.0, 1.0), (5.0, 4.9), (1.0, 0.1)])
    @pytest.mark.parametrize('theta', [-1.5, -0.7, 0.0, 0.4, 1.2, np.pi/2])
    def test_round_trip(self, a, b, theta):
        a1, b1, theta1 = ellipse_axes(*ellipse_coeffs(a, b, theta))
        assert a1 == pytest.approx(a, rel=1e-9)
        assert b1 == pytest.approx(b, rel=1e-9)
        assert _angle_diff(theta1, theta) == pytest.approx(0, abs=1e-7)
        assert -np.pi/2 < theta1 <= np.pi/2

    @pytest.mark.parametrize('cxx, cyy, cxy', [(1.0, 1.0, 3.0), (-1.0, -1.0, 0.0), (1.0, 0.0, 0.0)])
    def test_non_ellipse(self, cxx, cyy, cxy):
        with pytest.raises(NonEllipseParamsError):
            ellipse_axes(cxx, cyy, cxy)

    def test_arrays(self):
        a = np.array([3.0, 2.0, 4.0])
        b = np.array([1.0, 2.0, 0.5])
        theta = np.array([0.3, 0.0, -1.0])
        a1, b1, theta1 = axes_from_coeffs(*coeffs_from_axes(a, b, theta))
        np.testing.assert_allclose(a1, a)
        np.testing.assert_allclose(b1, b)
        # Position angle of a circle is undefined
        np.testing.assert_allclose(_angle_diff(theta1[[0, 2]], theta[[0, 2]]), 0, atol=1e-9)
