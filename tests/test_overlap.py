"""Unit tests for skyaper.util.overlap."""

import numpy as np
import pytest

from skyaper.util.overlap import circoverlap, ellipoverlap


def _pixel_grid_overlap(func, rmax, *args):
    """Sum the overlap of a shape with all unit pixels of a grid covering it."""
    n = int(np.ceil(rmax)) + 2
    total = 0.0
    for iy in range(-n, n + 1):
        for ix in range(-n, n + 1):
            total += func(ix - 0.5, iy - 0.5, ix + 0.5, iy + 0.5, *args)
    return total


class TestCircOverlap:
    """Tests for exact pixel/circle overlap."""

    def test_box_inside_circle(self):
        assert circoverlap(-0.5, -0.5, 0.5, 0.5, 10.0) == pytest.approx(1.0)

    def test_box_outside_circle(self):
        assert circoverlap(5.0, 5.0, 6.0, 6.0, 1.0) == 0

    def test_circle_inside_box(self):
        assert circoverlap(-2.0, -2.0, 2.0, 2.0, 1.0) == pytest.approx(np.pi)

    def test_half_and_quarter(self):
        assert circoverlap(0.0, -2.0, 2.0, 2.0, 1.0) == pytest.approx(np.pi/2)
        assert circoverlap(0.0, 0.0, 2.0, 2.0, 1.0) == pytest.approx(np.pi/4)

    def test_nonpositive_radius(self):
        assert circoverlap(-0.5, -0.5, 0.5, 0.5, 0.0) == 0
        assert circoverlap(-0.5, -0.5, 0.5, 0.5, -1.0) == 0

    @pytest.mark.parametrize('r', [0.3, 1.0, 2.7, 5.5])
    def test_pixel_grid_adds_up_to_circle_area(self, r):
        assert _pixel_grid_overlap(circoverlap, r, r) == pytest.approx(np.pi*r**2, rel=1e-9)


class TestEllipOverlap:
    """Tests for exact pixel/ellipse overlap."""

    def test_matches_circle(self):
        for box in [(0.2, -0.3, 1.2, 0.7), (-1.5, -0.5, -0.5, 0.5), (0.5, 0.5, 1.5, 1.5)]:
            assert ellipoverlap(*box, 1.3, 1.3, 0.4) == pytest.approx(circoverlap(*box, 1.3), rel=1e-8, abs=1e-12)

    def test_ellipse_inside_box(self):
        assert ellipoverlap(-5.0, -5.0, 5.0, 5.0, 3.0, 1.0, 0.3) == pytest.approx(3*np.pi)

    def test_degenerate(self):
        assert ellipoverlap(-0.5, -0.5, 0.5, 0.5, 1.0, 0.0, 0.0) == 0

    @pytest.mark.parametrize('a, b, theta', [(4.0, 2.0, 0.5), (3.3, 1.1, -1.2), (2.3, 2.3, 0.0), (6.0, 0.8, np.pi/2)])
    def test_pixel_grid_adds_up_to_ellipse_area(self, a, b, theta):
        assert _pixel_grid_overlap(ellipoverlap, a, a, b, theta) == pytest.approx(np.pi*a*b, rel=1e-7)
