"""Unit tests for skyaper.photometry.kron."""

import logging

import numpy as np
import pytest

from skyaper.photometry.flags import ApertureFlag
from skyaper.photometry.kron import kron_radius, mask_ellipse, set_ellipse


def _make_source_image(shape=(101, 101), x0=50.0, y0=50.0, flux=10000.0, sigma=2.0):
    """Create a simple image with a single Gaussian source."""
    yy, xx = np.mgrid[0:shape[0], 0:shape[1]]
    return flux/(2*np.pi*sigma**2)*np.exp(-0.5*((xx - x0)**2 + (yy - y0)**2)/sigma**2)


class TestKronRadius:
    """Tests for Kron radius."""

    def test_gaussian(self):
        kronrad, flag = kron_radius(_make_source_image(), 50.0, 50.0, 1.0, 1.0, 0.0, 20.0)
        assert kronrad.shape == flag.shape == (1,)
        assert flag[0] == 0
        assert kronrad[0] == pytest.approx(2*np.sqrt(np.pi/2), abs=0.05)

    def test_elongated_scale(self):
        # Radius is in units of the semi-axes, so doubling them halves the result
        data = _make_source_image()
        k1 = kron_radius(data, 50.0, 50.0, 1.0, 1.0, 0.0, 20.0)[0]
        k2 = kron_radius(data, 50.0, 50.0, 2.0, 2.0, 0.0, 10.0)[0]
        assert k2[0] == pytest.approx(k1[0]/2, rel=1e-12)

    def test_batch(self):
        data = _make_source_image() + _make_source_image(x0=20.0, y0=80.0, sigma=3.0)
        kronrad = kron_radius(data, [50.0, 20.0], [50.0, 80.0], 1.0, 1.0, 0.0, 12.0)[0]
        assert kronrad[1] > kronrad[0]

    def test_nonpositive(self):
        kronrad, flag = kron_radius(np.zeros((50, 50)), 25.0, 25.0, 1.0, 1.0, 0.0, 6.0)
        assert kronrad[0] == 0
        assert flag[0] & ApertureFlag.NONPOSITIVE

    def test_all_masked(self, caplog):
        data = _make_source_image()
        with caplog.at_level(logging.WARNING):
            kronrad, flag = kron_radius(
                data, 50.0, 50.0, 1.0, 1.0, 0.0, 6.0, mask=np.ones(data.shape, np.bool_))
        assert kronrad[0] == 0
        assert flag[0] & ApertureFlag.ALLMASKED
        assert flag[0] & ApertureFlag.HASMASKED
        assert 'fully masked' in caplog.text

    def test_invalid_pixels(self):
        kronrad, flag = kron_radius(np.full((50, 50), -1e31), 25.0, 25.0, 1.0, 1.0, 0.0, 6.0)
        assert kronrad[0] == 0
        assert flag[0] & ApertureFlag.ALLMASKED

    def test_near_edge(self):
        flag = kron_radius(_make_source_image(x0=1.0, y0=1.0), 1.0, 1.0, 1.0, 1.0, 0.0, 6.0)[1]
        assert flag[0] & ApertureFlag.TRUNC

    def test_mask_shape_mismatch(self):
        with pytest.raises(ValueError):
            kron_radius(np.ones((50, 50)), 25.0, 25.0, 1.0, 1.0, 0.0, 6.0, mask=np.zeros((10, 10)))


class TestEllipseMasks:
    """Tests for elliptical region filling."""

    def test_set_ellipse(self):
        arr = np.zeros((21, 21), np.uint8)
        set_ellipse(arr, 10.0, 10.0, 1/16, 1.0, 0.0, 1.0, 1)
        assert arr.sum() == 11
        assert arr[10, 6:15].all()
        assert arr[9, 10] and arr[11, 10]
        assert not arr[9, 11]

    def test_mask_ellipse(self):
        arr = np.zeros((21, 21), np.bool_)
        mask_ellipse(arr, 10.0, 10.0, 4.0, 1.0, 0.0)
        assert arr.sum() == 11

    def test_mask_ellipse_rotated(self):
        arr = np.zeros((21, 21), np.bool_)
        mask_ellipse(arr, 10.0, 10.0, 4.0, 1.0, np.pi/2)
        assert arr.sum() == 11
        assert arr[6:15, 10].all()

    def test_mask_ellipse_multiple(self):
        arr = np.zeros((21, 21), np.bool_)
        mask_ellipse(arr, [5.0, 15.0], [5.0, 15.0], 2.0, 2.0, 0.0, r=1.5)
        assert arr[5, 5] and arr[15, 15]
        assert not arr[10, 10]

    def test_near_edge(self):
        arr = np.zeros((21, 21), np.bool_)
        mask_ellipse(arr, 0.0, 0.0, 3.0, 3.0, 0.0)
        assert arr[0, 0] and arr[0, 3] and arr[3, 0]
        assert not arr[3, 3]

    def test_not_bool(self):
        with pytest.raises(ValueError):
            mask_ellipse(np.zeros((21, 21)), 10.0, 10.0, 4.0, 1.0, 0.0)
