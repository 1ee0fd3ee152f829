"""Unit tests for skyaper.photometry.profile."""

import logging

import numpy as np
import pytest

from skyaper.errors import IllegalApertureParamsError, IllegalSubpixError
from skyaper.photometry.flags import ApertureFlag
from skyaper.photometry.profile import FLUX_RADIUS_BUFSIZE, flux_radius, ppf, sum_circann_multi


def _make_source_image(shape=(101, 101), x0=50.0, y0=50.0, flux=10000.0, sigma=2.0):
    """Create a simple image with a single Gaussian source."""
    yy, xx = np.mgrid[0:shape[0], 0:shape[1]]
    return flux/(2*np.pi*sigma**2)*np.exp(-0.5*((xx - x0)**2 + (yy - y0)**2)/sigma**2)


class TestPPF:
    """Tests for percentile interpolation over binned profiles."""

    def test_uniform_median(self):
        r = ppf(10.0, np.ones(64), np.array([0.5]))
        assert r[0] == pytest.approx(5.0, abs=10/64)

    def test_limits(self):
        r = ppf(10.0, np.ones(64), np.array([0.0, 1.0]))
        assert r[0] == 0
        assert r[1] == 10

    def test_interpolation(self):
        r = ppf(3.0, np.array([1.0, 1.0, 2.0]), np.array([0.125, 0.25, 0.5, 0.75]))
        np.testing.assert_allclose(r, [0.5, 1.0, 2.0, 3.0])

    def test_not_reached(self):
        r = ppf(3.0, np.array([1.0, 1.0, 2.0]), np.array([1.5]))
        assert r[0] == 3


class TestSumCircannMulti:
    """Tests for radial profiles."""

    def test_uniform(self):
        data = np.full((101, 101), 2.0)
        s, v, area, maskarea, flag = sum_circann_multi(data, 50.3, 50.6, 20.0, 10, subpix=10)
        assert s.shape == v.shape == area.shape == maskarea.shape == (1, 10)
        assert flag[0] == 0
        np.testing.assert_allclose(s, 2*area, rtol=1e-12)
        assert area.sum() == pytest.approx(400*np.pi, rel=1e-2)
        # Bins are independent annuli, not cumulative sums
        ring = np.pi*((np.arange(10) + 1)**2 - np.arange(10)**2)*4
        np.testing.assert_allclose(area[0], ring, rtol=0.1)
        assert (v == 0).all()

    def test_noise_and_gain(self):
        data = np.full((101, 101), 2.0)
        s, v, area = sum_circann_multi(data, 50.0, 50.0, 10.0, 5, err=3.0, gain=4.0)[:3]
        np.testing.assert_allclose(v, 9*area + s/4, rtol=1e-12)

    def test_mask_ignore(self):
        data = np.full((101, 101), 2.0)
        mask = np.zeros(data.shape, np.bool_)
        mask[:, :50] = True
        s, _, area, maskarea, flag = sum_circann_multi(data, 50.0, 50.0, 10.0, 5, mask=mask, mask_ignore=True)
        assert flag[0] == ApertureFlag.HASMASKED
        assert (maskarea > 0).all()
        np.testing.assert_allclose(s, 2*area, rtol=1e-12)

    def test_mask_rescale(self):
        data = np.full((101, 101), 2.0)
        mask = np.zeros(data.shape, np.bool_)
        mask[:, :50] = True
        s, _, area, maskarea = sum_circann_multi(data, 50.0, 50.0, 10.0, 5, mask=mask)[:4]
        np.testing.assert_allclose(s, 2*area, rtol=1e-12)

    def test_batch(self):
        data = _make_source_image()
        s = sum_circann_multi(data, [50.0, 30.0], [50.0, 30.0], [10.0, 5.0], 8)[0]
        assert s.shape == (2, 8)
        assert s[0].sum() > s[1].sum()

    def test_truncated(self):
        flag = sum_circann_multi(np.ones((50, 50)), 2.0, 25.0, 10.0, 4)[4]
        assert flag[0] & ApertureFlag.TRUNC

    def test_illegal_subpix(self):
        with pytest.raises(IllegalSubpixError):
            sum_circann_multi(np.ones((50, 50)), 25.0, 25.0, 10.0, 4, subpix=0)

    def test_illegal_params(self):
        with pytest.raises(IllegalApertureParamsError):
            sum_circann_multi(np.ones((50, 50)), 25.0, 25.0, 10.0, 0)
        with pytest.raises(IllegalApertureParamsError):
            sum_circann_multi(np.ones((50, 50)), 25.0, 25.0, -10.0, 4)


class TestFluxRadius:
    """Tests for flux radius."""

    def test_gaussian_half_light_radius(self):
        r, flag = flux_radius(_make_source_image(), 50.0, 50.0, 20.0, 0.5)
        assert r.shape == (1, 1)
        assert flag[0] == 0
        assert r[0, 0] == pytest.approx(2*np.sqrt(2*np.log(2)), abs=0.15)

    def test_monotonic_in_fraction(self):
        r = flux_radius(_make_source_image(), 50.0, 50.0, 20.0, [0.1, 0.5, 0.9])[0]
        assert r.shape == (1, 3)
        assert (np.diff(r[0]) > 0).all()

    def test_normflux(self):
        data = _make_source_image()
        total = sum_circann_multi(data, 50.0, 50.0, 20.0, FLUX_RADIUS_BUFSIZE)[0].sum()
        frac = [0.25, 0.5, 0.75]
        r1 = flux_radius(data, 50.0, 50.0, 20.0, frac)[0]
        r2 = flux_radius(data, 50.0, 50.0, 20.0, frac, normflux=total)[0]
        np.testing.assert_allclose(r1, r2)

    def test_normflux_larger_than_profile(self):
        data = _make_source_image()
        r = flux_radius(data, 50.0, 50.0, 20.0, 0.9, normflux=1e6)[0]
        assert r[0, 0] == 20

    def test_fraction_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            flux_radius(_make_source_image(), 50.0, 50.0, 20.0, 1.5)
        assert 'outside [0, 1]' in caplog.text
