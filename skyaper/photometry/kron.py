"""
Kron radius and elliptical masks

:func:`~kron_radius()`: flux-weighted mean elliptical radius of sources.
:func:`~set_ellipse()`, :func:`~mask_ellipse()`: fill elliptical regions of an array.
"""

import logging
from typing import Optional, Union

import numpy as np
from numba import prange

from ..util.overlap import njitc
from ..util.pixels import sep_compatible, wrap_row
from .aperture import broadcast_aper
from .ellipse import ellipse_coeffs
from .extent import boxextent_ellipse
from .flags import APER_ALLMASKED, APER_HASMASKED, APER_NONPOSITIVE


__all__ = ['kron_radius', 'set_ellipse', 'mask_ellipse']


# Pixel values below -BIG are treated as invalid
BIG = 1e30


@njitc
def _kron_radius(data: np.ndarray,
                 mask: Optional[np.ndarray],
                 maskthresh: float,
                 x: float,
                 y: float,
                 cxx: float,
                 cyy: float,
                 cxy: float,
                 r: float) -> tuple[float, int]:
    """
    Kron radius of a single source: sum(R*I)/sum(I) over pixels within cxx*dx^2 + cyy*dy^2 + cxy*dx*dy <= r^2,
    R being the elliptical radius in units of the ellipse defined by the coefficients

    :return: Kron radius and flags; the radius is 0 with APER_ALLMASKED if there are no valid pixels or with
        APER_NONPOSITIVE if either moment is non-positive
    """
    h, w = data.shape
    r2 = r*r
    r1 = v1 = 0.0
    npix = 0

    xmin, xmax, ymin, ymax, flag = boxextent_ellipse(x, y, cxx, cyy, cxy, r, w, h)

    for iy in range(ymin, ymax):
        row = wrap_row(iy, h)
        dy = iy - y
        for ix in range(xmin, xmax):
            dx = ix - x
            rpix2 = cxx*dx*dx + cyy*dy*dy + cxy*dx*dy
            if not rpix2 <= r2:
                continue
            pix = data[row, ix]
            if pix < -BIG or mask is not None and mask[row, ix] > maskthresh:
                flag |= APER_HASMASKED
            else:
                r1 += np.sqrt(rpix2)*pix
                v1 += pix
                npix += 1

    if not npix:
        return 0.0, flag | APER_ALLMASKED
    if r1 <= 0 or v1 <= 0:
        return 0.0, flag | APER_NONPOSITIVE
    return r1/v1, flag


@njitc(parallel=True)
def _kron_radius_batch(data: np.ndarray,
                       mask: Optional[np.ndarray],
                       maskthresh: float,
                       x: np.ndarray,
                       y: np.ndarray,
                       aper: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    n = x.size
    kronrad = np.empty(n, np.float64)
    flag = np.empty(n, np.int16)
    for i in prange(n):
        cxx, cyy, cxy = ellipse_coeffs(aper[i, 0], aper[i, 1], aper[i, 2])
        kronrad[i], flag[i] = _kron_radius(data, mask, maskthresh, x[i], y[i], cxx, cyy, cxy, aper[i, 3])
    return kronrad, flag


def kron_radius(data: np.ndarray,
                x: Union[float, np.ndarray],
                y: Union[float, np.ndarray],
                a: Union[float, np.ndarray],
                b: Union[float, np.ndarray],
                theta: Union[float, np.ndarray],
                r: Union[float, np.ndarray],
                mask: Optional[np.ndarray] = None,
                maskthresh: float = 0) -> tuple[np.ndarray, np.ndarray]:
    """
    Calculate Kron radius within an ellipse

    The Kron radius is the flux-weighted mean of the elliptical radius, in units of `a` and `b`:
    sum(R_i*I_i)/sum(I_i), summed over unmasked pixels with R_i <= `r`.

    :param data: 2D image array, usually background-subtracted
    :param x: source center(s) X, 0-based
    :param y: source center(s) Y, same shape as `x`
    :param a: ellipse semi-major axis, typically the isophotal one
    :param b: ellipse semi-minor axis
    :param theta: position angle of the major axis in radians CCW from the X axis
    :param r: scale of the analysis ellipse in units of `a` and `b`; typically 6
    :param mask: optional mask array, same shape as `data`
    :param maskthresh: pixels with `mask` > `maskthresh` are masked

    :return: Kron radii and flags (APER_TRUNC, APER_HASMASKED, APER_ALLMASKED, APER_NONPOSITIVE), one per source
    """
    data = sep_compatible(data)
    if data.ndim != 2:
        raise ValueError('Data must be a 2D array')
    if mask is not None:
        mask = np.asarray(mask)
        if mask.shape != data.shape:
            raise ValueError('Size of mask array must match data')
        mask = sep_compatible(mask)
    x = np.atleast_1d(np.asarray(x, np.float64)).ravel()
    y = np.atleast_1d(np.asarray(y, np.float64)).ravel()
    if y.size != x.size:
        raise ValueError('Size of `y` array must match `x`')

    kronrad, flag = _kron_radius_batch(
        data, mask, float(maskthresh), x, y, broadcast_aper(x.size, a, b, theta, r))

    nbad = (flag & APER_ALLMASKED).astype(bool).sum()
    if nbad:
        logging.warning('Kron radius undefined for %d fully masked source(s)', nbad)
    return kronrad, flag


@njitc
def set_ellipse(arr: np.ndarray, x: float, y: float, cxx: float, cyy: float, cxy: float, r: float, val) -> None:
    """
    Set all pixels of a 2D array within ellipse cxx*dx^2 + cyy*dy^2 + cxy*dx*dy <= r^2 to `val`; the part of the
    ellipse outside the array is ignored
    """
    h, w = arr.shape
    r2 = r*r
    xmin, xmax, ymin, ymax, _ = boxextent_ellipse(x, y, cxx, cyy, cxy, r, w, h)
    for iy in range(ymin, ymax):
        dy = iy - y
        dy2 = dy*dy
        for ix in range(xmin, xmax):
            dx = ix - x
            if cxx*dx*dx + cyy*dy2 + cxy*dx*dy <= r2:
                arr[iy, ix] = val


@njitc
def _mask_ellipse_batch(arr: np.ndarray, x: np.ndarray, y: np.ndarray, aper: np.ndarray) -> None:
    # Sequential: ellipses may overlap
    for i in range(x.size):
        cxx, cyy, cxy = ellipse_coeffs(aper[i, 0], aper[i, 1], aper[i, 2])
        set_ellipse(arr, x[i], y[i], cxx, cyy, cxy, aper[i, 3], True)


def mask_ellipse(arr: np.ndarray,
                 x: Union[float, np.ndarray],
                 y: Union[float, np.ndarray],
                 a: Union[float, np.ndarray],
                 b: Union[float, np.ndarray],
                 theta: Union[float, np.ndarray],
                 r: Union[float, np.ndarray] = 1) -> None:
    """
    Set pixels of a boolean mask array within the given ellipses to True, in place

    :param arr: 2D boolean array to modify
    :param x: ellipse center(s) X, 0-based
    :param y: ellipse center(s) Y, same shape as `x`
    :param a: semi-major axis in units of `r`
    :param b: semi-minor axis in units of `r`
    :param theta: position angle of the major axis in radians CCW from the X axis
    :param r: ellipse scale
    """
    if arr.dtype != np.bool_ or arr.ndim != 2:
        raise ValueError('Mask must be a 2D boolean array')
    x = np.atleast_1d(np.asarray(x, np.float64)).ravel()
    y = np.atleast_1d(np.asarray(y, np.float64)).ravel()
    if y.size != x.size:
        raise ValueError('Size of `y` array must match `x`')
    _mask_ellipse_batch(arr, x, y, broadcast_aper(x.size, a, b, theta, r))
