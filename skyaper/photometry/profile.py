"""
Radial flux profiles and flux radii

:func:`~sum_circann_multi()`: sum data in equal-width concentric annuli around each source.
:func:`~ppf()`: radius enclosing the given fractions of the total flux of a binned radial profile.
:func:`~flux_radius()`: radius enclosing the given fractions of the source flux.
"""

import logging
from typing import Optional, Union

import numpy as np
from numba import prange

from ..errors import IllegalApertureParamsError, IllegalSubpixError
from ..util.overlap import njitc
from ..util.pixels import wrap_row
from .aperture import prepare_arrays
from .extent import PIXEL_HALF_DIAG, boxextent
from .flags import APER_HASMASKED, ERROR_IS_ARRAY, ERROR_IS_VAR, MASK_IGNORE


__all__ = ['FLUX_RADIUS_BUFSIZE', 'sum_circann_multi', 'ppf', 'flux_radius']


# Number of annuli used by flux_radius(); finer bins improve interpolation but increase the share of subsampled pixels
# near bin edges. Changing it changes the results.
FLUX_RADIUS_BUFSIZE = 64


@njitc
def _sum_circann_multi(x: float,
                       y: float,
                       rmax: float,
                       n: int,
                       data: np.ndarray,
                       mask: Optional[np.ndarray],
                       maskthresh: float,
                       noise: np.ndarray,
                       gain: float,
                       inflag: int,
                       subpix: int,
                       sumdata: np.ndarray,
                       sumvar: np.ndarray,
                       area: np.ndarray,
                       maskarea: np.ndarray) -> int:
    """
    Sum data in `n` concentric annuli of equal width between 0 and `rmax`

    Pixels closer than half a pixel diagonal to a bin edge are split into `subpix` x `subpix` subpixels, each
    assigned to its own bin. Bins are independent (not cumulative).

    :param x: center X (0-based)
    :param y: center Y (0-based)
    :param rmax: outer radius of the last bin
    :param n: number of bins
    :param data: 2D image data array
    :param mask: optional 2D mask array, same shape as `data`
    :param maskthresh: consider pixel masked if `mask`[i, j] > `maskthresh`
    :param noise: 2D noise array or 1x1 array for constant noise
    :param gain: inverse camera gain in e-/count
    :param inflag: combination of ERROR_IS_VAR, ERROR_IS_ARRAY, and MASK_IGNORE
    :param subpix: subpixel sampling factor, >= 1
    :param sumdata: output 1D array of `n` bin sums
    :param sumvar: output 1D array of `n` bin variances
    :param area: output 1D array of `n` bin areas
    :param maskarea: output 1D array of `n` masked bin areas

    :return: flags
    """
    if not rmax >= 0 or n < 1:
        raise IllegalApertureParamsError('Illegal profile radius or number of bins')
    if subpix < 1:
        raise IllegalSubpixError('Subpixel sampling factor must be positive')

    sumdata[:n] = 0
    sumvar[:n] = 0
    area[:n] = 0
    maskarea[:n] = 0

    h, w = data.shape
    errisarray = (inflag & ERROR_IS_ARRAY) != 0 and noise.size > 1
    errisstd = (inflag & ERROR_IS_VAR) == 0
    varpix = float(noise[0, 0])
    if errisstd:
        varpix *= varpix

    scale = 1/subpix
    scale2 = scale*scale
    offset = 0.5*(scale - 1)

    # margin for interpolation
    r_out = rmax + 1.5
    r_out2 = r_out*r_out
    step = rmax/n
    stepdens = 1/step if step > 0 else np.inf
    prevbinmargin = PIXEL_HALF_DIAG
    nextbinmargin = step - PIXEL_HALF_DIAG

    xmin, xmax, ymin, ymax, flag = boxextent(x, y, r_out, r_out, w, h)

    for iy in range(ymin, ymax):
        row = wrap_row(iy, h)
        dy = iy - y
        for ix in range(xmin, xmax):
            dx = ix - x
            rpix2 = dx*dx + dy*dy
            if rpix2 >= r_out2:
                continue

            pix = data[row, ix]
            if errisarray:
                varpix = noise[row, ix]
                if errisstd:
                    varpix *= varpix
            ismasked = mask is not None and mask[row, ix] > maskthresh
            if ismasked:
                flag |= APER_HASMASKED

            rpix = np.sqrt(rpix2)
            d = rpix % step if step > 0 else 0.0
            if d < prevbinmargin or d > nextbinmargin:
                # close to a bin boundary: subsample
                dy1 = dy + offset
                for _ in range(subpix):
                    dx1 = dx + offset
                    dy2 = dy1*dy1
                    for _ in range(subpix):
                        jbin = np.sqrt(dx1*dx1 + dy2)*stepdens
                        if jbin < n:
                            j = int(jbin)
                            if ismasked:
                                maskarea[j] += scale2
                            else:
                                sumdata[j] += scale2*pix
                                sumvar[j] += scale2*varpix
                            area[j] += scale2
                        dx1 += scale
                    dy1 += scale
            else:
                jbin = rpix*stepdens
                if jbin < n:
                    j = int(jbin)
                    if ismasked:
                        maskarea[j] += 1.0
                    else:
                        sumdata[j] += pix
                        sumvar[j] += varpix
                    area[j] += 1.0

    # correct for masked values
    if mask is not None:
        if inflag & MASK_IGNORE:
            for j in range(n):
                area[j] -= maskarea[j]
        else:
            for j in range(n):
                tmp = 0.0 if area[j] == maskarea[j] else area[j]/(area[j] - maskarea[j])
                sumdata[j] *= tmp
                sumvar[j] *= tmp

    # add poisson noise, only if gain > 0
    if gain > 0:
        for j in range(n):
            if sumdata[j] > 0:
                sumvar[j] += sumdata[j]/gain

    return flag


@njitc(parallel=True)
def _sum_circann_multi_batch(x: np.ndarray,
                             y: np.ndarray,
                             rmax: np.ndarray,
                             n: int,
                             data: np.ndarray,
                             mask: Optional[np.ndarray],
                             maskthresh: float,
                             noise: np.ndarray,
                             gain: float,
                             inflag: int,
                             subpix: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    nsrc = x.size
    sumdata = np.empty((nsrc, n), np.float64)
    sumvar = np.empty((nsrc, n), np.float64)
    area = np.empty((nsrc, n), np.float64)
    maskarea = np.empty((nsrc, n), np.float64)
    flag = np.empty(nsrc, np.int16)
    for i in prange(nsrc):
        flag[i] = _sum_circann_multi(
            x[i], y[i], rmax[i], n, data, mask, maskthresh, noise, gain, inflag, subpix,
            sumdata[i], sumvar[i], area[i], maskarea[i])
    return sumdata, sumvar, area, maskarea, flag


@njitc
def ppf(xmax: float, y: np.ndarray, frac: np.ndarray) -> np.ndarray:
    """
    Percent point function of a binned profile: the position at which the cumulative sum of `y` reaches the given
    fractions of its total

    The profile is expected to be non-negative, so that its cumulative sum is monotonic; otherwise, the result is
    well-defined but not necessarily meaningful.

    :param xmax: upper edge of the last bin; bins are equal-width and start at 0
    :param y: 1D array of bin values
    :param frac: 1D array of fractions of the total

    :return: 1D array of positions, same shape as `frac`; 0 if the target is reached in the first bin, `xmax` if it
        is never reached
    """
    n = y.size
    step = xmax/n
    total = 0.0
    for j in range(n):
        total += y[j]

    xout = np.empty(frac.size, np.float64)
    for k in range(frac.size):
        targsum = frac[k]*total
        cumsum = 0.0
        i = 0
        while i < n and cumsum < targsum:
            cumsum += y[i]
            i += 1

        if i == 0:
            xout[k] = 0.0
        elif i == n:
            xout[k] = xmax
        else:
            xout[k] = step*(i + (targsum - cumsum)/y[i - 1])
    return xout


@njitc(parallel=True)
def _flux_radius_batch(x: np.ndarray,
                       y: np.ndarray,
                       rmax: np.ndarray,
                       frac: np.ndarray,
                       normflux: Optional[np.ndarray],
                       data: np.ndarray,
                       mask: Optional[np.ndarray],
                       maskthresh: float,
                       noise: np.ndarray,
                       gain: float,
                       inflag: int,
                       subpix: int) -> tuple[np.ndarray, np.ndarray]:
    nsrc = x.size
    r = np.empty((nsrc, frac.size), np.float64)
    flag = np.empty(nsrc, np.int16)
    for i in prange(nsrc):
        sumdata = np.empty(FLUX_RADIUS_BUFSIZE, np.float64)
        sumvar = np.empty(FLUX_RADIUS_BUFSIZE, np.float64)
        area = np.empty(FLUX_RADIUS_BUFSIZE, np.float64)
        maskarea = np.empty(FLUX_RADIUS_BUFSIZE, np.float64)
        flag[i] = _sum_circann_multi(
            x[i], y[i], rmax[i], FLUX_RADIUS_BUFSIZE, data, mask, maskthresh, noise, gain, inflag, subpix,
            sumdata, sumvar, area, maskarea)
        if normflux is None:
            r[i] = ppf(rmax[i], sumdata, frac)
        else:
            # Rescale fractions so that they refer to the externally supplied total flux
            total = sumdata.sum()
            if total:
                r[i] = ppf(rmax[i], sumdata, frac*(normflux[i]/total))
            else:
                r[i] = ppf(rmax[i], sumdata, frac)
    return r, flag


def sum_circann_multi(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        rmax: Union[float, np.ndarray],
        n: int,
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        gain: float = 0,
        mask: Optional[np.ndarray] = None,
        maskthresh: float = 0,
        mask_ignore: bool = False,
        subpix: int = 5) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Radial profiles: sum data in `n` equal-width annuli between 0 and `rmax` around each source

    :param data: 2D image array
    :param x: source center(s) X, 0-based
    :param y: source center(s) Y, same shape as `x`
    :param rmax: outer radius of the last annulus; scalar or one per source
    :param n: number of annuli, >= 1
    :param subpix: subpixel sampling factor for pixels near annulus edges, >= 1

    Other inputs -- see :func:`~skyaper.photometry.aperture.sum_circle`

    :return: (nsrc x n) arrays of sums, variances, areas, and masked areas, plus 1D array of flags
    """
    if n < 1:
        raise IllegalApertureParamsError('Number of annuli must be positive')
    if int(subpix) != subpix or subpix < 1:
        raise IllegalSubpixError('Subpixel sampling factor must be a positive integer')
    data, x, y, noise, mask, inflag = prepare_arrays(data, x, y, var, err, mask, mask_ignore, subpix)
    rmax = np.broadcast_to(np.asarray(rmax, np.float64).ravel(), x.shape).copy()
    if not (rmax >= 0).all():
        raise IllegalApertureParamsError('Negative profile radius')
    return _sum_circann_multi_batch(
        x, y, rmax, int(n), data, mask, float(maskthresh), noise, float(gain), inflag, int(subpix))


def flux_radius(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        rmax: Union[float, np.ndarray],
        frac: Union[float, np.ndarray],
        normflux: Optional[Union[float, np.ndarray]] = None,
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        gain: float = 0,
        mask: Optional[np.ndarray] = None,
        maskthresh: float = 0,
        mask_ignore: bool = False,
        subpix: int = 5) -> tuple[np.ndarray, np.ndarray]:
    """
    Radius of a circle enclosing the given fraction(s) of the source flux

    The flux profile is measured in :data:`FLUX_RADIUS_BUFSIZE` annuli out to `rmax` and interpolated by :func:`ppf`.

    :param rmax: maximum radius to analyze; scalar or one per source
    :param frac: requested fraction(s) of flux, within [0, 1]
    :param normflux: optional total source flux (one per source) used as the 100% reference instead of the flux
        within `rmax`

    Other inputs -- see :func:`sum_circann_multi`

    :return: (nsrc x nfrac) array of radii and 1D array of flags
    """
    if int(subpix) != subpix or subpix < 1:
        raise IllegalSubpixError('Subpixel sampling factor must be a positive integer')
    data, x, y, noise, mask, inflag = prepare_arrays(data, x, y, var, err, mask, mask_ignore, subpix)
    rmax = np.broadcast_to(np.asarray(rmax, np.float64).ravel(), x.shape).copy()
    if not (rmax >= 0).all():
        raise IllegalApertureParamsError('Negative profile radius')
    frac = np.atleast_1d(np.asarray(frac, np.float64)).ravel()
    if ((frac < 0) | (frac > 1)).any():
        logging.warning('Flux fractions outside [0, 1] will produce radii of 0 or rmax')
    if normflux is not None:
        normflux = np.broadcast_to(np.asarray(normflux, np.float64).ravel(), x.shape).copy()
    return _flux_radius_batch(
        x, y, rmax, frac, normflux, data, mask, float(maskthresh), noise, float(gain), inflag, int(subpix))
