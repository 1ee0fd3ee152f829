"""
Parallel Numba implementation of exact aperture photometry.

:func:`~sum_circle()`, :func:`~sum_ellipse()`, :func:`~sum_circann()`, :func:`~sum_ellipann()`: sum pixel values
and their variance over a batch of apertures of the given shape.

Pixels lying entirely within the aperture contribute their whole value; pixels straddling the aperture boundary are
weighted by their exact area of overlap with the aperture (subpix = 0) or by the fraction of their subpixels falling
within the aperture (subpix > 0). Image rows are periodic; columns are clipped to the image.

All sum_*() functions return (sum, sumvar, area, maskarea, flag) arrays, one element per aperture.
"""

import logging
from typing import Optional, Union

import numpy as np
from numba import prange

from ..errors import IllegalApertureParamsError, IllegalSubpixError
from ..util.overlap import circoverlap, ellipoverlap, njitc
from ..util.pixels import sep_compatible, wrap_row
from .ellipse import ellipse_coeffs
from .extent import boxextent, boxextent_ellipse, oversamp_ann_circle, oversamp_ann_ellipse
from .flags import APER_HASMASKED, ERROR_IS_ARRAY, ERROR_IS_VAR, MASK_IGNORE


__all__ = ['sum_circle', 'sum_ellipse', 'sum_circann', 'sum_ellipann']


def sum_aper_factory(aper_init,
                     aper_boxextent,
                     aper_rpix2,
                     aper_compare1,
                     aper_compare2,
                     aper_compare3,
                     aper_exact) -> tuple:
    """
    Create a pair of jitted functions that sum data over a specific aperture shape: one for a single aperture and one
    for a batch of apertures processed in parallel

    :param aper_init: function that checks the input aperture parameters, raises
        :class:`~skyaper.errors.IllegalApertureParamsError` if they are invalid, and returns 1D array of internal
        aperture parameters used by the functions below::
            def aper_init(aper: np.ndarray) -> np.ndarray:
                ...
        `aper` is 1D array of aperture-specific parameters
    :param aper_boxextent: function that returns the extent of the box enclosing the aperture::
            def aper_boxextent(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
                    -> tuple[int, int, int, int, int]:
                ...
    :param aper_rpix2: function that returns normalized squared distance from the aperture center::
            def aper_rpix2(dx: float, dy: float, aper_params: np.ndarray) -> float:
                ...
        `dx` and `dy` are pixel coordinates relative to the aperture center
        `aper_params` is array of internal aperture-specific parameters returned by `aper_init`
    :param aper_compare1: function that returns True if the given pixel may be at least partially within the
        aperture::
            def aper_compare1(rpix2: float, aper_params: np.ndarray) -> bool:
                ...
        `rpix2` is the value returned by `aper_rpix2`
    :param aper_compare2: function that returns True if the given pixel may be not fully within the aperture::
            def aper_compare2(rpix2: float, aper_params: np.ndarray) -> bool:
                ...
    :param aper_compare3: function that returns True if the given point is within the aperture; used for subpixel
        sampling::
            def aper_compare3(rpix2: float, aper_params: np.ndarray) -> bool:
                ...
    :param aper_exact: function that returns the exact area of overlap of the given pixel with the aperture::
            def aper_exact(dx: float, dy: float, aper_params: np.ndarray) -> float:
                ...

    :return: single-aperture and batch summation functions for the given aperture shape
    """

    @njitc(cache=False)
    def _sum_aper(x: float,
                  y: float,
                  aper: np.ndarray,
                  data: np.ndarray,
                  mask: Optional[np.ndarray],
                  maskthresh: float,
                  noise: np.ndarray,
                  gain: float,
                  inflag: int,
                  subpix: int) -> tuple[float, float, float, float, int]:
        """
        Sum pixels over the given aperture

        :param x: aperture center X (0-based)
        :param y: aperture center Y (0-based)
        :param aper: 1D array of aperture-specific parameters
        :param data: 2D image data array
        :param mask: optional 2D mask array, same shape as `data`
        :param maskthresh: consider pixel masked if `mask`[i, j] > `maskthresh`
        :param noise: 2D array of image noise, same shape as `data` or a single-element 1x1 array if noise is
            constant; standard deviation unless ERROR_IS_VAR is set in `inflag`
        :param gain: inverse camera gain in e-/count; Poisson noise is added if > 0
        :param inflag: combination of ERROR_IS_VAR, ERROR_IS_ARRAY, and MASK_IGNORE
        :param subpix: subpixel sampling factor for boundary pixels; 0 = exact overlap

        :return::
            * total flux over the aperture
            * flux variance
            * total aperture area
            * masked area
            * aperture flags (APER_TRUNC and/or APER_HASMASKED)
        """
        # Validate before touching anything
        aper_params = aper_init(aper)

        tv = sigtv = totarea = maskarea = 0.0
        h, w = data.shape

        errisarray = (inflag & ERROR_IS_ARRAY) != 0 and noise.size > 1
        errisstd = (inflag & ERROR_IS_VAR) == 0

        # Scalar noise is converted to variance once
        varpix = float(noise[0, 0])
        if errisstd:
            varpix *= varpix

        if subpix > 0:
            scale = 1/subpix
        else:
            scale = 1.0
        scale2 = scale*scale
        offset = 0.5*(scale - 1)

        # get extent of box
        xmin, xmax, ymin, ymax, flag = aper_boxextent(x, y, w, h, aper_params)

        # loop over rows in the box
        for iy in range(ymin, ymax):
            row = wrap_row(iy, h)
            dy = iy - y

            # loop over pixels in this row
            for ix in range(xmin, xmax):
                dx = ix - x
                rpix2 = aper_rpix2(dx, dy, aper_params)
                if not aper_compare1(rpix2, aper_params):
                    continue

                if aper_compare2(rpix2, aper_params):  # might be partially in aperture
                    if subpix:
                        overlap = 0.0
                        dy1 = dy + offset
                        for _ in range(subpix):
                            dx1 = dx + offset
                            for _ in range(subpix):
                                if aper_compare3(aper_rpix2(dx1, dy1, aper_params), aper_params):
                                    overlap += scale2
                                dx1 += scale
                            dy1 += scale
                    else:
                        overlap = min(max(aper_exact(dx, dy, aper_params), 0.0), 1.0)
                else:
                    # definitely fully in aperture
                    overlap = 1.0

                if mask is not None and mask[row, ix] > maskthresh:
                    flag |= APER_HASMASKED
                    maskarea += overlap
                else:
                    tv += data[row, ix]*overlap
                    if errisarray:
                        varpix = noise[row, ix]
                        if errisstd:
                            varpix *= varpix
                    sigtv += varpix*overlap

                totarea += overlap

        # correct for masked values
        if mask is not None:
            if inflag & MASK_IGNORE:
                totarea -= maskarea
            else:
                tmp = 0.0 if totarea == maskarea else totarea/(totarea - maskarea)
                tv *= tmp
                sigtv *= tmp

        # add poisson noise, only if gain > 0
        if gain > 0 and tv > 0:
            sigtv += tv/gain

        return tv, sigtv, totarea, maskarea, flag

    @njitc(cache=False, parallel=True)
    def _sum_aper_batch(x: np.ndarray,
                        y: np.ndarray,
                        aper: np.ndarray,
                        data: np.ndarray,
                        mask: Optional[np.ndarray],
                        maskthresh: float,
                        noise: np.ndarray,
                        gain: float,
                        inflag: int,
                        subpix: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Sum pixels over a batch of apertures in parallel

        :param x: 1D array of aperture centers X
        :param y: 1D array of aperture centers Y, same shape as `x`
        :param aper: 2D array of aperture parameters, one row per aperture

        Other inputs -- see :func:`_sum_aper`; outputs are arrays of the same shape as `x`
        """
        n = x.size
        sumdata = np.empty(n, np.float64)
        sumvar = np.empty(n, np.float64)
        area = np.empty(n, np.float64)
        maskarea = np.empty(n, np.float64)
        flag = np.empty(n, np.int16)

        # Validate all apertures before summing any of them
        for j in range(n):
            aper_init(aper[j])

        for i in prange(n):
            sumdata[i], sumvar[i], area[i], maskarea[i], flag[i] = _sum_aper(
                x[i], y[i], aper[i], data, mask, maskthresh, noise, gain, inflag, subpix)
        return sumdata, sumvar, area, maskarea, flag

    return _sum_aper, _sum_aper_batch


@njitc
def _check_ellipse(a: float, b: float, theta: float) -> None:
    if b < 0:
        raise IllegalApertureParamsError('Negative aperture semi-minor axis')
    if a < b:
        raise IllegalApertureParamsError('Aperture semi-major axis smaller than semi-minor axis')
    if not -np.pi/2 <= theta <= np.pi/2:
        raise IllegalApertureParamsError('Aperture position angle outside [-pi/2, pi/2]')


# *****************************************************************************
# circle: aper = (r,); aper_params = (r, r^2, r_in^2, r_out^2)

@njitc(inline='always')
def _aper_init_circle(aper: np.ndarray) -> np.ndarray:
    r = float(aper[0])
    if not r >= 0:
        raise IllegalApertureParamsError('Negative aperture radius')
    aper_params = np.empty(4, np.float64)
    aper_params[0] = r
    aper_params[1] = r*r
    aper_params[2], aper_params[3] = oversamp_ann_circle(r)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_circle(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    r = float(aper_params[0])
    return boxextent(x, y, r, r, w, h)


@njitc(inline='always')
def _aper_rpix2_circle(dx: float, dy: float, _aper_params: np.ndarray) -> float:
    return dx*dx + dy*dy


@njitc(inline='always')
def _aper_compare1_circle(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[3])


@njitc(inline='always')
def _aper_compare2_circle(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[2])


@njitc(inline='always')
def _aper_compare3_circle(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[1])


@njitc(inline='always')
def _aper_exact_circle(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return circoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[0]))


_sum_circle, _sum_circle_batch = sum_aper_factory(
    _aper_init_circle, _aper_boxextent_circle, _aper_rpix2_circle, _aper_compare1_circle, _aper_compare2_circle,
    _aper_compare3_circle, _aper_exact_circle)


# *****************************************************************************
# ellipse: aper = (a, b, theta, r);
# aper_params = (a*r, b*r, theta, r, r^2, r_in^2, r_out^2, cxx, cyy, cxy)

@njitc(inline='always')
def _aper_init_ellipse(aper: np.ndarray) -> np.ndarray:
    a, b, theta, r = float(aper[0]), float(aper[1]), float(aper[2]), float(aper[3])
    if not r >= 0:
        raise IllegalApertureParamsError('Negative aperture scale')
    _check_ellipse(a, b, theta)

    aper_params = np.empty(10, np.float64)
    aper_params[0] = a*r
    aper_params[1] = b*r
    aper_params[2] = theta
    aper_params[3] = r
    aper_params[4] = r*r
    aper_params[5], aper_params[6] = oversamp_ann_ellipse(r, b)
    aper_params[7], aper_params[8], aper_params[9] = ellipse_coeffs(a, b, theta)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_ellipse(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    if not aper_params[1] > 0:
        # Degenerate ellipse covers no pixels
        return 0, 0, 0, 0, 0
    return boxextent_ellipse(
        x, y, float(aper_params[7]), float(aper_params[8]), float(aper_params[9]), float(aper_params[3]), w, h)


@njitc(inline='always')
def _aper_rpix2_ellipse(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return float(aper_params[7])*dx*dx + float(aper_params[8])*dy*dy + float(aper_params[9])*dx*dy


@njitc(inline='always')
def _aper_compare1_ellipse(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[6])


@njitc(inline='always')
def _aper_compare2_ellipse(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[5])


@njitc(inline='always')
def _aper_compare3_ellipse(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[4])


@njitc(inline='always')
def _aper_exact_ellipse(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return ellipoverlap(
        dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[0]), float(aper_params[1]), float(aper_params[2]))


_sum_ellipse, _sum_ellipse_batch = sum_aper_factory(
    _aper_init_ellipse, _aper_boxextent_ellipse, _aper_rpix2_ellipse, _aper_compare1_ellipse, _aper_compare2_ellipse,
    _aper_compare3_ellipse, _aper_exact_ellipse)


# *****************************************************************************
# circular annulus: aper = (rin, rout);
# aper_params = (rin, rout, rin^2, rin_in^2, rin_out^2, rout^2, rout_in^2, rout_out^2)

@njitc(inline='always')
def _aper_init_circann(aper: np.ndarray) -> np.ndarray:
    rin, rout = float(aper[0]), float(aper[1])
    if not rin >= 0:
        raise IllegalApertureParamsError('Negative inner annulus radius')
    if not rout >= rin:
        raise IllegalApertureParamsError('Inner annulus radius must be smaller than outer annulus radius')

    aper_params = np.empty(8, np.float64)
    aper_params[0] = rin
    aper_params[1] = rout
    aper_params[2] = rin*rin
    aper_params[3], aper_params[4] = oversamp_ann_circle(rin)
    aper_params[5] = rout*rout
    aper_params[6], aper_params[7] = oversamp_ann_circle(rout)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_circann(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    rout = float(aper_params[1])
    return boxextent(x, y, rout, rout, w, h)


@njitc(inline='always')
def _aper_compare1_circann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[3]) <= rpix2 < float(aper_params[7])


@njitc(inline='always')
def _aper_compare2_circann(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[6]) or rpix2 <= float(aper_params[4])


@njitc(inline='always')
def _aper_compare3_circann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[2]) < rpix2 < float(aper_params[5])


@njitc(inline='always')
def _aper_exact_circann(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return (circoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[1])) -
            circoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[0])))


_sum_circann, _sum_circann_batch = sum_aper_factory(
    _aper_init_circann, _aper_boxextent_circann, _aper_rpix2_circle, _aper_compare1_circann, _aper_compare2_circann,
    _aper_compare3_circann, _aper_exact_circann)


# *****************************************************************************
# elliptical annulus: aper = (a, b, theta, rin, rout);
# aper_params = (a, b, theta, rin, rout, rin^2, rin_in^2, rin_out^2, rout^2, rout_in^2, rout_out^2, cxx, cyy, cxy)

@njitc(inline='always')
def _aper_init_ellipann(aper: np.ndarray) -> np.ndarray:
    a, b, theta, rin, rout = float(aper[0]), float(aper[1]), float(aper[2]), float(aper[3]), float(aper[4])
    if not rin >= 0:
        raise IllegalApertureParamsError('Negative inner annulus scale')
    if not rout >= rin:
        raise IllegalApertureParamsError('Inner annulus scale must be smaller than outer annulus scale')
    _check_ellipse(a, b, theta)

    aper_params = np.empty(14, np.float64)
    aper_params[0] = a
    aper_params[1] = b
    aper_params[2] = theta
    aper_params[3] = rin
    aper_params[4] = rout
    aper_params[5] = rin*rin
    aper_params[6], aper_params[7] = oversamp_ann_ellipse(rin, b)
    aper_params[8] = rout*rout
    aper_params[9], aper_params[10] = oversamp_ann_ellipse(rout, b)
    aper_params[11], aper_params[12], aper_params[13] = ellipse_coeffs(a, b, theta)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_ellipann(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    if not aper_params[1]*aper_params[4] > 0:
        return 0, 0, 0, 0, 0
    return boxextent_ellipse(
        x, y, float(aper_params[11]), float(aper_params[12]), float(aper_params[13]), float(aper_params[4]), w, h)


@njitc(inline='always')
def _aper_rpix2_ellipann(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return float(aper_params[11])*dx*dx + float(aper_params[12])*dy*dy + float(aper_params[13])*dx*dy


@njitc(inline='always')
def _aper_compare1_ellipann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[6]) <= rpix2 < float(aper_params[10])


@njitc(inline='always')
def _aper_compare2_ellipann(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[9]) or rpix2 <= float(aper_params[7])


@njitc(inline='always')
def _aper_compare3_ellipann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[5]) < rpix2 < float(aper_params[8])


@njitc(inline='always')
def _aper_exact_ellipann(dx: float, dy: float, aper_params: np.ndarray) -> float:
    a = float(aper_params[0])
    b = float(aper_params[1])
    theta = float(aper_params[2])
    rin = float(aper_params[3])
    rout = float(aper_params[4])
    return (ellipoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, a*rout, b*rout, theta) -
            ellipoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, a*rin, b*rin, theta))


_sum_ellipann, _sum_ellipann_batch = sum_aper_factory(
    _aper_init_ellipann, _aper_boxextent_ellipann, _aper_rpix2_ellipann, _aper_compare1_ellipann,
    _aper_compare2_ellipann, _aper_compare3_ellipann, _aper_exact_ellipann)


# *****************************************************************************
# Python interface

def prepare_arrays(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        mask: Optional[np.ndarray] = None,
        mask_ignore: bool = False,
        subpix: int = 0) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, Optional[np.ndarray], int]:
    """
    Helper function for sum_*() used to check and initialize the arrays common to all these functions

    :return: float64 data, x, y, noise (2D, 1x1 for a scalar), mask, and combination of input option flags
    """
    data = sep_compatible(data)
    if data.ndim != 2:
        raise ValueError('Data must be a 2D array')
    data_shape = data.shape

    if int(subpix) != subpix or subpix < 0:
        raise IllegalSubpixError('Subpixel sampling factor must be a non-negative integer')

    inflag = 0
    if err is not None and var is not None:
        raise ValueError('Cannot specify both err and var')
    if var is not None:
        noise = var
        inflag |= ERROR_IS_VAR
    else:
        noise = err
    if noise is None:
        noise = np.zeros((1, 1), np.float64)
    else:
        noise = np.asarray(noise)
        if noise.size == 1:
            noise = noise.reshape(1, 1).astype(np.float64)
        elif noise.ndim == 2:
            if noise.shape != data_shape:
                raise ValueError('Size of error array must match data')
            noise = sep_compatible(noise)
            inflag |= ERROR_IS_ARRAY
        else:
            raise ValueError('Error array must be 0-d or 2-d')

    if mask is not None:
        mask = np.asarray(mask)
        if mask.shape != data_shape:
            raise ValueError('Size of mask array must match data')
        mask = sep_compatible(mask)
    if mask_ignore:
        inflag |= MASK_IGNORE

    x = np.atleast_1d(np.asarray(x, np.float64)).ravel()
    y = np.atleast_1d(np.asarray(y, np.float64)).ravel()
    if y.size != x.size:
        raise ValueError('Size of `y` array must match `x`')

    return data, x, y, noise, mask, inflag


def broadcast_aper(n: int, *params: Union[float, np.ndarray]) -> np.ndarray:
    """
    Broadcast scalar or per-aperture parameters to an (n x nparams) array
    """
    aper = np.empty((n, len(params)), np.float64)
    for i, p in enumerate(params):
        p = np.asarray(p, np.float64).ravel()
        if p.size not in (1, n):
            raise ValueError('Aperture parameter shape does not match the number of apertures')
        aper[:, i] = p
    return aper


def subtract_background(sumdata: np.ndarray, sumvar: np.ndarray, area: np.ndarray,
                        bkgflux: np.ndarray, bkgvar: np.ndarray, bkgarea: np.ndarray) -> None:
    """
    Subtract the local background measured in an annulus from aperture sums in place
    """
    good = (area > 0) & (bkgarea > 0)
    if not good.all():
        logging.warning('%d aperture(s) with empty background annulus', (~good).sum())
    k = area[good]/bkgarea[good]
    sumdata[good] -= bkgflux[good]*k
    sumvar[good] += bkgvar[good]*k**2


def sum_circle(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        r: Union[float, np.ndarray],
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        gain: float = 0,
        mask: Optional[np.ndarray] = None,
        maskthresh: float = 0,
        mask_ignore: bool = False,
        bkgann: Optional[tuple[Union[float, np.ndarray], Union[float, np.ndarray]]] = None,
        subpix: int = 0) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Sum data in circular apertures

    :param data: 2D image array
    :param x: aperture center(s) X, 0-based
    :param y: aperture center(s) Y, same shape as `x`
    :param r: aperture radius; scalar or one per aperture
    :param var: optional variance, scalar or per-pixel array of the same shape as `data`
    :param err: optional standard deviation, scalar or per-pixel array; mutually exclusive with `var`
    :param gain: inverse camera gain in e-/count; Poisson noise is added to the variance if > 0
    :param mask: optional mask array, same shape as `data`
    :param maskthresh: pixels with `mask` > `maskthresh` are masked
    :param mask_ignore: exclude masked pixels from the aperture area; otherwise, rescale the sum and variance to the
        full aperture area
    :param bkgann: optional (rin, rout) of a background annulus; the mean background in the annulus is subtracted
    :param subpix: subpixel sampling factor for boundary pixels; 0 = exact overlap

    :return: sum, variance, area, masked area, and flags, one per aperture
    """
    data, x, y, noise, mask, inflag = prepare_arrays(data, x, y, var, err, mask, mask_ignore, subpix)
    n = x.size
    res = _sum_circle_batch(
        x, y, broadcast_aper(n, r), data, mask, float(maskthresh), noise, float(gain), inflag, int(subpix))

    if bkgann is not None:
        bkgflux, bkgvar, bkgarea = _sum_circann_batch(
            x, y, broadcast_aper(n, bkgann[0], bkgann[1]), data, mask, float(maskthresh), noise, float(gain),
            inflag | MASK_IGNORE, int(subpix))[:3]
        subtract_background(res[0], res[1], res[2], bkgflux, bkgvar, bkgarea)

    return res


def sum_ellipse(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        a: Union[float, np.ndarray],
        b: Union[float, np.ndarray],
        theta: Union[float, np.ndarray],
        r: Union[float, np.ndarray] = 1,
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        gain: float = 0,
        mask: Optional[np.ndarray] = None,
        maskthresh: float = 0,
        mask_ignore: bool = False,
        bkgann: Optional[tuple[Union[float, np.ndarray], Union[float, np.ndarray]]] = None,
        subpix: int = 0) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Sum data in elliptical apertures

    :param a: ellipse semi-major axis, in units of `r`
    :param b: ellipse semi-minor axis, in units of `r`
    :param theta: position angle of the major axis in radians CCW from the X axis, within [-pi/2, pi/2]
    :param r: aperture scale; the aperture has semi-axes `a`*`r` and `b`*`r`
    :param bkgann: optional (rin, rout) scales of a background elliptical annulus with the same `a`, `b`, and `theta`

    Other inputs and outputs -- see :func:`sum_circle`
    """
    data, x, y, noise, mask, inflag = prepare_arrays(data, x, y, var, err, mask, mask_ignore, subpix)
    n = x.size
    res = _sum_ellipse_batch(
        x, y, broadcast_aper(n, a, b, theta, r), data, mask, float(maskthresh), noise, float(gain), inflag, int(subpix))

    if bkgann is not None:
        bkgflux, bkgvar, bkgarea = _sum_ellipann_batch(
            x, y, broadcast_aper(n, a, b, theta, bkgann[0], bkgann[1]), data, mask, float(maskthresh), noise,
            float(gain), inflag | MASK_IGNORE, int(subpix))[:3]
        subtract_background(res[0], res[1], res[2], bkgflux, bkgvar, bkgarea)

    return res


def sum_circann(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        rin: Union[float, np.ndarray],
        rout: Union[float, np.ndarray],
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        gain: float = 0,
        mask: Optional[np.ndarray] = None,
        maskthresh: float = 0,
        mask_ignore: bool = False,
        subpix: int = 0) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Sum data in circular annuli

    :param rin: inner radius
    :param rout: outer radius, not smaller than `rin`

    Other inputs and outputs -- see :func:`sum_circle`
    """
    data, x, y, noise, mask, inflag = prepare_arrays(data, x, y, var, err, mask, mask_ignore, subpix)
    return _sum_circann_batch(
        x, y, broadcast_aper(x.size, rin, rout), data, mask, float(maskthresh), noise, float(gain), inflag, int(subpix))


def sum_ellipann(
        data: np.ndarray,
        x: Union[float, np.ndarray],
        y: Union[float, np.ndarray],
        a: Union[float, np.ndarray],
        b: Union[float, np.ndarray],
        theta: Union[float, np.ndarray],
        rin: Union[float, np.ndarray],
        rout: Union[float, np.ndarray],
        var: Optional[Union[float, np.ndarray]] = None,
        err: Optional[Union[float, np.ndarray]] = None,
        gain: float = 0,
        mask: Optional[np.ndarray] = None,
        maskthresh: float = 0,
        mask_ignore: bool = False,
        subpix: int = 0) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Sum data in elliptical annuli

    :param a: ellipse semi-major axis, in units of `rin` and `rout`
    :param b: ellipse semi-minor axis
    :param theta: position angle of the major axis in radians CCW from the X axis, within [-pi/2, pi/2]
    :param rin: inner annulus scale
    :param rout: outer annulus scale, not smaller than `rin`

    Other inputs and outputs -- see :func:`sum_circle`
    """
    data, x, y, noise, mask, inflag = prepare_arrays(data, x, y, var, err, mask, mask_ignore, subpix)
    return _sum_ellipann_batch(
        x, y, broadcast_aper(x.size, a, b, theta, rin, rout), data, mask, float(maskthresh), noise, float(gain), inflag,
        int(subpix))
