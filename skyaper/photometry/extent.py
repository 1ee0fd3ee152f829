"""
Aperture bounding boxes and oversampling margins

:func:`~boxextent()`, :func:`~boxextent_ellipse()`: pixel range covered by an aperture, clipped to the image.
:func:`~oversamp_ann_circle()`, :func:`~oversamp_ann_ellipse()`: squared distances bracketing an aperture boundary
within which a pixel may be only partially covered by the aperture.
"""

import numpy as np

from ..util.overlap import njitc
from .flags import APER_TRUNC


__all__ = ['PIXEL_HALF_DIAG', 'boxextent', 'boxextent_ellipse', 'oversamp_ann_circle', 'oversamp_ann_ellipse']


# Half-diagonal of a unit pixel, slightly rounded up
PIXEL_HALF_DIAG = 0.7072


@njitc
def boxextent(x: float, y: float, rx: float, ry: float, w: int, h: int) -> tuple[int, int, int, int, int]:
    """
    Determine the extent of the box enclosing axis-aligned ellipse with semi-axes (rx, ry) centered at (x, y).

    :param x: aperture center X
    :param y: aperture center Y
    :param rx: aperture half-width
    :param ry: aperture half-height
    :param w: image width
    :param h: image height

    :return: xmin, xmax, ymin, ymax, flag

    xmin, ymin are inclusive and xmax, ymax are exclusive. Ensures that box is within image bounds and sets
    APER_TRUNC if it is not.
    """
    flag = 0
    xmin = int(np.floor(x - rx + 0.5))
    xmax = int(np.floor(x + rx + 1.4999999))
    ymin = int(np.floor(y - ry + 0.5))
    ymax = int(np.floor(y + ry + 1.4999999))
    if xmin < 0:
        xmin = 0
        flag |= APER_TRUNC
    if xmax > w:
        xmax = w
        flag |= APER_TRUNC
    if ymin < 0:
        ymin = 0
        flag |= APER_TRUNC
    if ymax > h:
        ymax = h
        flag |= APER_TRUNC
    return xmin, xmax, ymin, ymax, flag


@njitc
def boxextent_ellipse(x: float, y: float, cxx: float, cyy: float, cxy: float, r: float, w: int, h: int) \
        -> tuple[int, int, int, int, int]:
    """
    Determine the extent of the box enclosing ellipse cxx*dx^2 + cyy*dy^2 + cxy*dx*dy <= r^2

    :param x: aperture center X
    :param y: aperture center Y
    :param cxx: ellipse parameter (see :func:`~skyaper.photometry.ellipse.ellipse_coeffs`)
    :param cyy: --//--
    :param cxy: --//--
    :param r: aperture size scaling factor
    :param w: image width
    :param h: image height

    :return: xmin, xmax, ymin, ymax, flag
    """
    dxlim = cxx - cxy**2/(4*cyy) if cyy else 0.0
    dxlim = r/np.sqrt(dxlim) if dxlim > 0 else 0.0
    dylim = cyy - cxy**2/(4*cxx) if cxx else 0.0
    dylim = r/np.sqrt(dylim) if dylim > 0 else 0.0
    return boxextent(x, y, dxlim, dylim, w, h)


@njitc
def oversamp_ann_circle(r: float) -> tuple[float, float]:
    """determine oversampled "annulus" for a circle"""
    r_in = r - PIXEL_HALF_DIAG
    return r_in**2 if r_in > 0 else 0.0, (r + PIXEL_HALF_DIAG)**2


@njitc
def oversamp_ann_ellipse(r: float, b: float) -> tuple[float, float]:
    """
    determine oversampled "annulus" for an ellipse with semi-minor axis `b` scaled by `r`

    Margins are in units of the quadratic form, hence the pixel half-diagonal is divided by `b`.
    """
    margin = PIXEL_HALF_DIAG/b if b > 0 else np.inf
    r_in = r - margin
    return r_in**2 if r_in > 0 else 0.0, (r + margin)**2
