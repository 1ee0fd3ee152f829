"""
Conversions between ellipse representations

An ellipse is described either by its semi-axes and position angle (a, b, theta) or by the coefficients of the
quadratic form cxx*x^2 + cyy*y^2 + cxy*x*y = 1. Position angles are in radians counter-clockwise from the X axis.

:func:`~ellipse_axes()`, :func:`~ellipse_coeffs()`: scalar conversions usable from compiled code.
:func:`~axes_from_coeffs()`, :func:`~coeffs_from_axes()`: array versions.
"""

import numpy as np

from ..errors import NonEllipseParamsError
from ..util.overlap import njitc


__all__ = ['ellipse_axes', 'ellipse_coeffs', 'axes_from_coeffs', 'coeffs_from_axes']


@njitc
def ellipse_coeffs(a: float, b: float, theta: float) -> tuple[float, float, float]:
    """Convert ellipse parameters (a, b, theta) into coeffs (cxx, cyy, cxy)"""
    ctheta = np.cos(theta)
    stheta = np.sin(theta)
    a2 = a*a
    b2 = b*b
    return ctheta**2/a2 + stheta**2/b2, stheta**2/a2 + ctheta**2/b2, 2*ctheta*stheta*(1/a2 - 1/b2)


@njitc
def ellipse_axes(cxx: float, cyy: float, cxy: float) -> tuple[float, float, float]:
    """
    Convert ellipse coeffs (cxx, cyy, cxy) into semi-axes and position angle

    Requires cxx*cyy - cxy^2/4 > 0 and cxx + cyy > 0; raises :class:`NonEllipseParamsError` otherwise.

    :return: a, b, theta; theta is within (-pi/2, pi/2]
    """
    p = cxx + cyy
    if cxx*cyy - cxy*cxy/4 <= 0 or p <= 0:
        raise NonEllipseParamsError('Coefficients do not describe an ellipse')

    q = cxx - cyy
    t = np.sqrt(q*q + cxy*cxy)
    a = np.sqrt(2/(p - t))
    b = np.sqrt(2/(p + t))

    if cxy == 0 or q == 0:
        theta = 0.0
    else:
        theta = np.arctan(cxy/q)/2
    if cxx > cyy:
        theta += np.pi/2
    if theta > np.pi/2:
        theta -= np.pi
    return a, b, theta


@njitc
def axes_from_coeffs(cxx: np.ndarray, cyy: np.ndarray, cxy: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Array version of :func:`ellipse_axes`

    :param cxx: 1D array of X^2 coefficients
    :param cyy: 1D array of Y^2 coefficients, same shape as `cxx`
    :param cxy: 1D array of XY coefficients, same shape as `cxx`

    :return: arrays of semi-major axes, semi-minor axes, and position angles
    """
    n = cxx.size
    a = np.empty(n, np.float64)
    b = np.empty(n, np.float64)
    theta = np.empty(n, np.float64)
    for i in range(n):
        a[i], b[i], theta[i] = ellipse_axes(cxx[i], cyy[i], cxy[i])
    return a, b, theta


@njitc
def coeffs_from_axes(a: np.ndarray, b: np.ndarray, theta: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Array version of :func:`ellipse_coeffs`

    :param a: 1D array of semi-major axes
    :param b: 1D array of semi-minor axes, same shape as `a`
    :param theta: 1D array of position angles in radians, same shape as `a`

    :return: arrays of cxx, cyy, and cxy
    """
    n = a.size
    cxx = np.empty(n, np.float64)
    cyy = np.empty(n, np.float64)
    cxy = np.empty(n, np.float64)
    for i in range(n):
        cxx[i], cyy[i], cxy[i] = ellipse_coeffs(a[i], b[i], theta[i])
    return cxx, cyy, cxy
