"""
Exceptions raised by the aperture photometry functions

All of them are raised by upfront parameter validation, before any output is produced.
"""

__all__ = [
    'ApertureError', 'IllegalApertureParamsError', 'IllegalSubpixError', 'NonEllipseParamsError',
    'UnsupportedDtypeError',
]


class ApertureError(ValueError):
    """Base class for aperture photometry errors"""


class IllegalApertureParamsError(ApertureError):
    """Invalid aperture radius, axis ordering, or position angle"""


class IllegalSubpixError(ApertureError):
    """Invalid subpixel sampling factor"""


class NonEllipseParamsError(ApertureError):
    """Quadratic form coefficients do not describe an ellipse"""


class UnsupportedDtypeError(ApertureError, TypeError):
    """Pixel data type cannot be converted"""
