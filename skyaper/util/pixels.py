"""
Pixel type conversion and addressing

:func:`~get_converter()`: resolve a pixel encoding into a conversion function.
:func:`~wrap_row()`: periodic row addressing used by the aperture loops.
"""

from typing import Callable, Optional, Tuple, Union

import numpy as np

from ..errors import UnsupportedDtypeError
from .overlap import njitc


__all__ = ['SUPPORTED_DTYPES', 'get_converter', 'sep_compatible', 'wrap_row']


# Pixel encodings understood by the aperture engine, keyed by NumPy type character
SUPPORTED_DTYPES = {
    'B': 'unsigned 8-bit integer',
    'i': 'signed 32-bit integer',
    'f': '32-bit float',
    'd': '64-bit float',
}


def get_converter(dtype: Union[np.dtype, type, str]) -> Tuple[Callable[[np.ndarray], np.ndarray], int]:
    """
    Return a function converting an array of the given pixel type to float64 along with the element size

    Boolean arrays (masks) are treated as unsigned bytes. Both native and swapped byte orders are accepted.

    :param dtype: pixel data type

    :return: conversion function and element size in bytes
    """
    dtype = np.dtype(dtype)
    char = 'B' if dtype.char == '?' else dtype.char
    if char == 'l' and dtype.itemsize == 4:
        # C long is 32-bit on Windows
        char = 'i'
    if char not in SUPPORTED_DTYPES:
        raise UnsupportedDtypeError('Unsupported pixel data type: {}'.format(dtype))

    def convert(arr: np.ndarray) -> np.ndarray:
        return np.ascontiguousarray(arr, np.float64)

    return convert, dtype.itemsize


def sep_compatible(arr: Optional[Union[np.ndarray, np.ma.MaskedArray]]) -> Optional[np.ndarray]:
    """
    Return a C-contiguous float64 2D copy or view of a pixel buffer after checking its encoding

    :param arr: input 2D array; masked arrays are passed by their data

    :return: float64 array or None if `arr` is None
    """
    if arr is None:
        return None
    if isinstance(arr, np.ma.MaskedArray):
        arr = arr.data
    arr = np.asarray(arr)
    convert = get_converter(arr.dtype)[0]
    return convert(arr)


@njitc(inline='always')
def wrap_row(iy: int, h: int) -> int:
    """
    Row index of pixel row `iy` in an image of height `h`

    Rows are periodic (the image wraps around in Y); columns are never wrapped and must be clipped by the caller.
    """
    return iy % h
