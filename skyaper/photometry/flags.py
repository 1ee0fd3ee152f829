"""
Aperture output flags and input options

The enums are the public face of the bit values; compiled code uses the plain integer constants defined below them,
since Numba cannot type IntFlag members.
"""

from enum import IntFlag


__all__ = [
    'ApertureFlag', 'ApertureOption',
    'APER_TRUNC', 'APER_HASMASKED', 'APER_ALLMASKED', 'APER_NONPOSITIVE',
    'ERROR_IS_VAR', 'ERROR_IS_ARRAY', 'MASK_IGNORE',
]


class ApertureFlag(IntFlag):
    """Per-aperture output flags"""
    TRUNC = 0x0010  # aperture box clipped by the image edge
    HASMASKED = 0x0020  # at least one masked pixel within the aperture
    ALLMASKED = 0x0040  # no valid pixels left (Kron radius)
    NONPOSITIVE = 0x0080  # non-positive flux-weighted moments (Kron radius)


class ApertureOption(IntFlag):
    """Summation options; derived from keyword arguments of the public functions"""
    ERROR_IS_VAR = 0x0001
    ERROR_IS_ARRAY = 0x0002
    MASK_IGNORE = 0x0004


APER_TRUNC = int(ApertureFlag.TRUNC)
APER_HASMASKED = int(ApertureFlag.HASMASKED)
APER_ALLMASKED = int(ApertureFlag.ALLMASKED)
APER_NONPOSITIVE = int(ApertureFlag.NONPOSITIVE)

ERROR_IS_VAR = int(ApertureOption.ERROR_IS_VAR)
ERROR_IS_ARRAY = int(ApertureOption.ERROR_IS_ARRAY)
MASK_IGNORE = int(ApertureOption.MASK_IGNORE)
