"""
SkyAper photometry functions.

aperture: sums over circular and elliptical apertures and annuli
profile: radial flux profiles and flux radii
kron: Kron radius and elliptical masks
ellipse: conversions between ellipse representations
extent: aperture bounding boxes and oversampling margins
flags: output flags and input options
"""

from .aperture import *
from .ellipse import *
from .flags import ApertureFlag, ApertureOption
from .kron import *
from .profile import *
