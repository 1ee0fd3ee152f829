"""
SkyAper: exact aperture photometry on 2D images

photometry: aperture sums, radial profiles, flux and Kron radii, ellipse utilities
util: exact pixel overlap areas and pixel type handling
"""

from .errors import *
from .photometry import *
