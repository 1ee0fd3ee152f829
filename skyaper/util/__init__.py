"""
SkyAper utility functions.

overlap: exact area of overlap between a pixel and a circle or an ellipse
pixels: pixel type conversion and periodic row addressing
"""
