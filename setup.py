#!/usr/bin/env python

from setuptools import setup


setup(
    name='SkyAper',
    version='1.0.0',
    description='Exact aperture photometry on 2D images',
    provides=['skyaper'],
    packages=['skyaper', 'skyaper.photometry', 'skyaper.util'],
    python_requires='>=3.10',
    install_requires=['numpy', 'numba'],
    extras_require={'test': ['pytest']},
)
