#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Setup script for the GMAO reliability engine.
"""

from setuptools import setup, find_packages
from pathlib import Path

VERSION = "1.0.0"

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")
else:
    long_description = "GMAO reliability and thermal-efficiency calculation engine"

setup(
    name="gmao",
    version=VERSION,
    description="Reliability (MTBF/MTTR/availability) and heat-exchanger efficiency engine for maintenance management",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="GMAO Team",
    license="MIT",
    python_requires=">=3.9",
    packages=find_packages(include=["gmao", "gmao.*"]),
    install_requires=[
        "pydantic>=2.0",
        "numpy>=1.24",
        "PyYAML>=6.0",
        "prometheus_client>=0.17",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
