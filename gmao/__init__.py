"""
GMAO: Maintenance Management Analytics
======================================

Reliability (MTBF, MTTR, availability) and heat-exchanger thermal
efficiency analytics for maintenance management. The calculation engines
live in ``gmao.reliability_engine``; they operate on plain lists of
records and never touch storage directly.
"""

from ._version import __version__

__author__ = "GMAO Team"
__license__ = "MIT"

__all__ = ["__version__"]
