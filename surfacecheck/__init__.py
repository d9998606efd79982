"""
Surface Check - Passive Attack-Surface Risk Check
=================================================

A passive engine that fans out to DNS and public threat-intelligence
sources, maps raw findings into public-safe signals and combines them
into one banded verdict for a domain.
"""

__version__ = "1.0.0"
__author__ = "Security Team"
