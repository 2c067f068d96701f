"""
Linear algebra helpers and constants for the positioning filter.
"""

from .utils import symmetrize, nearest_psd, is_symmetric, is_finite, conditioned_inverse
from .constants import *

__all__ = ["symmetrize", "nearest_psd", "is_symmetric", "is_finite", "conditioned_inverse"]
