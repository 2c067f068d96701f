"""
Raw fix handling for the ranging collaborator boundary.
"""

from .fix import RawFix, FixProcessor

__all__ = ["RawFix", "FixProcessor"]
