"""
Matrix utilities for the Kalman filter.
"""

import numpy as np

from ..errors import NumericalError
from .constants import MAX_CONDITION_NUMBER, SYMMETRY_TOLERANCE


def symmetrize(matrix):
    """
    Remove floating-point asymmetry from a covariance matrix.

    Args:
        matrix (np.ndarray): Square matrix

    Returns:
        np.ndarray: 0.5 * (M + M^T)
    """
    return 0.5 * (matrix + matrix.T)


def nearest_psd(matrix, min_eigenvalue=0.0):
    """
    Project a covariance matrix onto the positive semi-definite cone.

    Negative eigenvalues left behind by round-off are raised to
    min_eigenvalue; the result is symmetric with a non-negative diagonal.

    Args:
        matrix (np.ndarray): Square, nearly symmetric matrix
        min_eigenvalue (float): Smallest eigenvalue kept

    Returns:
        np.ndarray: V * max(lambda, min_eigenvalue) * V^T
    """
    eigenvalues, eigenvectors = np.linalg.eigh(symmetrize(matrix))
    eigenvalues = np.maximum(eigenvalues, min_eigenvalue)
    return symmetrize((eigenvectors * eigenvalues) @ eigenvectors.T)


def is_symmetric(matrix, tolerance=SYMMETRY_TOLERANCE):
    """Check that a square matrix equals its transpose within tolerance."""
    matrix = np.asarray(matrix)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    return bool(np.linalg.norm(matrix - matrix.T) < tolerance)


def is_finite(values):
    """True if every entry is a finite real number (strings and booleans excluded)."""
    try:
        array = np.asarray(values)
    except (TypeError, ValueError):
        return False
    if array.dtype.kind not in 'iuf':
        return False
    return bool(np.all(np.isfinite(array)))


def conditioned_inverse(matrix, max_condition_number=MAX_CONDITION_NUMBER):
    """
    Invert a square matrix, refusing singular or ill-conditioned input.

    Args:
        matrix (np.ndarray): Square matrix to invert
        max_condition_number (float): Largest acceptable 2-norm condition number

    Returns:
        np.ndarray: Inverse of the matrix

    Raises:
        NumericalError: If the matrix is singular, ill-conditioned or not finite
    """
    if not is_finite(matrix):
        raise NumericalError("Matrix contains non-finite entries")

    with np.errstate(divide='ignore', invalid='ignore'):
        condition = np.linalg.cond(matrix)

    if not np.isfinite(condition) or condition > max_condition_number:
        raise NumericalError(
            f"Matrix is singular or ill-conditioned (cond={condition:.3e})"
        )

    try:
        return np.linalg.inv(matrix)
    except np.linalg.LinAlgError as e:
        raise NumericalError(f"Matrix inversion failed: {e}") from e
