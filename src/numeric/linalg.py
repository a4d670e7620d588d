"""
Small dense Cholesky factorization and solve for symmetric positive-definite systems.

Sized for the handful of variables monitored by the multivariate control chart.
"""

from collections.abc import Sequence

import numpy as np

DIAGONAL_FLOOR = 1e-10


def cholesky_factor(matrix: Sequence | np.ndarray, p: int | None = None) -> np.ndarray:
    """Lower-triangular Cholesky factor L with S = L Lᵀ

    Args:
        matrix: p x p symmetric positive-definite matrix, or its row-major
                flattening of length p*p
        p: Matrix order, required only for flat input

    Returns:
        p x p array; strictly-upper entries are zero

    Raises:
        ValueError: If the input is not square
    """
    values = np.asarray(matrix, dtype=float)
    if values.ndim == 1:
        if p is None:
            p = int(round(np.sqrt(values.size)))
        values = values.reshape(p, p)
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {values.shape}")

    p = values.shape[0]
    lower = np.zeros((p, p), dtype=float)

    for i in range(p):
        for j in range(i):
            total = values[i, j]
            for k in range(j):
                total -= lower[i, k] * lower[j, k]
            lower[i, j] = total / lower[j, j]

        diag = values[i, i]
        for k in range(i):
            diag -= lower[i, k] ** 2
        # Round-off can push the pivot slightly negative
        lower[i, i] = np.sqrt(max(diag, DIAGONAL_FLOOR))

    return lower


def cholesky_solve(lower: np.ndarray, b: Sequence[float] | np.ndarray) -> np.ndarray:
    """Solve S x = b given the Cholesky factor L of S

    Forward substitution for L y = b, then back substitution for Lᵀ x = y.
    """
    lower = np.asarray(lower, dtype=float)
    p = len(b)
    y = np.array(b, dtype=float)

    for i in range(p):
        total = y[i]
        for k in range(i):
            total -= lower[i, k] * y[k]
        y[i] = total / lower[i, i]

    for i in range(p - 1, -1, -1):
        total = y[i]
        for k in range(i + 1, p):
            total -= lower[k, i] * y[k]
        y[i] = total / lower[i, i]

    return y
