"""Selection of the number of clusters from an evaluation matrix.

All scores are min-max scaled with the global minimum and maximum of the
whole matrix (not per column). The selected k is the column with the
highest median over repeats; ties go to the smallest k.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from clue_analysis.errors import DegenerateMatrixError


def normalize_evaluation_matrix(evaluation_matrix: pd.DataFrame) -> pd.DataFrame:
    """Scale every score into [0, 1] with one affine transform.

    Raises
    ------
    DegenerateMatrixError
        If the matrix has no completed repeat, non-finite scores, or
        zero range.
    """
    values = evaluation_matrix.to_numpy(dtype=np.float64)
    if values.size == 0:
        raise DegenerateMatrixError(
            "The evaluation matrix is empty; no repeat completed."
        )
    if not np.isfinite(values).all():
        raise DegenerateMatrixError("The evaluation matrix contains non-finite scores.")

    lo = values.min()
    hi = values.max()
    if not hi > lo:
        raise DegenerateMatrixError(
            f"All evaluation scores equal {lo:.6g}; min-max normalisation is undefined."
        )

    normalized = (values - lo) / (hi - lo)
    return pd.DataFrame(
        normalized,
        index=evaluation_matrix.index.copy(),
        columns=evaluation_matrix.columns.copy(),
    )


def median_scores(evaluation_matrix: pd.DataFrame) -> pd.Series:
    """Median normalised score per candidate k."""
    return normalize_evaluation_matrix(evaluation_matrix).median(axis=0)


def select_k(evaluation_matrix: pd.DataFrame) -> int:
    """Return the k whose median normalised score is maximal.

    Columns must hold the candidate k values in ascending order; the first
    maximum wins, so ties resolve to the smaller k. The matrix may have
    fewer rows than configured repeats.

    Examples
    --------
    >>> m = pd.DataFrame([[0.0, 2.0], [1.0, 3.0]], columns=[2, 3])
    >>> select_k(m)
    3
    """
    medians = median_scores(evaluation_matrix)
    position = int(np.argmax(medians.to_numpy()))
    return int(medians.index[position])


__all__ = ["normalize_evaluation_matrix", "median_scores", "select_k"]
