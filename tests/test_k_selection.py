from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from clue_analysis.errors import DegenerateMatrixError
from clue_analysis.evaluation.k_selection import (
    median_scores,
    normalize_evaluation_matrix,
    select_k,
)


def _matrix(values, k_values) -> pd.DataFrame:
    return pd.DataFrame(
        np.asarray(values, dtype=float),
        index=pd.Index(range(1, len(values) + 1), name="repeat"),
        columns=pd.Index(k_values, name="k"),
    )


def test_global_min_max_normalisation_and_median_argmax() -> None:
    matrix = _matrix(
        [
            [1.0, 4.0, 9.0, 2.0, 0.0],
            [3.0, 6.0, 7.0, 5.0, 1.0],
            [2.0, 8.0, 5.0, 3.0, 10.0],
        ],
        [2, 3, 4, 5, 6],
    )

    normalized = normalize_evaluation_matrix(matrix)

    np.testing.assert_allclose(normalized.to_numpy(), matrix.to_numpy() / 10.0)
    assert normalized.to_numpy().min() == 0.0
    assert normalized.to_numpy().max() == 1.0
    np.testing.assert_allclose(median_scores(matrix).to_numpy(), [0.2, 0.6, 0.7, 0.3, 0.1])
    assert select_k(matrix) == 4


def test_normalisation_is_global_not_per_column() -> None:
    matrix = _matrix([[0.0, 5.0], [1.0, 10.0]], [2, 3])
    normalized = normalize_evaluation_matrix(matrix)
    # Column k=2 would span [0, 1] under per-column scaling
    np.testing.assert_allclose(normalized[2].to_numpy(), [0.0, 0.1])


def test_tied_medians_resolve_to_smaller_k() -> None:
    matrix = _matrix(
        [
            [1.0, 5.0, 5.0, 0.0],
            [2.0, 6.0, 6.0, 1.0],
            [3.0, 7.0, 7.0, 9.0],
        ],
        [2, 3, 4, 5],
    )
    assert select_k(matrix) == 3


def test_ragged_matrix_with_fewer_repeats() -> None:
    matrix = _matrix([[0.0, 3.0, 1.0], [0.5, 2.0, 4.0]], [4, 5, 6])
    # Medians over the two completed repeats: 0.0625, 0.625, 0.625 -> k=5
    assert select_k(matrix) == 5


def test_constant_matrix_is_degenerate() -> None:
    with pytest.raises(DegenerateMatrixError):
        select_k(_matrix([[2.0, 2.0], [2.0, 2.0]], [2, 3]))


def test_empty_matrix_is_degenerate() -> None:
    empty = pd.DataFrame(np.empty((0, 3)), columns=[2, 3, 4])
    with pytest.raises(DegenerateMatrixError, match="empty"):
        normalize_evaluation_matrix(empty)


def test_non_finite_scores_are_rejected() -> None:
    with pytest.raises(DegenerateMatrixError, match="non-finite"):
        normalize_evaluation_matrix(_matrix([[0.0, np.inf]], [2, 3]))
