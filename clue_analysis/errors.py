"""Error and warning taxonomy for cluster evaluation.

Structural problems with the inputs fail fast. Statistical degeneracies
(no enriched group, all combined p-values equal to 1) are valid results and
are never raised.
"""

from __future__ import annotations

from typing import Sequence

from sklearn.exceptions import ConvergenceWarning as _SklearnConvergenceWarning


class ClueError(Exception):
    """Base class for all errors raised by ``clue_analysis``."""


class InvalidTimeCourseError(ClueError, ValueError):
    """The time-course matrix is malformed (shape, ids, missing values)."""


class DegenerateRowError(ClueError, ValueError):
    """One or more rows have zero variance and cannot be standardised."""

    def __init__(self, row_ids: Sequence[str]):
        self.row_ids = list(row_ids)
        preview = ", ".join(map(repr, self.row_ids[:5]))
        more = f" (and {len(self.row_ids) - 5} more)" if len(self.row_ids) > 5 else ""
        super().__init__(
            f"{len(self.row_ids)} row(s) have zero variance: {preview}{more}. "
            "Remove them or standardise with zero_variance='zero'."
        )


class EmptyAnnotationError(ClueError, ValueError):
    """No annotation group shares an identifier with the dataset."""


class DegenerateMatrixError(ClueError, ValueError):
    """The evaluation matrix is empty or constant and cannot be normalised."""


class RepeatFailureError(ClueError, RuntimeError):
    """Every clustering repeat of a stage failed."""


class UnknownClusteringMethodWarning(UserWarning):
    """An unrecognised clustering method name was replaced by the default."""


class ConvergenceWarning(_SklearnConvergenceWarning):
    """A clustering run stopped at its iteration cap without converging."""


__all__ = [
    "ClueError",
    "InvalidTimeCourseError",
    "DegenerateRowError",
    "EmptyAnnotationError",
    "DegenerateMatrixError",
    "RepeatFailureError",
    "UnknownClusteringMethodWarning",
    "ConvergenceWarning",
]
