from __future__ import annotations

import logging
import warnings
from typing import Iterable, Mapping, TypeVar

import numpy as np
import pandas as pd

from clue_analysis import config
from clue_analysis.errors import (
    DegenerateRowError,
    EmptyAnnotationError,
    InvalidTimeCourseError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Annotation = Mapping[str, Iterable[str]]
FilteredAnnotation = dict[str, frozenset[str]]


def coalesce(*values: T | None) -> T | None:
    """Return the first value that is not ``None``.

    Used to merge an explicit override, a value stored on an evaluation and
    a configuration default into one effective parameter.
    """
    for value in values:
        if value is not None:
            return value
    return None


def validate_time_course(
    data: pd.DataFrame | np.ndarray,
    row_ids: Iterable[str] | None = None,
) -> pd.DataFrame:
    """Validate a time-course matrix and return it as a float DataFrame.

    Parameters
    ----------
    data
        Rows are entities (e.g. phosphosites), columns are time points.
        A DataFrame keeps its index as row identifiers.
    row_ids
        Row identifiers for array input. Ignored for DataFrames.

    Returns
    -------
    pd.DataFrame
        Copy of the data with float64 values and string row identifiers.

    Raises
    ------
    InvalidTimeCourseError
        If the matrix is not 2-D, has no rows, fewer than two columns,
        duplicated row identifiers, non-numeric or non-finite values.
    """
    if isinstance(data, pd.DataFrame):
        frame = data.copy()
    else:
        values = np.asarray(data)
        if values.ndim != 2:
            raise InvalidTimeCourseError(
                f"Expected a 2-D matrix, got an array with {values.ndim} dimension(s)."
            )
        index = (
            list(row_ids)
            if row_ids is not None
            else [f"p_{i + 1}" for i in range(values.shape[0])]
        )
        if len(index) != values.shape[0]:
            raise InvalidTimeCourseError(
                f"Got {len(index)} row ids for a matrix with {values.shape[0]} rows."
            )
        frame = pd.DataFrame(values, index=index)

    if frame.shape[0] == 0:
        raise InvalidTimeCourseError("The time-course matrix has no rows.")
    if frame.shape[1] < 2:
        raise InvalidTimeCourseError(
            "At least two measurements per row are required for standardisation."
        )
    # Identifiers are compared as strings; 1 and "1" name the same row
    frame.index = frame.index.map(str)
    if frame.index.has_duplicates:
        duplicated = frame.index[frame.index.duplicated()].unique()
        preview = ", ".join(map(repr, list(duplicated[:5])))
        raise InvalidTimeCourseError(f"Duplicated row identifiers: {preview}.")

    try:
        frame = frame.astype(np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidTimeCourseError(f"Non-numeric measurements: {exc}") from exc

    values = frame.to_numpy()
    if not np.isfinite(values).all():
        bad_rows = frame.index[~np.isfinite(values).all(axis=1)]
        preview = ", ".join(map(repr, list(bad_rows[:5])))
        raise InvalidTimeCourseError(
            f"Missing or non-finite measurements in {len(bad_rows)} row(s): {preview}. "
            "Resolve missing values before clustering."
        )

    return frame


def standardize_rows(
    time_course: pd.DataFrame,
    zero_variance: str | None = None,
) -> pd.DataFrame:
    """Z-score every row across its own measurements.

    Uses the sample standard deviation (``ddof=1``).

    Parameters
    ----------
    time_course
        Validated time-course matrix.
    zero_variance
        ``"raise"`` fails on constant rows, ``"zero"`` maps them to zeros.
        Defaults to ``config.ZERO_VARIANCE_POLICY``.

    Returns
    -------
    pd.DataFrame
        New matrix with the same index and columns.

    Raises
    ------
    DegenerateRowError
        If constant rows are present and the policy is ``"raise"``.
    """
    policy = coalesce(zero_variance, config.ZERO_VARIANCE_POLICY)
    if policy not in ("raise", "zero"):
        raise ValueError(
            f"Unknown zero-variance policy: {policy!r}. Supported: 'raise', 'zero'"
        )

    values = time_course.to_numpy(dtype=np.float64)
    means = values.mean(axis=1, keepdims=True)
    stds = values.std(axis=1, ddof=1, keepdims=True)

    scale = np.maximum(1.0, np.abs(means))
    constant = (stds <= config.ZERO_VARIANCE_TOLERANCE * scale).ravel()

    if constant.any():
        if policy == "raise":
            raise DegenerateRowError(list(time_course.index[constant]))
        logger.info("Standardising %d constant row(s) to zero.", int(constant.sum()))

    safe_stds = np.where(constant[:, None], 1.0, stds)
    standardized = (values - means) / safe_stds
    standardized[constant] = 0.0

    return pd.DataFrame(
        standardized, index=time_course.index.copy(), columns=time_course.columns.copy()
    )


def filter_annotation(
    annotation: Annotation,
    row_ids: Iterable[str],
    require_non_empty: bool = False,
) -> FilteredAnnotation:
    """Restrict annotation groups to the identifiers present in the dataset.

    Every group is intersected with ``row_ids`` and groups left empty are
    dropped. Group order is preserved. Small groups are kept; size
    filtering happens during enrichment scoring.

    Parameters
    ----------
    annotation
        Mapping from group name to member identifiers.
    row_ids
        Identifiers of the rows in the time-course matrix.
    require_non_empty
        Raise instead of warning when no group survives.

    Returns
    -------
    dict[str, frozenset[str]]
        Filtered annotation.

    Raises
    ------
    EmptyAnnotationError
        If no group survives and ``require_non_empty`` is set.
    """
    present = frozenset(map(str, row_ids))
    filtered: FilteredAnnotation = {}
    for group, members in annotation.items():
        if isinstance(members, str):
            members = [members]
        kept = present.intersection(map(str, members))
        if kept:
            filtered[str(group)] = frozenset(kept)

    n_dropped = len(annotation) - len(filtered)
    logger.debug(
        "Annotation filter kept %d of %d groups (%d without dataset members).",
        len(filtered),
        len(annotation),
        n_dropped,
    )

    if not filtered:
        message = (
            "No annotation group shares identifiers with the dataset; "
            "every partition will score a combined p-value of 1."
        )
        if require_non_empty:
            raise EmptyAnnotationError(message)
        warnings.warn(message, UserWarning, stacklevel=2)
        logger.warning(message)

    return filtered


__all__ = [
    "Annotation",
    "FilteredAnnotation",
    "coalesce",
    "validate_time_course",
    "standardize_rows",
    "filter_annotation",
]
