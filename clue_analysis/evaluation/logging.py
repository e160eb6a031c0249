"""Small logging helpers for the evaluation and selection stages.

Functions are kept separate so they can be imported and reused elsewhere
without pulling in the evaluation loop.
"""

from __future__ import annotations

import logging
from typing import Sequence


def _default_evaluation_logger() -> logging.Logger:
    return logging.getLogger("clue_analysis.evaluation")


def log_evaluation_start(
    n_rows: int,
    n_groups: int,
    repeats: int,
    k_range: Sequence[int],
    method: str,
    logger: logging.Logger | None = None,
) -> None:
    """Log the start of an evaluation run."""
    logger = logger or _default_evaluation_logger()
    logger.info("%s", "=" * 60)
    logger.info("CLUSTER EVALUATION")
    logger.info("%s", "=" * 60)
    logger.info(
        "Clustering %d rows with %s, k=%d..%d, %d repeat(s), %d annotation groups.",
        n_rows,
        method,
        min(k_range),
        max(k_range),
        repeats,
        n_groups,
    )


def log_repeat_completion(
    repeat: int, total: int, status: str, logger: logging.Logger | None = None
) -> None:
    """Log the completion of one repeat."""
    logger = logger or _default_evaluation_logger()
    logger.info("repeat %d/%d %s", repeat, total, status)


def log_repeat_failure(
    repeat: int, error: str, logger: logging.Logger | None = None
) -> None:
    logger = logger or _default_evaluation_logger()
    logger.warning("repeat %d failed and is excluded: %s", repeat, error)


def log_selected_k(
    best_k: int,
    medians: Sequence[float],
    k_range: Sequence[int],
    logger: logging.Logger | None = None,
) -> None:
    """Log the selected number of clusters and the per-k medians."""
    logger = logger or _default_evaluation_logger()
    summary = ", ".join(f"k={k}: {m:.3f}" for k, m in zip(k_range, medians))
    logger.info("Median normalised scores: %s", summary)
    logger.info("Selected k=%d.", best_k)


def log_optimal_selection(
    k: int,
    best_repeat: int,
    combined_pvalue: float,
    n_repeats: int,
    logger: logging.Logger | None = None,
) -> None:
    logger = logger or _default_evaluation_logger()
    logger.info(
        "Retained repeat %d of %d at k=%d (combined p=%.3g).",
        best_repeat,
        n_repeats,
        k,
        combined_pvalue,
    )
