"""Cluster evaluation over a range of candidate k.

For each repeat and each candidate k the standardised data are clustered,
the partition is scored against the annotation, and the regularised
enrichment score

    score = -log10(combined p-value) - alpha * k

is recorded. Repeats run independently (optionally in parallel) and the
resulting repeats x k matrix is used to select the number of clusters.

Example
-------
>>> from clue_analysis.evaluation.evaluation_loop import run_clue
>>> evaluation = run_clue(data, annotation, repeats=3, k_range=range(2, 8))
>>> evaluation.best_k
>>> evaluation.normalized_matrix
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from clue_analysis import config
from clue_analysis.clustering.method_registry import (
    method_name,
    resolve_method,
    run_clustering,
    warn_not_converged,
)
from clue_analysis.clustering.types import Clusterer
from clue_analysis.core_utils.data_utils import (
    Annotation,
    FilteredAnnotation,
    coalesce,
    filter_annotation,
    standardize_rows,
    validate_time_course,
)
from clue_analysis.enrichment.scorer import score_enrichment
from clue_analysis.errors import RepeatFailureError
from clue_analysis.evaluation.k_selection import median_scores, select_k
from clue_analysis.evaluation.logging import (
    log_evaluation_start,
    log_repeat_completion,
    log_repeat_failure,
    log_selected_k,
)
from clue_analysis.evaluation.parallel import run_repeats, seed_to_int, spawn_repeat_seeds
from clue_analysis.evaluation.types import ClueEvaluation, RepeatResult

logger = logging.getLogger(__name__)


def regularized_score(combined_pvalue: float, k: int, alpha: float) -> float:
    """Enrichment score penalised by the number of clusters."""
    return float(-np.log10(combined_pvalue) - alpha * k)


def _validate_k_range(k_range: Iterable[int], n_rows: int) -> tuple[int, ...]:
    k_values = tuple(sorted({int(k) for k in k_range}))
    if not k_values:
        raise ValueError("k_range must contain at least one candidate k.")
    if k_values[0] < 2:
        raise ValueError(f"Candidate k values must be >= 2, got {k_values[0]}.")
    if k_values[-1] > n_rows:
        raise ValueError(
            f"Cannot form k={k_values[-1]} clusters from {n_rows} rows."
        )
    return k_values


def _evaluate_repeat(
    repeat: int,
    data: pd.DataFrame,
    annotation: FilteredAnnotation,
    k_values: Sequence[int],
    k_seeds: Sequence[int],
    method: str | Clusterer,
    effective_size: tuple[int, int],
    pvalue_cutoff: float,
    alpha: float,
    universe: frozenset[str] | None,
    max_iter: int,
) -> RepeatResult:
    """Score every candidate k once. Any exception marks the repeat failed.

    Runs that hit the iteration cap are reported in the result instead of
    warned about here, since this may execute in a joblib worker.
    """
    scores = np.empty(len(k_values), dtype=np.float64)
    pvalues = np.empty(len(k_values), dtype=np.float64)
    not_converged: list[tuple[int, int]] = []
    try:
        for j, (k, seed) in enumerate(zip(k_values, k_seeds)):
            clustered = run_clustering(data, k, method, seed, max_iter, warn=False)
            if not clustered.converged:
                not_converged.append((int(k), clustered.n_iter))
            enrichment = score_enrichment(
                clustered.assignment,
                annotation,
                effective_size=effective_size,
                pvalue_cutoff=pvalue_cutoff,
                universe=universe,
                n_clusters=clustered.k,
            )
            pvalues[j] = enrichment.combined_pvalue
            scores[j] = regularized_score(enrichment.combined_pvalue, clustered.k, alpha)
    except Exception as exc:
        return RepeatResult(
            repeat=repeat,
            k_values=tuple(k_values),
            scores=None,
            combined_pvalues=None,
            status="failed",
            error=f"{type(exc).__name__}: {exc}",
        )

    return RepeatResult(
        repeat=repeat,
        k_values=tuple(k_values),
        scores=scores,
        combined_pvalues=pvalues,
        not_converged=not_converged,
    )


def run_clue(
    time_course: pd.DataFrame | np.ndarray,
    annotation: Annotation,
    repeats: int | None = None,
    k_range: Iterable[int] | None = None,
    clustering_method: str | Clusterer | None = None,
    effective_size: tuple[int, int] | None = None,
    pvalue_cutoff: float | None = None,
    alpha: float | None = None,
    universe: Iterable[str] | None = None,
    max_iter: int | None = None,
    random_seed: int | None = None,
    n_jobs: int | None = None,
    zero_variance: str | None = None,
) -> ClueEvaluation:
    """Evaluate candidate numbers of clusters by annotation enrichment.

    Parameters
    ----------
    time_course
        Rows are entities, columns are time points. Rows are z-scored before
        clustering.
    annotation
        Mapping from group name (e.g. kinase) to member identifiers (e.g.
        substrates). Filtered to the rows of ``time_course``.
    repeats
        Number of independent repeats. Defaults to ``config.REPEATS``.
    k_range
        Candidate numbers of clusters (each >= 2). Defaults to
        ``config.K_RANGE``.
    clustering_method
        ``"cmeans"``, ``"kmeans"`` or a clusterer callable. Unknown names
        fall back to ``config.CLUSTERING_METHOD`` with a warning.
    effective_size
        Inclusive group-size range considered for enrichment.
    pvalue_cutoff
        Cutoff for counting a group as enriched.
    alpha
        Regularisation weight penalising large k.
    universe
        Background identifiers for the enrichment test. Defaults to all
        rows.
    max_iter
        Iteration cap per clustering call.
    random_seed
        Base seed. Each repeat and each k get their own derived seed, so
        the result is independent of ``n_jobs``.
    n_jobs
        Parallel workers for the repeats (joblib semantics).
    zero_variance
        Policy for constant rows, see `standardize_rows`.

    Returns
    -------
    ClueEvaluation
        Standardised data, filtered annotation, settings, the evaluation
        matrix and the selected k.

    Raises
    ------
    InvalidTimeCourseError
        If the matrix is malformed.
    DegenerateRowError
        If a row is constant and ``zero_variance`` is ``"raise"``.
    RepeatFailureError
        If every repeat failed.
    DegenerateMatrixError
        If the evaluation matrix is constant.

    Warns
    -----
    ConvergenceWarning
        Once per call, if any clustering run stopped at ``max_iter``.
    """
    repeats = int(coalesce(repeats, config.REPEATS))
    effective_size = tuple(coalesce(effective_size, config.EFFECTIVE_SIZE))
    pvalue_cutoff = float(coalesce(pvalue_cutoff, config.PVALUE_CUTOFF))
    alpha = float(coalesce(alpha, config.REGULARIZATION_ALPHA))
    max_iter = int(coalesce(max_iter, config.MAX_ITERATIONS))
    random_seed = coalesce(random_seed, config.RANDOM_SEED)

    if repeats < 1:
        raise ValueError(f"repeats must be >= 1, got {repeats}.")
    if alpha < 0:
        raise ValueError(f"alpha must be non-negative, got {alpha}.")
    if effective_size[0] > effective_size[1]:
        raise ValueError(f"effective_size must satisfy min <= max, got {effective_size}.")
    if not 0.0 < pvalue_cutoff <= 1.0:
        raise ValueError(f"pvalue_cutoff must lie in (0, 1], got {pvalue_cutoff}.")

    data = standardize_rows(validate_time_course(time_course), zero_variance)
    k_values = _validate_k_range(coalesce(k_range, config.K_RANGE), data.shape[0])
    filtered = filter_annotation(annotation, data.index)
    background = frozenset(map(str, universe)) if universe is not None else None
    method = resolve_method(clustering_method)

    log_evaluation_start(
        data.shape[0], len(filtered), repeats, k_values, method_name(method), logger
    )

    entropy, repeat_seeds = spawn_repeat_seeds(random_seed, repeats)
    logger.debug("Repeat seeds derived from entropy %d", entropy)

    tasks = [
        dict(
            repeat=r + 1,
            data=data,
            annotation=filtered,
            k_values=k_values,
            k_seeds=[seed_to_int(s) for s in repeat_seeds[r].spawn(len(k_values))],
            method=method,
            effective_size=effective_size,
            pvalue_cutoff=pvalue_cutoff,
            alpha=alpha,
            universe=background,
            max_iter=max_iter,
        )
        for r in range(repeats)
    ]
    results: list[RepeatResult] = run_repeats(_evaluate_repeat, tasks, n_jobs)

    completed: list[RepeatResult] = []
    failed: dict[int, str] = {}
    for result in results:
        log_repeat_completion(result.repeat, repeats, result.status, logger)
        if result.status == "ok":
            completed.append(result)
        else:
            failed[result.repeat] = result.error or "unknown error"
            log_repeat_failure(result.repeat, failed[result.repeat], logger)

    if not completed:
        raise RepeatFailureError(
            f"All {repeats} evaluation repeat(s) failed; first error: "
            f"{next(iter(failed.values()))}"
        )

    warn_not_converged(
        method, [run for r in completed for run in r.not_converged], max_iter, stacklevel=2
    )

    index = pd.Index([r.repeat for r in completed], name="repeat")
    columns = pd.Index(list(k_values), name="k")
    evaluation_matrix = pd.DataFrame(
        np.vstack([r.scores for r in completed]), index=index, columns=columns
    )
    combined_pvalues = pd.DataFrame(
        np.vstack([r.combined_pvalues for r in completed]), index=index, columns=columns
    )

    best_k = select_k(evaluation_matrix)
    log_selected_k(best_k, median_scores(evaluation_matrix).tolist(), k_values, logger)

    return ClueEvaluation(
        time_course=data,
        annotation=filtered,
        clustering_method=method,
        effective_size=(int(effective_size[0]), int(effective_size[1])),
        pvalue_cutoff=pvalue_cutoff,
        alpha=alpha,
        evaluation_matrix=evaluation_matrix,
        combined_pvalues=combined_pvalues,
        best_k=best_k,
        universe=background,
        max_iter=max_iter,
        seed_entropy=entropy,
        failed_repeats=failed,
    )


__all__ = ["run_clue", "regularized_score"]
