"""Selection of the best clustering instance at a fixed k.

Clustering is stochastic, so the data are clustered several times at the
chosen k and the partition with the smallest combined enrichment p-value is
kept. Hard methods get a membership matrix derived from the correlation of
each row with the cluster centroids.
"""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from clue_analysis import config
from clue_analysis.clustering.membership import correlation_membership
from clue_analysis.clustering.method_registry import (
    method_name,
    resolve_method,
    run_clustering,
    warn_not_converged,
)
from clue_analysis.clustering.types import Clusterer, Partition
from clue_analysis.core_utils.data_utils import (
    Annotation,
    FilteredAnnotation,
    coalesce,
    filter_annotation,
    validate_time_course,
)
from clue_analysis.enrichment.scorer import EnrichmentResult, score_enrichment
from clue_analysis.errors import RepeatFailureError
from clue_analysis.evaluation.logging import log_optimal_selection, log_repeat_failure
from clue_analysis.evaluation.parallel import run_repeats, seed_to_int, spawn_repeat_seeds
from clue_analysis.evaluation.types import ClueEvaluation, OptimalClustering

logger = logging.getLogger(__name__)


def _cluster_and_score(
    repeat: int,
    data: pd.DataFrame,
    annotation: FilteredAnnotation,
    k: int,
    seed: int,
    method: str | Clusterer,
    effective_size: tuple[int, int],
    pvalue_cutoff: float,
    universe: frozenset[str] | None,
    max_iter: int,
) -> tuple[int, Partition | None, EnrichmentResult | None, str | None, int | None]:
    """Cluster once and score. The last element is ``n_iter`` when the run
    stopped at the iteration cap, else None."""
    try:
        clustered = run_clustering(data, k, method, seed, max_iter, warn=False)
        membership = clustered.membership
        if membership is None:
            membership = correlation_membership(data, clustered.centers)
        partition = Partition(
            assignment=clustered.assignment,
            membership=membership,
            centers=clustered.centers,
            k=clustered.k,
            method=clustered.method,
        )
        enrichment = score_enrichment(
            partition.assignment,
            annotation,
            effective_size=effective_size,
            pvalue_cutoff=pvalue_cutoff,
            universe=universe,
            n_clusters=partition.k,
        )
    except Exception as exc:
        return repeat, None, None, f"{type(exc).__name__}: {exc}", None
    capped = None if clustered.converged else clustered.n_iter
    return repeat, partition, enrichment, None, capped


def clust_optimal(
    evaluation: ClueEvaluation | None = None,
    repeats: int | None = None,
    k: int | None = None,
    effective_size: tuple[int, int] | None = None,
    pvalue_cutoff: float | None = None,
    universe: Iterable[str] | None = None,
    time_course: pd.DataFrame | None = None,
    annotation: Annotation | None = None,
    clustering_method: str | Clusterer | None = None,
    max_iter: int | None = None,
    random_seed: int | None = None,
    n_jobs: int | None = None,
) -> OptimalClustering:
    """Cluster repeatedly at a fixed k and keep the most enriched partition.

    Every parameter left as ``None`` is taken from ``evaluation`` when one is
    given, and from `clue_analysis.config` otherwise.

    Parameters
    ----------
    evaluation
        Output of `run_clue`. Supplies the standardised data, the filtered
        annotation, the method, the scoring settings and the selected k.
    repeats
        Number of restarts. Defaults to ``config.OPTIMAL_REPEATS``.
    k
        Number of clusters; overrides ``evaluation.best_k``.
    effective_size, pvalue_cutoff, universe
        Scoring settings; override the evaluation's.
    time_course, annotation
        Standardised matrix and annotation, only accepted without an
        evaluation. The annotation is filtered to the matrix rows.
    clustering_method
        Method name or clusterer callable.
    max_iter
        Iteration cap per clustering call.
    random_seed
        Base seed for the per-restart seeds. The entropy actually used is
        stored as ``seed_entropy`` on the result.
    n_jobs
        Parallel workers for the restarts.

    Returns
    -------
    OptimalClustering
        The partition with the smallest combined p-value. Ties keep the
        earliest restart; a partition is returned even when every restart
        scores a combined p-value of 1.

    Raises
    ------
    ValueError
        If neither an evaluation nor data, annotation and k are supplied,
        or if an evaluation is combined with explicit data or annotation.
    RepeatFailureError
        If every restart failed.

    Warns
    -----
    ConvergenceWarning
        Once per call, if any restart stopped at ``max_iter``.
    """
    if evaluation is not None and (time_course is not None or annotation is not None):
        raise ValueError(
            "Pass either an evaluation or time_course and annotation, not both; "
            "the evaluation already holds the standardised data and annotation."
        )
    if evaluation is None:
        if time_course is None or annotation is None or k is None:
            raise ValueError(
                "clust_optimal needs either an evaluation or time_course, "
                "annotation and k."
            )
        data = validate_time_course(time_course)
        filtered = filter_annotation(annotation, data.index)
        stored_universe = None
        stored = dict(
            method=None, effective_size=None, pvalue_cutoff=None, k=None, max_iter=None
        )
    else:
        data = evaluation.time_course
        filtered = dict(evaluation.annotation)
        stored_universe = evaluation.universe
        stored = dict(
            method=evaluation.clustering_method,
            effective_size=evaluation.effective_size,
            pvalue_cutoff=evaluation.pvalue_cutoff,
            k=evaluation.best_k,
            max_iter=evaluation.max_iter,
        )

    repeats = int(coalesce(repeats, config.OPTIMAL_REPEATS))
    k = int(coalesce(k, stored["k"]))
    effective_size = tuple(
        coalesce(effective_size, stored["effective_size"], config.EFFECTIVE_SIZE)
    )
    pvalue_cutoff = float(coalesce(pvalue_cutoff, stored["pvalue_cutoff"], config.PVALUE_CUTOFF))
    max_iter = int(coalesce(max_iter, stored["max_iter"], config.MAX_ITERATIONS))
    method = resolve_method(coalesce(clustering_method, stored["method"]))
    background = (
        frozenset(map(str, universe)) if universe is not None else stored_universe
    )
    random_seed = coalesce(random_seed, config.RANDOM_SEED)

    if repeats < 1:
        raise ValueError(f"repeats must be >= 1, got {repeats}.")
    if not 2 <= k <= data.shape[0]:
        raise ValueError(f"k must lie in [2, {data.shape[0]}], got {k}.")

    logger.info(
        "Searching the optimal %s partition with k=%d over %d restart(s).",
        method_name(method),
        k,
        repeats,
    )

    entropy, seeds = spawn_repeat_seeds(random_seed, repeats)
    logger.debug("Restart seeds derived from entropy %d", entropy)

    tasks = [
        dict(
            repeat=r + 1,
            data=data,
            annotation=filtered,
            k=k,
            seed=seed_to_int(seeds[r]),
            method=method,
            effective_size=effective_size,
            pvalue_cutoff=pvalue_cutoff,
            universe=background,
            max_iter=max_iter,
        )
        for r in range(repeats)
    ]
    results = run_repeats(_cluster_and_score, tasks, n_jobs)

    # Single-threaded reduction over completed restarts, in restart order
    best: tuple[int, Partition, EnrichmentResult] | None = None
    repeat_pvalues: dict[int, float] = {}
    failed: dict[int, str] = {}
    capped: list[tuple[int, int]] = []
    for repeat, partition, enrichment, error, n_iter in results:
        if error is not None:
            failed[repeat] = error
            log_repeat_failure(repeat, error, logger)
            continue
        if n_iter is not None:
            capped.append((k, n_iter))
        repeat_pvalues[repeat] = enrichment.combined_pvalue
        if best is None or enrichment.combined_pvalue < best[2].combined_pvalue:
            best = (repeat, partition, enrichment)

    if best is None:
        raise RepeatFailureError(
            f"All {repeats} clustering restart(s) failed; first error: "
            f"{next(iter(failed.values()))}"
        )

    warn_not_converged(method, capped, max_iter, stacklevel=2)

    best_repeat, partition, enrichment = best
    log_optimal_selection(k, best_repeat, enrichment.combined_pvalue, repeats, logger)

    return OptimalClustering(
        partition=partition,
        enrichment=enrichment,
        k=k,
        best_repeat=best_repeat,
        repeat_pvalues=repeat_pvalues,
        failed_repeats=failed,
        seed_entropy=entropy,
    )


__all__ = ["clust_optimal"]
