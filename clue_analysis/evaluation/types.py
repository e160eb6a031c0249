"""Result containers for the evaluation and selection stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import numpy as np
import pandas as pd

from clue_analysis.clustering.types import Clusterer, Partition
from clue_analysis.enrichment.scorer import EnrichmentResult


@dataclass
class RepeatResult:
    """Outcome of one evaluation repeat over the whole k-range.

    ``status`` is ``"ok"`` or ``"failed"``; failed repeats carry the error
    text and are left out of the evaluation matrix. ``not_converged`` lists
    the ``(k, n_iter)`` runs that stopped at the iteration cap.
    """

    repeat: int
    k_values: tuple[int, ...]
    scores: np.ndarray | None
    combined_pvalues: np.ndarray | None
    status: str = "ok"
    error: str | None = None
    not_converged: list[tuple[int, int]] = field(default_factory=list)


@dataclass(frozen=True)
class ClueEvaluation:
    """Aggregate result of a full evaluation run.

    Attributes
    ----------
    time_course : pd.DataFrame
        Row-standardised time-course matrix.
    annotation : Mapping[str, frozenset[str]]
        Annotation filtered to the dataset's identifiers.
    clustering_method : str | Clusterer
        Resolved clustering method.
    effective_size : tuple[int, int]
        Inclusive group-size range used for scoring.
    pvalue_cutoff : float
        Enrichment p-value cutoff used for scoring.
    alpha : float
        Regularisation weight of the score.
    evaluation_matrix : pd.DataFrame
        Raw regularised scores, rows = completed repeats, columns = k.
    combined_pvalues : pd.DataFrame
        Combined p-value behind every score, same shape.
    best_k : int
        k with maximal median normalised score.
    universe : frozenset[str] | None
        Background identifiers, or None for all rows.
    max_iter : int
        Iteration cap of every clustering call.
    seed_entropy : int
        Entropy of the seed sequence that produced the repeat seeds.
    failed_repeats : dict[int, str]
        Repeat index -> error text for repeats left out of the matrix.
    """

    time_course: pd.DataFrame
    annotation: Mapping[str, frozenset[str]]
    clustering_method: str | Clusterer
    effective_size: tuple[int, int]
    pvalue_cutoff: float
    alpha: float
    evaluation_matrix: pd.DataFrame
    combined_pvalues: pd.DataFrame
    best_k: int
    universe: frozenset[str] | None = None
    max_iter: int = 50
    seed_entropy: int | None = None
    failed_repeats: dict[int, str] = field(default_factory=dict)

    @property
    def k_range(self) -> tuple[int, ...]:
        return tuple(int(k) for k in self.evaluation_matrix.columns)

    @property
    def n_repeats(self) -> int:
        return int(self.evaluation_matrix.shape[0])

    @property
    def normalized_matrix(self) -> pd.DataFrame:
        """Evaluation matrix min-max scaled into [0, 1]."""
        from clue_analysis.evaluation.k_selection import normalize_evaluation_matrix

        return normalize_evaluation_matrix(self.evaluation_matrix)


@dataclass
class OptimalClustering:
    """The best of several clustering restarts at a fixed k.

    Attributes
    ----------
    partition : Partition
        Retained partition with hard assignment and membership.
    enrichment : EnrichmentResult
        Enrichment of the retained partition.
    k : int
        Number of clusters.
    best_repeat : int
        1-based index of the restart that was retained.
    repeat_pvalues : dict[int, float]
        Combined p-value of every completed restart.
    failed_repeats : dict[int, str]
        Restarts that raised, with their error text.
    seed_entropy : int | None
        Entropy of the seed sequence behind the restart seeds; passing it
        back as ``random_seed`` replays the search.
    """

    partition: Partition
    enrichment: EnrichmentResult
    k: int
    best_repeat: int
    repeat_pvalues: dict[int, float] = field(default_factory=dict)
    failed_repeats: dict[int, str] = field(default_factory=dict)
    seed_entropy: int | None = None

    @property
    def combined_pvalue(self) -> float:
        return self.enrichment.combined_pvalue

    @property
    def enrich_list(self) -> dict[int, pd.DataFrame]:
        """Enriched annotation groups per cluster."""
        return self.enrichment.enriched


__all__ = ["RepeatResult", "ClueEvaluation", "OptimalClustering"]
