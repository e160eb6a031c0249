"""Enrichment scoring of a partition against an annotation reference.

For every cluster, each annotation group whose size lies within the
effective-size range is tested for over-representation with Fisher's exact
test. Groups with a p-value at or below the cutoff are the cluster's
enriched groups. All enriched p-values across all clusters are combined
with Fisher's method into one combined p-value for the partition; smaller
values mean stronger enrichment. A partition without any enriched group has
a combined p-value of exactly 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from clue_analysis import config
from clue_analysis.enrichment.fisher import combine_fisher_pvalues, fisher_exact_pvalues

logger = logging.getLogger(__name__)

ENRICHED_COLUMNS = ["group", "pvalue", "group_size", "overlap_size", "overlap"]


@dataclass
class EnrichmentResult:
    """Enrichment of one partition.

    Attributes
    ----------
    enriched : dict[int, pd.DataFrame]
        For each cluster index in ``[0, k)``, the enriched groups ordered by
        ascending p-value, with columns ``group``, ``pvalue``,
        ``group_size``, ``overlap_size`` and ``overlap``.
    combined_pvalue : float
        Fisher's combined p-value over all enriched groups, in (0, 1].
    statistic : float
        The chi-squared statistic behind ``combined_pvalue``.
    n_tested : int
        Number of (cluster, group) pairs tested.
    """

    enriched: dict[int, pd.DataFrame]
    combined_pvalue: float
    statistic: float = 0.0
    n_tested: int = 0
    effective_size: tuple[int, int] = config.EFFECTIVE_SIZE
    pvalue_cutoff: float = config.PVALUE_CUTOFF

    @property
    def n_enriched(self) -> int:
        return int(sum(len(frame) for frame in self.enriched.values()))

    @property
    def score(self) -> float:
        """-log10 of the combined p-value."""
        return float(-np.log10(self.combined_pvalue))

    def enriched_groups(self, cluster: int) -> list[tuple[str, float]]:
        """``(group, p-value)`` pairs enriched in ``cluster``."""
        frame = self.enriched.get(cluster)
        if frame is None or frame.empty:
            return []
        return list(zip(frame["group"], frame["pvalue"].astype(float)))

    def to_frame(self) -> pd.DataFrame:
        """All enriched groups as one long table with a ``cluster`` column."""
        frames = [
            frame.assign(cluster=cluster)
            for cluster, frame in sorted(self.enriched.items())
            if not frame.empty
        ]
        if not frames:
            return pd.DataFrame(columns=["cluster", *ENRICHED_COLUMNS])
        long = pd.concat(frames, ignore_index=True)
        return long[["cluster", *ENRICHED_COLUMNS]]


def _validate_scoring_params(effective_size: tuple[int, int], pvalue_cutoff: float) -> None:
    min_size, max_size = effective_size
    if min_size > max_size:
        raise ValueError(
            f"effective_size must satisfy min <= max, got {tuple(effective_size)}."
        )
    if not 0.0 < pvalue_cutoff <= 1.0:
        raise ValueError(f"pvalue_cutoff must lie in (0, 1], got {pvalue_cutoff}.")


def _empty_enriched_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "group": pd.Series(dtype=object),
            "pvalue": pd.Series(dtype=float),
            "group_size": pd.Series(dtype=int),
            "overlap_size": pd.Series(dtype=int),
            "overlap": pd.Series(dtype=object),
        }
    )


def score_enrichment(
    assignment: pd.Series,
    annotation: Mapping[str, Iterable[str]],
    effective_size: tuple[int, int] | None = None,
    pvalue_cutoff: float | None = None,
    universe: Iterable[str] | None = None,
    n_clusters: int | None = None,
) -> EnrichmentResult:
    """Score the enrichment of a partition.

    Parameters
    ----------
    assignment
        Cluster index per entity identifier.
    annotation
        Filtered annotation (group name -> member identifiers).
    effective_size
        Inclusive (min, max) group size, measured within the universe.
        Defaults to ``config.EFFECTIVE_SIZE``.
    pvalue_cutoff
        Groups with p <= cutoff are enriched. Defaults to
        ``config.PVALUE_CUTOFF``.
    universe
        Background identifiers. Defaults to all identifiers in
        ``assignment``. Cluster members and groups are restricted to it.
    n_clusters
        Number of clusters k. Defaults to ``max(assignment) + 1``; clusters
        without members simply report no enriched group.

    Returns
    -------
    EnrichmentResult
        Per-cluster enriched groups and the combined p-value.
    """
    effective_size = tuple(
        effective_size if effective_size is not None else config.EFFECTIVE_SIZE
    )
    pvalue_cutoff = float(
        pvalue_cutoff if pvalue_cutoff is not None else config.PVALUE_CUTOFF
    )
    _validate_scoring_params(effective_size, pvalue_cutoff)
    min_size, max_size = effective_size

    labels = np.asarray(assignment.to_numpy(), dtype=int)
    if n_clusters is None:
        n_clusters = int(labels.max()) + 1 if labels.size else 0

    index = pd.Index(assignment.index.map(str))
    background = (
        frozenset(index) if universe is None else frozenset(map(str, universe))
    )
    universe_size = len(background)

    # Size filtering uses group sizes within the universe
    group_names: list[str] = []
    group_members: list[frozenset[str]] = []
    for group, members in annotation.items():
        restricted = background.intersection(map(str, members))
        if min_size <= len(restricted) <= max_size:
            group_names.append(str(group))
            group_members.append(frozenset(restricted))
    group_sizes = np.array([len(m) for m in group_members], dtype=np.int64)

    in_universe = index.isin(list(background))
    enriched: dict[int, pd.DataFrame] = {}
    passing: list[float] = []
    n_tested = 0

    for cluster in range(n_clusters):
        members = frozenset(index[(labels == cluster) & in_universe])
        if not group_names or not members:
            enriched[cluster] = _empty_enriched_frame()
            continue

        overlaps = [members & g for g in group_members]
        overlap_sizes = np.array([len(o) for o in overlaps], dtype=np.int64)
        p_values = fisher_exact_pvalues(
            overlap_sizes, group_sizes, len(members), universe_size
        )
        n_tested += len(group_names)

        hits = np.flatnonzero(p_values <= pvalue_cutoff)
        if hits.size == 0:
            enriched[cluster] = _empty_enriched_frame()
            continue

        # Stable sort keeps annotation order among equal p-values
        hits = hits[np.argsort(p_values[hits], kind="stable")]
        enriched[cluster] = pd.DataFrame(
            {
                "group": [group_names[i] for i in hits],
                "pvalue": p_values[hits].astype(float),
                "group_size": group_sizes[hits].astype(int),
                "overlap_size": overlap_sizes[hits].astype(int),
                "overlap": [sorted(overlaps[i]) for i in hits],
            }
        )
        passing.extend(p_values[hits].tolist())

    statistic, combined = combine_fisher_pvalues(passing)
    logger.debug(
        "Scored %d clusters against %d groups: %d enriched, combined p=%.3g",
        n_clusters,
        len(group_names),
        len(passing),
        combined,
    )

    return EnrichmentResult(
        enriched=enriched,
        combined_pvalue=combined,
        statistic=statistic,
        n_tested=n_tested,
        effective_size=(int(min_size), int(max_size)),
        pvalue_cutoff=pvalue_cutoff,
    )


__all__ = ["EnrichmentResult", "score_enrichment", "ENRICHED_COLUMNS"]
