"""Clustering method registry.

Export a direct `METHOD_SPECS` mapping so callers can import it as a
configuration constant. Runners are imported lazily so that importing the
registry does not pull in every clustering backend.
"""

from __future__ import annotations

import importlib
import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Sequence

import pandas as pd

from clue_analysis import config
from clue_analysis.clustering.types import Clusterer, ClusterResult
from clue_analysis.errors import ConvergenceWarning, UnknownClusteringMethodWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusteringMethodSpec:
    """Registry entry for a named clustering method."""

    name: str
    runner: Callable[..., ClusterResult]
    fuzzy: bool


def _lazy_runner(module: str, attr: str) -> Callable[..., ClusterResult]:
    def _runner(*args, **kwargs):
        mod = importlib.import_module(module)
        return getattr(mod, attr)(*args, **kwargs)

    _runner.__name__ = attr
    return _runner


METHOD_SPECS: dict[str, ClusteringMethodSpec] = {
    "cmeans": ClusteringMethodSpec(
        name="Fuzzy c-means",
        runner=_lazy_runner(
            "clue_analysis.clustering.runners.cmeans_runner", "_run_cmeans_method"
        ),
        fuzzy=True,
    ),
    "kmeans": ClusteringMethodSpec(
        name="k-means",
        runner=_lazy_runner(
            "clue_analysis.clustering.runners.kmeans_runner", "_run_kmeans_method"
        ),
        fuzzy=False,
    ),
}


def resolve_method(method: str | Clusterer | None) -> str | Clusterer:
    """Return a registered method name or a user-supplied clusterer.

    Unknown names fall back to ``config.CLUSTERING_METHOD`` with an
    `UnknownClusteringMethodWarning`.
    """
    if method is None:
        return config.CLUSTERING_METHOD
    if callable(method):
        return method
    if method in METHOD_SPECS:
        return method

    fallback = config.CLUSTERING_METHOD
    message = (
        f"Unknown clustering algorithm {method!r}. "
        f"Using {fallback} clustering instead."
    )
    warnings.warn(message, UnknownClusteringMethodWarning, stacklevel=2)
    logger.warning(message)
    return fallback


def method_name(method: str | Clusterer) -> str:
    if callable(method):
        return getattr(method, "__name__", type(method).__name__)
    return method


def warn_not_converged(
    method: str | Clusterer,
    runs: Sequence[tuple[int, int]],
    max_iter: int,
    stacklevel: int = 2,
) -> None:
    """Emit one `ConvergenceWarning` for clustering runs that hit the cap.

    ``runs`` holds ``(k, n_iter)`` pairs. Repeat workers collect these as
    data so that the parent process can warn even when the runs executed
    in joblib workers, whose warnings never reach the caller.
    """
    if not runs:
        return
    detail = ", ".join(f"k={k}" for k in sorted({int(k) for k, _ in runs}))
    message = (
        f"{len(runs)} {method_name(method)} run(s) did not converge within "
        f"{max_iter} iterations ({detail}); using the last partition."
    )
    warnings.warn(message, ConvergenceWarning, stacklevel=stacklevel + 1)
    logger.warning(message)


def run_clustering(
    data: pd.DataFrame,
    k: int,
    method: str | Clusterer,
    seed: int | None,
    max_iter: int | None = None,
    warn: bool = True,
) -> ClusterResult:
    """Cluster ``data`` into ``k`` groups with the selected method.

    Parameters
    ----------
    data
        Standardised time-course matrix.
    k
        Number of clusters.
    method
        Registered method name or a clusterer callable. Names should be
        resolved with `resolve_method` first.
    seed
        Seed for this single run.
    max_iter
        Iteration cap. Defaults to ``config.MAX_ITERATIONS``.
    warn
        Emit a `ConvergenceWarning` when the cap was hit. Repeat workers
        pass False and report ``converged`` back to the caller instead.

    Returns
    -------
    ClusterResult
        The partition. A run that hit its iteration cap is still returned.
    """
    max_iter = int(max_iter if max_iter is not None else config.MAX_ITERATIONS)
    if callable(method):
        runner = method
    else:
        runner = METHOD_SPECS[method].runner

    result = runner(data, k, seed, max_iter)

    if warn and not result.converged:
        warn_not_converged(method, [(k, result.n_iter)], max_iter, stacklevel=2)
    return result


__all__ = [
    "ClusteringMethodSpec",
    "METHOD_SPECS",
    "resolve_method",
    "method_name",
    "run_clustering",
    "warn_not_converged",
]
