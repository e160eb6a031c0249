"""Evaluation of candidate k and selection of the optimal partition.

Modules
-------
evaluation_loop
    Repeated clustering over a k-range producing the evaluation matrix
k_selection
    Global min-max normalisation and median-argmax selection of k
optimal_partition
    Best-of-n restarts at a fixed k
parallel
    Seed derivation and joblib scheduling of independent repeats
types
    ClueEvaluation, RepeatResult and OptimalClustering containers
"""

from .types import ClueEvaluation, OptimalClustering, RepeatResult
from .k_selection import median_scores, normalize_evaluation_matrix, select_k
from .evaluation_loop import regularized_score, run_clue
from .optimal_partition import clust_optimal

__all__ = [
    "ClueEvaluation",
    "OptimalClustering",
    "RepeatResult",
    "normalize_evaluation_matrix",
    "median_scores",
    "select_k",
    "regularized_score",
    "run_clue",
    "clust_optimal",
]
