"""CLUster Evaluation: choose the number of clusters of time-course data by
enrichment of an independent annotation reference."""

from clue_analysis.core_utils.data_utils import (
    filter_annotation,
    standardize_rows,
    validate_time_course,
)
from clue_analysis.enrichment.scorer import EnrichmentResult, score_enrichment
from clue_analysis.errors import (
    ClueError,
    ConvergenceWarning,
    DegenerateMatrixError,
    DegenerateRowError,
    EmptyAnnotationError,
    InvalidTimeCourseError,
    RepeatFailureError,
    UnknownClusteringMethodWarning,
)
from clue_analysis.evaluation import (
    ClueEvaluation,
    OptimalClustering,
    clust_optimal,
    run_clue,
    select_k,
)

__version__ = "0.1.0"

__all__ = [
    "run_clue",
    "clust_optimal",
    "select_k",
    "score_enrichment",
    "EnrichmentResult",
    "ClueEvaluation",
    "OptimalClustering",
    "filter_annotation",
    "standardize_rows",
    "validate_time_course",
    "ClueError",
    "ConvergenceWarning",
    "DegenerateMatrixError",
    "DegenerateRowError",
    "EmptyAnnotationError",
    "InvalidTimeCourseError",
    "RepeatFailureError",
    "UnknownClusteringMethodWarning",
]
