"""
Central configuration for the CLUE cluster evaluation library.
"""

import numpy as np

# --- Evaluation Parameters ---

# Number of independent clustering repeats per candidate k.
REPEATS: int = 5

# Candidate numbers of clusters tested by the evaluation loop.
K_RANGE: tuple[int, ...] = tuple(range(2, 11))

# Default clustering method. Unknown method names fall back to this one.
CLUSTERING_METHOD: str = "cmeans"

# Regularisation weight (alpha) penalising large numbers of clusters:
# score = -log10(combined p-value) - alpha * k
REGULARIZATION_ALPHA: float = 0.5

# --- Enrichment Parameters ---

# Inclusive (min, max) size of annotation groups considered for enrichment.
# Groups that are too small or too large are left out of the overall score.
EFFECTIVE_SIZE: tuple[int, int] = (5, 100)

# Groups whose Fisher's exact p-value is <= this cutoff count as enriched.
PVALUE_CUTOFF: float = 0.05

# Smallest p-value reported. Keeps -log10(p) finite when the exact test or
# the chi-squared tail underflows.
PVALUE_FLOOR: float = float(np.finfo(np.float64).tiny)

# --- Clustering Parameters ---

# Iteration cap shared by fuzzy c-means and k-means.
MAX_ITERATIONS: int = 50

# Fuzzifier m for fuzzy c-means. Values close to 1 give crisp memberships.
CMEANS_FUZZIFIER: float = 1.25

# Stopping criterion for fuzzy c-means (norm of the membership update).
CMEANS_ERROR: float = 0.005

# Number of restarts used when searching for the optimal partition.
OPTIMAL_REPEATS: int = 5

# --- Standardisation Parameters ---

# Policy for rows without variance during row-wise z-scoring.
# Options:
#   "raise": fail with DegenerateRowError
#   "zero":  standardise such rows to all zeros
ZERO_VARIANCE_POLICY: str = "raise"

# A row counts as constant when its standard deviation is below this
# fraction of max(1, |row mean|).
ZERO_VARIANCE_TOLERANCE: float = 1e-12

# --- Parallelism ---

# Environment variable overriding the worker count (e.g. "1" to disable).
N_JOBS_ENV: str = "CLUE_N_JOBS"

# Fewer independent repeats than this run sequentially.
MIN_TASKS_FOR_PARALLEL: int = 2

# Base seed for repeat seeds (None draws fresh entropy, which is logged).
RANDOM_SEED: int | None = None
