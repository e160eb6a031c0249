"""Scheduling of independent clustering repeats.

Repeats share nothing but read-only inputs. Each one receives its own
`numpy.random.SeedSequence` child, so results do not depend on how many
workers run them or in which order they finish.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterable

import numpy as np
from joblib import Parallel, delayed

from clue_analysis import config

logger = logging.getLogger(__name__)


def _get_n_jobs(n_tasks: int, n_jobs: int | None = None) -> int:
    """Resolve the number of parallel workers.

    An explicit ``n_jobs`` wins, then the ``CLUE_N_JOBS`` environment
    variable. Otherwise small task counts run sequentially and larger ones
    use all available cores.
    """
    if n_jobs is not None:
        return int(n_jobs)
    env = os.environ.get(config.N_JOBS_ENV)
    if env is not None:
        try:
            return max(int(env), 1)
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", config.N_JOBS_ENV, env)
    if n_tasks < config.MIN_TASKS_FOR_PARALLEL:
        return 1
    return -1  # joblib: use all available cores


def spawn_repeat_seeds(
    random_seed: int | None, n_repeats: int
) -> tuple[int, list[np.random.SeedSequence]]:
    """Derive one independent seed sequence per repeat.

    Returns
    -------
    tuple[int, list[np.random.SeedSequence]]
        ``(entropy, children)``. Passing ``entropy`` back as
        ``random_seed`` reproduces the same children.
    """
    root = np.random.SeedSequence(random_seed)
    return int(root.entropy), root.spawn(n_repeats)


def seed_to_int(seed_sequence: np.random.SeedSequence) -> int:
    """Collapse a seed sequence into a 32-bit integer seed."""
    return int(seed_sequence.generate_state(1, dtype=np.uint32)[0])


def run_repeats(
    worker: Callable[..., Any],
    tasks: Iterable[dict[str, Any]],
    n_jobs: int | None = None,
) -> list[Any]:
    """Run ``worker(**task)`` for every task and collect results in order.

    Results are merged only after all tasks finished.
    """
    tasks = list(tasks)
    workers = _get_n_jobs(len(tasks), n_jobs)
    logger.debug("Running %d repeats with n_jobs=%d", len(tasks), workers)
    if workers == 1:
        return [worker(**task) for task in tasks]
    return Parallel(n_jobs=workers)(delayed(worker)(**task) for task in tasks)


__all__ = ["spawn_repeat_seeds", "seed_to_int", "run_repeats"]
