"""Synthetic time-course data and annotation for evaluating CLUE.

Exports:
- simulate_time_course(...) -> tuple[pd.DataFrame, np.ndarray]
- simulate_annotation(...) -> dict[str, list[str]]

Each simulated profile group shares one temporal template plus Gaussian
noise. The annotation mimics a kinase-substrate database: one group per
profile holding members of that profile, plus random noise groups.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd


def _random_templates(
    n_groups: int, n_timepoints: int, rng: np.random.Generator, scale: float
) -> np.ndarray:
    """Draw templates and re-draw until no two are strongly correlated."""
    for _ in range(100):
        templates = rng.normal(0.0, scale, size=(n_groups, n_timepoints))
        if n_groups < 2:
            return templates
        corr = np.corrcoef(templates)
        off_diagonal = corr[~np.eye(n_groups, dtype=bool)]
        if np.all(off_diagonal < 0.8):
            return templates
    return templates


def simulate_time_course(
    n_groups: int = 4,
    group_size: int = 50,
    n_timepoints: int = 6,
    noise_sd: float = 1.0,
    templates: Optional[np.ndarray] = None,
    template_scale: float = 3.0,
    seed: Optional[int] = 1,
) -> tuple[pd.DataFrame, np.ndarray]:
    """Simulate rows from ``n_groups`` distinct temporal profiles.

    Parameters
    ----------
    n_groups
        Number of profile groups. Ignored when ``templates`` is given.
    group_size
        Rows per group.
    n_timepoints
        Measurements per row. Ignored when ``templates`` is given.
    noise_sd
        Standard deviation of the additive Gaussian noise.
    templates
        Optional (groups x time points) array of profile shapes.
    template_scale
        Spread of randomly drawn templates.
    seed
        Seed for the local random generator.

    Returns
    -------
    tuple[pd.DataFrame, np.ndarray]
        Data with row ids ``p_1 .. p_N`` and columns ``t1 ..``, and the
        group label of every row. Rows of group ``g`` are contiguous.
    """
    rng = np.random.default_rng(seed)
    if templates is None:
        templates = _random_templates(n_groups, n_timepoints, rng, template_scale)
    templates = np.asarray(templates, dtype=float)
    if templates.ndim != 2:
        raise ValueError("templates must be a (groups x time points) array.")
    n_groups, n_timepoints = templates.shape

    labels = np.repeat(np.arange(n_groups), group_size)
    values = templates[labels] + rng.normal(0.0, noise_sd, size=(labels.size, n_timepoints))

    data = pd.DataFrame(
        values,
        index=[f"p_{i + 1}" for i in range(labels.size)],
        columns=[f"t{j + 1}" for j in range(n_timepoints)],
    )
    return data, labels


def simulate_annotation(
    row_ids: list[str] | pd.Index,
    labels: np.ndarray,
    true_group_size: Optional[int] = None,
    n_noise_groups: int = 20,
    noise_group_size: int = 10,
    seed: Optional[int] = 1,
) -> dict[str, list[str]]:
    """Build an annotation with one true group per profile and noise groups.

    Parameters
    ----------
    row_ids
        Identifiers of the simulated rows.
    labels
        Profile group of every row.
    true_group_size
        Members taken (in row order) from each profile; None takes all.
    n_noise_groups
        Number of groups with randomly sampled members.
    noise_group_size
        Members per noise group.
    seed
        Seed for the local random generator.

    Returns
    -------
    dict[str, list[str]]
        Groups ``KS_1 .. KS_G``; the first ones match the profiles.
    """
    row_ids = list(row_ids)
    labels = np.asarray(labels)
    if len(row_ids) != labels.size:
        raise ValueError("row_ids and labels must have the same length.")
    rng = np.random.default_rng(seed)

    groups: list[list[str]] = []
    for group in np.unique(labels):
        members = [row_ids[i] for i in np.flatnonzero(labels == group)]
        if true_group_size is not None:
            members = members[:true_group_size]
        groups.append(members)

    for _ in range(n_noise_groups):
        picked = rng.choice(len(row_ids), size=noise_group_size, replace=False)
        groups.append([row_ids[i] for i in sorted(picked)])

    return {f"KS_{i + 1}": members for i, members in enumerate(groups)}


__all__ = ["simulate_time_course", "simulate_annotation"]
