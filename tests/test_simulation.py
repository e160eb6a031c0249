from __future__ import annotations

import numpy as np
import pytest

from clue_analysis.simulation import simulate_annotation, simulate_time_course
from tests.clue_test_utils import SHAPES


def test_simulated_matrix_layout() -> None:
    data, labels = simulate_time_course(n_groups=3, group_size=10, n_timepoints=5, seed=0)

    assert data.shape == (30, 5)
    assert list(data.index[:2]) == ["p_1", "p_2"]
    assert list(data.columns) == ["t1", "t2", "t3", "t4", "t5"]
    assert labels.tolist() == [0] * 10 + [1] * 10 + [2] * 10


def test_simulation_is_seeded() -> None:
    first, _ = simulate_time_course(seed=4)
    second, _ = simulate_time_course(seed=4)
    other, _ = simulate_time_course(seed=5)

    assert first.equals(second)
    assert not first.equals(other)


def test_given_templates_define_the_profiles() -> None:
    data, labels = simulate_time_course(templates=SHAPES, group_size=5, noise_sd=0.0)
    np.testing.assert_allclose(data.to_numpy(), SHAPES[labels])


def test_random_templates_are_not_strongly_correlated() -> None:
    data, labels = simulate_time_course(n_groups=4, group_size=3, noise_sd=0.0, seed=2)
    templates = np.vstack([data.to_numpy()[labels == g][0] for g in range(4)])
    corr = np.corrcoef(templates)
    assert np.all(corr[~np.eye(4, dtype=bool)] < 0.8)


def test_annotation_has_true_groups_first() -> None:
    data, labels = simulate_time_course(n_groups=2, group_size=20, seed=0)
    annotation = simulate_annotation(
        data.index, labels, true_group_size=15, n_noise_groups=3, noise_group_size=6, seed=0
    )

    assert list(annotation) == ["KS_1", "KS_2", "KS_3", "KS_4", "KS_5"]
    assert annotation["KS_1"] == [f"p_{i}" for i in range(1, 16)]
    assert annotation["KS_2"] == [f"p_{i}" for i in range(21, 36)]
    for name in ("KS_3", "KS_4", "KS_5"):
        assert len(set(annotation[name])) == 6
        assert set(annotation[name]) <= set(data.index)


def test_annotation_length_mismatch() -> None:
    with pytest.raises(ValueError, match="same length"):
        simulate_annotation(["p_1", "p_2"], np.array([0]))
