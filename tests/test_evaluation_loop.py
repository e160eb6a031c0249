from __future__ import annotations

import warnings

import numpy as np
import pandas as pd
import pytest

from clue_analysis import config
from clue_analysis.errors import (
    ConvergenceWarning,
    DegenerateRowError,
    InvalidTimeCourseError,
    RepeatFailureError,
    UnknownClusteringMethodWarning,
)
from clue_analysis.evaluation.evaluation_loop import regularized_score, run_clue
from tests.clue_test_utils import make_cluster_result


def _modulo_clusterer(data, k, seed, max_iter):
    labels = np.arange(data.shape[0]) % k
    return make_cluster_result(data, labels, k)


def test_regularized_score_formula() -> None:
    assert regularized_score(1e-6, 4, 0.5) == pytest.approx(6.0 - 2.0)
    assert regularized_score(1.0, 3, 0.0) == 0.0


def test_evaluation_matrix_shape_and_labels(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    evaluation = run_clue(
        data,
        three_shape_annotation,
        repeats=2,
        k_range=[4, 2, 3],
        clustering_method="kmeans",
        random_seed=0,
    )

    matrix = evaluation.evaluation_matrix
    assert matrix.shape == (2, 3)
    assert matrix.index.name == "repeat"
    assert list(matrix.index) == [1, 2]
    assert matrix.columns.name == "k"
    assert list(matrix.columns) == [2, 3, 4]
    assert evaluation.k_range == (2, 3, 4)
    assert evaluation.n_repeats == 2
    assert evaluation.best_k in (2, 3, 4)
    assert evaluation.combined_pvalues.shape == matrix.shape
    assert ((evaluation.combined_pvalues > 0) & (evaluation.combined_pvalues <= 1)).all().all()
    assert evaluation.failed_repeats == {}

    # Rows were standardised before clustering
    np.testing.assert_allclose(evaluation.time_course.mean(axis=1), 0.0, atol=1e-12)
    np.testing.assert_allclose(evaluation.time_course.std(axis=1, ddof=1), 1.0)


def test_scores_match_stored_pvalues(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    evaluation = run_clue(
        data,
        three_shape_annotation,
        repeats=2,
        k_range=range(2, 5),
        clustering_method="kmeans",
        alpha=0.3,
        random_seed=5,
    )
    expected = -np.log10(evaluation.combined_pvalues.to_numpy()) - 0.3 * np.array([2, 3, 4])
    np.testing.assert_allclose(evaluation.evaluation_matrix.to_numpy(), expected)


def test_same_seed_reproduces_matrix(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    kwargs = dict(repeats=3, k_range=range(2, 6), clustering_method="cmeans", random_seed=42)

    first = run_clue(data, three_shape_annotation, **kwargs)
    second = run_clue(data, three_shape_annotation, **kwargs)

    assert first.seed_entropy == 42
    pd.testing.assert_frame_equal(first.evaluation_matrix, second.evaluation_matrix)
    assert first.best_k == second.best_k


def test_unseeded_run_is_replayable_from_entropy(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    first = run_clue(
        data, three_shape_annotation, repeats=2, k_range=range(2, 5), clustering_method="kmeans"
    )
    replay = run_clue(
        data,
        three_shape_annotation,
        repeats=2,
        k_range=range(2, 5),
        clustering_method="kmeans",
        random_seed=first.seed_entropy,
    )
    pd.testing.assert_frame_equal(first.evaluation_matrix, replay.evaluation_matrix)


def test_parallel_and_sequential_runs_agree(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    kwargs = dict(repeats=4, k_range=range(2, 6), clustering_method="kmeans", random_seed=3)

    sequential = run_clue(data, three_shape_annotation, n_jobs=1, **kwargs)
    parallel = run_clue(data, three_shape_annotation, n_jobs=2, **kwargs)

    pd.testing.assert_frame_equal(sequential.evaluation_matrix, parallel.evaluation_matrix)
    assert sequential.best_k == parallel.best_k


def test_unknown_method_falls_back_to_default(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    with pytest.warns(UnknownClusteringMethodWarning, match="Unknown clustering algorithm"):
        evaluation = run_clue(
            data,
            three_shape_annotation,
            repeats=1,
            k_range=range(2, 4),
            clustering_method="hclust",
            random_seed=0,
        )
    assert evaluation.clustering_method == config.CLUSTERING_METHOD


def test_failed_repeat_is_excluded(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    calls = {"n": 0}

    def flaky(data, k, seed, max_iter):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("backend crashed")
        return _modulo_clusterer(data, k, seed, max_iter)

    evaluation = run_clue(
        data,
        three_shape_annotation,
        repeats=3,
        k_range=range(2, 5),
        clustering_method=flaky,
        random_seed=0,
    )

    assert list(evaluation.evaluation_matrix.index) == [2, 3]
    assert evaluation.n_repeats == 2
    assert set(evaluation.failed_repeats) == {1}
    assert "backend crashed" in evaluation.failed_repeats[1]


def test_all_repeats_failing_raises(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data

    def broken(data, k, seed, max_iter):
        raise RuntimeError("always broken")

    with pytest.raises(RepeatFailureError, match="always broken"):
        run_clue(
            data,
            three_shape_annotation,
            repeats=2,
            k_range=range(2, 4),
            clustering_method=broken,
        )


def test_no_annotation_overlap_selects_smallest_k(three_shape_data) -> None:
    data, _ = three_shape_data
    with pytest.warns(UserWarning, match="No annotation group"):
        evaluation = run_clue(
            data,
            {"KS_X": ["not_a_row"]},
            repeats=2,
            k_range=range(2, 6),
            clustering_method=_modulo_clusterer,
            alpha=0.5,
        )

    np.testing.assert_allclose(
        evaluation.evaluation_matrix.to_numpy(),
        np.tile(-0.5 * np.arange(2, 6), (2, 1)),
    )
    assert (evaluation.combined_pvalues.to_numpy() == 1.0).all()
    assert evaluation.best_k == 2


def test_random_annotation_does_not_favour_largest_k() -> None:
    rng = np.random.default_rng(2024)
    ids = [f"p_{i + 1}" for i in range(150)]
    data = pd.DataFrame(rng.normal(size=(150, 6)), index=ids)
    annotation = {
        f"KS_{g + 1}": list(rng.choice(ids, size=10, replace=False)) for g in range(5)
    }

    evaluation = run_clue(
        data,
        annotation,
        repeats=9,
        k_range=range(2, 11),
        clustering_method="kmeans",
        alpha=0.5,
        random_seed=1,
    )
    assert evaluation.best_k != 10


def test_missing_values_are_rejected(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    data = data.copy()
    data.iloc[3, 1] = np.nan
    with pytest.raises(InvalidTimeCourseError):
        run_clue(data, three_shape_annotation, repeats=1, k_range=range(2, 4))


def test_constant_row_is_rejected_by_default(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    data = data.copy()
    data.iloc[0] = 1.5
    with pytest.raises(DegenerateRowError) as excinfo:
        run_clue(data, three_shape_annotation, repeats=1, k_range=range(2, 4))
    assert excinfo.value.row_ids == ["p_1"]


def test_constant_row_can_be_zeroed(three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    data = data.copy()
    data.iloc[0] = 1.5
    evaluation = run_clue(
        data,
        three_shape_annotation,
        repeats=1,
        k_range=range(2, 4),
        clustering_method="kmeans",
        zero_variance="zero",
        random_seed=0,
    )
    assert (evaluation.time_course.loc["p_1"] == 0.0).all()


@pytest.mark.parametrize("k_range", [[1, 2, 3], [2, 500], []])
def test_invalid_k_range(three_shape_data, three_shape_annotation, k_range) -> None:
    data, _ = three_shape_data
    with pytest.raises(ValueError):
        run_clue(data, three_shape_annotation, repeats=1, k_range=k_range)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(repeats=0),
        dict(alpha=-1.0),
        dict(effective_size=(10, 5)),
        dict(pvalue_cutoff=0.0),
    ],
)
def test_invalid_parameters(three_shape_data, three_shape_annotation, kwargs) -> None:
    data, _ = three_shape_data
    with pytest.raises(ValueError):
        run_clue(data, three_shape_annotation, k_range=range(2, 4), **kwargs)


@pytest.mark.parametrize("n_jobs", [1, 2])
def test_iteration_cap_warns_once_in_caller(
    three_shape_data, three_shape_annotation, n_jobs
) -> None:
    data, _ = three_shape_data
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        evaluation = run_clue(
            data,
            three_shape_annotation,
            repeats=2,
            k_range=range(2, 5),
            clustering_method="cmeans",
            max_iter=2,
            random_seed=0,
            n_jobs=n_jobs,
        )

    convergence = [w for w in caught if issubclass(w.category, ConvergenceWarning)]
    assert len(convergence) == 1
    assert "did not converge within 2 iterations" in str(convergence[0].message)
    assert evaluation.evaluation_matrix.shape == (2, 3)
