from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from clue_analysis import clust_optimal, run_clue  # noqa: E402
from clue_analysis.plot import plot_cluster_profiles, plot_evaluation  # noqa: E402


def test_evaluation_and_profile_plots(tmp_path, three_shape_data, three_shape_annotation) -> None:
    data, _ = three_shape_data
    evaluation = run_clue(
        data,
        three_shape_annotation,
        repeats=2,
        k_range=range(2, 6),
        clustering_method="kmeans",
        random_seed=0,
    )
    optimal = clust_optimal(evaluation, repeats=2, random_seed=0)

    fig = plot_evaluation(evaluation)
    ax = fig.axes[0]
    assert [t.get_text() for t in ax.get_xticklabels()] == ["k=2", "k=3", "k=4", "k=5"]
    fig.savefig(tmp_path / "evaluation.png")
    plt.close(fig)

    raw = plot_evaluation(evaluation, normalized=False)
    plt.close(raw)

    fig = plot_cluster_profiles(evaluation.time_course, optimal.partition, ncols=2)
    titles = [ax.get_title() for ax in fig.axes if ax.get_title()]
    assert len(titles) == optimal.k
    assert all(title.startswith("Cluster ") for title in titles)
    fig.savefig(tmp_path / "profiles.png")
    plt.close(fig)

    assert (tmp_path / "evaluation.png").exists()
    assert (tmp_path / "profiles.png").exists()
