from .evaluation_plots import plot_cluster_profiles, plot_evaluation

__all__ = ["plot_evaluation", "plot_cluster_profiles"]
