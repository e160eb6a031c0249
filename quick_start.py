import logging

import numpy as np
from sklearn.metrics import adjusted_rand_score

# Import the necessary functions from your library
from clue_analysis import clust_optimal, run_clue
from clue_analysis.simulation import simulate_annotation, simulate_time_course


def main():
    """
    A small, self-contained example of the full CLUE pipeline.
    """
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("--- Starting CLUE Pipeline ---")

    # 1. --- Data Generation ---
    data, y_true = simulate_time_course(
        n_groups=4, group_size=50, n_timepoints=6, noise_sd=0.8, seed=42
    )
    annotation = simulate_annotation(
        data.index,
        y_true,
        true_group_size=30,
        n_noise_groups=20,
        noise_group_size=10,
        seed=42,
    )
    print(
        f"\nStep 1: Generated {data.shape[0]} time-course profiles over {data.shape[1]} time points."
    )
    print(f"Ground truth contains {len(np.unique(y_true))} profile groups.")
    print(f"Annotation reference holds {len(annotation)} groups.")

    # --- Execute the Core Pipeline ---
    # 2. run_clue()
    evaluation = run_clue(
        data,
        annotation,
        repeats=5,
        k_range=range(2, 9),
        clustering_method="cmeans",
        random_seed=42,
    )
    print(f"\nStep 2: Evaluated k={min(evaluation.k_range)}..{max(evaluation.k_range)}.")
    print(evaluation.normalized_matrix.median(axis=0).round(3).to_string())

    # 3. clust_optimal()
    optimal = clust_optimal(evaluation, repeats=5, random_seed=42)
    print(
        f"Step 3: Retained restart {optimal.best_repeat} at k={optimal.k} "
        f"(combined p={optimal.combined_pvalue:.3g})."
    )

    # --- Display Results ---
    print("\n--- Analysis Complete ---")
    sizes = optimal.partition.cluster_sizes
    for cluster in range(optimal.k):
        groups = [g for g, _ in optimal.enrichment.enriched_groups(cluster)]
        print(f"  - Cluster {cluster + 1}: {sizes[cluster]} rows, enriched: {groups or 'none'}")

    # --- Validation Check ---
    ari_score = adjusted_rand_score(y_true, optimal.partition.assignment.to_numpy())
    print(f"\nValidation: Adjusted Rand Index (ARI) = {ari_score:.4f}")
    print("(1.0 is a perfect match, 0.0 is random assignment)")


if __name__ == "__main__":
    main()
