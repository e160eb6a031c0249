"""Enrichment statistics for scoring partitions.

Modules
-------
fisher
    One-sided Fisher's exact test and Fisher's combined probability method
scorer
    Per-cluster enriched groups and the combined p-value of a partition
"""

from .fisher import combine_fisher_pvalues, fisher_exact_pvalue, fisher_exact_pvalues
from .scorer import EnrichmentResult, score_enrichment

__all__ = [
    "fisher_exact_pvalue",
    "fisher_exact_pvalues",
    "combine_fisher_pvalues",
    "EnrichmentResult",
    "score_enrichment",
]
