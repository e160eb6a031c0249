"""Synthetic data generators."""

from .temporal import simulate_annotation, simulate_time_course

__all__ = ["simulate_time_course", "simulate_annotation"]
