import os
import sys

import pytest

# Ensure the project root is on sys.path so tests can import packages like
# `clue_analysis` and the shared `tests.clue_test_utils` helpers when
# running directly from the repository.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(autouse=True)
def _sequential_repeats(monkeypatch):
    """Run repeats in-process unless a test passes ``n_jobs`` explicitly."""
    monkeypatch.setenv("CLUE_N_JOBS", "1")


@pytest.fixture
def three_shape_data():
    """120 x 4 matrix from three profile shapes (40 rows each) plus labels."""
    from clue_analysis.simulation import simulate_time_course
    from tests.clue_test_utils import SHAPES

    return simulate_time_course(templates=SHAPES, group_size=40, noise_sd=0.1, seed=7)


@pytest.fixture
def three_shape_annotation(three_shape_data):
    """One exact group per shape (KS_1..KS_3) plus 20 random noise groups."""
    from clue_analysis.simulation import simulate_annotation

    data, labels = three_shape_data
    return simulate_annotation(
        data.index, labels, n_noise_groups=20, noise_group_size=10, seed=11
    )
