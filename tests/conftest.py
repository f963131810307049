"""Shared pytest fixtures for immune subtype classifier tests."""

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


SUBTYPE_ORDER = [3, 1, 2, 6, 5, 4]


def make_expression(n_genes=100, n_samples=40, seed=42):
    """Expression matrix where each subtype over-expresses its own block of 5 genes."""
    rng = np.random.default_rng(seed)
    labels = np.array((SUBTYPE_ORDER * (n_samples // 6 + 1))[:n_samples])
    values = rng.normal(size=(n_genes, n_samples))
    for k, subtype in enumerate(sorted(SUBTYPE_ORDER)):
        values[k * 10 : k * 10 + 5][:, labels == subtype] += 3.0
    expr = pd.DataFrame(
        values,
        index=[f"GENE{i}" for i in range(n_genes)],
        columns=[f"S{j}" for j in range(n_samples)],
    )
    return expr, labels


@pytest.fixture
def expression_data():
    """100 genes x 40 samples with labels in {1..6}, first seen in order 3,1,2,6,5,4."""
    return make_expression()


@pytest.fixture
def small_params() -> dict:
    """Quick single-threaded hyperparameters."""
    return {
        "max_depth": 2,
        "learning_rate": 0.5,
        "num_boost_round": 50,
        "num_threads": 1,
        "nfold": 3,
    }


@pytest.fixture
def binary_data(expression_data):
    """Binned subtype-1-vs-rest training set."""
    from immune_classifier.data_utils.proc import train_data_proc

    expr, labels = expression_data
    return train_data_proc(expr, labels, subtype=1, ptail=0.05)


@pytest.fixture
def temp_output_dir(tmp_path):
    """Provide a temporary output directory."""
    output_dir = tmp_path / "output"
    output_dir.mkdir()
    return output_dir
