# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================
# # -*- coding: utf-8 -*-
# =============================================================================
# SCRIPT  : config.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Default hyperparameters, binning thresholds, and model metadata
#           for the LightGBM-based immune subtype ensemble.
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
# =============================================================================

"""
Configuration module for the immune subtype boost-tree ensemble.

Contains default hyperparameter records, the quantile break points used for
binning expression, cross-validation settings, and model metadata.
Modify these parameters to adjust training behavior.
"""

# -----------------------------
# Subtype definition
# -----------------------------
# Number of immune subtypes (C1-C6) the ensemble is designed around.
# Training iterates over the labels actually observed; a warning is logged
# when their number differs from this value.
N_SUBTYPES: int = 6

# -----------------------------
# Binning configuration
# -----------------------------
# Within-sample quantile break points used to bin expression values
DEFAULT_BREAK_VEC: tuple = (0.0, 0.25, 0.5, 0.75, 1.0)

# Proportion of genes taken from each tail of the subtype-vs-rest difference
DEFAULT_PTAIL: float = 0.05

# Tail proportion used when training ensembles
ENSEMBLE_PTAIL: float = 0.01

# -----------------------------
# Training configuration
# -----------------------------
# Stop cross-validation after this many rounds without AUC improvement
EARLY_STOPPING_ROUNDS: int = 2

# Metrics tracked during cross-validation; the first one drives early stopping
CV_METRICS: list = ["auc", "binary_error"]

# Minimum number of samples per leaf (LightGBM's own default of 20 is too
# large for cohorts of a few dozen samples)
MIN_DATA_IN_LEAF: int = 2

# Random seed for reproducibility
DEFAULT_SEED: int = 132

# Hyperparameters for a single fixed-round fit
FIT_ONE_PARAMS: dict = {
    "max_depth": 2,
    "learning_rate": 0.5,
    "num_boost_round": 33,
    "num_threads": 5,
}

# Hyperparameters for cross-validated fits and per-subtype training
CV_PARAMS: dict = {
    "max_depth": 2,
    "learning_rate": 0.5,
    "num_boost_round": 100,
    "num_threads": 5,
    "nfold": 5,
}

# Hyperparameters for ensemble members
ENSEMBLE_PARAMS: dict = {
    "max_depth": 5,
    "learning_rate": 0.5,
    "num_boost_round": 100,
    "num_threads": 5,
    "nfold": 5,
}

# Ensemble size, sample retention and worker count
ENSEMBLE_SIZE: int = 5
SAMPLE_FRACTION: float = 0.7
NUM_CORES: int = 2

# -----------------------------
# Model metadata
# -----------------------------
# Model name identifier
NAME: str = "immune_subtype_ensemble"

# Description
MODEL_DESCRIPTION: str = (
    "Ensemble of LightGBM one-vs-rest classifiers trained with cross-validated "
    "early stopping. Predicts cancer immune subtypes from binned gene expression."
)

# -----------------------------
# Notes
# -----------------------------
# - num_boost_round is an upper bound; cross-validation picks the final count.
# - Lower ENSEMBLE_PTAIL keeps fewer genes per subtype model.
