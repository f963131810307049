# =============================================================================
# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================#
# -*- coding: utf-8 -*-
# =============================================================================
# SCRIPT  : train.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : LightGBM one-vs-rest classifier training, with a fixed round
#           count or with cross-validated early stopping followed by a refit.
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
# =============================================================================

"""
Training module for single subtype models using LightGBM.

Includes:
1. `lgb_params` - Builds the native LightGBM parameter dict from a
   hyperparameter record.
2. `lgb_LGBMClassifier` - Initializes a LightGBM classifier from a
   hyperparameter record.
3. `fit_one_model` - Fits one binary classifier with a fixed round count.
4. `cv_fit_one_model` - Picks the round count by k-fold cross-validation with
   early stopping, then refits on all samples.
"""

import logging
from typing import List, NamedTuple, Optional

import numpy as np
import lightgbm as lgb
from lightgbm import early_stopping

from immune_classifier.config import (
    CV_METRICS,
    CV_PARAMS,
    DEFAULT_BREAK_VEC,
    DEFAULT_SEED,
    EARLY_STOPPING_ROUNDS,
    FIT_ONE_PARAMS,
    MIN_DATA_IN_LEAF,
)
from immune_classifier.data_utils.split import cv_split_func


class TrainedModel(NamedTuple):
    """A fitted classifier bundled with the binning and genes it was trained on."""

    model: lgb.LGBMClassifier
    break_vec: list
    genes: Optional[List[str]]


# -----------------------------------------------------------------------------
# Function: lgb_params
# -----------------------------------------------------------------------------
def lgb_params(params, seed=DEFAULT_SEED):
    """
    Translate a hyperparameter record into native LightGBM parameters.

    Parameters
    ----------
    params : dict
        Hyperparameter record with 'max_depth', 'learning_rate' and
        'num_threads'; 'min_data_in_leaf' is optional.
    seed : int
        Seed for every random component of LightGBM.

    Returns
    -------
    dict
        Parameters accepted by `lgb.cv` and `lgb.train`. Trees are limited to
        2 ** max_depth leaves so depth is the effective complexity control.
    """
    max_depth = int(params["max_depth"])
    return {
        "objective": "binary",
        "boosting_type": "gbdt",
        "metric": list(CV_METRICS),
        "learning_rate": params["learning_rate"],
        "max_depth": max_depth,
        "num_leaves": max(2, 2**max_depth),
        "min_data_in_leaf": int(params.get("min_data_in_leaf", MIN_DATA_IN_LEAF)),
        "num_threads": int(params["num_threads"]),
        "seed": seed,
        "deterministic": True,
        "force_row_wise": True,
        "verbose": -1,
    }


# -----------------------------------------------------------------------------
# Function: lgb_LGBMClassifier
# -----------------------------------------------------------------------------
def lgb_LGBMClassifier(params, n_estimators, seed=DEFAULT_SEED):
    """
    Initialize and return a LightGBM LGBMClassifier for a hyperparameter record.

    Parameters
    ----------
    params : dict
        Hyperparameter record (see `lgb_params`).
    n_estimators : int
        Number of boosting rounds.
    seed : int
        Random seed.

    Returns
    -------
    model : lgb.LGBMClassifier
        Configured LightGBM classifier instance.
    """
    native = lgb_params(params, seed)
    model = lgb.LGBMClassifier(
        boosting_type=native["boosting_type"],
        objective=native["objective"],
        n_estimators=int(n_estimators),
        learning_rate=native["learning_rate"],
        max_depth=native["max_depth"],
        num_leaves=native["num_leaves"],
        min_child_samples=native["min_data_in_leaf"],
        n_jobs=native["num_threads"],
        random_state=seed,
        deterministic=native["deterministic"],
        force_row_wise=native["force_row_wise"],
        verbose=native["verbose"],
    )
    return model


# -----------------------------------------------------------------------------
# Function: fit_one_model
# -----------------------------------------------------------------------------
def fit_one_model(
    Xbin, Ybin, params=FIT_ONE_PARAMS, break_vec=DEFAULT_BREAK_VEC, seed=DEFAULT_SEED
):
    """
    Train a single subtype model with a fixed number of boosting rounds.

    Parameters
    ----------
    Xbin : pd.DataFrame or np.ndarray
        Binned feature matrix, samples (rows) x genes (columns).
    Ybin : array-like
        Binary labels; the caller is responsible for binarization.
    params : dict
        Hyperparameter record, 'num_boost_round' gives the round count.
    break_vec : sequence of float
        Break points used to bin `Xbin`, stored with the model.
    seed : int
        Random seed.

    Returns
    -------
    TrainedModel
        Fitted classifier, break points, and gene names when `Xbin` is a
        DataFrame (None otherwise).
    """
    model = lgb_LGBMClassifier(params, params["num_boost_round"], seed)
    model.fit(Xbin, np.asarray(Ybin))

    genes = list(Xbin.columns) if hasattr(Xbin, "columns") else None
    return TrainedModel(model=model, break_vec=list(break_vec), genes=genes)


# -----------------------------------------------------------------------------
# Function: cv_best_iteration
# -----------------------------------------------------------------------------
def cv_best_iteration(Xbin, Ybin, params=CV_PARAMS, seed=DEFAULT_SEED):
    """
    Run stratified k-fold cross-validation with early stopping.

    Early stopping watches validation AUC and stops after
    EARLY_STOPPING_ROUNDS rounds without improvement; binary error is
    tracked alongside.

    Parameters
    ----------
    Xbin : pd.DataFrame or np.ndarray
        Binned feature matrix, samples (rows) x genes (columns).
    Ybin : array-like
        Binary labels containing both classes.
    params : dict
        Hyperparameter record including 'nfold' and 'num_boost_round'.
    seed : int
        Seed for fold assignment and LightGBM.

    Returns
    -------
    best_iteration : int
        Round count with the best mean validation AUC, in
        [1, num_boost_round].
    cv_results : dict
        Per-round mean and standard deviation of every tracked metric,
        truncated at the best iteration.
    """
    nfold = int(params["nfold"])
    if nfold < 2:
        raise ValueError(f"Cross-validation needs nfold >= 2, got {nfold}")

    Ybin = np.asarray(Ybin)
    classes, counts = np.unique(Ybin, return_counts=True)
    if classes.size != 2:
        raise ValueError(
            f"Cross-validation needs both classes in the labels, found {classes.tolist()}"
        )
    if counts.max() < nfold:
        raise ValueError(
            f"Too few samples for {nfold}-fold cross-validation: class counts {counts.tolist()}"
        )

    folds = cv_split_func(
        Xbin, Ybin, sampling="stratified", fold=nfold, random_state=seed
    )
    dtrain = lgb.Dataset(Xbin, label=Ybin, free_raw_data=False)
    cv_results = lgb.cv(
        lgb_params(params, seed),
        dtrain,
        num_boost_round=int(params["num_boost_round"]),
        folds=folds,
        callbacks=[
            early_stopping(
                EARLY_STOPPING_ROUNDS, first_metric_only=True, verbose=False
            )
        ],
    )

    # lgb.cv truncates the history at the best iteration
    best_iteration = len(next(iter(cv_results.values())))
    return best_iteration, cv_results


# -----------------------------------------------------------------------------
# Function: cv_fit_one_model
# -----------------------------------------------------------------------------
def cv_fit_one_model(
    Xbin,
    Ybin,
    params=CV_PARAMS,
    break_vec=DEFAULT_BREAK_VEC,
    genes=None,
    seed=DEFAULT_SEED,
):
    """
    Train a single subtype model using cross-validation to pick the round count.

    Parameters
    ----------
    Xbin : pd.DataFrame or np.ndarray
        Binned and filtered feature matrix, samples (rows) x genes (columns).
    Ybin : array-like
        Binary subtype-vs-rest labels.
    params : dict
        Hyperparameter record including 'nfold'.
    break_vec : sequence of float
        Break points used to bin `Xbin`.
    genes : list, optional
        Gene identifiers of the columns of `Xbin`.
    seed : int
        Random seed.

    Returns
    -------
    TrainedModel
        Classifier refit on all samples with the cross-validated best
        iteration, break points, and genes.
    """
    best_iteration, cv_results = cv_best_iteration(Xbin, Ybin, params, seed)
    final_auc = [v for k, v in cv_results.items() if k.endswith("auc-mean")]
    logging.debug(
        f"> Best iteration: {best_iteration}"
        + (f" (CV AUC {round(final_auc[0][-1], 4)})" if final_auc else "")
    )

    model = lgb_LGBMClassifier(params, best_iteration, seed)
    model.fit(Xbin, Ybin)

    if genes is None and hasattr(Xbin, "columns"):
        genes = list(Xbin.columns)
    return TrainedModel(model=model, break_vec=list(break_vec), genes=genes)
