# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================
# -*- coding: utf-8 -*-
# =============================================================================
# SCRIPT  : split.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Provide ensemble subsampling and cross-validation split functions
#           supporting both random and stratified sampling strategies.
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
# =============================================================================

"""
Data splitting utilities for the immune subtype classifier.

This module includes:
1. `subsample_func` - draw the sample subset used by one ensemble member,
   with optional stratification on the subtype labels.
2. `cv_split_func` - generate cross-validation fold indices using random
   or stratified K-Folds.
"""

import logging
import math

import numpy as np
from sklearn.model_selection import train_test_split, StratifiedKFold, KFold


# -----------------------------------------------------------------------------
# Function: subsample_func
# -----------------------------------------------------------------------------
def subsample_func(labels, samp_size, sampling="stratified", random_state=132):
    """
    Draw sample indices without replacement for one ensemble member.

    Parameters
    ----------
    labels : array-like
        Subtype label of every sample.
    samp_size : float
        Fraction of samples to retain, in (0, 1].
    sampling : str
        Sampling method: 'random' or 'stratified'.
    random_state : int, optional
        Random seed for reproducibility (default: 132).

    Returns
    -------
    idx : np.ndarray
        Sorted positional indices of the retained samples, of length
        floor(samp_size * n_samples). Every distinct label keeps at least
        one sample.

    Raises
    ------
    ValueError
        If the subset is too small to hold one sample of every label.
    """
    if sampling not in ("random", "stratified"):
        raise ValueError(f"Unknown sampling method: {sampling!r}")
    if not 0 < samp_size <= 1:
        raise ValueError(f"samp_size must be in (0, 1], got {samp_size}")

    labels = np.asarray(labels)
    n_samples = len(labels)
    n_keep = int(math.floor(samp_size * n_samples))
    if n_keep < 2:
        raise ValueError(
            f"samp_size={samp_size} keeps {n_keep} of {n_samples} samples, need at least 2"
        )

    all_idx = np.arange(n_samples)
    if n_keep == n_samples:
        return all_idx

    classes, inverse, counts = np.unique(
        labels, return_inverse=True, return_counts=True
    )
    n_classes = len(classes)
    if n_keep < n_classes:
        raise ValueError(
            f"samp_size={samp_size} keeps {n_keep} samples, fewer than the "
            f"{n_classes} subtypes that every member must contain"
        )

    # Stratification needs two members per class and room for every class
    # on both sides of the split
    if sampling == "stratified" and (
        counts.min() < 2 or min(n_keep, n_samples - n_keep) < n_classes
    ):
        logging.warning(
            "> Stratified subsampling not possible for these labels, using random sampling"
        )
        sampling = "random"

    rng = np.random.default_rng(random_state)
    if sampling == "random":
        # One sample of every class first, the rest uniformly
        firsts = np.array(
            [rng.choice(np.flatnonzero(inverse == k)) for k in range(n_classes)]
        )
        rest = rng.choice(
            np.setdiff1d(all_idx, firsts), size=n_keep - n_classes, replace=False
        )
        idx = np.concatenate([firsts, rest])
    else:
        idx, _ = train_test_split(
            all_idx,
            train_size=n_keep,
            stratify=labels,
            shuffle=True,
            random_state=random_state,
        )
        # Rounding can leave a rare class out; swap it in for a sample of a
        # class that is present more than once
        for k in np.setdiff1d(np.arange(n_classes), inverse[idx]):
            kept = np.bincount(inverse[idx], minlength=n_classes)
            donors = np.flatnonzero(kept[inverse[idx]] > 1)
            idx[rng.choice(donors)] = rng.choice(np.flatnonzero(inverse == k))

    return np.sort(idx)


# -----------------------------------------------------------------------------
# Function: cv_split_func
# -----------------------------------------------------------------------------
def cv_split_func(data, labels, sampling, fold, random_state=132):
    """
    Generate cross-validation splits from the dataset using random or stratified sampling.

    Parameters
    ----------
    data : pd.DataFrame or np.ndarray
        Input feature dataset, samples in rows.
    labels : array-like
        Binary labels used for stratified sampling.
    sampling : str
        Sampling method: 'random' or 'stratified'.
    fold : int
        Number of folds for cross-validation.
    random_state : int, optional
        Random seed for reproducibility (default: 132).

    Returns
    -------
    cv_split : list
        List of (train_index, val_index) tuples, one per fold.
    """
    if sampling == "random":
        cv_split = KFold(n_splits=fold, shuffle=True, random_state=random_state).split(
            data
        )
    else:
        cv_split = StratifiedKFold(
            n_splits=fold, shuffle=True, random_state=random_state
        ).split(data, labels)

    return list(cv_split)
