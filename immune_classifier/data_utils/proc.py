# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================
# -*- coding: utf-8 -*-
# =============================================================================
# SCRIPT  : proc.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Prepare one-vs-rest training data for a single immune subtype:
#           within-sample quantile binning, label binarization, and
#           tail-based gene selection.
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
# =============================================================================

"""
Data preparation utilities for the immune subtype classifier.

This module includes:
1. `check_break_vec` - validate a quantile break-point vector.
2. `bin_expression` - bin each sample's expression into its own quantile bins.
3. `binarize_labels` - convert multiclass labels into subtype-vs-rest labels.
4. `select_genes` - keep genes in the tails of the subtype-vs-rest difference.
5. `train_data_proc` - run all of the above for one subtype.

Expression matrices are genes (rows) x samples (columns); the prepared
feature matrix is transposed to samples x genes for LightGBM.
"""

from typing import List, NamedTuple

import numpy as np
import pandas as pd

from immune_classifier.config import DEFAULT_BREAK_VEC, DEFAULT_PTAIL


class PreparedData(NamedTuple):
    """Binned one-vs-rest training data for one subtype."""

    features: pd.DataFrame
    labels: np.ndarray
    genes: List[str]


# -----------------------------------------------------------------------------
# Function: as_expression_frame
# -----------------------------------------------------------------------------
def as_expression_frame(Xs):
    """
    Return the expression matrix as a DataFrame, genes (rows) x samples (columns).

    Numpy input gets positional gene names ('gene_0', 'gene_1', ...) and
    positional sample names.
    """
    if isinstance(Xs, pd.DataFrame):
        return Xs
    Xs = np.asarray(Xs, dtype=float)
    if Xs.ndim != 2:
        raise ValueError(f"Expression matrix must be 2-D, got shape {Xs.shape}")
    return pd.DataFrame(
        Xs,
        index=[f"gene_{i}" for i in range(Xs.shape[0])],
        columns=[f"sample_{j}" for j in range(Xs.shape[1])],
    )


# -----------------------------------------------------------------------------
# Function: check_break_vec
# -----------------------------------------------------------------------------
def check_break_vec(break_vec):
    """
    Validate a break-point vector and return it as a float array.

    The vector must hold at least two strictly increasing values, starting
    at 0 and ending at 1.
    """
    breaks = np.asarray(break_vec, dtype=float)
    if breaks.ndim != 1 or breaks.size < 2:
        raise ValueError("break_vec must contain at least two break points")
    if np.any(np.diff(breaks) <= 0):
        raise ValueError(f"break_vec must be strictly increasing, got {list(breaks)}")
    if breaks[0] != 0.0 or breaks[-1] != 1.0:
        raise ValueError(f"break_vec must span [0, 1], got {list(breaks)}")
    return breaks


# -----------------------------------------------------------------------------
# Function: bin_expression
# -----------------------------------------------------------------------------
def bin_expression(Xs, break_vec=DEFAULT_BREAK_VEC):
    """
    Bin every sample into the quantile bins of its own expression values.

    Parameters
    ----------
    Xs : pd.DataFrame
        Expression matrix, genes (rows) x samples (columns).
    break_vec : sequence of float
        Quantile break points in [0, 1].

    Returns
    -------
    Xbin : pd.DataFrame
        Same shape as `Xs`, holding bin codes 1 .. len(break_vec) - 1.
        Missing values stay missing.
    """
    breaks = check_break_vec(break_vec)
    Xs = as_expression_frame(Xs)

    def _bin_column(col):
        values = col.to_numpy(dtype=float)
        missing = np.isnan(values)
        if missing.all():
            return pd.Series(np.nan, index=col.index)
        # Interior thresholds only; the lowest bin includes its left edge
        inner = np.nanquantile(values, breaks)[1:-1]
        codes = np.searchsorted(inner, values, side="left") + 1.0
        codes[missing] = np.nan
        return pd.Series(codes, index=col.index)

    return Xs.apply(_bin_column, axis=0)


# -----------------------------------------------------------------------------
# Function: binarize_labels
# -----------------------------------------------------------------------------
def binarize_labels(Ys, subtype):
    """Return 1 where the label equals `subtype` and 0 elsewhere."""
    return (np.asarray(Ys) == subtype).astype(int)


# -----------------------------------------------------------------------------
# Function: select_genes
# -----------------------------------------------------------------------------
def select_genes(Xbin, Ybin, ptail=DEFAULT_PTAIL):
    """
    Select genes whose binned expression differs most between the subtype
    and the remaining samples.

    Parameters
    ----------
    Xbin : pd.DataFrame
        Binned expression, genes (rows) x samples (columns).
    Ybin : np.ndarray
        Binary subtype-vs-rest labels.
    ptail : float
        Proportion of genes taken from each tail of the difference
        distribution, in [0, 0.5).

    Returns
    -------
    genes : list
        Selected gene identifiers, in matrix order. Never empty: the genes
        with the smallest and largest difference are always kept.
    """
    if not 0 <= ptail < 0.5:
        raise ValueError(f"ptail must be in [0, 0.5), got {ptail}")

    Ybin = np.asarray(Ybin).astype(bool)
    in_group = Xbin.loc[:, Ybin].mean(axis=1)
    out_group = Xbin.loc[:, ~Ybin].mean(axis=1)
    diffs = (in_group - out_group).to_numpy(dtype=float)

    if np.isnan(diffs).all():
        raise ValueError("No gene has a defined subtype-vs-rest difference")

    low, high = np.nanquantile(diffs, [ptail, 1.0 - ptail])
    keep = (diffs <= low) | (diffs >= high)
    return Xbin.index[keep].tolist()


# -----------------------------------------------------------------------------
# Function: train_data_proc
# -----------------------------------------------------------------------------
def train_data_proc(Xs, Ys, subtype, ptail=DEFAULT_PTAIL, break_vec=DEFAULT_BREAK_VEC):
    """
    Build the one-vs-rest training set for one subtype.

    Parameters
    ----------
    Xs : pd.DataFrame or np.ndarray
        Expression matrix, genes (rows) x samples (columns).
    Ys : array-like
        Multiclass subtype label for every sample (column of `Xs`).
    subtype : label
        Target subtype; its samples become the positive class.
    ptail : float
        Tail proportion used for gene selection.
    break_vec : sequence of float
        Quantile break points used for binning.

    Returns
    -------
    PreparedData
        `features` is samples x selected genes, `labels` the binary vector,
        `genes` the selected gene list.
    """
    Xs = as_expression_frame(Xs)
    Ys = np.asarray(Ys)
    if Ys.shape[0] != Xs.shape[1]:
        raise ValueError(
            f"Got {Ys.shape[0]} labels for {Xs.shape[1]} samples; they must match"
        )

    Xbin = bin_expression(Xs, break_vec)
    Ybin = binarize_labels(Ys, subtype)
    if Ybin.sum() == 0:
        raise ValueError(f"No samples carry subtype {subtype!r}")
    genes = select_genes(Xbin, Ybin, ptail)

    features = Xbin.loc[genes].T
    return PreparedData(features=features, labels=Ybin, genes=genes)
