# =============================================================================
# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================
# SCRIPT  : io.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Input/output utility functions for expression matrices, subtype
#           labels, and training summary tables
#
# OVERVIEW:
#   Reads tab-delimited expression matrices (genes x samples) and subtype
#   label tables, aligns labels to the expression sample order, and writes
#   pandas DataFrames as tab-delimited tables.
#
# INPUTS  :
#   - <expression>.tsv : genes in rows, samples in columns, gene IDs in the
#                        first column
#   - <labels>.tsv     : sample IDs in the first column, subtype label column
#
# OUTPUTS :
#   - Tab-delimited tables for DataFrames
#
# USAGE   :
#   expr = load_expression("expr.tsv")
#   labels = load_labels("labels.tsv", expr.columns, label_column="Subtype")
#   save_data(summary, "training_summary.tsv")
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
#
# NOTE    :
#   - Overwrites existing files at the same path.
# =============================================================================

from typing import Optional, Sequence

import pandas as pd


# -----------------------------------------------------------------------------
# Function: load_expression
# -----------------------------------------------------------------------------
def load_expression(path: str) -> pd.DataFrame:
    """
    Load a tab-delimited gene expression matrix.

    Parameters
    ----------
    path : str
        File with gene identifiers in the first column and one column per
        sample.

    Returns
    -------
    pd.DataFrame
        Numeric expression values, genes (rows) x samples (columns).
    """
    data = pd.read_csv(path, sep="\t", header=0, index_col=0)
    data.index = data.index.astype(str)
    data.columns = data.columns.astype(str)
    return data.apply(pd.to_numeric, errors="raise")


# -----------------------------------------------------------------------------
# Function: load_labels
# -----------------------------------------------------------------------------
def load_labels(
    path: str, samples: Sequence[str], label_column: Optional[str] = None
) -> pd.Series:
    """
    Load subtype labels and align them to the given sample order.

    Parameters
    ----------
    path : str
        Tab-delimited file with sample identifiers in the first column.
    samples : sequence of str
        Sample order to align to, usually the expression matrix columns.
    label_column : str, optional
        Column holding the subtype labels; defaults to the first data column.

    Returns
    -------
    pd.Series
        Subtype label per sample, indexed by sample ID.

    Raises
    ------
    ValueError
        If any sample has no label.
    """
    table = pd.read_csv(path, sep="\t", header=0, index_col=0)
    table.index = table.index.astype(str)
    if label_column is None:
        label_column = table.columns[0]

    labels = table[label_column].reindex(list(samples))
    missing = labels.index[labels.isna()].tolist()
    if missing:
        raise ValueError(
            f"{len(missing)} samples have no '{label_column}' label, e.g. {missing[:5]}"
        )
    return labels


# -----------------------------------------------------------------------------
# Function: save_data
# -----------------------------------------------------------------------------
def save_data(data: pd.DataFrame, path: str) -> None:
    """
    Save a pandas DataFrame to a tab-delimited file.

    Parameters
    ----------
    data : pd.DataFrame
        The DataFrame to be saved.
    path : str
        File path to save the table.

    Notes
    -----
    - Saves with header and without row indices.
    - Overwrites existing files at the same path.
    """
    data.to_csv(path, sep="\t", index=False, header=True)
