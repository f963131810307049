# =============================================================================
# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================
# SCRIPT  : main.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Train an ensemble of LightGBM one-vs-rest immune subtype models.
#
# OVERVIEW:
#   Reads a tab-delimited gene expression matrix and a subtype label table,
#   trains `n` ensemble members on random sample subsets in parallel worker
#   processes, each member holding one cross-validated model per subtype,
#   and reports the genes and boosting rounds of every trained model.
#
# INPUTS  :
#   - <expression>.tsv : genes in rows, samples in columns
#   - <labels>.tsv     : sample IDs in the first column plus a subtype column
#
# OUTPUTS :
#   - <output_dir>/run.log                : Training log.
#   - <output_dir>/training_summary.tsv   : member, subtype, n_genes, n_trees.
#
# USAGE   :
#   python -m immune_classifier.main -i <expression> -l <labels> -o <output_dir> [options]
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
#
# NOTE    :
#   - Requires Python >= 3.9, pandas, numpy, scikit-learn, lightgbm.
#   - Trained models are kept in memory only.
# =============================================================================

import argparse
import logging
from pathlib import Path

import pandas as pd

from immune_classifier.config import (
    DEFAULT_BREAK_VEC,
    DEFAULT_SEED,
    ENSEMBLE_PARAMS,
    ENSEMBLE_PTAIL,
    ENSEMBLE_SIZE,
    NAME,
    NUM_CORES,
    SAMPLE_FRACTION,
)
from immune_classifier.utils.logger import init_logger
from immune_classifier.utils.io import load_expression, load_labels, save_data
from immune_classifier.model.ensemble import fit_ensemble_model


# =============================================================================
# Function: parse_args
# =============================================================================
def parse_args(argv=None):
    """
    Parse command line arguments for input/output files, ensemble and model options.

    Returns
    -------
    argparse.Namespace : Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        prog=f"{NAME}",
        formatter_class=argparse.RawTextHelpFormatter,
        description=f"{NAME}",
    )

    # Input and output parameters
    parser.add_argument(
        "-i",
        "--input_data",
        type=str,
        metavar="PATH",
        help="Tab-delimited expression matrix, genes in rows and samples in columns",
        required=True,
    )
    parser.add_argument(
        "-l",
        "--labels",
        type=str,
        metavar="PATH",
        help="Tab-delimited label table, sample IDs in the first column",
        required=True,
    )
    parser.add_argument(
        "-o",
        "--output_dir",
        type=str,
        metavar="PATH",
        help="Output directory for the run log and training summary",
        required=True,
    )
    parser.add_argument(
        "--label_column",
        type=str,
        help="Column of the label table holding subtypes (default: first column)",
    )

    # Ensemble options
    parser.add_argument(
        "--n_models",
        type=int,
        default=ENSEMBLE_SIZE,
        help=f"Number of ensemble members (default: {ENSEMBLE_SIZE})",
    )
    parser.add_argument(
        "--samp_size",
        type=float,
        default=SAMPLE_FRACTION,
        help=f"Fraction of samples used by each member (default: {SAMPLE_FRACTION})",
    )
    parser.add_argument(
        "--sampling",
        type=str,
        default="stratified",
        choices=["stratified", "random"],
        help="Sampling method for member subsets (default: stratified)",
    )
    parser.add_argument(
        "--ptail",
        type=float,
        default=ENSEMBLE_PTAIL,
        help=f"Gene selection tail proportion (default: {ENSEMBLE_PTAIL})",
    )
    parser.add_argument(
        "--num_cores",
        type=int,
        default=NUM_CORES,
        help=f"Worker processes, one member each (default: {NUM_CORES})",
    )

    # LightGBM options
    parser.add_argument(
        "--max_depth",
        type=int,
        default=ENSEMBLE_PARAMS["max_depth"],
        help=f"Maximum tree depth (default: {ENSEMBLE_PARAMS['max_depth']})",
    )
    parser.add_argument(
        "--learning_rate",
        type=float,
        default=ENSEMBLE_PARAMS["learning_rate"],
        help=f"Learning rate (default: {ENSEMBLE_PARAMS['learning_rate']})",
    )
    parser.add_argument(
        "--num_boost_round",
        type=int,
        default=ENSEMBLE_PARAMS["num_boost_round"],
        help=f"Maximum boosting rounds (default: {ENSEMBLE_PARAMS['num_boost_round']})",
    )
    parser.add_argument(
        "--num_threads",
        type=int,
        default=ENSEMBLE_PARAMS["num_threads"],
        help=f"LightGBM threads per member (default: {ENSEMBLE_PARAMS['num_threads']})",
    )
    parser.add_argument(
        "--nfold",
        type=int,
        default=ENSEMBLE_PARAMS["nfold"],
        help=f"Cross-validation folds (default: {ENSEMBLE_PARAMS['nfold']})",
    )

    # Seed for reproducibility
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help=f"Random seed for member subsets and training (default: {DEFAULT_SEED})",
    )

    return parser.parse_args(argv)


# =============================================================================
# Function: ensemble_summary
# =============================================================================
def ensemble_summary(ensemble):
    """
    Tabulate the trained models of an ensemble.

    Returns
    -------
    pd.DataFrame
        One row per member and subtype with the number of genes used and the
        number of boosting rounds of the refit model.
    """
    rows = []
    for member, models in enumerate(ensemble, start=1):
        for subtype, trained in models.items():
            rows.append(
                {
                    "member": member,
                    "subtype": subtype,
                    "n_genes": len(trained.genes) if trained.genes is not None else 0,
                    "n_trees": trained.model.n_estimators,
                }
            )
    return pd.DataFrame(rows, columns=["member", "subtype", "n_genes", "n_trees"])


# =============================================================================
# Function: main
# =============================================================================
def main(argv=None):
    """
    Main workflow:
    1. Parse command-line arguments
    2. Prepare output directory and logging
    3. Load expression and labels
    4. Train the ensemble
    5. Save the training summary
    """
    args = parse_args(argv)
    output_dir = Path(args.output_dir)

    init_logger(output_dir)
    params = {
        "max_depth": args.max_depth,
        "learning_rate": args.learning_rate,
        "num_boost_round": args.num_boost_round,
        "num_threads": args.num_threads,
        "nfold": args.nfold,
    }
    logging.info("-" * 60)
    logging.info(f"> Expression data             : {args.input_data}")
    logging.info(f"> Labels                      : {args.labels}")
    logging.info(f"> Output directory            : {output_dir}")
    logging.info(f"> Seed                        : {args.seed}")
    logging.info(f"> Ensemble members            : {args.n_models}")
    logging.info(f"> Sample fraction             : {args.samp_size}")
    logging.info(f"> Sampling method             : {args.sampling}")
    logging.info(f"> Gene tail proportion        : {args.ptail}")
    logging.info(f"> Worker processes            : {args.num_cores}")
    logging.info(f"> LightGBM parameters         : {params}")
    logging.info("-" * 60)

    # ------------------------------
    # Load data
    # ------------------------------
    logging.info("##### Data Loading #####")
    expr = load_expression(args.input_data)
    labels = load_labels(args.labels, expr.columns, label_column=args.label_column)
    logging.info(f"> Number of genes  : {expr.shape[0]}")
    logging.info(f"> Number of samples: {expr.shape[1]}")
    logging.info(f"> Distribution of subtypes: \n{labels.value_counts().sort_index()}")

    # ------------------------------
    # Train ensemble
    # ------------------------------
    logging.info("##### Ensemble Training #####")
    ensemble = fit_ensemble_model(
        expr,
        labels.to_numpy(),
        n=args.n_models,
        samp_size=args.samp_size,
        break_vec=DEFAULT_BREAK_VEC,
        params=params,
        ptail=args.ptail,
        num_cores=args.num_cores,
        seed=args.seed,
        sampling=args.sampling,
    )

    summary = ensemble_summary(ensemble)
    save_data(summary, output_dir / "training_summary.tsv")
    logging.info(f"> Trained {len(summary)} models in {len(ensemble)} members")

    logging.info(f"##### Workflow completed! Results saved to: {output_dir} #####")
    return ensemble


# Entry point
if __name__ == "__main__":
    main()
