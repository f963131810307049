# =============================================================================
# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================#
# -*- coding: utf-8 -*-
# =============================================================================
# SCRIPT  : ensemble.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Train one cross-validated model per immune subtype, and ensembles
#           of such model sets on random sample subsets in worker processes.
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
# =============================================================================

"""
Subtype and ensemble training for the immune subtype classifier.

Includes:
1. `fit_subtype_model` - One cross-validated subtype-vs-rest model per subtype.
2. `make_ensemble_tasks` - Draws the sample subset and seed of every member.
3. `fit_ensemble_model` - Trains all members on a process pool and returns
   them in member order.
"""

import logging
import multiprocessing
from concurrent.futures import ProcessPoolExecutor
from typing import Any, List, NamedTuple

import numpy as np
import pandas as pd

from immune_classifier.config import (
    CV_PARAMS,
    DEFAULT_BREAK_VEC,
    DEFAULT_PTAIL,
    DEFAULT_SEED,
    ENSEMBLE_PARAMS,
    ENSEMBLE_PTAIL,
    ENSEMBLE_SIZE,
    N_SUBTYPES,
    NUM_CORES,
    SAMPLE_FRACTION,
)
from immune_classifier.data_utils.proc import (
    as_expression_frame,
    check_break_vec,
    train_data_proc,
)
from immune_classifier.data_utils.split import subsample_func
from immune_classifier.model.train import cv_fit_one_model
from immune_classifier.utils.logger import init_console_logger

# LightGBM seeds are C ints
_MAX_SEED = 2**31 - 1


class EnsembleTask(NamedTuple):
    """Work descriptor for one ensemble member."""

    member: int
    sample_idx: np.ndarray
    subtypes: List[Any]
    params: dict
    break_vec: list
    ptail: float
    seed: int


# -----------------------------------------------------------------------------
# Function: fit_subtype_model
# -----------------------------------------------------------------------------
def fit_subtype_model(
    Xs,
    Ys,
    break_vec=DEFAULT_BREAK_VEC,
    params=CV_PARAMS,
    ptail=DEFAULT_PTAIL,
    subtypes=None,
    seed=DEFAULT_SEED,
):
    """
    Train one cross-validated subtype-vs-rest model per subtype.

    Parameters
    ----------
    Xs : pd.DataFrame or np.ndarray
        Expression matrix, genes (rows) x samples (columns).
    Ys : array-like
        Multiclass subtype label of every sample.
    break_vec : sequence of float
        Quantile break points used for binning.
    params : dict
        Hyperparameter record including 'nfold'.
    ptail : float
        Tail proportion used for gene selection.
    subtypes : list, optional
        Subtypes to train, in order. Defaults to the distinct labels of `Ys`
        in order of first appearance.
    seed : int
        Random seed for fold assignment and LightGBM.

    Returns
    -------
    models : dict
        Subtype label -> TrainedModel, in training order.

    Notes
    -----
    Progress (subtype, features x samples) is reported with `logging.info`;
    it is only visible once the root logger is configured at INFO level,
    e.g. with `utils.logger.init_logger` or `init_console_logger`.
    """
    Xs = as_expression_frame(Xs)
    Ys = np.asarray(Ys)
    if subtypes is None:
        subtypes = pd.unique(Ys).tolist()

    if len(subtypes) != N_SUBTYPES:
        logging.warning(
            f"> Found {len(subtypes)} subtypes, expected {N_SUBTYPES}; "
            "training one model per observed subtype"
        )

    models = {}
    for subtype in subtypes:
        logging.info(f"> Subtype: {subtype}  processing data...")
        dat = train_data_proc(Xs, Ys, subtype=subtype, ptail=ptail, break_vec=break_vec)
        n_samples, n_genes = dat.features.shape
        logging.info(f">    training using {n_genes} features x {n_samples} samples")
        models[subtype] = cv_fit_one_model(
            dat.features, dat.labels, params, break_vec, dat.genes, seed
        )

    return models


# -----------------------------------------------------------------------------
# Function: make_ensemble_tasks
# -----------------------------------------------------------------------------
def make_ensemble_tasks(
    Ys,
    n=ENSEMBLE_SIZE,
    samp_size=SAMPLE_FRACTION,
    break_vec=DEFAULT_BREAK_VEC,
    params=ENSEMBLE_PARAMS,
    ptail=ENSEMBLE_PTAIL,
    seed=None,
    sampling="stratified",
):
    """
    Build the work descriptors of `n` ensemble members.

    Every member gets its own seed spawned from `seed`, and a subset of
    floor(samp_size * n_samples) sample indices drawn without replacement.
    All members share the subtype list of the full label vector, and every
    member subset contains at least one sample of each subtype.

    Returns
    -------
    tasks : list of EnsembleTask
        One task per member, in member order.
    """
    if n < 1:
        raise ValueError(f"Ensemble size must be at least 1, got {n}")

    Ys = np.asarray(Ys)
    subtypes = pd.unique(Ys).tolist()
    children = np.random.SeedSequence(seed).spawn(n)

    tasks = []
    for member, child in enumerate(children):
        member_seed = int(child.generate_state(1)[0] % _MAX_SEED)
        sample_idx = subsample_func(
            Ys, samp_size, sampling=sampling, random_state=member_seed
        )
        tasks.append(
            EnsembleTask(
                member=member,
                sample_idx=sample_idx,
                subtypes=subtypes,
                params=dict(params),
                break_vec=list(break_vec),
                ptail=ptail,
                seed=member_seed,
            )
        )
    return tasks


def _fit_member(task, Xs, Ys):
    """Train the subtype models of one ensemble member; runs in a worker."""
    logging.info(
        f"> Ensemble member {task.member + 1}: {len(task.sample_idx)} samples"
    )
    return fit_subtype_model(
        Xs.iloc[:, task.sample_idx],
        Ys[task.sample_idx],
        break_vec=task.break_vec,
        params=task.params,
        ptail=task.ptail,
        subtypes=task.subtypes,
        seed=task.seed,
    )


# -----------------------------------------------------------------------------
# Function: fit_ensemble_model
# -----------------------------------------------------------------------------
def fit_ensemble_model(
    Xs,
    Ys,
    n=ENSEMBLE_SIZE,
    samp_size=SAMPLE_FRACTION,
    break_vec=DEFAULT_BREAK_VEC,
    params=ENSEMBLE_PARAMS,
    ptail=ENSEMBLE_PTAIL,
    num_cores=NUM_CORES,
    seed=None,
    sampling="stratified",
):
    """
    Train an ensemble of subtype model sets, each on a random sample subset.

    Parameters
    ----------
    Xs : pd.DataFrame or np.ndarray
        Expression matrix, genes (rows) x samples (columns).
    Ys : array-like
        Multiclass subtype label of every sample.
    n : int
        Number of ensemble members.
    samp_size : float
        Fraction of samples each member is trained on.
    break_vec : sequence of float
        Quantile break points used for binning.
    params : dict
        Hyperparameter record including 'nfold'.
    ptail : float
        Tail proportion used for gene selection.
    num_cores : int
        Number of worker processes; 1 or less trains in this process.
    seed : int, optional
        Seed for member subsets and training. None draws fresh entropy.
    sampling : str
        Member subsampling method: 'random' or 'stratified'.

    Returns
    -------
    ensemble : list of dict
        One subtype -> TrainedModel mapping per member, in member order.
        A failing member aborts the whole call and its error is raised.
    """
    Xs = as_expression_frame(Xs)
    Ys = np.asarray(Ys)
    if Ys.shape[0] != Xs.shape[1]:
        raise ValueError(
            f"Got {Ys.shape[0]} labels for {Xs.shape[1]} samples; they must match"
        )
    check_break_vec(break_vec)

    tasks = make_ensemble_tasks(
        Ys, n, samp_size, break_vec, params, ptail, seed=seed, sampling=sampling
    )
    logging.info(
        f"> Training {n} ensemble members on {len(tasks[0].sample_idx)} of "
        f"{Xs.shape[1]} samples each, {num_cores} worker(s)"
    )

    if num_cores is None or num_cores <= 1:
        return [_fit_member(task, Xs, Ys) for task in tasks]

    # LightGBM's OpenMP runtime is not fork-safe
    with ProcessPoolExecutor(
        max_workers=min(num_cores, n),
        mp_context=multiprocessing.get_context("spawn"),
        initializer=init_console_logger,
        initargs=(logging.getLogger().getEffectiveLevel(),),
    ) as executor:
        futures = [executor.submit(_fit_member, task, Xs, Ys) for task in tasks]
        try:
            ensemble = [future.result() for future in futures]
        except BaseException:
            # Drop queued members before the pool is joined
            executor.shutdown(wait=True, cancel_futures=True)
            raise

    return ensemble
