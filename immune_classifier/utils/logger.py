# =============================================================================
# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: GPL-3.0-or-later
# =============================================================================
# SCRIPT  : logger.py
# PROJECT : Immune Subtype Classifier
# PURPOSE : Root logger setup for the training CLI and ensemble workers
#
# OVERVIEW:
#   The CLI records a run in <output_dir>/run.log and on the console.
#   Ensemble worker processes start with an unconfigured root logger and
#   only get a console handler, at the level of the parent process.
#
# USAGE   :
#   init_logger("out/")             # CLI run
#   init_console_logger(logging.INFO)  # worker process
#
# CREATED : 2026-10-19
# UPDATED : 2026-10-19
# =============================================================================


import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def init_console_logger(level=logging.INFO):
    """Route root logger messages at or above `level` to stderr."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def init_logger(output_dir, level=logging.INFO):
    """
    Send root logger messages to the console and to `output_dir`/run.log.

    Existing root handlers are replaced, so repeated runs in one process
    each write to their own log file.

    Parameters
    ----------
    output_dir : str or Path
        Run directory; created if missing.
    level : int
        Minimum level of recorded messages (default: logging.INFO).

    Returns
    -------
    Path
        Path of the log file.
    """
    log_file = Path(output_dir) / "run.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
        force=True,
    )

    logging.info(f"Logging to {log_file}")
    return log_file
