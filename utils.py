# utils.py
"""
Utility functions for the simulation framework.

This module provides helpers that are used across different parts of the
application but do not belong to a specific domain like physics or
rendering: logging setup, configuration loading and the safe vector
normalization shared by every force computation.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any, Tuple

import numpy as np
from numba import jit

from constants import EPSILON

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys. All sub-keys are optional.
#   - Outputs: None
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises FileNotFoundError / json.JSONDecodeError after logging them.
#
# safe_unit_vector(vector) -> Tuple[np.ndarray, bool]:
#   - Outputs: (unit vector, True), or (zero vector, False) when the input
#     is shorter than EPSILON.
#   - Invariants: Never returns a non-finite component for finite input.
#
# safe_unit_vectors(vectors: np.ndarray) -> np.ndarray:
#   - Row-wise version of safe_unit_vector for an (N, 2) array.

def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/spire.log')

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")

def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise

@jit(nopython=True)
def _safe_unit(dx, dy):
    """
    Numba-jitted normalization of (dx, dy).

    Returns (ux, uy, ok). When the vector is shorter than EPSILON the result
    is (0.0, 0.0, False) and callers are expected to skip the force.
    """
    length = np.sqrt(dx * dx + dy * dy)
    if length < EPSILON:
        return 0.0, 0.0, False
    return dx / length, dy / length, True

def safe_unit_vector(vector) -> Tuple[np.ndarray, bool]:
    """Normalizes a 2D vector, returning a zero vector for degenerate input."""
    ux, uy, ok = _safe_unit(float(vector[0]), float(vector[1]))
    return np.array([ux, uy], dtype=np.float64), ok

def safe_unit_vectors(vectors: np.ndarray) -> np.ndarray:
    """Row-wise safe_unit_vector for an (N, 2) array. Degenerate rows become zero."""
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    return np.divide(
        vectors, lengths, out=np.zeros_like(vectors, dtype=np.float64), where=lengths >= EPSILON
    )
