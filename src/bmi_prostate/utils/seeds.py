# src/bmi_prostate/utils/seeds.py

"""Seed resolution and pinning so splits, search grids and tree ensembles repeat between runs."""

import random
import numpy as np

DEFAULT_SEED = 42


def resolve_seed(override=None, params=None, env=None) -> int:
    """
    Pick the run seed: command-line override first, then the `seed` key of
    params.yaml, then the SEED value from `load_env()`, then DEFAULT_SEED.
    """
    for candidate in (override, (params or {}).get("seed"), (env or {}).get("SEED")):
        if candidate is None or candidate == "":
            continue
        try:
            return int(candidate)
        except (TypeError, ValueError):
            raise ValueError(f"[ERROR] Seed must be an integer, got {candidate!r}") from None
    return DEFAULT_SEED


def set_global_seed(seed: int = DEFAULT_SEED) -> int:
    """Seed `random` and numpy; returns the seed so it can be logged with the run."""
    random.seed(seed)
    np.random.seed(seed)
    print(f"[INFO] Global seed set to {seed}")
    return seed
