"""Pearson correlation between BMI and prostate-cancer deaths."""

from __future__ import annotations

import os
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from bmi_prostate.utils.errors import InsufficientDataError


@dataclass(frozen=True)
class CorrelationResult:
    x: str
    y: str
    r: float
    p_value: float
    n: int


def pearson_correlation(df: pd.DataFrame, x: str = "bmi", y: str = "prostate_deaths") -> CorrelationResult:
    """Pearson r over the rows where both columns are present."""
    pairs = df[[x, y]].apply(pd.to_numeric, errors="coerce").dropna()
    n = len(pairs)
    if n < 2:
        raise InsufficientDataError("correlation", n, detail=f"{x} vs {y}")

    if pairs[x].nunique() < 2 or pairs[y].nunique() < 2:
        print(f"[WARN] Constant input in {x} or {y}; correlation is undefined.")
        return CorrelationResult(x=x, y=y, r=float("nan"), p_value=float("nan"), n=n)

    r, p_value = pearsonr(pairs[x].to_numpy(dtype=float), pairs[y].to_numpy(dtype=float))
    print(f"[INFO] Pearson r({x}, {y}) = {r:.4f} (p={p_value:.4g}, n={n})")
    return CorrelationResult(x=x, y=y, r=float(r), p_value=float(p_value), n=n)


def plot_scatter_with_fit(
    df: pd.DataFrame,
    result: CorrelationResult,
    out_path: str = "reports/figures/scatter_bmi_deaths.png",
) -> str:
    """Scatter with a least-squares line, annotated with r to two decimals."""
    import matplotlib.pyplot as plt
    import seaborn as sns

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    pairs = df[[result.x, result.y]].dropna()

    plt.figure(figsize=(6, 4))
    ax = sns.regplot(data=pairs, x=result.x, y=result.y, ci=None, line_kws={"color": "red"})
    label = "r = NA" if np.isnan(result.r) else f"r = {result.r:.2f}"
    ax.annotate(label, xy=(0.05, 0.92), xycoords="axes fraction")
    ax.set_title(f"{result.y} vs {result.x}")
    plt.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close()
    return out_path
