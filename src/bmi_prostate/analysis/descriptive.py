"""Descriptive statistics and histograms for the analysis table."""

from __future__ import annotations

import os
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

DEFAULT_COLUMNS = ["bmi", "prostate_deaths", "smokers_percent"]

DEFAULT_BIN_WIDTHS = {
    "bmi": 0.5,
    "prostate_deaths": 500.0,
    "smokers_percent": 2.5,
}

AXIS_LABELS = {
    "bmi": "BMI (kg/m²)",
    "prostate_deaths": "Prostate cancer deaths",
    "smokers_percent": "Smokers (%)",
}


def describe_columns(df: pd.DataFrame, columns: Iterable[str] = DEFAULT_COLUMNS) -> pd.DataFrame:
    """
    Count, mean and sample standard deviation per column.

    With fewer than two values the standard deviation is NaN; it is
    reported as such rather than raising.
    """
    columns = list(columns)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"[ERROR] Missing columns in dataset: {missing}")

    summary = pd.DataFrame(
        {
            "count": [int(df[c].count()) for c in columns],
            "mean": [df[c].mean() for c in columns],
            "std": [df[c].std(ddof=1) for c in columns],
        },
        index=pd.Index(columns, name="column"),
    )
    undefined = summary.index[summary["std"].isna()].tolist()
    if undefined:
        print(f"[WARN] Standard deviation undefined (fewer than 2 values) for: {undefined}")
    return summary


def _bins(values: pd.Series, width: float) -> np.ndarray:
    low = np.floor(values.min() / width) * width
    high = np.ceil(values.max() / width) * width
    if high <= low:
        high = low + width
    return np.arange(low, high + width, width)


def plot_histograms(
    df: pd.DataFrame,
    out_dir: str = "reports/figures",
    bin_widths: Optional[Dict[str, float]] = None,
    columns: Iterable[str] = DEFAULT_COLUMNS,
) -> List[str]:
    """One histogram per column with a fixed bin width; returns the PNG paths."""
    import matplotlib.pyplot as plt
    import seaborn as sns

    widths = {**DEFAULT_BIN_WIDTHS, **(bin_widths or {})}
    os.makedirs(out_dir, exist_ok=True)

    paths = []
    for col in columns:
        values = df[col].dropna()
        if values.empty:
            print(f"[WARN] No values to plot for '{col}'; histogram skipped.")
            continue
        plt.figure(figsize=(6, 4))
        sns.histplot(values, bins=_bins(values, widths[col]))
        plt.xlabel(AXIS_LABELS.get(col, col))
        plt.ylabel("Countries")
        plt.title(f"Distribution of {AXIS_LABELS.get(col, col)}")
        path = os.path.join(out_dir, f"hist_{col}.png")
        plt.savefig(path, dpi=150, bbox_inches="tight")
        plt.close()
        paths.append(path)
    return paths
