import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

# Ensure src/ is importable without an editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


CONTINENTS = ["Africa", "Americas", "Asia", "Europe"]


@pytest.fixture
def analysis_frame():
    """40 complete country rows where deaths rise with BMI and smoking."""
    rng = np.random.default_rng(0)
    n = 40
    bmi = rng.uniform(20.0, 30.0, n)
    smokers = rng.uniform(10.0, 35.0, n)
    continent = [CONTINENTS[i % len(CONTINENTS)] for i in range(n)]
    deaths = 300.0 * bmi + 50.0 * smokers + rng.normal(0.0, 150.0, n)
    return pd.DataFrame(
        {
            "country": [f"country_{i}" for i in range(n)],
            "continent": continent,
            "year": 2008,
            "bmi": bmi,
            "smokers_percent": smokers,
            "prostate_deaths": deaths,
        }
    )


@pytest.fixture
def raw_frame(analysis_frame):
    """Raw export: text death counts, a second year and some unusable rows."""
    df = analysis_frame.copy()
    df["prostate_deaths"] = [
        f"{v / 1000:.1f}k" if i % 3 == 0 else f"{v:,.0f}" for i, v in enumerate(df["prostate_deaths"])
    ]
    other_year = df.head(5).assign(year=2009)
    broken = pd.DataFrame(
        {
            "country": ["bad_bmi", "bad_deaths", "no_smokers"],
            "continent": ["Asia", "Europe", "Africa"],
            "year": [2008, 2008, 2008],
            "bmi": ["n/a", 24.0, 25.0],
            "smokers_percent": [20.0, 22.0, None],
            "prostate_deaths": ["1,000", "about 300", "2.1k"],
        }
    )
    return pd.concat([df, other_year, broken], ignore_index=True)


@pytest.fixture
def small_xgb_params():
    return {"n_estimators": 15, "n_jobs": 1, "tree_method": "hist"}
