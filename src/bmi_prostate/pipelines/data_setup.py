"""Utilities to load the analysis table and prepare feature matrices."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from bmi_prostate.data.data_loader import AnalysisDataset, DataLoader
from bmi_prostate.data.feature_engineer import FeatureEngineer

DEFAULT_DATA_REL_PATH = Path("data/clean/bmi_smoking_prostate.csv")


@dataclass(frozen=True)
class FeatureConfig:
    """Column selections shared by the linear model and the tree pipeline."""

    categorical_features: list[str] = field(default_factory=lambda: ["continent"])
    numeric_features: list[str] = field(default_factory=lambda: ["bmi", "smokers_percent"])
    target: str = "prostate_deaths"

    @property
    def predictors(self) -> list[str]:
        return self.categorical_features + self.numeric_features

    @property
    def formula(self) -> str:
        terms = list(self.numeric_features) + [f"C({c})" for c in self.categorical_features]
        return f"{self.target} ~ " + " + ".join(terms)

    def to_dict(self) -> Dict[str, list[str]]:
        return {
            "categorical_features": self.categorical_features,
            "numeric_features": self.numeric_features,
            "target": [self.target],
        }


DEFAULT_FEATURE_CONFIG = FeatureConfig()


def infer_project_root(start: Optional[Path] = None) -> Path:
    """Walk upwards until we find the repository root."""
    search_path = start or Path.cwd()
    for candidate in [search_path, *search_path.parents]:
        if (candidate / "data").exists() and (candidate / "src").exists():
            return candidate
    raise FileNotFoundError("Could not infer project root (missing data/ or src/).")


def resolve_data_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or infer_project_root()
    path = root / DEFAULT_DATA_REL_PATH
    if not path.exists():
        raise FileNotFoundError(f"Clean dataset not found at {path}")
    return path


def load_analysis_dataset(year: int, data_path: Optional[Path] = None) -> AnalysisDataset:
    """Load the cleaned CSV and derive the analysis table for `year`."""
    path = data_path or resolve_data_path()
    loader = DataLoader(str(path))
    return loader.preprocess(loader.load_data(), year)


def build_feature_frame(
    df: pd.DataFrame, config: FeatureConfig = DEFAULT_FEATURE_CONFIG
) -> Tuple[pd.DataFrame, pd.Series]:
    """Return the predictor matrix and target series for the configuration."""
    missing = sorted(set(config.predictors + [config.target]) - set(df.columns))
    if missing:
        raise ValueError(f"Missing columns in dataframe: {missing}")
    return df[config.predictors], df[config.target]


def split_train_test(
    feature_df: pd.DataFrame,
    target: pd.Series,
    *,
    test_size: float = 0.2,
    random_state: int = 42,
    stratify: bool = True,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    """Train/test split with project defaults (stratified on target quartiles)."""
    engineer = FeatureEngineer(
        list(feature_df.columns),
        target.name,
        test_size=test_size,
        random_state=random_state,
        stratify=stratify,
    )
    return engineer.split_data(feature_df, target)
