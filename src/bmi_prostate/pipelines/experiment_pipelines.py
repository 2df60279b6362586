"""Helper functions to build the preprocessing recipe, tree pipeline and search grid."""

from __future__ import annotations

from inspect import signature
from typing import Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import xgboost as xgb
from scipy.stats import qmc
from sklearn.compose import ColumnTransformer
from sklearn.feature_selection import VarianceThreshold
from sklearn.metrics import mean_squared_error, r2_score
from sklearn.model_selection import GridSearchCV, KFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from bmi_prostate.pipelines.data_setup import DEFAULT_FEATURE_CONFIG, FeatureConfig


DEFAULT_SCORING = {
    "rmse": "neg_root_mean_squared_error",
    "r2": "r2",
}


def build_preprocessor(config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> Pipeline:
    """One-hot encode categoricals, drop constant predictors, standardize everything."""
    encoder_kwargs = {"handle_unknown": "ignore"}
    if "sparse_output" in signature(OneHotEncoder).parameters:
        encoder_kwargs["sparse_output"] = False
    else:
        encoder_kwargs["sparse"] = False

    encode = ColumnTransformer(
        transformers=[
            ("categorical", OneHotEncoder(**encoder_kwargs), config.categorical_features),
            ("numeric", "passthrough", config.numeric_features),
        ],
        remainder="drop",
        verbose_feature_names_out=False,
    )

    return Pipeline(
        steps=[
            ("encode", encode),
            ("zero_variance", VarianceThreshold(threshold=0.0)),
            ("scale", StandardScaler()),
        ]
    )


def build_xgb_pipeline(
    config: FeatureConfig = DEFAULT_FEATURE_CONFIG,
    model_params: Optional[Mapping] = None,
) -> Pipeline:
    params = {
        "objective": "reg:squarederror",
        "random_state": 42,
        "n_estimators": 500,
        "n_jobs": 1,
    }
    params.update(model_params or {})
    return Pipeline(
        steps=[
            ("preprocessor", build_preprocessor(config)),
            ("regressor", xgb.XGBRegressor(**params)),
        ]
    )


def _scale_dimension(u: np.ndarray, bounds: Mapping) -> np.ndarray:
    low, high = bounds["low"], bounds["high"]
    kind = bounds.get("type", "float")
    if kind == "int":
        values = np.floor(low + u * (high - low + 1))
        return np.clip(values, low, high).astype(int)
    if kind == "log10":
        return 10 ** (low + u * (high - low))
    return low + u * (high - low)


def generate_search_grid(
    grid_size: int,
    search_space: Mapping[str, Mapping],
    tuned_params: Sequence[str],
    *,
    seed: int = 42,
    n_features: Optional[int] = None,
) -> pd.DataFrame:
    """
    Latin hypercube design of `grid_size` hyperparameter configurations.

    `mtry` (number of predictors sampled per tree) is clipped to
    `n_features` when that is known.
    """
    if grid_size < 1:
        raise ValueError(f"[ERROR] Search grid size must be a positive integer, got {grid_size}")
    unknown = [p for p in tuned_params if p not in search_space]
    if unknown:
        raise KeyError(f"[ERROR] No search range defined for: {unknown}")

    space = {name: dict(search_space[name]) for name in tuned_params}
    if "mtry" in space and n_features is not None:
        space["mtry"]["high"] = max(1, min(space["mtry"]["high"], n_features))
        space["mtry"]["low"] = min(space["mtry"]["low"], space["mtry"]["high"])

    sampler = qmc.LatinHypercube(d=len(space), seed=seed)
    unit = sampler.random(n=grid_size)

    grid = pd.DataFrame(
        {name: _scale_dimension(unit[:, i], bounds) for i, (name, bounds) in enumerate(space.items())}
    )
    grid.insert(0, "config_id", [f"config_{i + 1:02d}" for i in range(grid_size)])
    return grid


def trial_to_params(trial: Mapping, n_features: int) -> Dict[str, object]:
    """Translate one grid row into XGBRegressor keyword arguments."""
    params: Dict[str, object] = {}
    for name, value in trial.items():
        if name == "config_id":
            continue
        if name == "mtry":
            params["colsample_bytree"] = float(min(1.0, int(value) / max(n_features, 1)))
        elif name in ("max_depth", "n_estimators"):
            params[name] = int(value)
        else:
            params[name] = float(value)
    return params


def run_xgb_grid_search(
    pipeline: Pipeline,
    X_train: pd.DataFrame,
    y_train: pd.Series,
    candidates: Sequence[Mapping],
    *,
    cv: int = 5,
    seed: int = 42,
    n_jobs: Optional[int] = None,
) -> GridSearchCV:
    """
    Score every candidate with shuffled k-fold CV on RMSE and R².

    Candidates are evaluated in the order given; each one becomes a
    single-point grid so `cv_results_` rows line up with the design.
    """
    param_grid = [
        {f"regressor__{k}": [v] for k, v in candidate.items()}
        for candidate in candidates
    ]
    grid = GridSearchCV(
        estimator=pipeline,
        param_grid=param_grid,
        scoring=DEFAULT_SCORING,
        refit=False,
        cv=KFold(n_splits=cv, shuffle=True, random_state=seed),
        n_jobs=n_jobs,
        error_score="raise",
        verbose=0,
    )
    grid.fit(X_train, y_train)
    return grid


def summarize_search(grid: GridSearchCV, design: pd.DataFrame) -> pd.DataFrame:
    """Tuning results table: the design plus mean/std CV RMSE and R² per configuration."""
    results = grid.cv_results_
    summary = design.reset_index(drop=True).copy()
    summary["mean_rmse"] = -np.asarray(results["mean_test_rmse"], dtype=float)
    summary["std_rmse"] = np.asarray(results["std_test_rmse"], dtype=float)
    summary["mean_r2"] = np.asarray(results["mean_test_r2"], dtype=float)
    summary["std_r2"] = np.asarray(results["std_test_r2"], dtype=float)
    return summary


def evaluate_regression(
    pipeline: Pipeline,
    X_test: pd.DataFrame,
    y_test: pd.Series,
    label: str,
) -> Dict[str, float]:
    y_pred = pipeline.predict(X_test)
    return {
        "model": label,
        "rmse_test": float(np.sqrt(mean_squared_error(y_test, y_pred))),
        "r2_test": float(r2_score(y_test, y_pred)) if len(y_test) > 1 else float("nan"),
    }
