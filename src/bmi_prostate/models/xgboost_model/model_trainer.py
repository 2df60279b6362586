# src/bmi_prostate/models/xgboost_model/model_trainer.py
from __future__ import annotations

import datetime
import json
import os
from dataclasses import dataclass, field

import joblib
import numpy as np
import pandas as pd
from sklearn.base import clone

from .config import MODEL_CONFIG, SEARCH_SPACE, TRAINING_CONFIG, TUNING_PROFILES
from bmi_prostate.data.feature_engineer import FeatureEngineer
from bmi_prostate.pipelines.data_setup import DEFAULT_FEATURE_CONFIG, FeatureConfig
from bmi_prostate.pipelines.experiment_pipelines import (
    build_preprocessor,
    build_xgb_pipeline,
    evaluate_regression,
    generate_search_grid,
    run_xgb_grid_search,
    summarize_search,
    trial_to_params,
)
from bmi_prostate.utils.errors import InsufficientDataError, PipelineStageError
from bmi_prostate.utils.tracking import MlflowTracker

STAGES = ("split", "preprocess", "tune", "select_best", "refit", "evaluate", "done")


@dataclass(frozen=True)
class MLPipelineResult:
    """Outputs of a finished pipeline run."""

    train_index: tuple
    test_index: tuple
    n_features: int
    tuning_results: pd.DataFrame = field(repr=False)
    best_config_id: str
    best_params: dict
    metrics: dict
    feature_importance: pd.DataFrame = field(repr=False)


class ModelTrainer:
    """
    Tunes, trains and evaluates a gradient-boosted tree regressor.

    `run()` walks the stages in `STAGES` order; `state` always holds the
    stage being executed (or "done"). Any failure is fatal and comes out
    as a `PipelineStageError` naming the stage.
    """

    def __init__(
        self,
        model_params=None,
        training_params=None,
        *,
        feature_config: FeatureConfig | None = None,
        use_mlflow: bool = False,
        mlflow_experiment: str | None = None,
        mlflow_tracking_uri: str | None = None,
        tags: dict | None = None,
    ):
        self.model_params = {**MODEL_CONFIG, **(model_params or {})}
        self.training_params = {**TRAINING_CONFIG, **(training_params or {})}
        self.feature_config = feature_config or DEFAULT_FEATURE_CONFIG
        self.tracker = MlflowTracker(
            enabled=use_mlflow,
            experiment=mlflow_experiment,
            tracking_uri=mlflow_tracking_uri,
            tags=tags or {"model_type": "xgboost"},
        )

        self.state: str | None = None
        self.model = None
        self.result: MLPipelineResult | None = None

    @property
    def seed(self) -> int:
        return int(self.training_params.get("seed", self.model_params.get("random_state", 42)))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def split(self, df: pd.DataFrame):
        if len(df) < 2:
            raise InsufficientDataError("ml_pipeline.split", len(df))

        engineer = FeatureEngineer(
            self.feature_config.predictors,
            self.feature_config.target,
            test_size=self.training_params["test_size"],
            random_state=self.seed,
            stratify=self.training_params.get("stratify", True),
        )
        self.X_train, self.X_test, self.y_train, self.y_test = engineer.run(df)
        return self.X_train, self.X_test, self.y_train, self.y_test

    def preprocess(self):
        """Define the recipe; parameters are only ever learned on training rows."""
        self.preprocessor = build_preprocessor(self.feature_config)
        encoded = clone(self.preprocessor).fit_transform(self.X_train)
        self.n_features = int(encoded.shape[1])
        print(f"[INFO] Recipe yields {self.n_features} predictors after encoding.")
        return self.preprocessor

    def tune(self):
        grid_size = int(self.training_params["grid_size"])
        folds = int(self.training_params["cv_folds"])
        profile = self.training_params.get("tuning_profile", "standard")

        if grid_size < 1:
            raise ValueError(f"Search grid size must be a positive integer, got {grid_size}")
        if folds < 2:
            raise ValueError(f"cv_folds must be at least 2, got {folds}")
        if len(self.X_train) < folds:
            raise InsufficientDataError("ml_pipeline.tune", len(self.X_train), required=folds,
                                        detail=f"{folds}-fold cross-validation")
        if profile not in TUNING_PROFILES:
            raise ValueError(f"Unknown tuning profile '{profile}'. Use one of: {list(TUNING_PROFILES)}")

        self.design = generate_search_grid(
            grid_size,
            self.training_params.get("search_space", SEARCH_SPACE),
            TUNING_PROFILES[profile],
            seed=self.seed,
            n_features=self.n_features,
        )
        self.candidates = [
            trial_to_params(row, self.n_features) for row in self.design.to_dict("records")
        ]

        print(f"[TUNE] Evaluating {grid_size} configurations with {folds}-fold CV...")
        self.search = run_xgb_grid_search(
            build_xgb_pipeline(self.feature_config, self.model_params),
            self.X_train,
            self.y_train,
            self.candidates,
            cv=folds,
            seed=self.seed,
            n_jobs=self.training_params.get("n_jobs"),
        )
        self.tuning_results = summarize_search(self.search, self.design)
        if "mtry" in self.design.columns:
            self.tuning_results["colsample_bytree"] = [c["colsample_bytree"] for c in self.candidates]
        return self.tuning_results

    def select_best(self):
        rmse = self.tuning_results["mean_rmse"].to_numpy(dtype=float)
        if np.isnan(rmse).all():
            raise ValueError("No configuration produced a finite cross-validated RMSE")
        # nanargmin keeps the first configuration on ties
        best = int(np.nanargmin(rmse))
        self.best_index = best
        self.best_config_id = str(self.tuning_results.loc[best, "config_id"])
        self.best_params = dict(self.candidates[best])
        print(f"[TUNE] Best {self.best_config_id}: CV RMSE={rmse[best]:.2f} | params={self.best_params}")
        return self.best_params

    def refit(self):
        print("[INFO] Refitting best configuration on the full training partition...")
        self.model = build_xgb_pipeline(
            self.feature_config, {**self.model_params, **self.best_params}
        )
        self.model.fit(self.X_train, self.y_train)
        return self.model

    def evaluate(self):
        self.metrics = evaluate_regression(self.model, self.X_test, self.y_test, label="xgboost")
        print(f"[INFO] Test RMSE: {self.metrics['rmse_test']:.2f} | R2: {self.metrics['r2_test']:.4f}")
        self.feature_importance = self.rank_features(self.training_params.get("top_n_importance", 10))
        return self.metrics

    def best_fold_rmse(self) -> np.ndarray:
        """Per-fold CV RMSE of the selected configuration."""
        folds = int(self.training_params["cv_folds"])
        results = self.search.cv_results_
        return np.array(
            [-results[f"split{i}_test_rmse"][self.best_index] for i in range(folds)], dtype=float
        )

    def rank_features(self, top_n: int = 10) -> pd.DataFrame:
        names = self.model[:-1].get_feature_names_out()
        importances = self.model.named_steps["regressor"].feature_importances_
        ranking = (
            pd.DataFrame({"feature": names, "importance": importances})
            .sort_values("importance", ascending=False, kind="mergesort")
            .head(top_n)
            .reset_index(drop=True)
        )
        ranking.index = ranking.index + 1
        ranking.index.name = "rank"
        return ranking

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------
    def _run_stage(self, stage: str, fn, *args):
        self.state = stage
        print("=" * 70); print(f"[INFO] ML PIPELINE STAGE: {stage}"); print("=" * 70)
        try:
            return fn(*args)
        except PipelineStageError:
            raise
        except Exception as e:
            raise PipelineStageError(stage, str(e)) from e

    def run(self, df: pd.DataFrame, reports_dir: str | None = None, timestamp: str | None = None):
        """
        Full split → preprocess → tune → select_best → refit → evaluate pipeline.
        Writes tuning results, importances, metrics and the model when
        `reports_dir` is given.
        """
        self.tracker.start(run_name="xgboost_run")
        try:
            self.tracker.log_params(self.training_params, prefix="train__")

            self._run_stage("split", self.split, df)
            self._run_stage("preprocess", self.preprocess)
            self._run_stage("tune", self.tune)
            self._run_stage("select_best", self.select_best)
            self._run_stage("refit", self.refit)
            self._run_stage("evaluate", self.evaluate)

            self.result = MLPipelineResult(
                train_index=tuple(self.X_train.index),
                test_index=tuple(self.X_test.index),
                n_features=self.n_features,
                tuning_results=self.tuning_results,
                best_config_id=self.best_config_id,
                best_params=self.best_params,
                metrics=self.metrics,
                feature_importance=self.feature_importance,
            )
            self.state = "done"

            self.tracker.log_params(self.best_params, prefix="best__")
            self.tracker.log_metrics({k: v for k, v in self.metrics.items() if k != "model"})
            self.tracker.log_cv(self.best_fold_rmse(), scorer_name="rmse")

            if reports_dir:
                for path in self.save_reports(reports_dir):
                    self.tracker.log_artifact(path)
                self.tracker.log_artifact(self.save_model(timestamp=timestamp))

            print("[INFO] XGBoost pipeline complete.\n")
            return self.result
        finally:
            self.tracker.end()

    def save_reports(self, reports_dir: str = "reports") -> list:
        os.makedirs(reports_dir, exist_ok=True)
        tuning_path = os.path.join(reports_dir, "tuning_results.csv")
        importance_path = os.path.join(reports_dir, "feature_importance.csv")
        metrics_path = os.path.join(reports_dir, "metrics_xgb.json")

        self.tuning_results.to_csv(tuning_path, index=False)
        self.feature_importance.to_csv(importance_path)
        with open(metrics_path, "w") as f:
            json.dump(
                {
                    "best_config_id": self.best_config_id,
                    "best_params": self.best_params,
                    "rmse_test": self.metrics["rmse_test"],
                    "r2_test": self.metrics["r2_test"],
                },
                f,
                indent=2,
            )
        print(f"[INFO] Tuning results, importances and metrics saved under: {reports_dir}")
        return [tuning_path, importance_path, metrics_path]

    def save_model(self, model_type="xgboost", timestamp=None):
        """
        Save the fitted pipeline under a timestamped filename.
        """
        if self.model is None:
            raise RuntimeError("No fitted model to save; run the pipeline first.")
        if timestamp is None:
            timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")

        versioned_dir = f"models/{model_type}/artifacts"
        os.makedirs(versioned_dir, exist_ok=True)
        versioned_model_path = os.path.join(versioned_dir, f"model_{timestamp}.pkl")
        joblib.dump(self.model, versioned_model_path)

        print(f"[INFO] Saved versioned model to: {versioned_model_path}")
        return versioned_model_path
