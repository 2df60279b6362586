# src/bmi_prostate/utils/tracking.py
"""Optional MLflow experiment tracking shared by the model trainers."""

from __future__ import annotations

import os

import numpy as np

os.environ.setdefault("MLFLOW_ENABLE_LOGGED_MODELS", "false")

import mlflow


def _to_float(v):
    try:
        return float(v)
    except Exception:
        return v


class MlflowTracker:
    """
    Thin wrapper around the MLflow fluent API. Every method is a no-op
    when tracking is disabled, so trainers can call it unconditionally.
    """

    def __init__(
        self,
        enabled: bool = False,
        experiment: str | None = None,
        tracking_uri: str | None = None,
        tags: dict | None = None,
    ):
        self.enabled = bool(enabled)
        self.experiment = (
            experiment
            or os.getenv("EXPERIMENT_NAME")
            or os.getenv("MLFLOW_EXPERIMENT_NAME", "bmi-prostate")
        )
        self.tracking_uri = tracking_uri or os.getenv("MLFLOW_TRACKING_URI")
        self.tags = tags or {}
        self._run = None

        if self.enabled and self.tracking_uri:
            mlflow.set_tracking_uri(self.tracking_uri)

    def start(self, run_name: str | None = None):
        if not self.enabled:
            return None
        # Reuse an active run instead of nesting
        if mlflow.active_run() is not None:
            return mlflow.active_run()
        mlflow.set_experiment(self.experiment)
        self._run = mlflow.start_run(run_name=run_name)
        if self.tags:
            mlflow.set_tags(self.tags)
        return self._run

    def end(self):
        if not self.enabled or self._run is None:
            return
        active = mlflow.active_run()
        if active is not None and active.info.run_id == self._run.info.run_id:
            mlflow.end_run()
        self._run = None

    def log_params(self, params: dict, prefix: str = ""):
        if not self.enabled or not params:
            return
        mlflow.log_params({f"{prefix}{k}": v for k, v in params.items()})

    def log_metrics(self, metrics: dict, prefix: str = ""):
        if not self.enabled:
            return
        safe = {f"{prefix}{k}": _to_float(v) for k, v in metrics.items()}
        mlflow.log_metrics(safe)

    def log_cv(self, scores, scorer_name: str = "rmse"):
        if not self.enabled:
            return
        scores = np.asarray(scores, dtype=float)
        mlflow.log_metric(f"cv_{scorer_name}_mean", _to_float(scores.mean()))
        mlflow.log_metric(f"cv_{scorer_name}_std", _to_float(scores.std()))
        for i, s in enumerate(scores, 1):
            mlflow.log_metric(f"cv_{scorer_name}_fold_{i}", _to_float(s))

    def log_artifact(self, path: str):
        if not self.enabled:
            return
        try:
            mlflow.log_artifact(path)
        except Exception as e:
            print(f"[WARN] Could not log artifact {path}: {e}")
