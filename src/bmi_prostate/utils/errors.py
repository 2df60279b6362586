# src/bmi_prostate/utils/errors.py
"""Exceptions raised by the analysis stages."""

from __future__ import annotations

from typing import Optional


class InsufficientDataError(ValueError):
    """A step needs more complete observations than it received."""

    def __init__(self, step: str, n_rows: int, required: int = 2, detail: Optional[str] = None):
        self.step = step
        self.n_rows = n_rows
        self.required = required
        msg = f"[ERROR] {step}: needs at least {required} complete observations, got {n_rows}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class PipelineStageError(RuntimeError):
    """Fatal failure of one ML pipeline stage."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"[ERROR] ML pipeline failed at stage '{stage}': {message}")
