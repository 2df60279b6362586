"""Narrative summary table of the key findings for non-technical readers."""

from __future__ import annotations

import math

import pandas as pd

from bmi_prostate.analysis.correlation import CorrelationResult
from bmi_prostate.data.data_loader import AnalysisDataset
from bmi_prostate.models.linear_regression_model import LinearModelReport
from bmi_prostate.models.xgboost_model import MLPipelineResult

P_VALUE_THRESHOLD = 0.001


def format_p_value(p: float) -> str:
    if p is None or math.isnan(p):
        return "p = NA"
    if p < P_VALUE_THRESHOLD:
        return f"p < {P_VALUE_THRESHOLD:.3f}"
    return f"p = {p:.3f}"


def _fmt(value: float, fmt: str) -> str:
    if value is None or math.isnan(value):
        return "NA"
    return format(value, fmt)


def build_executive_summary(
    dataset: AnalysisDataset,
    descriptive: pd.DataFrame,
    correlation: CorrelationResult,
    linear: LinearModelReport,
    ml: MLPipelineResult,
) -> pd.DataFrame:
    """
    Ordered (analysis_step, key_finding) rows. Pure formatting of numbers
    produced by the earlier steps.
    """
    bmi = descriptive.loc["bmi"]
    deaths = descriptive.loc["prostate_deaths"]
    smokers = descriptive.loc["smokers_percent"]
    bmi_coef = linear.coefficient("bmi")
    smokers_coef = linear.coefficient("smokers_percent")

    if len(ml.feature_importance):
        top = ml.feature_importance.iloc[0]
        top_text = f"{top['feature']} ranks first (importance {_fmt(float(top['importance']), '.2f')})"
    else:
        top_text = "No feature importances available"

    rows = [
        (
            "Data",
            f"{dataset.n_rows} countries with complete data in {dataset.year} "
            f"({dataset.n_dropped} excluded for missing values)",
        ),
        (
            "Descriptive statistics",
            f"Mean BMI {_fmt(bmi['mean'], '.1f')} (SD {_fmt(bmi['std'], '.1f')}); "
            f"mean prostate cancer deaths {_fmt(deaths['mean'], ',.0f')} per country; "
            f"mean smoking prevalence {_fmt(smokers['mean'], '.1f')}%",
        ),
        (
            "Correlation",
            f"Pearson r = {_fmt(correlation.r, '.2f')} between BMI and prostate cancer deaths "
            f"({format_p_value(correlation.p_value)})",
        ),
        (
            "Linear model",
            f"Each BMI unit is associated with {_fmt(bmi_coef['estimate'], ',.0f')} deaths "
            f"({format_p_value(bmi_coef['p_value'])}); smoking: "
            f"{_fmt(smokers_coef['estimate'], ',.0f')} per point "
            f"({format_p_value(smokers_coef['p_value'])}); R² = {_fmt(linear.r_squared, '.2f')}",
        ),
        (
            "Gradient boosting",
            f"Test-set RMSE {_fmt(ml.metrics['rmse_test'], ',.0f')} deaths; "
            f"R² = {_fmt(ml.metrics['r2_test'], '.2f')} (best of "
            f"{len(ml.tuning_results)} tuned configurations)",
        ),
        ("Key predictor", top_text),
    ]
    return pd.DataFrame(rows, columns=["analysis_step", "key_finding"])
