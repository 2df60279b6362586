import math
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from bmi_prostate.analysis.correlation import pearson_correlation, plot_scatter_with_fit
from bmi_prostate.analysis.descriptive import describe_columns, plot_histograms
from bmi_prostate.data.data_loader import filter_and_coerce
from bmi_prostate.utils.errors import InsufficientDataError


@pytest.fixture
def three_countries():
    return pd.DataFrame(
        {
            "country": ["A", "B", "C"],
            "continent": ["Africa", "Europe", "Europe"],
            "year": [2008, 2008, 2008],
            "bmi": [22.1, 27.4, 30.2],
            "smokers_percent": [18.0, 25.0, 30.0],
            "prostate_deaths": ["1,200", "3.5k", "5,000"],
        }
    )


def test_three_country_scenario(three_countries):
    dataset = filter_and_coerce(three_countries, 2008)
    df = dataset.frame

    assert df["prostate_deaths"].tolist() == [1200.0, 3500.0, 5000.0]
    summary = describe_columns(df)
    assert summary.loc["bmi", "mean"] == pytest.approx(26.5667, abs=1e-3)
    assert summary.loc["prostate_deaths", "count"] == 3

    result = pearson_correlation(df, "bmi", "prostate_deaths")
    assert result.r > 0
    assert result.n == 3


def test_describe_columns_matches_pandas(analysis_frame):
    summary = describe_columns(analysis_frame)
    assert list(summary.columns) == ["count", "mean", "std"]
    assert summary.index.tolist() == ["bmi", "prostate_deaths", "smokers_percent"]
    assert summary.loc["smokers_percent", "std"] == pytest.approx(analysis_frame["smokers_percent"].std())


def test_describe_columns_single_row_has_undefined_std(analysis_frame):
    summary = describe_columns(analysis_frame.head(1))
    assert summary["count"].tolist() == [1, 1, 1]
    assert summary["std"].isna().all()


def test_describe_columns_missing_column(analysis_frame):
    with pytest.raises(ValueError):
        describe_columns(analysis_frame, ["bmi", "alcohol"])


def test_plot_histograms_writes_one_file_per_column(tmp_path, analysis_frame):
    paths = plot_histograms(analysis_frame, str(tmp_path), bin_widths={"bmi": 1.0})
    assert [Path(p).name for p in paths] == [
        "hist_bmi.png",
        "hist_prostate_deaths.png",
        "hist_smokers_percent.png",
    ]
    assert all(Path(p).stat().st_size > 0 for p in paths)


def test_pearson_is_symmetric(analysis_frame):
    forward = pearson_correlation(analysis_frame, "bmi", "prostate_deaths")
    backward = pearson_correlation(analysis_frame, "prostate_deaths", "bmi")
    assert forward.r == pytest.approx(backward.r, abs=1e-12)
    assert forward.r == pytest.approx(np.corrcoef(analysis_frame["bmi"], analysis_frame["prostate_deaths"])[0, 1])


def test_pearson_uses_complete_pairs_only(analysis_frame):
    df = analysis_frame.copy()
    df.loc[:4, "bmi"] = np.nan
    result = pearson_correlation(df)
    assert result.n == len(df) - 5


def test_pearson_needs_two_pairs(analysis_frame):
    df = analysis_frame.head(3).copy()
    df.loc[1:, "prostate_deaths"] = np.nan
    with pytest.raises(InsufficientDataError) as exc:
        pearson_correlation(df)
    assert exc.value.step == "correlation"
    assert exc.value.n_rows == 1


def test_pearson_constant_column_is_nan(analysis_frame):
    df = analysis_frame.assign(bmi=25.0)
    result = pearson_correlation(df)
    assert math.isnan(result.r)


def test_scatter_plot_is_written(tmp_path, analysis_frame):
    result = pearson_correlation(analysis_frame)
    out = plot_scatter_with_fit(analysis_frame, result, str(tmp_path / "fig" / "scatter.png"))
    assert Path(out).exists()
