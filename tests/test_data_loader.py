from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from bmi_prostate.data.data_loader import (
    ANALYSIS_COLUMNS,
    AnalysisDataset,
    DataLoader,
    filter_and_coerce,
    parse_death_count,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15.4k", 15400.0),
        ("3k", 3000.0),
        ("3.5K", 3500.0),
        (" 2k ", 2000.0),
        ("3,200", 3200.0),
        ("1,234,567", 1234567.0),
        ("12,345.5", 12345.5),
        ("850", 850.0),
        ("12.5", 12.5),
        (1200, 1200.0),
        (3.5, 3.5),
    ],
)
def test_parse_death_count_valid(raw, expected):
    assert parse_death_count(raw) == pytest.approx(expected)


@pytest.mark.parametrize(
    "raw",
    ["", "k", "about 300", "1.2.3", "-40", "12k3", "1,2,3", "12,34k", "inf", None, np.nan, -5, np.inf],
)
def test_parse_death_count_invalid_is_nan(raw):
    assert np.isnan(parse_death_count(raw))


def test_parse_death_count_suffix_checked_before_separators():
    # separators inside a suffixed count: the suffix still scales the whole number
    assert parse_death_count("1,200k") == pytest.approx(1_200_000.0)


def test_filter_and_coerce_keeps_only_complete_rows_for_year(raw_frame):
    dataset = filter_and_coerce(raw_frame, 2008)
    df = dataset.frame

    year_rows = (pd.to_numeric(raw_frame["year"]) == 2008).sum()
    assert dataset.n_input == year_rows
    assert dataset.n_rows == year_rows - 3
    assert dataset.n_dropped == 3
    assert not df[ANALYSIS_COLUMNS].isna().any().any()
    assert set(df["year"]) == {2008}
    for col in ANALYSIS_COLUMNS:
        assert pd.api.types.is_float_dtype(df[col])
    assert not {"bad_bmi", "bad_deaths", "no_smokers"} & set(df["country"])


def test_filter_and_coerce_unknown_year_is_empty(raw_frame):
    dataset = filter_and_coerce(raw_frame, 1990)
    assert dataset.n_rows == 0
    assert dataset.n_input == 0


def test_analysis_dataset_frame_is_a_copy(analysis_frame):
    dataset = filter_and_coerce(analysis_frame, 2008)
    frame = dataset.frame
    frame.loc[0, "bmi"] = -1.0
    assert dataset.frame.loc[0, "bmi"] != -1.0
    with pytest.raises(AttributeError):
        dataset.year = 2010


def test_from_frame_requires_analysis_columns(analysis_frame):
    dataset = AnalysisDataset.from_frame(analysis_frame, 2008)
    assert dataset.n_rows == len(analysis_frame)
    with pytest.raises(ValueError):
        AnalysisDataset.from_frame(analysis_frame.drop(columns=["bmi"]), 2008)


def test_load_data_missing_file(tmp_path):
    loader = DataLoader(str(tmp_path / "missing.csv"))
    with pytest.raises(FileNotFoundError):
        loader.load_data()


def test_load_data_missing_required_columns(tmp_path, raw_frame):
    bad_path = tmp_path / "incomplete.csv"
    raw_frame.drop(columns=["continent"]).to_csv(bad_path, index=False)

    with pytest.raises(ValueError, match="continent"):
        DataLoader(str(bad_path)).load_data()


def test_run_processes_and_persists_csv(tmp_path, raw_frame):
    input_path = tmp_path / "raw.csv"
    output_path = tmp_path / "processed" / "analysis.csv"
    raw_frame.to_csv(input_path, index=False)

    loader = DataLoader(str(input_path), str(output_path))
    dataset = loader.run(2008)

    assert Path(loader.output_path).exists()
    saved = pd.read_csv(output_path)
    assert len(saved) == dataset.n_rows
    assert saved["prostate_deaths"].notna().all()


def test_filter_and_coerce_drops_infinite_values(tmp_path, analysis_frame):
    df = analysis_frame.head(4).copy()
    df["bmi"] = df["bmi"].astype(object)
    df["prostate_deaths"] = df["prostate_deaths"].astype(object)
    df.loc[1, "bmi"] = "inf"
    df.loc[2, "prostate_deaths"] = "inf"
    df.loc[3, "smokers_percent"] = -np.inf
    input_path = tmp_path / "raw.csv"
    df.to_csv(input_path, index=False)

    dataset = DataLoader(str(input_path), str(tmp_path / "out.csv")).run(2008)

    assert dataset.n_input == 4
    assert dataset.n_rows == 1
    assert dataset.frame["country"].tolist() == ["country_0"]
    assert np.isfinite(dataset.frame[ANALYSIS_COLUMNS].to_numpy()).all()
