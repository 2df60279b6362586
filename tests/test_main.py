from pathlib import Path

import pandas as pd
import pytest
import yaml

from bmi_prostate import main as main_mod


@pytest.fixture
def project(tmp_path, monkeypatch, raw_frame):
    monkeypatch.chdir(tmp_path)
    for key in ["SEED", "REPORTS_DIR", "MLFLOW_TRACKING_URI"]:
        monkeypatch.delenv(key, raising=False)
    (tmp_path / "data" / "clean").mkdir(parents=True)
    raw_frame.to_csv(tmp_path / "data" / "clean" / "raw.csv", index=False)

    params = {
        "data": {
            "raw_path": "data/clean/raw.csv",
            "processed_path": "data/processed/analysis_dataset.csv",
        },
        "analysis": {"year": 2008},
        "seed": 5,
        "reports_dir": "reports",
        "split": {"test_size": 0.2, "stratify": True},
        "cv": {"folds": 2},
        "tuning": {"grid_size": 2, "profile": "standard"},
        "linear_model": {"diagnostics": "full"},
        "ml_pipeline": {"model_params": {"n_estimators": 10}},
        "tracking": {"use_mlflow": False},
    }
    path = tmp_path / "params.yaml"
    path.write_text(yaml.safe_dump(params))
    return tmp_path, path


def test_load_cfg_reads_yaml(project):
    _, params_path = project
    cfg = main_mod.load_cfg(str(params_path))
    assert cfg["analysis"]["year"] == 2008


def test_main_runs_full_analysis(project):
    root, params_path = project
    main_mod.main(["--params", str(params_path)])

    reports = root / "reports"
    summary = pd.read_csv(reports / "executive_summary.csv")
    assert len(summary) == 6
    assert summary.loc[0, "key_finding"].startswith("40 countries")
    for name in ["descriptive_stats.csv", "linear_coefficients.csv", "linear_vif.csv",
                 "tuning_results.csv", "feature_importance.csv", "metrics_xgb.json"]:
        assert (reports / name).exists(), name
    figures = {p.name for p in (reports / "figures").iterdir()}
    assert {"hist_bmi.png", "scatter_bmi_deaths.png", "linear_qq.png", "linear_scale_location.png"} <= figures
    assert (root / "data" / "processed" / "analysis_dataset.csv").exists()
    assert list((root / "models" / "xgboost" / "artifacts").glob("model_*.pkl"))


def test_single_stage_reads_processed_dataset(project):
    root, params_path = project
    main_mod.main(["--params", str(params_path), "--stage", "data_loader"])
    main_mod.main(["--params", str(params_path), "--stage", "correlation"])

    assert (root / "reports" / "figures" / "scatter_bmi_deaths.png").exists()
    assert not (root / "reports" / "executive_summary.csv").exists()


def test_year_override_with_no_rows_fails_clearly(project):
    _, params_path = project
    with pytest.raises(ValueError, match="descriptive|correlation|complete observations"):
        main_mod.main(["--params", str(params_path), "--year", "1990"])
