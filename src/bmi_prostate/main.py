# src/bmi_prostate/main.py
import argparse
import os

import matplotlib
import pandas as pd
import yaml

from bmi_prostate.analysis.correlation import pearson_correlation, plot_scatter_with_fit
from bmi_prostate.analysis.descriptive import describe_columns, plot_histograms
from bmi_prostate.data.data_loader import AnalysisDataset, DataLoader
from bmi_prostate.models.linear_regression_model import ModelTrainer as LinearTrainer
from bmi_prostate.models.xgboost_model import ModelTrainer as XGBTrainer
from bmi_prostate.reports.summary import build_executive_summary
from bmi_prostate.utils.env import load_env
from bmi_prostate.utils.seeds import resolve_seed, set_global_seed

STAGES = ["all", "data_loader", "describe", "correlation", "linear_model", "ml_pipeline"]


def load_cfg(path="params.yaml"):
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _banner(title):
    print("=" * 70); print(f"[INFO] {title}"); print("=" * 70)


def _figures_dir(reports_dir):
    return os.path.join(reports_dir, "figures")


def run_data_loader(cfg, year):
    _banner("STEP 1: Load, filter and coerce")
    loader = DataLoader(cfg["data"]["raw_path"], cfg["data"].get("processed_path"))
    return loader.run(year)


def load_processed(cfg, year):
    df = pd.read_csv(cfg["data"]["processed_path"])
    return AnalysisDataset.from_frame(df, year)


def run_describe(cfg, dataset, reports_dir):
    _banner("STEP 2: Descriptive summary")
    summary = describe_columns(dataset.frame)
    print(summary.to_string())
    os.makedirs(reports_dir, exist_ok=True)
    summary.to_csv(os.path.join(reports_dir, "descriptive_stats.csv"))
    plot_histograms(
        dataset.frame,
        _figures_dir(reports_dir),
        bin_widths=cfg.get("descriptive", {}).get("bin_widths"),
    )
    return summary


def run_correlation(cfg, dataset, reports_dir):
    _banner("STEP 3: Bivariate correlation")
    result = pearson_correlation(dataset.frame, "bmi", "prostate_deaths")
    plot_scatter_with_fit(
        dataset.frame, result, os.path.join(_figures_dir(reports_dir), "scatter_bmi_deaths.png")
    )
    return result


def run_linear_model(cfg, dataset, reports_dir):
    _banner("STEP 4: Linear model")
    linear_cfg = cfg.get("linear_model", {})
    trainer = LinearTrainer(
        model_params=linear_cfg.get("model_params"),
        training_params={"diagnostics": linear_cfg.get("diagnostics", "basic")},
        use_mlflow=cfg.get("tracking", {}).get("use_mlflow", False),
    )
    return trainer.run(dataset.frame, reports_dir=reports_dir)


def run_ml_pipeline(cfg, dataset, reports_dir, seed):
    _banner("STEP 5: Gradient-boosted tree pipeline")
    ml_cfg = cfg.get("ml_pipeline", {})
    training_params = {
        "test_size": cfg.get("split", {}).get("test_size", 0.2),
        "stratify": cfg.get("split", {}).get("stratify", True),
        "cv_folds": cfg.get("cv", {}).get("folds", 5),
        "grid_size": cfg.get("tuning", {}).get("grid_size", 20),
        "tuning_profile": cfg.get("tuning", {}).get("profile", "standard"),
        "n_jobs": cfg.get("tuning", {}).get("n_jobs"),
        "seed": seed,
    }
    trainer = XGBTrainer(
        model_params={**ml_cfg.get("model_params", {}), "random_state": seed},
        training_params=training_params,
        use_mlflow=cfg.get("tracking", {}).get("use_mlflow", False),
    )
    return trainer.run(dataset.frame, reports_dir=reports_dir)


def run_summary(dataset, descriptive, correlation, linear, ml, reports_dir):
    _banner("STEP 6: Executive summary")
    table = build_executive_summary(dataset, descriptive, correlation, linear, ml)
    table.to_csv(os.path.join(reports_dir, "executive_summary.csv"), index=False)
    print(table.to_string(index=False))
    return table


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="BMI, smoking and prostate-cancer mortality analysis."
    )
    parser.add_argument("--params", default="params.yaml")
    parser.add_argument("--stage", type=str, default="all", choices=STAGES)
    parser.add_argument("--year", type=int, default=None, help="Snapshot year (overrides params).")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides params).")
    args = parser.parse_args(argv)

    # Figures are only ever written to disk
    matplotlib.use("Agg")

    env = load_env()
    cfg = load_cfg(args.params)
    year = args.year if args.year is not None else cfg["analysis"]["year"]
    seed = set_global_seed(resolve_seed(args.seed, cfg, env))
    reports_dir = cfg.get("reports_dir", env["REPORTS_DIR"])

    if args.stage in ("all", "data_loader"):
        dataset = run_data_loader(cfg, year)
    else:
        dataset = load_processed(cfg, year)

    if args.stage == "describe":
        run_describe(cfg, dataset, reports_dir)
    elif args.stage == "correlation":
        run_correlation(cfg, dataset, reports_dir)
    elif args.stage == "linear_model":
        run_linear_model(cfg, dataset, reports_dir)
    elif args.stage == "ml_pipeline":
        run_ml_pipeline(cfg, dataset, reports_dir, seed)
    elif args.stage == "all":
        descriptive = run_describe(cfg, dataset, reports_dir)
        correlation = run_correlation(cfg, dataset, reports_dir)
        linear = run_linear_model(cfg, dataset, reports_dir)
        ml = run_ml_pipeline(cfg, dataset, reports_dir, seed)
        run_summary(dataset, descriptive, correlation, linear, ml, reports_dir)
        print("\n[INFO] Full analysis executed successfully.")


if __name__ == "__main__":
    main()
