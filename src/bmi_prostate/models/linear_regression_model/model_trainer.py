import os
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.stats.outliers_influence import variance_inflation_factor

from bmi_prostate.pipelines.data_setup import DEFAULT_FEATURE_CONFIG, FeatureConfig
from bmi_prostate.utils.errors import InsufficientDataError
from bmi_prostate.utils.tracking import MlflowTracker
from .config import MODEL_CONFIG, TRAINING_CONFIG

DIAGNOSTIC_PROFILES = ("basic", "full")


@dataclass(frozen=True)
class LinearModelReport:
    coefficients: pd.DataFrame = field(repr=False)
    r_squared: float
    adj_r_squared: float
    aic: float
    n_obs: int
    rank_deficient: bool
    vif: pd.DataFrame = field(repr=False)
    residuals: pd.Series = field(repr=False)

    def coefficient(self, term: str) -> pd.Series:
        return self.coefficients.loc[term]


class ModelTrainer:
    """
    Fits and diagnoses an ordinary-least-squares model of prostate-cancer
    deaths on BMI, smoking prevalence and continent.
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
        if self.training_params["diagnostics"] not in DIAGNOSTIC_PROFILES:
            raise ValueError(
                f"Unsupported diagnostics '{self.training_params['diagnostics']}'. "
                f"Use one of: {list(DIAGNOSTIC_PROFILES)}"
            )
        self.tracker = MlflowTracker(
            enabled=use_mlflow,
            experiment=mlflow_experiment,
            tracking_uri=mlflow_tracking_uri,
            tags=tags or {"model_type": "linear_regression"},
        )
        self.model = None

    def train(self, df: pd.DataFrame):
        """
        Fit OLS with continent entered as treatment-coded dummies
        (first level is the reference).
        """
        print("[INFO] Fitting OLS model...")
        cols = self.feature_config.predictors + [self.feature_config.target]
        missing = [c for c in cols if c not in df.columns]
        if missing:
            raise ValueError(f"[ERROR] Missing columns in dataset: {missing}")

        data = df[cols].dropna()
        if len(data) < 2:
            raise InsufficientDataError("linear_model", len(data))

        self.model = smf.ols(self.feature_config.formula, data=data).fit(
            cov_type=self.model_params.get("cov_type", "nonrobust")
        )
        print(f"[INFO] Formula: {self.feature_config.formula} | n={int(self.model.nobs)}")
        return self.model

    def collinearity(self) -> pd.DataFrame:
        """Variance inflation factor for each non-intercept design column."""
        exog = np.asarray(self.model.model.exog, dtype=float)
        names = self.model.model.exog_names
        rows = []
        with np.errstate(divide="ignore", invalid="ignore"):
            for i, name in enumerate(names):
                if name == "Intercept":
                    continue
                rows.append({"term": name, "vif": float(variance_inflation_factor(exog, i))})
        vif = pd.DataFrame(rows, columns=["term", "vif"])

        threshold = self.training_params["vif_warn_threshold"]
        flagged = vif.loc[~(vif["vif"] <= threshold), "term"].tolist()
        if flagged:
            print(f"[WARN] High or undefined VIF (> {threshold}): {flagged}")
        return vif

    def evaluate(self) -> LinearModelReport:
        if self.model is None:
            raise RuntimeError("Model is not fitted; call train() first.")

        res = self.model
        coefficients = pd.DataFrame(
            {
                "estimate": res.params,
                "std_error": res.bse,
                "t_value": res.tvalues,
                "p_value": res.pvalues,
            }
        )
        coefficients.index.name = "term"

        exog = np.asarray(res.model.exog, dtype=float)
        rank_deficient = bool(np.linalg.matrix_rank(exog) < exog.shape[1])
        if rank_deficient:
            print("[WARN] Design matrix is rank deficient: perfectly collinear predictors, "
                  "coefficients for the aliased terms are not identifiable.")

        report = LinearModelReport(
            coefficients=coefficients,
            r_squared=float(res.rsquared),
            adj_r_squared=float(res.rsquared_adj),
            aic=float(res.aic),
            n_obs=int(res.nobs),
            rank_deficient=rank_deficient,
            vif=self.collinearity(),
            residuals=res.resid.copy(),
        )

        print("[INFO] Linear model:")
        print(coefficients.round(4).to_string())
        print(f"   R2: {report.r_squared:.4f} | adj R2: {report.adj_r_squared:.4f} | AIC: {report.aic:.2f}")
        return report

    def _plot_residuals(self, out_path: str):
        import matplotlib.pyplot as plt
        plt.figure()
        plt.scatter(self.model.fittedvalues, self.model.resid, s=12)
        plt.axhline(0, linestyle="--")
        plt.xlabel("Fitted deaths")
        plt.ylabel("Residual")
        plt.title("Linear model - Residuals vs fitted")
        plt.savefig(out_path, dpi=150, bbox_inches="tight")
        plt.close()

    def _plot_qq(self, out_path: str):
        import matplotlib.pyplot as plt
        fig, ax = plt.subplots()
        sm.qqplot(self.model.resid, line="s", ax=ax)
        ax.set_title("Linear model - Normal QQ")
        fig.savefig(out_path, dpi=150, bbox_inches="tight")
        plt.close(fig)

    def _plot_scale_location(self, out_path: str):
        import matplotlib.pyplot as plt
        scale = np.sqrt(self.model.scale) if self.model.scale > 0 else np.nan
        std_resid = np.sqrt(np.abs(self.model.resid / scale))
        plt.figure()
        plt.scatter(self.model.fittedvalues, std_resid, s=12)
        plt.xlabel("Fitted deaths")
        plt.ylabel("sqrt(|standardized residual|)")
        plt.title("Linear model - Scale-location")
        plt.savefig(out_path, dpi=150, bbox_inches="tight")
        plt.close()

    def _plot_residual_hist(self, out_path: str):
        import matplotlib.pyplot as plt
        import seaborn as sns
        plt.figure()
        sns.histplot(self.model.resid, kde=True)
        plt.xlabel("Residual")
        plt.title("Linear model - Residual distribution")
        plt.savefig(out_path, dpi=150, bbox_inches="tight")
        plt.close()

    def plot_diagnostics(self, out_dir: str = "reports/figures") -> list:
        """Residual and QQ plots; the "full" profile adds scale-location and a histogram."""
        os.makedirs(out_dir, exist_ok=True)
        plots = [
            ("linear_residuals.png", self._plot_residuals),
            ("linear_qq.png", self._plot_qq),
        ]
        if self.training_params["diagnostics"] == "full":
            plots += [
                ("linear_scale_location.png", self._plot_scale_location),
                ("linear_residual_hist.png", self._plot_residual_hist),
            ]

        paths = []
        for name, plot in plots:
            path = os.path.join(out_dir, name)
            plot(path)
            paths.append(path)
        return paths

    def run(self, df: pd.DataFrame, reports_dir: str | None = None) -> LinearModelReport:
        """
        Train → evaluate → diagnostics. Coefficient and VIF tables plus the
        plots are written when `reports_dir` is given.
        """
        self.tracker.start(run_name="linear_regression_run")
        try:
            self.tracker.log_params(self.model_params, prefix="model__")
            self.train(df)
            report = self.evaluate()
            self.tracker.log_metrics(
                {"r2": report.r_squared, "adj_r2": report.adj_r_squared, "aic": report.aic}
            )

            if reports_dir:
                os.makedirs(reports_dir, exist_ok=True)
                coef_path = os.path.join(reports_dir, "linear_coefficients.csv")
                vif_path = os.path.join(reports_dir, "linear_vif.csv")
                report.coefficients.to_csv(coef_path)
                report.vif.to_csv(vif_path, index=False)
                paths = [coef_path, vif_path]
                paths += self.plot_diagnostics(os.path.join(reports_dir, "figures"))
                for path in paths:
                    self.tracker.log_artifact(path)
                print(f"[INFO] Linear model reports saved under: {reports_dir}")
            return report
        finally:
            self.tracker.end()
