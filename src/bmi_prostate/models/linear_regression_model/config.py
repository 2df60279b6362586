MODEL_CONFIG = {
    # statsmodels covariance estimator; "HC1" gives heteroskedasticity-robust errors
    "cov_type": "nonrobust",
}

TRAINING_CONFIG = {
    "diagnostics": "basic",  # "basic" | "full"
    "vif_warn_threshold": 10.0,
}
