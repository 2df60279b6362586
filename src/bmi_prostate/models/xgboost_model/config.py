# src/bmi_prostate/models/xgboost_model/config.py

MODEL_CONFIG = {
    "objective": "reg:squarederror",
    "n_estimators": 500,
    "learning_rate": 0.1,
    "max_depth": 6,
    "subsample": 0.8,
    "colsample_bytree": 0.8,
    "tree_method": "hist",
    "random_state": 42,
    "n_jobs": 1,
}

TRAINING_CONFIG = {
    "cv_folds": 5,
    "test_size": 0.2,
    "stratify": True,
    "grid_size": 20,
    "tuning_profile": "standard",
    "top_n_importance": 10,
    "n_jobs": None,
    "seed": 42,
}

# "int" ranges are inclusive; "log10" ranges are exponents.
SEARCH_SPACE = {
    "n_estimators": {"low": 50, "high": 1000, "type": "int"},
    "max_depth": {"low": 1, "high": 15, "type": "int"},
    "learning_rate": {"low": -3.0, "high": -0.5, "type": "log10"},
    "gamma": {"low": -10.0, "high": 1.5, "type": "log10"},
    "mtry": {"low": 1, "high": 5, "type": "int"},
    "subsample": {"low": 0.1, "high": 1.0, "type": "float"},
}

TUNING_PROFILES = {
    "standard": ["max_depth", "learning_rate", "gamma", "mtry", "subsample"],
    "full": ["n_estimators", "max_depth", "learning_rate", "gamma", "mtry", "subsample"],
}
