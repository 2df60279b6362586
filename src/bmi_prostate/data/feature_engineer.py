from typing import Optional, Sequence

import pandas as pd
from sklearn.model_selection import train_test_split


def target_strata(y: pd.Series, n_bins: int = 4) -> Optional[pd.Series]:
    """
    Quantile bins of a numeric target for stratified splitting, or None
    when some bin would be too small to land on both sides of a split.
    """
    try:
        strata = pd.qcut(y, q=n_bins, labels=False, duplicates="drop")
    except ValueError:
        return None
    counts = strata.value_counts()
    if len(counts) < 2 or counts.min() < 2:
        return None
    return strata


class FeatureEngineer:
    """
    Handles predictor/target selection and the train/test split
    for model training.
    """

    def __init__(
        self,
        features: Sequence[str],
        target: str,
        test_size: float = 0.2,
        random_state: int = 42,
        stratify: bool = True,
    ):
        self.features = list(features)
        self.target = target
        self.test_size = test_size
        self.random_state = random_state
        self.stratify = stratify

    def select_features(self, df: pd.DataFrame):
        """
        Select predictor and target columns from the analysis table.
        """
        missing_cols = [f for f in self.features + [self.target] if f not in df.columns]
        if missing_cols:
            raise ValueError(f"[ERROR] Missing columns in dataset: {missing_cols}")

        X = df[self.features]
        y = df[self.target]
        print(f"[INFO] Feature matrix shape: {X.shape}")
        return X, y

    def split_data(self, X: pd.DataFrame, y: pd.Series):
        """
        Split into train and test partitions, stratified on target
        quartiles when the sample allows it.
        """
        if not 0 < self.test_size < 1:
            raise ValueError(f"[ERROR] test_size must be in (0, 1), got {self.test_size}")

        strata = target_strata(y) if self.stratify else None
        if self.stratify and strata is None:
            print("[WARN] Too few rows per target quartile; using an unstratified split.")

        try:
            X_train, X_test, y_train, y_test = train_test_split(
                X, y,
                test_size=self.test_size,
                random_state=self.random_state,
                stratify=strata,
            )
        except ValueError as e:
            if strata is None:
                raise
            print(f"[WARN] Stratified split failed ({e}); using an unstratified split.")
            X_train, X_test, y_train, y_test = train_test_split(
                X, y, test_size=self.test_size, random_state=self.random_state
            )

        if len(X_train) == 0 or len(X_test) == 0:
            raise ValueError(
                f"[ERROR] Degenerate partition: {len(X_train)} train / {len(X_test)} test rows."
            )

        print(f"[INFO] X_train: {X_train.shape}, X_test: {X_test.shape}")
        return X_train, X_test, y_train, y_test

    def run(self, df: pd.DataFrame, split: bool = True):
        X, y = self.select_features(df)
        if split:
            return self.split_data(X, y)
        return X, y
