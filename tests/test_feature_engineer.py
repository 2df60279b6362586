import numpy as np
import pandas as pd
import pytest

from bmi_prostate.data.feature_engineer import FeatureEngineer, target_strata


def test_target_strata_none_when_bins_too_small():
    assert target_strata(pd.Series([1.0, 2.0, 3.0])) is None
    strata = target_strata(pd.Series(np.arange(20, dtype=float)))
    assert strata.nunique() == 4


def test_split_is_reproducible_and_stratified(analysis_frame):
    fe = FeatureEngineer(["continent", "bmi", "smokers_percent"], "prostate_deaths", random_state=7)
    first = fe.run(analysis_frame)
    second = fe.run(analysis_frame)

    assert first[0].index.tolist() == second[0].index.tolist()
    assert len(first[1]) == 8
    test_strata = target_strata(analysis_frame["prostate_deaths"]).loc[first[1].index]
    assert test_strata.value_counts().tolist() == [2, 2, 2, 2]


def test_split_falls_back_to_unstratified_for_tiny_samples(analysis_frame):
    fe = FeatureEngineer(["bmi"], "prostate_deaths", test_size=0.2)
    X_train, X_test, _, _ = fe.run(analysis_frame.head(5))
    assert len(X_train) == 4 and len(X_test) == 1


@pytest.mark.parametrize("test_size", [0.0, 1.0, 1.5])
def test_split_rejects_invalid_test_size(analysis_frame, test_size):
    fe = FeatureEngineer(["bmi"], "prostate_deaths", test_size=test_size)
    with pytest.raises(ValueError):
        fe.run(analysis_frame)


def test_select_features_missing_column(analysis_frame):
    fe = FeatureEngineer(["bmi", "gdp"], "prostate_deaths")
    with pytest.raises(ValueError, match="gdp"):
        fe.select_features(analysis_frame)
