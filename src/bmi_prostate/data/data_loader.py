import os
import re
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

EXPECTED_COLUMNS = [
    "country",
    "continent",
    "year",
    "bmi",
    "smokers_percent",
    "prostate_deaths",
]

ANALYSIS_COLUMNS = ["bmi", "smokers_percent", "prostate_deaths"]

# plain digits, or digits grouped in threes by commas
_NUMBER_RE = re.compile(r"^(\d+|\d{1,3}(,\d{3})+)(\.\d+)?$")


def parse_death_count(value) -> float:
    """
    Parse a death count that may be text formatted ("15.4k", "3,200").

    The "k" suffix is checked first, so a malformed "1,200k" is read as
    1,200,000. Commas must group digits in threes ("1,2,3" is rejected).
    Strings matching neither form, and non-finite numbers, come back as NaN.
    """
    if value is None:
        return np.nan
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        value = float(value)
        return value if np.isfinite(value) and value >= 0 else np.nan

    text = str(value).strip().lower()
    multiplier = 1.0
    if text.endswith("k"):
        text = text[:-1].rstrip()
        multiplier = 1000.0

    if not _NUMBER_RE.match(text):
        return np.nan
    return float(text.replace(",", "")) * multiplier


@dataclass(frozen=True)
class AnalysisDataset:
    """
    Filtered and coerced observations for one snapshot year.

    `frame` hands out a copy, so downstream stages can't mutate the
    table the other stages read.
    """

    year: int
    n_input: int
    _frame: pd.DataFrame = field(repr=False)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def n_rows(self) -> int:
        return len(self._frame)

    @property
    def n_dropped(self) -> int:
        return self.n_input - len(self._frame)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, year: int) -> "AnalysisDataset":
        """Wrap an already processed table (e.g. re-read from disk)."""
        missing = [c for c in ANALYSIS_COLUMNS + ["continent"] if c not in df.columns]
        if missing:
            raise ValueError(f"Missing expected columns: {missing}")
        return cls(year=int(year), n_input=len(df), _frame=df.reset_index(drop=True).copy())


def filter_and_coerce(df: pd.DataFrame, year: int) -> AnalysisDataset:
    """
    Keep the rows of `year`, parse death counts, coerce BMI and smoking
    prevalence to numbers and drop every row missing one of them.
    """
    years = pd.to_numeric(df["year"], errors="coerce")
    out = df.loc[years == year].copy()
    n_input = out.shape[0]

    out["year"] = int(year)
    out["prostate_deaths"] = out["prostate_deaths"].map(parse_death_count).astype(float)
    for col in ("bmi", "smokers_percent"):
        # read_csv turns "inf" into a float, so coercion alone keeps it
        out[col] = pd.to_numeric(out[col], errors="coerce").replace([np.inf, -np.inf], np.nan)
    out["continent"] = out["continent"].where(
        out["continent"].isna(), out["continent"].astype(str).str.strip()
    )

    out = out.dropna(subset=ANALYSIS_COLUMNS).reset_index(drop=True)
    print(f"[INFO] Year {year}: kept {out.shape[0]} of {n_input} rows "
          f"({n_input - out.shape[0]} dropped for missing/unparseable values).")
    if out.empty:
        print(f"[WARN] No complete observations left for year {year}.")

    return AnalysisDataset(year=int(year), n_input=n_input, _frame=out)


class DataLoader:
    """
    Loads the cleaned country/year dataset and derives the analysis table
    for one snapshot year.
    """

    def __init__(self, input_path: str, output_path: str = None):
        self.input_path = input_path
        self.output_path = output_path or os.path.join(
            os.path.dirname(input_path), "..", "processed", "analysis_dataset.csv"
        )

    def load_data(self) -> pd.DataFrame:
        """
        Load the CSV and validate its columns.
        """
        if not os.path.exists(self.input_path):
            raise FileNotFoundError(f"File not found: {self.input_path}")

        df = pd.read_csv(self.input_path)
        print(f"[INFO] Loaded dataset — Rows: {df.shape[0]}, Columns: {df.shape[1]}")

        missing_cols = [c for c in EXPECTED_COLUMNS if c not in df.columns]
        if missing_cols:
            raise ValueError(f"Missing expected columns: {missing_cols}")

        print("[INFO] Column validation passed.")
        return df

    def preprocess(self, df: pd.DataFrame, year: int) -> AnalysisDataset:
        print("[INFO] Filtering and coercing...")
        return filter_and_coerce(df, year)

    def save_processed(self, dataset: AnalysisDataset):
        os.makedirs(os.path.dirname(self.output_path), exist_ok=True)
        dataset.frame.to_csv(self.output_path, index=False)
        print(f"[INFO] Analysis dataset saved to: {self.output_path}")

    def run(self, year: int) -> AnalysisDataset:
        """
        Execute load → filter/coerce → save.
        """
        df = self.load_data()
        dataset = self.preprocess(df, year)
        self.save_processed(dataset)
        return dataset
