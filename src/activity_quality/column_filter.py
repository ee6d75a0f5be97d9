from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd

from .errors import ConfigurationError
from .utils.logger import get_logger

DEFAULT_ID_COLUMNS = (
    "Unnamed: 0",
    "user_name",
    "raw_timestamp_part_1",
    "raw_timestamp_part_2",
    "cvtd_timestamp",
)


def near_zero_variance(
    df: pd.DataFrame,
    freq_cut: float = 95 / 5,
    unique_cut: float = 10.0,
) -> pd.DataFrame:
    """
    Per-column near-zero-variance diagnostics.

    freq_ratio is the count of the most common value over the count of the
    second most common one; percent_unique is the number of distinct values
    as a percentage of the row count. A column is flagged when it holds a
    single value, or when freq_ratio > freq_cut and percent_unique <= unique_cut.
    Missing values are ignored.
    """
    rows = []
    n_rows = max(len(df), 1)
    for col in df.columns:
        counts = df[col].value_counts(dropna=True)
        n_unique = len(counts)
        if n_unique > 1:
            freq_ratio = float(counts.iloc[0] / counts.iloc[1])
        else:
            freq_ratio = float("inf") if n_unique == 1 else 0.0
        percent_unique = 100.0 * n_unique / n_rows
        zero_var = n_unique <= 1
        rows.append(
            {
                "column": col,
                "freq_ratio": freq_ratio,
                "percent_unique": percent_unique,
                "zero_var": zero_var,
                "nzv": zero_var or (freq_ratio > freq_cut and percent_unique <= unique_cut),
            }
        )
    return pd.DataFrame(
        rows, columns=["column", "freq_ratio", "percent_unique", "zero_var", "nzv"]
    ).set_index("column")


@dataclass
class FilterSummary:
    dropped_ids: List[str] = field(default_factory=list)
    dropped_nzv: List[str] = field(default_factory=list)
    dropped_missing: List[str] = field(default_factory=list)
    retained: List[str] = field(default_factory=list)


class ColumnFilter:
    """
    Decides once, from the training table, which feature columns to keep.

    The same retention set is then applied to every table (training,
    validation, scoring), so no later split can influence feature selection.
    """

    def __init__(
        self,
        label_col: str = "classe",
        drop_columns: Sequence[str] = DEFAULT_ID_COLUMNS,
        freq_cut: float = 95 / 5,
        unique_cut: float = 10.0,
        min_non_missing: float = 0.95,
    ):
        if label_col in drop_columns:
            raise ConfigurationError(
                f"Label column '{label_col}' is listed among the columns to drop"
            )
        if not 0.0 <= min_non_missing <= 1.0:
            raise ConfigurationError(
                f"min_non_missing must lie in [0, 1], got {min_non_missing}"
            )
        self.label_col = label_col
        self.drop_columns = list(drop_columns)
        self.freq_cut = freq_cut
        self.unique_cut = unique_cut
        self.min_non_missing = min_non_missing
        self.logger = get_logger(self.__class__.__name__)
        self.summary: Optional[FilterSummary] = None

    @property
    def retained_columns(self) -> List[str]:
        if self.summary is None:
            raise RuntimeError("Call fit() before using the retained columns.")
        return list(self.summary.retained)

    def fit(self, train: pd.DataFrame) -> "ColumnFilter":
        if self.label_col not in train.columns:
            raise ConfigurationError(
                f"Label column '{self.label_col}' is not in the training table"
            )

        summary = FilterSummary()
        candidates = [c for c in train.columns if c != self.label_col]

        summary.dropped_ids = [c for c in candidates if c in self.drop_columns]
        candidates = [c for c in candidates if c not in self.drop_columns]

        nzv = near_zero_variance(train[candidates], self.freq_cut, self.unique_cut)
        summary.dropped_nzv = nzv.index[nzv["nzv"].to_numpy(dtype=bool)].tolist()
        candidates = [c for c in candidates if c not in summary.dropped_nzv]

        non_missing = train[candidates].notna().mean()
        summary.dropped_missing = non_missing.index[
            non_missing < self.min_non_missing
        ].tolist()
        candidates = [c for c in candidates if c not in summary.dropped_missing]

        still_missing = [c for c in candidates if train[c].isna().any()]
        if still_missing:
            raise ConfigurationError(
                "Retained training columns still contain missing values: "
                f"{still_missing}; raise min_non_missing or clean the source"
            )

        summary.retained = candidates
        self.summary = summary
        self.logger.info(
            f"Column filter: dropped ids={len(summary.dropped_ids)}, "
            f"nzv={len(summary.dropped_nzv)}, missing={len(summary.dropped_missing)}; "
            f"retained {len(summary.retained)} features"
        )
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a new frame with the retained features, plus the label if present."""
        retained = self.retained_columns
        missing = [c for c in retained if c not in df.columns]
        if missing:
            raise ConfigurationError(
                f"Table is missing retained column(s): {missing}"
            )
        columns = retained + ([self.label_col] if self.label_col in df.columns else [])
        return df.loc[:, columns].copy()

    def fit_transform(self, train: pd.DataFrame) -> pd.DataFrame:
        return self.fit(train).transform(train)
