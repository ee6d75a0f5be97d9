import os
from typing import Optional, Sequence, Tuple

import pandas as pd

from .errors import LoadError
from .utils.logger import get_logger

DEFAULT_NA_VALUES = ("NA", "#DIV/0!", "")


class DataLoader:
    """Loads a CSV table, downloading and caching it first when a URL is given."""

    def __init__(
        self,
        path: str,
        url: Optional[str] = None,
        na_values: Sequence[str] = DEFAULT_NA_VALUES,
        sample_size: Optional[int] = None,
        random_state: int = 42,
    ):
        self.path = path
        self.url = url
        self.na_values = list(na_values)
        self.sample_size = sample_size
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def _read(self, source: str, **kwargs) -> pd.DataFrame:
        try:
            return pd.read_csv(source, **kwargs)
        except FileNotFoundError as exc:
            raise LoadError(f"Source not found: {source}") from exc
        except pd.errors.EmptyDataError as exc:
            raise LoadError(f"Source is empty or has no header: {source}") from exc
        except pd.errors.ParserError as exc:
            raise LoadError(f"Malformed table in {source}: {exc}") from exc
        except (OSError, ValueError) as exc:
            raise LoadError(f"Cannot read {source}: {exc}") from exc

    def _read_raw(self, source: str) -> pd.DataFrame:
        """
        Read every cell as text with NA parsing off. Any NaN left is padding
        that pandas added to a row with fewer fields than the header.
        """
        raw = self._read(source, dtype=str, keep_default_na=False, na_values=[])
        short_rows = raw.index[raw.isna().any(axis=1)]
        if len(short_rows):
            raise LoadError(
                f"Malformed table in {source}: {len(short_rows)} row(s) have fewer "
                f"fields than the header (first at data row {short_rows[0] + 1})"
            )
        return raw

    def _fetch(self) -> None:
        self.logger.info(f"Downloading {self.url}")
        raw = self._read_raw(self.url)
        cache_dir = os.path.dirname(self.path)
        if cache_dir:
            os.makedirs(cache_dir, exist_ok=True)
        raw.to_csv(self.path, index=False)
        self.logger.info(f"Cached download to {self.path}")

    def load(self) -> pd.DataFrame:
        if self.url and not os.path.exists(self.path):
            self._fetch()
        self._read_raw(self.path)
        df = self._read(self.path, na_values=self.na_values, keep_default_na=True)

        if df.columns.empty:
            raise LoadError(f"Table {self.path} has no header row")
        if any(str(col).startswith("Unnamed: ") for col in df.columns[1:]):
            raise LoadError(f"Table {self.path} has blank column names in its header")

        if self.sample_size and self.sample_size < len(df):
            df = df.sample(self.sample_size, random_state=self.random_state)
        return df


def load_tables(
    train_loader: DataLoader,
    scoring_loader: DataLoader,
    label_col: str,
    scoring_id_col: Optional[str] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Load the training and scoring tables and check their headers agree.

    The training table must carry ``label_col``. The scoring table never
    does; it may carry ``scoring_id_col`` in its place. Every other column
    must appear in both tables in the same order.
    """
    train = train_loader.load()
    scoring = scoring_loader.load()

    if label_col not in train.columns:
        raise LoadError(f"Training table has no label column '{label_col}'")
    if label_col in scoring.columns:
        raise LoadError(f"Scoring table must not carry the label column '{label_col}'")

    train_features = [c for c in train.columns if c != label_col]
    scoring_features = [c for c in scoring.columns if c != scoring_id_col]
    if train_features != scoring_features:
        only_train = sorted(set(train_features) - set(scoring_features))
        only_scoring = sorted(set(scoring_features) - set(train_features))
        raise LoadError(
            "Training and scoring headers differ "
            f"(only in training: {only_train}, only in scoring: {only_scoring})"
        )

    return train, scoring
