from typing import Tuple

import pandas as pd
from sklearn.model_selection import train_test_split

from .errors import ConfigurationError
from .utils.logger import get_logger


class Partitioner:
    """Stratified, seeded train/validation split on the label column."""

    def __init__(self, train_fraction: float = 0.7, random_state: int = 42):
        if not 0.0 < train_fraction < 1.0:
            raise ConfigurationError(
                f"train_fraction must lie strictly between 0 and 1, got {train_fraction}"
            )
        self.train_fraction = train_fraction
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def split(self, df: pd.DataFrame, label_col: str) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Split ``df`` into (training, validation) subsets.

        Index labels are preserved so every input row lands in exactly one
        subset. The same seed and input always give the same split.
        """
        if label_col not in df.columns:
            raise ConfigurationError(f"Cannot stratify: no label column '{label_col}'")

        try:
            train, valid = train_test_split(
                df,
                train_size=self.train_fraction,
                stratify=df[label_col],
                random_state=self.random_state,
                shuffle=True,
            )
        except ValueError as exc:
            raise ConfigurationError(f"Cannot partition table: {exc}") from exc

        self.logger.info(
            f"Partitioned {len(df):,} rows into training={len(train):,}, "
            f"validation={len(valid):,}"
        )
        return train.copy(), valid.copy()
