from __future__ import annotations

from typing import Optional

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .utils.logger import get_logger


class Preprocessor:
    """Builds a ColumnTransformer for numeric/categorical sensor features."""

    def __init__(
        self,
        scale: bool = False,
        impute_strategy: str = "median",
        verbose: bool = False,
    ):
        """
        Parameters
        ----------
        scale:
            Whether to center and scale numeric features. Left off for the
            single decision tree so its split thresholds stay in sensor units.
        impute_strategy:
            Strategy for numeric imputation (median/mean/most_frequent). Only
            matters for tables scored after fitting; training columns carry
            no missing values once filtered.
        verbose:
            If True, logs detected feature groups.
        """
        self.scale = scale
        self.impute_strategy = impute_strategy
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)
        self.transformer: Optional[ColumnTransformer] = None

    def build(self, X: pd.DataFrame) -> ColumnTransformer:
        """Build (but do not fit) the preprocessing transformer."""
        numeric_cols = X.select_dtypes(include=["number", "bool"]).columns.tolist()
        categorical_cols = [col for col in X.columns if col not in numeric_cols]

        num_steps = [("imputer", SimpleImputer(strategy=self.impute_strategy))]
        if self.scale:
            num_steps.append(("scaler", StandardScaler()))
        num_pipe = Pipeline(steps=num_steps)

        cat_pipe = Pipeline(
            steps=[
                ("imputer", SimpleImputer(strategy="most_frequent")),
                ("encoder", OneHotEncoder(handle_unknown="ignore", sparse_output=False)),
            ]
        )

        self.transformer = ColumnTransformer(
            transformers=[
                ("num", num_pipe, numeric_cols),
                ("cat", cat_pipe, categorical_cols),
            ],
            remainder="drop",
        )

        if self.verbose:
            self.logger.info(
                f"Columns detected: numeric={len(numeric_cols)}, "
                f"categorical={len(categorical_cols)}, scaled={self.scale}"
            )

        return self.transformer
