import os
import time
import warnings
from dataclasses import dataclass, field
from typing import Any, Callable

import joblib
import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from lightgbm import LGBMClassifier
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import accuracy_score
from sklearn.model_selection import ParameterGrid, StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.tree import DecisionTreeClassifier

from .errors import ConfigurationError, PredictionError, TrainingError
from .preprocessor import Preprocessor
from .utils.logger import get_logger

MODEL_REGISTRY: dict[str, Callable[..., Any]] = {
    "decision_tree": DecisionTreeClassifier,
    "random_forest": RandomForestClassifier,
    "gradient_boosting": LGBMClassifier,
}

# Fixed estimator arguments that are not part of the search grid.
BASE_PARAMS: dict[str, dict[str, Any]] = {
    "decision_tree": {},
    "random_forest": {"n_jobs": -1},
    "gradient_boosting": {"verbosity": -1},
}


@dataclass(frozen=True)
class ModelSpec:
    """One model configuration: estimator kind, hyperparameter grid, scaling flag."""

    kind: str
    param_grid: dict[str, list[Any]] = field(default_factory=dict)
    scale: bool = True

    def __post_init__(self) -> None:
        if self.kind not in MODEL_REGISTRY:
            raise ConfigurationError(
                f"Unknown model kind '{self.kind}'; expected one of {sorted(MODEL_REGISTRY)}"
            )


DEFAULT_MODEL_SPECS: list[ModelSpec] = [
    ModelSpec("decision_tree", {"max_depth": [5, 10, 20, None]}, scale=False),
    ModelSpec(
        "random_forest",
        {"n_estimators": [100], "max_features": ["sqrt", 0.25, 0.5]},
        scale=True,
    ),
    ModelSpec(
        "gradient_boosting",
        {"n_estimators": [50, 100, 150], "max_depth": [1, 2, 3], "learning_rate": [0.1]},
        scale=True,
    ),
]


def build_model_specs(models_cfg: dict[str, Any] | None) -> list[ModelSpec]:
    """
    Build model specs from the ``models`` config section.

    Each key is a model kind mapping to ``param_grid``, ``scale`` and an
    optional ``enabled`` flag. Kinds left out of the section are not trained;
    an empty section falls back to DEFAULT_MODEL_SPECS.
    """
    if not models_cfg:
        return list(DEFAULT_MODEL_SPECS)

    defaults = {spec.kind: spec for spec in DEFAULT_MODEL_SPECS}
    specs: list[ModelSpec] = []
    for kind, entry in models_cfg.items():
        entry = dict(entry or {})
        if not entry.get("enabled", True):
            continue
        default = defaults.get(kind, ModelSpec(kind))
        grid = entry.get("param_grid", default.param_grid) or {}
        grid = {
            name: values if isinstance(values, list) else [values]
            for name, values in grid.items()
        }
        specs.append(ModelSpec(kind, grid, bool(entry.get("scale", default.scale))))

    if not specs:
        raise ConfigurationError("No model kinds are enabled")
    return specs


@dataclass(frozen=True)
class CVResult:
    """Cross-validated accuracy of one hyperparameter combination."""

    params: dict[str, Any]
    fold_accuracies: tuple[float, ...]
    mean_accuracy: float


@dataclass(frozen=True)
class TrainedModel:
    """
    Container for a fitted model with its selection metadata.

    Attributes:
        kind: Model kind (key of MODEL_REGISTRY).
        pipeline: Fitted preprocessing + estimator pipeline.
        best_params: Selected hyperparameters.
        cv_results: Accuracy curve over the grid, in grid order.
        cv_accuracy: Mean CV accuracy of the selected combination.
        feature_names: Feature columns the model was fitted on.
        training_time_s: Wall time of search plus refit.
    """

    kind: str
    pipeline: Pipeline
    best_params: dict[str, Any]
    cv_results: tuple[CVResult, ...]
    cv_accuracy: float
    feature_names: tuple[str, ...]
    training_time_s: float = 0.0

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        missing = [c for c in self.feature_names if c not in df.columns]
        if missing:
            raise PredictionError.missing_columns(self.kind, missing)
        return self.pipeline.predict(df.loc[:, list(self.feature_names)])


class ModelTrainer:
    """
    Grid search with leakage-safe stratified cross-validation:
    preprocessing is fit only on training folds, then applied to the held-out fold.

    Provides:
      - cross_validate: per-fold and mean accuracy of one parameter combination
      - fit: grid search for one ModelSpec, then refit on the full training subset
      - fit_all: independent fit per spec, collecting per-kind failures
    """

    def __init__(self, n_splits: int = 5, random_state: int = 42, n_jobs: int = 1):
        self.n_splits = n_splits
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.logger = get_logger(self.__class__.__name__)

    def _build_pipeline(
        self, spec: ModelSpec, params: dict[str, Any], X: pd.DataFrame
    ) -> Pipeline:
        estimator_params = dict(BASE_PARAMS[spec.kind])
        estimator_params["random_state"] = self.random_state
        estimator_params.update(params)
        estimator = MODEL_REGISTRY[spec.kind](**estimator_params)
        transformer = Preprocessor(scale=spec.scale).build(X)
        return Pipeline(steps=[("prep", transformer), ("model", estimator)])

    def make_folds(
        self, kind: str, X: pd.DataFrame, y: np.ndarray
    ) -> list[tuple[np.ndarray, np.ndarray]]:
        skf = StratifiedKFold(
            n_splits=self.n_splits, shuffle=True, random_state=self.random_state
        )
        try:
            return list(skf.split(X, y))
        except ValueError as exc:
            raise TrainingError(kind, f"cannot build {self.n_splits} folds: {exc}") from exc

    def _fit_fold(
        self,
        spec: ModelSpec,
        params: dict[str, Any],
        X: pd.DataFrame,
        y: np.ndarray,
        fold: int,
        train_idx: np.ndarray,
        val_idx: np.ndarray,
    ) -> float:
        y_train = y[train_idx]
        if np.unique(y_train).size < 2:
            raise TrainingError(spec.kind, "training fold holds a single class", fold=fold)

        warnings.filterwarnings("ignore", category=UserWarning, module="lightgbm")
        X_train = X.iloc[train_idx]
        try:
            model = self._build_pipeline(spec, params, X_train)
            model.fit(X_train, y_train)
            y_pred = model.predict(X.iloc[val_idx])
        except Exception as exc:
            raise TrainingError(
                spec.kind, f"fit failed for {params}: {exc}", fold=fold
            ) from exc
        return float(accuracy_score(y[val_idx], y_pred))

    def cross_validate(
        self,
        spec: ModelSpec,
        X: pd.DataFrame,
        y: np.ndarray,
        params: dict[str, Any],
        folds: list[tuple[np.ndarray, np.ndarray]] | None = None,
    ) -> CVResult:
        """
        Accuracy of ``params`` on each held-out fold and their arithmetic mean.
        Folds run through joblib; results are gathered in fold order.
        """
        y = np.asarray(y)
        if folds is None:
            folds = self.make_folds(spec.kind, X, y)

        scores = Parallel(n_jobs=self.n_jobs)(
            delayed(self._fit_fold)(spec, params, X, y, fold, train_idx, val_idx)
            for fold, (train_idx, val_idx) in enumerate(folds, start=1)
        )
        mean_accuracy = sum(scores) / len(scores)
        return CVResult(dict(params), tuple(scores), mean_accuracy)

    def fit(self, spec: ModelSpec, train_df: pd.DataFrame, label_col: str) -> TrainedModel:
        """Select the best grid combination by mean CV accuracy and refit on all rows."""
        start = time.perf_counter()
        X = train_df.drop(columns=[label_col])
        y = train_df[label_col].to_numpy()

        grid = list(ParameterGrid(spec.param_grid))
        self.logger.info(
            f"Training {spec.kind}: {len(grid)} combination(s) x {self.n_splits} folds "
            f"on {len(X):,} rows, scale={spec.scale}"
        )

        folds = self.make_folds(spec.kind, X, y)
        curve: list[CVResult] = []
        best: CVResult | None = None
        for params in grid:
            result = self.cross_validate(spec, X, y, params, folds)
            curve.append(result)
            self.logger.info(f"{spec.kind} {params}: CV accuracy {result.mean_accuracy:.4f}")
            # strict comparison keeps the first combination on ties
            if best is None or result.mean_accuracy > best.mean_accuracy:
                best = result

        try:
            pipeline = self._build_pipeline(spec, best.params, X)
            pipeline.fit(X, y)
        except Exception as exc:
            raise TrainingError(spec.kind, f"final refit failed: {exc}") from exc

        elapsed = time.perf_counter() - start
        self.logger.info(
            f"{spec.kind}: selected {best.params} "
            f"(CV accuracy {best.mean_accuracy:.4f}, {elapsed:.1f}s)"
        )
        return TrainedModel(
            kind=spec.kind,
            pipeline=pipeline,
            best_params=dict(best.params),
            cv_results=tuple(curve),
            cv_accuracy=best.mean_accuracy,
            feature_names=tuple(X.columns),
            training_time_s=elapsed,
        )

    def fit_all(
        self, specs: list[ModelSpec], train_df: pd.DataFrame, label_col: str
    ) -> tuple[dict[str, TrainedModel], dict[str, TrainingError]]:
        """Fit every spec independently; a failing kind does not stop the others."""
        trained: dict[str, TrainedModel] = {}
        failures: dict[str, TrainingError] = {}
        for spec in specs:
            try:
                trained[spec.kind] = self.fit(spec, train_df, label_col)
            except TrainingError as exc:
                self.logger.error(f"Training failed: {exc}")
                failures[spec.kind] = exc
        return trained, failures

    def save(self, model: TrainedModel, directory: str) -> str:
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, f"{model.kind}.joblib")
        joblib.dump(model, path)
        self.logger.info(f"Saved model: {path}")
        return path
