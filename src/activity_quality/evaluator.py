import json
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import cohen_kappa_score, confusion_matrix

from .errors import PredictionError
from .model_trainer import TrainedModel
from .utils.logger import get_logger


@dataclass
class EvaluationResult:
    """Predictions and derived metrics of one model on one labeled table."""

    kind: str
    predictions: pd.Series
    confusion: pd.DataFrame
    accuracy: float
    kappa: float
    per_class: pd.DataFrame

    @property
    def out_of_sample_error(self) -> float:
        return 1.0 - self.accuracy

    def to_dict(self) -> Dict[str, object]:
        return {
            "accuracy": self.accuracy,
            "out_of_sample_error": self.out_of_sample_error,
            "kappa": self.kappa,
            "per_class": {
                str(label): {k: float(v) for k, v in row.items()}
                for label, row in self.per_class.iterrows()
            },
            "confusion_matrix": {
                str(true): {str(pred): int(n) for pred, n in row.items()}
                for true, row in self.confusion.iterrows()
            },
        }


def per_class_rates(confusion: pd.DataFrame) -> pd.DataFrame:
    """One-vs-rest sensitivity and specificity from a square confusion matrix."""
    cm = confusion.to_numpy(dtype=float)
    total = cm.sum()
    tp = np.diag(cm)
    fn = cm.sum(axis=1) - tp
    fp = cm.sum(axis=0) - tp
    tn = total - tp - fn - fp
    with np.errstate(divide="ignore", invalid="ignore"):
        sensitivity = np.where(tp + fn > 0, tp / (tp + fn), np.nan)
        specificity = np.where(tn + fp > 0, tn / (tn + fp), np.nan)
    return pd.DataFrame(
        {"sensitivity": sensitivity, "specificity": specificity},
        index=confusion.index,
    )


class Evaluator:
    """Apply trained models to labeled or unlabeled tables and derive metrics."""

    def __init__(self, label_col: str = "classe", verbose: bool = True):
        self.label_col = label_col
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def predict(self, model: TrainedModel, df: pd.DataFrame) -> pd.Series:
        """Predictions aligned to the input rows (same index, same order)."""
        y_pred = model.predict(df)
        return pd.Series(y_pred, index=df.index, name=model.kind)

    def evaluate(self, model: TrainedModel, df: pd.DataFrame) -> EvaluationResult:
        if self.label_col not in df.columns:
            raise PredictionError(
                model.kind,
                f"cannot evaluate without the label column '{self.label_col}'",
                [self.label_col],
            )
        predictions = self.predict(model, df)
        y_true = df[self.label_col].to_numpy()
        y_pred = predictions.to_numpy()

        labels = sorted(set(y_true) | set(y_pred))
        cm = pd.DataFrame(
            confusion_matrix(y_true, y_pred, labels=labels),
            index=pd.Index(labels, name="true"),
            columns=pd.Index(labels, name="predicted"),
        )
        total = int(cm.to_numpy().sum())
        accuracy = float(np.trace(cm.to_numpy()) / total) if total else float("nan")

        result = EvaluationResult(
            kind=model.kind,
            predictions=predictions,
            confusion=cm,
            accuracy=accuracy,
            kappa=float(cohen_kappa_score(y_true, y_pred, labels=labels)),
            per_class=per_class_rates(cm),
        )
        if self.verbose:
            self.logger.info(
                f"{model.kind}: accuracy {accuracy:.4f}, "
                f"out-of-sample error {100 * result.out_of_sample_error:.2f}%"
            )
        return result

    def save_metrics(self, results: Mapping[str, EvaluationResult], path: str) -> None:
        metrics = {kind: result.to_dict() for kind, result in results.items()}
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump(metrics, f, indent=4)
        if self.verbose:
            self.logger.info(f"Saved metrics: {path}")


def aggregate_predictions(
    predictions: Mapping[str, pd.Series],
    ids: Optional[pd.Series] = None,
) -> pd.DataFrame:
    """
    Collect each model's scoring predictions into one table, one column per
    model kind. Every series must share the same index so row i of the table
    refers to the same scoring row for all kinds.
    """
    frames = list(predictions.values())
    if frames:
        index = frames[0].index
        for kind, series in predictions.items():
            if not series.index.equals(index):
                raise PredictionError(kind, "predictions are not aligned to the scoring rows")
    else:
        index = ids.index if ids is not None else pd.RangeIndex(0)

    table = pd.DataFrame({kind: series for kind, series in predictions.items()}, index=index)
    if ids is not None:
        table.insert(0, ids.name or "id", ids.reindex(index).to_numpy())
    table.index.name = "row"
    return table
