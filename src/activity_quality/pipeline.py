import os
import warnings
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import pandas as pd

from .column_filter import DEFAULT_ID_COLUMNS, ColumnFilter, FilterSummary
from .config import Config
from .data_loader import DEFAULT_NA_VALUES, DataLoader, load_tables
from .errors import PipelineError, PredictionError
from .evaluator import EvaluationResult, Evaluator, aggregate_predictions
from .model_trainer import ModelTrainer, TrainedModel, build_model_specs
from .partitioner import Partitioner
from .report import build_report
from .utils.logger import get_logger


@dataclass
class PipelineResult:
    stage_shapes: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    filter_summary: Optional[FilterSummary] = None
    models: Dict[str, TrainedModel] = field(default_factory=dict)
    validation: Dict[str, EvaluationResult] = field(default_factory=dict)
    scoring_predictions: Optional[pd.DataFrame] = None
    failures: Dict[str, PipelineError] = field(default_factory=dict)
    report: str = ""


class PipelineRunner:
    """End-to-end activity quality classification pipeline.

    Steps:
      1. Load training and scoring tables (download and cache when URLs are set)
      2. Drop identifier, near-zero-variance and high-missingness columns
      3. Stratified train/validation split
      4. Grid search with 5-fold CV for each configured model kind
      5. Evaluate each model on the validation subset
      6. Predict the scoring table with every model
      7. Write the text report, metrics JSON and predictions CSV

    Load and configuration errors abort the run. A model kind that fails to
    train or predict is recorded in the report and the remaining kinds go on.
    """

    def __init__(self, config_path: str):
        self.config = Config.from_yaml(config_path)
        self.logger = get_logger(self.__class__.__name__)
        warnings.filterwarnings(
            "ignore",
            message="X does not have valid feature names",
            category=UserWarning,
            module="sklearn",
        )

    def _load(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        data = self.config.data
        na_values = data.get("na_values", DEFAULT_NA_VALUES)
        train_loader = DataLoader(
            data["train_path"],
            url=data.get("train_url"),
            na_values=na_values,
            sample_size=data.get("sample_size"),
            random_state=self.config.partition.get("random_state", 42),
        )
        scoring_loader = DataLoader(
            data["scoring_path"], url=data.get("scoring_url"), na_values=na_values
        )
        return load_tables(
            train_loader,
            scoring_loader,
            label_col=data.get("label_col", "classe"),
            scoring_id_col=data.get("scoring_id_col"),
        )

    def run(self) -> PipelineResult:
        cfg = self.config
        label_col = cfg.data.get("label_col", "classe")
        id_col = cfg.data.get("scoring_id_col")
        result = PipelineResult()
        self.logger.info("Starting activity quality pipeline")

        train_raw, scoring_raw = self._load()
        result.stage_shapes["raw training"] = train_raw.shape
        result.stage_shapes["raw scoring"] = scoring_raw.shape
        self.logger.info(
            f"Loaded training {train_raw.shape[0]:,} x {train_raw.shape[1]}, "
            f"scoring {scoring_raw.shape[0]:,} x {scoring_raw.shape[1]}"
        )

        column_filter = ColumnFilter(
            label_col=label_col,
            drop_columns=cfg.filtering.get("drop_columns", DEFAULT_ID_COLUMNS),
            freq_cut=cfg.filtering.get("freq_cut", 95 / 5),
            unique_cut=cfg.filtering.get("unique_cut", 10.0),
            min_non_missing=cfg.filtering.get("min_non_missing", 0.95),
        ).fit(train_raw)
        train_df = column_filter.transform(train_raw)
        scoring_df = column_filter.transform(scoring_raw)
        result.filter_summary = column_filter.summary
        result.stage_shapes["filtered training"] = train_df.shape
        result.stage_shapes["filtered scoring"] = scoring_df.shape

        partitioner = Partitioner(
            train_fraction=cfg.partition.get("train_fraction", 0.7),
            random_state=cfg.partition.get("random_state", 42),
        )
        train_part, valid_part = partitioner.split(train_df, label_col)
        result.stage_shapes["training subset"] = train_part.shape
        result.stage_shapes["validation subset"] = valid_part.shape

        trainer = ModelTrainer(
            n_splits=cfg.validation.get("n_splits", 5),
            random_state=cfg.validation.get("random_state", 42),
            n_jobs=cfg.validation.get("n_jobs", 1),
        )
        specs = build_model_specs(cfg.models)
        result.models, training_failures = trainer.fit_all(specs, train_part, label_col)
        result.failures.update(training_failures)

        evaluator = Evaluator(label_col=label_col)
        scoring_predictions: Dict[str, pd.Series] = {}
        for kind, model in result.models.items():
            try:
                result.validation[kind] = evaluator.evaluate(model, valid_part)
                scoring_predictions[kind] = evaluator.predict(model, scoring_df)
            except PredictionError as exc:
                self.logger.error(f"Evaluation failed: {exc}")
                result.validation.pop(kind, None)
                result.failures[kind] = exc

        ids = scoring_raw[id_col] if id_col and id_col in scoring_raw.columns else None
        result.scoring_predictions = aggregate_predictions(scoring_predictions, ids)

        result.report = build_report(
            result.stage_shapes,
            result.filter_summary,
            result.models,
            result.validation,
            result.scoring_predictions,
            result.failures,
        )
        self._write_outputs(result, evaluator, trainer)
        self.logger.info("Pipeline finished")
        return result

    def _write_outputs(
        self, result: PipelineResult, evaluator: Evaluator, trainer: ModelTrainer
    ) -> None:
        out = self.config.output

        report_path = out.get("report_path")
        if report_path:
            os.makedirs(os.path.dirname(report_path) or ".", exist_ok=True)
            with open(report_path, "w") as f:
                f.write(result.report)
            self.logger.info(f"Saved report: {report_path}")

        if out.get("metrics_path"):
            evaluator.save_metrics(result.validation, out["metrics_path"])

        predictions_path = out.get("predictions_path")
        if predictions_path and result.scoring_predictions is not None:
            os.makedirs(os.path.dirname(predictions_path) or ".", exist_ok=True)
            result.scoring_predictions.to_csv(predictions_path)
            self.logger.info(
                f"Predictions saved: {predictions_path} "
                f"({len(result.scoring_predictions):,} rows)"
            )

        if out.get("model_dir"):
            for model in result.models.values():
                trainer.save(model, out["model_dir"])
