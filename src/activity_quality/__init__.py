"""
Weight Lifting Exercise — Activity Quality Classification Pipeline

This package predicts how well a dumbbell exercise was performed
(``classe`` A–E) from belt, arm, forearm and dumbbell sensor readings.
It cleans the sensor table, splits it into training/validation subsets,
grid-searches a decision tree, a random forest and LightGBM gradient
boosting with stratified cross-validation, and reports validation
accuracy plus predictions for the scoring table.

Modules:
    config          — Load YAML configuration safely.
    data_loader     — Read (and optionally download/cache) the CSV tables.
    column_filter   — Drop identifier, near-zero-variance and sparse columns.
    partitioner     — Stratified, seeded train/validation split.
    preprocessor    — Per-fold imputation, scaling and encoding.
    model_trainer   — Cross-validated grid search for each model kind.
    evaluator       — Confusion matrices, accuracy and prediction tables.
    report          — Plain-text run summary.
    pipeline        — Orchestrates all components.
    errors          — Load/configuration/training/prediction errors.
    utils.logger    — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader, load_tables
from .column_filter import ColumnFilter, near_zero_variance
from .partitioner import Partitioner
from .preprocessor import Preprocessor
from .model_trainer import ModelSpec, ModelTrainer, TrainedModel, build_model_specs
from .evaluator import Evaluator, aggregate_predictions
from .pipeline import PipelineRunner
from .errors import (
    ConfigurationError,
    LoadError,
    PipelineError,
    PredictionError,
    TrainingError,
)

__all__ = [
    "Config",
    "DataLoader",
    "load_tables",
    "ColumnFilter",
    "near_zero_variance",
    "Partitioner",
    "Preprocessor",
    "ModelSpec",
    "ModelTrainer",
    "TrainedModel",
    "build_model_specs",
    "Evaluator",
    "aggregate_predictions",
    "PipelineRunner",
    "ConfigurationError",
    "LoadError",
    "PipelineError",
    "PredictionError",
    "TrainingError",
]
