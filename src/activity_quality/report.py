from textwrap import indent
from typing import Mapping, Optional

import pandas as pd

from .column_filter import FilterSummary
from .errors import PipelineError
from .evaluator import EvaluationResult
from .model_trainer import TrainedModel


def _section(title: str) -> str:
    return f"\n{title}\n{'=' * len(title)}"


def _block(text: str) -> str:
    return indent(text, " " * 4)


def build_report(
    stage_shapes: Mapping[str, tuple],
    filter_summary: Optional[FilterSummary],
    models: Mapping[str, TrainedModel],
    results: Mapping[str, EvaluationResult],
    scoring_predictions: Optional[pd.DataFrame],
    failures: Mapping[str, PipelineError],
) -> str:
    """Render the plain-text summary of one pipeline run."""
    lines = ["Activity quality classification report"]

    lines.append(_section("Table dimensions"))
    for stage, (n_rows, n_cols) in stage_shapes.items():
        lines.append(f"    {stage:<24} {n_rows:>7,} rows x {n_cols:>4} cols")

    if filter_summary is not None:
        lines.append(_section("Column filter"))
        lines.append(f"    identifier columns dropped:   {len(filter_summary.dropped_ids)}")
        lines.append(f"    near-zero-variance dropped:   {len(filter_summary.dropped_nzv)}")
        lines.append(f"    high-missingness dropped:     {len(filter_summary.dropped_missing)}")
        lines.append(f"    features retained:            {len(filter_summary.retained)}")

    for kind, model in models.items():
        lines.append(_section(f"Model: {kind}"))
        lines.append(f"    selected parameters: {model.best_params}")
        lines.append(f"    CV accuracy:         {model.cv_accuracy:.4f}")
        curve = pd.DataFrame(
            [
                {**cv.params, "cv_accuracy": round(cv.mean_accuracy, 4)}
                for cv in model.cv_results
            ]
        )
        lines.append("    CV accuracy by parameter combination:")
        lines.append(_block(curve.to_string(index=False)))

        result = results.get(kind)
        if result is None:
            continue
        lines.append("    Confusion matrix (validation, rows = true):")
        lines.append(_block(result.confusion.to_string()))
        lines.append(f"    Accuracy:             {result.accuracy:.4f}")
        lines.append(f"    Kappa:                {result.kappa:.4f}")
        lines.append(f"    Out-of-sample error:  {100 * result.out_of_sample_error:.2f}%")
        lines.append("    Per-class rates:")
        lines.append(_block(result.per_class.round(4).to_string()))

    if scoring_predictions is not None:
        lines.append(_section("Scoring predictions"))
        lines.append(_block(scoring_predictions.to_string()))

    if failures:
        lines.append(_section("Failed model kinds"))
        for kind, exc in failures.items():
            lines.append(f"    {kind}: {exc}")

    return "\n".join(lines) + "\n"
