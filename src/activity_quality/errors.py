from typing import Iterable, Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class LoadError(PipelineError):
    """A source table is unreachable or malformed."""


class ConfigurationError(PipelineError):
    """Configuration or column filtering would leave the pipeline unusable."""


class TrainingError(PipelineError):
    """Fitting one model kind failed, optionally on a specific CV fold."""

    def __init__(self, kind: str, message: str, fold: Optional[int] = None):
        super().__init__(kind, message, fold)
        self.kind = kind
        self.message = message
        self.fold = fold

    def __str__(self) -> str:
        where = f" (fold {self.fold})" if self.fold is not None else ""
        return f"{self.kind}{where}: {self.message}"


class PredictionError(PipelineError):
    """A model's predictions could not be produced or lined up with the table."""

    def __init__(self, kind: str, message: str, missing: Iterable[str] = ()):
        missing = sorted(missing)
        super().__init__(kind, message, missing)
        self.kind = kind
        self.message = message
        self.missing = missing

    @classmethod
    def missing_columns(cls, kind: str, missing: Iterable[str]) -> "PredictionError":
        missing = sorted(missing)
        shown = ", ".join(missing[:10])
        return cls(kind, f"table is missing {len(missing)} column(s): {shown}", missing)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"
