"""Exception hierarchy for churn_analysis."""


class ChurnError(Exception):
    """Base exception for all churn_analysis errors."""


class ConfigError(ChurnError):
    """Invalid or missing configuration."""


class InvalidDateFilterError(ConfigError):
    """The invoice-date cutoff could not be parsed."""

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(f"Invalid cutoff date: {value!r} (expected YYYY-MM-DD)")


class DataLoadError(ChurnError):
    """Failed to load or parse an input relation."""


class MissingRelationError(DataLoadError):
    """One of the customers/invoices/subscriptions relations is absent."""

    def __init__(self, relation: str) -> None:
        self.relation = relation
        super().__init__(f"Required relation missing: {relation}")


class SchemaMismatchError(DataLoadError):
    """Required columns missing from a relation, or of the wrong type."""

    def __init__(
        self,
        relation: str,
        missing: set[str] | None = None,
        available: set[str] | None = None,
        wrong_type: dict[str, str] | None = None,
    ) -> None:
        self.relation = relation
        self.missing = missing or set()
        self.available = available or set()
        self.wrong_type = wrong_type or {}
        parts = []
        if self.missing:
            parts.append(f"missing required columns: {sorted(self.missing)}")
        if self.wrong_type:
            parts.append(f"wrong column types: {self.wrong_type}")
        super().__init__(f"{relation}: " + "; ".join(parts))


class EmptyGroupError(ChurnError):
    """An aggregate was requested over a group with zero rows."""

    def __init__(self, measure: str) -> None:
        self.measure = measure
        super().__init__(f"Cannot compute '{measure}' over an empty group")


class AnalysisError(ChurnError):
    """An individual analysis failed."""

    def __init__(self, analysis_name: str, cause: Exception) -> None:
        self.analysis_name = analysis_name
        self.cause = cause
        super().__init__(f"Analysis '{analysis_name}' failed: {cause}")


class ExportError(ChurnError):
    """An output file could not be written."""

    def __init__(self, path, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")
