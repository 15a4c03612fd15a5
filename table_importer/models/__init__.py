"""Domain models for the Excel typed-row importer."""

from .config_models import DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .field_spec import SYSTEM_FIELDS, FieldSpec, FieldType
from .import_result import ImportReport, ImportResult, ImportState
from .typed_row import RawRow, TypedRow

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    # Schema
    "FieldSpec",
    "FieldType",
    "SYSTEM_FIELDS",
    # Processing models
    "RawRow",
    "TypedRow",
    "ImportState",
    "ImportResult",
    "ImportReport",
    "ErrorRecord",
]
