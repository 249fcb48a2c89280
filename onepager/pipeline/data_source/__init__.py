"""Record source subpackage.

Exposes CSV loading, value cleaning, preview/validation helpers and
previous-year correlation. Consumers import from this package rather than
reaching into ``loader`` directly.
"""

from .loader import (
    RecordSet,
    clean_value,
    correlate,
    detect_delimiter,
    load_record_set,
    read_preview,
    validate_record_source,
)

__all__ = [
    "RecordSet",
    "clean_value",
    "correlate",
    "detect_delimiter",
    "load_record_set",
    "read_preview",
    "validate_record_source",
]
