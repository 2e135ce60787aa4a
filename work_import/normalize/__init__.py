from .fields import (
    FieldSpec,
    FieldType,
    compact_code,
    normalize_record,
    parse_date,
    parse_decimal,
    parse_quantity,
    parse_time,
)

__all__ = [
    "FieldSpec",
    "FieldType",
    "compact_code",
    "normalize_record",
    "parse_date",
    "parse_decimal",
    "parse_quantity",
    "parse_time",
]
