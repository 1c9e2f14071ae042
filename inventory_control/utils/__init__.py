from .date_utils import now, add_days, elapsed_ms, format_timestamp
from .validation import (
    validate_supplier, validate_warehouse, validate_product, require_valid,
    require_positive_quantity, require_non_zero_adjustment
)

__all__ = [
    'now',
    'add_days',
    'elapsed_ms',
    'format_timestamp',
    'validate_supplier',
    'validate_warehouse',
    'validate_product',
    'require_valid',
    'require_positive_quantity',
    'require_non_zero_adjustment'
]
