from typing import Dict, Optional

from inventory_control.exceptions import ValidationError

def validate_supplier(name: str, email: str, phone: str, address: str) -> Dict[str, str]:
    """Validate supplier fields.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not name:
        errors['name'] = 'Supplier name is required'

    if not email or '@' not in email:
        errors['email'] = 'A valid contact email is required'

    if not phone:
        errors['phone'] = 'Phone is required'

    if not address:
        errors['address'] = 'Address is required'

    return errors

def validate_warehouse(name: str, location: str, capacity) -> Dict[str, str]:
    """Validate warehouse fields.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not name:
        errors['name'] = 'Warehouse name is required'

    if not location:
        errors['location'] = 'Location is required'

    if not is_integer(capacity) or capacity <= 0:
        errors['capacity'] = 'Capacity must be a positive integer'

    return errors

def validate_product(sku: str, name: str, reorder_threshold, reorder_quantity) -> Dict[str, str]:
    """Validate product fields.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not sku:
        errors['sku'] = 'SKU is required'

    if not name:
        errors['name'] = 'Product name is required'

    if not is_integer(reorder_threshold) or reorder_threshold < 0:
        errors['reorder_threshold'] = 'Reorder threshold must be a non-negative integer'

    if not is_integer(reorder_quantity) or reorder_quantity < 0:
        errors['reorder_quantity'] = 'Reorder quantity must be a non-negative integer'

    return errors

def is_integer(value) -> bool:
    # bool is an int subclass but never a valid quantity
    return isinstance(value, int) and not isinstance(value, bool)

def require_valid(errors: Dict[str, str], entity: Optional[str] = None) -> None:
    """Raise ValidationError when a validator reported problems."""
    if errors:
        prefix = f"Invalid {entity}: " if entity else ""
        raise ValidationError(prefix + '; '.join(errors.values()), details=errors)

def require_positive_quantity(value, field: str = 'quantity') -> int:
    if not is_integer(value) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", details={field: value})
    return value

def require_non_zero_adjustment(value, field: str = 'adjustment') -> int:
    if not is_integer(value):
        raise ValidationError(f"{field} must be an integer", details={field: value})
    if value == 0:
        raise ValidationError(f"{field} must not be zero", details={field: value})
    return value
