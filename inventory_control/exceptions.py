class InventoryError(Exception):
    """Base exception for Inventory Control System errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Inventory Control System"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(InventoryError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(InventoryError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class ValidationError(InventoryError):
    """Exception raised for data validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code or 'VALIDATION_ERROR', details)


class NotFoundError(InventoryError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code or 'NOT_FOUND', details)


class InsufficientStockError(InventoryError):
    """Raised when an adjustment would drive a stock quantity negative."""

    def __init__(self, available, requested, message=None):
        self.available = available
        self.requested = requested
        message = message or f"Insufficient stock. Available: {available}, Requested: {requested}"
        super().__init__(
            message,
            'INSUFFICIENT_STOCK',
            {'available': available, 'requested': requested}
        )


class CapacityExceededError(InventoryError):
    """Raised when a stock change or order would exceed warehouse capacity."""

    def __init__(self, available_capacity, requested=None, message=None, details=None):
        self.available_capacity = available_capacity
        self.requested = requested
        if message is None:
            message = f"Warehouse capacity exceeded. Available space: {available_capacity}"
            if requested is not None:
                message += f", Requested: {requested}"

        error_details = {'available_capacity': available_capacity}
        if requested is not None:
            error_details['requested'] = requested
        if details:
            error_details.update(details)

        super().__init__(message, 'CAPACITY_EXCEEDED', error_details)


class InvalidStateError(InventoryError):
    """Raised when an operation is illegal for the current order status."""

    def __init__(self, message=None, current_status=None, details=None):
        self.current_status = current_status
        message = message or "Operation not allowed in the current state"
        error_details = dict(details or {})
        if current_status is not None:
            error_details['status'] = str(current_status)
        super().__init__(message, 'INVALID_STATE', error_details or None)


class CatalogError(InventoryError):
    """Exception raised for reference data errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Catalog error"
        super().__init__(message, code or 'CATALOG_ERROR', details)


class MonitorError(InventoryError):
    """Exception raised for reorder monitor lifecycle errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Reorder monitor error"
        super().__init__(message, code, details)
