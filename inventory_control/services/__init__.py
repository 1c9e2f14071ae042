from .inventory_service import InventoryService
from .order_service import OrderService
from .catalog_service import CatalogService
from .reporting_service import ReportingService

__all__ = [
    'InventoryService',
    'OrderService',
    'CatalogService',
    'ReportingService'
]
