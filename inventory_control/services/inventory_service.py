# inventory_control/services/inventory_service.py
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from inventory_control.config import config
from inventory_control.models import Product, ProductStock, StockAdjustment, Warehouse
from inventory_control.exceptions import (
    CapacityExceededError, InsufficientStockError, NotFoundError
)
from inventory_control.utils.date_utils import now
from inventory_control.utils.validation import require_non_zero_adjustment
from inventory_control.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_RECEIVED_REASON = 'Stock received'
DEFAULT_CONSUMED_REASON = 'Stock consumed'

class InventoryService:
    """Stock ledger: the only writer of stock quantities and warehouse totals.

    Every method works inside the caller's session; committing or rolling
    back is the caller's job (see ``session_scope``), so an adjustment can
    share a transaction with other work such as completing an order.
    """

    def __init__(self, session: Session, clock: Optional[Callable[[], datetime]] = None):
        """Initialize the inventory service.

        Args:
            session: Database session
            clock: Optional callable returning the current time
        """
        self.session = session
        self.clock = clock or now

    def adjust_stock(
        self,
        product_id: str,
        warehouse_id: str,
        adjustment: int,
        reason: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> int:
        """Apply a signed quantity change to a (product, warehouse) pair.

        The stock row and then its warehouse row are locked for the rest of
        the transaction. Quantity, warehouse total and the audit row are
        written together or not at all.

        Args:
            product_id: Product ID
            warehouse_id: Warehouse ID
            adjustment: Signed change in units (non-zero)
            reason: Audit reason; defaults by the sign of the adjustment
            user_id: Actor recorded on the audit row; defaults to the system user

        Returns:
            New quantity of the pair

        Raises:
            NotFoundError: The product is not stocked in the warehouse
            InsufficientStockError: The quantity would go negative
            ValidationError: The adjustment is zero or not an integer
            CapacityExceededError: The warehouse total would exceed capacity
        """
        require_non_zero_adjustment(adjustment)

        stock = (
            self.session.query(ProductStock)
            .filter(
                ProductStock.product_id == product_id,
                ProductStock.warehouse_id == warehouse_id
            )
            .with_for_update()
            .populate_existing()
            .first()
        )
        if stock is None:
            raise NotFoundError(
                "Product not found in specified warehouse",
                details={'product_id': product_id, 'warehouse_id': warehouse_id}
            )

        new_quantity = stock.quantity + adjustment
        if new_quantity < 0:
            raise InsufficientStockError(available=stock.quantity, requested=abs(adjustment))

        warehouse = (
            self.session.query(Warehouse)
            .filter(Warehouse.id == warehouse_id)
            .with_for_update()
            .populate_existing()
            .one()
        )

        other_total = self._stock_total(warehouse_id, exclude_product_id=product_id)
        new_warehouse_total = other_total + new_quantity

        if new_warehouse_total > warehouse.capacity:
            raise CapacityExceededError(
                available_capacity=warehouse.capacity - other_total,
                requested=abs(adjustment)
            )

        timestamp = self.clock()

        stock.quantity = new_quantity
        if adjustment > 0:
            stock.last_restocked = timestamp
        stock.updated_at = timestamp

        warehouse.current_stock = new_warehouse_total
        warehouse.updated_at = timestamp

        self.session.add(StockAdjustment(
            product_id=product_id,
            warehouse_id=warehouse_id,
            adjustment=adjustment,
            reason=reason or (DEFAULT_RECEIVED_REASON if adjustment > 0 else DEFAULT_CONSUMED_REASON),
            user_id=user_id or config.order_config['system_user'],
            created_at=timestamp
        ))
        self.session.flush()

        logger.info(
            f"Stock adjusted by {adjustment:+d} for product {product_id} in warehouse "
            f"{warehouse_id}: now {new_quantity} (warehouse {new_warehouse_total}/{warehouse.capacity})"
        )

        return new_quantity

    def _stock_total(self, warehouse_id: str, exclude_product_id: Optional[str] = None) -> int:
        query = self.session.query(func.coalesce(func.sum(ProductStock.quantity), 0)).filter(
            ProductStock.warehouse_id == warehouse_id
        )
        if exclude_product_id is not None:
            query = query.filter(ProductStock.product_id != exclude_product_id)
        return int(query.scalar())

    def ensure_stock_record(self, product_id: str, warehouse_id: str) -> ProductStock:
        """Get the stock row for a pair, creating it with zero quantity if needed.

        Args:
            product_id: Product ID
            warehouse_id: Warehouse ID

        Returns:
            ProductStock object
        """
        if self.session.get(Product, product_id) is None:
            raise NotFoundError("Product not found", details={'product_id': product_id})

        # Serializes concurrent first stock events for the same warehouse
        warehouse = (
            self.session.query(Warehouse)
            .filter(Warehouse.id == warehouse_id)
            .with_for_update()
            .first()
        )
        if warehouse is None:
            raise NotFoundError("Warehouse not found", details={'warehouse_id': warehouse_id})

        stock = self.get_stock(product_id, warehouse_id)
        if stock is None:
            stock = ProductStock(product_id=product_id, warehouse_id=warehouse_id, quantity=0)
            self.session.add(stock)
            self.session.flush()
            logger.info(f"Created stock record for product {product_id} in warehouse {warehouse_id}")

        return stock

    def get_stock(self, product_id: str, warehouse_id: str) -> Optional[ProductStock]:
        """Get the stock row for a pair.

        Returns:
            ProductStock object or None if the pair has never been stocked
        """
        return self.session.query(ProductStock).filter(
            ProductStock.product_id == product_id,
            ProductStock.warehouse_id == warehouse_id
        ).first()

    def get_stock_levels(
        self,
        product_id: Optional[str] = None,
        warehouse_id: Optional[str] = None
    ) -> List[ProductStock]:
        query = self.session.query(ProductStock)

        if product_id is not None:
            query = query.filter(ProductStock.product_id == product_id)

        if warehouse_id is not None:
            query = query.filter(ProductStock.warehouse_id == warehouse_id)

        return query.all()

    def get_adjustments(
        self,
        product_id: Optional[str] = None,
        warehouse_id: Optional[str] = None
    ) -> List[StockAdjustment]:
        """Get audit records, newest first.

        Args:
            product_id: Optional product ID filter
            warehouse_id: Optional warehouse ID filter

        Returns:
            List of stock adjustment objects
        """
        query = self.session.query(StockAdjustment)

        if product_id is not None:
            query = query.filter(StockAdjustment.product_id == product_id)

        if warehouse_id is not None:
            query = query.filter(StockAdjustment.warehouse_id == warehouse_id)

        return query.order_by(StockAdjustment.created_at.desc()).all()
