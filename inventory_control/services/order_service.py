# inventory_control/services/order_service.py
from datetime import datetime
from typing import Callable, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from inventory_control.config import config
from inventory_control.db import ORDER_SEQUENCE_NAME
from inventory_control.models import (
    OPEN_ORDER_STATUSES, OrderNumberSequence, Product, PurchaseOrder,
    PurchaseOrderStatus, Supplier, Warehouse
)
from inventory_control.services.inventory_service import InventoryService
from inventory_control.exceptions import (
    CapacityExceededError, InvalidStateError, NotFoundError, ValidationError
)
from inventory_control.utils.date_utils import add_days, now
from inventory_control.utils.validation import require_positive_quantity
from inventory_control.logging_setup import get_logger

logger = get_logger(__name__)

# Forward moves an order can make before it is received
STATUS_TRANSITIONS = {
    PurchaseOrderStatus.PENDING: (PurchaseOrderStatus.CONFIRMED, PurchaseOrderStatus.CANCELLED),
    PurchaseOrderStatus.CONFIRMED: (PurchaseOrderStatus.SHIPPED, PurchaseOrderStatus.CANCELLED),
    PurchaseOrderStatus.SHIPPED: (PurchaseOrderStatus.CANCELLED,),
    PurchaseOrderStatus.COMPLETED: (),
    PurchaseOrderStatus.CANCELLED: (),
}

def format_order_number(value: int) -> str:
    """Render a counter value as an order number, e.g. 1000 -> PO-00001000."""
    order_config = config.order_config
    return f"{order_config['order_number_prefix']}{value:0{order_config['order_number_width']}d}"

def _coerce_status(status: Union[str, PurchaseOrderStatus]) -> PurchaseOrderStatus:
    if isinstance(status, PurchaseOrderStatus):
        return status
    try:
        return PurchaseOrderStatus.from_string(status)
    except ValueError as e:
        raise ValidationError(str(e), details={'status': status})

class OrderService:
    """Service for handling purchase order operations."""

    def __init__(self, session: Session, clock: Optional[Callable[[], datetime]] = None):
        """Initialize the order service.

        Args:
            session: Database session
            clock: Optional callable returning the current time
        """
        self.session = session
        self.clock = clock or now
        self.inventory_service = InventoryService(session, clock=self.clock)

    def get_order(self, order_id: str) -> Optional[PurchaseOrder]:
        """Get an order by ID.

        Args:
            order_id: Order ID

        Returns:
            PurchaseOrder object or None if not found
        """
        return self.session.get(PurchaseOrder, order_id)

    def get_order_by_number(self, order_number: str) -> Optional[PurchaseOrder]:
        return self.session.query(PurchaseOrder).filter(
            PurchaseOrder.order_number == order_number
        ).first()

    def get_orders(
        self,
        status: Optional[Union[str, PurchaseOrderStatus]] = None,
        product_id: Optional[str] = None,
        warehouse_id: Optional[str] = None
    ) -> List[PurchaseOrder]:
        """Get orders matching criteria.

        Args:
            status: Optional order status filter
            product_id: Optional product ID filter
            warehouse_id: Optional warehouse ID filter

        Returns:
            List of order objects, most recent first
        """
        query = self.session.query(PurchaseOrder)

        if status is not None:
            query = query.filter(PurchaseOrder.status == _coerce_status(status))

        if product_id is not None:
            query = query.filter(PurchaseOrder.product_id == product_id)

        if warehouse_id is not None:
            query = query.filter(PurchaseOrder.warehouse_id == warehouse_id)

        # Order by order date (most recent first)
        query = query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.order_number.desc())

        return query.all()

    def get_pending_quantity(self, product_id: str, warehouse_id: str) -> int:
        """Units on open orders (pending, confirmed or shipped) for a pair."""
        pending = self.session.query(
            func.coalesce(func.sum(PurchaseOrder.quantity_ordered), 0)
        ).filter(
            PurchaseOrder.product_id == product_id,
            PurchaseOrder.warehouse_id == warehouse_id,
            PurchaseOrder.status.in_(OPEN_ORDER_STATUSES)
        ).scalar()
        return int(pending)

    def create_order(
        self,
        product_id: str,
        warehouse_id: str,
        quantity: int,
        supplier_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> PurchaseOrder:
        """Raise a purchase order for a (product, warehouse) pair.

        The warehouse row is locked while open orders are summed, so two
        concurrent creations cannot both see the same free space. A request
        larger than the free space is reduced to fit rather than rejected.

        Args:
            product_id: Product ID
            warehouse_id: Destination warehouse ID
            quantity: Requested units
            supplier_id: Supplier ID (defaults to the product's supplier)
            notes: Free text stored on the order

        Returns:
            The new PurchaseOrder in PENDING status

        Raises:
            NotFoundError: Product, warehouse or supplier does not exist
            CapacityExceededError: No free space is left in the warehouse
        """
        require_positive_quantity(quantity)

        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", details={'product_id': product_id})

        warehouse = (
            self.session.query(Warehouse)
            .filter(Warehouse.id == warehouse_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if warehouse is None:
            raise NotFoundError("Warehouse not found", details={'warehouse_id': warehouse_id})

        if supplier_id is not None and self.session.get(Supplier, supplier_id) is None:
            raise NotFoundError("Supplier not found", details={'supplier_id': supplier_id})

        pending_quantity = self.get_pending_quantity(product_id, warehouse_id)
        available_capacity = warehouse.capacity - warehouse.current_stock - pending_quantity

        if available_capacity <= 0:
            raise CapacityExceededError(
                available_capacity=max(available_capacity, 0),
                requested=quantity,
                message=f"Warehouse at capacity. No space available (pending orders: {pending_quantity} units)",
                details={'pending_quantity': pending_quantity}
            )

        order_quantity = min(quantity, available_capacity)
        if order_quantity < quantity:
            logger.info(
                f"Order quantity for product {product.sku} reduced from {quantity} to "
                f"{order_quantity} to fit warehouse {warehouse.name}"
            )

        # Completion books stock into this row
        self.inventory_service.ensure_stock_record(product_id, warehouse_id)

        order_number = self._next_order_number()
        timestamp = self.clock()

        order = PurchaseOrder(
            order_number=order_number,
            product_id=product_id,
            supplier_id=supplier_id or product.supplier_id,
            warehouse_id=warehouse_id,
            quantity_ordered=order_quantity,
            order_date=timestamp,
            expected_arrival=add_days(timestamp, config.order_config['expected_arrival_days']),
            status=PurchaseOrderStatus.PENDING,
            notes=notes,
            created_at=timestamp,
            updated_at=timestamp
        )
        self.session.add(order)
        self.session.flush()

        logger.info(
            f"Created purchase order {order_number}: {order_quantity} x {product.sku} "
            f"for warehouse {warehouse.name}"
        )

        return order

    def _next_order_number(self) -> str:
        sequence = (
            self.session.query(OrderNumberSequence)
            .filter(OrderNumberSequence.name == ORDER_SEQUENCE_NAME)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if sequence is None:
            sequence = OrderNumberSequence(
                name=ORDER_SEQUENCE_NAME,
                next_value=config.order_config['order_number_start']
            )
            self.session.add(sequence)

        value = sequence.next_value
        sequence.next_value = value + 1
        self.session.flush()

        return format_order_number(value)

    def _lock_order(self, order_id: str) -> PurchaseOrder:
        order = (
            self.session.query(PurchaseOrder)
            .filter(PurchaseOrder.id == order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if order is None:
            raise NotFoundError("Order not found", details={'order_id': order_id})
        return order

    def complete_order(self, order_id: str) -> PurchaseOrder:
        """Mark an order as received and book its quantity into stock.

        The status change and the stock adjustment share the caller's
        transaction: if the adjustment fails the order stays as it was.

        Args:
            order_id: Order ID

        Returns:
            The completed PurchaseOrder

        Raises:
            NotFoundError: The order does not exist
            InvalidStateError: The order is already completed or cancelled
        """
        order = self._lock_order(order_id)

        if order.status == PurchaseOrderStatus.COMPLETED:
            raise InvalidStateError("Order already completed", current_status=order.status)

        if order.status == PurchaseOrderStatus.CANCELLED:
            raise InvalidStateError("Cannot complete cancelled order", current_status=order.status)

        timestamp = self.clock()
        order.status = PurchaseOrderStatus.COMPLETED
        order.actual_arrival = timestamp
        order.updated_at = timestamp
        self.session.flush()

        self.inventory_service.adjust_stock(
            order.product_id,
            order.warehouse_id,
            order.quantity_ordered,
            reason=f"Purchase order {order.order_number} completed",
            user_id=config.order_config['system_user']
        )

        logger.info(f"Completed purchase order {order.order_number} ({order.quantity_ordered} units received)")

        return order

    def confirm_order(self, order_id: str) -> PurchaseOrder:
        """Move a pending order to CONFIRMED."""
        return self._transition(order_id, PurchaseOrderStatus.CONFIRMED)

    def ship_order(self, order_id: str) -> PurchaseOrder:
        """Move a confirmed order to SHIPPED."""
        return self._transition(order_id, PurchaseOrderStatus.SHIPPED)

    def _transition(self, order_id: str, new_status: PurchaseOrderStatus) -> PurchaseOrder:
        order = self._lock_order(order_id)

        if new_status not in STATUS_TRANSITIONS[order.status]:
            raise InvalidStateError(
                f"Cannot move order {order.order_number} from {order.status} to {new_status}",
                current_status=order.status,
                details={'requested_status': str(new_status)}
            )

        order.status = new_status
        order.updated_at = self.clock()
        self.session.flush()

        logger.info(f"Purchase order {order.order_number} is now {new_status}")

        return order
