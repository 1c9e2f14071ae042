# inventory_control/models.py
import enum
import uuid

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, Enum, Index,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

def generate_id() -> str:
    """Return a new opaque identifier."""
    return str(uuid.uuid4())

class PurchaseOrderStatus(enum.Enum):
    """Purchase order lifecycle.

    Values:
        PENDING: Raised, not yet confirmed by the supplier
        CONFIRMED: Accepted by the supplier
        SHIPPED: In transit to the warehouse
        COMPLETED: Received; stock has been booked into the warehouse
        CANCELLED: Abandoned; never received
    """
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    SHIPPED = 'SHIPPED'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def from_string(cls, value: str) -> 'PurchaseOrderStatus':
        """Create a PurchaseOrderStatus from a string value.

        Args:
            value: Status name, case insensitive

        Returns:
            PurchaseOrderStatus enum value

        Raises:
            ValueError if the string value is not valid
        """
        try:
            return cls(value.upper())
        except (ValueError, AttributeError):
            valid = ', '.join(status.value for status in cls)
            raise ValueError(f"Invalid purchase order status: {value}. Valid values are: {valid}")

# Orders in these states still count against warehouse capacity
OPEN_ORDER_STATUSES = (
    PurchaseOrderStatus.PENDING,
    PurchaseOrderStatus.CONFIRMED,
    PurchaseOrderStatus.SHIPPED,
)

TERMINAL_STATUSES = (
    PurchaseOrderStatus.COMPLETED,
    PurchaseOrderStatus.CANCELLED,
)

class Supplier(Base):
    __tablename__ = 'suppliers'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=False)
    address = Column(Text, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    products = relationship("Product", back_populates="supplier", passive_deletes='all')

    def __repr__(self):
        return f"<Supplier {self.name} ({self.email})>"

class Warehouse(Base):
    __tablename__ = 'warehouses'
    __table_args__ = (
        CheckConstraint('capacity > 0', name='check_capacity_positive'),
        CheckConstraint('current_stock >= 0', name='check_current_stock_non_negative'),
        CheckConstraint('current_stock <= capacity', name='check_stock_capacity'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)
    # Sum of product_stocks.quantity for this warehouse; written only by
    # InventoryService.adjust_stock in the same transaction as the detail row.
    current_stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    stocks = relationship("ProductStock", back_populates="warehouse",
                          cascade="all, delete-orphan", passive_deletes=True)

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.current_stock

    def __repr__(self):
        return f"<Warehouse {self.name} {self.current_stock}/{self.capacity}>"

class Product(Base):
    __tablename__ = 'products'
    __table_args__ = (
        CheckConstraint('reorder_threshold >= 0', name='check_reorder_threshold_non_negative'),
        CheckConstraint('reorder_quantity >= 0', name='check_reorder_quantity_non_negative'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    sku = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    reorder_threshold = Column(Integer, nullable=False)
    reorder_quantity = Column(Integer, nullable=False, default=100)
    supplier_id = Column(String(36), ForeignKey('suppliers.id', ondelete='RESTRICT'),
                         nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier", back_populates="products")
    stocks = relationship("ProductStock", back_populates="product",
                          cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Product {self.sku}>"

class ProductStock(Base):
    __tablename__ = 'product_stocks'
    __table_args__ = (
        UniqueConstraint('product_id', 'warehouse_id', name='uq_product_stock_pair'),
        CheckConstraint('quantity >= 0', name='check_quantity_non_negative'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    warehouse_id = Column(String(36), ForeignKey('warehouses.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    last_restocked = Column(DateTime)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="stocks")
    warehouse = relationship("Warehouse", back_populates="stocks")

    def __repr__(self):
        return f"<ProductStock {self.product_id}@{self.warehouse_id}: {self.quantity}>"

class PurchaseOrder(Base):
    __tablename__ = 'purchase_orders'
    __table_args__ = (
        CheckConstraint('quantity_ordered > 0', name='check_quantity_ordered_positive'),
        Index('ix_purchase_orders_pair', 'product_id', 'warehouse_id'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    order_number = Column(String(100), nullable=False, unique=True)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='RESTRICT'), nullable=False)
    supplier_id = Column(String(36), ForeignKey('suppliers.id', ondelete='RESTRICT'), nullable=False)
    warehouse_id = Column(String(36), ForeignKey('warehouses.id', ondelete='RESTRICT'), nullable=False)
    quantity_ordered = Column(Integer, nullable=False)
    order_date = Column(DateTime, nullable=False, default=func.now(), index=True)
    expected_arrival = Column(DateTime, nullable=False)
    actual_arrival = Column(DateTime)
    status = Column(Enum(PurchaseOrderStatus, name='purchase_order_status'),
                    nullable=False, default=PurchaseOrderStatus.PENDING, index=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    product = relationship("Product")
    supplier = relationship("Supplier")
    warehouse = relationship("Warehouse")

    def __repr__(self):
        return f"<PurchaseOrder {self.order_number} {self.status}>"

class StockAdjustment(Base):
    """Append-only audit record of a stock quantity change."""
    __tablename__ = 'stock_adjustments'
    __table_args__ = (
        Index('ix_stock_adjustments_pair', 'product_id', 'warehouse_id'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    warehouse_id = Column(String(36), ForeignKey('warehouses.id', ondelete='CASCADE'), nullable=False)
    adjustment = Column(Integer, nullable=False)
    reason = Column(String(255))
    user_id = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=func.now(), index=True)

    def __repr__(self):
        return f"<StockAdjustment {self.adjustment:+d} {self.product_id}@{self.warehouse_id}>"

class OrderNumberSequence(Base):
    """Global counter for purchase order numbers.

    The single row is locked by every order-creating transaction, so numbers
    are handed out in commit order.
    """
    __tablename__ = 'order_number_sequence'

    name = Column(String(50), primary_key=True)
    next_value = Column(Integer, nullable=False)
