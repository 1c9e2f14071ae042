# inventory_control/services/catalog_service.py
from typing import List, Optional

from sqlalchemy.orm import Session

from inventory_control.models import Product, PurchaseOrder, Supplier, Warehouse
from inventory_control.exceptions import CatalogError, NotFoundError
from inventory_control.utils.validation import (
    require_valid, validate_product, validate_supplier, validate_warehouse
)
from inventory_control.logging_setup import get_logger

logger = get_logger(__name__)

class CatalogService:
    """Service for suppliers, warehouses and products.

    Warehouses are always created empty; stock only ever arrives through
    InventoryService.adjust_stock.
    """

    def __init__(self, session: Session):
        """Initialize the catalog service.

        Args:
            session: Database session
        """
        self.session = session

    def create_supplier(self, name: str, email: str, phone: str, address: str) -> Supplier:
        require_valid(validate_supplier(name, email, phone, address), 'supplier')

        if self.session.query(Supplier).filter(Supplier.email == email).first():
            raise CatalogError(f"Supplier with email {email} already exists", details={'email': email})

        supplier = Supplier(name=name, email=email, phone=phone, address=address)
        self.session.add(supplier)
        self.session.flush()
        logger.info(f"Created supplier {name}")
        return supplier

    def create_warehouse(self, name: str, location: str, capacity: int) -> Warehouse:
        require_valid(validate_warehouse(name, location, capacity), 'warehouse')

        warehouse = Warehouse(name=name, location=location, capacity=capacity, current_stock=0)
        self.session.add(warehouse)
        self.session.flush()
        logger.info(f"Created warehouse {name} with capacity {capacity}")
        return warehouse

    def create_product(
        self,
        sku: str,
        name: str,
        supplier_id: str,
        reorder_threshold: int,
        reorder_quantity: int = 100,
        description: Optional[str] = None
    ) -> Product:
        """Create a product.

        Args:
            sku: Unique stock keeping unit
            name: Product name
            supplier_id: Owning supplier ID
            reorder_threshold: Minimum desired on-hand quantity
            reorder_quantity: Default replenishment size
            description: Optional description

        Returns:
            Product object
        """
        require_valid(validate_product(sku, name, reorder_threshold, reorder_quantity), 'product')

        if self.get_supplier(supplier_id) is None:
            raise NotFoundError("Supplier not found", details={'supplier_id': supplier_id})

        if self.get_product_by_sku(sku) is not None:
            raise CatalogError(f"Product with SKU {sku} already exists", details={'sku': sku})

        product = Product(
            sku=sku,
            name=name,
            description=description,
            reorder_threshold=reorder_threshold,
            reorder_quantity=reorder_quantity,
            supplier_id=supplier_id
        )
        self.session.add(product)
        self.session.flush()
        logger.info(f"Created product {sku}")
        return product

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        return self.session.get(Supplier, supplier_id)

    def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        return self.session.get(Warehouse, warehouse_id)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        return self.session.query(Product).filter(Product.sku == sku).first()

    def get_all_suppliers(self) -> List[Supplier]:
        return self.session.query(Supplier).order_by(Supplier.name).all()

    def get_all_warehouses(self) -> List[Warehouse]:
        return self.session.query(Warehouse).order_by(Warehouse.name).all()

    def get_all_products(self) -> List[Product]:
        return self.session.query(Product).order_by(Product.name).all()

    def delete_supplier(self, supplier_id: str) -> None:
        """Delete a supplier that no product or order references."""
        supplier = self.get_supplier(supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier not found", details={'supplier_id': supplier_id})

        product_count = self.session.query(Product).filter(Product.supplier_id == supplier_id).count()
        order_count = self.session.query(PurchaseOrder).filter(PurchaseOrder.supplier_id == supplier_id).count()
        if product_count or order_count:
            raise CatalogError(
                f"Supplier {supplier.name} is still referenced",
                details={'products': product_count, 'purchase_orders': order_count}
            )

        self.session.delete(supplier)
        self.session.flush()
        logger.info(f"Deleted supplier {supplier.name}")

    def delete_product(self, product_id: str) -> None:
        """Delete a product together with its stock rows and audit trail.

        Raises:
            CatalogError: Purchase orders still reference the product, or it
                is still on hand somewhere (warehouse totals would drift)
        """
        product = self.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found", details={'product_id': product_id})

        self._ensure_no_orders(PurchaseOrder.product_id == product_id, f"product {product.sku}")

        on_hand = sum(stock.quantity for stock in product.stocks)
        if on_hand:
            raise CatalogError(
                f"Cannot delete product {product.sku}: {on_hand} units still in stock",
                details={'on_hand': on_hand}
            )

        self.session.delete(product)
        self.session.flush()
        logger.info(f"Deleted product {product.sku}")

    def delete_warehouse(self, warehouse_id: str) -> None:
        """Delete a warehouse together with its stock rows and audit trail.

        Raises:
            CatalogError: Purchase orders still reference the warehouse
        """
        warehouse = self.get_warehouse(warehouse_id)
        if warehouse is None:
            raise NotFoundError("Warehouse not found", details={'warehouse_id': warehouse_id})

        self._ensure_no_orders(PurchaseOrder.warehouse_id == warehouse_id, f"warehouse {warehouse.name}")

        self.session.delete(warehouse)
        self.session.flush()
        logger.info(f"Deleted warehouse {warehouse.name}")

    def _ensure_no_orders(self, criterion, label: str) -> None:
        order_count = self.session.query(PurchaseOrder).filter(criterion).count()
        if order_count:
            raise CatalogError(
                f"Cannot delete {label}: {order_count} purchase orders reference it",
                details={'purchase_orders': order_count}
            )
