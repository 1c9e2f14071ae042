# inventory_control/services/reporting_service.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from inventory_control.models import Product, ProductStock, Supplier, Warehouse
from inventory_control.exceptions import NotFoundError
from inventory_control.logging_setup import get_logger

logger = get_logger(__name__)

OUT_OF_STOCK = 'OUT_OF_STOCK'
LOW_STOCK = 'LOW_STOCK'
IN_STOCK = 'IN_STOCK'

def get_stock_status(quantity: int, threshold: int) -> str:
    """Classify an on-hand quantity against a reorder threshold."""
    if quantity == 0:
        return OUT_OF_STOCK
    if quantity < threshold:
        return LOW_STOCK
    return IN_STOCK

def utilization_percentage(current_stock: int, capacity: int) -> float:
    return round(current_stock / capacity * 100, 2) if capacity else 0.0

def whole_percentage(current_stock: int, capacity: int) -> int:
    """Utilization as a whole percent, halves rounded up (85/200 -> 43)."""
    if not capacity:
        return 0
    return int((Decimal(current_stock) * 100 / Decimal(capacity)).quantize(Decimal(1), rounding=ROUND_HALF_UP))

class ReportingService:
    """Read-only views over the catalog and stock ledger."""

    def __init__(self, session: Session):
        """Initialize the reporting service.

        Args:
            session: Database session
        """
        self.session = session

    def get_products_with_stock(self) -> List[Dict]:
        """Products with total stock, stock status and per-warehouse levels.

        Returns:
            List of product dictionaries ordered by product name
        """
        products = self.session.query(Product, Supplier.name.label('supplier_name')).outerjoin(
            Supplier, Product.supplier_id == Supplier.id
        ).order_by(Product.name).all()

        stock_rows = self.session.query(ProductStock, Warehouse).join(
            Warehouse, ProductStock.warehouse_id == Warehouse.id
        ).order_by(Warehouse.name).all()

        stocks_by_product = {}
        for stock, warehouse in stock_rows:
            stocks_by_product.setdefault(stock.product_id, []).append({
                'warehouse_id': warehouse.id,
                'warehouse_name': warehouse.name,
                'warehouse_location': warehouse.location,
                'quantity': stock.quantity,
                'last_restocked': stock.last_restocked
            })

        report = []
        for product, supplier_name in products:
            warehouse_stocks = stocks_by_product.get(product.id, [])
            total_stock = sum(entry['quantity'] for entry in warehouse_stocks)
            report.append({
                'id': product.id,
                'sku': product.sku,
                'name': product.name,
                'description': product.description,
                'reorder_threshold': product.reorder_threshold,
                'reorder_quantity': product.reorder_quantity,
                'supplier_id': product.supplier_id,
                'supplier_name': supplier_name,
                'total_stock': total_stock,
                'stock_status': get_stock_status(total_stock, product.reorder_threshold),
                'warehouse_stocks': warehouse_stocks
            })

        return report

    def get_product_detail(self, product_id: str) -> Dict:
        """Single product with its supplier and stock level in every warehouse."""
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found", details={'product_id': product_id})

        stock_levels = []
        for stock, warehouse in self.session.query(ProductStock, Warehouse).join(
            Warehouse, ProductStock.warehouse_id == Warehouse.id
        ).filter(ProductStock.product_id == product_id).order_by(Warehouse.name).all():
            stock_levels.append({
                'warehouse_id': warehouse.id,
                'warehouse_name': warehouse.name,
                'warehouse_location': warehouse.location,
                'capacity': warehouse.capacity,
                'warehouse_current_stock': warehouse.current_stock,
                'quantity': stock.quantity,
                'last_restocked': stock.last_restocked
            })

        total_stock = sum(level['quantity'] for level in stock_levels)

        return {
            'id': product.id,
            'sku': product.sku,
            'name': product.name,
            'description': product.description,
            'reorder_threshold': product.reorder_threshold,
            'reorder_quantity': product.reorder_quantity,
            'supplier_name': product.supplier.name,
            'supplier_email': product.supplier.email,
            'total_stock': total_stock,
            'stock_status': get_stock_status(total_stock, product.reorder_threshold),
            'stock_levels': stock_levels
        }

    def get_warehouses(self) -> List[Dict]:
        return [
            {
                'id': warehouse.id,
                'name': warehouse.name,
                'location': warehouse.location,
                'capacity': warehouse.capacity,
                'current_stock': warehouse.current_stock,
                'utilization_percentage': utilization_percentage(warehouse.current_stock, warehouse.capacity)
            }
            for warehouse in self.session.query(Warehouse).order_by(Warehouse.name).all()
        ]

    def get_warehouse_detail(self, warehouse_id: str) -> Dict:
        """Warehouse with utilization and every product it currently holds."""
        warehouse = self.session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise NotFoundError("Warehouse not found", details={'warehouse_id': warehouse_id})

        rows = self.session.query(ProductStock, Product, Supplier.name).join(
            Product, ProductStock.product_id == Product.id
        ).join(
            Supplier, Product.supplier_id == Supplier.id
        ).filter(
            ProductStock.warehouse_id == warehouse_id,
            ProductStock.quantity > 0
        ).order_by(Product.name).all()

        return {
            'id': warehouse.id,
            'name': warehouse.name,
            'location': warehouse.location,
            'capacity': warehouse.capacity,
            'current_stock': warehouse.current_stock,
            'utilization': whole_percentage(warehouse.current_stock, warehouse.capacity),
            'inventory': [
                {
                    'product_id': product.id,
                    'product_name': product.name,
                    'sku': product.sku,
                    'reorder_threshold': product.reorder_threshold,
                    'supplier_name': supplier_name,
                    'quantity': stock.quantity,
                    'last_restocked': stock.last_restocked
                }
                for stock, product, supplier_name in rows
            ]
        }

    def get_suppliers(self) -> List[Dict]:
        """Suppliers with the number of products each one supplies."""
        rows = self.session.query(
            Supplier, func.count(func.distinct(Product.id)).label('product_count')
        ).outerjoin(
            Product, Supplier.id == Product.supplier_id
        ).group_by(Supplier.id).order_by(Supplier.name).all()

        return [
            {
                'id': supplier.id,
                'name': supplier.name,
                'email': supplier.email,
                'phone': supplier.phone,
                'address': supplier.address,
                'product_count': product_count
            }
            for supplier, product_count in rows
        ]

    def get_low_stock_alerts(self) -> List[Dict]:
        """Pairs below their product's reorder threshold, most depleted first."""
        rows = self.session.query(ProductStock, Product, Warehouse, Supplier).join(
            Product, ProductStock.product_id == Product.id
        ).join(
            Warehouse, ProductStock.warehouse_id == Warehouse.id
        ).join(
            Supplier, Product.supplier_id == Supplier.id
        ).filter(
            ProductStock.quantity < Product.reorder_threshold
        ).order_by(ProductStock.quantity.asc(), Product.sku).all()

        return [
            {
                'product_id': product.id,
                'sku': product.sku,
                'product_name': product.name,
                'reorder_threshold': product.reorder_threshold,
                'current_stock': stock.quantity,
                'warehouse_id': warehouse.id,
                'warehouse_name': warehouse.name,
                'supplier_name': supplier.name,
                'supplier_email': supplier.email
            }
            for stock, product, warehouse, supplier in rows
        ]

    def check_stock_integrity(self) -> List[Dict]:
        """Warehouses whose stored total disagrees with their stock rows.

        Only reports; totals are never rewritten here.

        Returns:
            List of problem dictionaries (empty when every warehouse is consistent)
        """
        detail_totals = dict(
            self.session.query(
                ProductStock.warehouse_id, func.coalesce(func.sum(ProductStock.quantity), 0)
            ).group_by(ProductStock.warehouse_id).all()
        )

        problems = []
        for warehouse in self.session.query(Warehouse).order_by(Warehouse.name).all():
            detail_total = int(detail_totals.get(warehouse.id, 0))
            if detail_total != warehouse.current_stock or warehouse.current_stock > warehouse.capacity:
                problems.append({
                    'warehouse_id': warehouse.id,
                    'warehouse_name': warehouse.name,
                    'current_stock': warehouse.current_stock,
                    'detail_total': detail_total,
                    'capacity': warehouse.capacity
                })

        if problems:
            logger.warning(f"Stock integrity check found {len(problems)} inconsistent warehouses")

        return problems
