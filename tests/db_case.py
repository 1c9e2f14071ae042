"""
Shared fixtures for tests that need a real database.
"""
import shutil
import tempfile
import threading
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from inventory_control.db import db, session_scope
from inventory_control.models import ProductStock, StockAdjustment, Warehouse
from inventory_control.services.catalog_service import CatalogService
from inventory_control.services.inventory_service import InventoryService


class FakeClock:
    """Clock that advances one second every time it is read."""

    def __init__(self, start=datetime(2024, 1, 1, 9, 0, 0)):
        self.current = start
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            value = self.current
            self.current += timedelta(seconds=1)
            return value


class DatabaseTestCase(unittest.TestCase):
    """Test case backed by a fresh file-based SQLite database."""

    def setUp(self):
        """Set up test fixtures."""
        self.tmp_dir = tempfile.mkdtemp()
        self.database_url = f"sqlite:///{Path(self.tmp_dir) / 'inventory.db'}"
        db.initialize(self.database_url)
        db.create_all_tables()

    def tearDown(self):
        """Tear down test fixtures."""
        db.dispose()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def create_supplier(self, name='Acme Parts', email=None):
        with session_scope() as session:
            supplier = CatalogService(session).create_supplier(
                name=name,
                email=email or f"{name.lower().replace(' ', '.')}@example.com",
                phone='+1-555-0100',
                address='1 Industrial Way'
            )
            return supplier.id

    def create_warehouse(self, capacity=100, name='Main Warehouse'):
        with session_scope() as session:
            return CatalogService(session).create_warehouse(
                name=name, location='Springfield', capacity=capacity
            ).id

    def create_product(self, supplier_id, sku='SKU-001', reorder_threshold=20, reorder_quantity=50):
        with session_scope() as session:
            return CatalogService(session).create_product(
                sku=sku,
                name=f"Product {sku}",
                supplier_id=supplier_id,
                reorder_threshold=reorder_threshold,
                reorder_quantity=reorder_quantity
            ).id

    def stock(self, product_id, warehouse_id, quantity=0):
        """Register a pair and optionally book an opening quantity."""
        with session_scope() as session:
            inventory = InventoryService(session)
            inventory.ensure_stock_record(product_id, warehouse_id)
            if quantity:
                inventory.adjust_stock(product_id, warehouse_id, quantity, reason='Opening stock')

    def quantity(self, product_id, warehouse_id):
        with session_scope() as session:
            stock = InventoryService(session).get_stock(product_id, warehouse_id)
            return stock.quantity if stock else None

    def warehouse_stock(self, warehouse_id):
        with session_scope() as session:
            return session.get(Warehouse, warehouse_id).current_stock

    def adjustment_count(self, product_id=None):
        with session_scope() as session:
            query = session.query(StockAdjustment)
            if product_id is not None:
                query = query.filter(StockAdjustment.product_id == product_id)
            return query.count()

    def assertWarehouseConsistent(self, warehouse_id):
        """current_stock equals the sum of the warehouse's stock rows and fits capacity."""
        with session_scope() as session:
            warehouse = session.get(Warehouse, warehouse_id)
            detail_total = sum(
                stock.quantity for stock in
                session.query(ProductStock).filter(ProductStock.warehouse_id == warehouse_id)
            )
            self.assertEqual(warehouse.current_stock, detail_total)
            self.assertLessEqual(warehouse.current_stock, warehouse.capacity)
