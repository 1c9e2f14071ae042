"""
Tests for supplier, warehouse and product maintenance.
"""
import unittest

from inventory_control.db import session_scope
from inventory_control.exceptions import CatalogError, NotFoundError, ValidationError
from inventory_control.models import ProductStock, StockAdjustment
from inventory_control.services.catalog_service import CatalogService
from inventory_control.services.order_service import OrderService
from tests.db_case import DatabaseTestCase


class TestCatalogService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.supplier_id = self.create_supplier()
        self.warehouse_id = self.create_warehouse()

    def test_new_warehouse_starts_empty(self):
        with session_scope() as session:
            warehouse = CatalogService(session).get_warehouse(self.warehouse_id)
            self.assertEqual(warehouse.current_stock, 0)
            self.assertEqual(warehouse.available_capacity, 100)

    def test_invalid_fields_are_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            with session_scope() as session:
                CatalogService(session).create_warehouse('Depot', 'Nowhere', 0)
        self.assertIn('capacity', ctx.exception.details)

        with self.assertRaises(ValidationError) as ctx:
            with session_scope() as session:
                CatalogService(session).create_supplier('', 'not-an-email', '555', 'Somewhere')
        self.assertEqual(set(ctx.exception.details), {'name', 'email'})

        with self.assertRaises(ValidationError):
            self.create_product(self.supplier_id, reorder_threshold=-1)

    def test_duplicates_are_rejected(self):
        self.create_product(self.supplier_id, sku='DUP-1')

        with self.assertRaises(CatalogError):
            self.create_product(self.supplier_id, sku='DUP-1')

        with self.assertRaises(CatalogError):
            self.create_supplier(name='Other Name', email='acme.parts@example.com')

    def test_product_requires_existing_supplier(self):
        with self.assertRaises(NotFoundError):
            self.create_product('missing-supplier')

    def test_lookups_and_listings(self):
        self.create_product(self.supplier_id, sku='B-1')
        self.create_warehouse(name='Annex')

        with session_scope() as session:
            catalog = CatalogService(session)
            self.assertEqual(catalog.get_product_by_sku('B-1').name, 'Product B-1')
            self.assertIsNone(catalog.get_product_by_sku('nope'))
            self.assertEqual([w.name for w in catalog.get_all_warehouses()], ['Annex', 'Main Warehouse'])
            self.assertEqual(len(catalog.get_all_products()), 1)
            self.assertEqual(len(catalog.get_all_suppliers()), 1)

    def test_delete_supplier_is_restricted(self):
        self.create_product(self.supplier_id)

        with self.assertRaises(CatalogError):
            with session_scope() as session:
                CatalogService(session).delete_supplier(self.supplier_id)

        unused_id = self.create_supplier(name='Unused Supplies')
        with session_scope() as session:
            CatalogService(session).delete_supplier(unused_id)

        with session_scope() as session:
            self.assertIsNone(CatalogService(session).get_supplier(unused_id))

    def test_delete_product_with_stock_on_hand_is_refused(self):
        product_id = self.create_product(self.supplier_id)
        self.stock(product_id, self.warehouse_id, 5)

        with self.assertRaises(CatalogError):
            with session_scope() as session:
                CatalogService(session).delete_product(product_id)

        self.assertEqual(self.warehouse_stock(self.warehouse_id), 5)

    def test_delete_product_with_orders_is_refused(self):
        product_id = self.create_product(self.supplier_id)
        with session_scope() as session:
            OrderService(session).create_order(product_id, self.warehouse_id, 5)

        with self.assertRaises(CatalogError):
            with session_scope() as session:
                CatalogService(session).delete_product(product_id)

        with self.assertRaises(CatalogError):
            with session_scope() as session:
                CatalogService(session).delete_warehouse(self.warehouse_id)

    def test_delete_empty_product_removes_stock_rows_and_history(self):
        product_id = self.create_product(self.supplier_id)
        self.stock(product_id, self.warehouse_id, 5)
        self.stock(product_id, self.warehouse_id, -5)

        with session_scope() as session:
            CatalogService(session).delete_product(product_id)

        with session_scope() as session:
            self.assertEqual(session.query(ProductStock).count(), 0)
            self.assertEqual(session.query(StockAdjustment).count(), 0)

        self.assertWarehouseConsistent(self.warehouse_id)

    def test_delete_missing_entities(self):
        with session_scope() as session:
            catalog = CatalogService(session)
            for delete in (catalog.delete_supplier, catalog.delete_product, catalog.delete_warehouse):
                with self.assertRaises(NotFoundError):
                    delete('missing')


if __name__ == '__main__':
    unittest.main()
