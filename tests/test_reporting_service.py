"""
Tests for the read-only reports.
"""
import unittest

from sqlalchemy import update

from inventory_control.db import session_scope
from inventory_control.exceptions import NotFoundError
from inventory_control.models import Warehouse
from inventory_control.services.reporting_service import (
    IN_STOCK, LOW_STOCK, OUT_OF_STOCK, ReportingService, get_stock_status, utilization_percentage,
    whole_percentage
)
from tests.db_case import DatabaseTestCase


class TestStockStatus(unittest.TestCase):
    def test_classification(self):
        self.assertEqual(get_stock_status(0, 20), OUT_OF_STOCK)
        self.assertEqual(get_stock_status(0, 0), OUT_OF_STOCK)
        self.assertEqual(get_stock_status(19, 20), LOW_STOCK)
        self.assertEqual(get_stock_status(20, 20), IN_STOCK)

    def test_utilization(self):
        self.assertEqual(utilization_percentage(1, 3), 33.33)
        self.assertEqual(utilization_percentage(0, 100), 0.0)

    def test_whole_percentage_rounds_halves_up(self):
        self.assertEqual(whole_percentage(85, 200), 43)
        self.assertEqual(whole_percentage(1, 200), 1)
        self.assertEqual(whole_percentage(1, 3), 33)
        self.assertEqual(whole_percentage(0, 0), 0)


class TestReportingService(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.supplier_id = self.create_supplier()
        self.main_id = self.create_warehouse(capacity=200, name='Main Warehouse')
        self.annex_id = self.create_warehouse(capacity=50, name='Annex')
        self.cable_id = self.create_product(self.supplier_id, sku='CABLE-1', reorder_threshold=20)
        self.dock_id = self.create_product(self.supplier_id, sku='DOCK-1', reorder_threshold=5)

        self.stock(self.cable_id, self.main_id, 12)
        self.stock(self.cable_id, self.annex_id, 3)
        self.stock(self.dock_id, self.main_id, 30)
        self.stock(self.dock_id, self.annex_id)

    def test_products_with_stock(self):
        with session_scope() as session:
            products = ReportingService(session).get_products_with_stock()

        by_sku = {p['sku']: p for p in products}
        self.assertEqual(by_sku['CABLE-1']['total_stock'], 15)
        self.assertEqual(by_sku['CABLE-1']['stock_status'], LOW_STOCK)
        self.assertEqual(by_sku['CABLE-1']['supplier_name'], 'Acme Parts')
        self.assertEqual(
            [s['warehouse_name'] for s in by_sku['CABLE-1']['warehouse_stocks']],
            ['Annex', 'Main Warehouse']
        )
        self.assertEqual(by_sku['DOCK-1']['stock_status'], IN_STOCK)

    def test_product_detail(self):
        with session_scope() as session:
            reporting = ReportingService(session)
            detail = reporting.get_product_detail(self.dock_id)

            with self.assertRaises(NotFoundError):
                reporting.get_product_detail('missing')

        self.assertEqual(detail['total_stock'], 30)
        self.assertEqual(detail['supplier_email'], 'acme.parts@example.com')
        self.assertEqual([level['quantity'] for level in detail['stock_levels']], [0, 30])

    def test_warehouses(self):
        with session_scope() as session:
            warehouses = ReportingService(session).get_warehouses()

        self.assertEqual([w['name'] for w in warehouses], ['Annex', 'Main Warehouse'])
        self.assertEqual(warehouses[0]['utilization_percentage'], 6.0)
        self.assertEqual(warehouses[1]['current_stock'], 42)
        self.assertEqual(warehouses[1]['utilization_percentage'], 21.0)

    def test_warehouse_detail_lists_only_held_products(self):
        with session_scope() as session:
            detail = ReportingService(session).get_warehouse_detail(self.annex_id)

        self.assertEqual(detail['utilization'], 6)
        self.assertEqual([item['sku'] for item in detail['inventory']], ['CABLE-1'])

    def test_warehouse_detail_rounds_half_percent_up(self):
        self.stock(self.dock_id, self.main_id, 43)

        with session_scope() as session:
            detail = ReportingService(session).get_warehouse_detail(self.main_id)

        # 85 of 200 units is 42.5%
        self.assertEqual(detail['current_stock'], 85)
        self.assertEqual(detail['utilization'], 43)

    def test_suppliers_count_products(self):
        self.create_supplier(name='Idle Supplies')

        with session_scope() as session:
            suppliers = ReportingService(session).get_suppliers()

        self.assertEqual(
            [(s['name'], s['product_count']) for s in suppliers],
            [('Acme Parts', 2), ('Idle Supplies', 0)]
        )

    def test_low_stock_alerts_most_depleted_first(self):
        with session_scope() as session:
            alerts = ReportingService(session).get_low_stock_alerts()

        self.assertEqual(
            [(a['sku'], a['warehouse_name'], a['current_stock']) for a in alerts],
            [('DOCK-1', 'Annex', 0), ('CABLE-1', 'Annex', 3), ('CABLE-1', 'Main Warehouse', 12)]
        )

    def test_integrity_check_reports_drift(self):
        with session_scope() as session:
            self.assertEqual(ReportingService(session).check_stock_integrity(), [])

        with session_scope() as session:
            session.execute(update(Warehouse).where(Warehouse.id == self.main_id).values(current_stock=40))

        with session_scope() as session:
            problems = ReportingService(session).check_stock_integrity()

        self.assertEqual(len(problems), 1)
        self.assertEqual(problems[0]['warehouse_id'], self.main_id)
        self.assertEqual(problems[0]['current_stock'], 40)
        self.assertEqual(problems[0]['detail_total'], 42)

        # Reporting never repairs the stored total
        self.assertEqual(self.warehouse_stock(self.main_id), 40)


if __name__ == '__main__':
    unittest.main()
