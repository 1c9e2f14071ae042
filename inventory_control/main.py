"""
Command line interface for the Inventory Control System.

Subcommands cover database setup, the stock ledger, purchase orders,
reporting and the reorder monitor.
"""
import argparse
import logging
import signal
import sys

from sqlalchemy.exc import SQLAlchemyError
from tabulate import tabulate

from inventory_control.config import config
from inventory_control.db import db, session_scope
from inventory_control.exceptions import InventoryError
from inventory_control.logging_setup import logger as log_manager, get_logger, log_exception
from inventory_control.utils.date_utils import format_timestamp

log = get_logger('inventory_control.cli')

def init_application(database_url=None):
    """Initialize application components."""
    db.initialize(database_url)
    log.debug(f"Using database: {db.engine.url.render_as_string(hide_password=True)}")

def setup_database(args):
    if args.drop:
        db.drop_all_tables()
        log.info("Dropped existing tables")
    db.create_all_tables()
    print("Database schema is ready")

def seed_database(args):
    from inventory_control.populate_db import populate_sample_data

    with session_scope() as session:
        counts = populate_sample_data(session, seed=args.seed)

    print(tabulate(sorted(counts.items()), headers=['Entity', 'Created']))

def adjust_stock(args):
    from inventory_control.services.inventory_service import InventoryService

    with session_scope() as session:
        new_quantity = InventoryService(session).adjust_stock(
            args.product_id,
            args.warehouse_id,
            args.adjustment,
            reason=args.reason,
            user_id=args.user
        )

    print(f"New quantity: {new_quantity}")

def create_order(args):
    from inventory_control.services.order_service import OrderService

    with session_scope() as session:
        order = OrderService(session).create_order(
            args.product_id,
            args.warehouse_id,
            args.quantity,
            supplier_id=args.supplier_id,
            notes=args.notes
        )
        print(f"Created {order.order_number}: {order.quantity_ordered} units "
              f"(expected {format_timestamp(order.expected_arrival)})")
        if order.quantity_ordered < args.quantity:
            print(f"Requested {args.quantity} units; reduced to fit warehouse capacity")

def complete_order(args):
    from inventory_control.services.order_service import OrderService

    with session_scope() as session:
        order = OrderService(session).complete_order(args.order_id)
        print(f"Completed {order.order_number}: {order.quantity_ordered} units received")

def confirm_order(args):
    from inventory_control.services.order_service import OrderService

    with session_scope() as session:
        order = OrderService(session).confirm_order(args.order_id)
        print(f"{order.order_number} is now {order.status}")

def ship_order(args):
    from inventory_control.services.order_service import OrderService

    with session_scope() as session:
        order = OrderService(session).ship_order(args.order_id)
        print(f"{order.order_number} is now {order.status}")

def list_orders(args):
    from inventory_control.services.order_service import OrderService

    with session_scope() as session:
        orders = OrderService(session).get_orders(
            status=args.status,
            product_id=args.product_id,
            warehouse_id=args.warehouse_id
        )

        table_data = [
            [
                order.order_number,
                str(order.status),
                order.product.sku,
                order.warehouse.name,
                order.supplier.name,
                order.quantity_ordered,
                format_timestamp(order.order_date),
                format_timestamp(order.expected_arrival),
                format_timestamp(order.actual_arrival),
                order.id
            ]
            for order in orders
        ]

    print(tabulate(table_data, headers=[
        'Order', 'Status', 'SKU', 'Warehouse', 'Supplier', 'Qty',
        'Ordered', 'Expected', 'Arrived', 'ID'
    ]))
    print(f"\nTotal Orders: {len(table_data)}")

def show_products(args):
    from inventory_control.services.reporting_service import ReportingService

    with session_scope() as session:
        products = ReportingService(session).get_products_with_stock()

    print(tabulate(
        [[p['sku'], p['name'], p['supplier_name'], p['total_stock'], p['reorder_threshold'],
          p['stock_status'], p['id']] for p in products],
        headers=['SKU', 'Name', 'Supplier', 'Stock', 'Threshold', 'Status', 'ID']
    ))

def show_warehouses(args):
    from inventory_control.services.reporting_service import ReportingService

    with session_scope() as session:
        warehouses = ReportingService(session).get_warehouses()

    print(tabulate(
        [[w['name'], w['location'], w['current_stock'], w['capacity'],
          f"{w['utilization_percentage']:.2f}%", w['id']] for w in warehouses],
        headers=['Name', 'Location', 'Stock', 'Capacity', 'Utilization', 'ID']
    ))

def show_suppliers(args):
    from inventory_control.services.reporting_service import ReportingService

    with session_scope() as session:
        suppliers = ReportingService(session).get_suppliers()

    print(tabulate(
        [[s['name'], s['email'], s['phone'], s['product_count'], s['id']] for s in suppliers],
        headers=['Name', 'Email', 'Phone', 'Products', 'ID']
    ))

def show_low_stock(args):
    from inventory_control.services.reporting_service import ReportingService

    with session_scope() as session:
        alerts = ReportingService(session).get_low_stock_alerts()

    if not alerts:
        print("No products below their reorder threshold")
        return

    print(tabulate(
        [[a['sku'], a['product_name'], a['warehouse_name'], a['current_stock'],
          a['reorder_threshold'], a['supplier_name']] for a in alerts],
        headers=['SKU', 'Product', 'Warehouse', 'Stock', 'Threshold', 'Supplier']
    ))

def check_integrity(args):
    from inventory_control.services.reporting_service import ReportingService

    with session_scope() as session:
        problems = ReportingService(session).check_stock_integrity()

    if not problems:
        print("All warehouse totals match their stock records")
        return 0

    print(tabulate(
        [[p['warehouse_name'], p['current_stock'], p['detail_total'], p['capacity']] for p in problems],
        headers=['Warehouse', 'Recorded', 'Actual', 'Capacity']
    ))
    return 1

def reorder_check(args):
    from inventory_control.batch.reorder_monitor import run_reorder_check

    results = run_reorder_check()
    print(f"Candidates: {results['candidates']}")
    print(f"Orders created: {results['orders_created']} {' '.join(results['order_numbers'])}")
    print(f"Errors: {results['errors']}")
    print(f"Duration: {results['duration_ms']}ms")
    return 0 if results['errors'] == 0 else 1

def run_monitor(args):
    from inventory_control.batch.reorder_monitor import start_reorder_monitor, stop_reorder_monitor

    def _request_stop(signum, frame):
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, _request_stop)

    monitor = start_reorder_monitor(interval=args.interval)
    log.info("Inventory monitoring active; press Ctrl+C to stop")
    try:
        while not monitor.wait(1.0):
            pass
    except KeyboardInterrupt:
        log.info("Shutdown requested")
    finally:
        stop_reorder_monitor(monitor)

def build_parser():
    parser = argparse.ArgumentParser(description='Inventory Control System')
    parser.add_argument('--database-url', help='SQLAlchemy database URL (overrides settings.ini)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    init_parser = subparsers.add_parser('init-db', help='Create the database schema')
    init_parser.add_argument('--drop', action='store_true', help='Drop existing tables first')
    init_parser.set_defaults(func=setup_database)

    seed_parser = subparsers.add_parser('seed', help='Load sample suppliers, warehouses and products')
    seed_parser.add_argument('--seed', type=int, help='Random seed for initial quantities')
    seed_parser.set_defaults(func=seed_database)

    adjust_parser = subparsers.add_parser('adjust', help='Adjust stock for a product in a warehouse')
    adjust_parser.add_argument('product_id')
    adjust_parser.add_argument('warehouse_id')
    adjust_parser.add_argument('adjustment', type=int, help='Signed change in units')
    adjust_parser.add_argument('--reason', help='Reason recorded in the audit trail')
    adjust_parser.add_argument('--user', help='Actor recorded in the audit trail')
    adjust_parser.set_defaults(func=adjust_stock)

    create_parser = subparsers.add_parser('create-order', help='Raise a purchase order')
    create_parser.add_argument('product_id')
    create_parser.add_argument('warehouse_id')
    create_parser.add_argument('quantity', type=int)
    create_parser.add_argument('--supplier-id', help="Defaults to the product's supplier")
    create_parser.add_argument('--notes')
    create_parser.set_defaults(func=create_order)

    for name, handler, help_text in (
        ('complete-order', complete_order, 'Receive a purchase order into stock'),
        ('confirm-order', confirm_order, 'Mark a pending order as confirmed'),
        ('ship-order', ship_order, 'Mark a confirmed order as shipped'),
    ):
        order_parser = subparsers.add_parser(name, help=help_text)
        order_parser.add_argument('order_id')
        order_parser.set_defaults(func=handler)

    list_parser = subparsers.add_parser('list-orders', help='List purchase orders')
    list_parser.add_argument('--status', help='PENDING, CONFIRMED, SHIPPED, COMPLETED or CANCELLED')
    list_parser.add_argument('--product-id')
    list_parser.add_argument('--warehouse-id')
    list_parser.set_defaults(func=list_orders)

    subparsers.add_parser('products', help='Products with stock status').set_defaults(func=show_products)
    subparsers.add_parser('warehouses', help='Warehouse utilization').set_defaults(func=show_warehouses)
    subparsers.add_parser('suppliers', help='Suppliers with product counts').set_defaults(func=show_suppliers)
    subparsers.add_parser('low-stock', help='Pairs below reorder threshold').set_defaults(func=show_low_stock)
    subparsers.add_parser(
        'check-integrity', help='Compare warehouse totals with stock records'
    ).set_defaults(func=check_integrity)
    subparsers.add_parser('reorder-check', help='Run one reorder scan').set_defaults(func=reorder_check)

    monitor_parser = subparsers.add_parser('monitor', help='Run the reorder monitor until interrupted')
    monitor_parser.add_argument(
        '--interval', type=float,
        help=f"Seconds between scans (default {config.monitor_config['interval_seconds']})"
    )
    monitor_parser.set_defaults(func=run_monitor)

    return parser

def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        log_manager.set_level(logging.DEBUG)

    try:
        init_application(args.database_url)
        result = args.func(args)
    except InventoryError as e:
        log.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        log_exception('inventory_control', e, "Database error")
        print(f"Database error: {e}", file=sys.stderr)
        return 1

    return result if isinstance(result, int) else 0

if __name__ == "__main__":
    sys.exit(main())
