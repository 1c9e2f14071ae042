# inventory_control/populate_db.py - Populate the database with sample reference data and stock

import random
from typing import Dict, Optional

from sqlalchemy.orm import Session

from inventory_control.models import Product, Supplier
from inventory_control.services.catalog_service import CatalogService
from inventory_control.services.inventory_service import InventoryService
from inventory_control.exceptions import CatalogError
from inventory_control.logging_setup import get_logger

logger = get_logger(__name__)

SEED_USER = 'seed'
INITIAL_STOCK_REASON = 'Initial stock'

SUPPLIERS = [
    {
        'name': 'TechSupply Co.',
        'email': 'orders@techsupply.com',
        'phone': '+1-555-0100',
        'address': '123 Tech Street, Silicon Valley, CA 94000'
    },
    {
        'name': 'Global Electronics',
        'email': 'sales@globalelec.com',
        'phone': '+1-555-0200',
        'address': '456 Circuit Ave, Austin, TX 78701'
    },
    {
        'name': 'Digital Warehouse',
        'email': 'contact@digitalwh.com',
        'phone': '+1-555-0300',
        'address': '789 Data Drive, Seattle, WA 98101'
    }
]

WAREHOUSES = [
    {'name': 'Main Distribution Center', 'location': 'New York, NY', 'capacity': 10000},
    {'name': 'West Coast Hub', 'location': 'Los Angeles, CA', 'capacity': 7500},
    {'name': 'Central Warehouse', 'location': 'Chicago, IL', 'capacity': 5000}
]

# supplier is an index into SUPPLIERS
PRODUCTS = [
    {
        'sku': 'LAPTOP-001',
        'name': 'Professional Laptop',
        'description': 'High-performance laptop for business use',
        'reorder_threshold': 20,
        'reorder_quantity': 50,
        'supplier': 0
    },
    {
        'sku': 'MOUSE-002',
        'name': 'Wireless Mouse',
        'description': 'Ergonomic wireless mouse with precision tracking',
        'reorder_threshold': 50,
        'reorder_quantity': 100,
        'supplier': 1
    },
    {
        'sku': 'KEYB-003',
        'name': 'Mechanical Keyboard',
        'description': 'RGB mechanical keyboard with Cherry MX switches',
        'reorder_threshold': 30,
        'reorder_quantity': 75,
        'supplier': 1
    },
    {
        'sku': 'MONITOR-004',
        'name': '27" 4K Monitor',
        'description': 'Professional 4K IPS display with HDR',
        'reorder_threshold': 15,
        'reorder_quantity': 40,
        'supplier': 2
    },
    {
        'sku': 'WEBCAM-005',
        'name': 'HD Webcam',
        'description': '1080p webcam with autofocus',
        'reorder_threshold': 40,
        'reorder_quantity': 80,
        'supplier': 0
    }
]

def populate_sample_data(session: Session, seed: Optional[int] = None) -> Dict:
    """Create the sample suppliers, warehouses and products and stock them.

    Every product gets a random quantity between 10 and 99 in every
    warehouse. Stock is booked through the ledger so each quantity has a
    matching audit row.

    Args:
        session: Database session
        seed: Optional random seed for reproducible quantities

    Returns:
        Dictionary with counts of created records
    """
    if session.query(Supplier).count() or session.query(Product).count():
        raise CatalogError("Database already contains catalog data; refusing to seed")

    rng = random.Random(seed)
    catalog = CatalogService(session)
    inventory = InventoryService(session)

    suppliers = [catalog.create_supplier(**data) for data in SUPPLIERS]
    warehouses = [catalog.create_warehouse(**data) for data in WAREHOUSES]

    products = []
    for data in PRODUCTS:
        fields = dict(data)
        supplier = suppliers[fields.pop('supplier')]
        products.append(catalog.create_product(supplier_id=supplier.id, **fields))

    stock_records = 0
    for product in products:
        for warehouse in warehouses:
            inventory.ensure_stock_record(product.id, warehouse.id)
            inventory.adjust_stock(
                product.id,
                warehouse.id,
                rng.randint(10, 99),
                reason=INITIAL_STOCK_REASON,
                user_id=SEED_USER
            )
            stock_records += 1

    logger.info(
        f"Database seeded: {len(suppliers)} suppliers, {len(warehouses)} warehouses, "
        f"{len(products)} products, {stock_records} stock records"
    )

    return {
        'suppliers': len(suppliers),
        'warehouses': len(warehouses),
        'products': len(products),
        'stock_records': stock_records
    }
