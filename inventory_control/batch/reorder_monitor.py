# inventory_control/batch/reorder_monitor.py
import enum
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_control.config import config
from inventory_control.db import session_scope
from inventory_control.models import (
    OPEN_ORDER_STATUSES, Product, ProductStock, PurchaseOrder, Warehouse
)
from inventory_control.services.order_service import OrderService
from inventory_control.exceptions import InventoryError, MonitorError
from inventory_control.utils.date_utils import elapsed_ms, now
from inventory_control.logging_setup import get_logger, logger as log_manager

logger = get_logger(__name__)

class MonitorState(enum.Enum):
    IDLE = 'IDLE'
    RUNNING = 'RUNNING'
    STOPPED = 'STOPPED'

def find_reorder_candidates(session: Session) -> List[Dict]:
    """Find (product, warehouse) pairs that need a replenishment order.

    A pair qualifies when its quantity plus the units already on open
    orders is still below the product's reorder threshold. The suggested
    quantity is the product's reorder quantity, capped by the warehouse's
    free space net of those open orders.

    Args:
        session: Database session

    Returns:
        List of candidate dictionaries, most depleted first
    """
    pending = session.query(
        PurchaseOrder.product_id.label('product_id'),
        PurchaseOrder.warehouse_id.label('warehouse_id'),
        func.sum(PurchaseOrder.quantity_ordered).label('pending_quantity')
    ).filter(
        PurchaseOrder.status.in_(OPEN_ORDER_STATUSES)
    ).group_by(
        PurchaseOrder.product_id, PurchaseOrder.warehouse_id
    ).subquery()

    rows = session.query(
        ProductStock,
        Product,
        Warehouse,
        func.coalesce(pending.c.pending_quantity, 0)
    ).join(
        Product, ProductStock.product_id == Product.id
    ).join(
        Warehouse, ProductStock.warehouse_id == Warehouse.id
    ).outerjoin(
        pending,
        and_(
            pending.c.product_id == ProductStock.product_id,
            pending.c.warehouse_id == ProductStock.warehouse_id
        )
    ).filter(
        ProductStock.quantity < Product.reorder_threshold
    ).order_by(
        ProductStock.quantity.asc(), Product.sku, Warehouse.name
    ).all()

    candidates = []
    for stock, product, warehouse, pending_quantity in rows:
        pending_quantity = int(pending_quantity)
        available_capacity = warehouse.capacity - warehouse.current_stock

        if stock.quantity + pending_quantity >= product.reorder_threshold:
            continue

        suggested_quantity = min(product.reorder_quantity, available_capacity - pending_quantity)
        if suggested_quantity <= 0:
            continue

        candidates.append({
            'product_id': product.id,
            'product_name': product.name,
            'sku': product.sku,
            'supplier_id': product.supplier_id,
            'warehouse_id': warehouse.id,
            'warehouse_name': warehouse.name,
            'current_quantity': stock.quantity,
            'reorder_threshold': product.reorder_threshold,
            'reorder_quantity': product.reorder_quantity,
            'pending_quantity': pending_quantity,
            'available_capacity': available_capacity,
            'suggested_order_quantity': suggested_quantity
        })

    return candidates

class ReorderMonitor:
    """Recurring scan that raises purchase orders for depleted stock.

    Each instance owns its own worker thread and lifecycle:
    IDLE -> RUNNING -> STOPPED. A stopped monitor cannot be restarted;
    create a new instance instead.
    """

    def __init__(
        self,
        interval: Optional[float] = None,
        run_on_start: Optional[bool] = None,
        session_factory: Optional[Callable] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize the reorder monitor.

        Args:
            interval: Seconds between scans (defaults to configuration)
            run_on_start: Scan immediately when started (defaults to configuration)
            session_factory: Callable returning a transactional session context
                manager; defaults to ``session_scope``
            clock: Optional callable returning the current time
        """
        monitor_config = config.monitor_config
        self.interval = interval if interval is not None else monitor_config['interval_seconds']
        self.run_on_start = run_on_start if run_on_start is not None else monitor_config['run_on_start']
        self.join_timeout = monitor_config['join_timeout_seconds']
        self._session_scope = session_factory or session_scope
        self.clock = clock or now

        self._state = MonitorState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = None

        self.tick_count = 0
        self.failed_ticks = 0
        self.last_result = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        """True while scheduled or while a stopped monitor's scan is still in flight."""
        thread = self._thread
        return self._state == MonitorState.RUNNING or (thread is not None and thread.is_alive())

    def start(self) -> None:
        """Start scanning in a background thread.

        Does nothing if the monitor is already running.

        Raises:
            MonitorError: The monitor has already been stopped
        """
        with self._state_lock:
            if self._state == MonitorState.RUNNING:
                return
            if self._state == MonitorState.STOPPED:
                raise MonitorError("Reorder monitor has been stopped and cannot be restarted")

            logger.info(f"Starting automatic reorder monitoring (every {self.interval}s)")
            self._state = MonitorState.RUNNING
            self._thread = threading.Thread(
                target=self._run, name='reorder-monitor', daemon=True
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to stop and wait for an in-flight scan to finish.

        The monitor is STOPPED as soon as this is called. If the worker
        outlives the timeout, ``is_running`` stays True until its scan ends;
        calling ``stop()`` again waits for it once more.

        Args:
            timeout: Seconds to wait for the worker thread (defaults to configuration)
        """
        with self._state_lock:
            thread = self._thread
            if thread is None:
                return

            self._stop_event.set()
            self._state = MonitorState.STOPPED

        thread.join(timeout if timeout is not None else self.join_timeout)
        if thread.is_alive():
            # Keep the thread so is_running stays true and a later stop() can wait again
            logger.warning("Reorder monitor thread is still finishing a scan; stop is pending")
            return

        with self._state_lock:
            if self._thread is thread:
                self._thread = None

        logger.info("Stopped reorder monitoring")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the monitor is asked to stop.

        Returns:
            True if a stop was requested, False on timeout
        """
        return self._stop_event.wait(timeout)

    def _run(self) -> None:
        if self.run_on_start:
            self._safe_check()

        while not self._stop_event.wait(self.interval):
            self._safe_check()

    def _safe_check(self) -> None:
        self.tick_count += 1
        try:
            self.last_result = self.check_reorder_levels()
        except Exception as e:
            # A failed tick must never end the loop; the next tick retries
            self.failed_ticks += 1
            self.last_result = {'success': False, 'error': str(e)}
            logger.exception(f"Reorder monitor error: {str(e)}")

    def check_reorder_levels(self) -> Dict:
        """Run one scan: find candidates, then raise one order per candidate.

        Candidates are read in one transaction; each order is created in its
        own transaction, where OrderService re-checks warehouse capacity. A
        failure on one candidate is logged and the scan moves on.

        Returns:
            Dictionary with scan results
        """
        log_info = log_manager.batch_start_log('reorder_check')
        start_time = self.clock()

        results = {
            'success': True,
            'candidates': 0,
            'orders_created': 0,
            'order_numbers': [],
            'errors': 0,
            'error_items': [],
            'duration_ms': 0
        }

        with self._session_scope() as session:
            candidates = find_reorder_candidates(session)

        results['candidates'] = len(candidates)

        for candidate in candidates:
            if self._stop_event.is_set():
                logger.info("Stop requested; leaving remaining reorder candidates for a later scan")
                break

            try:
                with self._session_scope() as session:
                    order = OrderService(session, clock=self.clock).create_order(
                        candidate['product_id'],
                        candidate['warehouse_id'],
                        candidate['suggested_order_quantity'],
                        supplier_id=candidate['supplier_id'],
                        notes=(
                            f"Automatic reorder: Stock at "
                            f"{candidate['current_quantity']}/{candidate['reorder_threshold']}"
                        )
                    )
                    order_number = order.order_number
                    order_quantity = order.quantity_ordered

                logger.info(
                    f"Auto-reorder created: {order_number} - {candidate['product_name']} "
                    f"({order_quantity} units) for {candidate['warehouse_name']}"
                )
                results['orders_created'] += 1
                results['order_numbers'].append(order_number)

            except (InventoryError, SQLAlchemyError) as e:
                logger.error(f"Failed to create reorder for product {candidate['product_id']}: {str(e)}")
                results['errors'] += 1
                results['error_items'].append({
                    'product_id': candidate['product_id'],
                    'warehouse_id': candidate['warehouse_id'],
                    'error': str(e)
                })

        results['duration_ms'] = elapsed_ms(start_time, self.clock())

        if results['orders_created'] > 0:
            logger.info(
                f"Reorder check complete: {results['orders_created']} orders created "
                f"in {results['duration_ms']}ms"
            )

        log_manager.batch_end_log(log_info, success=results['errors'] == 0, result_info={
            'candidates': results['candidates'],
            'orders_created': results['orders_created'],
            'errors': results['errors']
        })

        return results

def run_reorder_check() -> Dict:
    """Run a single reorder scan outside of any background loop."""
    return ReorderMonitor(run_on_start=False).check_reorder_levels()

def start_reorder_monitor(interval: Optional[float] = None) -> ReorderMonitor:
    """Create and start a reorder monitor."""
    monitor = ReorderMonitor(interval=interval)
    monitor.start()
    return monitor

def stop_reorder_monitor(monitor: ReorderMonitor, timeout: Optional[float] = None) -> None:
    monitor.stop(timeout)
