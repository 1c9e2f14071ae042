# inventory_control/batch/__init__.py

from .reorder_monitor import (
    MonitorState,
    ReorderMonitor,
    find_reorder_candidates,
    run_reorder_check,
    start_reorder_monitor,
    stop_reorder_monitor
)

__all__ = [
    'MonitorState',
    'ReorderMonitor',
    'find_reorder_candidates',
    'run_reorder_check',
    'start_reorder_monitor',
    'stop_reorder_monitor'
]
