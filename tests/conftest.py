import os
from pathlib import Path

# Must be set before inventory_control is imported anywhere
os.environ.setdefault('INVENTORY_CONTROL_CONFIG', str(Path(__file__).parent / 'settings.ini'))
