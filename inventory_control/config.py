import os
import configparser
import urllib.parse
from pathlib import Path

CONFIG_ENV_VAR = 'INVENTORY_CONTROL_CONFIG'

class Config:
    """Configuration manager for the Inventory Control System."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config = configparser.ConfigParser(interpolation=None)
        self._config_path = None
        self.load()
        self._initialized = True

    def load(self, config_path=None):
        """Load configuration from disk, falling back to the built-in defaults.

        Args:
            config_path: Optional path to a settings.ini file. Defaults to the
                path in INVENTORY_CONTROL_CONFIG, then config/settings.ini.
        """
        if config_path is None:
            config_path = os.getenv(CONFIG_ENV_VAR) or Path('config') / 'settings.ini'

        self._config_path = Path(config_path)
        self._config = configparser.ConfigParser(interpolation=None)
        self._load_defaults()

        if self._config_path.exists():
            self._config.read(self._config_path)

    def _load_defaults(self):
        """Populate the default configuration."""
        self._config['DATABASE'] = {
            'engine': 'postgresql',
            'host': 'localhost',
            'port': '5432',
            'database': 'inventory',
            'username': 'postgres',
            'password': 'postgres',
            'echo': 'False',
            'pool_size': '10',
            'max_overflow': '20',
            'pool_timeout': '30',
            'pool_recycle': '1800',
            'sqlite_timeout': '30'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True',
            'file_output': 'True'
        }

        self._config['REORDER_MONITOR'] = {
            'interval_seconds': '60',
            'run_on_start': 'True',
            'join_timeout_seconds': '30'
        }

        self._config['ORDERS'] = {
            'expected_arrival_days': '3',
            'order_number_start': '1000',
            'order_number_prefix': 'PO-',
            'order_number_width': '8',
            'system_user': 'system'
        }

    def save(self):
        """Save configuration to file."""
        if not self._config_path.parent.exists():
            self._config_path.parent.mkdir(parents=True)

        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value, persist=False):
        """Set configuration value.

        Args:
            section: Section name
            key: Option name
            value: New value (stored as string)
            persist: Write the configuration file after the change
        """
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        if persist:
            self.save()

    def get_db_url(self):
        """Generate SQLAlchemy database URL."""
        url = self.get('DATABASE', 'url')
        if url:
            return url

        engine = self.get('DATABASE', 'engine', 'postgresql')
        username = self.get('DATABASE', 'username', 'postgres')
        password = self.get('DATABASE', 'password', 'postgres')
        host = self.get('DATABASE', 'host', 'localhost')
        port = self.get('DATABASE', 'port', '5432')
        database = self.get('DATABASE', 'database', 'inventory')

        # URL encode the password to handle special characters
        password = urllib.parse.quote_plus(password)

        return f"{engine}://{username}:{password}@{host}:{port}/{database}"

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', True)
        }

    @property
    def monitor_config(self):
        """Get reorder monitor configuration."""
        return {
            'interval_seconds': self.get_float('REORDER_MONITOR', 'interval_seconds', 60.0),
            'run_on_start': self.get_boolean('REORDER_MONITOR', 'run_on_start', True),
            'join_timeout_seconds': self.get_float('REORDER_MONITOR', 'join_timeout_seconds', 30.0)
        }

    @property
    def order_config(self):
        """Get purchase order configuration."""
        return {
            'expected_arrival_days': self.get_int('ORDERS', 'expected_arrival_days', 3),
            'order_number_start': self.get_int('ORDERS', 'order_number_start', 1000),
            'order_number_prefix': self.get('ORDERS', 'order_number_prefix', 'PO-'),
            'order_number_width': self.get_int('ORDERS', 'order_number_width', 8),
            'system_user': self.get('ORDERS', 'system_user', 'system')
        }

# Global config instance
config = Config()
