from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_control.config import config
from inventory_control.exceptions import DatabaseError
from inventory_control.logging_setup import get_logger

logger = get_logger(__name__)

ORDER_SEQUENCE_NAME = 'purchase_order'

def _configure_sqlite(engine):
    """Make SQLite honour foreign keys and take the write lock up front.

    pysqlite defers BEGIN until the first write, so two readers can both
    decide on stale data before either writes. Starting every transaction
    with BEGIN IMMEDIATE serializes writers the way SELECT ... FOR UPDATE
    does on PostgreSQL.
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

class Database:
    """Database connection manager for the Inventory Control System."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the database connection if not already initialized."""
        if self._initialized:
            return

        self._engine = None
        self._session_factory = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Initialize database connection.

        Calling this again disposes the previous engine first.

        Args:
            connection_string: Optional database connection string.
                              If not provided, will use configuration.
        """
        if connection_string is None:
            connection_string = config.get_db_url()

        if self._engine is not None:
            self.dispose()

        echo = config.get_boolean('DATABASE', 'echo', False)
        url = make_url(connection_string)

        try:
            if url.get_backend_name() == 'sqlite':
                engine_args = {
                    'echo': echo,
                    'connect_args': {
                        'check_same_thread': False,
                        'timeout': config.get_float('DATABASE', 'sqlite_timeout', 30.0)
                    }
                }
                if url.database in (None, '', ':memory:'):
                    engine_args['poolclass'] = StaticPool

                self._engine = create_engine(url, **engine_args)
                _configure_sqlite(self._engine)
            else:
                # Create engine with connection pooling
                self._engine = create_engine(
                    url,
                    echo=echo,
                    pool_size=config.get_int('DATABASE', 'pool_size', 10),
                    max_overflow=config.get_int('DATABASE', 'max_overflow', 20),
                    pool_timeout=config.get_int('DATABASE', 'pool_timeout', 30),
                    pool_recycle=config.get_int('DATABASE', 'pool_recycle', 1800),
                    pool_pre_ping=True
                )
        except Exception as e:
            raise DatabaseError(f"Failed to create database engine: {str(e)}")

        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.debug(f"Database initialized for backend {url.get_backend_name()}")

    def dispose(self):
        """Release all pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def create_all_tables(self):
        """Create all tables defined in the models and seed the order counter."""
        from inventory_control.models import Base, OrderNumberSequence
        Base.metadata.create_all(self.engine)

        with self.session_scope() as session:
            if session.get(OrderNumberSequence, ORDER_SEQUENCE_NAME) is None:
                session.add(OrderNumberSequence(
                    name=ORDER_SEQUENCE_NAME,
                    next_value=config.order_config['order_number_start']
                ))

    def drop_all_tables(self):
        """Drop all tables from the database."""
        from inventory_control.models import Base
        Base.metadata.drop_all(self.engine)

    @property
    def engine(self):
        """Get the database engine."""
        if self._engine is None:
            self.initialize()
        return self._engine

    def new_session(self):
        """Create a new, independent session."""
        if self._session_factory is None:
            self.initialize()
        return self._session_factory()

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.new_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session
