"""SQL table storage backed by a SQLAlchemy engine."""

import logging

from pydantic import ValidationError
from sqlalchemy import MetaData, Table, create_engine, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from .errors import MissingResourceError, QueryFailureError
from .models import CacheRow

logger = logging.getLogger(__name__)


class SqlTableStorage:
    """Raw table access over a relational database.

    Implements TableStorage. Only cache bins are read; entity storage is not
    available from raw tables.
    """

    def __init__(self, engine: Engine):
        """Initialize the storage.

        Args:
            engine: SQLAlchemy engine for the site database.
        """
        self.engine = engine
        self.inspector = inspect(self.engine)

    @classmethod
    def from_url(cls, url: str) -> "SqlTableStorage":
        """Create a storage from a database URL."""
        try:
            return cls(create_engine(url))
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Cannot connect to {url}: {e}") from e

    def _refresh(self) -> None:
        """Drop cached reflection data."""
        self.inspector = inspect(self.engine)

    def table_exists(self, name: str) -> bool:
        try:
            return self.inspector.has_table(name)
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Cannot inspect table {name}: {e}", name) from e

    def query_all_rows(self, table: str, order_by: str = "cid") -> list[CacheRow]:
        try:
            reflected = Table(table, MetaData(), autoload_with=self.engine)
        except NoSuchTableError as e:
            raise MissingResourceError(f"Table {table} does not exist", table) from e
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Cannot reflect table {table}: {e}", table) from e

        if order_by not in reflected.c:
            raise QueryFailureError(
                f"Cannot order table {table} by unknown column {order_by}", table
            )

        columns = [
            reflected.c[name]
            for name in ("cid", "data", "expire", "created", "serialized")
            if name in reflected.c
        ]
        query = select(*columns).order_by(reflected.c[order_by])

        try:
            with self.engine.connect() as conn:
                result = conn.execute(query)
                rows = [CacheRow.model_validate(dict(row._mapping)) for row in result]
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Query on table {table} failed: {e}", table) from e
        except ValidationError as e:
            raise QueryFailureError(f"Invalid rows in table {table}: {e}", table) from e

        logger.debug("Fetched %d rows from %s", len(rows), table)
        return rows

    def get_full_schema_catalog(
        self, force_refresh: bool = False
    ) -> dict[str, list[str]]:
        if force_refresh:
            self._refresh()

        try:
            return {
                name: [col["name"] for col in self.inspector.get_columns(name)]
                for name in self.inspector.get_table_names()
            }
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Cannot read schema catalog: {e}") from e
