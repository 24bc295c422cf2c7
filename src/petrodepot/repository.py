"""
PetroDepot Persistence

One Repository per table, each exposing list / create / update / delete.
Derived values (stock levels, balances) are never stored: callers
re-fetch a snapshot and recompute.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

import asyncpg

from petrodepot.database import get_connection
from petrodepot.exceptions import RecordNotFoundError, RepositoryError
from petrodepot.models import (
    ConsumptionEntry,
    DeliveryRecord,
    OilChange,
    Payment,
    TankReading,
    VehicleDocument,
)

logger = logging.getLogger(__name__)


def _db_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class Repository:
    """
    Table gateway over the shared asyncpg pool.

    Only the declared columns can be written or filtered on, so column
    names are never taken from request data.
    """

    def __init__(
        self,
        table: str,
        columns: Sequence[str],
        order_by: Sequence[str] = ("created_at",)
    ):
        self.table = table
        self.columns = tuple(columns)
        self.order_by = tuple(order_by)

    def _check_columns(self, names: Sequence[str]) -> None:
        unknown = [name for name in names if name not in self.columns]
        if unknown:
            raise RepositoryError(
                f"Unknown column(s) for {self.table}: {', '.join(unknown)}",
                table=self.table,
                details={"columns": unknown}
            )

    async def list(self, **filters: Any) -> list[dict[str, Any]]:
        """Fetch every row matching the equality filters."""
        self._check_columns(list(filters))

        where = ""
        if filters:
            clauses = [f"{name} = ${i}" for i, name in enumerate(filters, start=1)]
            where = " WHERE " + " AND ".join(clauses)
        order = ", ".join(self.order_by)

        try:
            async with get_connection() as conn:
                rows = await conn.fetch(
                    f"SELECT * FROM {self.table}{where} ORDER BY {order}",
                    *filters.values()
                )
        except asyncpg.PostgresError as e:
            raise RepositoryError(f"Failed to list {self.table}: {e}", table=self.table) from e

        return [dict(row) for row in rows]

    async def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a row and return it with database-generated fields."""
        data = {k: _db_value(v) for k, v in record.items() if v is not None}
        self._check_columns(list(data))

        names = ", ".join(data)
        placeholders = ", ".join(f"${i}" for i in range(1, len(data) + 1))

        try:
            async with get_connection() as conn:
                row = await conn.fetchrow(
                    f"INSERT INTO {self.table} ({names}) VALUES ({placeholders}) "
                    f"RETURNING *",
                    *data.values()
                )
        except asyncpg.PostgresError as e:
            raise RepositoryError(f"Failed to insert into {self.table}: {e}", table=self.table) from e

        logger.info(f"Created {self.table} row {row['id']}")
        return dict(row)

    async def update(self, record_id: UUID, partial: Mapping[str, Any]) -> None:
        """Update the given columns of one row."""
        data = {k: _db_value(v) for k, v in partial.items() if k != "id"}
        if not data:
            return
        self._check_columns(list(data))

        assignments = ", ".join(
            f"{name} = ${i}" for i, name in enumerate(data, start=2)
        )

        try:
            async with get_connection() as conn:
                result = await conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id = $1",
                    record_id,
                    *data.values()
                )
        except asyncpg.PostgresError as e:
            raise RepositoryError(f"Failed to update {self.table}: {e}", table=self.table) from e

        if result.endswith(" 0"):
            raise RecordNotFoundError(
                f"No {self.table} row with id {record_id}",
                table=self.table,
                details={"id": str(record_id)}
            )
        logger.info(f"Updated {self.table} row {record_id}")

    async def delete(self, record_id: UUID) -> None:
        try:
            async with get_connection() as conn:
                result = await conn.execute(
                    f"DELETE FROM {self.table} WHERE id = $1",
                    record_id
                )
        except asyncpg.PostgresError as e:
            raise RepositoryError(f"Failed to delete from {self.table}: {e}", table=self.table) from e

        if result.endswith(" 0"):
            raise RecordNotFoundError(
                f"No {self.table} row with id {record_id}",
                table=self.table,
                details={"id": str(record_id)}
            )
        logger.info(f"Deleted {self.table} row {record_id}")


TRANSACTION_COLUMNS = (
    "id", "counterparty_id", "kind", "transaction_date", "created_at",
    "description", "service", "price", "quantity", "quantity_unit",
    "price_per_kg", "total_price",
)


def _columns(model: type, exclude: Sequence[str] = ()) -> list[str]:
    return [name for name in model.model_fields if name not in exclude]


@dataclass
class Repositories:
    """The persistence collaborators used by the computation engine."""
    deliveries: Repository
    consumption_entries: Repository
    transactions: Repository
    payments: Repository
    oil_changes: Repository
    vehicle_documents: Repository
    tank_readings: Repository


def default_repositories() -> Repositories:
    """Repositories bound to the PostgreSQL tables."""
    return Repositories(
        deliveries=Repository(
            "deliveries",
            _columns(DeliveryRecord, exclude=("stock_level",)),
            order_by=("delivery_date", "delivery_time", "created_at"),
        ),
        consumption_entries=Repository(
            "consumption_entries",
            _columns(ConsumptionEntry),
            order_by=("entry_date", "created_at"),
        ),
        transactions=Repository(
            "transactions",
            TRANSACTION_COLUMNS,
            order_by=("transaction_date", "created_at"),
        ),
        payments=Repository(
            "payments",
            _columns(Payment),
            order_by=("payment_date", "created_at"),
        ),
        oil_changes=Repository(
            "oil_changes",
            _columns(OilChange),
            order_by=("change_date", "created_at"),
        ),
        vehicle_documents=Repository(
            "vehicle_documents",
            _columns(VehicleDocument),
            order_by=("expiration_date",),
        ),
        tank_readings=Repository(
            "tank_readings",
            _columns(TankReading),
            order_by=("reading_date", "reading_time", "created_at"),
        ),
    )
