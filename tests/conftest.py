"""
Shared fixtures: an in-memory stand-in for the PostgreSQL repositories.
"""

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest

from petrodepot.computation import ComputationEngine
from petrodepot.exceptions import RecordNotFoundError
from petrodepot.repository import Repositories


class InMemoryRepository:
    """Same list / create / update / delete contract as Repository."""

    _clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __init__(self, table: str):
        self.table = table
        self.rows: list[dict[str, Any]] = []

    def _next_timestamp(self) -> datetime:
        InMemoryRepository._clock += timedelta(seconds=1)
        return InMemoryRepository._clock

    async def list(self, **filters: Any) -> list[dict[str, Any]]:
        return [
            dict(row) for row in self.rows
            if all(row.get(k) == v for k, v in filters.items())
        ]

    async def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        row = {k: v for k, v in record.items() if v is not None}
        row.setdefault("id", uuid4())
        row.setdefault("created_at", self._next_timestamp())
        self.rows.append(row)
        return dict(row)

    async def update(self, record_id: UUID, partial: Mapping[str, Any]) -> None:
        for row in self.rows:
            if row["id"] == record_id:
                row.update(partial)
                return
        raise RecordNotFoundError(f"No {self.table} row with id {record_id}", table=self.table)

    async def delete(self, record_id: UUID) -> None:
        before = len(self.rows)
        self.rows = [row for row in self.rows if row["id"] != record_id]
        if len(self.rows) == before:
            raise RecordNotFoundError(f"No {self.table} row with id {record_id}", table=self.table)


@pytest.fixture
def repositories() -> Repositories:
    return Repositories(
        deliveries=InMemoryRepository("deliveries"),
        consumption_entries=InMemoryRepository("consumption_entries"),
        transactions=InMemoryRepository("transactions"),
        payments=InMemoryRepository("payments"),
        oil_changes=InMemoryRepository("oil_changes"),
        vehicle_documents=InMemoryRepository("vehicle_documents"),
        tank_readings=InMemoryRepository("tank_readings"),
    )


@pytest.fixture
def engine(repositories: Repositories) -> ComputationEngine:
    return ComputationEngine(repositories)
