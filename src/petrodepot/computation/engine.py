"""
Computation Engine - Recompute derived values from stored snapshots

Every read fetches a fresh snapshot from the repositories and runs the
calculators over it; every write is followed by the same recomputation.
Nothing derived is cached between calls.
"""

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import TypeAdapter

from petrodepot.computation.balance import AccountBalanceCalculator
from petrodepot.computation.conversion import UnitConversionCalculator
from petrodepot.computation.fuel import FuelConsumptionCalculator
from petrodepot.computation.maintenance import MaintenanceCalculator
from petrodepot.computation.stock import StockLevelCalculator
from petrodepot.computation.tanks import TankStockCalculator
from petrodepot.config import get_settings
from petrodepot.exceptions import CalculationError
from petrodepot.models import (
    BalanceSummary,
    ConsumptionEntry,
    ConsumptionInput,
    ConsumptionReadings,
    DeliveryRecord,
    MaintenanceState,
    OilChange,
    Payment,
    QuantityUnit,
    StockSnapshot,
    TankReading,
    TankStockAnalysis,
    Transaction,
    VehicleDocument,
    VehicleMaintenance,
)
from petrodepot.repository import Repositories, default_repositories

logger = logging.getLogger(__name__)

_transaction_adapter: TypeAdapter[Transaction] = TypeAdapter(Transaction)


class ComputationEngine:
    """
    Orchestrates snapshot fetches and the pure calculators.

    ├─ StockLevelCalculator       (deliveries -> running stock)
    ├─ UnitConversionCalculator   (cm <-> barrels <-> kg, quantity pricing)
    ├─ FuelConsumptionCalculator  (readings -> fuel / range projection)
    ├─ AccountBalanceCalculator   (transactions - payments)
    ├─ MaintenanceCalculator      (oil change / document reminders)
    └─ TankStockCalculator        (tank readings -> product mass in stock)
    """

    def __init__(self, repositories: Repositories | None = None):
        self.repositories = repositories or default_repositories()
        self.settings = get_settings()
        self.stock = StockLevelCalculator()
        self.conversion = UnitConversionCalculator()
        self.fuel = FuelConsumptionCalculator()
        self.balance = AccountBalanceCalculator()
        self.maintenance = MaintenanceCalculator()
        self.tanks = TankStockCalculator()

    # === Stock ===

    async def stock_snapshot(self) -> StockSnapshot:
        rows = await self.repositories.deliveries.list()
        records = self.stock.compute_stock_levels(
            DeliveryRecord.model_validate(row) for row in rows
        )
        current = self.stock.current_stock(records)
        logger.debug(f"Stock recomputed over {len(records)} deliveries: {current} cm")

        return StockSnapshot(
            records=records,
            current_stock=current,
            fill_percentage=self.stock.stock_percentage(
                current, self.settings.tank_max_level_cm
            ),
        )

    async def record_delivery(self, record: DeliveryRecord) -> StockSnapshot:
        await self.repositories.deliveries.create(
            record.model_dump(exclude={"stock_level"})
        )
        return await self.stock_snapshot()

    # === Storage tanks ===

    async def tank_stock(self) -> TankStockAnalysis:
        """
        Product mass across all tanks.

        The main tank's level is the current running stock of the
        delivery ledger.
        """
        snapshot = await self.stock_snapshot()
        rows = await self.repositories.tank_readings.list()
        return self.tanks.analyze(
            (TankReading.model_validate(row) for row in rows),
            main_tank_level=snapshot.current_stock,
            kg_per_unit=self.settings.kg_per_barrel,
        )

    async def record_tank_reading(self, reading: TankReading) -> TankStockAnalysis:
        await self.repositories.tank_readings.create(reading.model_dump())
        return await self.tank_stock()

    # === Fuel consumption ===

    async def consumption_history(self, vehicle_id: str) -> list[ConsumptionEntry]:
        """Recompute the carry-over chain of a vehicle from its raw readings."""
        rows = await self.repositories.consumption_entries.list(vehicle_id=vehicle_id)
        rows.sort(key=lambda r: r["entry_date"])

        entries: list[ConsumptionEntry] = []
        previous: ConsumptionEntry | None = None
        for row in rows:
            raw = ConsumptionInput.model_validate(
                {name: row[name] for name in ConsumptionInput.model_fields}
            )
            previous = self.fuel.compute_entry(raw, previous).model_copy(
                update={"id": row.get("id"), "created_at": row.get("created_at")}
            )
            entries.append(previous)
        return entries

    async def record_consumption(self, readings: ConsumptionReadings) -> ConsumptionEntry:
        """
        Compute and store a new entry for a vehicle.

        The previous odometer reading and the carried-over fuel both come
        from the vehicle's last entry dated on or before this one, which
        is where the recomputed history places the new entry.
        """
        history = await self.consumption_history(readings.vehicle_id)
        earlier = [e for e in history if e.entry_date <= readings.entry_date]
        previous = earlier[-1] if earlier else None
        if len(earlier) < len(history):
            logger.warning(
                f"Vehicle {readings.vehicle_id}: back-dated entry on {readings.entry_date} "
                f"changes the carry-over of {len(history) - len(earlier)} later entries"
            )

        previous_odometer = readings.previous_odometer
        if previous is not None:
            if previous_odometer is not None and previous_odometer != previous.current_odometer:
                logger.warning(
                    f"Vehicle {readings.vehicle_id}: submitted previous odometer "
                    f"{previous_odometer} replaced by last reading {previous.current_odometer}"
                )
            previous_odometer = previous.current_odometer
        elif previous_odometer is None:
            previous_odometer = Decimal("0")

        raw = ConsumptionInput.model_validate(
            {**readings.model_dump(), "previous_odometer": previous_odometer}
        )
        entry = self.fuel.compute_entry(raw, previous)

        row = await self.repositories.consumption_entries.create(
            entry.model_dump(exclude={"id", "created_at"})
        )
        logger.info(
            f"Recorded consumption for vehicle {entry.vehicle_id}: "
            f"remaining fuel {entry.remaining_fuel}, remaining range {entry.remaining_range}"
        )
        return entry.model_copy(
            update={"id": row.get("id"), "created_at": row.get("created_at")}
        )

    # === Ledger ===

    async def counterparty_balance(self, counterparty_id: str) -> BalanceSummary:
        transaction_rows = await self.repositories.transactions.list(
            counterparty_id=counterparty_id
        )
        payment_rows = await self.repositories.payments.list(
            counterparty_id=counterparty_id
        )

        transactions, warnings = self.balance.coerce_transactions(transaction_rows)
        payments = [Payment.model_validate(row) for row in payment_rows]

        return self.balance.summarize(transactions, payments, warnings)

    async def record_transaction(
        self,
        data: Mapping[str, Any],
        kg_per_unit: Decimal | None = None
    ) -> Transaction:
        """
        Store a ledger transaction.

        A quantity transaction without total_price is priced from its
        quantity, unit and price per kg.
        """
        data = dict(data)
        if data.get("kind") == "quantity" and data.get("total_price") is None:
            for name in ("quantity", "price_per_kg"):
                if data.get(name) is None:
                    raise CalculationError(
                        f"{name} is required to price a quantity transaction",
                        field=name
                    )
            if kg_per_unit is None:
                kg_per_unit = self.settings.kg_per_barrel
            data["total_price"] = self.conversion.price_quantity(
                data["quantity"],
                QuantityUnit(data.get("quantity_unit", QuantityUnit.KG)),
                data["price_per_kg"],
                kg_per_unit,
            )

        transaction = _transaction_adapter.validate_python(data)
        row = await self.repositories.transactions.create(
            transaction.model_dump(mode="python", exclude={"id"})
        )
        return transaction.model_copy(update={"id": row.get("id")})

    async def record_payment(self, payment: Payment) -> Payment:
        row = await self.repositories.payments.create(payment.model_dump(exclude={"id"}))
        return payment.model_copy(update={"id": row.get("id")})

    # === Maintenance ===

    async def vehicle_maintenance(self, vehicle_id: str, today: date) -> VehicleMaintenance:
        history = await self.repositories.consumption_entries.list(vehicle_id=vehicle_id)
        current_odometer = Decimal("0")
        if history:
            # stable sort keeps insertion order for same-day readings
            latest = sorted(history, key=lambda r: r["entry_date"])[-1]
            current_odometer = Decimal(str(latest["current_odometer"]))

        changes = [
            OilChange.model_validate(row)
            for row in await self.repositories.oil_changes.list(vehicle_id=vehicle_id)
        ]
        latest_change = None
        if changes:
            latest_change = sorted(changes, key=lambda c: c.change_date)[-1]

        documents = [
            VehicleDocument.model_validate(row)
            for row in await self.repositories.vehicle_documents.list(vehicle_id=vehicle_id)
        ]

        return VehicleMaintenance(
            vehicle_id=vehicle_id,
            current_odometer=current_odometer,
            oil_change=self.maintenance.oil_change_status(latest_change, current_odometer),
            documents=self.maintenance.document_status(documents, today),
        )

    async def maintenance_reminders(self, today: date) -> list[VehicleMaintenance]:
        """Vehicles with an oil change or document due soon or overdue."""
        vehicle_ids = sorted(
            {row["vehicle_id"] for row in await self.repositories.oil_changes.list()}
            | {row["vehicle_id"] for row in await self.repositories.vehicle_documents.list()}
        )

        reminders = []
        for vehicle_id in vehicle_ids:
            status = await self.vehicle_maintenance(vehicle_id, today)
            if (
                status.oil_change.state != MaintenanceState.NOT_DUE
                or status.documents.state != MaintenanceState.NOT_DUE
            ):
                reminders.append(status)
        return reminders
