"""
Fuel Consumption Calculator - Truck fuel and range projection

Each entry's fuel pool is the fuel bought with this entry plus the fuel
left over from the previous entry of the same vehicle.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from petrodepot.exceptions import CalculationError
from petrodepot.models import ConsumptionEntry, ConsumptionInput

logger = logging.getLogger(__name__)


class FuelConsumptionCalculator:
    """
    Derive distance, fuel and range figures from raw readings.

    distance        = max(current_odometer - previous_odometer, 0)
    initial_fuel    = money / unit_price (0 if no price) + previous remaining
    consumed_fuel   = distance * rate / 100
    remaining_fuel  = initial_fuel - consumed_fuel
    total_range     = initial_fuel * 100 / rate
    remaining_range = total_range - distance
    """

    ZERO = Decimal("0")
    HUNDRED = Decimal("100")

    def compute_entry(
        self,
        raw: ConsumptionInput,
        previous_entry: ConsumptionEntry | None = None
    ) -> ConsumptionEntry:
        """
        Compute the derived fields of one consumption entry.

        Args:
            raw: Readings entered for this entry
            previous_entry: Preceding entry of the same vehicle, whose
                remaining fuel is carried over (None for the first entry)

        Returns:
            ConsumptionEntry with all derived fields set

        Raises:
            CalculationError: If the consumption rate is zero
        """
        rate = raw.consumption_rate_per_100
        if rate == self.ZERO:
            raise CalculationError(
                "Consumption rate per 100 km must be greater than zero",
                field="consumption_rate_per_100",
                details={"vehicle_id": raw.vehicle_id}
            )

        delta = raw.current_odometer - raw.previous_odometer
        if delta < self.ZERO:
            logger.warning(
                f"Odometer went backwards for vehicle {raw.vehicle_id} on "
                f"{raw.entry_date}: {raw.previous_odometer} -> {raw.current_odometer}"
            )
        distance = max(delta, self.ZERO)

        purchased = self.ZERO
        if raw.fuel_unit_price > self.ZERO:
            purchased = raw.fuel_money_spent / raw.fuel_unit_price
        carried = previous_entry.remaining_fuel if previous_entry else self.ZERO
        initial_fuel = purchased + carried

        consumed_fuel = distance * (rate / self.HUNDRED)
        remaining_fuel = initial_fuel - consumed_fuel
        total_range = initial_fuel * (self.HUNDRED / rate)

        if remaining_fuel < self.ZERO:
            logger.warning(
                f"Vehicle {raw.vehicle_id} consumed more fuel than available on "
                f"{raw.entry_date}: remaining {remaining_fuel}"
            )

        return ConsumptionEntry(
            **raw.model_dump(include=set(ConsumptionInput.model_fields)),
            distance=distance,
            initial_fuel=initial_fuel,
            consumed_fuel=consumed_fuel,
            remaining_fuel=remaining_fuel,
            total_range=total_range,
            remaining_range=total_range - distance,
        )

    def compute_history(
        self,
        raw_entries: Iterable[ConsumptionInput],
        previous_entry: ConsumptionEntry | None = None
    ) -> list[ConsumptionEntry]:
        """
        Chain entries of a single vehicle in date order.

        Each computed entry becomes the carry-over source of the next one.
        """
        entries: list[ConsumptionEntry] = []
        for raw in sorted(raw_entries, key=lambda e: e.entry_date):
            previous_entry = self.compute_entry(raw, previous_entry)
            entries.append(previous_entry)
        return entries
