"""
Tank Stock Calculator - Product mass held across the storage tanks

Only the latest reading of each tank counts. Gauged tanks are read as
the empty height above the product:

    level   = capacity - reading
    mass_kg = level * kg_per_cm

Tonne tanks are read in tonnes held (mass_kg = reading * 1000). The main
tank, whose level comes from the delivery ledger, is converted through
barrels: mass_kg = level / 0.75 * kg_per_unit.
"""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from petrodepot.computation.conversion import UnitConversionCalculator
from petrodepot.config import get_settings
from petrodepot.exceptions import CalculationError
from petrodepot.models import (
    ProductStock,
    TankReading,
    TankSpec,
    TankStatus,
    TankStockAnalysis,
    TankUnit,
)

logger = logging.getLogger(__name__)


class TankStockCalculator:
    """Per-tank status and per-product totals from tank readings."""

    ZERO = Decimal("0")
    HUNDRED = Decimal("100")
    KG_PER_TONNE = Decimal("1000")

    def __init__(self, tanks: Sequence[TankSpec] | None = None):
        settings = get_settings()
        self.tanks = list(tanks) if tanks is not None else list(settings.tanks)
        self.main_tank_name = settings.main_tank_name
        self.main_tank_product = settings.main_tank_product
        self.conversion = UnitConversionCalculator()

        for spec in self.tanks:
            if spec.unit == TankUnit.CM and spec.kg_per_cm is None:
                raise CalculationError(
                    f"Gauged tank {spec.name} has no kg_per_cm factor",
                    field="kg_per_cm",
                    details={"tank_name": spec.name}
                )

    def latest_readings(self, readings: Iterable[TankReading]) -> dict[str, TankReading]:
        """
        Latest reading per tank by (reading_date, reading_time).

        On equal timestamps the first reading in input order is kept.
        """
        latest: dict[str, TankReading] = {}
        for reading in readings:
            current = latest.get(reading.tank_name)
            if current is None or (
                (reading.reading_date, reading.reading_time)
                > (current.reading_date, current.reading_time)
            ):
                latest[reading.tank_name] = reading
        return latest

    def tank_status(self, spec: TankSpec, reading: TankReading | None) -> TankStatus:
        if reading is None:
            return TankStatus(
                tank_name=spec.name,
                unit=spec.unit,
                capacity=spec.capacity,
                level=self.ZERO,
                remaining_space=spec.capacity,
                mass_kg=self.ZERO,
                fill_percentage=self.ZERO,
                empty=True,
            )

        if spec.unit == TankUnit.TONNE:
            level = reading.quantity
            remaining_space = spec.capacity - level
            mass_kg = level * self.KG_PER_TONNE
        else:
            remaining_space = reading.quantity
            level = spec.capacity - remaining_space
            mass_kg = level * spec.kg_per_cm

        if level < self.ZERO:
            logger.warning(
                f"Tank {spec.name} reading {reading.quantity} is outside its "
                f"capacity {spec.capacity} {spec.unit.value}"
            )

        return TankStatus(
            tank_name=spec.name,
            unit=spec.unit,
            capacity=spec.capacity,
            product_type=reading.product_type,
            level=level,
            remaining_space=remaining_space,
            mass_kg=mass_kg,
            fill_percentage=level / spec.capacity * self.HUNDRED,
            empty=False,
        )

    def analyze(
        self,
        readings: Iterable[TankReading],
        main_tank_level: Decimal = Decimal("0"),
        kg_per_unit: Decimal | None = None
    ) -> TankStockAnalysis:
        """
        Tank statuses, product totals and the overall mass in stock.

        Args:
            readings: Tank readings in any order
            main_tank_level: Current stock of the main tank (cm), added to
                the main tank product when positive
            kg_per_unit: kg per barrel for the main tank (defaults to settings)

        Returns:
            TankStockAnalysis with tanks in configuration order
        """
        latest = self.latest_readings(readings)
        known = {spec.name for spec in self.tanks}
        for name in sorted(set(latest) - known):
            logger.warning(f"Ignoring readings of unconfigured tank {name}")

        statuses: list[TankStatus] = []
        products: dict[str, ProductStock] = {}
        for spec in self.tanks:
            status = self.tank_status(spec, latest.get(spec.name))
            statuses.append(status)
            if status.empty:
                continue
            product = products.setdefault(
                status.product_type,
                ProductStock(product_type=status.product_type, mass_kg=self.ZERO, locations=[])
            )
            product.mass_kg += status.mass_kg
            product.locations.append(spec.name)

        if main_tank_level > self.ZERO:
            if kg_per_unit is None:
                kg_per_unit = get_settings().kg_per_barrel
            mass_kg = self.conversion.linear_to_mass_and_count(
                main_tank_level, kg_per_unit
            ).mass_kg
            product = products.setdefault(
                self.main_tank_product,
                ProductStock(product_type=self.main_tank_product, mass_kg=self.ZERO, locations=[])
            )
            product.mass_kg += mass_kg
            product.locations.append(self.main_tank_name)

        return TankStockAnalysis(
            tanks=statuses,
            products=list(products.values()),
            total_kg=sum((p.mass_kg for p in products.values()), self.ZERO),
        )
