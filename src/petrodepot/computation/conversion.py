"""
Unit Conversion Calculator - cm <-> barrels <-> kg

One barrel corresponds to 0.75 cm of tank height; the mass of a barrel
(kg per unit) is supplied per call, conventionally 182 to 185 kg.
"""

from decimal import Decimal
from typing import Any

from petrodepot.exceptions import CalculationError
from petrodepot.models import ConversionResult, QuantityUnit
from petrodepot.rounding import round2


class UnitConversionCalculator:
    """Convert linear tank measurements to barrel counts and mass."""

    CM_PER_UNIT = Decimal("0.75")
    STANDARD_FACTORS = (
        Decimal("182"),
        Decimal("183"),
        Decimal("184"),
        Decimal("185"),
    )

    def linear_to_mass_and_count(
        self,
        linear: Decimal,
        kg_per_unit: Decimal
    ) -> ConversionResult:
        """
        Forward conversion.

        unit_count = linear / 0.75
        mass_kg = unit_count * kg_per_unit
        """
        linear = self._checked(linear, "linear")
        kg_per_unit = self._checked_factor(kg_per_unit)

        unit_count = linear / self.CM_PER_UNIT
        return ConversionResult(
            linear=linear,
            unit_count=unit_count,
            mass_kg=unit_count * kg_per_unit,
            kg_per_unit=kg_per_unit,
        )

    def mass_to_linear_and_count(
        self,
        mass_kg: Decimal,
        kg_per_unit: Decimal
    ) -> ConversionResult:
        """
        Inverse conversion.

        unit_count = mass_kg / kg_per_unit
        linear = unit_count * 0.75
        """
        mass_kg = self._checked(mass_kg, "mass_kg")
        kg_per_unit = self._checked_factor(kg_per_unit)

        unit_count = mass_kg / kg_per_unit
        return ConversionResult(
            linear=unit_count * self.CM_PER_UNIT,
            unit_count=unit_count,
            mass_kg=mass_kg,
            kg_per_unit=kg_per_unit,
        )

    def quantity_to_kg(
        self,
        quantity: Decimal,
        unit: QuantityUnit,
        kg_per_unit: Decimal
    ) -> Decimal:
        """Mass in kg of a ledger quantity, rounded to 2 decimals for cm input."""
        quantity = self._checked(quantity, "quantity")
        if unit == QuantityUnit.KG:
            return quantity
        return round2(self.linear_to_mass_and_count(quantity, kg_per_unit).mass_kg)

    def price_quantity(
        self,
        quantity: Decimal,
        unit: QuantityUnit,
        price_per_kg: Decimal,
        kg_per_unit: Decimal
    ) -> Decimal:
        """Total price of a quantity sold by the kg."""
        price_per_kg = self._checked(price_per_kg, "price_per_kg")
        return self.quantity_to_kg(quantity, unit, kg_per_unit) * price_per_kg

    def _checked(self, value: Any, field: str) -> Decimal:
        if not isinstance(value, Decimal):
            try:
                value = Decimal(str(value))
            except ArithmeticError:
                raise CalculationError(
                    f"{field} is not a number: {value!r}",
                    field=field
                ) from None
        if not value.is_finite():
            raise CalculationError(
                f"{field} must be finite, got {value}",
                field=field
            )
        return value

    def _checked_factor(self, kg_per_unit: Any) -> Decimal:
        kg_per_unit = self._checked(kg_per_unit, "kg_per_unit")
        if kg_per_unit <= 0:
            raise CalculationError(
                f"kg_per_unit must be positive, got {kg_per_unit}",
                field="kg_per_unit",
                details={"standard_factors": [str(f) for f in self.STANDARD_FACTORS]}
            )
        return kg_per_unit
