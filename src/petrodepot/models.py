"""
PetroDepot Data Models

All quantities, prices and readings are carried as decimal.Decimal.
Derived fields (stock levels, fuel projections, balances) are never
treated as ground truth: they are recomputed from the stored records.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from petrodepot.rounding import round2


def to_decimal(value: Any) -> Decimal | None:
    """Convert a raw numeric value to Decimal through its string form."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not a numeric value")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except ArithmeticError:
            raise ValueError(f"not a number: {value!r}") from None
    return value


# === Enums ===

class QuantityUnit(str, Enum):
    """Unit a ledger quantity was entered in."""
    CM = "cm"
    KG = "kg"


class PaymentMethod(str, Enum):
    """How a payment was settled."""
    CASH = "cash"
    CHEQUE = "cheque"
    TRANSFER = "transfer"


class MaintenanceState(str, Enum):
    """Maintenance reminder state."""
    NOT_DUE = "not_due"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


class TankUnit(str, Enum):
    """How a tank's level is read."""
    CM = "cm"
    TONNE = "tonne"


# === Deliveries / Stock ===

class DeliveryRecord(BaseModel):
    """
    A single delivery or withdrawal on the storage tank.

    quantity is signed, in cm: positive for incoming deliveries,
    negative for withdrawals. stock_level is only meaningful after the
    full set has gone through StockLevelCalculator.
    """
    id: UUID | None = None
    counterparty_name: str = Field(min_length=1)
    delivery_date: date
    delivery_time: time = Field(default=time(0, 0))
    quantity: Decimal
    stock_level: Decimal | None = Field(
        default=None,
        description="Derived running stock after this record (cm)"
    )
    created_at: datetime | None = None

    model_config = {"frozen": True}

    @field_validator("quantity", "stock_level", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class StockSnapshot(BaseModel):
    """Deliveries annotated with running stock, plus the current figure."""
    records: list[DeliveryRecord]
    current_stock: Decimal
    fill_percentage: Decimal


# === Unit conversion ===

class ConversionResult(BaseModel):
    """Linear measurement, barrel count and mass for one conversion."""
    linear: Decimal = Field(description="Linear measurement (cm)")
    unit_count: Decimal = Field(description="Number of barrels")
    mass_kg: Decimal = Field(description="Mass in kilograms")
    kg_per_unit: Decimal

    def rounded(self) -> "ConversionResult":
        """Return a copy with every value rounded to 2 decimals for display."""
        return ConversionResult(
            linear=round2(self.linear),
            unit_count=round2(self.unit_count),
            mass_kg=round2(self.mass_kg),
            kg_per_unit=self.kg_per_unit,
        )


# === Truck fuel consumption ===

class ConsumptionInput(BaseModel):
    """Raw readings entered for one refuelling / odometer check."""
    vehicle_id: str = Field(min_length=1)
    entry_date: date
    fuel_money_spent: Decimal = Field(ge=Decimal("0"))
    fuel_unit_price: Decimal = Field(ge=Decimal("0"))
    consumption_rate_per_100: Decimal = Field(
        ge=Decimal("0"),
        description="Litres consumed per 100 km"
    )
    previous_odometer: Decimal = Field(ge=Decimal("0"))
    current_odometer: Decimal = Field(ge=Decimal("0"))

    @field_validator(
        "fuel_money_spent", "fuel_unit_price", "consumption_rate_per_100",
        "previous_odometer", "current_odometer",
        mode="before"
    )
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class ConsumptionReadings(ConsumptionInput):
    """
    Readings as submitted for a new entry.

    previous_odometer may be omitted: it is taken from the vehicle's
    latest recorded entry.
    """
    previous_odometer: Decimal | None = Field(default=None, ge=Decimal("0"))


class ConsumptionEntry(ConsumptionInput):
    """Consumption readings with the derived fuel and range projection."""
    id: UUID | None = None
    distance: Decimal
    initial_fuel: Decimal
    consumed_fuel: Decimal
    remaining_fuel: Decimal = Field(
        description="May be negative when more fuel was consumed than available"
    )
    total_range: Decimal
    remaining_range: Decimal
    created_at: datetime | None = None

    @field_validator(
        "distance", "initial_fuel", "consumed_fuel", "remaining_fuel",
        "total_range", "remaining_range",
        mode="before"
    )
    @classmethod
    def convert_derived_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


# === Ledger ===

class _LedgerEntry(BaseModel):
    id: UUID | None = None
    counterparty_id: str = Field(min_length=1)
    transaction_date: date
    created_at: datetime
    description: str | None = None


class ServiceTransaction(_LedgerEntry):
    """A flat-fee service billed to or by a counterparty."""
    kind: Literal["service"] = "service"
    service: str = Field(min_length=1)
    price: Decimal

    @field_validator("price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class QuantityTransaction(_LedgerEntry):
    """A priced quantity of product, entered in cm or kg."""
    kind: Literal["quantity"] = "quantity"
    quantity: Decimal
    quantity_unit: QuantityUnit = QuantityUnit.KG
    price_per_kg: Decimal | None = None
    total_price: Decimal

    @field_validator("quantity", "price_per_kg", "total_price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


Transaction = Annotated[
    ServiceTransaction | QuantityTransaction,
    Field(discriminator="kind")
]


class Payment(BaseModel):
    """Money settled against a counterparty's transactions."""
    id: UUID | None = None
    counterparty_id: str = Field(min_length=1)
    payment_date: date
    amount: Decimal
    method: PaymentMethod | None = None
    description: str | None = None
    created_at: datetime

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class LastModification(BaseModel):
    """Read-only projection of the most recent transaction."""
    timestamp: datetime
    description: str


class BalanceSummary(BaseModel):
    """Net position with a counterparty."""
    total_transactions: Decimal
    total_payments: Decimal
    balance: Decimal = Field(description="Transactions minus payments")
    last_modification: LastModification | None = None
    warnings: list[str] = Field(default_factory=list)


# === Storage tanks ===

class TankSpec(BaseModel):
    """
    Capacity of one storage tank.

    Gauged tanks (unit cm) are read as the empty height left above the
    product; kg_per_cm converts the filled height to mass. Tonne tanks
    are read directly in tonnes held.
    """
    name: str = Field(min_length=1)
    capacity: Decimal = Field(gt=Decimal("0"))
    unit: TankUnit = TankUnit.CM
    kg_per_cm: Decimal | None = Field(default=None, gt=Decimal("0"))

    @field_validator("capacity", "kg_per_cm", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class TankReading(BaseModel):
    """A level reading of one tank and the product it holds."""
    id: UUID | None = None
    tank_name: str = Field(min_length=1)
    product_type: str = Field(min_length=1)
    quantity: Decimal = Field(ge=Decimal("0"))
    is_loading: bool = False
    description: str | None = None
    reading_date: date
    reading_time: time = Field(default=time(0, 0))
    created_at: datetime | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class TankStatus(BaseModel):
    """Latest state of one tank; empty when it has never been read."""
    tank_name: str
    unit: TankUnit
    capacity: Decimal
    product_type: str | None = None
    level: Decimal = Field(description="Product held, in the tank's unit")
    remaining_space: Decimal
    mass_kg: Decimal
    fill_percentage: Decimal
    empty: bool


class ProductStock(BaseModel):
    product_type: str
    mass_kg: Decimal
    locations: list[str]


class TankStockAnalysis(BaseModel):
    tanks: list[TankStatus]
    products: list[ProductStock]
    total_kg: Decimal


# === Truck maintenance ===

class OilChange(BaseModel):
    """An oil change and the interval until the next one."""
    id: UUID | None = None
    vehicle_id: str = Field(min_length=1)
    change_date: date
    odometer: Decimal = Field(ge=Decimal("0"))
    interval_km: Decimal = Field(gt=Decimal("0"))
    description: str | None = None
    created_at: datetime | None = None

    @field_validator("odometer", "interval_km", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class VehicleDocument(BaseModel):
    """A vehicle document with an expiration date (insurance, inspection...)."""
    id: UUID | None = None
    vehicle_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    expiration_date: date
    created_at: datetime | None = None


class MaintenanceStatus(BaseModel):
    state: MaintenanceState
    km_remaining: Decimal | None = None
    days_remaining: int | None = None
    document_name: str | None = None


class VehicleMaintenance(BaseModel):
    vehicle_id: str
    current_odometer: Decimal
    oil_change: MaintenanceStatus
    documents: MaintenanceStatus


# === Invoices ===

class InvoiceLine(BaseModel):
    product: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=Decimal("0"))
    quantity: Decimal = Field(ge=Decimal("0"))
    subtotal: Decimal | None = None

    @field_validator("unit_price", "quantity", "subtotal", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal | None:
        return to_decimal(v)


class InvoiceTotals(BaseModel):
    lines: list[InvoiceLine]
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    total_in_words: str
