"""
PetroDepot API Request / Response Schemas
"""

from datetime import date as DateType, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from petrodepot.models import (
    ConsumptionEntry,
    ConsumptionInput,
    DeliveryRecord,
    InvoiceLine,
    Payment,
    PaymentMethod,
    QuantityUnit,
    TankReading,
    Transaction,
)


class ConversionDirection(str, Enum):
    LINEAR_TO_MASS = "linear_to_mass"
    MASS_TO_LINEAR = "mass_to_linear"


class StockLevelsRequest(BaseModel):
    records: list[DeliveryRecord]
    max_level: Decimal | None = Field(
        default=None,
        description="Tank height for the fill percentage (defaults to settings)"
    )


class ConversionRequest(BaseModel):
    value: Decimal = Field(description="cm for linear_to_mass, kg for mass_to_linear")
    direction: ConversionDirection = ConversionDirection.LINEAR_TO_MASS
    kg_per_unit: Decimal | None = Field(
        default=None,
        description="kg per barrel, conventionally 182, 183, 184 or 185"
    )

    model_config = {
        "json_schema_extra": {
            "example": {"value": "100", "direction": "linear_to_mass", "kg_per_unit": "185"}
        }
    }


class FuelEntryRequest(BaseModel):
    raw: ConsumptionInput
    previous_entry: ConsumptionEntry | None = None


class FuelHistoryRequest(BaseModel):
    entries: list[ConsumptionInput]


class BalanceRequest(BaseModel):
    transactions: list[Transaction] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "example": {
                "transactions": [
                    {
                        "kind": "quantity",
                        "counterparty_id": "supplier-1",
                        "transaction_date": "2026-01-15",
                        "created_at": "2026-01-15T10:00:00Z",
                        "quantity": "40",
                        "quantity_unit": "cm",
                        "price_per_kg": "2.5",
                        "total_price": "1000"
                    },
                    {
                        "kind": "service",
                        "counterparty_id": "supplier-1",
                        "transaction_date": "2026-01-16",
                        "created_at": "2026-01-16T09:00:00Z",
                        "service": "Transport",
                        "price": "200"
                    }
                ],
                "payments": [
                    {
                        "counterparty_id": "supplier-1",
                        "payment_date": "2026-01-17",
                        "created_at": "2026-01-17T12:00:00Z",
                        "amount": "300"
                    }
                ]
            }
        }
    }


class TankStockRequest(BaseModel):
    readings: list[TankReading] = Field(default_factory=list)
    main_tank_level: Decimal = Field(
        default=Decimal("0"),
        description="Current stock of the main tank (cm)"
    )
    kg_per_unit: Decimal | None = None


class InvoiceRequest(BaseModel):
    lines: list[InvoiceLine] = Field(min_length=1)
    vat_rate: Decimal | None = Field(default=None, ge=Decimal("0"))


class TransactionCreateRequest(BaseModel):
    kind: Literal["service", "quantity"]
    transaction_date: DateType
    description: str | None = None
    service: str | None = None
    price: Decimal | None = None
    quantity: Decimal | None = None
    quantity_unit: QuantityUnit = QuantityUnit.KG
    price_per_kg: Decimal | None = None
    total_price: Decimal | None = None
    kg_per_unit: Decimal | None = Field(
        default=None,
        description="Used to price a quantity entered in cm"
    )


class PaymentCreateRequest(BaseModel):
    payment_date: DateType
    amount: Decimal
    method: PaymentMethod | None = None
    description: str | None = None


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status")
    version: str = Field(description="API version")
    database: str = Field(description="Database connection status")


class ErrorDetail(BaseModel):
    """Error detail information."""
    code: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details"
    )
    timestamp: datetime = Field(description="Error timestamp")


class ErrorResponse(BaseModel):
    error: ErrorDetail

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": {
                    "code": "CALCULATION_ERROR",
                    "message": "Consumption rate per 100 km must be greater than zero",
                    "details": {"field": "consumption_rate_per_100"},
                    "timestamp": "2026-01-15T15:30:00Z"
                }
            }
        }
    }
