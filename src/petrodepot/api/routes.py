"""
PetroDepot API Routes

/api/v1/calculate/*  run a calculator over the records in the request body
/api/v1/...          fetch the stored snapshot and recompute
"""

import logging
from datetime import date, datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from petrodepot import __version__
from petrodepot.api.schemas import (
    BalanceRequest,
    ConversionDirection,
    ConversionRequest,
    ErrorResponse,
    FuelEntryRequest,
    FuelHistoryRequest,
    HealthResponse,
    InvoiceRequest,
    PaymentCreateRequest,
    StockLevelsRequest,
    TankStockRequest,
    TransactionCreateRequest,
)
from petrodepot.computation import (
    AccountBalanceCalculator,
    ComputationEngine,
    FuelConsumptionCalculator,
    InvoiceCalculator,
    StockLevelCalculator,
    TankStockCalculator,
    UnitConversionCalculator,
)
from petrodepot.config import get_settings
from petrodepot.database import check_connection
from petrodepot.exceptions import CalculationError, RecordNotFoundError, RepositoryError
from petrodepot.models import (
    BalanceSummary,
    ConsumptionEntry,
    ConsumptionReadings,
    ConversionResult,
    DeliveryRecord,
    InvoiceTotals,
    Payment,
    StockSnapshot,
    TankReading,
    TankStockAnalysis,
    Transaction,
    VehicleMaintenance,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["PetroDepot"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    422: {"model": ErrorResponse, "description": "Calculation error"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


def get_engine() -> ComputationEngine:
    """Engine bound to the PostgreSQL repositories."""
    return ComputationEngine()


def _error(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "details": details,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


def _calculation_error(e: CalculationError) -> HTTPException:
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "CALCULATION_ERROR",
        str(e),
        {"field": e.field, **e.details}
    )


def _repository_error(e: RepositoryError, action: str) -> HTTPException:
    if isinstance(e, RecordNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "NOT_FOUND", str(e), e.details)
    logger.error(f"Repository error while {action}: {e}")
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "STORAGE_ERROR",
        f"Failed while {action}",
        {"table": e.table}
    )


# === Calculators ===

@router.post(
    "/calculate/stock-levels",
    response_model=StockSnapshot,
    summary="Running stock over delivery records",
    responses=ERROR_RESPONSES,
)
async def calculate_stock_levels(request: StockLevelsRequest) -> StockSnapshot:
    calculator = StockLevelCalculator()
    max_level = request.max_level
    if max_level is None:
        max_level = get_settings().tank_max_level_cm
    try:
        records = calculator.compute_stock_levels(request.records)
        current = calculator.current_stock(records)
        return StockSnapshot(
            records=records,
            current_stock=current,
            fill_percentage=calculator.stock_percentage(current, max_level),
        )
    except CalculationError as e:
        raise _calculation_error(e)


@router.post(
    "/calculate/conversion",
    response_model=ConversionResult,
    summary="Convert cm <-> barrels <-> kg",
    description="Values are rounded to 2 decimals",
    responses=ERROR_RESPONSES,
)
async def calculate_conversion(request: ConversionRequest) -> ConversionResult:
    calculator = UnitConversionCalculator()
    kg_per_unit = request.kg_per_unit
    if kg_per_unit is None:
        kg_per_unit = get_settings().kg_per_barrel
    try:
        if request.direction == ConversionDirection.LINEAR_TO_MASS:
            result = calculator.linear_to_mass_and_count(request.value, kg_per_unit)
        else:
            result = calculator.mass_to_linear_and_count(request.value, kg_per_unit)
    except CalculationError as e:
        raise _calculation_error(e)
    return result.rounded()


@router.post(
    "/calculate/fuel-entry",
    response_model=ConsumptionEntry,
    summary="Fuel and range projection for one entry",
    responses=ERROR_RESPONSES,
)
async def calculate_fuel_entry(request: FuelEntryRequest) -> ConsumptionEntry:
    try:
        return FuelConsumptionCalculator().compute_entry(request.raw, request.previous_entry)
    except CalculationError as e:
        raise _calculation_error(e)


@router.post(
    "/calculate/fuel-history",
    response_model=list[ConsumptionEntry],
    summary="Chain entries of one vehicle with fuel carry-over",
    responses=ERROR_RESPONSES,
)
async def calculate_fuel_history(request: FuelHistoryRequest) -> list[ConsumptionEntry]:
    try:
        return FuelConsumptionCalculator().compute_history(request.entries)
    except CalculationError as e:
        raise _calculation_error(e)


@router.post(
    "/calculate/balance",
    response_model=BalanceSummary,
    summary="Counterparty balance from transactions and payments",
)
async def calculate_balance(request: BalanceRequest) -> BalanceSummary:
    return AccountBalanceCalculator().summarize(request.transactions, request.payments)


@router.post(
    "/calculate/invoice",
    response_model=InvoiceTotals,
    summary="Invoice subtotal, VAT and total in words",
)
async def calculate_invoice(request: InvoiceRequest) -> InvoiceTotals:
    vat_rate = request.vat_rate
    if vat_rate is None:
        vat_rate = get_settings().vat_rate
    return InvoiceCalculator().compute_totals(request.lines, vat_rate)


@router.post(
    "/calculate/tank-stock",
    response_model=TankStockAnalysis,
    summary="Product mass across the storage tanks",
    responses=ERROR_RESPONSES,
)
async def calculate_tank_stock(request: TankStockRequest) -> TankStockAnalysis:
    try:
        return TankStockCalculator().analyze(
            request.readings, request.main_tank_level, request.kg_per_unit
        )
    except CalculationError as e:
        raise _calculation_error(e)


# === Stored snapshots ===

@router.get(
    "/deliveries/stock",
    response_model=StockSnapshot,
    summary="Stored deliveries with running stock",
    responses=ERROR_RESPONSES,
)
async def get_stock(engine: ComputationEngine = Depends(get_engine)) -> StockSnapshot:
    try:
        return await engine.stock_snapshot()
    except RepositoryError as e:
        raise _repository_error(e, "loading deliveries")


@router.post(
    "/deliveries",
    response_model=StockSnapshot,
    status_code=status.HTTP_201_CREATED,
    summary="Record a delivery and return the recomputed stock",
    responses=ERROR_RESPONSES,
)
async def create_delivery(
    record: DeliveryRecord,
    engine: ComputationEngine = Depends(get_engine)
) -> StockSnapshot:
    try:
        return await engine.record_delivery(record)
    except RepositoryError as e:
        raise _repository_error(e, "recording delivery")


@router.get(
    "/tanks/stock",
    response_model=TankStockAnalysis,
    summary="Latest tank readings with product totals",
    responses=ERROR_RESPONSES,
)
async def get_tank_stock(engine: ComputationEngine = Depends(get_engine)) -> TankStockAnalysis:
    try:
        return await engine.tank_stock()
    except CalculationError as e:
        raise _calculation_error(e)
    except RepositoryError as e:
        raise _repository_error(e, "loading tank readings")


@router.post(
    "/tanks/readings",
    response_model=TankStockAnalysis,
    status_code=status.HTTP_201_CREATED,
    summary="Record a tank reading and return the recomputed tank stock",
    responses=ERROR_RESPONSES,
)
async def create_tank_reading(
    reading: TankReading,
    engine: ComputationEngine = Depends(get_engine)
) -> TankStockAnalysis:
    try:
        return await engine.record_tank_reading(reading)
    except CalculationError as e:
        raise _calculation_error(e)
    except RepositoryError as e:
        raise _repository_error(e, f"recording reading of tank {reading.tank_name}")


@router.get(
    "/vehicles/{vehicle_id}/consumption",
    response_model=list[ConsumptionEntry],
    summary="Consumption history of a vehicle",
    responses=ERROR_RESPONSES,
)
async def get_consumption(
    vehicle_id: str,
    engine: ComputationEngine = Depends(get_engine)
) -> list[ConsumptionEntry]:
    try:
        return await engine.consumption_history(vehicle_id)
    except CalculationError as e:
        raise _calculation_error(e)
    except RepositoryError as e:
        raise _repository_error(e, f"loading consumption of {vehicle_id}")


@router.post(
    "/vehicles/{vehicle_id}/consumption",
    response_model=ConsumptionEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Record a consumption entry",
    responses=ERROR_RESPONSES,
)
async def create_consumption(
    vehicle_id: str,
    readings: ConsumptionReadings,
    engine: ComputationEngine = Depends(get_engine)
) -> ConsumptionEntry:
    if readings.vehicle_id != vehicle_id:
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VEHICLE_MISMATCH",
            f"Body vehicle_id {readings.vehicle_id} does not match path {vehicle_id}",
        )
    try:
        return await engine.record_consumption(readings)
    except CalculationError as e:
        raise _calculation_error(e)
    except RepositoryError as e:
        raise _repository_error(e, f"recording consumption of {vehicle_id}")


@router.get(
    "/vehicles/{vehicle_id}/maintenance",
    response_model=VehicleMaintenance,
    summary="Oil change and document status of a vehicle",
    responses=ERROR_RESPONSES,
)
async def get_maintenance(
    vehicle_id: str,
    today: date | None = None,
    engine: ComputationEngine = Depends(get_engine)
) -> VehicleMaintenance:
    try:
        return await engine.vehicle_maintenance(vehicle_id, today or date.today())
    except RepositoryError as e:
        raise _repository_error(e, f"loading maintenance of {vehicle_id}")


@router.get(
    "/counterparties/{counterparty_id}/balance",
    response_model=BalanceSummary,
    summary="Balance of a supplier or client",
    responses=ERROR_RESPONSES,
)
async def get_balance(
    counterparty_id: str,
    engine: ComputationEngine = Depends(get_engine)
) -> BalanceSummary:
    try:
        return await engine.counterparty_balance(counterparty_id)
    except ValueError as e:
        logger.error(f"Invalid stored ledger row for {counterparty_id}: {e}")
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INVALID_LEDGER_DATA",
            f"Stored ledger of {counterparty_id} holds an invalid transaction",
            {"counterparty_id": counterparty_id}
        )
    except RepositoryError as e:
        raise _repository_error(e, f"loading ledger of {counterparty_id}")


@router.post(
    "/counterparties/{counterparty_id}/transactions",
    response_model=Transaction,
    status_code=status.HTTP_201_CREATED,
    summary="Record a ledger transaction",
    responses=ERROR_RESPONSES,
)
async def create_transaction(
    counterparty_id: str,
    request: TransactionCreateRequest,
    engine: ComputationEngine = Depends(get_engine)
) -> Transaction:
    data = request.model_dump(exclude={"kg_per_unit"}, exclude_none=True)
    data.update(
        counterparty_id=counterparty_id,
        created_at=datetime.now(timezone.utc),
    )
    try:
        return await engine.record_transaction(data, request.kg_per_unit)
    except CalculationError as e:
        raise _calculation_error(e)
    except ValueError as e:
        raise _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_TRANSACTION", str(e))
    except RepositoryError as e:
        raise _repository_error(e, f"recording transaction of {counterparty_id}")


@router.post(
    "/counterparties/{counterparty_id}/payments",
    response_model=Payment,
    status_code=status.HTTP_201_CREATED,
    summary="Record a payment",
    responses=ERROR_RESPONSES,
)
async def create_payment(
    counterparty_id: str,
    request: PaymentCreateRequest,
    engine: ComputationEngine = Depends(get_engine)
) -> Payment:
    payment = Payment(
        counterparty_id=counterparty_id,
        created_at=datetime.now(timezone.utc),
        **request.model_dump(),
    )
    try:
        return await engine.record_payment(payment)
    except RepositoryError as e:
        raise _repository_error(e, f"recording payment of {counterparty_id}")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    responses={503: {"model": ErrorResponse, "description": "Service unavailable"}},
)
async def health_check() -> HealthResponse:
    db_connected = await check_connection()
    if not db_connected:
        raise _error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "UNHEALTHY",
            "Service is not healthy",
            {"database": "disconnected"}
        )
    return HealthResponse(status="healthy", version=__version__, database="connected")
