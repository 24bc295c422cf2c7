"""
PetroDepot Calculator Unit Tests
"""

import itertools
from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest
from pydantic import TypeAdapter, ValidationError

from petrodepot.computation.balance import AccountBalanceCalculator
from petrodepot.computation.conversion import UnitConversionCalculator
from petrodepot.computation.fuel import FuelConsumptionCalculator
from petrodepot.computation.stock import StockLevelCalculator
from petrodepot.exceptions import CalculationError
from petrodepot.models import (
    ConsumptionEntry,
    ConsumptionInput,
    DeliveryRecord,
    Payment,
    QuantityTransaction,
    QuantityUnit,
    ServiceTransaction,
    Transaction,
)
from petrodepot.rounding import round2


def _delivery(day: int, quantity: str, name: str = "Supplier", at: time = time(8, 0)) -> DeliveryRecord:
    return DeliveryRecord(
        counterparty_name=name,
        delivery_date=date(2026, 1, day),
        delivery_time=at,
        quantity=quantity,
    )


def _raw(**overrides) -> ConsumptionInput:
    values = {
        "vehicle_id": "truck-1",
        "entry_date": date(2026, 1, 10),
        "fuel_money_spent": "500",
        "fuel_unit_price": "10",
        "consumption_rate_per_100": "35",
        "previous_odometer": "1000",
        "current_odometer": "1150",
    }
    values.update(overrides)
    return ConsumptionInput(**values)


def _previous_entry(remaining_fuel: str) -> ConsumptionEntry:
    return ConsumptionEntry(
        vehicle_id="truck-1",
        entry_date=date(2026, 1, 5),
        fuel_money_spent="0",
        fuel_unit_price="0",
        consumption_rate_per_100="35",
        previous_odometer="900",
        current_odometer="1000",
        distance="100",
        initial_fuel="40",
        consumed_fuel="35",
        remaining_fuel=remaining_fuel,
        total_range="114.29",
        remaining_range="14.29",
    )


def _ts(day: int, hour: int = 12) -> datetime:
    return datetime(2026, 1, day, hour, tzinfo=timezone.utc)


class TestStockLevelCalculator:
    """Tests for StockLevelCalculator."""

    def setup_method(self):
        self.calculator = StockLevelCalculator()

    def test_running_stock_scenario(self):
        records = [_delivery(1, "50"), _delivery(2, "-10"), _delivery(3, "30")]

        result = self.calculator.compute_stock_levels(records)

        assert [r.stock_level for r in result] == [
            Decimal("50.00"), Decimal("40.00"), Decimal("70.00")
        ]
        assert self.calculator.current_stock(result) == Decimal("70.00")

    def test_result_independent_of_input_order(self):
        records = [_delivery(1, "50"), _delivery(2, "-10.25"), _delivery(3, "30.5"), _delivery(4, "-7")]
        expected = [Decimal("50.00"), Decimal("39.75"), Decimal("70.25"), Decimal("63.25")]

        for permutation in itertools.permutations(records):
            result = self.calculator.compute_stock_levels(permutation)
            assert [r.stock_level for r in result] == expected

    def test_orders_by_time_within_a_day(self):
        morning = _delivery(1, "20", at=time(8, 0))
        evening = _delivery(1, "-5", at=time(18, 30))

        result = self.calculator.compute_stock_levels([evening, morning])

        assert result[0].quantity == Decimal("20")
        assert [r.stock_level for r in result] == [Decimal("20.00"), Decimal("15.00")]

    def test_same_timestamp_keeps_input_order(self):
        first = _delivery(1, "10", name="A")
        second = _delivery(1, "5", name="B")

        forward = self.calculator.compute_stock_levels([first, second])
        backward = self.calculator.compute_stock_levels([second, first])

        assert [r.counterparty_name for r in forward] == ["A", "B"]
        assert [r.counterparty_name for r in backward] == ["B", "A"]
        assert forward[0].stock_level == Decimal("10.00")
        assert backward[0].stock_level == Decimal("5.00")
        assert forward[-1].stock_level == backward[-1].stock_level == Decimal("15.00")

    def test_rounds_after_every_addition(self):
        records = [_delivery(1, "0.005"), _delivery(2, "0.005")]

        result = self.calculator.compute_stock_levels(records)

        assert [r.stock_level for r in result] == [Decimal("0.01"), Decimal("0.02")]

    def test_empty_input(self):
        result = self.calculator.compute_stock_levels([])

        assert result == []
        assert self.calculator.current_stock(result) == Decimal("0")

    def test_input_records_not_modified(self):
        record = _delivery(1, "50")

        self.calculator.compute_stock_levels([record])

        assert record.stock_level is None

    def test_stock_percentage(self):
        assert self.calculator.stock_percentage(Decimal("96.5"), Decimal("193")) == Decimal("50")

    def test_stock_percentage_clamped(self):
        assert self.calculator.stock_percentage(Decimal("250"), Decimal("193")) == Decimal("100")
        assert self.calculator.stock_percentage(Decimal("-12"), Decimal("193")) == Decimal("0")

    def test_stock_percentage_requires_positive_max(self):
        with pytest.raises(CalculationError) as exc_info:
            self.calculator.stock_percentage(Decimal("10"), Decimal("0"))

        assert exc_info.value.field == "max_level"


class TestUnitConversionCalculator:
    """Tests for UnitConversionCalculator."""

    def setup_method(self):
        self.calculator = UnitConversionCalculator()

    def test_linear_to_mass_scenario(self):
        result = self.calculator.linear_to_mass_and_count(Decimal("100"), Decimal("185"))

        rounded = result.rounded()
        assert rounded.unit_count == Decimal("133.33")
        assert rounded.mass_kg == Decimal("24666.67")
        assert rounded.linear == Decimal("100.00")

    def test_mass_to_linear(self):
        result = self.calculator.mass_to_linear_and_count(Decimal("1850"), Decimal("185"))

        assert result.unit_count == Decimal("10")
        assert result.linear == Decimal("7.50")

    @pytest.mark.parametrize("kg_per_unit", ["182", "183", "184", "185"])
    def test_round_trip_recovers_linear(self, kg_per_unit):
        factor = Decimal(kg_per_unit)
        for linear in ("0", "0.75", "12.3", "100", "193", "4567.891"):
            forward = self.calculator.linear_to_mass_and_count(Decimal(linear), factor)
            back = self.calculator.mass_to_linear_and_count(forward.mass_kg, factor)

            assert abs(back.linear - Decimal(linear)) < Decimal("1e-6")

    def test_accepts_non_standard_factor(self):
        result = self.calculator.linear_to_mass_and_count(Decimal("75"), Decimal("200"))

        assert result.mass_kg == Decimal("20000")

    @pytest.mark.parametrize("factor", ["0", "-185"])
    def test_non_positive_factor_rejected(self, factor):
        with pytest.raises(CalculationError) as exc_info:
            self.calculator.linear_to_mass_and_count(Decimal("100"), Decimal(factor))

        assert exc_info.value.field == "kg_per_unit"

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), float("inf")])
    def test_non_finite_input_rejected(self, value):
        with pytest.raises(CalculationError) as exc_info:
            self.calculator.mass_to_linear_and_count(value, Decimal("185"))

        assert exc_info.value.field == "mass_kg"

    def test_non_numeric_input_rejected(self):
        with pytest.raises(CalculationError):
            self.calculator.linear_to_mass_and_count("abc", Decimal("185"))

    def test_quantity_to_kg(self):
        assert self.calculator.quantity_to_kg(
            Decimal("420"), QuantityUnit.KG, Decimal("185")
        ) == Decimal("420")
        assert self.calculator.quantity_to_kg(
            Decimal("75"), QuantityUnit.CM, Decimal("185")
        ) == Decimal("18500.00")

    def test_price_quantity_in_cm(self):
        total = self.calculator.price_quantity(
            Decimal("40"), QuantityUnit.CM, Decimal("2.5"), Decimal("185")
        )

        # 40 cm -> 53.33 barrels -> 9866.67 kg
        assert total == Decimal("24666.675")


class TestFuelConsumptionCalculator:
    """Tests for FuelConsumptionCalculator."""

    def setup_method(self):
        self.calculator = FuelConsumptionCalculator()

    def test_entry_scenario(self):
        entry = self.calculator.compute_entry(_raw(), _previous_entry("5"))

        assert entry.distance == Decimal("150")
        assert entry.initial_fuel == Decimal("55")
        assert entry.consumed_fuel == Decimal("52.5")
        assert entry.remaining_fuel == Decimal("2.5")
        assert round2(entry.total_range) == Decimal("157.14")
        assert round2(entry.remaining_range) == Decimal("7.14")

    def test_carry_over_without_purchase(self):
        raw = _raw(fuel_money_spent="0", current_odometer="1000")

        entry = self.calculator.compute_entry(raw, _previous_entry("12.5"))

        assert entry.initial_fuel == Decimal("12.5")

    def test_first_entry_has_no_carry_over(self):
        entry = self.calculator.compute_entry(_raw())

        assert entry.initial_fuel == Decimal("50")

    def test_zero_rate_is_an_error(self):
        with pytest.raises(CalculationError) as exc_info:
            self.calculator.compute_entry(_raw(consumption_rate_per_100="0"))

        assert exc_info.value.field == "consumption_rate_per_100"

    def test_zero_unit_price_buys_no_fuel(self):
        entry = self.calculator.compute_entry(_raw(fuel_unit_price="0"), _previous_entry("5"))

        assert entry.initial_fuel == Decimal("5")

    def test_odometer_going_backwards_clamps_distance(self):
        entry = self.calculator.compute_entry(
            _raw(previous_odometer="1200", current_odometer="1150")
        )

        assert entry.distance == Decimal("0")
        assert entry.consumed_fuel == Decimal("0")
        assert entry.remaining_range == entry.total_range

    def test_over_consumption_is_surfaced(self):
        entry = self.calculator.compute_entry(_raw(fuel_money_spent="100"))

        # 10 L bought, 52.5 L needed for 150 km
        assert entry.remaining_fuel == Decimal("-42.5")
        assert entry.remaining_range < 0

    def test_history_chains_in_date_order(self):
        later = _raw(
            entry_date=date(2026, 1, 20),
            fuel_money_spent="0",
            previous_odometer="1150",
            current_odometer="1160",
        )
        earlier = _raw()

        history = self.calculator.compute_history([later, earlier])

        assert [e.entry_date for e in history] == [date(2026, 1, 10), date(2026, 1, 20)]
        assert history[1].initial_fuel == history[0].remaining_fuel
        assert history[1].remaining_fuel == Decimal("-6.0")


class TestAccountBalanceCalculator:
    """Tests for AccountBalanceCalculator."""

    def setup_method(self):
        self.calculator = AccountBalanceCalculator()
        self.quantity = QuantityTransaction(
            counterparty_id="supplier-1",
            transaction_date=date(2026, 1, 2),
            created_at=_ts(2),
            quantity="40",
            quantity_unit=QuantityUnit.CM,
            price_per_kg="0.1",
            total_price="1000",
        )
        self.service = ServiceTransaction(
            counterparty_id="supplier-1",
            transaction_date=date(2026, 1, 3),
            created_at=_ts(3),
            service="Transport",
            price="200",
        )
        self.payment = Payment(
            counterparty_id="supplier-1",
            payment_date=date(2026, 1, 4),
            created_at=_ts(4),
            amount="300",
        )

    def test_balance_scenario(self):
        balance = self.calculator.compute_balance(
            [self.quantity, self.service], [self.payment]
        )

        assert balance == Decimal("900")

    def test_balance_without_records(self):
        assert self.calculator.compute_balance([], []) == Decimal("0")

    def test_overpaid_balance_is_negative(self):
        balance = self.calculator.compute_balance([self.service], [self.payment])

        assert balance == Decimal("-100")

    def test_last_modification_service(self):
        last = self.calculator.last_modification([self.quantity, self.service])

        assert last.timestamp == _ts(3)
        assert last.description == "Service: Transport"

    def test_last_modification_quantity(self):
        last = self.calculator.last_modification([self.service, self.quantity.model_copy(
            update={"created_at": _ts(9)}
        )])

        assert last.description == "40.00 cm"

    def test_last_modification_empty(self):
        assert self.calculator.last_modification([]) is None

    def test_summarize(self):
        summary = self.calculator.summarize([self.quantity, self.service], [self.payment])

        assert summary.total_transactions == Decimal("1200")
        assert summary.total_payments == Decimal("300")
        assert summary.balance == Decimal("900")
        assert summary.last_modification.description == "Service: Transport"
        assert summary.warnings == []

    def test_coerce_infers_kind(self):
        transactions, warnings = self.calculator.coerce_transactions([
            {
                "counterparty_id": "c1",
                "transaction_date": date(2026, 1, 2),
                "created_at": _ts(2),
                "service": "Pumping",
                "price": Decimal("80"),
            },
            {
                "counterparty_id": "c1",
                "transaction_date": date(2026, 1, 3),
                "created_at": _ts(3),
                "quantity": Decimal("10"),
                "quantity_unit": "kg",
                "total_price": Decimal("25"),
            },
        ])

        assert isinstance(transactions[0], ServiceTransaction)
        assert isinstance(transactions[1], QuantityTransaction)
        assert warnings == []

    def test_coerce_missing_price_counts_zero_with_warning(self):
        transactions, warnings = self.calculator.coerce_transactions([
            {
                "id": None,
                "counterparty_id": "c1",
                "transaction_date": date(2026, 1, 2),
                "created_at": _ts(2),
                "quantity": Decimal("10"),
            },
        ])

        assert self.calculator.compute_balance(transactions, []) == Decimal("0")
        assert len(warnings) == 1
        assert "total_price" in warnings[0]

    def test_transaction_variant_requires_its_payload(self):
        adapter = TypeAdapter(Transaction)

        with pytest.raises(ValidationError):
            adapter.validate_python({
                "kind": "service",
                "counterparty_id": "c1",
                "transaction_date": "2026-01-02",
                "created_at": "2026-01-02T10:00:00Z",
                "service": "Transport",
            })

    def test_transaction_variant_selected_by_kind(self):
        adapter = TypeAdapter(Transaction)

        transaction = adapter.validate_python({
            "kind": "quantity",
            "counterparty_id": "c1",
            "transaction_date": "2026-01-02",
            "created_at": "2026-01-02T10:00:00Z",
            "quantity": "12",
            "total_price": "30",
        })

        assert isinstance(transaction, QuantityTransaction)
        assert self.calculator.contribution(transaction) == Decimal("30")


class TestNumericFields:

    @pytest.mark.parametrize("value", ["abc", "12,5", ""])
    def test_non_numeric_text_is_a_validation_error(self, value):
        with pytest.raises(ValidationError) as exc_info:
            DeliveryRecord(counterparty_name="Depot", delivery_date=date(2026, 1, 1), quantity=value)

        assert exc_info.value.errors()[0]["loc"] == ("quantity",)

    def test_non_numeric_payment_amount(self):
        with pytest.raises(ValidationError):
            Payment(
                counterparty_id="s1",
                payment_date=date(2026, 1, 1),
                amount="ten",
                created_at=_ts(1),
            )

    def test_numeric_text_accepted(self):
        record = DeliveryRecord(
            counterparty_name="Depot", delivery_date=date(2026, 1, 1), quantity=" -12.5 "
        )

        assert record.quantity == Decimal("-12.5")
