"""
PetroDepot Maintenance Reminder Tests
"""

from datetime import date
from decimal import Decimal

import pytest

from petrodepot.computation.maintenance import MaintenanceCalculator
from petrodepot.models import MaintenanceState, OilChange, VehicleDocument

TODAY = date(2026, 3, 1)


def _document(name: str, expires: date) -> VehicleDocument:
    return VehicleDocument(vehicle_id="truck-1", name=name, expiration_date=expires)


class TestOilChangeStatus:
    """Oil change reminders, 10% of the interval by default."""

    def setup_method(self):
        self.calculator = MaintenanceCalculator()
        self.change = OilChange(
            vehicle_id="truck-1",
            change_date=date(2026, 1, 15),
            odometer="50000",
            interval_km="10000",
        )

    def test_never_changed(self):
        status = self.calculator.oil_change_status(None, Decimal("120000"))

        assert status.state == MaintenanceState.NOT_DUE

    def test_plenty_of_km_left(self):
        status = self.calculator.oil_change_status(self.change, Decimal("55000"))

        assert status.state == MaintenanceState.NOT_DUE
        assert status.km_remaining == Decimal("5000")

    def test_due_soon_at_threshold(self):
        status = self.calculator.oil_change_status(self.change, Decimal("59000"))

        assert status.state == MaintenanceState.DUE_SOON
        assert status.km_remaining == Decimal("1000")

    @pytest.mark.parametrize("odometer", ["60000", "61500"])
    def test_overdue(self, odometer):
        status = self.calculator.oil_change_status(self.change, Decimal(odometer))

        assert status.state == MaintenanceState.OVERDUE
        assert status.km_remaining == Decimal("0")

    def test_custom_fraction(self):
        calculator = MaintenanceCalculator(oil_change_due_soon_fraction=Decimal("0.5"))

        status = calculator.oil_change_status(self.change, Decimal("55000"))

        assert status.state == MaintenanceState.DUE_SOON


class TestDocumentStatus:
    """Document reminders, 7 days before expiry by default."""

    def setup_method(self):
        self.calculator = MaintenanceCalculator()

    def test_no_documents(self):
        status = self.calculator.document_status([], TODAY)

        assert status.state == MaintenanceState.NOT_DUE
        assert status.document_name is None

    @pytest.mark.parametrize(
        "expires, state, days",
        [
            (date(2026, 3, 9), MaintenanceState.NOT_DUE, 8),
            (date(2026, 3, 8), MaintenanceState.DUE_SOON, 7),
            (date(2026, 3, 1), MaintenanceState.DUE_SOON, 0),
            (date(2026, 2, 27), MaintenanceState.OVERDUE, 0),
        ],
    )
    def test_thresholds(self, expires, state, days):
        status = self.calculator.document_status([_document("Assurance", expires)], TODAY)

        assert status.state == state
        assert status.days_remaining == days

    def test_earliest_expiration_wins(self):
        documents = [
            _document("Visite technique", date(2027, 1, 1)),
            _document("Assurance", date(2026, 3, 4)),
            _document("Carte grise", date(2026, 12, 1)),
        ]

        status = self.calculator.document_status(documents, TODAY)

        assert status.document_name == "Assurance"
        assert status.state == MaintenanceState.DUE_SOON
        assert status.days_remaining == 3

    def test_custom_days(self):
        calculator = MaintenanceCalculator(document_due_soon_days=30)

        status = calculator.document_status([_document("Assurance", date(2026, 3, 20))], TODAY)

        assert status.state == MaintenanceState.DUE_SOON
