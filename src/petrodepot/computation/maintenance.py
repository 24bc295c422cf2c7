"""
Maintenance Calculator - Oil change and document reminders

States:
- OVERDUE: interval exhausted / document expired
- DUE_SOON: within the near-due threshold
- NOT_DUE: otherwise
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from petrodepot.config import get_settings
from petrodepot.models import (
    MaintenanceState,
    MaintenanceStatus,
    OilChange,
    VehicleDocument,
)


class MaintenanceCalculator:
    """
    Classify a vehicle's maintenance items.

    The near-due thresholds default to the configured values
    (10% of the oil change interval, 7 days before a document expires).
    """

    ZERO = Decimal("0")

    def __init__(
        self,
        oil_change_due_soon_fraction: Decimal | None = None,
        document_due_soon_days: int | None = None
    ):
        settings = get_settings()
        self.oil_change_due_soon_fraction = (
            oil_change_due_soon_fraction
            if oil_change_due_soon_fraction is not None
            else settings.oil_change_due_soon_fraction
        )
        self.document_due_soon_days = (
            document_due_soon_days
            if document_due_soon_days is not None
            else settings.document_due_soon_days
        )

    def oil_change_status(
        self,
        latest_change: OilChange | None,
        current_odometer: Decimal
    ) -> MaintenanceStatus:
        """
        Kilometres left before the next oil change.

        Args:
            latest_change: Most recent oil change (None if never recorded)
            current_odometer: Latest known odometer reading
        """
        if latest_change is None:
            return MaintenanceStatus(state=MaintenanceState.NOT_DUE, km_remaining=self.ZERO)

        driven = current_odometer - latest_change.odometer
        km_remaining = latest_change.interval_km - driven

        if km_remaining <= self.ZERO:
            return MaintenanceStatus(state=MaintenanceState.OVERDUE, km_remaining=self.ZERO)
        if km_remaining <= latest_change.interval_km * self.oil_change_due_soon_fraction:
            return MaintenanceStatus(state=MaintenanceState.DUE_SOON, km_remaining=km_remaining)
        return MaintenanceStatus(state=MaintenanceState.NOT_DUE, km_remaining=km_remaining)

    def document_status(
        self,
        documents: Sequence[VehicleDocument],
        today: date
    ) -> MaintenanceStatus:
        """Status of the document that expires first."""
        if not documents:
            return MaintenanceStatus(state=MaintenanceState.NOT_DUE, days_remaining=0)

        closest = min(documents, key=lambda d: d.expiration_date)
        days_remaining = (closest.expiration_date - today).days

        if days_remaining < 0:
            state = MaintenanceState.OVERDUE
            days_remaining = 0
        elif days_remaining <= self.document_due_soon_days:
            state = MaintenanceState.DUE_SOON
        else:
            state = MaintenanceState.NOT_DUE

        return MaintenanceStatus(
            state=state,
            days_remaining=days_remaining,
            document_name=closest.name,
        )
