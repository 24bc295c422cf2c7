"""
Stock Level Calculator - Running tank stock from delivery records

Deliveries are ordered by (delivery_date, delivery_time) and summed into a
running total that is rounded to 2 decimals after every addition.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from petrodepot.exceptions import CalculationError
from petrodepot.models import DeliveryRecord
from petrodepot.rounding import round2

logger = logging.getLogger(__name__)


class StockLevelCalculator:
    """
    Compute the running stock level of the storage tank.

    A positive quantity is an incoming delivery, a negative one a
    withdrawal. The last annotated record carries the current stock.
    """

    ZERO = Decimal("0")
    HUNDRED = Decimal("100")

    def compute_stock_levels(
        self,
        records: Iterable[DeliveryRecord]
    ) -> list[DeliveryRecord]:
        """
        Sort records chronologically and annotate each with stock_level.

        Records sharing the same date and time keep their input order
        (sorted() is stable), so intermediate levels are deterministic.

        Args:
            records: Delivery records in any order

        Returns:
            New annotated records in chronological order
        """
        ordered = sorted(
            records,
            key=lambda r: (r.delivery_date, r.delivery_time)
        )

        running = self.ZERO
        annotated: list[DeliveryRecord] = []
        for record in ordered:
            running = round2(running + record.quantity)
            annotated.append(record.model_copy(update={"stock_level": running}))

        if annotated and running < self.ZERO:
            logger.warning(
                f"Running stock ends negative ({running} cm) over "
                f"{len(annotated)} deliveries"
            )
        return annotated

    def current_stock(self, annotated: list[DeliveryRecord]) -> Decimal:
        """
        Current stock is the level after the last record, 0 when empty.

        Args:
            annotated: Output of compute_stock_levels
        """
        if not annotated or annotated[-1].stock_level is None:
            return round2(self.ZERO)
        return annotated[-1].stock_level

    def stock_percentage(self, level: Decimal, max_level: Decimal) -> Decimal:
        """
        Fill percentage of the tank, clamped to [0, 100].

        Raises:
            CalculationError: If max_level is not positive
        """
        if max_level <= self.ZERO:
            raise CalculationError(
                f"Tank max level must be positive, got {max_level}",
                field="max_level",
                details={"max_level": str(max_level)}
            )
        percentage = level / max_level * self.HUNDRED
        return min(max(percentage, self.ZERO), self.HUNDRED)
