"""
Invoice Calculator - Line subtotals, VAT and total in words
"""

from collections.abc import Iterable
from decimal import Decimal

from petrodepot.computation.words import amount_in_words
from petrodepot.models import InvoiceLine, InvoiceTotals


class InvoiceCalculator:
    """Compute invoice totals from product lines."""

    ZERO = Decimal("0")

    def compute_totals(
        self,
        lines: Iterable[InvoiceLine],
        vat_rate: Decimal
    ) -> InvoiceTotals:
        """
        subtotal  = sum(unit_price * quantity)
        vat       = subtotal * vat_rate
        total     = subtotal + vat
        """
        priced = [
            line.model_copy(update={"subtotal": line.unit_price * line.quantity})
            for line in lines
        ]
        subtotal = sum((line.subtotal for line in priced), self.ZERO)
        vat_amount = subtotal * vat_rate
        total = subtotal + vat_amount

        return InvoiceTotals(
            lines=priced,
            subtotal=subtotal,
            vat_rate=vat_rate,
            vat_amount=vat_amount,
            total=total,
            total_in_words=amount_in_words(total),
        )
