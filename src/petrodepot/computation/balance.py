"""
Account Balance Calculator - Counterparty running balance

balance = sum(transaction contributions) - sum(payment amounts)

A service transaction contributes its flat price, a quantity
transaction its total price.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from pydantic import TypeAdapter

from petrodepot.models import (
    BalanceSummary,
    LastModification,
    Payment,
    QuantityTransaction,
    ServiceTransaction,
    Transaction,
)
from petrodepot.rounding import round2

logger = logging.getLogger(__name__)

_transaction_adapter: TypeAdapter[Transaction] = TypeAdapter(Transaction)


class AccountBalanceCalculator:
    """Aggregate ledger transactions and payments per counterparty."""

    ZERO = Decimal("0")

    def contribution(self, transaction: Transaction) -> Decimal:
        if isinstance(transaction, ServiceTransaction):
            return transaction.price
        return transaction.total_price

    def compute_balance(
        self,
        transactions: Iterable[Transaction],
        payments: Iterable[Payment]
    ) -> Decimal:
        """Net balance: what the counterparty owes (or is owed)."""
        total_transactions = sum(
            (self.contribution(t) for t in transactions), self.ZERO
        )
        total_payments = sum((p.amount for p in payments), self.ZERO)
        return total_transactions - total_payments

    def last_modification(
        self,
        transactions: Sequence[Transaction]
    ) -> LastModification | None:
        """
        Describe the most recently created transaction.

        Ties on created_at resolve to the earliest one in the input.
        """
        if not transactions:
            return None

        latest = transactions[0]
        for transaction in transactions[1:]:
            if transaction.created_at > latest.created_at:
                latest = transaction

        if isinstance(latest, ServiceTransaction):
            description = f"Service: {latest.service}"
        else:
            description = f"{round2(latest.quantity)} {latest.quantity_unit.value}"
        return LastModification(timestamp=latest.created_at, description=description)

    def summarize(
        self,
        transactions: Sequence[Transaction],
        payments: Sequence[Payment],
        warnings: list[str] | None = None
    ) -> BalanceSummary:
        total_transactions = sum(
            (self.contribution(t) for t in transactions), self.ZERO
        )
        total_payments = sum((p.amount for p in payments), self.ZERO)
        return BalanceSummary(
            total_transactions=total_transactions,
            total_payments=total_payments,
            balance=total_transactions - total_payments,
            last_modification=self.last_modification(transactions),
            warnings=list(warnings or []),
        )

    def coerce_transactions(
        self,
        records: Iterable[Mapping[str, Any]]
    ) -> tuple[list[Transaction], list[str]]:
        """
        Build tagged transactions from raw storage rows.

        Rows without a kind are tagged from whichever price field is
        present. A row carrying neither price nor total_price contributes
        nothing and is reported as a data-integrity warning.

        Returns:
            Tuple of (transactions, warnings)
        """
        transactions: list[Transaction] = []
        warnings: list[str] = []

        for record in records:
            data = dict(record)
            kind = data.get("kind")
            if kind is None:
                if data.get("service") is not None or data.get("price") is not None:
                    kind = ServiceTransaction.model_fields["kind"].default
                else:
                    kind = QuantityTransaction.model_fields["kind"].default
                data["kind"] = kind

            payload = "price" if kind == "service" else "total_price"
            if data.get(payload) is None:
                message = (
                    f"Transaction {data.get('id')} for counterparty "
                    f"{data.get('counterparty_id')} has no {payload}; counted as 0"
                )
                logger.warning(message)
                warnings.append(message)
                data[payload] = self.ZERO
                if kind == "service" and not data.get("service"):
                    data["service"] = "unknown"
                if kind == "quantity" and data.get("quantity") is None:
                    data["quantity"] = self.ZERO

            transactions.append(_transaction_adapter.validate_python(data))

        return transactions, warnings
