"""Stored payment methods and wallet top-up requests."""

from __future__ import annotations

import logging
import time
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from apps.core.security import sanitize_text
from apps.payments.cards import (
    get_credit_card_type,
    mask_card_number,
    validate_credit_card,
    validate_cvv,
    validate_expiry_date,
)
from apps.payments.domain.entities import (
    PaymentMethod,
    PaymentMethodKind,
    TopUpChannel,
    WalletTransaction,
)

logger = logging.getLogger(__name__)


class PaymentMethodError(Exception):
    """Raised when payment input is rejected."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class PaymentMethodService:
    """Builds payment methods and keeps the guest's default one."""

    table_name = "payment_methods"

    def __init__(self, remote_store):
        self.remote_store = remote_store

    @property
    def _table(self):
        return self.remote_store.table(self.table_name)

    @staticmethod
    def build_card_method(number: str, expiry: str, cvv: str, name: str, today: date | None = None) -> PaymentMethod:
        holder = sanitize_text(name)
        if not holder:
            raise PaymentMethodError("name", "Cardholder name is required")
        if not validate_credit_card(number):
            raise PaymentMethodError("number", "Invalid card number")
        if not validate_expiry_date(expiry, today=today):
            raise PaymentMethodError("expiry", "Invalid or expired expiry date")

        card_type = get_credit_card_type(number)
        if not validate_cvv(cvv, card_type):
            raise PaymentMethodError("cvv", "Invalid security code")

        masked = mask_card_number(number)
        return PaymentMethod(
            kind=PaymentMethodKind.CREDIT_CARD,
            details=masked,
            name=holder,
            card_last_four=masked[-4:],
            card_type=card_type,
        )

    @staticmethod
    def bank_wire() -> PaymentMethod:
        return PaymentMethod(
            kind=PaymentMethodKind.BANK_WIRE,
            details="Wire transfer details will be provided",
            name="Bank Transfer",
        )

    @staticmethod
    def crypto() -> PaymentMethod:
        return PaymentMethod(
            kind=PaymentMethodKind.CRYPTO,
            details="Bitcoin payment address will be provided",
            name="Bitcoin",
        )

    async def list_methods(self, user_id: str) -> List[PaymentMethod]:
        rows = await self._table.select({"user_id": user_id}, order_by="created_at")
        return [PaymentMethod.from_record(row) for row in rows]

    async def get_default(self, user_id: str) -> Optional[PaymentMethod]:
        rows = await self._table.select({"user_id": user_id, "is_default": True}, limit=1)
        return PaymentMethod.from_record(rows[0]) if rows else None

    async def save_card(self, user_id: str, method: PaymentMethod, make_default: bool = False) -> PaymentMethod:
        existing = await self.get_default(user_id)
        # the first stored method becomes the default
        is_default = make_default or existing is None
        if is_default and existing is not None:
            await self._table.update({"is_default": False}, {"user_id": user_id})

        record = method.to_record(user_id)
        record["is_default"] = is_default
        row = await self._table.insert(record)
        logger.info("Stored %s payment method for user %s", method.kind.value, user_id)
        return PaymentMethod.from_record(row)

    async def set_default(self, user_id: str, method_id: str) -> PaymentMethod:
        rows = await self._table.select({"user_id": user_id, "id": method_id}, limit=1)
        if not rows:
            raise PaymentMethodError("id", "Payment method not found")

        await self._table.update({"is_default": False}, {"user_id": user_id})
        updated = await self._table.update({"is_default": True}, {"user_id": user_id, "id": method_id})
        logger.info("Default payment method for user %s is now %s", user_id, method_id)
        return PaymentMethod.from_record(updated[0] if updated else {**rows[0], "is_default": True})


def _now_ms() -> int:
    return int(time.time() * 1000)


class WalletService:
    """Records wallet top-ups as pending transactions; no settlement happens."""

    table_name = "wallet_transactions"

    def __init__(self, remote_store, clock: Callable[[], int] | None = None):
        self.remote_store = remote_store
        self.clock = clock or _now_ms

    async def request_top_up(self, user_id: str, amount, channel: TopUpChannel) -> WalletTransaction:
        if not user_id:
            raise PaymentMethodError("user_id", "Sign in to top up your wallet")
        try:
            value = Decimal(str(amount)).quantize(Decimal("0.01"))
        except InvalidOperation as e:
            raise PaymentMethodError("amount", "Enter a valid amount") from e
        if not value.is_finite() or value <= 0:
            raise PaymentMethodError("amount", "Amount must be greater than zero")

        transaction = WalletTransaction(
            user_id=user_id,
            amount=value,
            channel=channel,
            reference_id=f"{channel.reference_prefix}_{self.clock()}",
        )
        row = await self.remote_store.table(self.table_name).insert(transaction.to_record())
        logger.info("Top-up request %s for user %s: %s", transaction.reference_id, user_id, value)
        return WalletTransaction(
            user_id=transaction.user_id,
            amount=transaction.amount,
            channel=transaction.channel,
            reference_id=transaction.reference_id,
            status=row.get("status", transaction.status),
            id=row.get("id"),
        )
