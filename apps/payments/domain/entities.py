"""
Payment Domain Entities

- PaymentMethodKind: credit card, bank wire, cryptocurrency
- PaymentMethod: A guest's stored or selected way to pay
- TopUpChannel / WalletTransaction: Pending wallet top-up requests

No money moves here: card numbers are reduced to their last four digits
and top-ups are only recorded as pending.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional


class PaymentMethodKind(Enum):
    CREDIT_CARD = 'credit_card'
    BANK_WIRE = 'bank_wire'
    CRYPTO = 'crypto'


@dataclass(frozen=True)
class PaymentMethod:
    kind: PaymentMethodKind
    details: str
    name: str
    card_last_four: str = ''
    card_type: str = ''
    is_default: bool = False
    id: Optional[str] = None

    def to_record(self, user_id: str) -> dict:
        return {
            'user_id': user_id,
            'method_type': self.kind.value,
            'details': self.details,
            'name': self.name,
            'card_last_four': self.card_last_four,
            'card_type': self.card_type,
            'is_default': self.is_default,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'PaymentMethod':
        return cls(
            kind=PaymentMethodKind(record.get('method_type', PaymentMethodKind.CREDIT_CARD.value)),
            details=record.get('details') or '',
            name=record.get('name') or '',
            card_last_four=record.get('card_last_four') or '',
            card_type=record.get('card_type') or '',
            is_default=bool(record.get('is_default')),
            id=record.get('id'),
        )


class TopUpChannel(Enum):
    CRYPTO = 'topup_crypto'
    WIRE = 'topup_wire'

    @property
    def reference_prefix(self) -> str:
        return 'crypto' if self is TopUpChannel.CRYPTO else 'wire'


@dataclass(frozen=True)
class WalletTransaction:
    user_id: str
    amount: Decimal
    channel: TopUpChannel
    reference_id: str
    status: str = 'pending'
    id: Optional[str] = None

    def to_record(self) -> dict:
        return {
            'user_id': self.user_id,
            'amount': self.amount,
            'transaction_type': self.channel.value,
            'status': self.status,
            'reference_id': self.reference_id,
        }
