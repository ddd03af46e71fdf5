"""
Credit balance changes. Every change locks the profile row, updates
`CustomUser.credits` and writes one Transaction row in the same transaction.
Calls are idempotent on `idempotency_key`.
"""
import logging
import uuid
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.db import transaction

from .models import Transaction as CreditTransaction

logger = logging.getLogger(__name__)


class InsufficientCredits(Exception):
    code = 'insufficient_credits'

    def __init__(self, balance, required):
        super().__init__(f"Insufficient credits: balance {balance}, required {required}")
        self.balance = balance
        self.required = required


class IdempotencyConflict(Exception):
    code = 'idempotency_conflict'


@dataclass
class LedgerResult:
    entry: CreditTransaction
    balance: int
    idempotent: bool = False


def _apply(user, amount, tx_type, description, idempotency_key):
    if amount < 0:
        raise ValueError("amount must not be negative")
    key = idempotency_key or f"{tx_type}:{uuid.uuid4().hex}"

    with transaction.atomic():
        locked = get_user_model().objects.select_for_update().get(pk=user.pk)
        existing = CreditTransaction.objects.filter(idempotency_key=key).first()
        if existing:
            if existing.user_id != user.pk:
                raise IdempotencyConflict("Idempotency key already used by another user")
            return LedgerResult(entry=existing, balance=existing.balance_after, idempotent=True)

        if tx_type == CreditTransaction.TYPE_SPEND:
            if locked.credits < amount:
                raise InsufficientCredits(locked.credits, amount)
            new_balance = locked.credits - amount
        else:
            new_balance = locked.credits + amount

        locked.credits = new_balance
        locked.save(update_fields=['credits', 'updated_at'])
        entry = CreditTransaction.objects.create(
            user=locked,
            amount=amount,
            type=tx_type,
            balance_after=new_balance,
            description=description,
            idempotency_key=key,
        )

    user.credits = new_balance
    logger.info(f"Credits {tx_type} {amount} for user {user.pk}, balance {new_balance}")
    return LedgerResult(entry=entry, balance=new_balance)


def debit_credits(user, amount, description='', idempotency_key=None) -> LedgerResult:
    return _apply(user, amount, CreditTransaction.TYPE_SPEND, description, idempotency_key)


def credit_credits(user, amount, description='', idempotency_key=None) -> LedgerResult:
    return _apply(user, amount, CreditTransaction.TYPE_PURCHASE, description, idempotency_key)
