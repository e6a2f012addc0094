"""
Payments towards a plan.

Members claim payments (pending until the owner approves or rejects them);
the owner can also enter payments directly, which are approved at once.
Whenever an approved payment lands, a member waiting to leave is let go if
their balance is no longer negative.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from app.core.auth import Identity
from app.core.errors import InvalidStateError, NotFoundError
from app.models.payment import Payment, PaymentStatus
from app.models.plan import Plan
from app.repositories.store import Store
from app.services.access_service import require_member, require_owner
from app.services.activity_service import utcnow
from app.services.membership_service import MembershipService
from app.utils.plan_validation import (
    parse_for_month,
    validate_claim_amount,
    validate_manual_amount,
)

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def _new_payment(self, plan: Plan, user_id: str, amount: float, status: PaymentStatus,
                     notes: Optional[str], for_month: Optional[str]) -> Payment:
        now = self.clock()
        return Payment(
            plan_id=plan.id,
            user_id=user_id,
            amount=amount,
            date=now,
            status=status,
            notes=(notes or "").strip(),
            for_month=parse_for_month(for_month),
            created_at=now,
            updated_at=now
        )

    async def claim_payment(
        self,
        identity: Identity,
        plan: Plan,
        amount,
        notes: Optional[str] = None,
        for_month: Optional[str] = None
    ) -> Payment:
        """Record a payment the caller says they made; waits for owner approval."""
        await require_member(self.store, plan, identity)
        payment = self._new_payment(
            plan, identity.user_id, validate_claim_amount(amount),
            PaymentStatus.PENDING, notes, for_month
        )
        await self.store.payments.save(payment)
        logger.info("User %s claimed %.2f in plan %s", identity.user_id, payment.amount, plan.id)
        return payment

    async def _pending_payment(self, plan: Plan, payment_id: str) -> Payment:
        payment = await self.store.payments.find_by_id(payment_id)
        if payment is None or payment.plan_id != plan.id:
            raise NotFoundError("Payment not found")
        if not payment.is_pending:
            raise InvalidStateError(f"Payment is already {payment.status}")
        return payment

    async def approve_payment(self, identity: Identity, plan: Plan, payment_id: str) -> Payment:
        require_owner(plan, identity)
        payment = await self._pending_payment(plan, payment_id)

        payment.status = PaymentStatus.APPROVED
        payment.updated_at = self.clock()
        await self.store.payments.save(payment)
        logger.info("Approved payment %s in plan %s", payment.id, plan.id)

        await MembershipService(self.store, self.clock).settle_pending_leave(plan, payment.user_id)
        return payment

    async def reject_payment(self, identity: Identity, plan: Plan, payment_id: str) -> Payment:
        require_owner(plan, identity)
        payment = await self._pending_payment(plan, payment_id)

        payment.status = PaymentStatus.REJECTED
        payment.updated_at = self.clock()
        await self.store.payments.save(payment)
        logger.info("Rejected payment %s in plan %s", payment.id, plan.id)
        return payment

    async def add_manual_payment(
        self,
        identity: Identity,
        plan: Plan,
        user_id: str,
        amount,
        notes: Optional[str] = None,
        for_month: Optional[str] = None
    ) -> Payment:
        """
        Owner records a payment for a member (real or artificial).

        Negative amounts are allowed as corrections; the payment is approved
        immediately.
        """
        require_owner(plan, identity)
        membership = await self.store.memberships.find_current(plan.id, user_id)
        if membership is None:
            raise NotFoundError("Membership not found")

        payment = self._new_payment(
            plan, user_id, validate_manual_amount(amount),
            PaymentStatus.APPROVED, notes, for_month
        )
        await self.store.payments.save(payment)
        logger.info("Owner recorded %.2f for %s in plan %s", payment.amount, user_id, plan.id)

        await MembershipService(self.store, self.clock).settle_pending_leave(plan, user_id)
        return payment
