from fastapi import APIRouter, Depends, status

from app.core.auth import Identity, get_current_identity
from app.repositories.store import Store
from app.routes.deps import get_store
from app.schemas.payment import ManualPaymentCreate, PaymentClaim, PaymentResponse
from app.services.access_service import get_plan
from app.services.payment_service import PaymentService

router = APIRouter(prefix="/plans/{join_code}/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def claim_payment(
    join_code: str,
    payment_data: PaymentClaim,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Report a payment; it counts once the owner approves it."""
    plan = await get_plan(store, join_code)
    payment = await PaymentService(store).claim_payment(
        identity,
        plan,
        payment_data.amount,
        notes=payment_data.notes,
        for_month=payment_data.for_month
    )
    return PaymentResponse.from_payment(payment)


@router.post("/manual", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def add_manual_payment(
    join_code: str,
    payment_data: ManualPaymentCreate,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Record an already approved payment for a member (owner only)."""
    plan = await get_plan(store, join_code)
    payment = await PaymentService(store).add_manual_payment(
        identity,
        plan,
        payment_data.user_id,
        payment_data.amount,
        notes=payment_data.notes,
        for_month=payment_data.for_month
    )
    return PaymentResponse.from_payment(payment)


@router.post("/{payment_id}/approve", response_model=PaymentResponse)
async def approve_payment(
    join_code: str,
    payment_id: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    plan = await get_plan(store, join_code)
    payment = await PaymentService(store).approve_payment(identity, plan, payment_id)
    return PaymentResponse.from_payment(payment)


@router.post("/{payment_id}/reject", response_model=PaymentResponse)
async def reject_payment(
    join_code: str,
    payment_id: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    plan = await get_plan(store, join_code)
    payment = await PaymentService(store).reject_payment(identity, plan, payment_id)
    return PaymentResponse.from_payment(payment)
