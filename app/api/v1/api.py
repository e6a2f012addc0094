from fastapi import APIRouter
from app.routes import memberships, payments, plans

api_router = APIRouter()

# Memberships first so /plans/join is not read as a join code
api_router.include_router(memberships.router)
api_router.include_router(payments.router)
api_router.include_router(plans.router)
