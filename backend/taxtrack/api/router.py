"""
Main API router.
"""

from fastapi import APIRouter
from taxtrack.api import categories, imports, mileage, reports, rules, transactions

api_router = APIRouter()

api_router.include_router(categories.router)
api_router.include_router(imports.router)
api_router.include_router(transactions.router)
api_router.include_router(rules.router)
api_router.include_router(reports.router)
api_router.include_router(mileage.router)
