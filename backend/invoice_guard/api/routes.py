from fastapi import APIRouter
from invoice_guard.api import contracts, documents, invoices, reports, validations

api_router = APIRouter()

# Include sub-routers
api_router.include_router(contracts.router)
api_router.include_router(invoices.router)
api_router.include_router(validations.router)
api_router.include_router(documents.router)
api_router.include_router(reports.router)
