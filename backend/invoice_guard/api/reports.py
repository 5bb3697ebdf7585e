from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..services import record_service
from ..services.report_service import AnalysisReport, generate_analysis_report

router = APIRouter(prefix="/reports", tags=["reports"])

@router.get("/analysis", response_model=AnalysisReport)
async def get_analysis_report(db: Session = Depends(get_db)):
    """Savings and exception analysis over all stored validations."""
    validations = record_service.list_validations(db)
    return generate_analysis_report(
        [record_service.validation_result(validation) for validation in validations],
        [validation.vendor_name for validation in validations],
    )
