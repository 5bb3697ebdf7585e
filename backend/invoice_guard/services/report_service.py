from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..models.comparison import ComparisonResult, ExceptionType
from .constants import DEFAULT_VENDOR_NAME
from .record_mapping import display_type

TOP_VENDOR_LIMIT = 5


class ReportSummary(BaseModel):
    total_invoices_processed: int = 0
    total_exceptions: int = 0
    total_savings: float = 0.0
    average_confidence: float = 0.0


class VendorIssue(BaseModel):
    vendor_name: str
    exception_count: int
    total_variance: float


class CategoryBreakdown(BaseModel):
    category: str
    exception_count: int
    variance: float


class AnalysisReport(BaseModel):
    summary: ReportSummary = Field(default_factory=ReportSummary)
    top_vendor_issues: List[VendorIssue] = Field(default_factory=list)
    category_breakdown: List[CategoryBreakdown] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


def _recommendations(vendors: List[VendorIssue], by_type: Dict[ExceptionType, List[float]]) -> List[str]:
    recommendations = []
    if vendors and vendors[0].total_variance > 0:
        worst = vendors[0]
        recommendations.append(
            f"Renegotiate pricing with {worst.vendor_name} - "
            f"{worst.exception_count} exception(s) totalling ${worst.total_variance:,.2f}"
        )
    if by_type.get(ExceptionType.UNAUTHORIZED_ITEM):
        recommendations.append(
            f"Review {len(by_type[ExceptionType.UNAUTHORIZED_ITEM])} billed item(s) with no contract term "
            "and add them to contracts or dispute them"
        )
    if any(vendor.exception_count >= 3 for vendor in vendors):
        recommendations.append("Implement automated validation for high-volume vendors")
    return recommendations


def generate_analysis_report(
    results: Sequence[ComparisonResult],
    vendor_names: Optional[Sequence[Optional[str]]] = None,
) -> AnalysisReport:
    """Aggregate view over a set of validations.

    ``vendor_names`` runs parallel to ``results``; missing names are grouped
    as "Unknown Vendor".
    """
    if not results:
        return AnalysisReport()

    names = list(vendor_names or [])
    names += [None] * (len(results) - len(names))

    vendor_counts: Dict[str, int] = defaultdict(int)
    vendor_variance: Dict[str, float] = defaultdict(float)
    by_type: Dict[ExceptionType, List[float]] = defaultdict(list)

    for result, vendor in zip(results, names):
        vendor = vendor or DEFAULT_VENDOR_NAME
        for exception in result.exceptions:
            vendor_counts[vendor] += 1
            vendor_variance[vendor] += exception.variance
            by_type[exception.type].append(exception.variance)

    vendors = sorted(
        (
            VendorIssue(
                vendor_name=vendor,
                exception_count=count,
                total_variance=round(vendor_variance[vendor], 2),
            )
            for vendor, count in vendor_counts.items()
        ),
        key=lambda issue: (-issue.total_variance, -issue.exception_count, issue.vendor_name),
    )

    breakdown = sorted(
        (
            CategoryBreakdown(
                category=display_type(exception_type),
                exception_count=len(variances),
                variance=round(sum(variances), 2),
            )
            for exception_type, variances in by_type.items()
        ),
        key=lambda row: -row.variance,
    )

    summary = ReportSummary(
        total_invoices_processed=len(results),
        total_exceptions=sum(len(result.exceptions) for result in results),
        total_savings=round(sum(result.potential_savings for result in results), 2),
        average_confidence=sum(result.confidence for result in results) / len(results),
    )
    return AnalysisReport(
        summary=summary,
        top_vendor_issues=vendors[:TOP_VENDOR_LIMIT],
        category_breakdown=breakdown,
        recommendations=_recommendations(vendors, by_type),
    )
