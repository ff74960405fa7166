"""Provider router - Public directory, search and claim endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...config import Settings
from ...database import get_db
from ...dependencies import get_email_sender, get_settings
from ...email_service import EmailSender
from ...rate_limiter import create_rate_limiter
from .schemas import (
    CaseManagerResult,
    CaseManagerSearchResponse,
    ClaimRequest,
    ClaimResponse,
    IssueReportCreate,
    IssueReportResponse,
    PageMeta,
    ProviderInquiryCreate,
    ProviderListResponse,
    ProviderResponse,
    ProviderSummary,
    SearchResponse,
)
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Providers"])

claim_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="claim")
register_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="provider_register")
report_rate_limit = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="report_issue")


def get_provider_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db, settings, email_sender)


# ============================================================================
# DIRECTORY
# ============================================================================


@router.get("/providers", response_model=ProviderListResponse)
async def list_providers(
    county: Optional[str] = Query(None),
    service: Optional[str] = Query(None),
    accepting: Optional[bool] = Query(None),
    verified: Optional[bool] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    provider_service: ProviderService = Depends(get_provider_service),
):
    providers, total = provider_service.list_providers(
        county=county,
        service=service,
        accepting=accepting,
        verified=verified,
        featured=featured,
        search=search,
        limit=limit,
        offset=offset,
    )
    return ProviderListResponse(
        data=[ProviderResponse.model_validate(p) for p in providers],
        meta=PageMeta(total=total, limit=limit, offset=offset, has_more=offset + len(providers) < total),
    )


@router.get("/providers/{slug}", response_model=ProviderResponse)
async def get_provider(slug: str, provider_service: ProviderService = Depends(get_provider_service)):
    return ProviderResponse.model_validate(provider_service.get_provider(slug))


@router.get("/providers/{slug}/summary", response_model=ProviderSummary)
async def get_provider_summary(slug: str, provider_service: ProviderService = Depends(get_provider_service)):
    """Minimal view for the claim page"""
    return ProviderSummary.model_validate(provider_service.get_provider(slug))


@router.get("/counties")
async def list_counties(provider_service: ProviderService = Depends(get_provider_service)):
    return {"counties": provider_service.get_counties()}


@router.get("/search", response_model=SearchResponse)
async def search_providers(
    q: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=50),
    provider_service: ProviderService = Depends(get_provider_service),
):
    results = provider_service.search(q, limit)
    return SearchResponse(results=[ProviderSummary.model_validate(p) for p in results])


@router.get("/case-managers/search", response_model=CaseManagerSearchResponse)
async def case_manager_search(
    county: str = Query(...),
    service: Optional[str] = Query(None),
    nights: bool = Query(False),
    weekends: bool = Query(False),
    spanish: bool = Query(False),
    provider_service: ProviderService = Depends(get_provider_service),
):
    """Providers confirmed available within the last 7 days, most recent first"""
    providers = provider_service.search_for_case_managers(county, service, nights, weekends, spanish)
    return CaseManagerSearchResponse(
        providers=[CaseManagerResult.model_validate(p) for p in providers],
        count=len(providers),
    )


# ============================================================================
# CLAIMS
# ============================================================================


@router.post("/claim", response_model=ClaimResponse)
async def claim_listing(
    data: ClaimRequest,
    provider_service: ProviderService = Depends(get_provider_service),
    _: None = Depends(claim_rate_limit),
):
    provider = await provider_service.claim_provider(data)
    return ClaimResponse(slug=provider.slug, message="Listing claimed successfully")


@router.get("/claim/t/{token}")
async def resolve_claim_link(token: str, provider_service: ProviderService = Depends(get_provider_service)):
    return {"slug": provider_service.resolve_claim_token(token)}


# ============================================================================
# REGISTRATION AND ISSUE REPORTS
# ============================================================================


@router.post("/providers/register")
async def register_provider(
    data: ProviderInquiryCreate,
    provider_service: ProviderService = Depends(get_provider_service),
    _: None = Depends(register_rate_limit),
):
    inquiry = await provider_service.register_inquiry(data)
    return {"success": True, "id": inquiry.id}


@router.post("/providers/report-issue", response_model=IssueReportResponse)
async def report_provider_issue(
    data: IssueReportCreate,
    provider_service: ProviderService = Depends(get_provider_service),
    _: None = Depends(report_rate_limit),
):
    issue_id, unresolved = provider_service.report_issue(data)
    return IssueReportResponse(issue_id=issue_id, unresolved_count=unresolved)
