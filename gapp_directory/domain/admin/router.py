"""Admin router - Dashboard endpoints, all behind the admin bearer password"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...config import Settings
from ...database import get_db
from ...dependencies import get_email_sender, get_settings
from ...email_service import EmailSender
from ..leads.schemas import CallbackLeadResponse, ListingRequestResponse
from .schemas import (
    AdminAuthRequest,
    AdminProviderResponse,
    DowngradeRequest,
    FeaturedRequest,
    IssueResponse,
    LeadStatusUpdate,
    ListingReviewRequest,
    MarkClaimedRequest,
    MembersResponse,
    ProviderAction,
    ProviderUpdate,
    UnverifyRequest,
)
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])
protected = APIRouter(dependencies=[Depends(require_admin)])


def get_admin_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db, settings, email_sender)


def _provider(provider) -> AdminProviderResponse:
    return AdminProviderResponse.model_validate(provider)


@router.post("/auth")
async def admin_login(data: AdminAuthRequest, service: AdminService = Depends(get_admin_service)):
    service.authenticate(data.password)
    return {"success": True}


# ============================================================================
# MEMBERS
# ============================================================================


@protected.get("/members", response_model=MembersResponse)
async def list_members(service: AdminService = Depends(get_admin_service)):
    providers, stats = service.get_members()
    return MembersResponse(data=[_provider(p) for p in providers], stats=stats)


@protected.post("/verify-provider", response_model=AdminProviderResponse)
async def verify_provider(data: ProviderAction, service: AdminService = Depends(get_admin_service)):
    return _provider(await service.verify_provider(data.providerId))


@protected.post("/unverify-provider", response_model=AdminProviderResponse)
async def unverify_provider(data: UnverifyRequest, service: AdminService = Depends(get_admin_service)):
    return _provider(service.unverify_provider(data.providerId, data.reason))


@protected.post("/update-provider", response_model=AdminProviderResponse)
async def update_provider(data: ProviderUpdate, service: AdminService = Depends(get_admin_service)):
    return _provider(service.update_provider(data))


@protected.post("/set-featured", response_model=AdminProviderResponse)
async def set_featured(data: FeaturedRequest, service: AdminService = Depends(get_admin_service)):
    return _provider(service.set_featured(data.providerId, data.featured))


@protected.post("/downgrade-tier", response_model=AdminProviderResponse)
async def downgrade_tier(data: DowngradeRequest, service: AdminService = Depends(get_admin_service)):
    return _provider(service.downgrade_tier(data.providerId, data.tierLevel, data.reason))


@protected.post("/mark-claimed", response_model=AdminProviderResponse)
async def mark_claimed(data: MarkClaimedRequest, service: AdminService = Depends(get_admin_service)):
    return _provider(service.mark_claimed(data.providerId, data.email, data.name))


@protected.post("/providers/{provider_id}/claim-token")
async def create_claim_link(provider_id: int, service: AdminService = Depends(get_admin_service)):
    return {"claim_url": service.issue_claim_token(provider_id)}


@protected.post("/send-live-email")
async def send_live_email(data: ProviderAction, service: AdminService = Depends(get_admin_service)):
    await service.send_live_email(data.providerId)
    return {"success": True}


@protected.post("/send-upgrade-email")
async def send_upgrade_email(data: ProviderAction, service: AdminService = Depends(get_admin_service)):
    await service.send_upgrade_email(data.providerId)
    return {"success": True}


# ============================================================================
# LEADS
# ============================================================================


@protected.get("/leads", response_model=list[CallbackLeadResponse])
async def list_leads(
    status: Optional[str] = Query(None),
    provider_id: Optional[int] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return [CallbackLeadResponse.model_validate(lead) for lead in service.list_leads(status, provider_id)]


@protected.patch("/leads/{lead_id}", response_model=CallbackLeadResponse)
async def update_lead(lead_id: int, data: LeadStatusUpdate, service: AdminService = Depends(get_admin_service)):
    return CallbackLeadResponse.model_validate(service.update_lead_status(lead_id, data.status))


# ============================================================================
# LISTING REQUESTS
# ============================================================================


@protected.get("/listing-requests", response_model=list[ListingRequestResponse])
async def list_listing_requests(
    status: Optional[str] = Query(None), service: AdminService = Depends(get_admin_service)
):
    return [ListingRequestResponse.model_validate(r) for r in service.list_listing_requests(status)]


@protected.post("/listing-requests/{request_id}/approve")
async def approve_listing_request(
    request_id: int, data: ListingReviewRequest, service: AdminService = Depends(get_admin_service)
):
    request, provider = await service.approve_listing_request(request_id, data.reviewedBy, data.notes)
    return {
        "request": ListingRequestResponse.model_validate(request),
        "provider": _provider(provider),
    }


@protected.post("/listing-requests/{request_id}/reject", response_model=ListingRequestResponse)
async def reject_listing_request(
    request_id: int, data: ListingReviewRequest, service: AdminService = Depends(get_admin_service)
):
    return ListingRequestResponse.model_validate(
        service.reject_listing_request(request_id, data.reviewedBy, data.notes)
    )


# ============================================================================
# ISSUE REPORTS
# ============================================================================


@protected.get("/issues", response_model=list[IssueResponse])
async def list_issues(
    include_resolved: bool = Query(False), service: AdminService = Depends(get_admin_service)
):
    return [IssueResponse.model_validate(i) for i in service.list_issues(unresolved_only=not include_resolved)]


@protected.post("/issues/{issue_id}/resolve", response_model=IssueResponse)
async def resolve_issue(issue_id: int, service: AdminService = Depends(get_admin_service)):
    return IssueResponse.model_validate(service.resolve_issue(issue_id))


router.include_router(protected)
