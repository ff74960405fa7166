"""Admin service - Verification, tier management, lead and listing review"""

import logging
import secrets
from datetime import datetime
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import check_admin_password
from ...config import Settings
from ...email_service import (
    EmailSender,
    send_listing_approved,
    send_listing_live,
    send_provider_verified,
    send_upgrade_offer,
)
from ...models import (
    CallbackRequest,
    CallbackStatus,
    ListingRequest,
    ListingRequestStatus,
    Provider,
    ProviderIssue,
    TierLevel,
)
from ...shared.timeutils import utcnow
from ...utils.sanitization import clean_text
from ..billing.service import apply_verification
from ..leads.repository import LeadRepository
from ..leads.service import validate_status_transition
from ..providers.repository import ProviderRepository
from .repository import AdminRepository
from .schemas import MemberStats, ProviderUpdate

logger = logging.getLogger(__name__)


class AdminService:
    """Service layer for admin operations"""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        email_sender: EmailSender,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.settings = settings
        self.email_sender = email_sender
        self.clock = clock
        self.repo = AdminRepository()
        self.providers = ProviderRepository()
        self.leads = LeadRepository()

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Admin action '{action}' failed: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to {action}") from e

    def _get_provider(self, provider_id: int) -> Provider:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Provider not found")
        return provider

    # ========================================================================
    # AUTH AND OVERVIEW
    # ========================================================================

    def authenticate(self, password: Optional[str]) -> None:
        if not password:
            raise HTTPException(status_code=400, detail="Password required")
        if not check_admin_password(self.settings, password):
            logger.warning("🚫 Failed admin login attempt")
            raise HTTPException(status_code=401, detail="Invalid password")

    def get_members(self) -> tuple[list[Provider], MemberStats]:
        providers = self.repo.list_all_providers(self.db)
        stats = MemberStats(
            total=len(providers),
            verified=sum(1 for p in providers if p.is_verified),
            featured=sum(1 for p in providers if p.is_featured),
            accepting=sum(1 for p in providers if p.accepting_new_patients),
            claimed=sum(1 for p in providers if p.is_claimed),
            suspended=sum(1 for p in providers if p.verification_suspended_at is not None),
        )
        return providers, stats

    # ========================================================================
    # VERIFICATION AND TIERS
    # ========================================================================

    async def verify_provider(self, provider_id: int) -> Provider:
        provider = self._get_provider(provider_id)
        if provider.is_verified:
            raise HTTPException(status_code=409, detail="Provider is already verified")

        apply_verification(provider, self.clock())
        provider.accepting_new_patients = True
        provider.tier_level = int(max(provider.tier, TierLevel.VERIFIED))
        self._commit("verify provider")

        logger.info(f"✅ Provider {provider.id} verified by admin")
        await send_provider_verified(self.email_sender, self.settings, provider)
        return provider

    def unverify_provider(self, provider_id: int, reason: Optional[str]) -> Provider:
        provider = self._get_provider(provider_id)
        provider.is_verified = False
        provider.is_available = False
        provider.unverified_at = self.clock()
        provider.unverified_reason = clean_text(reason, 255) or "admin"
        self._commit("unverify provider")
        logger.info(f"⛔ Provider {provider.id} unverified: {provider.unverified_reason}")
        return provider

    def set_featured(self, provider_id: int, featured: bool) -> Provider:
        provider = self._get_provider(provider_id)
        provider.is_featured = featured
        provider.featured_at = self.clock() if featured else None
        self._commit("update featured status")
        return provider

    def downgrade_tier(self, provider_id: int, tier_level: int, reason: Optional[str]) -> Provider:
        provider = self._get_provider(provider_id)
        new_tier = TierLevel(tier_level)
        if new_tier >= provider.tier:
            raise HTTPException(status_code=400, detail="New tier must be lower than the current tier")

        provider.tier_level = int(new_tier)
        provider.downgraded_at = self.clock()
        provider.downgraded_reason = clean_text(reason, 255)
        if new_tier < TierLevel.PREMIUM:
            provider.is_featured = False
        if new_tier < TierLevel.VERIFIED:
            provider.is_verified = False
            provider.is_available = False
        self._commit("downgrade tier")
        logger.info(f"⬇️ Provider {provider.id} downgraded to {new_tier.name}")
        return provider

    def mark_claimed(self, provider_id: int, email: Optional[str], name: Optional[str]) -> Provider:
        provider = self._get_provider(provider_id)
        provider.is_claimed = True
        provider.claimed_at = provider.claimed_at or self.clock()
        if email:
            provider.claimed_by_email = email
        if name:
            provider.claimer_name = name.strip()
        provider.tier_level = int(max(provider.tier, TierLevel.CLAIMED))
        self._commit("mark provider claimed")
        return provider

    def update_provider(self, data: ProviderUpdate) -> Provider:
        provider = self._get_provider(data.providerId)
        updates = data.model_dump(exclude_unset=True, exclude={"providerId"})

        if "name" in updates:
            name = (updates["name"] or "").strip()
            if not name:
                raise HTTPException(status_code=400, detail="Name cannot be empty")
            updates["name"] = name
            updates["slug"] = self.providers.unique_slug(self.db, name, exclude_id=provider.id)

        for field, value in updates.items():
            setattr(provider, field, value)
        self._commit("update provider")
        logger.info(f"✏️ Provider {provider.id} updated: {sorted(updates)}")
        return provider

    def issue_claim_token(self, provider_id: int) -> str:
        provider = self._get_provider(provider_id)
        provider.claim_token = secrets.token_urlsafe(24)
        self._commit("create claim link")
        return f"{self.settings.base_url}/claim/t/{provider.claim_token}"

    # ========================================================================
    # OUTREACH EMAILS
    # ========================================================================

    async def send_live_email(self, provider_id: int) -> None:
        provider = self._get_provider(provider_id)
        if not provider.is_verified:
            raise HTTPException(status_code=400, detail="Provider is not verified")
        if not provider.contact_email:
            raise HTTPException(status_code=400, detail="Provider has no email address")
        if not await send_listing_live(self.email_sender, self.settings, provider):
            raise HTTPException(status_code=502, detail="Failed to send email")

    async def send_upgrade_email(self, provider_id: int) -> None:
        provider = self._get_provider(provider_id)
        if not provider.contact_email:
            raise HTTPException(status_code=400, detail="Provider has no email address")
        if not await send_upgrade_offer(self.email_sender, self.settings, provider):
            raise HTTPException(status_code=502, detail="Failed to send email")

    # ========================================================================
    # LEADS
    # ========================================================================

    def list_leads(self, status: Optional[str] = None, provider_id: Optional[int] = None) -> list[CallbackRequest]:
        return self.leads.list_callbacks(self.db, status, provider_id)

    def update_lead_status(self, lead_id: int, status: str) -> CallbackRequest:
        lead = self.leads.get_callback(self.db, lead_id)
        if not lead:
            raise HTTPException(status_code=404, detail="Lead not found")
        if not validate_status_transition(lead.status, status):
            raise HTTPException(status_code=400, detail=f"Cannot change lead from {lead.status} to {status}")

        if status == CallbackStatus.CONTACTED.value and lead.contacted_at is None:
            lead.contacted_at = self.clock()
        lead.status = status
        self._commit("update lead")
        return lead

    # ========================================================================
    # LISTING REQUESTS
    # ========================================================================

    def list_listing_requests(self, status: Optional[str] = None) -> list[ListingRequest]:
        return self.leads.list_listing_requests(self.db, status)

    def _get_pending_request(self, request_id: int) -> ListingRequest:
        request = self.leads.get_listing_request(self.db, request_id)
        if not request:
            raise HTTPException(status_code=404, detail="Listing request not found")
        if request.status != ListingRequestStatus.PENDING.value:
            raise HTTPException(status_code=409, detail=f"Listing request already {request.status}")
        return request

    async def approve_listing_request(
        self, request_id: int, reviewed_by: Optional[str], notes: Optional[str]
    ) -> tuple[ListingRequest, Provider]:
        request = self._get_pending_request(request_id)
        now = self.clock()

        provider = Provider(
            name=request.business_name,
            slug=self.providers.unique_slug(self.db, request.business_name),
            city=request.city,
            email=request.contact_email,
            phone=request.contact_phone,
            website=request.website,
            services_offered=list(request.services_offered or []),
            counties_served=list(request.counties_served or []),
            languages=[],
            is_claimed=True,
            claimed_at=now,
            claimed_by_email=request.contact_email,
            claimer_name=request.contact_name,
            claimer_phone=request.contact_phone,
            tier_level=int(TierLevel.CLAIMED),
            created_at=now,
            updated_at=now,
        )
        self.db.add(provider)
        self.db.flush()

        request.status = ListingRequestStatus.APPROVED.value
        request.reviewed_at = now
        request.reviewed_by = clean_text(reviewed_by, 255) or "admin"
        request.review_notes = clean_text(notes)
        request.provider_id = provider.id
        self._commit("approve listing request")

        logger.info(f"✅ Listing request {request.id} approved as provider {provider.id}")
        await send_listing_approved(self.email_sender, self.settings, request, provider)
        return request, provider

    def reject_listing_request(
        self, request_id: int, reviewed_by: Optional[str], notes: Optional[str]
    ) -> ListingRequest:
        request = self._get_pending_request(request_id)
        request.status = ListingRequestStatus.REJECTED.value
        request.reviewed_at = self.clock()
        request.reviewed_by = clean_text(reviewed_by, 255) or "admin"
        request.review_notes = clean_text(notes)
        self._commit("reject listing request")
        return request

    # ========================================================================
    # ISSUE REPORTS
    # ========================================================================

    def list_issues(self, unresolved_only: bool = True) -> list[ProviderIssue]:
        return self.repo.list_issues(self.db, unresolved_only)

    def resolve_issue(self, issue_id: int) -> ProviderIssue:
        issue = self.repo.get_issue(self.db, issue_id)
        if not issue:
            raise HTTPException(status_code=404, detail="Issue not found")
        if issue.resolved_at is None:
            issue.status = "resolved"
            issue.resolved_at = self.clock()
            self._commit("resolve issue")
        return issue
