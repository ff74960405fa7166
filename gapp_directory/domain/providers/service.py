"""Provider service - Directory listing, search, claims and case manager lookups"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings
from ...email_service import EmailSender, send_claim_emails, send_provider_inquiry_emails
from ...models import Provider, ProviderInquiry
from ...shared.timeutils import utcnow
from ...utils.sanitization import clean_text
from .repository import ProviderRepository
from .schemas import ClaimRequest, IssueReportCreate, ProviderInquiryCreate

logger = logging.getLogger(__name__)

CONFIRMATION_WINDOW = timedelta(days=7)
MIN_SEARCH_LENGTH = 2

NIGHT_MARKERS = ("night", "24")
WEEKEND_MARKERS = ("weekend", "7 days", "24")


def _contains(values: Optional[list], wanted: str) -> bool:
    wanted = wanted.strip().lower()
    return any(str(value).strip().lower() == wanted for value in values or [])


def _hours_match(hours: Optional[str], markers: tuple) -> bool:
    text = (hours or "").lower()
    return any(marker in text for marker in markers)


class ProviderService:
    """Service layer for public directory operations"""

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
        self.repo = ProviderRepository()

    # ========================================================================
    # DIRECTORY
    # ========================================================================

    def list_providers(
        self,
        county: Optional[str] = None,
        service: Optional[str] = None,
        accepting: Optional[bool] = None,
        verified: Optional[bool] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Provider], int]:
        """Directory page: featured first, then by tier, then name. Returns (page, total)."""
        providers = self.repo.list_active(self.db, accepting, verified, featured, search)
        # counties and services are JSON arrays, filtered here to stay portable across backends
        if county:
            providers = [p for p in providers if _contains(p.counties_served, county)]
        if service:
            providers = [p for p in providers if _contains(p.services_offered, service)]
        return providers[offset : offset + limit], len(providers)

    def get_provider(self, slug: str) -> Provider:
        provider = self.repo.get_by_slug(self.db, slug)
        if not provider:
            raise HTTPException(status_code=404, detail="Provider not found")
        return provider

    def get_counties(self) -> list[str]:
        counties = set()
        for served in self.repo.list_counties_served(self.db):
            counties.update(c.strip() for c in served if c and c.strip())
        return sorted(counties)

    def search(self, q: Optional[str], limit: int = 10) -> list[Provider]:
        q = (q or "").strip()
        if len(q) < MIN_SEARCH_LENGTH:
            return []
        return self.repo.search(self.db, q, limit)

    def search_for_case_managers(
        self,
        county: str,
        service: Optional[str] = None,
        nights: bool = False,
        weekends: bool = False,
        spanish: bool = False,
    ) -> list[Provider]:
        """Verified providers that confirmed availability within the last 7 days"""
        if not county or not county.strip():
            raise HTTPException(status_code=400, detail="County is required")

        since = self.clock() - CONFIRMATION_WINDOW
        results = []
        for provider in self.repo.list_confirmed_available(self.db, since):
            if not _contains(provider.counties_served, county):
                continue
            if service and service.strip().lower() != "all" and not _contains(provider.services_offered, service):
                continue
            if spanish and not _contains(provider.languages, "Spanish"):
                continue
            if nights and not _hours_match(provider.available_hours, NIGHT_MARKERS):
                continue
            if weekends and not _hours_match(provider.available_hours, WEEKEND_MARKERS):
                continue
            results.append(provider)
        return results

    # ========================================================================
    # CLAIMS
    # ========================================================================

    async def claim_provider(self, data: ClaimRequest) -> Provider:
        provider = self.repo.get_by_id(self.db, data.providerId)
        if not provider or not provider.is_active:
            raise HTTPException(status_code=404, detail="Provider not found")
        if provider.is_claimed or provider.is_verified:
            raise HTTPException(status_code=409, detail="This listing has already been claimed")

        now = self.clock()
        values = {
            Provider.is_claimed: True,
            Provider.claimed_at: now,
            Provider.claimed_by_email: data.email,
            Provider.claimer_name: data.name,
            Provider.claimer_phone: data.phone,
            Provider.updated_at: now,
        }
        if data.website:
            values[Provider.website] = data.website.strip()

        try:
            if not self.repo.try_claim(self.db, provider.id, values, fallback_email=data.email):
                self.db.rollback()
                logger.info(f"⚠️ Provider {provider.id} was claimed concurrently")
                raise HTTPException(status_code=409, detail="This listing has already been claimed")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to claim provider {provider.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to claim listing") from e

        self.db.refresh(provider)
        logger.info(f"🏷️ Provider {provider.id} claimed by {data.email}")
        await send_claim_emails(self.email_sender, self.settings, provider)
        return provider

    def resolve_claim_token(self, token: str) -> str:
        provider = self.repo.get_by_claim_token(self.db, token)
        if not provider:
            raise HTTPException(status_code=404, detail="Invalid claim link")
        return provider.slug

    # ========================================================================
    # REGISTRATION AND ISSUE REPORTS
    # ========================================================================

    async def register_inquiry(self, data: ProviderInquiryCreate) -> ProviderInquiry:
        try:
            inquiry = self.repo.create_inquiry(
                self.db,
                agency_name=data.agencyName.strip(),
                contact_name=data.contactName.strip(),
                email=data.email,
                phone=data.phone,
                county=data.county.strip(),
                services=data.services,
                message=clean_text(data.message),
                created_at=self.clock(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save provider inquiry: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit registration") from e

        logger.info(f"📥 Provider inquiry {inquiry.id} from {inquiry.agency_name}")
        await send_provider_inquiry_emails(self.email_sender, self.settings, inquiry)
        return inquiry

    def report_issue(self, data: IssueReportCreate) -> tuple[int, int]:
        """Store a case manager report. Returns (issue_id, unresolved count for the provider)."""
        if not self.repo.get_by_id(self.db, data.providerId):
            raise HTTPException(status_code=404, detail="Provider not found")

        try:
            issue = self.repo.create_issue(
                self.db,
                provider_id=data.providerId,
                issue_type=data.issueType.value,
                notes=clean_text(data.notes),
                reported_by=(data.reportedBy or "case_manager").strip() or "case_manager",
                created_at=self.clock(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save issue report for provider {data.providerId}: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit report") from e

        logger.info(f"🚩 Issue {issue.issue_type} reported for provider {data.providerId}")
        return issue.id, self.repo.count_unresolved_issues(self.db, data.providerId)
