"""Provider repository - Database operations for directory listings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from ...models import Provider, ProviderInquiry, ProviderIssue, TierLevel
from ...shared.validators import slugify


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def get_by_id(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.slug == slug, Provider.is_active.is_(True)).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Provider]:
        email = email.strip().lower()
        return (
            db.query(Provider)
            .filter(
                or_(
                    func.lower(Provider.email) == email,
                    func.lower(Provider.claimed_by_email) == email,
                )
            )
            .order_by(Provider.id)
            .first()
        )

    @staticmethod
    def try_claim(db: Session, provider_id: int, values: dict, fallback_email: str) -> bool:
        """Claim only a still unclaimed, unverified listing. Does not commit."""
        values = dict(values)
        values[Provider.tier_level] = case(
            (Provider.tier_level < int(TierLevel.CLAIMED), int(TierLevel.CLAIMED)),
            else_=Provider.tier_level,
        )
        values[Provider.email] = case(
            (or_(Provider.email.is_(None), Provider.email == ""), fallback_email),
            else_=Provider.email,
        )
        updated = (
            db.query(Provider)
            .filter(
                Provider.id == provider_id,
                Provider.is_active.is_(True),
                Provider.is_claimed.is_(False),
                Provider.is_verified.is_(False),
            )
            .update(values, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def get_by_claim_token(db: Session, token: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.claim_token == token).first()

    @staticmethod
    def list_active(
        db: Session,
        accepting: Optional[bool] = None,
        verified: Optional[bool] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[Provider]:
        """Active providers with the scalar filters applied, in directory order"""
        query = db.query(Provider).filter(Provider.is_active.is_(True))
        if accepting is not None:
            query = query.filter(Provider.accepting_new_patients.is_(accepting))
        if verified is not None:
            query = query.filter(Provider.is_verified.is_(verified))
        if featured is not None:
            query = query.filter(Provider.is_featured.is_(featured))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Provider.name.ilike(pattern), Provider.city.ilike(pattern)))
        return query.order_by(Provider.is_featured.desc(), Provider.tier_level.desc(), Provider.name).all()

    @staticmethod
    def search(db: Session, q: str, limit: int) -> list[Provider]:
        pattern = f"%{q}%"
        return (
            db.query(Provider)
            .filter(
                Provider.is_active.is_(True),
                or_(Provider.name.ilike(pattern), Provider.city.ilike(pattern)),
            )
            .order_by(Provider.is_featured.desc(), Provider.tier_level.desc(), Provider.name)
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_confirmed_available(db: Session, since: datetime) -> list[Provider]:
        """Verified providers that answered 'available' at or after since, most recent first"""
        return (
            db.query(Provider)
            .filter(
                Provider.is_active.is_(True),
                Provider.is_verified.is_(True),
                Provider.is_available.is_(True),
                Provider.availability_updated_at >= since,
            )
            .order_by(Provider.availability_updated_at.desc())
            .all()
        )

    @staticmethod
    def list_counties_served(db: Session) -> list[list[str]]:
        rows = db.query(Provider.counties_served).filter(Provider.is_active.is_(True)).all()
        return [row[0] or [] for row in rows]

    @staticmethod
    def slug_exists(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Provider.id).filter(Provider.slug == slug)
        if exclude_id is not None:
            query = query.filter(Provider.id != exclude_id)
        return query.first() is not None

    @classmethod
    def unique_slug(cls, db: Session, name: str, exclude_id: Optional[int] = None) -> str:
        base = slugify(name)
        slug = base
        suffix = 2
        while cls.slug_exists(db, slug, exclude_id):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    @staticmethod
    def create_inquiry(db: Session, **kwargs) -> ProviderInquiry:
        inquiry = ProviderInquiry(**kwargs)
        db.add(inquiry)
        db.commit()
        db.refresh(inquiry)
        return inquiry

    @staticmethod
    def create_issue(db: Session, **kwargs) -> ProviderIssue:
        issue = ProviderIssue(**kwargs)
        db.add(issue)
        db.commit()
        db.refresh(issue)
        return issue

    @staticmethod
    def count_unresolved_issues(db: Session, provider_id: int) -> int:
        return (
            db.query(ProviderIssue)
            .filter(ProviderIssue.provider_id == provider_id, ProviderIssue.resolved_at.is_(None))
            .count()
        )
