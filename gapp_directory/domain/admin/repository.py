"""Admin repository - Database operations for the admin dashboard"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Provider, ProviderIssue


class AdminRepository:
    """Repository for admin database operations"""

    @staticmethod
    def list_all_providers(db: Session) -> list[Provider]:
        return db.query(Provider).order_by(Provider.created_at.desc(), Provider.id.desc()).all()

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def list_issues(db: Session, unresolved_only: bool = True) -> list[ProviderIssue]:
        query = db.query(ProviderIssue)
        if unresolved_only:
            query = query.filter(ProviderIssue.resolved_at.is_(None))
        return query.order_by(ProviderIssue.created_at.desc()).all()

    @staticmethod
    def get_issue(db: Session, issue_id: int) -> Optional[ProviderIssue]:
        return db.query(ProviderIssue).filter(ProviderIssue.id == issue_id).first()
