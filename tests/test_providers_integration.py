"""Integration tests for the public directory endpoints.

Tests cover:
1. Directory listing, filters and pagination
2. Profile lookup, counties and quick search
3. Case manager search over confirmed-available providers
4. Claim flow and claim links
5. Self-registration and issue reports
"""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from factories import create_issue, create_provider, create_verified_provider
from gapp_directory.domain.providers.schemas import ClaimRequest
from gapp_directory.domain.providers.service import ProviderService
from gapp_directory.models import Provider, ProviderInquiry, ProviderIssue, TierLevel
from gapp_directory.shared.timeutils import utcnow


# =============================================================================
# DIRECTORY
# =============================================================================


class TestListProviders:
    async def test_featured_first_then_tier_then_name(self, client, db_session):
        create_provider(db_session, name="Alpha Care")
        create_verified_provider(db_session, name="Zeta Nursing")
        create_verified_provider(db_session, name="Omega Home Health", is_featured=True, tier_level=TierLevel.PREMIUM)
        create_provider(db_session, name="Hidden Agency", is_active=False)

        response = await client.get("/api/providers")

        assert response.status_code == 200
        names = [p["name"] for p in response.json()["data"]]
        assert names == ["Omega Home Health", "Zeta Nursing", "Alpha Care"]
        assert response.json()["meta"]["total"] == 3

    async def test_county_and_service_filters(self, client, db_session):
        create_provider(db_session, name="Cobb Only", counties_served=["Cobb"], services_offered=["PCS"])
        create_provider(db_session, name="Fulton RN", counties_served=["Fulton"], services_offered=["RN"])

        by_county = await client.get("/api/providers", params={"county": "cobb"})
        by_service = await client.get("/api/providers", params={"service": "rn"})

        assert [p["name"] for p in by_county.json()["data"]] == ["Cobb Only"]
        assert [p["name"] for p in by_service.json()["data"]] == ["Fulton RN"]

    async def test_pagination_meta(self, client, db_session):
        for i in range(5):
            create_provider(db_session, name=f"Agency {i}")

        response = await client.get("/api/providers", params={"limit": 2, "offset": 2})

        meta = response.json()["meta"]
        assert len(response.json()["data"]) == 2
        assert meta == {"total": 5, "limit": 2, "offset": 2, "has_more": True}

    async def test_limit_is_bounded(self, client):
        response = await client.get("/api/providers", params={"limit": 500})
        assert response.status_code == 422


class TestProviderProfile:
    async def test_get_by_slug(self, client, db_session):
        provider = create_provider(db_session, name="Cherokee Kids Nursing")

        response = await client.get(f"/api/providers/{provider.slug}")

        assert response.status_code == 200
        assert response.json()["id"] == provider.id
        assert "claimed_by_email" not in response.json()

    async def test_inactive_or_unknown_is_404(self, client, db_session):
        provider = create_provider(db_session, is_active=False)

        assert (await client.get(f"/api/providers/{provider.slug}")).status_code == 404
        assert (await client.get("/api/providers/does-not-exist")).status_code == 404

    async def test_summary(self, client, db_session):
        provider = create_provider(db_session, name="Summary Care")

        response = await client.get(f"/api/providers/{provider.slug}/summary")

        assert response.status_code == 200
        assert response.json()["name"] == "Summary Care"
        assert "bio" not in response.json()


class TestCountiesAndSearch:
    async def test_counties_are_deduplicated_and_sorted(self, client, db_session):
        create_provider(db_session, counties_served=["Fulton", "Cobb"])
        create_provider(db_session, counties_served=["Cobb", " Bibb "])

        response = await client.get("/api/counties")

        assert response.json() == {"counties": ["Bibb", "Cobb", "Fulton"]}

    async def test_short_query_returns_nothing(self, client, db_session):
        create_provider(db_session, name="Augusta Angels")

        response = await client.get("/api/search", params={"q": "a"})

        assert response.json() == {"results": []}

    async def test_matches_name_or_city(self, client, db_session):
        create_provider(db_session, name="Augusta Angels", city="Augusta")
        create_provider(db_session, name="Savannah Shores", city="Savannah")

        by_name = await client.get("/api/search", params={"q": "angel"})
        by_city = await client.get("/api/search", params={"q": "savan"})

        assert [r["name"] for r in by_name.json()["results"]] == ["Augusta Angels"]
        assert [r["name"] for r in by_city.json()["results"]] == ["Savannah Shores"]


# =============================================================================
# CASE MANAGER SEARCH
# =============================================================================


class TestCaseManagerSearch:
    def _available(self, db_session, hours_ago=1, **kwargs):
        return create_verified_provider(
            db_session,
            is_available=True,
            availability_updated_at=utcnow() - timedelta(hours=hours_ago),
            **kwargs,
        )

    async def test_only_recently_confirmed_verified_providers(self, client, db_session):
        recent = self._available(db_session, hours_ago=2, name="Recent")
        older = self._available(db_session, hours_ago=30, name="Older")
        self._available(db_session, hours_ago=24 * 8, name="Stale")
        create_verified_provider(db_session, is_available=False, availability_updated_at=utcnow(), name="Busy")
        create_provider(db_session, is_available=True, availability_updated_at=utcnow(), name="Unverified")

        response = await client.get("/api/case-managers/search", params={"county": "Fulton"})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [p["id"] for p in body["providers"]] == [recent.id, older.id]

    async def test_filters(self, client, db_session):
        nights = self._available(db_session, available_hours="Nights available", services_offered=["LPN"])
        weekends = self._available(
            db_session, available_hours="7 days a week", languages=["English", "Spanish"], services_offered=["RN"]
        )
        self._available(db_session, available_hours="Weekdays only", counties_served=["Cobb"])

        night_results = await client.get("/api/case-managers/search", params={"county": "Fulton", "nights": True})
        weekend_results = await client.get("/api/case-managers/search", params={"county": "Fulton", "weekends": True})
        spanish_results = await client.get("/api/case-managers/search", params={"county": "Fulton", "spanish": True})
        lpn_results = await client.get("/api/case-managers/search", params={"county": "Fulton", "service": "LPN"})
        cobb_results = await client.get("/api/case-managers/search", params={"county": "Cobb"})

        assert [p["id"] for p in night_results.json()["providers"]] == [nights.id]
        assert [p["id"] for p in weekend_results.json()["providers"]] == [weekends.id]
        assert [p["id"] for p in spanish_results.json()["providers"]] == [weekends.id]
        assert [p["id"] for p in lpn_results.json()["providers"]] == [nights.id]
        assert cobb_results.json()["count"] == 1

    async def test_service_all_means_no_service_filter(self, client, db_session):
        self._available(db_session, services_offered=["LPN"])
        self._available(db_session, services_offered=["RN"])

        response = await client.get("/api/case-managers/search", params={"county": "Fulton", "service": "all"})

        assert response.json()["count"] == 2

    async def test_round_the_clock_matches_nights_and_weekends(self, client, db_session):
        provider = self._available(db_session, available_hours="24/7 coverage")

        nights = await client.get("/api/case-managers/search", params={"county": "Fulton", "nights": True})
        weekends = await client.get("/api/case-managers/search", params={"county": "Fulton", "weekends": True})

        assert [p["id"] for p in nights.json()["providers"]] == [provider.id]
        assert [p["id"] for p in weekends.json()["providers"]] == [provider.id]

    async def test_county_is_required(self, client):
        assert (await client.get("/api/case-managers/search")).status_code == 422
        assert (await client.get("/api/case-managers/search", params={"county": "  "})).status_code == 400


# =============================================================================
# CLAIMS
# =============================================================================


class TestClaim:
    async def test_claim_unclaimed_listing(self, client, db_session, fake_email, test_settings):
        provider = create_provider(db_session, email=None)

        response = await client.post(
            "/api/claim",
            json={
                "providerId": provider.id,
                "email": "Owner@Example.com",
                "name": "Pat Owner",
                "phone": "(404) 555-0199",
            },
        )

        assert response.status_code == 200
        assert response.json()["slug"] == provider.slug
        db_session.expire_all()
        claimed = db_session.get(Provider, provider.id)
        assert claimed.is_claimed is True
        assert claimed.claimed_by_email == "owner@example.com"
        assert claimed.claimer_phone == "+14045550199"
        assert claimed.email == "owner@example.com"
        assert claimed.tier == TierLevel.CLAIMED
        assert len(fake_email.messages_to("owner@example.com")) == 1
        assert len(fake_email.messages_to(test_settings.admin_email)) == 1

    async def test_cannot_claim_twice(self, client, db_session):
        provider = create_provider(db_session, is_claimed=True)

        response = await client.post(
            "/api/claim", json={"providerId": provider.id, "email": "late@example.com", "name": "Late"}
        )

        assert response.status_code == 409

    async def test_cannot_claim_verified_listing(self, client, db_session):
        provider = create_verified_provider(db_session, is_claimed=False)

        response = await client.post(
            "/api/claim", json={"providerId": provider.id, "email": "late@example.com", "name": "Late"}
        )

        assert response.status_code == 409

    async def test_concurrent_claim_keeps_the_first_claimant(self, session_factory, test_settings, fake_email):
        setup = session_factory()
        provider_id = create_provider(setup).id
        setup.close()

        first = session_factory()
        second = session_factory()
        try:
            # The second session still sees the listing as unclaimed
            assert second.get(Provider, provider_id).is_claimed is False

            await ProviderService(first, test_settings, fake_email).claim_provider(
                ClaimRequest(providerId=provider_id, email="first@example.com", name="First")
            )
            with pytest.raises(HTTPException) as exc:
                await ProviderService(second, test_settings, fake_email).claim_provider(
                    ClaimRequest(providerId=provider_id, email="second@example.com", name="Second")
                )

            assert exc.value.status_code == 409
            second.expire_all()
            assert second.get(Provider, provider_id).claimed_by_email == "first@example.com"
        finally:
            first.close()
            second.close()

    async def test_unknown_provider(self, client):
        response = await client.post(
            "/api/claim", json={"providerId": 9999, "email": "who@example.com", "name": "Who"}
        )
        assert response.status_code == 404

    async def test_invalid_email_is_rejected(self, client, db_session):
        provider = create_provider(db_session)

        response = await client.post(
            "/api/claim", json={"providerId": provider.id, "email": "not-an-email", "name": "X"}
        )

        assert response.status_code == 422

    async def test_claim_link_resolves_to_slug(self, client, db_session):
        provider = create_provider(db_session, claim_token="a" * 32)

        response = await client.get(f"/api/claim/t/{'a' * 32}")
        missing = await client.get("/api/claim/t/unknown")

        assert response.json() == {"slug": provider.slug}
        assert missing.status_code == 404


# =============================================================================
# REGISTRATION AND ISSUE REPORTS
# =============================================================================


class TestRegistration:
    async def test_register_stores_inquiry_and_emails(self, client, db_session, fake_email, test_settings):
        response = await client.post(
            "/api/providers/register",
            json={
                "agencyName": "Blue Ridge Nursing",
                "contactName": "Sam Lee",
                "email": "sam@blueridge.example.com",
                "phone": "706-555-0142",
                "county": "Hall",
                "services": ["rn", "PCS"],
                "message": "We cover north Georgia",
            },
        )

        assert response.status_code == 200
        inquiry = db_session.get(ProviderInquiry, response.json()["id"])
        assert inquiry.agency_name == "Blue Ridge Nursing"
        assert inquiry.services == ["RN", "PCS"]
        assert inquiry.phone == "+17065550142"
        assert len(fake_email.messages_to("sam@blueridge.example.com")) == 1
        assert len(fake_email.messages_to(test_settings.admin_email)) == 1

    async def test_unknown_service_is_rejected(self, client):
        response = await client.post(
            "/api/providers/register",
            json={
                "agencyName": "X",
                "contactName": "Y",
                "email": "y@example.com",
                "phone": "7065550142",
                "county": "Hall",
                "services": ["CNA"],
            },
        )
        assert response.status_code == 422


class TestIssueReports:
    async def test_report_counts_unresolved_issues(self, client, db_session):
        provider = create_provider(db_session)
        create_issue(db_session, provider)
        create_issue(db_session, provider, status="resolved", resolved_at=utcnow())

        response = await client.post(
            "/api/providers/report-issue",
            json={"providerId": provider.id, "issueType": "wrong_number", "notes": "Line disconnected"},
        )

        assert response.status_code == 200
        assert response.json()["unresolved_count"] == 2
        issue = db_session.get(ProviderIssue, response.json()["issue_id"])
        assert issue.issue_type == "wrong_number"
        assert issue.reported_by == "case_manager"

    async def test_unknown_issue_type(self, client, db_session):
        provider = create_provider(db_session)

        response = await client.post(
            "/api/providers/report-issue", json={"providerId": provider.id, "issueType": "rude"}
        )

        assert response.status_code == 422

    async def test_unknown_provider(self, client):
        response = await client.post(
            "/api/providers/report-issue", json={"providerId": 4242, "issueType": "no_answer"}
        )
        assert response.status_code == 404
