"""Integration tests for family callback requests and listing requests."""

import pytest

from factories import create_listing_request, create_provider
from gapp_directory.domain.leads.service import validate_status_transition
from gapp_directory.models import CallbackRequest, ListingRequest


def callback_payload(provider_id: int, **overrides) -> dict:
    payload = {
        "parentName": "Jordan Smith",
        "phone": "404.555.0123",
        "email": "Jordan@Example.com",
        "zipCode": "30303",
        "county": "Fulton",
        "serviceNeeded": "RN",
        "urgency": "asap",
        "preferredCallbackTime": "evening",
        "specialNeeds": "Trach and vent care",
        "providerId": provider_id,
    }
    payload.update(overrides)
    return payload


def listing_payload(**overrides) -> dict:
    payload = {
        "contactName": "Avery Jones",
        "contactEmail": "avery@magnolia.example.com",
        "businessName": "Magnolia Home Health",
        "city": "Macon",
        "servicesOffered": ["pcs"],
        "countiesServed": ["Bibb", " ", "Houston"],
    }
    payload.update(overrides)
    return payload


# =============================================================================
# CALLBACK REQUESTS
# =============================================================================


class TestCallback:
    async def test_creates_lead_and_emails_provider(self, client, db_session, fake_email, test_settings):
        provider = create_provider(db_session, email="intake@sunrise.example.com")

        response = await client.post("/api/callback", json=callback_payload(provider.id))

        assert response.status_code == 200
        lead = db_session.get(CallbackRequest, response.json()["id"])
        assert lead.status == "new"
        assert lead.phone == "+14045550123"
        assert lead.email == "jordan@example.com"
        assert lead.provider_id == provider.id

        [message] = fake_email.messages_to("intake@sunrise.example.com")
        assert message["from"] == test_settings.leads_from_address
        assert "Jordan Smith" in message["subject"]

    async def test_lead_is_kept_when_email_fails(self, client, db_session, fake_email):
        provider = create_provider(db_session)
        fake_email.fail_all = True

        response = await client.post("/api/callback", json=callback_payload(provider.id))

        assert response.status_code == 200
        assert db_session.query(CallbackRequest).count() == 1

    async def test_inactive_provider_is_not_found(self, client, db_session):
        provider = create_provider(db_session, is_active=False)

        response = await client.post("/api/callback", json=callback_payload(provider.id))

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "overrides",
        [
            {"phone": "555-0123"},
            {"zipCode": "3030"},
            {"serviceNeeded": "CNA"},
            {"urgency": "someday"},
            {"parentName": "   "},
        ],
    )
    async def test_invalid_fields(self, client, db_session, overrides):
        provider = create_provider(db_session)

        response = await client.post("/api/callback", json=callback_payload(provider.id, **overrides))

        assert response.status_code == 422

    async def test_rate_limited_when_enabled(self, client, db_session, test_settings):
        provider = create_provider(db_session)
        test_settings.rate_limit_enabled = True

        statuses = [
            (await client.post("/api/callback", json=callback_payload(provider.id))).status_code
            for _ in range(6)
        ]

        assert statuses[:5] == [200] * 5
        assert statuses[5] == 429


# =============================================================================
# LISTING REQUESTS
# =============================================================================


class TestListingRequest:
    async def test_creates_pending_request(self, client, db_session, fake_email, test_settings):
        response = await client.post("/api/listing-request", json=listing_payload())

        assert response.status_code == 200
        request = db_session.get(ListingRequest, response.json()["id"])
        assert request.status == "pending"
        assert request.services_offered == ["PCS"]
        assert request.counties_served == ["Bibb", "Houston"]
        assert len(fake_email.messages_to("avery@magnolia.example.com")) == 1
        assert len(fake_email.messages_to(test_settings.admin_email)) == 1

    async def test_duplicate_pending_request_conflicts(self, client, db_session):
        create_listing_request(db_session, contact_email="avery@magnolia.example.com")

        response = await client.post("/api/listing-request", json=listing_payload())

        assert response.status_code == 409

    async def test_reviewed_request_does_not_block_a_new_one(self, client, db_session):
        create_listing_request(db_session, contact_email="avery@magnolia.example.com", status="rejected")

        response = await client.post("/api/listing-request", json=listing_payload())

        assert response.status_code == 200

    async def test_missing_business_name(self, client):
        response = await client.post("/api/listing-request", json=listing_payload(businessName=""))
        assert response.status_code == 422


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,new,allowed",
        [
            ("new", "contacted", True),
            ("new", "closed", True),
            ("new", "converted", False),
            ("contacted", "converted", True),
            ("contacted", "new", False),
            ("converted", "closed", False),
            ("closed", "closed", True),
        ],
    )
    def test_transitions(self, current, new, allowed):
        assert validate_status_transition(current, new) is allowed
