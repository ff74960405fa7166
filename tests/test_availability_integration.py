"""Integration tests for the availability check-in endpoints.

Covers the landing page API (validate/respond) and the scheduler triggers
behind the cron bearer secret.
"""

from datetime import timedelta

from factories import create_token, create_verified_provider
from gapp_directory.models import AvailabilityToken, Provider
from gapp_directory.shared.timeutils import utcnow


# =============================================================================
# VALIDATE
# =============================================================================


class TestValidateEndpoint:
    async def test_valid_token(self, client, db_session):
        provider = create_verified_provider(db_session, name="Dogwood Nursing")
        token = create_token(db_session, provider, created_at=utcnow())

        response = await client.get("/api/availability/validate", params={"token": token.token})

        assert response.status_code == 200
        assert response.json()["status"] == "valid"
        assert response.json()["provider_name"] == "Dogwood Nursing"

    async def test_expired_token(self, client, db_session):
        provider = create_verified_provider(db_session)
        token = create_token(db_session, provider, created_at=utcnow() - timedelta(days=8))

        response = await client.get("/api/availability/validate", params={"token": token.token})

        assert response.status_code == 410
        assert response.json()["status"] == "expired"

    async def test_unknown_and_missing_token(self, client):
        response = await client.get("/api/availability/validate", params={"token": "nope"})
        assert response.status_code == 404

        response = await client.get("/api/availability/validate")
        assert response.status_code == 404
        assert response.json()["status"] == "not_found"


# =============================================================================
# RESPOND
# =============================================================================


class TestRespondEndpoint:
    async def test_available_then_duplicate(self, client, db_session):
        provider = create_verified_provider(db_session)
        token = create_token(db_session, provider, created_at=utcnow())

        first = await client.post(
            "/api/availability/respond", json={"token": token.token, "response": "available"}
        )
        assert first.status_code == 200
        body = first.json()
        assert body["success"] is True
        assert body["response"] == "available"
        assert body["availability_streak"] == 1

        second = await client.post(
            "/api/availability/respond", json={"token": token.token, "response": "not_available"}
        )
        assert second.status_code == 409
        assert second.json()["detail"]["previous_response"] == "available"

        db_session.expire_all()
        refreshed = db_session.get(Provider, provider.id)
        assert refreshed.is_available is True
        assert refreshed.availability_streak == 1

    async def test_expired_token_is_gone(self, client, db_session):
        provider = create_verified_provider(db_session)
        token = create_token(db_session, provider, created_at=utcnow() - timedelta(days=7, minutes=1))

        response = await client.post(
            "/api/availability/respond", json={"token": token.token, "response": "available"}
        )

        assert response.status_code == 410

    async def test_unknown_token(self, client):
        response = await client.post(
            "/api/availability/respond", json={"token": "0" * 64, "response": "available"}
        )
        assert response.status_code == 404

    async def test_invalid_response_value(self, client, db_session):
        provider = create_verified_provider(db_session)
        token = create_token(db_session, provider, created_at=utcnow())

        response = await client.post(
            "/api/availability/respond", json={"token": token.token, "response": "sometimes"}
        )

        assert response.status_code == 400

    async def test_missing_fields_fail_validation(self, client):
        response = await client.post("/api/availability/respond", json={"response": "available"})
        assert response.status_code == 422


# =============================================================================
# SCHEDULER TRIGGERS
# =============================================================================


class TestCronEndpoints:
    async def test_ping_requires_secret(self, client):
        response = await client.post("/api/cron/availability-ping")
        assert response.status_code == 401

        response = await client.get(
            "/api/cron/availability-ping", headers={"Authorization": "Bearer wrong"}
        )
        assert response.status_code == 401

    async def test_followup_requires_secret(self, client):
        response = await client.get("/api/cron/availability-followup")
        assert response.status_code == 401

    async def test_ping_issues_tokens(self, client, db_session, cron_headers, fake_email):
        provider = create_verified_provider(db_session, email="cron@example.com")

        response = await client.get("/api/cron/availability-ping", headers=cron_headers)

        assert response.status_code == 200
        assert response.json()["sent"] == 1
        assert db_session.query(AvailabilityToken).filter_by(provider_id=provider.id).count() == 1
        assert len(fake_email.messages_to("cron@example.com")) == 1

        again = await client.post("/api/cron/availability-ping", headers=cron_headers)
        assert again.json()["sent"] == 0
        assert again.json()["skipped"] == 1

    async def test_followup_warns_and_suspends(self, client, db_session, cron_headers):
        now = utcnow()
        warn_me = create_verified_provider(db_session)
        suspend_me = create_verified_provider(db_session)
        create_token(db_session, warn_me, created_at=now - timedelta(hours=30))
        create_token(
            db_session,
            suspend_me,
            created_at=now - timedelta(hours=50),
            warning_sent_at=now - timedelta(hours=20),
        )

        response = await client.post("/api/cron/availability-followup", headers=cron_headers)

        assert response.status_code == 200
        assert response.json()["warnings_sent"] == 1
        assert response.json()["suspensions"] == 1
        db_session.expire_all()
        assert db_session.get(Provider, warn_me.id).is_verified is True
        assert db_session.get(Provider, suspend_me.id).is_verified is False

    async def test_open_when_no_secret_configured(self, client, test_settings):
        test_settings.cron_secret = None

        response = await client.get("/api/cron/availability-followup")

        assert response.status_code == 200
        assert response.json()["suspensions"] == 0
