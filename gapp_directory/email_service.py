"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import Settings
from .email_templates import (
    admin_claim_notification_template,
    admin_listing_request_template,
    admin_provider_inquiry_template,
    admin_suspension_report_template,
    availability_ping_template,
    availability_warning_template,
    callback_lead_template,
    claim_confirmation_template,
    listing_approved_template,
    listing_live_template,
    listing_request_confirmation_template,
    provider_inquiry_confirmation_template,
    provider_verified_template,
    suspension_notice_template,
    upgrade_offer_template,
)
from .models import AvailabilityResponse, CallbackRequest, ListingRequest, Provider, ProviderInquiry
from .utils.sanitization import escape

logger = logging.getLogger(__name__)

SERVICE_LABELS = {
    "RN": "Registered Nurse (RN)",
    "LPN": "Licensed Practical Nurse (LPN)",
    "PCS": "Personal Care Services (PCS)",
    "not_sure": "Not sure yet",
}
URGENCY_LABELS = {
    "asap": "As soon as possible",
    "this_month": "Within the month",
    "researching": "Just researching",
}
TIME_LABELS = {
    "morning": "Morning (8am - 12pm)",
    "afternoon": "Afternoon (12pm - 5pm)",
    "evening": "Evening (5pm - 8pm)",
}


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails a send"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


class EmailSender(ABC):
    """Outgoing mail interface. Handlers and jobs receive one instance."""

    def render(self, mjml_content: str) -> str:
        return compile_mjml_to_html(mjml_content)

    @abstractmethod
    async def send(self, from_address: str, to: Union[str, list[str]], subject: str, html: str) -> dict:
        """Deliver one message or raise EmailDeliveryError"""


class ResendEmailSender(EmailSender):
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key
        if api_key:
            resend.api_key = api_key

    async def send(self, from_address: str, to: Union[str, list[str]], subject: str, html: str) -> dict:
        if not self.api_key:
            logger.error("❌ No email service configured - RESEND_API_KEY missing")
            raise EmailDeliveryError("Email service not configured")

        recipients = [to] if isinstance(to, str) else to
        try:
            logger.info(f"📧 Sending email via Resend to: {recipients}")
            response = resend.Emails.send(
                {"from": from_address, "to": recipients, "subject": subject, "html": html}
            )
            logger.info(f"✅ Email sent successfully via Resend: {response}")
            return response
        except Exception as e:
            logger.error(f"❌ Email send error to {recipients}: {e}")
            raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


async def deliver_email(
    sender: EmailSender,
    to: Optional[str],
    subject: str,
    mjml_content: str,
    from_address: str,
) -> bool:
    """
    Best-effort send. Never raises: failures are logged and reported as False
    so that the database write the email relates to stands.
    """
    if not to:
        logger.warning(f"⚠️ Skipping email '{subject}': no recipient")
        return False
    try:
        html = sender.render(mjml_content)
        await sender.send(from_address, to, subject, html)
        return True
    except Exception as e:
        logger.warning(f"⚠️ Email '{subject}' to {to} failed: {e}")
        return False


# ============================================
# Availability workflow emails
# ============================================


def availability_links(settings: Settings, token: str) -> tuple[str, str]:
    base = f"{settings.base_url}/availability/{token}"
    return (
        f"{base}?response={AvailabilityResponse.AVAILABLE.value}",
        f"{base}?response={AvailabilityResponse.NOT_AVAILABLE.value}",
    )


async def send_availability_ping(sender: EmailSender, settings: Settings, provider: Provider, token: str) -> bool:
    available_url, not_available_url = availability_links(settings, token)
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject="Are you taking new GAPP cases this week?",
        mjml_content=availability_ping_template(escape(provider.name), available_url, not_available_url),
        from_address=settings.email_from_address,
    )


async def send_availability_warning(
    sender: EmailSender, settings: Settings, provider: Provider, token: str
) -> bool:
    available_url, not_available_url = availability_links(settings, token)
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject="Reminder: confirm your availability to keep your verified badge",
        mjml_content=availability_warning_template(escape(provider.name), available_url, not_available_url),
        from_address=settings.email_from_address,
    )


async def send_suspension_notice(sender: EmailSender, settings: Settings, provider: Provider) -> bool:
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject="Your GAPP verified status has been paused",
        mjml_content=suspension_notice_template(escape(provider.name), f"{settings.base_url}/contact"),
        from_address=settings.email_from_address,
    )


async def send_suspension_report(sender: EmailSender, settings: Settings, suspended: list[Provider]) -> bool:
    rows = [
        {
            "name": escape(p.name),
            "email": escape(p.contact_email),
            "tier": escape(p.tier.name.title()),
        }
        for p in suspended
    ]
    return await deliver_email(
        sender,
        to=settings.admin_email,
        subject=f"Availability follow-up: {len(suspended)} provider(s) suspended",
        mjml_content=admin_suspension_report_template(rows),
        from_address=settings.email_from_address,
    )


# ============================================
# Claims, listings and registrations
# ============================================


def profile_url(settings: Settings, provider: Provider) -> str:
    return f"{settings.base_url}/providers/{provider.slug}"


async def send_claim_emails(sender: EmailSender, settings: Settings, provider: Provider) -> None:
    await deliver_email(
        sender,
        to=provider.claimed_by_email,
        subject=f"You've claimed {provider.name} on GAPP",
        mjml_content=claim_confirmation_template(
            escape(provider.claimer_name), escape(provider.name), profile_url(settings, provider)
        ),
        from_address=settings.email_from_address,
    )
    await deliver_email(
        sender,
        to=settings.admin_email,
        subject=f"Listing claimed: {provider.name}",
        mjml_content=admin_claim_notification_template(
            escape(provider.name),
            escape(provider.claimer_name),
            escape(provider.claimed_by_email),
            escape(provider.claimer_phone),
        ),
        from_address=settings.email_from_address,
    )


async def send_listing_request_emails(sender: EmailSender, settings: Settings, request: ListingRequest) -> None:
    await deliver_email(
        sender,
        to=request.contact_email,
        subject="We received your GAPP listing request",
        mjml_content=listing_request_confirmation_template(
            escape(request.contact_name), escape(request.business_name)
        ),
        from_address=settings.email_from_address,
    )
    await deliver_email(
        sender,
        to=settings.admin_email,
        subject=f"New listing request: {request.business_name}",
        mjml_content=admin_listing_request_template(
            escape(request.business_name),
            escape(request.contact_name),
            escape(request.contact_email),
            escape(request.city),
            escape(request.services_offered),
        ),
        from_address=settings.email_from_address,
    )


async def send_listing_approved(
    sender: EmailSender, settings: Settings, request: ListingRequest, provider: Provider
) -> bool:
    return await deliver_email(
        sender,
        to=request.contact_email,
        subject=f"{request.business_name} is now listed on GAPP",
        mjml_content=listing_approved_template(
            escape(request.contact_name), escape(request.business_name), profile_url(settings, provider)
        ),
        from_address=settings.email_from_address,
    )


async def send_provider_inquiry_emails(sender: EmailSender, settings: Settings, inquiry: ProviderInquiry) -> None:
    await deliver_email(
        sender,
        to=inquiry.email,
        subject="Thanks for registering with GAPP",
        mjml_content=provider_inquiry_confirmation_template(
            escape(inquiry.contact_name), escape(inquiry.agency_name)
        ),
        from_address=settings.email_from_address,
    )
    await deliver_email(
        sender,
        to=settings.admin_email,
        subject=f"New provider registration: {inquiry.agency_name}",
        mjml_content=admin_provider_inquiry_template(
            escape(inquiry.agency_name),
            escape(inquiry.contact_name),
            escape(inquiry.email),
            escape(inquiry.phone),
            escape(inquiry.county),
            escape(inquiry.services),
            escape(inquiry.message),
        ),
        from_address=settings.email_from_address,
    )


async def send_callback_lead(
    sender: EmailSender, settings: Settings, provider: Provider, lead: CallbackRequest
) -> bool:
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject=f"New callback request from {lead.parent_name}",
        mjml_content=callback_lead_template(
            provider_name=escape(provider.name),
            parent_name=escape(lead.parent_name),
            phone=escape(lead.phone),
            email=escape(lead.email),
            zip_code=escape(lead.zip_code),
            county=escape(lead.county),
            service_label=escape(SERVICE_LABELS.get(lead.service_needed, lead.service_needed)),
            urgency_label=escape(URGENCY_LABELS.get(lead.urgency, lead.urgency)),
            time_label=escape(TIME_LABELS.get(lead.preferred_callback_time, "Any time")),
            special_needs=escape(lead.special_needs),
        ),
        from_address=settings.leads_from_address,
    )


# ============================================
# Verification and tier emails
# ============================================


async def send_provider_verified(sender: EmailSender, settings: Settings, provider: Provider) -> bool:
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject="Your GAPP listing is verified",
        mjml_content=provider_verified_template(escape(provider.name), profile_url(settings, provider)),
        from_address=settings.email_from_address,
    )


async def send_listing_live(sender: EmailSender, settings: Settings, provider: Provider) -> bool:
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject="Your GAPP listing is live",
        mjml_content=listing_live_template(escape(provider.name), profile_url(settings, provider)),
        from_address=settings.email_from_address,
    )


async def send_upgrade_offer(sender: EmailSender, settings: Settings, provider: Provider) -> bool:
    return await deliver_email(
        sender,
        to=provider.contact_email,
        subject="Get featured in the GAPP directory",
        mjml_content=upgrade_offer_template(escape(provider.name), f"{settings.base_url}/pricing"),
        from_address=settings.email_from_address,
    )
