"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility.
Callers pass already-escaped values; see utils.sanitization.escape.
"""

from typing import Optional

# GAPP theme colors - Georgia peach / navy
THEME = {
    "primary": "#1e3a8a",
    "primary_dark": "#172554",
    "primary_light": "#dbeafe",
    "accent": "#f97316",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

SITE_URL = "https://www.georgiagapp.com"
LOGO_URL = "https://www.georgiagapp.com/logo.png"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_provider_email: bool = False,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_provider_email:
        footer_notice = """
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          You're receiving this because your agency is listed in the GAPP provider directory.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="GAPP" width="120px" href="{SITE_URL}" padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              Georgia Pediatric Program (GAPP) Provider Directory
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _two_button_section(available_url: str, not_available_url: str) -> str:
    return f"""
    <mj-button href="{available_url}" background-color="{THEME['success']}" color="#ffffff"
      font-weight="600" border-radius="8px" padding="8px 0" width="100%">
      Yes, I'm taking new cases
    </mj-button>
    <mj-button href="{not_available_url}" background-color="{THEME['text_muted']}" color="#ffffff"
      font-weight="600" border-radius="8px" padding="8px 0" width="100%">
      Not this week
    </mj-button>
    """


# ============================================
# Availability workflow
# ============================================


def availability_ping_template(provider_name: str, available_url: str, not_available_url: str) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>
      Are you accepting new GAPP cases this week? One click updates your listing
      so case managers know who to call.
    </mj-text>
    {_two_button_section(available_url, not_available_url)}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      This link expires in 7 days. Providers that don't respond within 48 hours
      lose their verified badge until they check in again.
    </mj-text>
    """
    return get_base_template(
        title="Weekly availability check",
        preview_text="Are you taking new GAPP cases this week?",
        content_sections=content,
        is_provider_email=True,
    )


def availability_warning_template(provider_name: str, available_url: str, not_available_url: str) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>
      We haven't heard back about this week's availability. Please answer within
      24 hours to keep your verified status in the directory.
    </mj-text>
    {_two_button_section(available_url, not_available_url)}
    """
    return get_base_template(
        title="Reminder: confirm your availability",
        preview_text="Your verified badge is at risk",
        content_sections=content,
        is_provider_email=True,
    )


def suspension_notice_template(provider_name: str, contact_url: str) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>
      Because we didn't receive a response to this week's availability check,
      your verified badge has been paused and your listing no longer appears in
      case manager searches.
    </mj-text>
    <mj-text>Reply to this email or contact us to restore your verification.</mj-text>
    """
    return get_base_template(
        title="Your verified status has been paused",
        preview_text="Missed availability check-in",
        content_sections=content,
        cta_url=contact_url,
        cta_label="Restore verification",
        is_provider_email=True,
    )


def admin_suspension_report_template(rows: list[dict]) -> str:
    """rows: dicts with name, email, tier (already escaped)"""
    items = "".join(
        f"<tr><td style=\"padding:4px 8px\">{row['name']}</td>"
        f"<td style=\"padding:4px 8px\">{row['email']}</td>"
        f"<td style=\"padding:4px 8px\">{row['tier']}</td></tr>"
        for row in rows
    )
    content = f"""
    <mj-text>{len(rows)} provider(s) were suspended for missing the availability check-in.</mj-text>
    <mj-table>
      <tr style="border-bottom:1px solid {THEME['border']};text-align:left">
        <th style="padding:4px 8px">Provider</th><th style="padding:4px 8px">Email</th><th style="padding:4px 8px">Tier</th>
      </tr>
      {items}
    </mj-table>
    """
    return get_base_template(
        title="Availability follow-up report",
        preview_text="Providers suspended for missed check-in",
        content_sections=content,
    )


# ============================================
# Claims and listings
# ============================================


def claim_confirmation_template(claimer_name: str, provider_name: str, profile_url: str) -> str:
    content = f"""
    <mj-text>Hi {claimer_name},</mj-text>
    <mj-text>
      You've claimed <strong>{provider_name}</strong> in the GAPP provider directory.
      Our team will review your claim and reach out about verification.
    </mj-text>
    """
    return get_base_template(
        title="Your listing has been claimed",
        preview_text=f"You claimed {provider_name}",
        content_sections=content,
        cta_url=profile_url,
        cta_label="View your listing",
        is_provider_email=True,
    )


def admin_claim_notification_template(
    provider_name: str, claimer_name: str, claimer_email: str, claimer_phone: str
) -> str:
    content = f"""
    <mj-text><strong>{provider_name}</strong> was just claimed.</mj-text>
    <mj-text>
      Name: {claimer_name}<br/>
      Email: {claimer_email}<br/>
      Phone: {claimer_phone}
    </mj-text>
    """
    return get_base_template(
        title="New listing claim",
        preview_text=f"{provider_name} was claimed",
        content_sections=content,
    )


def listing_request_confirmation_template(contact_name: str, business_name: str) -> str:
    content = f"""
    <mj-text>Hi {contact_name},</mj-text>
    <mj-text>
      Thanks for requesting a listing for <strong>{business_name}</strong>.
      We review new listings within a few business days and will email you once it's live.
    </mj-text>
    """
    return get_base_template(
        title="We received your listing request",
        preview_text="Listing request received",
        content_sections=content,
        is_provider_email=True,
    )


def admin_listing_request_template(
    business_name: str, contact_name: str, contact_email: str, city: str, services: str
) -> str:
    content = f"""
    <mj-text>A new listing request is waiting for review.</mj-text>
    <mj-text>
      Business: {business_name}<br/>
      Contact: {contact_name} ({contact_email})<br/>
      City: {city}<br/>
      Services: {services}
    </mj-text>
    """
    return get_base_template(
        title="New listing request",
        preview_text=f"{business_name} requested a listing",
        content_sections=content,
    )


def listing_approved_template(contact_name: str, business_name: str, profile_url: str) -> str:
    content = f"""
    <mj-text>Hi {contact_name},</mj-text>
    <mj-text><strong>{business_name}</strong> is now listed in the GAPP provider directory.</mj-text>
    """
    return get_base_template(
        title="Your listing is live",
        preview_text=f"{business_name} is now listed",
        content_sections=content,
        cta_url=profile_url,
        cta_label="View your listing",
        is_provider_email=True,
    )


def provider_inquiry_confirmation_template(contact_name: str, agency_name: str) -> str:
    content = f"""
    <mj-text>Hi {contact_name},</mj-text>
    <mj-text>
      Thanks for registering <strong>{agency_name}</strong>. A member of our team
      will contact you shortly.
    </mj-text>
    """
    return get_base_template(
        title="Registration received",
        preview_text="Thanks for registering with GAPP",
        content_sections=content,
        is_provider_email=True,
    )


def admin_provider_inquiry_template(
    agency_name: str, contact_name: str, email: str, phone: str, county: str, services: str, message: str
) -> str:
    content = f"""
    <mj-text>
      Agency: {agency_name}<br/>
      Contact: {contact_name}<br/>
      Email: {email}<br/>
      Phone: {phone}<br/>
      County: {county}<br/>
      Services: {services}
    </mj-text>
    <mj-text>{message}</mj-text>
    """
    return get_base_template(
        title="New provider registration",
        preview_text=f"{agency_name} registered",
        content_sections=content,
    )


# ============================================
# Leads
# ============================================


def callback_lead_template(
    provider_name: str,
    parent_name: str,
    phone: str,
    email: str,
    zip_code: str,
    county: str,
    service_label: str,
    urgency_label: str,
    time_label: str,
    special_needs: str,
) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>A family found you in the GAPP directory and asked for a callback.</mj-text>
    <mj-text>
      <strong>Parent:</strong> {parent_name}<br/>
      <strong>Phone:</strong> {phone}<br/>
      <strong>Email:</strong> {email}<br/>
      <strong>ZIP / county:</strong> {zip_code} {county}<br/>
      <strong>Service needed:</strong> {service_label}<br/>
      <strong>Urgency:</strong> {urgency_label}<br/>
      <strong>Best time to call:</strong> {time_label}
    </mj-text>
    <mj-text>{special_needs}</mj-text>
    """
    return get_base_template(
        title="New callback request",
        preview_text=f"{parent_name} is waiting for your call",
        content_sections=content,
        is_provider_email=True,
    )


# ============================================
# Verification and tiers
# ============================================


def provider_verified_template(provider_name: str, profile_url: str) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>
      Your listing is now <strong>verified</strong>. Every Monday we'll email you a
      one-click availability check so case managers can see you're taking cases.
    </mj-text>
    """
    return get_base_template(
        title="You're verified",
        preview_text="Your GAPP listing is verified",
        content_sections=content,
        cta_url=profile_url,
        cta_label="View your listing",
        is_provider_email=True,
    )


def listing_live_template(provider_name: str, profile_url: str) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>Your verified listing is live and visible to families and case managers.</mj-text>
    """
    return get_base_template(
        title="Your listing is live",
        preview_text="Families can now find you",
        content_sections=content,
        cta_url=profile_url,
        cta_label="See your listing",
        is_provider_email=True,
    )


def upgrade_offer_template(provider_name: str, upgrade_url: str) -> str:
    content = f"""
    <mj-text>Hi {provider_name},</mj-text>
    <mj-text>
      Featured listings appear first in search results and case manager lookups.
      Upgrade to get in front of more families.
    </mj-text>
    """
    return get_base_template(
        title="Get featured in the GAPP directory",
        preview_text="Appear first in search results",
        content_sections=content,
        cta_url=upgrade_url,
        cta_label="Upgrade listing",
        is_provider_email=True,
    )
