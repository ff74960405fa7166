"""Shared validation utilities"""

import re
import unicodedata
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

SERVICE_CODES = ("RN", "LPN", "PCS")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, trimmed email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a US phone number and return it in E.164 format (+1XXXXXXXXXX).

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]
    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits for US numbers")
    return f"+1{digits}"


def validate_zip_code(zip_code: str) -> str:
    zip_code = zip_code.strip()
    if not re.match(r"^\d{5}(-\d{4})?$", zip_code):
        raise ValueError("ZIP code must be 5 digits")
    return zip_code[:5]


def validate_services(services: Optional[list]) -> list:
    """Normalize service codes to upper case and reject unknown ones"""
    if not services:
        return []
    normalized = []
    for service in services:
        code = str(service).strip().upper()
        if code not in SERVICE_CODES:
            raise ValueError(f"Unknown service: {service}")
        if code not in normalized:
            normalized.append(code)
    return normalized


def slugify(value: str) -> str:
    """Lowercase ASCII slug: 'Peach State Care, LLC' -> 'peach-state-care-llc'"""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value.lower()).strip("-")
    return value or "provider"
