import html
import re
from typing import Any, Optional


def escape(value: Any) -> str:
    """
    Escape a value for interpolation into an email template.
    None becomes an empty string; lists are joined with commas.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return html.escape(", ".join(str(item) for item in value), quote=True)
    return html.escape(str(value), quote=True)


def clean_text(value: Optional[str], max_length: int = 2000) -> Optional[str]:
    """
    Trim free-text input, drop control characters and cap its length.
    Returns None for empty input.
    """
    if value is None:
        return None
    value = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value).strip()
    if not value:
        return None
    return value[:max_length]
