"""Input validators shared by schemas."""

import re
from typing import Final

MAX_TENANT_SLUG_LENGTH: Final[int] = 56
TENANT_SLUG_REGEX: Final[str] = r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$"
WEBSITE_REGEX: Final[str] = r"^https?://\S+$"

_TENANT_SLUG_PATTERN: Final[re.Pattern[str]] = re.compile(TENANT_SLUG_REGEX)
_WEBSITE_PATTERN: Final[re.Pattern[str]] = re.compile(WEBSITE_REGEX, re.IGNORECASE)


def validate_tenant_slug_format(slug: str) -> str:
    """Validate tenant slug format.

    This validates **format only**. Length is enforced by Field(max_length=...).
    """
    if not _TENANT_SLUG_PATTERN.match(slug):
        raise ValueError(
            "Slug must start with a letter and contain only lowercase letters, numbers, "
            "and single hyphens as separators"
        )
    return slug


def validate_website(url: str | None) -> str | None:
    """Websites must be absolute http(s) URLs. Empty strings become None."""
    if url is None or url == "":
        return None
    if not _WEBSITE_PATTERN.match(url):
        raise ValueError("Website must start with http:// or https://")
    return url
