"""User and organization scope from forwarded headers or environment."""

from collections.abc import Mapping
from dataclasses import dataclass

from lotscan.config import get_settings


@dataclass
class CurrentUser:
    """Current user information."""

    email: str | None
    name: str | None
    org_id: str | None = None

    @property
    def display_name(self) -> str:
        """Get display name, falling back to email or 'Unknown'."""
        if self.name:
            return self.name
        if self.email:
            # Extract username from email
            return self.email.split("@")[0]
        return "Unknown"

    @property
    def is_authenticated(self) -> bool:
        """Check if user is authenticated (has email)."""
        return bool(self.email)

    @property
    def has_org_scope(self) -> bool:
        """Check if the user is scoped to an organization."""
        return bool(self.org_id)


def get_current_user(headers: Mapping[str, str] | None = None) -> CurrentUser:
    """Extract current user from request headers or environment.

    Behind the identity proxy, user info is provided via HTTP headers:
    - X-Forwarded-Email: user email from IdP
    - X-Forwarded-Preferred-Username: username from IdP
    - X-Org-Id: organization the request is scoped to

    In development, falls back to USER_EMAIL, USER_NAME and USER_ORG_ID.
    Header names are matched case-insensitively.
    """
    normalized = {k.lower(): v for k, v in (headers or {}).items()}

    # Try proxy headers first (prod)
    email = normalized.get("x-forwarded-email")
    name = normalized.get("x-forwarded-preferred-username")
    org_id = normalized.get("x-org-id")

    # Fall back to environment variables (dev)
    if not email:
        settings = get_settings()
        email = settings.user.email or None
        name = name or settings.user.name or None
        org_id = org_id or settings.user.org_id or None

    return CurrentUser(email=email, name=name, org_id=org_id)
