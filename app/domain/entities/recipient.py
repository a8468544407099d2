"""Domain entity describing how to reach a notification recipient."""

from dataclasses import dataclass


@dataclass
class Recipient:
    """Contact details of a user that can receive notifications."""

    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    push_token: str | None = None
    tenant_id: str | None = None
    is_active: bool = True


__all__ = ["Recipient"]
