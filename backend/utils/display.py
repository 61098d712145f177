"""
Display utilities for companion and user names
"""
from typing import Optional

import models


def get_companion_display_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
) -> str:
    """
    Build the display name for a companion record.

    "Jane Doe" becomes "Jane D.". With only one name part that part is used,
    then an explicitly given name, then the local part of the email.

    Examples:
        get_companion_display_name("Jane", "Doe") -> "Jane D."
        get_companion_display_name(email="jules@example.com") -> "jules"
    """
    first = (first_name or "").strip()
    last = (last_name or "").strip()

    if first and last:
        return f"{first} {last[0].upper()}."
    if first:
        return first
    if last:
        return last
    if name and name.strip():
        return name.strip()
    if email and "@" in email:
        return email.split("@", 1)[0]
    return email or "Unknown"


def get_user_display_name(user: Optional[models.User]) -> str:
    """Full name of a registered user, falling back to their email."""
    if not user:
        return "Unknown User"

    full_name = " ".join(part for part in (user.first_name, user.last_name) if part)
    return full_name or user.email
