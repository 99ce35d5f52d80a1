"""Default derivation for newly created profiles."""

from typing import Any, Mapping, Optional, Union

from modules.identity.models import Identity

from .models import Profile, ProfileInput


def derive_username(email: Optional[str], fallback_id: str = "") -> str:
    """
    Username from the local part of an email address.

    Identities without an email (phone or some OAuth accounts) get
    ``user-`` plus the first eight characters of their id.
    """
    if email:
        local = email.split("@", 1)[0]
        if local:
            return local
    return f"user-{fallback_id[:8]}" if fallback_id else ""


def coerce_profile_input(extra: Union[ProfileInput, Mapping[str, Any], None]) -> ProfileInput:
    if extra is None:
        return ProfileInput()
    if isinstance(extra, ProfileInput):
        return extra
    return ProfileInput.model_validate(dict(extra))


def build_default_profile(
    identity: Identity,
    extra: Union[ProfileInput, Mapping[str, Any], None] = None,
    rating: float = 5.0,
) -> Profile:
    """
    Synthesize the first profile for an identity.

    The identity's own display name and photo win over caller data.
    Rating and trade count always start at their defaults.
    """
    data = coerce_profile_input(extra)
    return Profile(
        id=identity.id,
        email=identity.email,
        full_name=identity.display_name or data.full_name or "",
        username=data.username or derive_username(identity.email, identity.id),
        registration_no=data.registration_no or "",
        phone_number=data.phone_number or "",
        profile_picture=identity.photo_url or data.profile_picture or "",
        rating=rating,
        total_trades=0,
    )
