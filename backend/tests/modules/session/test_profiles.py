"""Tests for default profile derivation."""

from modules.identity.models import Identity
from modules.session.models import ProfileInput
from modules.session.profiles import build_default_profile, coerce_profile_input, derive_username


class TestDeriveUsername:
    def test_local_part_of_email(self):
        assert derive_username("alice@example.com") == "alice"

    def test_without_email_uses_id_prefix(self):
        assert derive_username(None, "abcdef123456") == "user-abcdef12"

    def test_empty_local_part(self):
        assert derive_username("@example.com", "abcdef123456") == "user-abcdef12"

    def test_nothing_to_derive_from(self):
        assert derive_username(None) == ""


class TestCoerceProfileInput:
    def test_none(self):
        assert coerce_profile_input(None) == ProfileInput()

    def test_accepts_both_naming_styles(self):
        extra = coerce_profile_input({"registrationNo": "R-1", "phone_number": "555"})
        assert extra.registration_no == "R-1"
        assert extra.phone_number == "555"

    def test_ignores_unknown_and_protected_keys(self):
        """Rating and trade count cannot be supplied by callers."""
        extra = coerce_profile_input({"rating": 1.0, "totalTrades": 99})
        assert extra == ProfileInput()


class TestBuildDefaultProfile:
    def test_defaults(self):
        profile = build_default_profile(Identity(id="u1", email="alice@example.com"))
        assert profile.id == "u1"
        assert profile.email == "alice@example.com"
        assert profile.username == "alice"
        assert profile.rating == 5.0
        assert profile.total_trades == 0
        assert profile.full_name == ""
        assert profile.profile_picture == ""

    def test_caller_data_fills_gaps(self):
        profile = build_default_profile(
            Identity(id="u1", email="alice@example.com"),
            {"fullName": "Alice Doe", "username": "ally", "registrationNo": "R-1"},
        )
        assert profile.full_name == "Alice Doe"
        assert profile.username == "ally"
        assert profile.registration_no == "R-1"

    def test_identity_wins_over_caller_data(self):
        identity = Identity(id="u1", email="a@b.c", display_name="From Google", photo_url="https://img")
        profile = build_default_profile(identity, ProfileInput(full_name="Typed", profile_picture="other"))
        assert profile.full_name == "From Google"
        assert profile.profile_picture == "https://img"

    def test_configured_rating(self):
        profile = build_default_profile(Identity(id="u1"), rating=3.5)
        assert profile.rating == 3.5
        assert profile.username == "user-u1"
