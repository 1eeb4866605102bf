"""
tests/test_rules.py – field rules: email and URL checks keep their messages.
"""
import pytest
from pydantic import ValidationError

from trucktrace.core import rules
from trucktrace.models import CustomerRegisterRequest

PASSWORD = "Str0ngPass"


class TestEmail:
    def test_normalises_to_lowercase(self):
        assert rules.email("  Jane@Example.com ") == "jane@example.com"

    @pytest.mark.parametrize("value", ["a@b..com", "a@-b.com", ".a@b.com", "a@b.c_m", "no-at-sign", ""])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError, match="Valid email is required"):
            rules.email(value)


class TestUrl:
    rule = staticmethod(rules.url("Logo URL must be a valid URL"))

    @pytest.mark.parametrize("value", ["https://cdn.example.com/logo.png", "http://example.com"])
    def test_accepts_http_urls(self, value):
        assert self.rule(f" {value} ") == value

    @pytest.mark.parametrize("value", ["http://exa mple.com/x.png", "https://:80", "ftp://example.com/a", "logo.png"])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValueError, match="Logo URL must be a valid URL"):
            self.rule(value)

    def test_none_passes(self):
        assert self.rule(None) is None


class TestSchemaMessages:
    def test_bad_email_and_photo_surface_field_messages(self):
        with pytest.raises(ValidationError) as exc:
            CustomerRegisterRequest(
                username="jane_doe", email="a@b..com", password=PASSWORD,
                profile_photo_url="http://exa mple.com/me.png",
            )
        messages = {e["loc"][0]: e["msg"] for e in exc.value.errors()}
        assert messages["email"].endswith("Valid email is required")
        assert messages["profile_photo_url"].endswith("Profile photo URL must be a valid URL")
