"""
Tests for schema validation and text utilities.
"""

import pytest
from afgjobs.schema import (
    escape_html,
    is_email,
    is_phone,
    safe_http_url,
    validate_feedback,
    validate_posting,
    validate_seeker_profile,
)


class TestValidatePosting:
    """Test post-a-job validation."""

    def test_valid_posting(self, valid_job_posting):
        """Valid posting should have no errors."""
        assert validate_posting(valid_job_posting) == []

    def test_missing_required_field(self, valid_job_posting):
        """Missing required field should error."""
        del valid_job_posting["title"]
        errors = validate_posting(valid_job_posting)
        assert any("title" in err.lower() for err in errors)

    def test_blank_required_field(self, valid_job_posting):
        valid_job_posting["posterType"] = "   "
        errors = validate_posting(valid_job_posting)
        assert any("posterType" in err for err in errors)

    @pytest.mark.parametrize("price", [-1, "abc", None, "", float("inf"), True, 10 ** 400])
    def test_invalid_price(self, valid_job_posting, price):
        valid_job_posting["price"] = price
        errors = validate_posting(valid_job_posting)
        assert any("price" in err for err in errors)

    @pytest.mark.parametrize("price", [0, 12.5, "40"])
    def test_valid_price(self, valid_job_posting, price):
        valid_job_posting["price"] = price
        assert validate_posting(valid_job_posting) == []

    def test_description_too_short(self, valid_job_posting):
        valid_job_posting["description"] = "Too short"
        errors = validate_posting(valid_job_posting)
        assert any("description" in err and "at least" in err for err in errors)

    def test_description_too_long(self, valid_job_posting):
        valid_job_posting["description"] = "x" * 1001
        errors = validate_posting(valid_job_posting)
        assert any("description" in err and "at most" in err for err in errors)

    def test_bad_contact(self, valid_job_posting):
        valid_job_posting["contact"] = "call me maybe"
        errors = validate_posting(valid_job_posting)
        assert any("contact" in err for err in errors)

    def test_phone_contact(self, valid_job_posting):
        valid_job_posting["contact"] = "+93 700 123 456"
        assert validate_posting(valid_job_posting) == []

    def test_online_requires_sample_link(self, valid_job_posting):
        valid_job_posting["sampleLink"] = ""
        errors = validate_posting(valid_job_posting)
        assert any("sampleLink" in err and "online" in err for err in errors)

    def test_offline_needs_no_sample_link(self, valid_job_posting):
        valid_job_posting["isOnline"] = False
        valid_job_posting["sampleLink"] = ""
        assert validate_posting(valid_job_posting) == []

    @pytest.mark.parametrize("field", ["sampleLink", "portfolioLink"])
    def test_links_must_be_http(self, valid_job_posting, field):
        valid_job_posting[field] = "ftp://example.com/file"
        errors = validate_posting(valid_job_posting)
        assert any(field in err for err in errors)

    def test_media_needs_image_or_video_type(self, valid_job_posting):
        valid_job_posting["media"] = "data:application/pdf;base64,AAAA"
        valid_job_posting["mediaType"] = "application/pdf"
        errors = validate_posting(valid_job_posting)
        assert any("mediaType" in err for err in errors)

        valid_job_posting["mediaType"] = "video/mp4"
        assert validate_posting(valid_job_posting) == []


class TestShapeChecks:
    @pytest.mark.parametrize("value", ["a@b.co", "  user.name@example.org "])
    def test_emails(self, value):
        assert is_email(value)

    @pytest.mark.parametrize("value", ["", "a@b", "no at.com", "a b@c.com", None])
    def test_not_emails(self, value):
        assert not is_email(value)

    @pytest.mark.parametrize("value", ["+93 700 123 456", "(020) 555-1234", "0700123456"])
    def test_phones(self, value):
        assert is_phone(value)

    @pytest.mark.parametrize("value", ["12345", "phone", "+93-abc-1234"])
    def test_not_phones(self, value):
        assert not is_phone(value)

    def test_safe_http_url(self):
        assert safe_http_url(" https://example.com/x ") == "https://example.com/x"
        assert safe_http_url("HTTP://example.com") == "HTTP://example.com"
        assert safe_http_url("javascript:alert(1)") == ""
        assert safe_http_url("example.com") == ""
        assert safe_http_url(None) == ""

    def test_escape_html(self):
        assert escape_html('<a href="x">Tom & Jerry\'s</a>') == (
            "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#39;s&lt;/a&gt;"
        )
        assert escape_html(None) == ""
        assert escape_html(120) == "120"


class TestSubmissionValidation:
    def test_feedback(self):
        assert validate_feedback("Anonymous", "", "Great site") == []
        assert validate_feedback("Anonymous", "", "  ") == ["Please enter your feedback."]
        assert validate_feedback("A", "bad", "hi") == ["Please enter a valid email address."]

    def test_seeker_profile(self):
        skills = "Translation, copywriting and editing"
        assert validate_seeker_profile("Ali", "Kabul", skills, "ali@example.com") == []
        assert validate_seeker_profile("", "Kabul", skills, "ali@example.com") == ["Please complete all fields."]
        assert any("20 characters" in e for e in validate_seeker_profile("Ali", "Kabul", "short", "ali@example.com"))
        assert any("Contact" in e for e in validate_seeker_profile("Ali", "Kabul", skills, "nope"))
