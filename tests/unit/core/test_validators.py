"""
test_validators.py
------------------
Unit tests for DataValidator normalisation helpers.
"""
from datetime import date, datetime

import pytest

from diarium.core.exceptions import ValidationError
from diarium.core.validators import DataValidator


class TestValidateOwner:
    """Test DataValidator.validate_owner()."""

    def test_accepts_plain_identifier(self):
        """Ordinary ids are returned unchanged."""
        assert DataValidator.validate_owner("alice_01") == "alice_01"

    @pytest.mark.parametrize("owner", ["", "   ", None, 42])
    def test_rejects_missing_owner(self, owner):
        """Empty or non-string owners are rejected."""
        with pytest.raises(ValidationError):
            DataValidator.validate_owner(owner)

    @pytest.mark.parametrize("owner", ["..", ".", "a/b", "a\\b", "x\x00y"])
    def test_rejects_path_like_owner(self, owner):
        """Owners that could escape the blob store are rejected."""
        with pytest.raises(ValidationError):
            DataValidator.validate_owner(owner)

    def test_rejects_overlong_owner(self):
        """Owners longer than 64 characters are rejected."""
        with pytest.raises(ValidationError):
            DataValidator.validate_owner("a" * 65)


class TestNormalizeDate:
    """Test DataValidator.normalize_date()."""

    def test_parses_iso_string(self):
        """YYYY-MM-DD strings become dates."""
        assert DataValidator.normalize_date("2024-01-15") == date(2024, 1, 15)

    def test_passes_dates_and_datetimes(self):
        """date is kept, datetime is truncated to its date."""
        assert DataValidator.normalize_date(date(2024, 1, 15)) == date(2024, 1, 15)
        assert DataValidator.normalize_date(datetime(2024, 1, 15, 9, 30)) == date(2024, 1, 15)

    @pytest.mark.parametrize("value", ["15/01/2024", "2024-1-15", "yesterday"])
    def test_rejects_malformed_string(self, value):
        """Anything but strict YYYY-MM-DD is rejected."""
        with pytest.raises(ValidationError):
            DataValidator.normalize_date(value)

    def test_rejects_impossible_date(self):
        """Well-formed but impossible dates are rejected."""
        with pytest.raises(ValidationError):
            DataValidator.normalize_date("2024-02-30")

    def test_none_returns_none(self):
        """None is passed through."""
        assert DataValidator.normalize_date(None) is None


class TestNormalizeDatetime:
    """Test DataValidator.normalize_datetime()."""

    def test_parses_iso_string(self):
        """ISO-8601 strings become datetimes."""
        assert DataValidator.normalize_datetime("2024-01-15T08:30:00") == datetime(
            2024, 1, 15, 8, 30
        )

    def test_rejects_garbage(self):
        """Unparseable strings raise ValidationError."""
        with pytest.raises(ValidationError):
            DataValidator.normalize_datetime("not a time")

    def test_rejects_other_types(self):
        """Non-string, non-datetime values raise ValidationError."""
        with pytest.raises(ValidationError):
            DataValidator.normalize_datetime(12345)


class TestScalarNormalizers:
    """Test normalize_string, normalize_int and strip_markup."""

    def test_normalize_string_strips_and_empties_to_none(self):
        """Whitespace-only strings become None."""
        assert DataValidator.normalize_string("  hi  ") == "hi"
        assert DataValidator.normalize_string("   ") is None
        assert DataValidator.normalize_string(None) is None

    def test_normalize_int(self):
        """Numeric strings convert; bools and junk do not."""
        assert DataValidator.normalize_int("4") == 4
        assert DataValidator.normalize_int(3) == 3
        assert DataValidator.normalize_int(True) is None
        assert DataValidator.normalize_int("four") is None

    def test_strip_markup(self):
        """Markup tags are removed from free text."""
        assert DataValidator.strip_markup("<b>Long</b> day<br/>") == "Long day"
        assert DataValidator.strip_markup(None) == ""

