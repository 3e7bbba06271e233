"""Unit tests for headquarters/location parsing."""
import pytest

from buyerfit.utils.addresses import extract_state_from_location, parse_address


class TestParseAddress:
    """Test usaddress wrapper."""

    def test_parse_address(self):
        """Test address parsing with usaddress."""
        parsed = parse_address("123 Main St, Philadelphia, PA 19101")
        assert isinstance(parsed, dict)
        assert parsed.get("StateName") == "PA"

    def test_empty(self):
        """Test empty input returns an empty dict."""
        assert parse_address("") == {}
        assert parse_address(None) == {}


class TestExtractStateFromLocation:
    """Test state extraction from city/state strings."""

    @pytest.mark.parametrize("location,expected", [
        ("Tampa, FL", "FL"),
        ("Boise, Idaho", "ID"),
        ("Raleigh, North Carolina", "NC"),
        ("Austin, TX 78701", "TX"),
        ("Denver, co", "CO"),
        ("Texas", "TX"),
    ])
    def test_known_locations(self, location, expected):
        """Test common headquarters formats."""
        assert extract_state_from_location(location) == expected

    def test_unrecognized(self):
        """Test locations without a US state."""
        assert extract_state_from_location("Toronto, Ontario") == ""
        assert extract_state_from_location("") == ""
        assert extract_state_from_location(None) == ""
