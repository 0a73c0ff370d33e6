"""
Unit tests for GuidService and GuidMixin.

Tests cover:
- UUID generation
- GUID encoding/decoding
- Format validation
- Model GUID properties
"""

import uuid

import pytest

from backend.src.models import Event, PastEvent
from backend.src.services.guid import (
    GuidService,
    ENTITY_PREFIXES,
    GUID_PATTERN,
)


class TestGuidGeneration:
    """Tests for UUID and GUID generation."""

    def test_generate_uuid_is_version_7(self):
        """Test that generated UUIDs are version 7 (time-ordered)."""
        result = GuidService.generate_uuid()
        assert isinstance(result, uuid.UUID)
        assert result.version == 7

    def test_generate_uuid_is_unique(self):
        """Test that generated UUIDs are unique."""
        uuids = [GuidService.generate_uuid() for _ in range(100)]
        assert len(set(uuids)) == 100

    @pytest.mark.parametrize("prefix", sorted(ENTITY_PREFIXES))
    def test_generate_guid(self, prefix):
        """Test generated GUIDs match the published pattern."""
        guid = GuidService.generate_guid(prefix)
        assert guid.startswith(f"{prefix}_")
        assert len(guid) == 30
        assert GUID_PATTERN.match(guid)


class TestGuidEncoding:
    """Tests for encode/parse."""

    def test_encode_is_lowercase(self):
        """Test that encoded GUIDs are lowercase."""
        result = GuidService.encode_uuid(GuidService.generate_uuid(), "evt")
        assert result == result.lower()

    def test_encode_bytes(self):
        """Test encoding a UUID given as raw bytes."""
        value = GuidService.generate_uuid()
        assert GuidService.encode_uuid(value.bytes, "pev") == GuidService.encode_uuid(value, "pev")

    def test_encode_invalid_prefix(self):
        """Test that an unknown prefix raises ValueError."""
        with pytest.raises(ValueError) as exc_info:
            GuidService.encode_uuid(GuidService.generate_uuid(), "col")
        assert "Invalid prefix" in str(exc_info.value)

    def test_parse_returns_original_uuid(self):
        """Test parse_guid recovers the encoded UUID."""
        value = GuidService.generate_uuid()
        guid = GuidService.encode_uuid(value, "evt")
        assert GuidService.parse_guid(guid, "evt") == value
        assert GuidService.parse_guid(guid.upper(), "evt") == value

    def test_parse_wrong_prefix(self):
        """Test an event GUID is not accepted as a past-event GUID."""
        guid = GuidService.generate_guid("evt")
        with pytest.raises(ValueError):
            GuidService.parse_guid(guid, "pev")


class TestGuidValidation:
    """Tests for validate_guid."""

    @pytest.mark.parametrize("value", [
        "",
        None,
        "evt_",
        "evt_01hgw2bbg0000000000000000",
        "evt_01hgw2bbg0000000000000000u",
        "usr_01hgw2bbg00000000000000000",
        "spring-meet",
    ])
    def test_invalid(self, value):
        """Test malformed identifiers are rejected."""
        assert GuidService.validate_guid(value) is False

    def test_expected_prefix(self):
        """Test prefix checking."""
        guid = GuidService.generate_guid("pev")
        assert GuidService.validate_guid(guid, "pev") is True
        assert GuidService.validate_guid(guid, "evt") is False


class TestModelGuids:
    """Tests for the GUID properties models inherit from GuidMixin."""

    def test_event_guid(self):
        """Test Event GUIDs use the evt prefix and parse back."""
        event = Event(uuid=GuidService.generate_uuid())
        assert event.guid.startswith("evt_")
        assert Event.parse_guid(event.guid) == event.uuid

    def test_past_event_guid(self):
        """Test PastEvent GUIDs use the pev prefix."""
        past_event = PastEvent(uuid=GuidService.generate_uuid())
        assert past_event.guid.startswith("pev_")

    def test_model_rejects_other_prefix(self):
        """Test a model refuses GUIDs of another entity type."""
        with pytest.raises(ValueError):
            PastEvent.parse_guid(GuidService.generate_guid("evt"))
