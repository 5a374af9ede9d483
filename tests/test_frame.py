"""
Frame Tests
===========

Typed field access and immutability of decoded Teleinfo frames.
"""

import dataclasses

import pytest

from teleinfo_gateway.teleinfo.frame import (
    FieldMissing,
    FieldNotNumeric,
    Frame,
    FrameFieldError,
    detect_tariff_type,
)


class TestGetUintField:
    """Unsigned integer parsing of named fields."""
    
    def test_parses_zero_padded_values(self, historic_base_frame):
        """Verify zero-padded values parse as integers."""
        assert historic_base_frame.get_uint_field("BASE") == 6188427
        assert historic_base_frame.get_uint_field("IINST") == 2
        assert historic_base_frame.get_uint_field("PAPP") == 420
    
    def test_missing_field(self, historic_base_frame):
        """Verify an absent label raises FieldMissing."""
        with pytest.raises(FieldMissing) as exc_info:
            historic_base_frame.get_uint_field("HCHC")
        
        assert exc_info.value.name == "HCHC"
        assert isinstance(exc_info.value, FrameFieldError)
        assert isinstance(exc_info.value, ValueError)
    
    @pytest.mark.parametrize("value", ["TH..", "12A", "", "-5", "1.5", "١٢"])
    def test_non_numeric_field(self, value):
        """Verify non-digit values raise FieldNotNumeric."""
        frame = Frame.from_groups({"PAPP": value}, "historic")
        
        with pytest.raises(FieldNotNumeric) as exc_info:
            frame.get_uint_field("PAPP")
        assert exc_info.value.value == value


class TestFrame:
    """Snapshot semantics and type detection."""
    
    def test_get_map_returns_full_snapshot(self, historic_base_frame, historic_base_groups):
        """Verify get_map returns every group."""
        assert historic_base_frame.get_map() == historic_base_groups
    
    def test_get_map_is_a_copy(self, historic_base_frame):
        """Verify mutating the snapshot leaves the frame intact."""
        snapshot = historic_base_frame.get_map()
        snapshot["PAPP"] = "99999"
        
        assert historic_base_frame.get_uint_field("PAPP") == 420
    
    def test_frame_is_immutable(self, historic_base_frame):
        """Verify attributes and fields cannot be changed."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            historic_base_frame.mode = "standard"
        with pytest.raises(TypeError):
            historic_base_frame.fields["PAPP"] = "0"
    
    def test_source_mapping_changes_do_not_leak(self):
        """Verify the frame keeps its own copy of the groups."""
        groups = {"PAPP": "00100"}
        frame = Frame.from_groups(groups, "historic")
        groups["PAPP"] = "00200"
        
        assert frame.get_uint_field("PAPP") == 100
    
    def test_detected_type_and_mode(self, historic_base_frame, historic_hc_frame, standard_frame):
        """Verify tariff detection for each mode."""
        assert (historic_base_frame.mode, historic_base_frame.type) == ("historic", "BASE")
        assert (historic_hc_frame.mode, historic_hc_frame.type) == ("historic", "HC")
        assert (standard_frame.mode, standard_frame.type) == ("standard", "BASE")
    
    def test_type_empty_without_tariff_label(self):
        """Verify a missing tariff label yields an empty type."""
        assert detect_tariff_type({"PAPP": "00100"}, "historic") == ""
        assert detect_tariff_type({"OPTARIF": "BASE"}, "unknown") == ""
