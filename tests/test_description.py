"""
Thing Description Tests
=======================

The one-time schema decision made from the first frame.
"""

import pytest

from teleinfo_gateway import __version__
from teleinfo_gateway.teleinfo.frame import Frame
from teleinfo_gateway.thing.description import (
    IntegerSchema,
    ObjectSchema,
    SchemaProfile,
    build_thing_description,
    raw_property,
    select_profile,
)


class TestSelectProfile:
    """Two outcomes, chosen from (mode, type)."""
    
    def test_historic_base_is_full_tariff(self):
        """Verify (historic, BASE) selects the full schema."""
        assert select_profile("historic", "BASE") is SchemaProfile.FULL_TARIFF
    
    @pytest.mark.parametrize("mode,tariff_type", [
        ("historic", "HC"),
        ("historic", "EJP"),
        ("historic", ""),
        ("standard", "BASE"),
        ("standard", ""),
    ])
    def test_everything_else_is_raw_only(self, mode, tariff_type):
        """Verify every other pair selects the raw-only schema."""
        assert select_profile(mode, tariff_type) is SchemaProfile.RAW_ONLY


class TestBuildThingDescription:
    """Schema contents for each profile."""
    
    def test_identity(self, historic_base_frame):
        """Verify the Thing id, title, description and version."""
        td = build_thing_description(historic_base_frame)
        
        assert td.id == "eria:gateway:tic"
        assert td.title == "Teleinfo"
        assert td.description == "Teleinfo gateway"
        assert td.version == __version__
    
    def test_full_tariff_schema(self, historic_base_frame):
        """Verify the three numeric properties, units, bounds and seeds."""
        td = build_thing_description(historic_base_frame)
        
        assert td.property_names() == ["raw", "indexBase", "iinst", "papp"]
        
        expected = {
            "indexBase": ("BASE", "KWh", 1_000_000_000, 6188427),
            "iinst": ("IINST", "A", 1000, 2),
            "papp": ("PAPP", "VA", 1000, 420),
        }
        for name, (title, unit, maximum, default) in expected.items():
            prop = td.get_property(name)
            assert prop.title == title
            assert isinstance(prop.data, IntegerSchema)
            assert prop.data.unit == unit
            assert prop.data.minimum == 0
            assert prop.data.maximum == maximum
            assert prop.data.default == default
            assert prop.read_only and prop.observable and not prop.write_only
    
    def test_raw_property(self, historic_base_frame):
        """Verify the raw property is an open, read-only object."""
        raw = build_thing_description(historic_base_frame).get_property("raw")
        
        assert raw.title == "Raw data"
        assert raw.description == "Raw data in json format"
        assert isinstance(raw.data, ObjectSchema)
        assert raw.read_only and raw.observable
    
    def test_other_tariff_is_raw_only(self, historic_hc_frame):
        """Verify an HC meter only exposes raw."""
        td = build_thing_description(historic_hc_frame)
        
        assert td.property_names() == ["raw"]
    
    def test_standard_mode_is_raw_only(self, standard_frame):
        """Verify a standard meter only exposes raw."""
        td = build_thing_description(standard_frame)
        
        assert td.property_names() == ["raw"]
    
    def test_seed_values_default_to_zero(self):
        """Verify unparsable seed values fall back to 0."""
        frame = Frame.from_groups({"OPTARIF": "BASE", "PAPP": "garbled"}, "historic")
        
        td = build_thing_description(frame)
        
        assert td.property_names() == ["raw", "indexBase", "iinst", "papp"]
        assert td.get_property("indexBase").data.default == 0
        assert td.get_property("iinst").data.default == 0
        assert td.get_property("papp").data.default == 0


class TestThingDescriptionModel:
    """Document rendering and build-time guards."""
    
    def test_duplicate_property_rejected(self, historic_hc_frame):
        """Verify property names must be unique."""
        td = build_thing_description(historic_hc_frame)
        
        with pytest.raises(ValueError, match="Duplicate"):
            td.add_property(raw_property())
    
    def test_unknown_property_lookup(self, historic_hc_frame):
        """Verify lookup of an undeclared property raises KeyError."""
        with pytest.raises(KeyError):
            build_thing_description(historic_hc_frame).get_property("papp")
    
    def test_document_with_forms(self, historic_base_frame):
        """Verify the rendered TD carries form hrefs."""
        doc = build_thing_description(historic_base_frame).to_document("http://gw.local:8080/")
        
        assert doc["id"] == "eria:gateway:tic"
        assert list(doc["properties"]) == ["raw", "indexBase", "iinst", "papp"]
        
        papp = doc["properties"]["papp"]
        assert papp["type"] == "integer"
        assert papp["unit"] == "VA"
        assert papp["readOnly"] is True
        assert papp["forms"] == [{"href": "http://gw.local:8080/properties/papp"}]
        assert doc["properties"]["raw"]["type"] == "object"
    
    def test_document_without_base_url_has_no_forms(self, historic_hc_frame):
        """Verify no forms are rendered without a base URL."""
        doc = build_thing_description(historic_hc_frame).to_document()
        
        assert "forms" not in doc["properties"]["raw"]
