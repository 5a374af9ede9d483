"""
Thing Description
=================

Property schemas, the Thing description and its one-time builder.

The builder looks at the first frame read at startup and decides which
properties the Thing exposes:

    (historic, BASE) -> FULL_TARIFF: raw, indexBase, iinst, papp
    anything else    -> RAW_ONLY:    raw

The decision is made once. Later frames reporting another mode or tariff
change property values only, never the schema.

Historic mode labels (for reference):
    ADCO     : Adresse du compteur
    OPTARIF  : Option tarifaire choisie
    ISOUSC   : Intensité souscrite (A)
    BASE     : Index option Base (KWh)
    HCHC     : Index Heures Creuses (KWh)
    HCHP     : Index Heures Pleines (KWh)
    PTEC     : Période Tarifaire en cours
    IINST    : Intensité Instantanée (A)
    ADPS     : Avertissement de Dépassement De Puissance Souscrite
    IMAX     : Intensité maximale appelée
    PAPP     : Puissance apparente (VA)
    HHPHC    : Horaire Heures Pleines Heures Creuses
    MOTDETAT : Mot d'état du compteur
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field

from teleinfo_gateway import __version__
from teleinfo_gateway.teleinfo.frame import MODE_HISTORIC, Frame, FrameFieldError


THING_ID = "eria:gateway:tic"
THING_TITLE = "Teleinfo"
THING_DESCRIPTION = "Teleinfo gateway"

TARIFF_BASE = "BASE"


# =============================================================================
# Schema Models
# =============================================================================

class IntegerSchema(BaseModel):
    """Bounded integer value with a unit."""
    
    type: Literal["integer"] = "integer"
    unit: str = Field(default="", description="Unit symbol, e.g. 'VA'")
    minimum: int = Field(..., description="Inclusive lower bound")
    maximum: int = Field(..., description="Inclusive upper bound")
    default: int = Field(default=0, description="Initial value")


class ObjectSchema(BaseModel):
    """Open, schema-less object value."""
    
    type: Literal["object"] = "object"
    properties: Dict[str, Any] = Field(default_factory=dict)
    
    @property
    def default(self) -> Dict[str, Any]:
        return {}


DataSchema = Union[IntegerSchema, ObjectSchema]


class PropertyAffordance(BaseModel):
    """
    One exposed Thing property.
    
    Attributes:
        name: Property key used in URLs and updates
        title: Short human title
        description: Human description
        read_only: Clients cannot write the value
        write_only: Clients cannot read the value
        observable: Clients may subscribe to changes
        data: Value schema
    """
    
    name: str
    title: str
    description: str = ""
    read_only: bool = True
    write_only: bool = False
    observable: bool = True
    data: DataSchema = Field(..., discriminator="type")
    
    def to_document(self, href: str = "") -> Dict[str, Any]:
        """Render the property entry of a TD document."""
        doc = {
            "title": self.title,
            "description": self.description,
            "readOnly": self.read_only,
            "writeOnly": self.write_only,
            "observable": self.observable,
            **self.data.model_dump(),
        }
        if href:
            doc["forms"] = [{"href": href}]
        return doc


class ThingDescription(BaseModel):
    """
    Aggregate description handed to the Thing publisher.
    
    Properties keep their insertion order. The description is not
    mutated after it has been handed over.
    """
    
    id: str
    version: str
    title: str
    description: str = ""
    properties: List[PropertyAffordance] = Field(default_factory=list)
    
    def add_property(self, prop: PropertyAffordance) -> None:
        """Append a property. Names must be unique."""
        if prop.name in self.property_names():
            raise ValueError(f"Duplicate property: {prop.name}")
        self.properties.append(prop)
    
    def property_names(self) -> List[str]:
        return [prop.name for prop in self.properties]
    
    def get_property(self, name: str) -> PropertyAffordance:
        for prop in self.properties:
            if prop.name == name:
                return prop
        raise KeyError(name)
    
    def to_document(self, base_url: str = "") -> Dict[str, Any]:
        """
        Render the TD as a JSON-serializable document.
        
        Args:
            base_url: Exposed address; when set, each property gets a form href
        """
        base = base_url.rstrip("/")
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "version": {"instance": self.version},
            "properties": {
                prop.name: prop.to_document(
                    f"{base}/properties/{prop.name}" if base else ""
                )
                for prop in self.properties
            },
        }


# =============================================================================
# Builder
# =============================================================================

class SchemaProfile(str, Enum):
    """
    Shape of the published schema.
    
    Attributes:
        FULL_TARIFF: Raw snapshot plus BASE index, IINST and PAPP
        RAW_ONLY: Raw snapshot only
    """
    
    FULL_TARIFF = "FULL_TARIFF"
    RAW_ONLY = "RAW_ONLY"


def select_profile(mode: str, tariff_type: str) -> SchemaProfile:
    """Pick the schema profile from the detected (mode, type) pair."""
    if mode == MODE_HISTORIC and tariff_type == TARIFF_BASE:
        return SchemaProfile.FULL_TARIFF
    return SchemaProfile.RAW_ONLY


def uint_or_zero(frame: Frame, name: str) -> int:
    """Parse a named field, falling back to 0 when absent or malformed."""
    try:
        return frame.get_uint_field(name)
    except FrameFieldError:
        return 0


def raw_property() -> PropertyAffordance:
    return PropertyAffordance(
        name="raw",
        title="Raw data",
        description="Raw data in json format",
        data=ObjectSchema(),
    )


def _integer_property(
    name: str,
    title: str,
    description: str,
    unit: str,
    maximum: int,
    default: int,
) -> PropertyAffordance:
    return PropertyAffordance(
        name=name,
        title=title,
        description=description,
        data=IntegerSchema(unit=unit, minimum=0, maximum=maximum, default=default),
    )


def build_thing_description(frame: Frame, version: str = __version__) -> ThingDescription:
    """
    Build the Thing description from the first frame read at startup.
    
    Args:
        frame: Initial frame, its mode/type decide the profile
        version: Version reported in the description
        
    Returns:
        ThingDescription with either four properties (FULL_TARIFF)
        or only "raw" (RAW_ONLY)
    """
    td = ThingDescription(
        id=THING_ID,
        version=version,
        title=THING_TITLE,
        description=THING_DESCRIPTION,
    )
    td.add_property(raw_property())
    
    if select_profile(frame.mode, frame.type) is SchemaProfile.FULL_TARIFF:
        td.add_property(_integer_property(
            "indexBase", "BASE", "Index option Base",
            unit="KWh", maximum=1_000_000_000, default=uint_or_zero(frame, "BASE"),
        ))
        td.add_property(_integer_property(
            "iinst", "IINST", "Intensité Instantanée",
            unit="A", maximum=1000, default=uint_or_zero(frame, "IINST"),
        ))
        td.add_property(_integer_property(
            "papp", "PAPP", "Puissance apparente",
            unit="VA", maximum=1000, default=uint_or_zero(frame, "PAPP"),
        ))
    
    return td
