"""
Thing Module
============

Description, live values and HTTP publication of the gateway's Thing.

    - build_thing_description: One-time schema decision from the first frame
    - Thing: Thread-safe property value store
    - ThingServer / create_app: FastAPI publisher
"""

from teleinfo_gateway.thing.description import (
    IntegerSchema,
    ObjectSchema,
    PropertyAffordance,
    SchemaProfile,
    ThingDescription,
    build_thing_description,
    select_profile,
)
from teleinfo_gateway.thing.thing import Thing
from teleinfo_gateway.thing.server import ThingServer, create_app


__all__ = [
    "IntegerSchema",
    "ObjectSchema",
    "PropertyAffordance",
    "SchemaProfile",
    "ThingDescription",
    "build_thing_description",
    "select_profile",
    "Thing",
    "ThingServer",
    "create_app",
]
