"""
Thing
=====

Live property values of the published Thing.

The projector writes values while the HTTP server reads them from other
threads, so all access goes through a lock. Observers (WebSocket
subscribers) are woken through a monotonically increasing revision
counter per property.
"""

import copy
import logging
import threading
from typing import Any, Dict, Tuple

from teleinfo_gateway.thing.description import ThingDescription


logger = logging.getLogger(__name__)


class Thing:
    """
    Property value store bound to a ThingDescription.
    
    Only properties declared in the description can hold values. The
    description itself is never modified here.
    
    Example:
        thing = Thing(td)
        thing.set_property_value("papp", 420)
        thing.get_property_value("papp")  # 420
    """
    
    def __init__(self, description: ThingDescription) -> None:
        self.description = description
        self._lock = threading.Lock()
        self._values: Dict[str, Any] = {
            prop.name: prop.data.default for prop in description.properties
        }
        self._revisions: Dict[str, int] = {name: 0 for name in self._values}
    
    def has_property(self, name: str) -> bool:
        return name in self._values
    
    def set_property_value(self, name: str, value: Any) -> bool:
        """
        Overwrite a property value (last write wins).
        
        Returns:
            True if the property exists and was updated, False otherwise.
        """
        if name not in self._values:
            logger.debug(f"Ignoring update for undeclared property: {name}")
            return False
        
        with self._lock:
            self._values[name] = value
            self._revisions[name] += 1
        return True
    
    def get_property_value(self, name: str) -> Any:
        """
        Current value of a property.
        
        Raises:
            KeyError: If the property is not declared
        """
        with self._lock:
            return copy.deepcopy(self._values[name])
    
    def get_revision(self, name: str) -> Tuple[int, Any]:
        """Current (revision, value) pair, used by observers to detect changes."""
        with self._lock:
            return self._revisions[name], copy.deepcopy(self._values[name])
    
    def snapshot(self) -> Dict[str, Any]:
        """Copy of all current values."""
        with self._lock:
            return copy.deepcopy(self._values)
