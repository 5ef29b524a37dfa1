"""Entity property values as read from or written to the store."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EntityValue:
    value: str
    is_reference: bool = False
    datatype: Optional[str] = None
    language: Optional[str] = None

    def __str__(self):
        return self.value


# Property path → current values, as re-derived from the store
EntityValues = dict[str, list[EntityValue]]
