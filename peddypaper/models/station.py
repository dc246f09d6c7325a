"""Station (posto) catalog model."""

import re
import unicodedata
from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field

_DIGITS = re.compile(r'(\d+)')


def natural_key(value: str) -> Tuple:
    """
    Numeric-aware, accent- and case-insensitive sort key.

    'P2' sorts before 'P10'; 'Água' sorts with 'agua'.
    """
    folded = unicodedata.normalize('NFKD', value)
    folded = ''.join(c for c in folded if not unicodedata.combining(c)).casefold()
    key = []
    for chunk in _DIGITS.split(folded):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk), ''))
        else:
            key.append((1, 0, chunk))
    # Original text breaks ties so the order is total
    return (tuple(key), value)


class Station(BaseModel):
    """
    A challenge location.

    The PIN is deliberately absent: it is fetched lazily at submission time.
    """

    posto_id: str = Field(..., alias="postoId")
    label: str

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @classmethod
    def from_record(cls, posto_id: str, record: Any) -> "Station":
        label = ''
        if isinstance(record, dict):
            label = str(record.get('game_label') or '').strip()
        return cls(posto_id=posto_id, label=label or f"P{posto_id}")

    def sort_key(self) -> Tuple:
        return natural_key(self.label)
