"""
Card configuration lookup.

A card config is an ordered sequence of ``{"label", "value", "color"}``
dicts. Only log formatting needs to map a value back to its card.
"""

from typing import Any, Dict, Optional, Sequence

DEFAULT_CARD_CONFIG = (
    {"label": "?", "value": -2, "color": "#bdbfbf"},
    {"label": "1/2", "value": 0.5, "color": "#667a66"},
    {"label": "1", "value": 1, "color": "#839e7a"},
    {"label": "2", "value": 2, "color": "#8cb876"},
    {"label": "3", "value": 3, "color": "#96ab50"},
    {"label": "5", "value": 5, "color": "#9EC044"},
    {"label": "8", "value": 8, "color": "#c0c83d"},
    {"label": "13", "value": 13, "color": "#f5de35"},
    {"label": "21", "value": 21, "color": "#f5b235"},
    {"label": "34", "value": 34, "color": "#f58f35"},
    {"label": "55", "value": 55, "color": "#f56f35"},
    {"label": "BIG", "value": 1000, "color": "#f52b35"},
)


def card_for_value(card_config: Optional[Sequence[Dict[str, Any]]], value: Any) -> Optional[Dict[str, Any]]:
    """First card whose value equals ``value``, or None."""
    if not card_config or value is None:
        return None
    for card in card_config:
        if card.get("value") == value:
            return card
    return None
