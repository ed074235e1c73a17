"""
Projections from server snapshot lists to keyed mappings.

The server sends users and stories as lists when the own join resolves.
A missing list (partial snapshot) indexes to an empty mapping and is
logged; entries without an id are skipped.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from .state import Story, User

logger = logging.getLogger(__name__)


def _entries(items: Optional[Iterable[Dict[str, Any]]], kind: str) -> Iterable[Dict[str, Any]]:
    if items is None:
        logger.warning(f"Join snapshot has no {kind} list, indexing as empty")
        return
    if isinstance(items, dict):
        items = items.values()
    for item in items:
        if not isinstance(item, dict) or not item.get("id"):
            logger.warning(f"Skipping {kind} entry without id: {item!r}")
            continue
        yield item


def index_users(users: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, User]:
    return {u["id"]: User.from_dict(u) for u in _entries(users, "users")}


def index_stories(stories: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, Story]:
    """Stories keyed by id; the server's per-story estimations are not kept on Story."""
    return {s["id"]: Story.from_dict(s) for s in _entries(stories, "stories")}


def index_estimations(stories: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
    """story id -> (user id -> value), for stories that carry estimations."""
    indexed: Dict[str, Dict[str, Any]] = {}
    if stories is None:
        return indexed
    for story in _entries(stories, "stories"):
        estimations = story.get("estimations")
        if estimations:
            indexed[story["id"]] = dict(estimations)
    return indexed
