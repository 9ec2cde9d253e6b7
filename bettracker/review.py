"""
bettracker/review.py — Review actions for the unresolved queue
===============================================================
The three things a reviewer can do with a queued mention (or a group of
repeat mentions):

  map_to_existing  — add the raw text as an alias of an existing entity
  create_canonical — add a new entity that answers to the raw text
  dismiss          — drop the items without touching the registry

Registry changes go through CanonicalRegistry mutations; items are dequeued
only after the registry accepted the change. A failed mutation leaves the
queue untouched.

current_status() re-runs the resolver at action time. The queue never
stores candidates, and the registry may have changed since import.

DO NOT add Streamlit imports to this file.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional

from bettracker.lookup_key import normalize
from bettracker.models import ENTITY_KINDS
from bettracker.resolver import Resolution, ResolveContext, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """
    ok:            The action was applied.
    removed:       Queue rows removed.
    error:         Registry error code ("duplicate", "not_found", "invalid").
    persist_error: Registry change applied in memory but not saved.
    """
    ok: bool
    removed: int = 0
    error: Optional[str] = None
    persist_error: Optional[str] = None


def current_status(registry, item) -> Resolution:
    """
    Live resolution of a queued item.

    "unknown" items are tried as player, then team; the first non-unresolved
    outcome is returned.
    """
    context = ResolveContext(sport=item.sport)
    if item.entity_type in ENTITY_KINDS:
        return resolve(registry, item.entity_type, item.raw_value, context)
    outcome = None
    for kind in ("player", "team"):
        outcome = resolve(registry, kind, item.raw_value, context)
        if outcome.status != "unresolved":
            return outcome
    return outcome


def map_to_existing(registry, queue, item_ids, kind: str, canonical: str, sport: str,
                    raw_value: str) -> ReviewOutcome:
    """
    Teach an existing entity a new spelling, then drain the items.

    Args:
        registry:  CanonicalRegistry.
        queue:     UnresolvedQueue.
        item_ids:  Every queued id for this spelling (a whole group).
        kind:      Entity kind of the target.
        canonical: Target's canonical name.
        sport:     Target's sport.
        raw_value: Spelling to add as alias.
    """
    result = registry.add_alias(kind, canonical, sport, raw_value)
    if not result.ok:
        logger.warning("Map %r → %s %r (%s) failed: %s", raw_value, kind, canonical, sport, result.error)
        return ReviewOutcome(False, error=result.error)
    removed = queue.dequeue(item_ids)
    logger.info("Mapped %r → %r (%s); %d queue item(s) cleared", raw_value, canonical, sport, removed)
    return ReviewOutcome(True, removed=removed, persist_error=result.persist_error)


def create_canonical(registry, queue, item_ids, entity, raw_value: Optional[str] = None) -> ReviewOutcome:
    """
    Add a new canonical entity built from a queued mention, then drain the items.

    raw_value, when given and not already one of the entity's spellings, is
    prepended to its aliases. A duplicate (canonical, sport) leaves the queue
    unchanged.
    """
    if raw_value and normalize(raw_value) not in {normalize(s) for s in entity.spellings()}:
        entity = dataclasses.replace(entity, aliases=(raw_value.strip(), *entity.aliases))
    result = registry.add(entity.kind, entity)
    if not result.ok:
        logger.warning("Create %s %r (%s) failed: %s", entity.kind, entity.canonical, entity.sport, result.error)
        return ReviewOutcome(False, error=result.error)
    removed = queue.dequeue(item_ids)
    logger.info("Created %s %r (%s); %d queue item(s) cleared", entity.kind, entity.canonical, entity.sport, removed)
    return ReviewOutcome(True, removed=removed, persist_error=result.persist_error)


def dismiss(queue, item_ids) -> ReviewOutcome:
    """Drop items from the queue; the registry is not touched."""
    removed = queue.dequeue(item_ids)
    logger.info("Dismissed %d queue item(s)", removed)
    return ReviewOutcome(True, removed=removed)
