"""
Drag-and-drop reordering of places.

A place is dragged onto either a day container (id ``day-<N>``) or another
place. The result is the full place list with every affected day renumbered
to a dense 1..N ``order`` sequence. Places are plain mappings carrying at
least ``id``, ``day`` and ``order``; inputs are never mutated.

Drop rules:
  * day container, other day  -> appended to the end of that day
  * place in another day      -> inserted before that place
  * place in the same day     -> moved to that place's index (list move)
  * self / own day / same idx -> no-op (``None``)

``place_at`` covers explicit (day, order) edits and ``without_place``
deletions with the same renumbering guarantees.
"""

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

logger = logging.getLogger(__name__)

DAY_CONTAINER_PREFIX = "day-"

Place = Dict[str, Any]


def day_container_id(day: int) -> str:
    """Droppable id of the container holding ``day``."""
    return f"{DAY_CONTAINER_PREFIX}{day}"


def parse_day_container(over_id: str) -> Optional[int]:
    """Return the day number of a ``day-<N>`` id, None for anything else."""
    if not isinstance(over_id, str) or not over_id.startswith(DAY_CONTAINER_PREFIX):
        return None
    try:
        return int(over_id[len(DAY_CONTAINER_PREFIX):])
    except ValueError:
        return None


def is_day_container(over_id: str) -> bool:
    return isinstance(over_id, str) and over_id.startswith(DAY_CONTAINER_PREFIX)


def day_places(places: Sequence[Mapping[str, Any]], day: int) -> List[Mapping[str, Any]]:
    """Places of one day sorted by order."""
    return sorted((p for p in places if p["day"] == day), key=lambda p: p["order"])


def _find(places: Sequence[Mapping[str, Any]], place_id: str) -> Optional[Mapping[str, Any]]:
    for place in places:
        if place["id"] == place_id:
            return place
    return None


def _close_gap(places: List[Place], day: int) -> List[Place]:
    """Renumber ``day`` densely, keeping the current relative order."""
    positions = {p["id"]: i + 1 for i, p in enumerate(day_places(places, day))}
    return [
        {**p, "order": positions[p["id"]]} if p["id"] in positions else p
        for p in places
    ]


def _move_to_day_end(places: Sequence[Mapping[str, Any]], active: Mapping[str, Any], target_day: int) -> List[Place]:
    target_count = sum(1 for p in places if p["day"] == target_day)
    moved = [
        {**p, "day": target_day, "order": target_count + 1} if p["id"] == active["id"] else dict(p)
        for p in places
    ]
    return _close_gap(moved, active["day"])


def _insert_before(places: Sequence[Mapping[str, Any]], active: Mapping[str, Any], over: Mapping[str, Any]) -> List[Place]:
    target_day = over["day"]
    insert_at = over["order"]
    moved: List[Place] = []
    for p in places:
        if p["id"] == active["id"]:
            moved.append({**p, "day": target_day, "order": insert_at})
        elif p["day"] == target_day and p["order"] >= insert_at:
            moved.append({**p, "order": p["order"] + 1})
        else:
            moved.append(dict(p))
    # Source day closes its gap; target day is normalised as well so a
    # sparse starting state still ends dense.
    moved = _close_gap(moved, active["day"])
    return _close_gap(moved, target_day)


def _move_within_day(places: Sequence[Mapping[str, Any]], active: Mapping[str, Any], over: Mapping[str, Any]) -> Optional[List[Place]]:
    ordered = day_places(places, active["day"])
    ids = [p["id"] for p in ordered]
    active_index = ids.index(active["id"])
    over_index = ids.index(over["id"])
    if active_index == over_index:
        return None

    ids.insert(over_index, ids.pop(active_index))
    positions = {place_id: i + 1 for i, place_id in enumerate(ids)}
    return [
        {**p, "order": positions[p["id"]]} if p["id"] in positions else dict(p)
        for p in places
    ]


def compute_reorder(
    places: Sequence[Mapping[str, Any]],
    active_id: str,
    over_id: str,
    total_days: Optional[int] = None,
) -> Optional[List[Place]]:
    """
    Compute the new day/order assignment after dropping ``active_id`` on
    ``over_id``.

    Args:
        places: current places of the trip (unique ids).
        active_id: id of the dragged place.
        over_id: a day container id (``day-<N>``) or another place id.
        total_days: number of days in the trip; when given, drops on a day
            outside ``1..total_days`` are rejected.

    Returns:
        The full renumbered list, or None when the drop is a no-op or
        invalid (nothing must be persisted in that case).
    """
    if not over_id or active_id == over_id:
        return None

    active = _find(places, active_id)
    if active is None:
        logger.debug(f"Reorder skipped: place {active_id} not found")
        return None

    if is_day_container(over_id):
        target_day = parse_day_container(over_id)
        if target_day is None or target_day < 1:
            logger.debug(f"Reorder skipped: invalid day container {over_id}")
            return None
        if total_days is not None and target_day > total_days:
            logger.debug(f"Reorder skipped: day {target_day} outside 1..{total_days}")
            return None
        if active["day"] == target_day:
            return None
        return _move_to_day_end(places, active, target_day)

    over = _find(places, over_id)
    if over is None:
        logger.debug(f"Reorder skipped: drop target {over_id} not found")
        return None

    if over["day"] != active["day"]:
        return _insert_before(places, active, over)
    return _move_within_day(places, active, over)


def place_at(
    places: Sequence[Mapping[str, Any]],
    active_id: str,
    day: int,
    order: Optional[int] = None,
) -> Optional[List[Place]]:
    """
    Put ``active_id`` at position ``order`` of ``day`` (its end when order is
    None or past the end). Places from that position on shift down and the
    day it left is renumbered.

    Returns:
        The full renumbered list, or None when nothing moves.
    """
    active = _find(places, active_id)
    if active is None:
        return None

    ids = [p["id"] for p in day_places(places, day) if p["id"] != active_id]
    index = len(ids) if order is None else max(0, min(int(order) - 1, len(ids)))
    ids.insert(index, active_id)
    positions = {place_id: i + 1 for i, place_id in enumerate(ids)}

    moved = [
        {**p, "day": day, "order": positions[p["id"]]} if p["id"] in positions else dict(p)
        for p in places
    ]
    if active["day"] != day:
        moved = _close_gap(moved, active["day"])
    if not changed_positions(places, moved):
        return None
    return moved


def without_place(places: Sequence[Mapping[str, Any]], place_id: str) -> List[Place]:
    """The list minus ``place_id``, with the day it occupied renumbered."""
    removed = _find(places, place_id)
    remaining = [dict(p) for p in places if p["id"] != place_id]
    if removed is None:
        return remaining
    return _close_gap(remaining, removed["day"])


def changed_positions(
    before: Sequence[Mapping[str, Any]],
    after: Sequence[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """``{id, day, order}`` triples whose day or order differ between lists."""
    previous = {p["id"]: (p["day"], p["order"]) for p in before}
    return [
        {"id": p["id"], "day": p["day"], "order": p["order"]}
        for p in after
        if previous.get(p["id"]) != (p["day"], p["order"])
    ]


def position_triples(places: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Batch payload for the whole list, as sent to ``/places/bulk-update``."""
    return [{"id": p["id"], "day": p["day"], "order": p["order"]} for p in places]


def is_dense(places: Sequence[Mapping[str, Any]]) -> bool:
    """True when every day's orders are exactly 1..N."""
    days = {p["day"] for p in places}
    for day in days:
        orders = [p["order"] for p in day_places(places, day)]
        if orders != list(range(1, len(orders) + 1)):
            return False
    return True
