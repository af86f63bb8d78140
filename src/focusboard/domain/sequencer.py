"""Position sequencing — dense 0-based ordering within a container.

Pure functions over ordered sequences of records that expose ``id`` and
``position`` (cards within a list, lists within a focus zone). Each
function returns a mapping ``{record_id: new_position}`` holding every
record whose position changes, so callers can persist exactly the rows
that need a write.

INVARIANT: applying a returned mapping to dense input yields dense output
— positions ``0..n-1``, no gaps, no duplicates, no negatives.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from focusboard.domain.errors import InvalidMoveError
from focusboard.domain.models import Positioned


def append_position(count: int) -> int:
    """Position for a record appended to a container holding *count* records."""
    return count


def clamp_index(target_index: int, length: int) -> int:
    """Clamp *target_index* into ``[0, length]``.

    Indexes past the end mean "append". Negative indexes are a caller bug.

    Raises:
        InvalidMoveError: If *target_index* is negative.
    """
    if target_index < 0:
        msg = f"Target index must be non-negative, got {target_index}"
        raise InvalidMoveError(msg)
    return min(target_index, length)


def insert_at(
    siblings: Sequence[Positioned],
    target_index: int,
    *,
    item_id: str | None = None,
) -> dict[str, int]:
    """Open a slot at *target_index* for an incoming record.

    Every sibling at or after the (clamped) target shifts up by one. When
    *item_id* is given, the incoming record is included in the mapping at
    the target index.

    Examples:
        >>> from types import SimpleNamespace as R
        >>> insert_at([R(id="a", position=0), R(id="b", position=1)], 1, item_id="d")
        {'b': 2, 'd': 1}
    """
    index = clamp_index(target_index, len(siblings))
    mapping = {rec.id: rec.position + 1 for rec in siblings if rec.position >= index}
    if item_id is not None:
        mapping[item_id] = index
    return mapping


def remove_at(siblings: Sequence[Positioned], removed_position: int) -> dict[str, int]:
    """Close the gap left by a record removed from *removed_position*.

    *siblings* must not contain the removed record.
    """
    return {rec.id: rec.position - 1 for rec in siblings if rec.position > removed_position}


def index_of(siblings: Sequence[Positioned], record_id: str) -> int:
    """Slot of *record_id* in *siblings* (their display order, not the stored position).

    Raises:
        InvalidMoveError: If *record_id* is not among *siblings*.
    """
    for slot, rec in enumerate(siblings):
        if rec.id == record_id:
            return slot
    msg = f"No record with ID {record_id} in this container"
    raise InvalidMoveError(msg)


def reorder_within_container(
    siblings: Sequence[Positioned],
    old_index: int,
    new_index: int,
    *,
    item_id: str | None = None,
) -> dict[str, int]:
    """Move the record at *old_index* to *new_index* within one container.

    *siblings* includes the moved record. A *new_index* past the end
    clamps to the last slot. Equal indexes are a no-op.

    Without *item_id* the moved record is the one stored at *old_index*.
    Pass *item_id* (with *old_index* from :func:`index_of`) whenever
    positions may repeat: the record is then picked by ID, so a sibling
    sharing its position is never moved in its place.

    Raises:
        InvalidMoveError: If the moved record is missing, or an index is negative.
    """
    if not siblings:
        msg = "Cannot reorder within an empty container"
        raise InvalidMoveError(msg)
    if old_index < 0:
        msg = f"Source index must be non-negative, got {old_index}"
        raise InvalidMoveError(msg)
    new_index = min(clamp_index(new_index, len(siblings)), len(siblings) - 1)
    if old_index == new_index:
        return {}

    if item_id is not None:
        moved = next((rec for rec in siblings if rec.id == item_id), None)
    else:
        moved = next((rec for rec in siblings if rec.position == old_index), None)
    if moved is None:
        target = item_id if item_id is not None else f"at position {old_index}"
        msg = f"No record {target}"
        raise InvalidMoveError(msg)

    mapping: dict[str, int] = {moved.id: new_index}
    for rec in siblings:
        if rec is moved:
            continue
        if old_index < new_index and old_index < rec.position <= new_index:
            mapping[rec.id] = rec.position - 1
        elif old_index > new_index and new_index <= rec.position < old_index:
            mapping[rec.id] = rec.position + 1
    return mapping


def renumber(siblings: Sequence[Positioned]) -> dict[str, int]:
    """Densely renumber *siblings* in the order given.

    Used to repair containers whose stored positions have drifted.
    """
    return {rec.id: pos for pos, rec in enumerate(siblings) if rec.position != pos}


def is_dense(positions: Iterable[int]) -> bool:
    """True if *positions* is exactly ``{0, 1, ..., n-1}`` with no repeats."""
    ordered = sorted(positions)
    return ordered == list(range(len(ordered)))
