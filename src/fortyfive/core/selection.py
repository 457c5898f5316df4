"""
Exercise selection for template slots.

Filters are applied in sequence (muscle group, compound flag, excluded ids,
secondary-muscle substring).  Tie-breaking among the survivors is delegated
to a selection strategy; the default picks the first candidate in catalog
order so generation stays reproducible.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from .models import Exercise

# A strategy receives the non-empty candidate list and returns one of them.
SelectionStrategy = Callable[[Sequence[Exercise]], Exercise]


def first_match(candidates: Sequence[Exercise]) -> Exercise:
    """Pick the first candidate in catalog order."""
    return candidates[0]


def rotate_by_week(week_number: int) -> SelectionStrategy:
    """
    Strategy that rotates through candidates week by week.

    Week 1 picks the first candidate, week 2 the second, and so on,
    wrapping around.  Deterministic for a given week number.
    """

    def _pick(candidates: Sequence[Exercise]) -> Exercise:
        return candidates[(week_number - 1) % len(candidates)]

    return _pick


def _filter(
    pool: Iterable[Exercise],
    muscle_group: str | None,
    is_compound: bool | None,
    exclude_ids: Iterable[str],
    secondary_muscle: str | None,
) -> list[Exercise]:
    excluded = set(exclude_ids)
    candidates = list(pool)
    if muscle_group is not None:
        candidates = [e for e in candidates if e.muscle_group == muscle_group]
    if is_compound is not None:
        candidates = [e for e in candidates if e.is_compound == is_compound]
    if excluded:
        candidates = [e for e in candidates if e.id not in excluded]
    if secondary_muscle is not None:
        candidates = [
            e for e in candidates if any(secondary_muscle in m for m in e.secondary_muscles)
        ]
    return candidates


def select_exercise(
    pool: Sequence[Exercise],
    muscle_group: str | None = None,
    is_compound: bool | None = None,
    exclude_ids: Iterable[str] = (),
    secondary_muscle: str | None = None,
    strategy: SelectionStrategy = first_match,
) -> Exercise | None:
    """
    Pick one exercise from the pool for a template slot.

    If the compound constraint combined with a muscle group leaves nothing,
    the search is retried with muscle group and exclusions only (the
    secondary-muscle filter is dropped as well).

    Args:
        pool: Available exercises in catalog order
        muscle_group: Exact primary muscle group, e.g. "Chest"
        is_compound: Required compound/isolation flag
        exclude_ids: Ids that must not be picked
        secondary_muscle: Substring that one secondary muscle must contain
        strategy: Tie-break among matching candidates

    Returns:
        The chosen exercise, or None when the slot cannot be filled
    """
    exclude_ids = list(exclude_ids)
    candidates = _filter(pool, muscle_group, is_compound, exclude_ids, secondary_muscle)

    if not candidates and is_compound is not None and muscle_group is not None:
        candidates = _filter(pool, muscle_group, None, exclude_ids, None)

    if not candidates:
        return None
    return strategy(candidates)
