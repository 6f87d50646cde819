"""
WeekCatalog -- ordered, non-overlapping custom weeks.

Responsibility:
    Immutable snapshot of the admin-defined weeks, sorted ascending by
    ``period_from``.  Answers lookups by id and by start date, and slices
    the catalog into the windows the approval engine reasons about.

Architecture position:
    Kernel > Domain -- pure, no I/O.

Failure modes:
    - WeekNotFoundError from ``get()`` when the id is absent.
    - ValueError from the constructor when two weeks overlap.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date
from uuid import UUID

from timesheet_kernel.domain.values import Week
from timesheet_kernel.exceptions import WeekNotFoundError


class WeekCatalog:
    """Ordered, read-only view over custom weeks."""

    def __init__(self, weeks: Iterable[Week]):
        self._weeks: tuple[Week, ...] = tuple(
            sorted(weeks, key=lambda w: (w.period_from, w.period_to))
        )
        self._index: dict[UUID, int] = {
            w.id: i for i, w in enumerate(self._weeks)
        }
        for prev, nxt in zip(self._weeks, self._weeks[1:]):
            if nxt.period_from <= prev.period_to:
                raise ValueError(
                    f"Weeks {prev.name} and {nxt.name} overlap "
                    f"({nxt.period_from} <= {prev.period_to})"
                )

    def __iter__(self) -> Iterator[Week]:
        return iter(self._weeks)

    def __len__(self) -> int:
        return len(self._weeks)

    def __contains__(self, week_id: object) -> bool:
        return week_id in self._index

    @property
    def weeks(self) -> tuple[Week, ...]:
        return self._weeks

    def get(self, week_id: UUID) -> Week:
        """Week by id.  Raises WeekNotFoundError when absent."""
        idx = self._index.get(week_id)
        if idx is None:
            raise WeekNotFoundError(str(week_id))
        return self._weeks[idx]

    def find(self, week_id: UUID) -> Week | None:
        idx = self._index.get(week_id)
        return None if idx is None else self._weeks[idx]

    def week_starting(self, day: date) -> Week | None:
        """Week whose ``period_from`` equals ``day`` exactly, else None."""
        for week in self._weeks:
            if week.period_from == day:
                return week
            if week.period_from > day:
                break
        return None

    def weeks_before(self, week_id: UUID) -> tuple[Week, ...]:
        """Weeks strictly earlier than ``week_id``, ascending."""
        return self._weeks[: self._position(week_id)]

    def weeks_from(self, first_week_id: UUID | None) -> tuple[Week, ...]:
        """The obligation window: weeks at or after ``first_week_id``.

        A user without a first week has an empty window.
        """
        if first_week_id is None:
            return ()
        return self._weeks[self._position(first_week_id):]

    def weeks_in_year(self, year: int) -> tuple[Week, ...]:
        return tuple(w for w in self._weeks if w.period_from.year == year)

    def _position(self, week_id: UUID) -> int:
        idx = self._index.get(week_id)
        if idx is None:
            raise WeekNotFoundError(str(week_id))
        return idx
