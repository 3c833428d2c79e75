from __future__ import annotations

from datetime import datetime

from worktrack.domain import Interval
from worktrack.errors import IntervalAlreadyOpen, InvalidRange, NoOpenInterval


def is_open(sequence: tuple[Interval, ...]) -> bool:
    return bool(sequence) and sequence[-1].end is None


def open_interval(sequence: tuple[Interval, ...], *, now: datetime) -> tuple[Interval, ...]:
    if is_open(sequence):
        raise IntervalAlreadyOpen()
    return (*sequence, Interval(start=now))


def close_interval(sequence: tuple[Interval, ...], *, now: datetime) -> tuple[tuple[Interval, ...], float]:
    """Close the trailing open interval and return the minutes it lasted."""
    if not is_open(sequence):
        raise NoOpenInterval()

    current = sequence[-1]
    if now < current.start:
        raise InvalidRange("Interval cannot end before it starts.")

    minutes = (now - current.start).total_seconds() / 60
    return (*sequence[:-1], Interval(start=current.start, end=now)), minutes


def close_if_open(sequence: tuple[Interval, ...], *, now: datetime) -> tuple[tuple[Interval, ...], float]:
    if not is_open(sequence):
        return sequence, 0.0
    return close_interval(sequence, now=now)
