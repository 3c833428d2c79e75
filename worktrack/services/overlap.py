from __future__ import annotations

from collections.abc import Iterable
from datetime import date


def spans_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    # Both spans are inclusive on both ends.
    return a_start <= b_end and b_start <= a_end


def find_conflict(
    candidate_start: date,
    candidate_end: date,
    existing_spans: Iterable[tuple[date, date]],
) -> tuple[date, date] | None:
    for span_start, span_end in existing_spans:
        if spans_overlap(candidate_start, candidate_end, span_start, span_end):
            return span_start, span_end
    return None


def overlaps(
    candidate_start: date,
    candidate_end: date,
    existing_spans: Iterable[tuple[date, date]],
) -> bool:
    return find_conflict(candidate_start, candidate_end, existing_spans) is not None
