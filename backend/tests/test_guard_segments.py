"""
Tests des segments de garde 24h : couverture exacte de 24h à chaque édition.
"""
from datetime import date, time

import pytest

from app.engine.errors import StructuralInputError
from app.engine.guard import GuardSegments, default_guard_segments
from app.engine.hours import effective_hours
from app.engine.types import GuardSegment, SegmentKind, ShiftKind
from tests.conftest import make_shift


def three_segments() -> GuardSegments:
    return GuardSegments(time(9, 0), [
        GuardSegment(time(9, 0), SegmentKind.EFFECTIVE),
        GuardSegment(time(15, 0), SegmentKind.PRESENCE_DAY),
        GuardSegment(time(21, 0), SegmentKind.PRESENCE_NIGHT),
    ])


# ── Valeurs par défaut ────────────────────────────────────────────────────────

def test_default_segments_cover_a_day():
    segments = default_guard_segments(time(9, 0))
    assert [s.start_time for s in segments] == [time(9, 0), time(21, 0)]
    assert segments[0].kind == SegmentKind.EFFECTIVE
    assert segments[1].kind == SegmentKind.PRESENCE_NIGHT
    # 12h de travail effectif continu : pause minimale de 20 min
    assert segments[0].break_minutes == 20

    guard = GuardSegments(time(9, 0), segments)
    assert guard.durations() == [720, 720]
    assert guard.total_minutes() == 1440


def test_default_segments_when_shift_starts_at_night():
    segments = default_guard_segments(time(21, 0))
    assert segments[1].start_time == time(9, 0)


# ── Contrôle structurel ───────────────────────────────────────────────────────

def test_first_segment_must_match_shift_start():
    with pytest.raises(StructuralInputError):
        GuardSegments(time(8, 0), default_guard_segments(time(9, 0)))


def test_single_segment_rejected():
    with pytest.raises(StructuralInputError):
        GuardSegments(time(9, 0), [GuardSegment(time(9, 0))])


def test_unordered_segments_rejected():
    with pytest.raises(StructuralInputError):
        GuardSegments(time(9, 0), [
            GuardSegment(time(9, 0)),
            GuardSegment(time(21, 0)),
            GuardSegment(time(15, 0)),
        ])


# ── Mutations ─────────────────────────────────────────────────────────────────

def test_add_segment_splits_in_half():
    guard = GuardSegments(time(9, 0))
    assert guard.add_segment(0) is True
    assert len(guard) == 3
    assert guard[1].start_time == time(15, 0)
    assert guard[1].kind == SegmentKind.EFFECTIVE
    assert guard.total_minutes() == 1440


def test_remove_segment_keeps_minimum():
    guard = GuardSegments(time(9, 0))
    assert guard.remove_segment(1) is False
    assert len(guard) == 2


def test_remove_first_segment_keeps_shift_start():
    guard = three_segments()
    assert guard.remove_segment(0) is True
    assert guard.shift_start == time(9, 0)
    assert guard[0].kind == SegmentKind.PRESENCE_DAY
    assert guard.total_minutes() == 1440


def test_set_segment_end_moves_boundary():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_end(0, time(22, 0)) is True
    assert guard.durations() == [780, 660]


def test_set_segment_end_refuses_crossing():
    guard = three_segments()
    before = guard.segments
    assert guard.set_segment_end(0, time(22, 0)) is False
    assert guard.segments == before


def test_set_segment_end_refuses_empty_segment():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_end(0, time(9, 0)) is False


def test_set_shift_start_rewrites_first_segment():
    guard = GuardSegments(time(9, 0))
    assert guard.set_shift_start(time(10, 0)) is True
    assert guard.shift_start == time(10, 0)
    assert guard.total_minutes() == 1440


def test_set_shift_start_refused_when_segments_would_cross():
    guard = three_segments()
    assert guard.set_shift_start(time(16, 0)) is False
    assert guard.shift_start == time(9, 0)


def test_set_segment_kind_clears_break():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_kind(0, "presence_day") is True
    assert guard[0].kind == SegmentKind.PRESENCE_DAY
    assert guard[0].break_minutes == 0


def test_set_segment_break():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_break(0, 45) is True
    assert guard[0].break_minutes == 45
    # Segment de présence : pas de pause
    assert guard.set_segment_break(1, 10) is False
    # Pause au moins égale à la durée du segment
    assert guard.set_segment_break(0, 720) is False


def test_min_break_required_only_for_long_effective_segment():
    guard = three_segments()
    assert guard.min_break_required(0) == 0      # 6h pile
    assert guard.min_break_required(2) == 0      # présence
    assert GuardSegments(time(9, 0)).min_break_required(0) == 20


# ── Pauses recalculées après chaque édition ───────────────────────────────────

def guard_hours(guard: GuardSegments) -> float:
    return effective_hours(make_shift(date(2025, 9, 1), "09:00", "09:00", kind=ShiftKind.GUARD_24H,
                                      guard_segments=guard.segments))


def test_split_segment_drops_break_below_six_hours():
    guard = GuardSegments(time(9, 0))
    assert guard.add_segment(0) is True
    # Deux plages effectives de 6h pile : aucune pause obligatoire
    assert [s.break_minutes for s in guard.segments] == [0, 0, 0]
    assert guard_hours(guard) == 12.0


def test_shortened_segment_loses_break():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_end(0, time(13, 0)) is True
    assert guard[0].break_minutes == 0


def test_stretched_segment_gains_break():
    guard = three_segments()
    assert guard[0].break_minutes == 0
    assert guard.set_segment_end(0, time(18, 0)) is True
    assert guard[0].break_minutes == 20


def test_removed_neighbour_extends_effective_segment():
    guard = three_segments()
    assert guard.remove_segment(1) is True
    assert guard.durations() == [720, 720]
    assert guard[0].break_minutes == 20


def test_kind_switch_to_effective_applies_minimum_break():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_kind(1, SegmentKind.EFFECTIVE) is True
    assert guard[1].break_minutes == 20


def test_break_never_below_legal_minimum():
    guard = GuardSegments(time(9, 0))
    assert guard.set_segment_break(0, 5) is True
    assert guard[0].break_minutes == 20
    # Segment court : la valeur saisie est conservée
    short = three_segments()
    assert short.set_segment_break(0, 5) is True
    assert short[0].break_minutes == 5
