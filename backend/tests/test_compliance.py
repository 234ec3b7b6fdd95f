"""
Tests du validateur : règles bloquantes, avertissements, isolation des règles
en échec, pré-contrôle rapide et suggestions de créneaux.
"""
import uuid
from datetime import date, time, timedelta

import pytest

from app.engine import compliance as compliance_module
from app.engine import rules
from app.engine.compliance import (
    compliance_summary,
    evaluate_shift,
    quick_validate,
    run_validation,
    suggest_alternatives,
    validate_shift,
)
from app.engine.errors import ComputationFailure
from app.engine.types import AbsenceRecord, ContractTerms, GuardSegment, SegmentKind, ShiftKind
from tests.conftest import make_shift

MONDAY = date(2025, 9, 1)


def day(offset: int) -> date:
    return MONDAY + timedelta(days=offset)


def error_codes(result) -> list[str]:
    return [f.code for f in result.errors]


def warning_codes(result) -> list[str]:
    return [f.code for f in result.warnings]


# ── Chevauchement ─────────────────────────────────────────────────────────────

def test_overlap_yields_single_blocking_finding():
    existing = [make_shift(MONDAY, "09:00", "13:00", id="s1")]
    result = validate_shift(make_shift(MONDAY, "12:00", "16:00"), existing)
    assert error_codes(result) == [rules.SHIFT_OVERLAP]
    assert result.errors[0].blocking is True
    assert not result.valid


def test_overlap_does_not_stop_other_rules():
    existing = [make_shift(MONDAY, "09:00", "11:00", id="s1")]
    # 7h sans pause : avertissement indépendant du chevauchement
    result = validate_shift(make_shift(MONDAY, "10:00", "17:00"), existing)
    assert error_codes(result) == [rules.SHIFT_OVERLAP]
    assert warning_codes(result) == [rules.MANDATORY_BREAK]


def test_overlap_across_midnight_with_other_contract_same_employee():
    existing = [make_shift(MONDAY, "22:00", "06:00", contract_id="other", id="n1")]
    result = validate_shift(make_shift(day(1), "05:00", "09:00"), existing)
    assert rules.SHIFT_OVERLAP in error_codes(result)


def test_editing_a_shift_ignores_its_previous_version():
    existing = [make_shift(MONDAY, "09:00", "13:00", id="s1")]
    moved = make_shift(MONDAY, "10:00", "14:00", id="s1")
    assert validate_shift(moved, existing).valid


# ── Repos quotidien ───────────────────────────────────────────────────────────

def test_daily_rest_violation_and_suggestion():
    existing = [make_shift(MONDAY, "14:00", "22:00", 30, id="s1")]
    candidate = make_shift(day(1), "06:00", "12:00")
    result = validate_shift(candidate, existing)
    assert error_codes(result) == [rules.DAILY_REST]
    assert "02/09/2025 à 09:00" in result.errors[0].message

    slots = suggest_alternatives(candidate, existing, result)
    assert slots[0].date == day(1)
    assert (slots[0].start_time, slots[0].end_time) == ("09:00", "15:00")


def test_daily_rest_checked_towards_next_shift():
    existing = [make_shift(day(1), "06:00", "12:00", id="s1")]
    result = validate_shift(make_shift(MONDAY, "14:00", "22:00", 30), existing)
    assert rules.DAILY_REST in error_codes(result)


def test_presence_exempts_daily_rest():
    existing = [make_shift(MONDAY, "21:00", "07:00", kind=ShiftKind.PRESENCE_NIGHT, id="n1")]
    result = validate_shift(make_shift(day(1), "08:00", "12:00"), existing)
    assert rules.DAILY_REST not in error_codes(result)


# ── Durées maximales ──────────────────────────────────────────────────────────

def test_daily_max_blocking():
    result = validate_shift(make_shift(MONDAY, "07:00", "18:00", 30), [])
    assert error_codes(result) == [rules.DAILY_MAX]


def test_daily_max_warning_within_margin():
    result = validate_shift(make_shift(MONDAY, "08:00", "17:45", 30), [])
    assert result.valid
    assert warning_codes(result) == [rules.DAILY_MAX]


def test_daily_warning_margin_is_configurable():
    candidate = make_shift(MONDAY, "08:00", "17:45", 30)
    result = validate_shift(candidate, [], daily_warning_margin=0.5)
    assert warning_codes(result) == []


def test_guard_exempt_from_daily_max():
    candidate = make_shift(MONDAY, "09:00", "09:00", kind=ShiftKind.GUARD_24H, guard_segments=[
        GuardSegment(time(9, 0), SegmentKind.EFFECTIVE, 20),
        GuardSegment(time(21, 0), SegmentKind.PRESENCE_NIGHT),
    ])
    result = validate_shift(candidate, [])
    assert rules.DAILY_MAX not in error_codes(result) + warning_codes(result)


def four_long_days() -> list:
    return [make_shift(day(i), "08:00", "18:00", id=f"s{i}") for i in range(4)]


def test_weekly_max_blocking():
    result = validate_shift(make_shift(day(4), "08:00", "17:00", 30), four_long_days())
    assert error_codes(result) == [rules.WEEKLY_MAX]


def test_weekly_warning_above_44h():
    result = validate_shift(make_shift(day(4), "08:00", "13:00"), four_long_days())
    assert result.valid
    assert warning_codes(result) == [rules.WEEKLY_MAX]


# ── Repos hebdomadaire ────────────────────────────────────────────────────────

def test_weekly_rest_violation():
    existing = [make_shift(day(i), "08:00", "12:00", id=f"s{i}") for i in range(6)]
    result = validate_shift(make_shift(day(6), "08:00", "12:00"), existing)
    assert error_codes(result) == [rules.WEEKLY_REST]


def test_weekly_rest_status_counts_spill_from_previous_sunday():
    status = rules.weekly_rest_status(MONDAY, [make_shift(day(-1), "22:00", "06:00")])
    # Semaine libre à partir du lundi 6h
    assert status.rest_periods[0].start.hour == 6
    assert status.longest_rest_hours == pytest.approx(7 * 24 - 6)
    assert status.is_compliant


# ── Absences, pause, nuits ────────────────────────────────────────────────────

def test_absence_conflict():
    absence = AbsenceRecord(id="a1", employee_id="employee-1", absence_type="sick",
                            start_date=MONDAY, end_date=day(2))
    result = validate_shift(make_shift(day(1), "09:00", "12:00"), [], [absence])
    assert error_codes(result) == [rules.ABSENCE_CONFLICT]
    assert "Arrêt maladie" in result.errors[0].message


def test_pending_absence_does_not_conflict():
    absence = AbsenceRecord(id="a1", employee_id="employee-1", absence_type="vacation",
                            start_date=MONDAY, end_date=day(2), status="pending")
    assert validate_shift(make_shift(day(1), "09:00", "12:00"), [], [absence]).valid


def test_mandatory_break_is_warning():
    result = validate_shift(make_shift(MONDAY, "08:00", "15:00", 10), [])
    assert result.valid
    assert warning_codes(result) == [rules.MANDATORY_BREAK]


def test_night_presence_longer_than_12h():
    result = validate_shift(make_shift(MONDAY, "19:00", "08:00", kind=ShiftKind.PRESENCE_NIGHT), [])
    assert rules.NIGHT_PRESENCE_MAX_DURATION in error_codes(result)


def test_sixth_consecutive_night_blocked():
    nights = [
        make_shift(day(i), "21:00", "07:00", kind=ShiftKind.PRESENCE_NIGHT, id=f"n{i}")
        for i in range(5)
    ]
    candidate = make_shift(day(5), "21:00", "07:00", kind=ShiftKind.PRESENCE_NIGHT)
    assert rules.consecutive_nights(candidate, nights) == 6
    assert rules.CONSECUTIVE_NIGHTS_MAX in error_codes(validate_shift(candidate, nights))


# ── Garde 24h ─────────────────────────────────────────────────────────────────

def guard(*segments) -> object:
    return make_shift(MONDAY, "09:00", "09:00", kind=ShiftKind.GUARD_24H,
                      guard_segments=list(segments))


def test_guard_effective_limit():
    candidate = guard(
        GuardSegment(time(9, 0), SegmentKind.EFFECTIVE, 30),
        GuardSegment(time(22, 0), SegmentKind.PRESENCE_NIGHT),
    )
    result = validate_shift(candidate, [])
    assert error_codes(result) == [rules.GUARD_24H_EFFECTIVE_MAX]


def test_guard_long_night_segment_warns():
    candidate = guard(
        GuardSegment(time(9, 0), SegmentKind.EFFECTIVE, 20),
        GuardSegment(time(20, 0), SegmentKind.PRESENCE_NIGHT),
    )
    result = validate_shift(candidate, [])
    assert result.valid
    assert warning_codes(result) == [rules.GUARD_24H_EFFECTIVE_MAX]


def test_guard_amplitude_over_chained_shifts():
    existing = [
        make_shift(MONDAY, "10:00", "19:00", 30, id="e1"),
        make_shift(MONDAY, "20:00", "07:00", kind=ShiftKind.PRESENCE_NIGHT, id="n1"),
    ]
    candidate = make_shift(day(1), "08:00", "12:00", kind=ShiftKind.PRESENCE_DAY)
    assert error_codes(validate_shift(candidate, existing)) == [rules.GUARD_MAX_AMPLITUDE]


# ── Isolation des règles en échec ─────────────────────────────────────────────

def test_failing_rule_becomes_validation_error_warning():
    existing = [make_shift(MONDAY, "09:30", "11:00", id="s1")]
    outcome = run_validation(make_shift(MONDAY, "09:00", "10:00", 90), existing)
    assert outcome.validation_error is not None
    assert "Pause" in outcome.validation_error
    assert rules.VALIDATION_ERROR in warning_codes(outcome.result)
    # Les règles qui ont pu s'exécuter ont produit leurs constats
    assert rules.SHIFT_OVERLAP in error_codes(outcome.result)


def test_guard_without_segments_is_reported_not_raised():
    candidate = make_shift(MONDAY, "09:00", "09:00", kind=ShiftKind.GUARD_24H)
    evaluation = evaluate_shift(candidate, [], contract=ContractTerms(35, 12))
    assert evaluation.validation_error is not None
    assert evaluation.effective_hours is None
    assert evaluation.computed_pay is None
    assert evaluation.can_submit(acknowledge_warnings=True) is False


# ── Pré-contrôle rapide ───────────────────────────────────────────────────────

@pytest.mark.parametrize("candidate,existing", [
    (make_shift(MONDAY, "12:00", "16:00"), [make_shift(MONDAY, "09:00", "13:00", id="s1")]),
    (make_shift(day(1), "06:00", "12:00"), [make_shift(MONDAY, "14:00", "22:00", 30, id="s1")]),
    (make_shift(MONDAY, "07:00", "18:00", 30), []),
    (make_shift(day(4), "08:00", "17:00", 30), four_long_days()),
    (make_shift(MONDAY, "09:00", "12:00"), []),
    (make_shift(MONDAY, "09:00", "10:00", 90), []),
])
def test_quick_validation_never_blocks_more_than_full(candidate, existing):
    quick = quick_validate(candidate, existing)
    full = validate_shift(candidate, existing)
    if not quick.can_create:
        assert not full.valid
    assert len(quick.blocking_errors) <= len(full.errors)


def test_quick_validation_reports_messages():
    quick = quick_validate(
        make_shift(MONDAY, "12:00", "16:00"),
        [make_shift(MONDAY, "09:00", "13:00", id="s1")],
    )
    assert quick.can_create is False
    assert "Chevauchement" in quick.blocking_errors[0]


# ── Évaluation ────────────────────────────────────────────────────────────────

def test_evaluation_of_requalified_night():
    candidate = make_shift(MONDAY, "21:00", "07:00", kind=ShiftKind.PRESENCE_NIGHT,
                           night_interventions_count=4)
    evaluation = evaluate_shift(candidate, [], contract=ContractTerms(35, 12))
    assert evaluation.is_requalified
    assert evaluation.effective_hours == 10.0
    assert evaluation.notices and "requalifiée" in evaluation.notices[0]
    assert evaluation.computed_pay.base_pay == 120.0


def test_pay_failure_leaves_compliance_untouched(monkeypatch):
    def failing_pay(*args, **kwargs):
        raise ComputationFailure("taux horaire incohérent")

    candidate = make_shift(MONDAY, "09:00", "12:00")
    expected = evaluate_shift(candidate, []).compliance
    monkeypatch.setattr(compliance_module, "compute_pay", failing_pay)

    evaluation = evaluate_shift(candidate, [], contract=ContractTerms(35, 12))
    assert evaluation.computed_pay is None
    assert evaluation.pay_error == "taux horaire incohérent"
    assert evaluation.compliance == expected
    assert evaluation.compliance.valid
    assert evaluation.effective_hours == 3.0
    assert evaluation.validation_error is None


def test_warnings_need_acknowledgement():
    evaluation = evaluate_shift(make_shift(MONDAY, "08:00", "15:00"), [])
    assert evaluation.compliance.valid
    assert evaluation.can_submit() is False
    assert evaluation.can_submit(acknowledge_warnings=True) is True


def test_compliance_summary():
    employee = "employee-1"
    shifts = [make_shift(MONDAY, "08:00", "17:00", 60, id=uuid.uuid4())]
    summary = compliance_summary(employee, MONDAY, shifts)
    assert summary.remaining_daily_hours == 2.0
    assert summary.remaining_weekly_hours == 40.0
    assert summary.weekly_rest.is_compliant
    assert len(summary.recommendations) == 1
