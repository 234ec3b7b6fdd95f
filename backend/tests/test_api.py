"""
Tests des endpoints /api/v1 : interventions, absences, soldes, conformité, PCH.
"""
import uuid
from datetime import date, time

import pytest

from app.models.shift import Shift
from tests.conftest import EMPLOYER_ID, add_contract

SHIFTS_URL = "/api/v1/shifts"
ABSENCES_URL = "/api/v1/absences"
BALANCES_URL = "/api/v1/leave-balances"


def shift_payload(contract, **overrides) -> dict:
    return {
        "contract_id": str(contract.id),
        "date": "2025-09-01",
        "start_time": "09:00:00",
        "end_time": "17:00:00",
        "break_minutes": 30,
        **overrides,
    }


# ── POST /shifts/validate ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_validate_returns_hours_and_pay(client, contract):
    resp = await client.post(f"{SHIFTS_URL}/validate", json=shift_payload(contract))
    assert resp.status_code == 200
    data = resp.json()
    assert data["compliance"]["valid"] is True
    assert data["effective_hours"] == 7.5
    assert data["computed_pay"]["base_pay"] == 112.5
    assert data["can_submit"] is True


@pytest.mark.asyncio
async def test_validate_unknown_contract(client):
    payload = {"contract_id": str(uuid.uuid4()), "date": "2025-09-01",
               "start_time": "09:00:00", "end_time": "12:00:00"}
    resp = await client.post(f"{SHIFTS_URL}/validate", json=payload)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_validate_requalified_night(client, contract):
    payload = shift_payload(contract, start_time="21:00:00", end_time="07:00:00", break_minutes=0,
                            shift_kind="presence_night", night_interventions_count=4)
    data = (await client.post(f"{SHIFTS_URL}/validate", json=payload)).json()
    assert data["is_requalified"] is True
    assert data["effective_hours"] == 10.0
    assert data["notices"]


@pytest.mark.asyncio
async def test_validate_structural_error_reported(client, contract):
    payload = shift_payload(contract, start_time="09:00:00", end_time="10:00:00", break_minutes=90)
    data = (await client.post(f"{SHIFTS_URL}/validate", json=payload)).json()
    assert data["validation_error"]
    assert data["computed_pay"] is None
    assert data["can_submit"] is False


@pytest.mark.asyncio
async def test_validate_guard_with_segments(client, contract):
    payload = shift_payload(contract, start_time="08:00:00", end_time="08:00:00", break_minutes=0,
                            shift_kind="guard_24h", guard_segments=[
                                {"start_time": "08:00", "kind": "effective", "break_minutes": 20},
                                {"start_time": "14:00", "kind": "presence_day"},
                                {"start_time": "20:00", "kind": "presence_night"},
                            ])
    data = (await client.post(f"{SHIFTS_URL}/validate", json=payload)).json()
    assert data["validation_error"] is None
    # 5h40 effectives + 6h × 2/3
    assert data["effective_hours"] == 9.67


@pytest.mark.asyncio
async def test_invalid_shift_kind(client, contract):
    resp = await client.post(f"{SHIFTS_URL}/validate", json=shift_payload(contract, shift_kind="astreinte"))
    assert resp.status_code == 422


# ── POST /shifts/quick-validate ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_quick_validate(client, contract):
    await client.post(SHIFTS_URL, json=shift_payload(contract))
    resp = await client.post(f"{SHIFTS_URL}/quick-validate",
                             json=shift_payload(contract, start_time="16:00:00", end_time="19:00:00",
                                                break_minutes=0))
    assert resp.status_code == 200
    assert resp.json()["can_create"] is False
    assert resp.json()["blocking_errors"]


# ── POST /shifts ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_shift(client, contract):
    resp = await client.post(SHIFTS_URL, json=shift_payload(contract, notes="Toilette, repas"))
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "planned"
    assert data["employee_id"] == str(contract.employee_id)
    assert data["effective_hours"] == 7.5
    assert data["computed_pay"]["total_pay"] == 112.5


@pytest.mark.asyncio
async def test_create_overlapping_shift_rejected(client, contract):
    assert (await client.post(SHIFTS_URL, json=shift_payload(contract))).status_code == 201
    resp = await client.post(SHIFTS_URL, json=shift_payload(contract, start_time="16:00:00",
                                                             end_time="18:00:00", break_minutes=0))
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert [e["code"] for e in detail["compliance"]["errors"]] == ["SHIFT_OVERLAP"]
    assert detail["alternatives"][0]["start_time"] == "17:00"


@pytest.mark.asyncio
async def test_warning_needs_acknowledgement(client, contract):
    payload = shift_payload(contract, start_time="08:00:00", end_time="17:45:00")
    resp = await client.post(SHIFTS_URL, json=payload)
    assert resp.status_code == 422
    assert resp.json()["detail"]["compliance"]["warnings"][0]["code"] == "DAILY_MAX_HOURS"

    resp = await client.post(SHIFTS_URL, json={**payload, "acknowledge_warnings": True})
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_update_shift(client, contract):
    created = (await client.post(SHIFTS_URL, json=shift_payload(contract))).json()
    resp = await client.put(f"{SHIFTS_URL}/{created['id']}",
                            json=shift_payload(contract, start_time="10:00:00", end_time="18:00:00"))
    assert resp.status_code == 200
    assert resp.json()["start_time"] == "10:00:00"


@pytest.mark.asyncio
async def test_update_unknown_shift(client, contract):
    resp = await client.put(f"{SHIFTS_URL}/{uuid.uuid4()}", json=shift_payload(contract))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_shifts(client, contract, db):
    for day in ("2025-09-01", "2025-09-02"):
        await client.post(SHIFTS_URL, json=shift_payload(contract, date=day))
    resp = await client.get(SHIFTS_URL, params={"contract_id": str(contract.id)})
    assert resp.status_code == 200
    assert [s["date"] for s in resp.json()] == ["2025-09-01", "2025-09-02"]

    resp = await client.get(SHIFTS_URL, params={"contract_id": str(contract.id), "from_date": "2025-09-02"})
    assert len(resp.json()) == 1


# ── Absences et soldes ────────────────────────────────────────────────────────

async def init_balance(client, employee_id, months=12) -> dict:
    resp = await client.post(BALANCES_URL, json={
        "employee_id": str(employee_id), "leave_year": "2025-2026", "months_worked": months,
    })
    assert resp.status_code == 201
    return resp.json()


def vacation(employee_id, start="2025-09-01", end="2025-09-05") -> dict:
    return {"employee_id": str(employee_id), "absence_type": "vacation",
            "start_date": start, "end_date": end}


@pytest.mark.asyncio
async def test_absence_lifecycle(client):
    employee_id = uuid.uuid4()
    balance = await init_balance(client, employee_id)
    assert balance["acquired_days"] == 30
    assert balance["remaining_days"] == 30

    resp = await client.post(ABSENCES_URL, json=vacation(employee_id))
    assert resp.status_code == 201
    absence = resp.json()
    assert absence["status"] == "pending"
    assert absence["business_days"] == 5

    resp = await client.post(f"{ABSENCES_URL}/{absence['id']}/approve")
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert resp.json()["decided_at"] is not None

    resp = await client.get(f"{BALANCES_URL}/{employee_id}", params={"leave_year": "2025-2026"})
    assert resp.json()["taken_days"] == 5
    assert resp.json()["remaining_days"] == 25

    # État final : plus de transition possible
    resp = await client.post(f"{ABSENCES_URL}/{absence['id']}/reject")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_reject_with_reason(client):
    employee_id = uuid.uuid4()
    await init_balance(client, employee_id)
    absence = (await client.post(ABSENCES_URL, json=vacation(employee_id))).json()
    resp = await client.post(f"{ABSENCES_URL}/{absence['id']}/reject", json={"reason": "Pas de remplaçant"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert resp.json()["reason"] == "Pas de remplaçant"


@pytest.mark.asyncio
async def test_insufficient_balance(client):
    employee_id = uuid.uuid4()
    await init_balance(client, employee_id, months=1)
    resp = await client.post(ABSENCES_URL, json=vacation(employee_id))
    assert resp.status_code == 422
    assert "Solde de congés insuffisant" in resp.json()["detail"][0]


@pytest.mark.asyncio
async def test_overlapping_absence(client):
    employee_id = uuid.uuid4()
    await init_balance(client, employee_id)
    assert (await client.post(ABSENCES_URL, json=vacation(employee_id))).status_code == 201
    resp = await client.post(ABSENCES_URL, json=vacation(employee_id, "2025-09-04", "2025-09-10"))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_absence_dates_inverted(client):
    resp = await client.post(ABSENCES_URL, json=vacation(uuid.uuid4(), "2025-09-05", "2025-09-01"))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_approve_unknown_absence(client):
    resp = await client.post(f"{ABSENCES_URL}/{uuid.uuid4()}/approve")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_balance_not_initialised(client):
    resp = await client.get(f"{BALANCES_URL}/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_approved_absence_blocks_shift(client, contract):
    await init_balance(client, contract.employee_id)
    absence = (await client.post(ABSENCES_URL, json=vacation(contract.employee_id))).json()
    await client.post(f"{ABSENCES_URL}/{absence['id']}/approve")

    data = (await client.post(f"{SHIFTS_URL}/validate", json=shift_payload(contract))).json()
    assert [e["code"] for e in data["compliance"]["errors"]] == ["ABSENCE_CONFLICT"]


# ── Conformité ────────────────────────────────────────────────────────────────

async def fill_week(db, contract):
    for day in range(1, 8):
        db.add(Shift(
            contract_id=contract.id,
            employee_id=contract.employee_id,
            date=date(2025, 9, day),
            start_time=time(8, 0),
            end_time=time(12, 0),
        ))
    await db.commit()


@pytest.mark.asyncio
async def test_overview(client, contract, db):
    await fill_week(db, contract)
    resp = await client.get("/api/v1/compliance/overview",
                            params={"employer_id": str(EMPLOYER_ID), "reference_date": "2025-09-03"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["week_start"] == "2025-09-01"
    assert data["summary"]["critical"] == 1
    employee = data["employees"][0]
    assert employee["total_hours"] == 28.0
    assert employee["alerts"][0]["code"] == "WEEKLY_REST"
    assert employee["remaining_weekly_hours"] == 20.0
    assert employee["remaining_daily_hours"] == 6.0
    assert employee["weekly_rest"] == {"longest_rest_hours": 20.0, "is_compliant": False}


@pytest.mark.asyncio
async def test_alerts(client, contract, db):
    await fill_week(db, contract)
    resp = await client.get("/api/v1/compliance/alerts",
                            params={"employer_id": str(EMPLOYER_ID), "reference_date": "2025-09-03"})
    assert resp.status_code == 200
    assert resp.json()[0]["employee_name"] == contract.employee_name
    assert resp.json()[0]["severity"] == "critical"


@pytest.mark.asyncio
async def test_history(client, contract):
    resp = await client.get("/api/v1/compliance/history",
                            params={"employer_id": str(EMPLOYER_ID), "weeks_back": 2})
    assert resp.status_code == 200
    weeks = resp.json()
    assert len(weeks) == 2
    assert weeks[0]["week_start"] < weeks[1]["week_start"]


# ── PCH et santé ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_benefit_envelope(client):
    resp = await client.get("/api/v1/benefits/envelope", params={"hours": 60})
    assert resp.status_code == 200
    assert resp.json()["envelope"] == 1160.40
    assert resp.json()["hourly_rate"] == 19.34


@pytest.mark.asyncio
async def test_benefit_unknown_kind(client):
    resp = await client.get("/api/v1/benefits/envelope", params={"hours": 10, "kind": "agence"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_benefit_defaults_from_contract(client, db):
    c = await add_contract(db, pch_type="mandataire", pch_monthly_hours=50)
    resp = await client.get("/api/v1/benefits/envelope", params={"contract_id": str(c.id)})
    assert resp.status_code == 200
    assert resp.json()["kind"] == "mandataire"
    assert resp.json()["hours"] == 50
    assert resp.json()["envelope"] == 1063.5

    # Les paramètres explicites priment sur le contrat
    resp = await client.get("/api/v1/benefits/envelope",
                            params={"contract_id": str(c.id), "hours": 60, "kind": "emploi_direct"})
    assert resp.json()["envelope"] == 1160.40


@pytest.mark.asyncio
async def test_benefit_without_hours(client, contract):
    resp = await client.get("/api/v1/benefits/envelope", params={"contract_id": str(contract.id)})
    assert resp.status_code == 422
    resp = await client.get("/api/v1/benefits/envelope",
                            params={"contract_id": str(uuid.uuid4()), "hours": 10})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
