"""
Tests de la re-validation différée : seule la dernière saisie est livrée.
"""
import asyncio
from datetime import date

import pytest

from app.engine.compliance import evaluate_shift
from app.services.revalidation import DebouncedRevalidator
from tests.conftest import make_shift

MONDAY = date(2025, 9, 1)


def collector():
    delivered = []

    def on_result(candidate, evaluation):
        delivered.append((candidate, evaluation))

    return delivered, on_result


@pytest.mark.asyncio
async def test_only_latest_edit_is_delivered():
    delivered, on_result = collector()
    revalidator = DebouncedRevalidator(lambda c: evaluate_shift(c, []), on_result, delay=0.01)

    edits = [make_shift(MONDAY, "09:00", end) for end in ("12:00", "13:00", "14:00")]
    for edit in edits:
        revalidator.schedule(edit)
    assert revalidator.pending

    evaluation = await revalidator.wait()
    assert len(delivered) == 1
    assert delivered[0][0] is edits[-1]
    assert evaluation.effective_hours == 5.0
    assert not revalidator.pending


@pytest.mark.asyncio
async def test_cancel_drops_pending_result():
    delivered, on_result = collector()
    revalidator = DebouncedRevalidator(lambda c: evaluate_shift(c, []), on_result, delay=0.01)
    revalidator.schedule(make_shift(MONDAY, "09:00", "12:00"))
    revalidator.cancel()

    assert await revalidator.wait() is None
    await asyncio.sleep(0.02)
    assert delivered == []


@pytest.mark.asyncio
async def test_async_evaluator_supported():
    delivered, on_result = collector()

    async def evaluate(candidate):
        return evaluate_shift(candidate, [])

    revalidator = DebouncedRevalidator(evaluate, on_result, delay=0)
    revalidator.schedule(make_shift(MONDAY, "09:00", "11:00"))
    evaluation = await revalidator.wait()
    assert evaluation.effective_hours == 2.0
    assert len(delivered) == 1


def test_default_delay_from_settings():
    revalidator = DebouncedRevalidator(lambda c: None, lambda c, e: None)
    assert revalidator.delay == pytest.approx(0.3)
