"""
Re-validation différée pendant l'édition d'une intervention.

Le moteur reste synchrone ; ce planificateur appartient à l'appelant. Chaque
nouvelle saisie annule l'évaluation en attente : seul le résultat de la
dernière saisie est livré, jamais celui d'une saisie dépassée.
"""
import asyncio
import logging
from typing import Awaitable, Callable

from app.core.config import settings
from app.engine.compliance import ShiftEvaluation
from app.engine.types import ShiftCandidate

logger = logging.getLogger(__name__)


class DebouncedRevalidator:

    def __init__(
        self,
        evaluate: Callable[[ShiftCandidate], ShiftEvaluation | Awaitable[ShiftEvaluation]],
        on_result: Callable[[ShiftCandidate, ShiftEvaluation], None],
        delay: float | None = None,
    ):
        self.evaluate = evaluate
        self.on_result = on_result
        self.delay = settings.REVALIDATION_DEBOUNCE_MS / 1000 if delay is None else delay
        self._task: asyncio.Task | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, candidate: ShiftCandidate) -> asyncio.Task:
        """Remplace toute évaluation en attente par celle de `candidate`."""
        self._cancel_task()
        self._generation += 1
        self._task = asyncio.create_task(self._run(candidate, self._generation))
        return self._task

    async def _run(self, candidate: ShiftCandidate, generation: int) -> ShiftEvaluation | None:
        await asyncio.sleep(self.delay)
        evaluation = self.evaluate(candidate)
        if asyncio.iscoroutine(evaluation):
            evaluation = await evaluation
        if generation != self._generation:
            logger.debug("Résultat de re-validation obsolète ignoré")
            return None
        self.on_result(candidate, evaluation)
        return evaluation

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def cancel(self) -> None:
        """Abandon de l'édition : aucun résultat ne sera plus livré."""
        self._generation += 1
        self._cancel_task()
        self._task = None

    async def wait(self) -> ShiftEvaluation | None:
        if self._task is None:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            return None
