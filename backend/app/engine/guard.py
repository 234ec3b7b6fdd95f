"""
Garde 24h : liste ordonnée de segments qui couvre exactement 1440 minutes.

La fin du segment i est le début du segment i+1 ; la fin du dernier segment
est le début du premier, le lendemain. Le début du segment 0 est toujours le
début de l'intervention.
"""
import logging
from dataclasses import replace
from datetime import time

from app.engine.errors import StructuralInputError
from app.engine.timeutils import MINUTES_PER_DAY, from_minutes, shift_duration, to_minutes
from app.engine.types import GuardSegment, SegmentKind

logger = logging.getLogger(__name__)

MIN_SEGMENTS = 2

# Art. L3121-16 : 20 min de pause dès 6h de travail effectif continu
BREAK_THRESHOLD_MINUTES = 6 * 60
MIN_BREAK_MINUTES = 20

DEFAULT_NIGHT_START = time(21, 0)


def segment_end(index: int, segments: list[GuardSegment]) -> time:
    if index + 1 < len(segments):
        return segments[index + 1].start_time
    return segments[0].start_time


def segment_duration(index: int, segments: list[GuardSegment]) -> int:
    return shift_duration(segments[index].start_time, segment_end(index, segments), 0)


def min_break_required(index: int, segments: list[GuardSegment]) -> int:
    """
    Pause minimale d'un segment effectif : seul un segment continu > 6h
    déclenche l'obligation, les segments de présence séparent les plages.
    Purement indicatif, ce n'est pas une règle bloquante.
    """
    seg = segments[index]
    if seg.kind != SegmentKind.EFFECTIVE:
        return 0
    if segment_duration(index, segments) > BREAK_THRESHOLD_MINUTES:
        return MIN_BREAK_MINUTES
    return 0


def apply_min_breaks(segments: list[GuardSegment]) -> list[GuardSegment]:
    return [
        replace(seg, break_minutes=min_break_required(i, segments))
        if seg.kind == SegmentKind.EFFECTIVE else seg
        for i, seg in enumerate(segments)
    ]


def default_guard_segments(shift_start: time) -> list[GuardSegment]:
    night_start = DEFAULT_NIGHT_START
    if night_start == shift_start:
        night_start = from_minutes(to_minutes(shift_start) + 12 * 60)
    segments = [
        GuardSegment(start_time=shift_start, kind=SegmentKind.EFFECTIVE),
        GuardSegment(start_time=night_start, kind=SegmentKind.PRESENCE_NIGHT),
    ]
    return apply_min_breaks(segments)


class GuardSegments:
    """
    Liste éditable des segments d'une garde 24h.

    Chaque mutation conserve la couverture exacte de 24h ; une édition qui la
    casserait renvoie False et laisse la liste intacte.
    """

    def __init__(self, shift_start: time, segments: list[GuardSegment] | None = None):
        if segments is None:
            segments = default_guard_segments(shift_start)
        self._segments = [replace(seg) for seg in segments]
        self.check(shift_start)

    @property
    def segments(self) -> list[GuardSegment]:
        return [replace(seg) for seg in self._segments]

    @property
    def shift_start(self) -> time:
        return self._segments[0].start_time

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> GuardSegment:
        return self._segments[index]

    # ── Invariants ────────────────────────────────────────────────────────────

    def _offsets(self, segments: list[GuardSegment] | None = None) -> list[int]:
        segs = segments if segments is not None else self._segments
        origin = to_minutes(segs[0].start_time)
        return [(to_minutes(s.start_time) - origin) % MINUTES_PER_DAY for s in segs]

    def _is_tiling(self, segments: list[GuardSegment]) -> bool:
        if len(segments) < MIN_SEGMENTS:
            return False
        offsets = self._offsets(segments)
        return all(b > a for a, b in zip(offsets, offsets[1:]))

    def check(self, shift_start: time | None = None) -> None:
        if len(self._segments) < MIN_SEGMENTS:
            raise StructuralInputError(
                f"Une garde 24h comporte au moins {MIN_SEGMENTS} segments"
            )
        if shift_start is not None and self._segments[0].start_time != shift_start:
            raise StructuralInputError(
                "Le premier segment doit commencer à l'heure de début de la garde"
            )
        if not self._is_tiling(self._segments):
            raise StructuralInputError(
                "Les segments de garde doivent être ordonnés et couvrir exactement 24h"
            )
        for seg in self._segments:
            if seg.break_minutes < 0:
                raise StructuralInputError("Pause négative dans un segment de garde")

    def durations(self) -> list[int]:
        return [segment_duration(i, self._segments) for i in range(len(self._segments))]

    def total_minutes(self) -> int:
        return sum(self.durations())

    # ── Mutations ─────────────────────────────────────────────────────────────

    def _commit(self, candidate: list[GuardSegment]) -> bool:
        """Toute édition structurelle recalcule les pauses minimales."""
        if not self._is_tiling(candidate):
            return False
        self._segments = apply_min_breaks(candidate)
        return True

    def add_segment(self, after_index: int) -> bool:
        """Coupe le segment `after_index` en deux moitiés de même type."""
        if not 0 <= after_index < len(self._segments):
            return False
        duration = segment_duration(after_index, self._segments)
        if duration < 2:
            return False
        seg = self._segments[after_index]
        mid = from_minutes(to_minutes(seg.start_time) + duration // 2)
        candidate = list(self._segments)
        candidate.insert(after_index + 1, GuardSegment(start_time=mid, kind=seg.kind))
        return self._commit(candidate)

    def remove_segment(self, index: int) -> bool:
        if len(self._segments) <= MIN_SEGMENTS or not 0 <= index < len(self._segments):
            return False
        candidate = [seg for i, seg in enumerate(self._segments) if i != index]
        if index == 0:
            # Le segment 0 porte le début de la garde : le suivant en hérite
            candidate[0] = replace(candidate[0], start_time=self._segments[0].start_time)
        return self._commit(candidate)

    def set_segment_end(self, index: int, new_end: time) -> bool:
        """Déplace la frontière entre `index` et `index + 1`."""
        if not 0 <= index < len(self._segments) - 1:
            return False
        candidate = list(self._segments)
        candidate[index + 1] = replace(candidate[index + 1], start_time=new_end)
        return self._commit(candidate)

    def set_segment_kind(self, index: int, kind: SegmentKind) -> bool:
        if not 0 <= index < len(self._segments):
            return False
        candidate = list(self._segments)
        candidate[index] = replace(candidate[index], kind=SegmentKind(kind), break_minutes=0)
        return self._commit(candidate)

    def set_segment_break(self, index: int, minutes: int) -> bool:
        """La pause saisie ne descend jamais sous le minimum légal du segment."""
        if not 0 <= index < len(self._segments):
            return False
        seg = self._segments[index]
        if seg.kind != SegmentKind.EFFECTIVE:
            return False
        if minutes < 0 or minutes >= segment_duration(index, self._segments):
            return False
        minutes = max(min_break_required(index, self._segments), minutes)
        self._segments[index] = replace(seg, break_minutes=minutes)
        return True

    def set_shift_start(self, new_start: time) -> bool:
        """Change le début de la garde : réécrit le début du segment 0 dans la même opération."""
        candidate = list(self._segments)
        candidate[0] = replace(candidate[0], start_time=new_start)
        if not self._commit(candidate):
            logger.debug("Début de garde %s refusé : segments non contigus", new_start)
            return False
        return True

    def min_break_required(self, index: int) -> int:
        return min_break_required(index, self._segments)
