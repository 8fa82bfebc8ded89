"""Random, reuse-free selection of questions against a requirement template."""

from __future__ import annotations

import random
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from loguru import logger

from app.db.supabase import CandidateQuestion
from app.services.mapper import PaperQuestion


class SelectionError(RuntimeError):
    """Base class for question selection failures."""


class PreconditionError(SelectionError):
    """Raised when a selection cannot start (no subject, unknown test, ...)."""


class NoCandidatesError(PreconditionError):
    """Raised when the repository returned no questions for the subject."""


class ShortageError(SelectionError):
    """Raised when a bucket cannot supply the number of questions a slot needs."""

    def __init__(self, part: str, marks: int, required: int, available: int) -> None:
        self.part = part
        self.marks = marks
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough {marks}-mark questions available for Part {part} "
            f"(required {required}, available {available})"
        )


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


@dataclass(frozen=True)
class RequirementSlot:
    """One template line: ``count`` questions of ``part``/``marks``, each with an OR alternative if ``needs_or``."""

    part: str
    marks: int
    count: int
    needs_or: bool = False

    @property
    def draw_size(self) -> int:
        return self.count * (2 if self.needs_or else 1)


@dataclass(frozen=True)
class RequirementLine:
    """One preview line: a single question of ``part``/``marks``, optionally pinned to K/CO levels."""

    part: str
    marks: int
    k_level: Optional[str] = None
    co_level: Optional[str] = None

    @property
    def specificity(self) -> int:
        return int(bool(self.k_level)) + int(bool(self.co_level))

    def matches(self, question: CandidateQuestion) -> bool:
        if question.part != self.part or question.marks != self.marks:
            return False
        if self.k_level and question.k_level != self.k_level:
            return False
        if self.co_level and question.co_level != self.co_level:
            return False
        return True


# Standard unit test: 5 x 2 marks, 2 x 12 marks (OR), 1 x 16 marks (OR)
DEFAULT_TEMPLATE: Tuple[RequirementSlot, ...] = (
    RequirementSlot(part="A", marks=2, count=5),
    RequirementSlot(part="B", marks=12, count=2, needs_or=True),
    RequirementSlot(part="C", marks=16, count=1, needs_or=True),
)


def parse_template(rows: Iterable[Mapping[str, Any]]) -> List[RequirementSlot]:
    """Build slots from ``{part, marks, count, needsOr}`` dicts (``needs_or`` is accepted too)."""
    template = []
    for row in rows:
        needs_or = row.get("needsOr", row.get("needs_or", False))
        slot = RequirementSlot(
            part=str(row["part"]).upper(),
            marks=int(row["marks"]),
            count=int(row["count"]),
            needs_or=bool(needs_or),
        )
        if slot.marks <= 0 or slot.count <= 0:
            raise ValueError(f"Slot marks and count must be positive: {dict(row)}")
        template.append(slot)
    return template


def _timestamp_ids() -> Callable[[int], str]:
    base = int(time.time() * 1000)
    return lambda index: str(base + index)


def require_candidates(pool: Sequence[CandidateQuestion], subject_id: Optional[str] = None) -> None:
    if not pool:
        subject = f" {subject_id}" if subject_id else ""
        raise NoCandidatesError(f"No questions available for subject{subject}")


def _group_by_bucket(pool: Iterable[CandidateQuestion]) -> Dict[Tuple[str, int], List[CandidateQuestion]]:
    buckets: Dict[Tuple[str, int], List[CandidateQuestion]] = defaultdict(list)
    for question in pool:
        buckets[(question.part, question.marks)].append(question)
    return buckets


def _draw(bucket: List[CandidateQuestion], rng: RandomSource) -> CandidateQuestion:
    return bucket.pop(rng.randrange(len(bucket)))


def select_questions(
    pool: Sequence[CandidateQuestion],
    template: Sequence[RequirementSlot],
    *,
    rng: Optional[RandomSource] = None,
    id_factory: Optional[Callable[[int], str]] = None,
) -> List[PaperQuestion]:
    """Resolve ``template`` against ``pool``.

    Candidates are grouped by exact (part, marks) and drawn uniformly without
    replacement, so no stored question appears twice in the result. For OR
    slots the main question is drawn first and the alternative from what is
    left. Any short bucket aborts the whole template with ShortageError.
    """
    require_candidates(pool)
    rng = rng or random.Random()
    id_factory = id_factory or _timestamp_ids()

    buckets = _group_by_bucket(pool)
    selected: List[PaperQuestion] = []

    for slot in template:
        bucket = buckets.get((slot.part, slot.marks), [])
        if len(bucket) < slot.draw_size:
            logger.warning(
                f"Shortage for Part {slot.part} / {slot.marks} marks: "
                f"required {slot.draw_size}, available {len(bucket)}"
            )
            raise ShortageError(slot.part, slot.marks, slot.draw_size, len(bucket))

        for _ in range(slot.count):
            main = _draw(bucket, rng)
            alternative = _draw(bucket, rng) if slot.needs_or else None
            selected.append(PaperQuestion.from_pair(id_factory(len(selected)), main, alternative))

    logger.info(f"Selected {len(selected)} entries for {len(template)} template slots")
    return selected


def match_requirements(
    pool: Sequence[CandidateQuestion],
    requirements: Sequence[RequirementLine],
    *,
    rng: Optional[RandomSource] = None,
) -> List[CandidateQuestion]:
    """Pick one unused stored question per requirement line.

    Lines pinned to both K and CO levels are filled first, then lines pinned
    to one, then plain part/marks lines, so a general line never takes the
    only record a specific line can use. Results come back in request order.
    The drawn records keep their own stored OR alternative; pass them through
    the mapper before rendering.
    """
    require_candidates(pool)
    rng = rng or random.Random()

    remaining = list(pool)
    chosen: Dict[int, CandidateQuestion] = {}
    unmet: List[int] = []

    for index in sorted(range(len(requirements)), key=lambda i: -requirements[i].specificity):
        line = requirements[index]
        matching = [i for i, question in enumerate(remaining) if line.matches(question)]
        if not matching:
            unmet.append(index)
            continue
        chosen[index] = remaining.pop(matching[rng.randrange(len(matching))])

    if unmet:
        first = requirements[min(unmet)]
        same_lines = [i for i, line in enumerate(requirements) if line == first]
        served = sum(1 for i in same_lines if i in chosen)
        available = served + sum(1 for question in remaining if first.matches(question))
        logger.warning(f"{len(unmet)} requirement line(s) could not be matched")
        raise ShortageError(first.part, first.marks, len(same_lines), available)

    return [chosen[index] for index in range(len(requirements))]
