"""Normalize stored question records into the canonical shape used for rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from app.db.supabase import CandidateQuestion


@dataclass(frozen=True)
class PaperQuestion:
    """One resolved question slot on a paper: a main question and, optionally, its OR alternative.

    ``question_id`` and ``or_question_id`` point back at the source records so
    callers can check that a pair never reuses the same stored question.
    """

    id: str
    content: str
    marks: int
    part: str
    k_level: str
    co_level: str
    has_formula: bool = False
    question_id: Optional[str] = None
    has_or: bool = False
    or_content: Optional[str] = None
    or_marks: Optional[int] = None
    or_k_level: Optional[str] = None
    or_part: Optional[str] = None
    or_co_level: Optional[str] = None
    or_has_formula: bool = False
    or_question_id: Optional[str] = None

    @classmethod
    def from_pair(
        cls,
        entry_id: str,
        main: CandidateQuestion,
        alternative: Optional[CandidateQuestion] = None,
    ) -> "PaperQuestion":
        """Build an entry from a drawn main question and an optional drawn alternative."""
        if alternative is None:
            return cls(
                id=entry_id,
                content=main.content,
                marks=main.marks,
                part=main.part,
                k_level=main.k_level,
                co_level=main.co_level,
                has_formula=main.has_formula,
                question_id=main.id,
            )
        return cls(
            id=entry_id,
            content=main.content,
            marks=main.marks,
            part=main.part,
            k_level=main.k_level,
            co_level=main.co_level,
            has_formula=main.has_formula,
            question_id=main.id,
            has_or=True,
            or_content=alternative.content,
            or_marks=alternative.marks,
            or_k_level=alternative.k_level,
            or_part=alternative.part,
            or_co_level=alternative.co_level,
            or_has_formula=alternative.has_formula,
            or_question_id=alternative.id,
        )


QuestionRecord = Union[CandidateQuestion, PaperQuestion, Mapping[str, Any]]


def map_question(record: QuestionRecord) -> PaperQuestion:
    """Map a raw record to a PaperQuestion.

    The alternative is kept only when ``has_or`` is set and ``or_content`` is
    non-empty; otherwise every ``or_*`` field is dropped. Mapping an already
    mapped question returns an equal value.
    """
    if isinstance(record, Mapping):
        record = CandidateQuestion.from_row(record)

    if isinstance(record, PaperQuestion):
        question_id = record.question_id
        or_question_id = record.or_question_id
    else:
        question_id = record.id
        or_question_id = None

    has_or = bool(record.has_or) and bool(record.or_content)
    if not has_or:
        return PaperQuestion(
            id=record.id,
            content=record.content,
            marks=record.marks,
            part=record.part,
            k_level=record.k_level,
            co_level=record.co_level,
            has_formula=bool(record.has_formula),
            question_id=question_id,
        )

    return PaperQuestion(
        id=record.id,
        content=record.content,
        marks=record.marks,
        part=record.part,
        k_level=record.k_level,
        co_level=record.co_level,
        has_formula=bool(record.has_formula),
        question_id=question_id,
        has_or=True,
        or_content=record.or_content,
        or_marks=record.or_marks,
        or_k_level=record.or_k_level,
        or_part=record.or_part,
        or_co_level=record.or_co_level,
        or_has_formula=bool(record.or_has_formula),
        or_question_id=or_question_id,
    )


def map_questions(records: Iterable[QuestionRecord]) -> List[PaperQuestion]:
    return [map_question(record) for record in records]
