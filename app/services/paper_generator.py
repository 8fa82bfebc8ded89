"""Question paper generation: selection from the question bank and .docx rendering."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from loguru import logger

from app.db.supabase import fetch_all_for_subject, fetch_candidates
from app.services.docx_writer import serialize_document
from app.services.mapper import PaperQuestion, QuestionRecord, map_questions
from app.services.paper_assembler import (
    PaperMetadata,
    assemble_paper,
    calculate_total_marks,
    paper_filename,
    partition_by_part,
)
from app.services.selector import (
    DEFAULT_TEMPLATE,
    PreconditionError,
    RandomSource,
    RequirementLine,
    RequirementSlot,
    match_requirements,
    require_candidates,
    select_questions,
)


DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_TEST_NUMBER_RE = re.compile(r"^\s*unit\s*test\s*-?\s*([1-5])\s*$", re.IGNORECASE)


class PaperGenerationError(RuntimeError):
    """Raised when a question paper document cannot be produced."""


@dataclass
class PaperGenerationResult:
    """A rendered question paper ready for download."""

    content: bytes
    filename: str
    total_marks: int
    question_count: int
    created_at: datetime
    media_type: str = DOCX_MEDIA_TYPE


def resolve_test_co_level(test_name: Optional[str]) -> str:
    """Map a unit test to the course outcome it examines ("Unit Test 3" -> "CO3")."""
    if not test_name:
        raise PreconditionError("Please select a test type first")
    match = _TEST_NUMBER_RE.match(test_name)
    if not match:
        raise PreconditionError(f"Could not map test '{test_name}' to a CO level")
    return f"CO{match.group(1)}"


def _require_subject(subject_id: Optional[str]) -> str:
    if not subject_id or not subject_id.strip():
        raise PreconditionError("Please select a subject first")
    return subject_id


def auto_select(
    subject_id: str,
    test_name: str,
    *,
    template: Optional[Sequence[RequirementSlot]] = None,
    rng: Optional[RandomSource] = None,
) -> List[PaperQuestion]:
    """Fill a requirement template from the subject's questions for the test's CO level.

    ``template=None`` uses the standard unit test template; an empty template is rejected.
    """
    subject_id = _require_subject(subject_id)
    co_level = resolve_test_co_level(test_name)
    if template is None:
        template = DEFAULT_TEMPLATE
    elif not template:
        raise PreconditionError("The requirement template has no slots")
    logger.info(f"Auto-selecting questions for {test_name} mapped to {co_level}")

    pool = fetch_candidates(subject_id, co_level)
    require_candidates(pool, subject_id)

    return select_questions(pool, list(template), rng=rng)


def preview(
    subject_id: str,
    requirements: Sequence[RequirementLine],
    *,
    rng: Optional[RandomSource] = None,
) -> List[PaperQuestion]:
    """Draw one stored question per requirement line and map it for rendering."""
    subject_id = _require_subject(subject_id)
    if not requirements:
        raise PreconditionError("Please add at least one question")

    pool = fetch_all_for_subject(subject_id)
    require_candidates(pool, subject_id)

    chosen = match_requirements(pool, requirements, rng=rng)
    return map_questions(chosen)


def generate_paper(metadata: PaperMetadata, questions: Sequence[QuestionRecord]) -> PaperGenerationResult:
    """Render the paper for already selected questions."""
    if not questions:
        raise PreconditionError("Please add at least one question")

    mapped = map_questions(questions)
    tree = assemble_paper(metadata, mapped)

    try:
        content = serialize_document(tree)
    except Exception as exc:
        raise PaperGenerationError("Failed to write the question paper document") from exc

    partitioned = partition_by_part(mapped)
    counted = [question for part_questions in partitioned.values() for question in part_questions]
    result = PaperGenerationResult(
        content=content,
        filename=paper_filename(metadata.subject_code),
        total_marks=calculate_total_marks(counted),
        question_count=len(counted),
        created_at=datetime.now(),
    )
    logger.info(
        "Generated question paper",
        filename=result.filename,
        total_marks=result.total_marks,
        questions=result.question_count,
        size=len(content),
    )
    return result
