from __future__ import annotations

from typing import List, NoReturn

from fastapi import APIRouter, HTTPException, Response, status

from app.api.papers.schemas import (
    AutoSelectRequest,
    GeneratePaperRequest,
    PreviewRequest,
    QuestionSchema,
    SelectionResponse,
    TemplateSlot,
)
from app.db.supabase import SupabaseError
from app.services.mapper import PaperQuestion
from app.services.paper_assembler import calculate_total_marks
from app.services.paper_generator import (
    PaperGenerationError,
    auto_select,
    generate_paper,
    preview,
)
from app.services.selector import DEFAULT_TEMPLATE, PreconditionError, ShortageError


router = APIRouter(prefix="/papers", tags=["papers"])


def _raise_http(exc: Exception) -> NoReturn:
    if isinstance(exc, PreconditionError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, ShortageError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    if isinstance(exc, SupabaseError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Database error: {exc}. Check Supabase credentials.",
        ) from exc
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def _selection_response(subject_id: str, questions: List[PaperQuestion]) -> SelectionResponse:
    return SelectionResponse(
        subject_id=subject_id,
        questions=[QuestionSchema.from_entry(question) for question in questions],
        total_marks=calculate_total_marks(questions),
    )


@router.get("/template", response_model=List[TemplateSlot])
async def get_default_template() -> List[TemplateSlot]:
    """The standard unit test template used by auto-select."""
    return [TemplateSlot.from_slot(slot) for slot in DEFAULT_TEMPLATE]


@router.post("/auto-select", response_model=SelectionResponse)
async def auto_select_questions(request: AutoSelectRequest) -> SelectionResponse:
    """Fill the requirement template from the subject's questions for the test's CO level."""
    template = [slot.to_slot() for slot in request.template] if request.template is not None else None
    try:
        questions = auto_select(request.subject_id, request.test, template=template)
    except (PreconditionError, ShortageError, SupabaseError) as exc:
        _raise_http(exc)
    return _selection_response(request.subject_id, questions)


@router.post("/preview", response_model=SelectionResponse)
async def preview_questions(request: PreviewRequest) -> SelectionResponse:
    """Draw one stored question per requirement line, OR alternatives included."""
    try:
        questions = preview(request.subject_id, [line.to_line() for line in request.requirements])
    except (PreconditionError, ShortageError, SupabaseError) as exc:
        _raise_http(exc)
    return _selection_response(request.subject_id, questions)


@router.post(
    "/generate",
    response_class=Response,
    responses={200: {"content": {"application/vnd.openxmlformats-officedocument.wordprocessingml.document": {}}}},
)
async def generate_paper_endpoint(request: GeneratePaperRequest) -> Response:
    """Render the selected questions into a .docx question paper download."""
    try:
        result = generate_paper(
            request.metadata.to_metadata(),
            [question.to_entry() for question in request.questions],
        )
    except (PreconditionError, PaperGenerationError) as exc:
        _raise_http(exc)

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "X-Total-Marks": str(result.total_marks),
        },
    )
