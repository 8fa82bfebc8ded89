"""Schemas for question selection and paper generation endpoints."""

from dataclasses import asdict
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.mapper import PaperQuestion
from app.services.paper_assembler import PaperMetadata
from app.services.selector import RequirementLine, RequirementSlot


class PartLetter(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class TemplateSlot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    part: PartLetter = Field(..., description="Paper part the slot fills")
    marks: int = Field(..., gt=0, description="Exact mark value of the questions to draw")
    count: int = Field(..., gt=0, description="Number of questions for this slot")
    needs_or: bool = Field(
        default=False,
        alias="needsOr",
        description="Draw a second, distinct question as the OR alternative for each one",
    )

    def to_slot(self) -> RequirementSlot:
        return RequirementSlot(part=self.part.value, marks=self.marks, count=self.count, needs_or=self.needs_or)

    @classmethod
    def from_slot(cls, slot: RequirementSlot) -> "TemplateSlot":
        return cls(part=PartLetter(slot.part), marks=slot.marks, count=slot.count, needs_or=slot.needs_or)


class RequirementLineSchema(BaseModel):
    part: PartLetter = Field(..., description="Paper part of the question")
    marks: int = Field(..., gt=0, description="Exact mark value")
    k_level: Optional[str] = Field(default=None, description="Optional K-level the question must carry")
    co_level: Optional[str] = Field(default=None, description="Optional CO-level the question must carry")

    def to_line(self) -> RequirementLine:
        return RequirementLine(
            part=self.part.value,
            marks=self.marks,
            k_level=self.k_level or None,
            co_level=self.co_level or None,
        )


class AutoSelectRequest(BaseModel):
    subject_id: str = Field(..., description="Subject whose question bank is used")
    test: str = Field(..., description="Test type, e.g. 'Unit Test 1'; decides the CO level drawn from")
    template: Optional[List[TemplateSlot]] = Field(
        default=None,
        description="Requirement template; the standard unit test template is used when omitted",
    )


class PreviewRequest(BaseModel):
    subject_id: str = Field(..., description="Subject whose question bank is used")
    requirements: List[RequirementLineSchema] = Field(
        default_factory=list,
        description="One line per question to draw",
    )


class QuestionSchema(BaseModel):
    """A selected question with its optional OR alternative."""

    id: str
    content: str
    marks: int = Field(..., gt=0)
    part: str
    k_level: str = ""
    co_level: str = ""
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
    def from_entry(cls, entry: PaperQuestion) -> "QuestionSchema":
        return cls(**asdict(entry))

    def to_entry(self) -> PaperQuestion:
        return PaperQuestion(**self.model_dump())


class SelectionResponse(BaseModel):
    subject_id: str
    questions: List[QuestionSchema]
    total_marks: int = Field(..., description="Sum of main question marks")


class PaperMetadataSchema(BaseModel):
    subject_code: str = Field(default="", description="Subject code, also used for the file name")
    subject_name: str = ""
    departments: List[str] = Field(default_factory=list)
    years: List[str] = Field(default_factory=list)
    semesters: List[str] = Field(default_factory=list)
    tests: List[str] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    regulations: List[str] = Field(default_factory=list)
    duration: str = Field(default="", description="Duration in hours")

    def to_metadata(self) -> PaperMetadata:
        return PaperMetadata(**self.model_dump())


class GeneratePaperRequest(BaseModel):
    metadata: PaperMetadataSchema
    questions: List[QuestionSchema] = Field(default_factory=list)
