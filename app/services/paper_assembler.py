"""Assemble the printable question paper as a document tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from loguru import logger

from app.config.settings import settings
from app.services.document_tree import (
    Alignment,
    Block,
    Document,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    TextRun,
)
from app.services.mapper import PaperQuestion


PARTS = ("A", "B", "C")

SEMESTER_WORDS: Dict[str, str] = {
    "1": "FIRST",
    "2": "SECOND",
    "3": "THIRD",
    "4": "FOURTH",
    "5": "FIFTH",
    "6": "SIXTH",
    "7": "SEVENTH",
    "8": "EIGHTH",
}

# Presentation labels only; they are not checked against the selected questions.
PART_MARK_SCHEMES: Dict[str, str] = {
    "A": "5 × 2 = 10",
    "B": "2 × 12 = 24",
    "C": "1 × 16 = 16",
}

CO_COLUMNS = tuple(f"CO{i}" for i in range(1, 7))
CO_PLACEHOLDER = "-"
CO_PERCENTAGE = 100

K_LEVEL_LEGEND = (
    "Knowledge Level: K1 – Remember, K2 – Understand, K3 – Apply, "
    "K4 – Analyze, K5 – Evaluate, K6 – Create"
)

QUESTION_COLUMN_WIDTHS = (0.5, 6.0, 0.5, 0.7, 0.5)
CO_COLUMN_WIDTHS = (1.5,) + (1.25,) * len(CO_COLUMNS)
HEADER_COLUMN_WIDTHS = (1.5, 1.5, 1.5, 2.0)

_UNIT_TEST_RE = re.compile(r"unit\s*test\s*-?\s*(\d+)", re.IGNORECASE)


@dataclass
class PaperMetadata:
    """Paper details printed in the header. Passed through as given."""

    subject_code: str = ""
    subject_name: str = ""
    departments: List[str] = field(default_factory=list)
    years: List[str] = field(default_factory=list)
    semesters: List[str] = field(default_factory=list)
    tests: List[str] = field(default_factory=list)
    dates: List[str] = field(default_factory=list)
    regulations: List[str] = field(default_factory=list)
    duration: str = ""

    @property
    def semester(self) -> str:
        return self.semesters[0] if self.semesters else ""

    @property
    def test(self) -> str:
        return self.tests[0] if self.tests else ""

    @property
    def regulation(self) -> str:
        return (self.regulations[0] if self.regulations else "") or settings.default_regulation


def semester_word(semester: str) -> str:
    """Spell out semesters 1-8; anything else is returned unchanged."""
    return SEMESTER_WORDS.get(str(semester).strip(), str(semester))


def paper_test_code(test: Optional[str]) -> str:
    """Short code printed before the subject code, e.g. "UNIT TEST - 2" -> "UT2"."""
    if not test:
        return settings.default_test_code
    match = _UNIT_TEST_RE.search(test)
    if match:
        return f"UT{match.group(1)}"
    return test


def paper_filename(subject_code: str) -> str:
    safe = "".join(char for char in subject_code if char.isalnum() or char in {"-", "_"})
    return f"{safe}_question_paper.docx" if safe else "question_paper.docx"


def partition_by_part(questions: Sequence[PaperQuestion]) -> Dict[str, List[PaperQuestion]]:
    """Group questions under A/B/C, comparing parts case-insensitively."""
    partitioned: Dict[str, List[PaperQuestion]] = {part: [] for part in PARTS}
    for question in questions:
        part = (question.part or "").strip().upper()
        if part in partitioned:
            partitioned[part].append(question)
        else:
            logger.warning(f"Question {question.id} has unknown part '{question.part}', left out of the paper body")
    return partitioned


def calculate_total_marks(questions: Sequence[PaperQuestion]) -> int:
    """Sum of main-question marks. OR alternatives replace a question, they do not add to the total."""
    return sum(question.marks or 0 for question in questions)


def co_distribution(questions: Sequence[PaperQuestion]) -> Dict[str, int]:
    """Marks per CO level, counting main and alternative questions independently."""
    distribution: Dict[str, int] = {}
    for question in questions:
        main_co = question.co_level or ""
        distribution[main_co] = distribution.get(main_co, 0) + (question.marks or 0)
        if question.has_or and question.or_co_level:
            or_marks = question.or_marks or question.marks or 0
            distribution[question.or_co_level] = distribution.get(question.or_co_level, 0) + or_marks
    return distribution


def co_percentages(distribution: Dict[str, int]) -> Dict[str, int]:
    # Fixed value for every CO with marks, matching the existing printed papers.
    return {co: CO_PERCENTAGE for co, marks in distribution.items() if marks}


def _run(text: str, *, bold: bool = False) -> TextRun:
    return TextRun(text=text, font=settings.document_font, size=settings.document_font_size, bold=bold)


def _paragraph(
    text: str,
    *,
    alignment: Alignment = Alignment.left,
    bold: bool = False,
    before: int = 0,
    after: int = 0,
) -> Paragraph:
    return Paragraph(
        runs=(_run(text, bold=bold),),
        alignment=alignment,
        spacing_before=before,
        spacing_after=after,
    )


def _cell(
    text: str,
    *,
    alignment: Alignment = Alignment.left,
    bold: bool = False,
    bordered: bool = False,
    spacing: int = 60,
    width: Optional[float] = None,
) -> TableCell:
    return TableCell(
        paragraphs=(_paragraph(text, alignment=alignment, bold=bold, before=spacing, after=spacing),),
        bordered=bordered,
        width=width,
        vertical_center=True,
    )


def _question_row(label: str, content: str, marks: object, co_level: str, k_level: str) -> TableRow:
    widths = QUESTION_COLUMN_WIDTHS
    return TableRow(
        cells=(
            _cell(label, width=widths[0]),
            _cell(content, width=widths[1]),
            _cell(f"{marks or ''}", alignment=Alignment.center, spacing=20, width=widths[2]),
            _cell(co_level or "", alignment=Alignment.center, width=widths[3]),
            _cell(k_level or "", alignment=Alignment.center, width=widths[4]),
        )
    )


def build_question_rows(question: PaperQuestion, number: int) -> List[TableRow]:
    """Rows for one question: the main row, then an OR separator and the alternative when paired."""
    if not (question.has_or and question.or_content):
        return [_question_row(f"{number}.", question.content, question.marks, question.co_level, question.k_level)]

    separator = TableRow(
        cells=tuple(
            _cell(
                "OR" if index == 1 else "",
                alignment=Alignment.center,
                bold=True,
                spacing=40,
                width=width,
            )
            for index, width in enumerate(QUESTION_COLUMN_WIDTHS)
        )
    )
    return [
        _question_row(f"{number}.a.", question.content, question.marks, question.co_level, question.k_level),
        separator,
        _question_row(
            f"{number}.b.",
            question.or_content,
            question.or_marks or question.marks,
            question.or_co_level or question.co_level,
            question.or_k_level or question.k_level,
        ),
    ]


def build_question_table(questions: Sequence[PaperQuestion], start_index: int) -> Table:
    """Question table whose numbering continues from ``start_index``."""
    rows: List[TableRow] = []
    for offset, question in enumerate(questions):
        rows.extend(build_question_rows(question, start_index + offset + 1))
    return Table(rows=tuple(rows), column_widths=QUESTION_COLUMN_WIDTHS)


def build_part_header(part: str) -> Paragraph:
    scheme = PART_MARK_SCHEMES.get(part, "")
    return _paragraph(f"PART-{part} ({scheme} Marks)", alignment=Alignment.center, before=240, after=240)


def build_header(metadata: PaperMetadata, total_marks: int) -> List[Block]:
    code_table = Table(
        rows=(
            TableRow(
                cells=(
                    _cell("Question Paper Code", alignment=Alignment.center, bordered=True),
                    _cell(f"{paper_test_code(metadata.test)}{metadata.subject_code}", alignment=Alignment.center),
                    _cell("Register No", alignment=Alignment.center, bordered=True),
                    TableCell(paragraphs=(Paragraph(),)),
                )
            ),
        ),
        column_widths=HEADER_COLUMN_WIDTHS,
    )

    def title(text: str, *, bold: bool = True, after: int = 120) -> Paragraph:
        return _paragraph(text, alignment=Alignment.center, bold=bold, after=after)

    dates = ", ".join(metadata.dates)
    departments = ", ".join(metadata.departments)

    blocks: List[Block] = [code_table, title("", after=120)]
    blocks.extend(title(line) for line in settings.institution_lines)
    blocks.extend(
        [
            title(f"{settings.examination_title} {dates}".strip()),
            title(f"{semester_word(metadata.semester)} SEMESTER"),
            title(metadata.test, bold=False),
            title(f"DEPARTMENT OF {departments}", bold=False),
            title(f"{metadata.subject_code} - {metadata.subject_name}", bold=False),
            title(f"(Regulations {metadata.regulation})", bold=False, after=360),
            Table(
                rows=(
                    TableRow(
                        cells=(
                            TableCell(paragraphs=(_paragraph(f"Duration: {metadata.duration} hours"),)),
                            TableCell(
                                paragraphs=(_paragraph(f"Max. Marks: {total_marks}", alignment=Alignment.right),)
                            ),
                        )
                    ),
                ),
                column_widths=(3.25, 3.25),
            ),
            _paragraph("Answer ALL Questions", alignment=Alignment.center, before=240, after=240),
        ]
    )
    return blocks


def build_co_distribution_table(questions: Sequence[PaperQuestion]) -> Table:
    distribution = co_distribution(questions)
    percentages = co_percentages(distribution)

    def row(label: str, values: Dict[str, int]) -> TableRow:
        cells = [_cell(label, alignment=Alignment.center, bordered=True, spacing=0)]
        for co in CO_COLUMNS:
            value = values.get(co)
            cells.append(
                _cell(f"{value or CO_PLACEHOLDER}", alignment=Alignment.center, bordered=True, spacing=0)
            )
        return TableRow(cells=tuple(cells))

    header = TableRow(
        cells=(_cell("Evaluation", alignment=Alignment.center, bordered=True, spacing=0),)
        + tuple(_cell(co, alignment=Alignment.center, bordered=True, spacing=0) for co in CO_COLUMNS)
    )
    return Table(
        rows=(header, row("Marks", distribution), row("%", percentages)),
        column_widths=CO_COLUMN_WIDTHS,
    )


def build_legend() -> Paragraph:
    return _paragraph(K_LEVEL_LEGEND, before=240, after=240)


def assemble_paper(metadata: PaperMetadata, questions: Sequence[PaperQuestion]) -> Document:
    """Build the full paper: header, parts A-C, CO distribution and K-level legend.

    Missing metadata is rendered as-is rather than raising.
    """
    partitioned = partition_by_part(questions)
    ordered = [question for part in PARTS for question in partitioned[part]]
    total_marks = calculate_total_marks(ordered)

    blocks: List[Block] = build_header(metadata, total_marks)

    start_index = 0
    for part in PARTS:
        part_questions = partitioned[part]
        blocks.append(build_part_header(part))
        blocks.append(build_question_table(part_questions, start_index))
        start_index += len(part_questions)

    blocks.append(
        _paragraph(
            "Distribution of CO's (Percentage wise)",
            alignment=Alignment.center,
            bold=True,
            before=360,
            after=240,
        )
    )
    blocks.append(build_co_distribution_table(questions))
    blocks.append(build_legend())

    logger.info(
        f"Assembled paper for {metadata.subject_code or 'unknown subject'}: "
        f"{len(ordered)} questions, {total_marks} marks"
    )
    return Document(blocks=tuple(blocks))
