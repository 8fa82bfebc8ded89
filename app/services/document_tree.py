"""Immutable document model handed to the docx writer.

Sizes follow the Word conventions so the writer can pass them straight
through: font sizes in half-points, spacing in twips, widths in inches.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class Alignment(str, Enum):
    left = "left"
    center = "center"
    right = "right"


@dataclass(frozen=True)
class TextRun:
    text: str
    font: str = "Times New Roman"
    size: int = 24
    bold: bool = False


@dataclass(frozen=True)
class Paragraph:
    runs: Tuple[TextRun, ...] = ()
    alignment: Alignment = Alignment.left
    spacing_before: int = 0
    spacing_after: int = 0

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


@dataclass(frozen=True)
class TableCell:
    paragraphs: Tuple[Paragraph, ...] = ()
    bordered: bool = False
    width: Optional[float] = None
    vertical_center: bool = False

    @property
    def text(self) -> str:
        return "\n".join(paragraph.text for paragraph in self.paragraphs)


@dataclass(frozen=True)
class TableRow:
    cells: Tuple[TableCell, ...] = ()

    @property
    def texts(self) -> Tuple[str, ...]:
        return tuple(cell.text for cell in self.cells)


@dataclass(frozen=True)
class Table:
    rows: Tuple[TableRow, ...] = ()
    column_widths: Tuple[float, ...] = ()

    @property
    def column_count(self) -> int:
        return max((len(row.cells) for row in self.rows), default=0)


Block = Union[Paragraph, Table]


@dataclass(frozen=True)
class Document:
    blocks: Tuple[Block, ...] = ()
    margin: float = 1.0
