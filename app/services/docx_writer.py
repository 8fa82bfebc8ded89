"""Serialize a document tree to .docx bytes with python-docx."""

from __future__ import annotations

from io import BytesIO

from docx import Document as new_docx
from docx.document import Document as DocxDocument
from docx.enum.table import WD_ALIGN_VERTICAL, WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt
from docx.table import _Cell
from docx.text.paragraph import Paragraph as DocxParagraph
from loguru import logger

from app.services.document_tree import Alignment, Document, Paragraph, Table, TableCell


_ALIGNMENTS = {
    Alignment.left: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.center: WD_ALIGN_PARAGRAPH.CENTER,
    Alignment.right: WD_ALIGN_PARAGRAPH.RIGHT,
}

_BORDER_EDGES = ("top", "left", "bottom", "right")


def _twips_to_pt(twips: int) -> Pt:
    return Pt(twips / 20)


def _fill_paragraph(target: DocxParagraph, source: Paragraph) -> None:
    target.alignment = _ALIGNMENTS[source.alignment]
    target.paragraph_format.space_before = _twips_to_pt(source.spacing_before)
    target.paragraph_format.space_after = _twips_to_pt(source.spacing_after)
    for run in source.runs:
        docx_run = target.add_run(run.text)
        docx_run.bold = run.bold
        docx_run.font.name = run.font
        docx_run.font.size = Pt(run.size / 2)
        # East Asian font slot, otherwise Word falls back to the theme font
        r_fonts = docx_run._element.get_or_add_rPr().get_or_add_rFonts()
        r_fonts.set(qn("w:eastAsia"), run.font)


def _set_cell_borders(cell: _Cell, bordered: bool) -> None:
    tc_pr = cell._tc.get_or_add_tcPr()
    borders = OxmlElement("w:tcBorders")
    for edge in _BORDER_EDGES:
        element = OxmlElement(f"w:{edge}")
        if bordered:
            element.set(qn("w:val"), "single")
            element.set(qn("w:sz"), "4")
            element.set(qn("w:space"), "0")
            element.set(qn("w:color"), "000000")
        else:
            element.set(qn("w:val"), "nil")
        borders.append(element)
    tc_pr.append(borders)


def _fill_cell(cell: _Cell, source: TableCell, width) -> None:
    # tcBorders goes in first; width and vAlign are inserted around it in schema order
    _set_cell_borders(cell, source.bordered)
    if width is not None:
        cell.width = Inches(width)
    if source.vertical_center:
        cell.vertical_alignment = WD_ALIGN_VERTICAL.CENTER

    paragraphs = source.paragraphs or (Paragraph(),)
    _fill_paragraph(cell.paragraphs[0], paragraphs[0])
    for paragraph in paragraphs[1:]:
        _fill_paragraph(cell.add_paragraph(), paragraph)


def _add_table(document: DocxDocument, source: Table) -> None:
    columns = source.column_count
    table = document.add_table(rows=0, cols=columns)
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    table.autofit = False

    for index, width in enumerate(source.column_widths[:columns]):
        table.columns[index].width = Inches(width)

    for row in source.rows:
        docx_row = table.add_row()
        for index, cell in enumerate(row.cells):
            width = cell.width
            if width is None and index < len(source.column_widths):
                width = source.column_widths[index]
            _fill_cell(docx_row.cells[index], cell, width)


def build_docx(tree: Document) -> DocxDocument:
    document = new_docx()
    for section in document.sections:
        section.top_margin = Inches(tree.margin)
        section.bottom_margin = Inches(tree.margin)
        section.left_margin = Inches(tree.margin)
        section.right_margin = Inches(tree.margin)

    for block in tree.blocks:
        if isinstance(block, Table):
            # Word rejects tables without rows, e.g. a part with no questions
            if not block.rows:
                continue
            _add_table(document, block)
        else:
            _fill_paragraph(document.add_paragraph(), block)
    return document


def serialize_document(tree: Document) -> bytes:
    """Render ``tree`` and return the .docx file content."""
    buffer = BytesIO()
    build_docx(tree).save(buffer)
    content = buffer.getvalue()
    logger.debug(f"Serialized document: {len(tree.blocks)} blocks, {len(content)} bytes")
    return content
