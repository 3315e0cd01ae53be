"""
Structured (.docx) document builders.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from io import BytesIO

from docx import Document
from docx.document import Document as DocxDocument
from docx.table import Table
from docx.text.paragraph import Paragraph

from contractgen.services.markers import OPEN_DELIMITER, render_tags, scan_tags

logger = logging.getLogger(__name__)


def _table_paragraphs(table: Table) -> Iterator[Paragraph]:
    for row in table.rows:
        for cell in row.cells:
            yield from cell.paragraphs
            for nested in cell.tables:
                yield from _table_paragraphs(nested)


def iter_package_paragraphs(document: DocxDocument) -> Iterator[Paragraph]:
    """Body, table, header and footer paragraphs of a Word package."""
    yield from document.paragraphs
    for table in document.tables:
        yield from _table_paragraphs(table)
    for section in document.sections:
        for part in (section.header, section.footer):
            if part.is_linked_to_previous:
                continue
            yield from part.paragraphs
            for table in part.tables:
                yield from _table_paragraphs(table)


def _merge_split_tags(paragraph: Paragraph) -> None:
    """Word often splits ``{{nombre}}`` over several runs; pull each tag back
    into the run where it starts so it keeps that run's formatting."""
    runs = paragraph.runs
    text = "".join(run.text for run in runs)
    for tag in scan_tags(text):
        offsets = []
        position = 0
        for run in runs:
            offsets.append(position)
            position += len(run.text)

        first = last = None
        for index, run in enumerate(runs):
            start = offsets[index]
            end = start + len(run.text)
            if first is None and start <= tag.start < end:
                first = index
            if start < tag.end <= end:
                last = index
                break
        if first is None or last is None or first == last:
            continue

        cut = tag.end - offsets[last]
        moved = "".join(runs[i].text for i in range(first + 1, last)) + runs[last].text[:cut]
        runs[first].text = runs[first].text + moved
        for i in range(first + 1, last):
            runs[i].text = ""
        runs[last].text = runs[last].text[cut:]


def fill_paragraph(paragraph: Paragraph, values: Mapping[str, str]) -> bool:
    if OPEN_DELIMITER not in "".join(run.text for run in paragraph.runs):
        return False
    _merge_split_tags(paragraph)
    changed = False
    for run in paragraph.runs:
        if OPEN_DELIMITER in run.text:
            rendered = render_tags(run.text, values)
            if rendered != run.text:
                run.text = rendered
                changed = True
    return changed


def fill_package(source: bytes, values: Mapping[str, str]) -> DocxDocument:
    """Open an original Word template and substitute its tags in place."""
    document = Document(BytesIO(source))
    filled = sum(1 for paragraph in iter_package_paragraphs(document) if fill_paragraph(paragraph, values))
    logger.debug("Filled tags in %d paragraphs", filled)
    return document


def build_basic_document(identity: str, title: str, plain_text: str) -> DocxDocument:
    document = Document()
    document.add_heading(f"CONTRATO {identity}", level=0)
    document.add_heading(f"Plantilla: {title}", level=2)
    document.add_paragraph(plain_text)
    return document
