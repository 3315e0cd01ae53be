"""
Paginated (.pdf) layouts built with fpdf2.
"""
from __future__ import annotations

import logging
import re

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from contractgen.services.documents.markup import MARKDOWN_ESCAPE

logger = logging.getLogger(__name__)

TITLE_SIZE = 16
HEADING_SIZE = 12
BODY_SIZE = 10
MARGIN = 50


class ContractPDF(FPDF):
    """A4 page with 50pt margins and a page counter in the footer."""

    def __init__(self):
        super().__init__(orientation="P", unit="pt", format="A4")
        self.set_margins(MARGIN, MARGIN, MARGIN)
        self.set_auto_page_break(True, margin=MARGIN)
        self.add_page()

    def footer(self):
        self.set_y(-MARGIN + 15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"{self.page_no()}", align="C")

    @staticmethod
    def safe(text: str) -> str:
        # core fonts are latin-1 only
        return str(text).encode("latin-1", "replace").decode("latin-1")

    def _line(self, text: str, size: int, style: str = "", align: str = "J", markdown: bool = False):
        self.set_font("Helvetica", style, size)
        self.multi_cell(
            0,
            size * 1.4,
            self.safe(text),
            align=align,
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
            markdown=markdown,
        )

    def title_line(self, text: str):
        self._line(text, TITLE_SIZE, align="C")
        self.ln(TITLE_SIZE)

    def subtitle_line(self, text: str):
        self._line(text, HEADING_SIZE, align="C")
        self.ln(HEADING_SIZE * 2)

    def heading_line(self, text: str):
        self._line(text, HEADING_SIZE, style="B", align="L")
        self.ln(HEADING_SIZE / 2)

    def body_paragraph(self, text: str, markdown: bool = False, spacing: float = BODY_SIZE * 0.3):
        self._line(text, BODY_SIZE, align="J", markdown=markdown)
        self.ln(spacing)


_MARKER_RE = re.compile(r"\\(\*\*|__|--)|\*\*|__")


def unmark(line: str) -> str:
    """Drop style markers and unescape literal ones, for lines laid out without markdown."""
    return _MARKER_RE.sub(lambda m: m.group(1) or "", line).strip()


def _is_heading(line: str) -> bool:
    return (
        len(line) > 4
        and line.startswith("**")
        and line.endswith("**")
        and not line.endswith(MARKDOWN_ESCAPE + "**")
    )


def layout_formatted_text(pdf: ContractPDF, formatted: str, title_keyword: str = "CONTRATO") -> None:
    """Lay out text produced by ``markup.html_to_formatted_text``.

    The first line mentioning the title keyword is the centered title, fully
    bold lines are headings, anything else is a justified body line with inline
    bold and italics kept.
    """
    keyword = title_keyword.upper()
    titled = False
    for line in formatted.split("\n"):
        stripped = line.strip()
        if not stripped:
            pdf.ln(BODY_SIZE / 2)
        elif not titled and keyword and keyword in unmark(stripped).upper():
            pdf.title_line(unmark(stripped))
            titled = True
        elif _is_heading(stripped):
            pdf.heading_line(unmark(stripped))
        else:
            pdf.body_paragraph(stripped, markdown=True)


def layout_basic(pdf: ContractPDF, identity: str, title: str, plain_text: str) -> None:
    pdf.title_line(f"CONTRATO {identity}")
    pdf.subtitle_line(f"Plantilla: {title}")
    for paragraph in plain_text.split("\n"):
        if paragraph.strip():
            pdf.body_paragraph(paragraph.strip(), spacing=BODY_SIZE)


def write_pdf(pdf: ContractPDF, path: str) -> None:
    pdf.output(path)
    logger.debug("Wrote %d page(s) to %s", pdf.page_no(), path)
