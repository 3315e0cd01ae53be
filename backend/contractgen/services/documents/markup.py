"""
Markup helpers for the paginated rendering.

A filled Word package is converted to HTML through an explicit style map,
then flattened to lightly formatted text (``**bold**``, ``__italic__``) that the
PDF layout understands.
"""
import html
import logging
import re

from bs4 import BeautifulSoup, NavigableString, Tag
from docx.document import Document as DocxDocument
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

logger = logging.getLogger(__name__)

PARAGRAPH_STYLE_MAP = {
    "Title": "h1",
    "Heading 1": "h1",
    "Heading 2": "h2",
    "Heading 3": "h3",
    "Normal": "p",
}
RUN_STYLE_MAP = {
    "Strong": "strong",
    "Emphasis": "em",
}
HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}

# fpdf2 markdown markers; user text escapes them with a backslash
MARKDOWN_ESCAPE = "\\"
MARKDOWN_MARKERS = ("**", "__", "--")

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&(nbsp|amp|lt|gt|quot|#39);")


def escape_markdown(text: str) -> str:
    """Keep literal ``**``, ``__`` and ``--`` in user text from toggling styles."""
    for marker in MARKDOWN_MARKERS:
        text = text.replace(marker, MARKDOWN_ESCAPE + marker)
    return text


def _run_html(run) -> str:
    text = html.escape(run.text)
    if not text:
        return ""
    style_name = run.style.name if run.style is not None else ""
    if run.italic or RUN_STYLE_MAP.get(style_name) == "em":
        text = f"<em>{text}</em>"
    if run.bold or RUN_STYLE_MAP.get(style_name) == "strong":
        text = f"<strong>{text}</strong>"
    return text


def _paragraph_html(paragraph: Paragraph) -> str:
    inner = "".join(_run_html(run) for run in paragraph.runs)
    if not inner.strip():
        return ""
    style_name = paragraph.style.name if paragraph.style is not None else "Normal"
    tag = PARAGRAPH_STYLE_MAP.get(style_name, "p")
    return f"<{tag}>{inner}</{tag}>"


def _table_html(table: Table) -> str:
    rows = []
    for row in table.rows:
        cells = [html.escape(cell.text.strip()) for cell in row.cells]
        if any(cells):
            rows.append("<p>" + " | ".join(cells) + "</p>")
    return "".join(rows)


def docx_to_html(document: DocxDocument) -> str:
    """Render body paragraphs and tables, in document order, as HTML."""
    blocks = []
    for child in document.element.body.iterchildren():
        if child.tag == qn("w:p"):
            blocks.append(_paragraph_html(Paragraph(child, document)))
        elif child.tag == qn("w:tbl"):
            blocks.append(_table_html(Table(child, document)))
    return "".join(block for block in blocks if block)


def _inline_text(node) -> str:
    if isinstance(node, NavigableString):
        return escape_markdown(str(node))
    if not isinstance(node, Tag):
        return ""
    if node.name == "br":
        return "\n"
    inner = "".join(_inline_text(child) for child in node.children)
    if not inner.strip():
        return inner
    if node.name in BOLD_TAGS:
        return f"**{inner}**"
    if node.name in ITALIC_TAGS:
        return f"__{inner}__"
    return inner


def html_to_formatted_text(markup: str) -> str:
    """Flatten HTML blocks to lines: headings become ``**...**`` lines,
    paragraphs are followed by a blank line."""
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html5lib")
    root = soup.body or soup
    lines: list[str] = []
    for node in root.children:
        if isinstance(node, NavigableString):
            text = escape_markdown(str(node).strip())
            if text:
                lines.extend([text, ""])
            continue
        if not isinstance(node, Tag):
            continue
        if node.name in HEADING_TAGS:
            text = node.get_text().strip()
            if text:
                lines.append(f"**{escape_markdown(text)}**")
        else:
            text = _inline_text(node).strip()
            if text:
                lines.extend([text, ""])
    return "\n".join(lines).strip()


def strip_markup(content: str, keep_newlines: bool = False) -> str:
    """Remove tags and common entities; collapse whitespace."""
    if not content:
        return ""
    text = _TAG_RE.sub("", content)
    text = _ENTITY_RE.sub(lambda m: html.unescape(m.group(0)).replace("\xa0", " "), text)
    if keep_newlines:
        lines = (" ".join(line.split()) for line in text.splitlines())
        return "\n".join(line for line in lines if line)
    return " ".join(text.split())
