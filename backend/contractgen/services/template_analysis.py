"""
Detects the ``{{ variable }}`` tags a template uses and proposes field
definitions for them.
"""
from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from io import BytesIO

from docx import Document

from contractgen.services.documents.docx_writer import iter_package_paragraphs
from contractgen.services.markers import unique_tag_names

logger = logging.getLogger(__name__)

FIELD_TYPE_HINTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("email", ("email", "correo")),
    ("date", ("fecha", "date")),
    ("number", ("monto", "precio", "cantidad", "numero", "amount", "price")),
    ("textarea", ("descripcion", "observacion", "notas", "comentario", "description", "notes")),
    ("select", ("tipo", "categoria")),
)


@dataclass(frozen=True)
class DetectedVariable:
    name: str
    label: str
    field_type: str
    display_order: int
    required: bool = True


def normalize_name(name: str) -> str:
    """Accent-, case- and separator-insensitive key used to spot duplicates."""
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return "".join(ch for ch in stripped.lower() if ch not in "_-/ ")


def humanize_label(name: str) -> str:
    spaced = []
    for index, ch in enumerate(name):
        if ch in "_-/":
            spaced.append(" ")
        elif ch.isupper() and index and name[index - 1].islower():
            spaced.extend([" ", ch])
        else:
            spaced.append(ch)
    words = "".join(spaced).split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def detect_field_type(name: str) -> str:
    lowered = normalize_name(name)
    for field_type, hints in FIELD_TYPE_HINTS:
        if any(hint in lowered for hint in hints):
            return field_type
    return "text"


def docx_text(source: bytes) -> str:
    document = Document(BytesIO(source))
    return "\n".join(
        "".join(run.text for run in paragraph.runs)
        for paragraph in iter_package_paragraphs(document)
    )


def detect_variables(text: str) -> list[DetectedVariable]:
    detected: list[DetectedVariable] = []
    seen: dict[str, str] = {}
    for name in unique_tag_names(text):
        key = normalize_name(name)
        if key in seen:
            logger.info("Skipping duplicate variable %r (already seen as %r)", name, seen[key])
            continue
        seen[key] = name
        detected.append(
            DetectedVariable(
                name=name,
                label=humanize_label(name),
                field_type=detect_field_type(name),
                display_order=len(detected),
            )
        )
    return detected
