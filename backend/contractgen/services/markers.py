"""
Minimal placeholder grammar shared by the text renderer and the .docx writer.

Two operations are supported, both implemented as literal left-to-right
scans so that field names containing pattern metacharacters need no
escaping:

* ``replace_markers`` swaps exact marker strings (``{{nombre}}``, ``[NOMBRE]``,
  anything a template declares) for their values.
* ``render_tags`` finds ``{{ ... }}`` spans and looks the trimmed inner name up
  in a mapping, which is how tags inside an original Word package are filled.

Substituted values are emitted as-is and never re-scanned.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

OPEN_DELIMITER = "{{"
CLOSE_DELIMITER = "}}"


def canonical_marker(name: str) -> str:
    return f"{OPEN_DELIMITER}{name}{CLOSE_DELIMITER}"


@dataclass(frozen=True)
class Tag:
    """A delimited span found in a piece of text."""

    name: str
    start: int
    end: int


def scan_tags(
    text: str, open_delimiter: str = OPEN_DELIMITER, close_delimiter: str = CLOSE_DELIMITER
) -> Iterator[Tag]:
    """Yield every ``{{ name }}`` span; unterminated openers are left alone."""
    pos = 0
    while True:
        start = text.find(open_delimiter, pos)
        if start < 0:
            return
        inner_start = start + len(open_delimiter)
        close = text.find(close_delimiter, inner_start)
        if close < 0:
            return
        # "{{a {{b}}" pairs the closer with the innermost opener
        nested = text.rfind(open_delimiter, inner_start, close)
        if nested >= 0:
            start = nested
            inner_start = nested + len(open_delimiter)
        name = text[inner_start:close].strip()
        end = close + len(close_delimiter)
        if name:
            yield Tag(name=name, start=start, end=end)
        pos = end


def render_tags(text: str, values: Mapping[str, str], missing: str = "") -> str:
    """Replace every delimited tag with ``values[name]`` (or ``missing``)."""
    parts: list[str] = []
    pos = 0
    for tag in scan_tags(text):
        parts.append(text[pos:tag.start])
        value = values.get(tag.name)
        parts.append(missing if value is None else str(value))
        pos = tag.end
    parts.append(text[pos:])
    return "".join(parts)


def replace_markers(text: str, replacements: Mapping[str, str]) -> str:
    """Replace all occurrences of each literal marker in a single pass.

    At any position the earliest marker wins; ties go to the longest marker so
    that ``{{nombre_completo}}`` is not shadowed by a shorter prefix.
    """
    markers = [marker for marker in replacements if marker]
    if not markers or not text:
        return text

    parts: list[str] = []
    pos = 0
    while True:
        hit = _next_marker(text, pos, markers)
        if hit is None:
            parts.append(text[pos:])
            break
        start, marker = hit
        parts.append(text[pos:start])
        parts.append(replacements[marker])
        pos = start + len(marker)
    return "".join(parts)


def _next_marker(text: str, pos: int, markers: list[str]) -> tuple[int, str] | None:
    best: tuple[int, str] | None = None
    for marker in markers:
        index = text.find(marker, pos)
        if index < 0:
            continue
        if best is None or index < best[0] or (index == best[0] and len(marker) > len(best[1])):
            best = (index, marker)
    return best


def unique_tag_names(text: str) -> list[str]:
    """Tag names in order of first appearance."""
    seen: dict[str, None] = {}
    for tag in scan_tags(text):
        seen.setdefault(tag.name, None)
    return list(seen)
