from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from contractgen.core.exceptions import ValidationFailure
from contractgen.models.template import ContractTemplate
from contractgen.services.markers import canonical_marker, replace_markers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    required: bool = True
    repeatable: bool = False
    repeat_source: str | None = None
    marker_pattern: str | None = None

    @property
    def marker(self) -> str:
        return self.marker_pattern or canonical_marker(self.name)


@dataclass(frozen=True)
class TemplateSpec:
    name: str
    content: str
    fields: Sequence[FieldSpec] = ()
    source_ref: str | None = None

    @classmethod
    def from_model(cls, template: ContractTemplate) -> "TemplateSpec":
        return cls(
            name=template.name,
            content=template.content or "",
            fields=tuple(
                FieldSpec(
                    name=f.name,
                    label=f.label,
                    required=f.required,
                    repeatable=f.repeatable,
                    repeat_source=f.repeat_source,
                    marker_pattern=f.marker_pattern,
                )
                for f in template.fields
            ),
            source_ref=template.source_path,
        )


@dataclass
class RenderedContent:
    content: str
    answers: dict[str, str] = field(default_factory=dict)


def _is_blank(value: object) -> bool:
    return value is None or not str(value).strip()


class TemplateRenderer:
    """Validates answers against a template and fills in its markers."""

    def render(self, template: TemplateSpec, answers: Mapping[str, str]) -> RenderedContent:
        missing = [f.label for f in template.fields if f.required and _is_blank(answers.get(f.name))]
        if missing:
            logger.info("Template %r is missing required fields: %s", template.name, missing)
            raise ValidationFailure(missing)

        resolved = self.propagate_repeated(template.fields, answers)

        content = template.content
        if _is_blank(content):
            logger.warning("Template %r has no content; synthesizing a field listing", template.name)
            content = self._synthesize(template, resolved)

        replacements: dict[str, str] = {}
        for spec in template.fields:
            replacements.setdefault(spec.marker, resolved.get(spec.name) or "")

        return RenderedContent(content=replace_markers(content, replacements), answers=resolved)

    @staticmethod
    def propagate_repeated(
        fields: Sequence[FieldSpec], answers: Mapping[str, str]
    ) -> dict[str, str]:
        """Copy a repeat source's value into derived fields left unanswered."""
        resolved = {key: ("" if value is None else str(value)) for key, value in answers.items()}
        for spec in fields:
            if not (spec.repeatable and spec.repeat_source):
                continue
            if not _is_blank(resolved.get(spec.name)):
                continue
            source_value = resolved.get(spec.repeat_source)
            if not _is_blank(source_value):
                resolved[spec.name] = source_value
                logger.debug("%s <- %s: %r", spec.name, spec.repeat_source, source_value)
        return resolved

    @staticmethod
    def _synthesize(template: TemplateSpec, answers: Mapping[str, str]) -> str:
        lines = [f"Contrato generado desde plantilla: {template.name}", ""]
        lines.extend(f"{spec.label}: {answers.get(spec.name) or ''}" for spec in template.fields)
        return "\n".join(lines) + "\n"
