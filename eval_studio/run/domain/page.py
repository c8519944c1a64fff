"""One page of case results from the paginated case-list endpoint."""

from typing import Any, Self

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from eval_studio.core.json_probe import as_record
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.fields import LenientCount


class CaseResultPage(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    content: list[EvalCaseResult] = Field(default_factory=list)
    page: LenientCount = 0
    size: LenientCount = 0
    total_elements: LenientCount = 0
    total_pages: LenientCount = 0

    @classmethod
    def from_payload(cls, payload: Any) -> Self:
        """Build a page, dropping nothing: each entry is parsed leniently."""
        record = as_record(payload) or {}
        content = record.get("content")
        items = content if isinstance(content, list) else []
        return cls(
            content=[EvalCaseResult.from_payload(item) for item in items],
            page=record.get("page"),
            size=record.get("size"),
            total_elements=record.get("totalElements"),
            total_pages=record.get("totalPages"),
        )
