"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Literal, Mapping

FragmentAttribute = Literal["title", "excerpt", "url", "content"]


@dataclass(slots=True)
class Document:
    id: int
    url: str
    created_at: int
    title: str | None = None
    excerpt: str | None = None
    md_content: str | None = None
    md_content_hash: str | None = None
    publication_date: int | None = None
    hostname: str | None = None
    last_visit: int | None = None
    last_visit_date: str | None = None
    extractor: str | None = None
    updated_at: int | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Document":
        names = {f.name for f in fields(cls)}
        return cls(**{key: row[key] for key in row.keys() if key in names})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Fragment:
    attribute: FragmentAttribute
    value: str
    ordinal: int


@dataclass(slots=True)
class ResultRow:
    rowid: int
    entity_id: int
    attribute: str
    snippet: str
    url: str
    hostname: str | None
    title: str | None
    excerpt: str | None
    last_visit: int | None
    last_visit_date: str | None
    md_content_hash: str | None
    updated_at: int | None
    created_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ResultRow":
        return cls(**{f.name: row[f.name] for f in fields(cls)})


__all__ = ["Document", "Fragment", "FragmentAttribute", "ResultRow"]
