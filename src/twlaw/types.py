"""Dataclasses shared by the dataset parser, transformer and orchestrator.

No imports from other twlaw modules, so any module can import this one
without risk of circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


class ActStatus:
    """Lifecycle status values written to seed files."""

    IN_FORCE = "in_force"
    AMENDED = "amended"
    REPEALED = "repealed"
    NOT_YET_IN_FORCE = "not_yet_in_force"


def _text(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


@dataclass(slots=True)
class RawArticle:
    """One row of ``LawArticles`` as published upstream."""

    article_type: str
    article_no: str
    content: str

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RawArticle":
        return cls(
            article_type=_text(raw, "ArticleType"),
            article_no=_text(raw, "ArticleNo"),
            content=_text(raw, "ArticleContent"),
        )


@dataclass(slots=True)
class RawLawRecord:
    """A law or order record from the OpenAPI ``Laws`` array."""

    name: str
    url: str
    english_name: str = ""
    category: str = ""
    modified_date: str = ""
    effective_date: str = ""
    effective_note: str = ""
    abandon_note: str = ""
    articles: list[RawArticle] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RawLawRecord":
        """Build a record, treating missing or null fields as empty."""
        articles = raw.get("LawArticles")
        if not isinstance(articles, list):
            articles = []
        return cls(
            name=_text(raw, "LawName"),
            url=_text(raw, "LawURL"),
            english_name=_text(raw, "EngLawName"),
            category=_text(raw, "LawCategory"),
            modified_date=_text(raw, "LawModifiedDate"),
            effective_date=_text(raw, "LawEffectiveDate"),
            effective_note=_text(raw, "LawEffectiveNote"),
            abandon_note=_text(raw, "LawAbandonNote"),
            articles=[RawArticle.from_dict(a) for a in articles if isinstance(a, dict)],
        )

    @property
    def is_repealed(self) -> bool:
        return bool(self.abandon_note.strip())


@dataclass(slots=True)
class RawLawDataset:
    """Root of a ChLaw.json / ChOrder.json payload."""

    update_date: str
    laws: list[RawLawRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TargetLawConfig:
    """Which record to transform and where its seed file goes."""

    id: str
    pcode: str
    short_name: str
    file_name: str


@dataclass(frozen=True, slots=True)
class ParsedProvision:
    """One article-level unit of an act. ``content`` is never empty."""

    provision_ref: str
    section: str
    title: str
    content: str


@dataclass(frozen=True, slots=True)
class ParsedDefinition:
    """A defined term, referencing the provision it was extracted from."""

    term: str
    definition: str
    source_provision: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ParsedAct:
    """Normalized act, persisted as one seed file per target."""

    id: str
    title: str
    title_en: str
    short_name: str
    status: str
    url: str
    description: str
    issued_date: Optional[str] = None
    in_force_date: Optional[str] = None
    provisions: tuple[ParsedProvision, ...] = ()
    definitions: tuple[ParsedDefinition, ...] = ()
    type: str = "statute"

    def to_dict(self) -> dict[str, Any]:
        """Seed-file shape. Absent dates are omitted rather than written as null."""
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "title_en": self.title_en,
            "short_name": self.short_name,
            "status": self.status,
        }
        if self.issued_date is not None:
            data["issued_date"] = self.issued_date
        if self.in_force_date is not None:
            data["in_force_date"] = self.in_force_date
        data["url"] = self.url
        data["description"] = self.description
        data["provisions"] = [
            {
                "provision_ref": p.provision_ref,
                "section": p.section,
                "title": p.title,
                "content": p.content,
            }
            for p in self.provisions
        ]
        data["definitions"] = [
            {
                "term": d.term,
                "definition": d.definition,
                "source_provision": d.source_provision,
            }
            for d in self.definitions
        ]
        return data
