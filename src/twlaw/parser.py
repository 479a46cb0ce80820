"""Transform OpenAPI law records into normalized seed acts."""

import logging
import re
from datetime import date
from typing import Iterator

from .types import (
    ActStatus,
    ParsedAct,
    ParsedDefinition,
    ParsedProvision,
    RawLawRecord,
    TargetLawConfig,
)
from .utils import collapse_whitespace, normalize_text

logger = logging.getLogger(__name__)

SUBSTANTIVE_ARTICLE_TYPE = "A"
UNFIXED_EFFECTIVE_DATE = "99991231"
DEFINITION_MARKER = "定義如下"
SOURCE_DESCRIPTION = "Official legislation text from Taiwan Laws & Regulations Database."

_CHINESE_NUMERALS = "一二三四五六七八九十百千"
# "第 12-1 條" -> "12-1"
_ARTICLE_NUMBER_RE = re.compile(r"第\s*([0-9]+(?:-[0-9]+)*)\s*條")
_NON_SECTION_CHARS_RE = re.compile(r"[^0-9-]")
_NON_REF_CHARS_RE = re.compile(r"[^0-9A-Za-z-]")
# 一、term：definition ... up to whitespace + next "numeral、term：" or end of text
_ENUMERATED_CLAUSE_RE = re.compile(
    rf"([{_CHINESE_NUMERALS}]+)、\s*([^：\n]+)：\s*(.*?)"
    rf"(?=\s[{_CHINESE_NUMERALS}]+、\s*[^：\n]+：|\Z)",
    flags=re.DOTALL,
)


def parse_compact_date(raw: str | None) -> str | None:
    """
    Parse an upstream YYYYMMDD field into an ISO date string.

    Only the range of each component is checked (year >= 1900, month 1-12,
    day 1-31). Anything that is not exactly eight ASCII digits yields None.

    Examples:
        "20120926" -> "2012-09-26"
        "2012-09-26" -> None
    """
    if not raw:
        return None
    cleaned = raw.strip()
    if len(cleaned) != 8:
        return None
    for char in cleaned:
        if char not in "0123456789":
            return None

    year, month, day = int(cleaned[:4]), int(cleaned[4:6]), int(cleaned[6:])
    if year < 1900 or not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return f"{cleaned[:4]}-{cleaned[4:6]}-{cleaned[6:]}"


def derive_status(record: RawLawRecord, today: date) -> str:
    """Derive act status: repealed, amended (unfixed date), not yet in force, or in force."""
    if record.is_repealed:
        return ActStatus.REPEALED

    if record.effective_date.strip() == UNFIXED_EFFECTIVE_DATE:
        return ActStatus.AMENDED

    effective = parse_compact_date(record.effective_date)
    # ISO strings compare chronologically
    if effective and effective > today.isoformat():
        return ActStatus.NOT_YET_IN_FORCE

    return ActStatus.IN_FORCE


def parse_section(article_no: str, ordinal: int) -> str:
    """
    Extract the article number from a heading.

    Falls back to the digits and hyphens in the heading, then to the
    one-based position among substantive articles.

    Examples:
        "第 5-1 條", 0 -> "5-1"
        "Article 12", 0 -> "12"
        "", 3 -> "4"
    """
    match = _ARTICLE_NUMBER_RE.search(article_no or "")
    if match:
        return match.group(1)

    fallback = _NON_SECTION_CHARS_RE.sub("", article_no or "")
    if fallback:
        return fallback

    return str(ordinal + 1)


def iter_enumerated_clauses(content: str) -> Iterator[tuple[str, str, str]]:
    """Yield raw ``(numeral, term, definition)`` tuples for enumerated clauses."""
    for match in _ENUMERATED_CLAUSE_RE.finditer(content):
        yield match.group(1), match.group(2), match.group(3)


def extract_definitions(content: str, source_provision: str) -> list[ParsedDefinition]:
    """
    Extract defined terms from an article that introduces definitions.

    Only content containing "定義如下" is scanned. Duplicate
    (term, definition) pairs are kept once, in first-seen order.

    Args:
        content: Normalized article content
        source_provision: provision_ref of the owning provision

    Returns:
        List of ParsedDefinition objects
    """
    if DEFINITION_MARKER not in content:
        return []

    found: list[ParsedDefinition] = []
    seen: set[tuple[str, str]] = set()
    for _numeral, raw_term, raw_definition in iter_enumerated_clauses(content):
        term = collapse_whitespace(raw_term)
        definition = collapse_whitespace(raw_definition)
        if not term or not definition:
            continue
        key = (term, definition)
        if key in seen:
            continue
        seen.add(key)
        found.append(ParsedDefinition(term=term, definition=definition, source_provision=source_provision))
    return found


def _build_description(record: RawLawRecord, provision_count: int) -> str:
    parts = [
        SOURCE_DESCRIPTION,
        f"Category: {record.category}." if record.category else None,
        f"Articles extracted: {provision_count}.",
    ]
    return " ".join(part for part in parts if part)


def transform_record(
    record: RawLawRecord,
    target: TargetLawConfig,
    today: date | None = None,
) -> ParsedAct:
    """
    Transform one raw record into a ParsedAct for the given target.

    Only type "A" articles become provisions. Provision refs are derived from
    the section number and suffixed -2, -3, ... on collision, counting every
    substantive article including ones dropped for empty content. A suffix
    that is already taken is bumped until the ref is unique within the act.

    Args:
        record: Raw law or order record
        target: Target configuration supplying id and short name
        today: Reference date for the not-yet-in-force check (default: today)

    Returns:
        Immutable ParsedAct
    """
    today = today or date.today()

    provisions: list[ParsedProvision] = []
    definitions: list[ParsedDefinition] = []
    ref_counts: dict[str, int] = {}
    issued_refs: set[str] = set()

    articles = [a for a in record.articles if a.article_type == SUBSTANTIVE_ARTICLE_TYPE]
    for ordinal, article in enumerate(articles):
        section = parse_section(article.article_no, ordinal)
        raw_ref = _NON_REF_CHARS_RE.sub("", f"art{section}")
        seen = ref_counts.get(raw_ref, 0)
        ref_counts[raw_ref] = seen + 1
        provision_ref = raw_ref if seen == 0 else f"{raw_ref}-{seen + 1}"
        # A generated suffix may equal a later heading's own ref (art1-2)
        suffix = seen + 1
        while provision_ref in issued_refs:
            suffix += 1
            provision_ref = f"{raw_ref}-{suffix}"
        issued_refs.add(provision_ref)

        content = normalize_text(article.content)
        if not content:
            logger.debug(f"Dropping empty article {provision_ref} in {target.pcode}")
            continue

        provisions.append(
            ParsedProvision(
                provision_ref=provision_ref,
                section=section,
                title=collapse_whitespace(article.article_no) or f"第 {section} 條",
                content=content,
            )
        )
        definitions.extend(extract_definitions(content, provision_ref))

    in_force_date = None
    if record.effective_date.strip() != UNFIXED_EFFECTIVE_DATE:
        in_force_date = parse_compact_date(record.effective_date)

    return ParsedAct(
        id=target.id,
        title=record.name,
        title_en=record.english_name.strip() or record.name,
        short_name=target.short_name,
        status=derive_status(record, today),
        issued_date=parse_compact_date(record.modified_date),
        in_force_date=in_force_date,
        url=record.url,
        description=_build_description(record, len(provisions)),
        provisions=tuple(provisions),
        definitions=tuple(definitions),
    )
