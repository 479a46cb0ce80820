"""
Parser for Taiwan Laws & Regulations Database OpenAPI payloads.

Source format:
    - /api/ch/law/json (ZIP containing ChLaw.json)
    - /api/ch/order/json (ZIP containing ChOrder.json)
    - JSON root: {"UpdateDate": ..., "Laws": [...]}
"""

import json
import logging
import re
from typing import Iterable

from .errors import ParseError
from .types import RawLawDataset, RawLawRecord

logger = logging.getLogger(__name__)

_PCODE_RE = re.compile(r"[?&]pcode=([A-Z0-9]+)", flags=re.IGNORECASE | re.ASCII)
_BOM = "\ufeff"


def parse_dataset(text: str) -> RawLawDataset:
    """
    Parse a dataset JSON document.

    Args:
        text: Decoded JSON text, optionally starting with a byte-order mark

    Returns:
        RawLawDataset with typed records in upstream order

    Raises:
        ParseError: If the text is not JSON, the root is not an object, or
            ``Laws`` is not an array
    """
    if text.startswith(_BOM):
        text = text[len(_BOM):]

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed dataset JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ParseError("Unexpected OpenAPI payload: root is not an object")

    laws = payload.get("Laws")
    if not isinstance(laws, list):
        raise ParseError("Unexpected OpenAPI payload: missing Laws[]")

    records: list[RawLawRecord] = []
    for idx, raw in enumerate(laws):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object entry {idx} in Laws[]")
            continue
        records.append(RawLawRecord.from_dict(raw))

    update_date = payload.get("UpdateDate")
    return RawLawDataset(
        update_date=update_date if isinstance(update_date, str) else "",
        laws=records,
    )


def pcode_from_url(url: str) -> str | None:
    """
    Extract the pcode natural key from a record URL.

    Example:
        https://law.moj.gov.tw/LawClass/LawAll.aspx?pcode=i0050021 -> I0050021
    """
    match = _PCODE_RE.search(url or "")
    if not match:
        return None
    return match.group(1).upper()


def index_by_pcode(records: Iterable[RawLawRecord]) -> dict[str, RawLawRecord]:
    """Map pcode to record. Later records win; records without a pcode are skipped."""
    index: dict[str, RawLawRecord] = {}
    for record in records:
        pcode = pcode_from_url(record.url)
        if pcode:
            index[pcode] = record
    return index


def merge_datasets(*datasets: RawLawDataset) -> list[RawLawRecord]:
    """Concatenate records in merge order, so later datasets win on shared pcodes."""
    merged: list[RawLawRecord] = []
    for dataset in datasets:
        merged.extend(dataset.laws)
    return merged
