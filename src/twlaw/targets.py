"""Resolution of which records to transform and where their seed files go."""

import logging
from typing import Iterable, Sequence

from .dataset import pcode_from_url
from .types import RawLawRecord, TargetLawConfig

logger = logging.getLogger(__name__)

SHORT_NAME_MAX_CHARS = 80

# Curated key laws. Their ids and file names are stable across runs and also
# override the synthesized target in full-corpus mode.
KEY_TARGET_LAWS: tuple[TargetLawConfig, ...] = (
    TargetLawConfig("tw-pdpa", "I0050021", "PDPA", "01-personal-data-protection.json"),
    TargetLawConfig("tw-csma", "A0030297", "CSMA", "02-cybersecurity-management.json"),
    TargetLawConfig("tw-tma", "K0060111", "TMA", "03-telecommunications-management.json"),
    TargetLawConfig("tw-esa", "J0080037", "ESA", "04-electronic-signatures.json"),
    TargetLawConfig("tw-fgia", "I0020026", "FGIA", "05-freedom-of-government-information.json"),
    TargetLawConfig("tw-criminal-code", "C0000001", "Criminal Code", "06-criminal-code.json"),
    TargetLawConfig("tw-fintech-sandbox", "G0380254", "FinTech Sandbox Act", "07-fintech-sandbox.json"),
    TargetLawConfig("tw-trade-secrets", "J0080028", "TSA", "08-trade-secrets.json"),
    TargetLawConfig("tw-cssa", "K0060044", "CSSA", "09-communication-security-surveillance.json"),
    TargetLawConfig("tw-epia", "G0380237", "AEPI", "10-electronic-payment-institutions.json"),
)


def synthesize_target(record: RawLawRecord, pcode: str) -> TargetLawConfig:
    """
    Build a target for a record without a curated entry.

    Example:
        pcode "Z1234567" -> id "tw-z1234567", file "z1234567.json"
    """
    short_name = (record.english_name.strip() or record.name or pcode)[:SHORT_NAME_MAX_CHARS]
    return TargetLawConfig(
        id=f"tw-{pcode.lower()}",
        pcode=pcode,
        short_name=short_name,
        file_name=f"{pcode.lower()}.json",
    )


def resolve_targets(
    records: Iterable[RawLawRecord],
    full_corpus: bool,
    curated: Sequence[TargetLawConfig] = KEY_TARGET_LAWS,
) -> list[TargetLawConfig]:
    """
    Decide which targets to ingest.

    Targeted mode returns the curated list unchanged. Full-corpus mode yields
    one target per distinct pcode, preferring curated entries, sorted by pcode
    case-insensitively. When a pcode repeats across merged datasets the last
    record wins.

    Args:
        records: Merged records in merge order
        full_corpus: If False, only the curated list is returned
        curated: Curated targets (defaults to KEY_TARGET_LAWS)

    Returns:
        Ordered list of TargetLawConfig
    """
    if not full_corpus:
        return list(curated)

    overrides = {target.pcode: target for target in curated}
    by_pcode: dict[str, TargetLawConfig] = {}

    for record in records:
        pcode = pcode_from_url(record.url)
        if not pcode:
            continue
        by_pcode[pcode] = overrides.get(pcode) or synthesize_target(record, pcode)

    targets = sorted(by_pcode.values(), key=lambda target: target.pcode.casefold())
    curated_hits = sum(1 for pcode in by_pcode if pcode in overrides)
    logger.info(f"Resolved {len(targets)} full-corpus targets ({curated_hits} curated)")
    return targets
