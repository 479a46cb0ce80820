"""Ingestion pipeline: fetch, extract, parse, resolve, transform, write."""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .archive import ArchiveExtractor, get_extractor
from .config import Settings
from .dataset import index_by_pcode, merge_datasets, parse_dataset
from .errors import FetchError
from .fetcher import CurlFetcher, RateLimitedFetcher, RateLimiter
from .parser import transform_record
from .targets import resolve_targets
from .types import ParsedAct, TargetLawConfig

logger = logging.getLogger(__name__)

# How many leading targets to log individually in full-corpus mode
_VERBOSE_HEAD = 20
# How often to log progress after the head (every N targets)
_PROGRESS_INTERVAL = 250


@dataclass(frozen=True, slots=True)
class DatasetSource:
    """One upstream ZIP dataset and its local cache paths."""

    label: str
    url: str
    zip_path: Path
    json_path: Path
    entry_name: str


@dataclass
class IngestionSummary:
    """Aggregate counts and unresolved targets of a run."""

    seed_dir: Path
    full_corpus: bool
    update_dates: dict[str, str] = field(default_factory=dict)
    record_counts: dict[str, int] = field(default_factory=dict)
    target_count: int = 0
    written: int = 0
    total_provisions: int = 0
    total_definitions: int = 0
    missing: list[TargetLawConfig] = field(default_factory=list)

    def log(self) -> None:
        """Log the run summary and any targets absent from the datasets."""
        logger.info("")
        logger.info("=" * 60)
        logger.info("Ingestion summary")
        logger.info("=" * 60)
        logger.info(f"  Scope: {'full-corpus' if self.full_corpus else 'targeted'}")
        for label, update_date in self.update_dates.items():
            logger.info(f"  {label.capitalize()} dataset update date: {update_date}")
        for label, count in self.record_counts.items():
            logger.info(f"  {label.capitalize()} records loaded: {count}")
        logger.info(f"  Seed files written: {self.written}/{self.target_count}")
        logger.info(f"  Total provisions: {self.total_provisions}")
        logger.info(f"  Total definitions: {self.total_definitions}")
        logger.info(f"  Seed output dir: {self.seed_dir}")
        logger.info("=" * 60)

        if self.missing:
            logger.warning(f"Skipped {len(self.missing)} laws (not found in source dataset):")
            for target in self.missing:
                logger.warning(f"  - {target.pcode} ({target.file_name})")


def default_sources(settings: Settings) -> list[DatasetSource]:
    """Law dataset first, then order dataset; this is also the merge order."""
    source_dir = Path(settings.source_dir)
    return [
        DatasetSource(
            label="law",
            url=settings.law_dataset_url,
            zip_path=source_dir / "ch-law-json.zip",
            json_path=source_dir / "ChLaw.json",
            entry_name="ChLaw.json",
        ),
        DatasetSource(
            label="order",
            url=settings.order_dataset_url,
            zip_path=source_dir / "ch-order-json.zip",
            json_path=source_dir / "ChOrder.json",
            entry_name="ChOrder.json",
        ),
    ]


def build_fetcher(settings: Settings) -> RateLimitedFetcher:
    """Create a fetcher with its own rate limiter and curl fallback."""
    return RateLimitedFetcher(
        limiter=RateLimiter(min_interval=settings.request_min_interval_seconds),
        fallback=CurlFetcher(
            user_agent=settings.user_agent,
            retries=settings.curl_retries,
            retry_delay=settings.curl_retry_delay_seconds,
            max_bytes=settings.curl_max_bytes,
        ),
        user_agent=settings.user_agent,
        timeout=settings.request_timeout_seconds,
    )


def load_dataset_text(
    source: DatasetSource,
    fetcher: RateLimitedFetcher,
    extractor: ArchiveExtractor,
    skip_fetch: bool = False,
    max_retries: int = 3,
) -> str:
    """
    Return the dataset JSON text, from cache or freshly downloaded.

    Args:
        source: Dataset to load
        fetcher: Rate-limited fetcher shared across datasets
        extractor: Archive extractor for the downloaded ZIP
        skip_fetch: Reuse the cached extracted JSON when it exists
        max_retries: Retries passed to the fetcher

    Raises:
        FetchError: If the download fails or returns a non-200 status
        ArchiveError: If the JSON entry cannot be extracted
    """
    source.json_path.parent.mkdir(parents=True, exist_ok=True)
    source.zip_path.parent.mkdir(parents=True, exist_ok=True)

    if skip_fetch and source.json_path.exists():
        logger.info(f"Using cached {source.label} dataset: {source.json_path}")
        return source.json_path.read_text(encoding="utf-8")

    logger.info(f"Fetching {source.label} dataset: {source.url}")
    response = fetcher.fetch_binary(source.url, max_retries=max_retries)
    if response.status != 200:
        raise FetchError(f"OpenAPI download failed ({source.label}): HTTP {response.status}")

    source.zip_path.write_bytes(response.body)
    logger.info(f"  Saved ZIP cache: {source.zip_path} ({len(response.body) / 1024 / 1024:.1f} MB)")

    text = extractor.extract(source.zip_path, source.entry_name)
    source.json_path.write_text(text, encoding="utf-8")
    logger.info(f"  Extracted JSON: {source.json_path}")
    return text


def clear_seed_directory(seed_dir: Path) -> int:
    """Remove seed files left over from a previous run."""
    removed = 0
    for path in seed_dir.glob("*.json"):
        path.unlink()
        removed += 1
    if removed:
        logger.info(f"Removed {removed} stale seed files from {seed_dir}")
    return removed


def write_act(output_path: Path, act: ParsedAct) -> None:
    """Write an act as 2-space indented JSON with a trailing newline."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(act.to_dict(), f, ensure_ascii=False, indent=2)
        f.write("\n")


def _should_log_target(idx: int, total: int, full_corpus: bool) -> bool:
    if not full_corpus:
        return True
    return idx < _VERBOSE_HEAD or (idx + 1) % _PROGRESS_INTERVAL == 0 or idx == total - 1


def run_ingestion(
    settings: Settings,
    skip_fetch: bool = False,
    full_corpus: bool = True,
    fetcher: RateLimitedFetcher | None = None,
    extractor: ArchiveExtractor | None = None,
    sources: list[DatasetSource] | None = None,
    today: date | None = None,
) -> IngestionSummary:
    """
    Run the full ingestion and write one seed file per resolved target.

    Datasets are processed strictly in order and files are written one at a
    time. A fatal error leaves already-written files on disk.

    Args:
        settings: Ingestion settings
        skip_fetch: Reuse cached extracted JSON instead of downloading
        full_corpus: Ingest every resolvable record instead of the curated subset
        fetcher: Fetcher to use (default: built from settings)
        extractor: Archive extractor (default: from settings.archive_tool)
        sources: Datasets in merge order (default: law, then order)
        today: Reference date for status derivation

    Returns:
        IngestionSummary with counts and unresolved targets
    """
    fetcher = fetcher or build_fetcher(settings)
    extractor = extractor or get_extractor(settings.archive_tool, settings.extract_max_bytes)
    sources = sources if sources is not None else default_sources(settings)
    seed_dir = Path(settings.seed_dir)
    seed_dir.mkdir(parents=True, exist_ok=True)

    summary = IngestionSummary(seed_dir=seed_dir, full_corpus=full_corpus)

    datasets = []
    for source in sources:
        text = load_dataset_text(
            source, fetcher, extractor,
            skip_fetch=skip_fetch,
            max_retries=settings.fetch_max_retries,
        )
        dataset = parse_dataset(text)
        summary.update_dates[source.label] = dataset.update_date
        summary.record_counts[source.label] = len(dataset.laws)
        datasets.append(dataset)

    merged = merge_datasets(*datasets)
    targets = resolve_targets(merged, full_corpus=full_corpus)
    records_by_pcode = index_by_pcode(merged)
    summary.target_count = len(targets)

    clear_seed_directory(seed_dir)

    for idx, target in enumerate(targets):
        record = records_by_pcode.get(target.pcode)
        if record is None:
            summary.missing.append(target)
            logger.warning(f"  [{idx + 1}/{len(targets)}] MISSING {target.pcode} -> {target.file_name}")
            continue

        act = transform_record(record, target, today=today)
        write_act(seed_dir / target.file_name, act)

        summary.written += 1
        summary.total_provisions += len(act.provisions)
        summary.total_definitions += len(act.definitions)

        if _should_log_target(idx, len(targets), full_corpus):
            logger.info(
                f"  [{idx + 1}/{len(targets)}] {record.name} ({target.pcode}) -> {target.file_name} "
                f"({len(act.provisions)} provisions, {len(act.definitions)} definitions)"
            )

    return summary
