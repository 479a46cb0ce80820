"""twlaw - Bulk ingestion of the Taiwan Laws & Regulations Database."""

__version__ = "0.1.0"

# Errors
from .errors import IngestionError, FetchError, ArchiveError, ParseError

# Types
from .types import (
    ActStatus,
    RawArticle,
    RawLawRecord,
    RawLawDataset,
    TargetLawConfig,
    ParsedProvision,
    ParsedDefinition,
    ParsedAct,
)

# Fetching / extraction
from .fetcher import FetchResult, RateLimiter, CurlFetcher, RateLimitedFetcher
from .archive import UnzipExtractor, ZipfileExtractor, get_extractor

# Parsing / transformation
from .dataset import parse_dataset, pcode_from_url, index_by_pcode, merge_datasets
from .parser import (
    transform_record,
    parse_section,
    parse_compact_date,
    derive_status,
    extract_definitions,
)

# Targets / pipeline
from .targets import KEY_TARGET_LAWS, resolve_targets
from .ingest import DatasetSource, IngestionSummary, run_ingestion, write_act

__all__ = [
    # errors
    "IngestionError",
    "FetchError",
    "ArchiveError",
    "ParseError",
    # types
    "ActStatus",
    "RawArticle",
    "RawLawRecord",
    "RawLawDataset",
    "TargetLawConfig",
    "ParsedProvision",
    "ParsedDefinition",
    "ParsedAct",
    # fetching / extraction
    "FetchResult",
    "RateLimiter",
    "CurlFetcher",
    "RateLimitedFetcher",
    "UnzipExtractor",
    "ZipfileExtractor",
    "get_extractor",
    # parsing
    "parse_dataset",
    "pcode_from_url",
    "index_by_pcode",
    "merge_datasets",
    "transform_record",
    "parse_section",
    "parse_compact_date",
    "derive_status",
    "extract_definitions",
    # pipeline
    "KEY_TARGET_LAWS",
    "resolve_targets",
    "DatasetSource",
    "IngestionSummary",
    "run_ingestion",
    "write_act",
]
