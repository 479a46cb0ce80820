"""Exception hierarchy for the ingestion pipeline.

Every error here is fatal for a run. Unresolved targets are not errors; they
are collected on the ingestion summary instead.
"""


class IngestionError(Exception):
    """Base class for fatal ingestion failures."""


class FetchError(IngestionError):
    """HTTP retries and the external fallback fetch were all exhausted."""


class ArchiveError(IngestionError):
    """The archive entry is missing or the extraction tool failed."""


class ParseError(IngestionError):
    """The dataset payload is not a JSON object with a ``Laws`` array."""
