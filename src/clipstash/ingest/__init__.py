"""Ingestion pipeline: record building and the capture coordinator."""

from clipstash.ingest.coordinator import IngestionCoordinator, IngestResult, IngestStats
from clipstash.ingest.records import build_record

__all__ = ["IngestionCoordinator", "IngestResult", "IngestStats", "build_record"]
