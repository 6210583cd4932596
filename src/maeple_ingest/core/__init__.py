"""Core ingestion, resilience and sync primitives for maeple-ingest."""
