"""Head-of-Department API: AI ingestion and review service."""
