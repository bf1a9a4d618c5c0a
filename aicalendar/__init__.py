"""Regional tech-event calendar ingestion pipeline."""
