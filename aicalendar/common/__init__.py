"""Shared helpers used across the ingestion pipeline."""
