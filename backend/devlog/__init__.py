"""Activity event ingestion and daily time-usage reporting."""
