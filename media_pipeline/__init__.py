"""Media ingestion pipeline: object storage uploads handed to a transcoding provider."""
