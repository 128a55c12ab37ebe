"""
Utility modules for reviewsync.

Cross-cutting concerns:
- Transport: HTTP client with curl fallback on DNS failures
- Thumbnails: reviewer avatar download and resize
- Storage: one JSON file per review, filename-based dedup
- Dates and exceptions
"""
