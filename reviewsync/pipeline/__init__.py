"""
Fetch pipeline stages.

- ApiClient: POSTs to the Apify run-sync endpoint and validates the payload
- ReviewFetcher: per-platform request building, extraction and normalization
- Filters: content and minimum-rating predicates
- Planner: fetch cooldown decisions and incremental start dates
"""
