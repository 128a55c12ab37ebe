"""
reviewsync - third-party review synchronization.

Fetches Google Maps, Facebook and Trustpilot reviews through the Apify
scraping API, normalizes them, and stores one JSON file per review together
with resized reviewer thumbnails.
"""
