"""
Business Registry Module.

Loads the configured business list, selects businesses per platform,
and persists last-fetched timestamps back to the configuration file.
"""
