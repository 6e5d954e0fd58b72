"""
Core Utilities Package

Modules:
    - time: Timestamp conversion and ISO-8601 rendering
"""

from core.utils.time import to_utc_datetime, current_utc_datetime, to_iso8601

__all__ = ["to_utc_datetime", "current_utc_datetime", "to_iso8601"]
