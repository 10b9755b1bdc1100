"""
Timestamp helpers.

Session and answer timestamps are epoch milliseconds so persisted state
sorts and compares as plain integers.
"""
import time


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)
