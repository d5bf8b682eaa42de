# campus_sdk/core/timeutil.py
import datetime as dt


def utc_now() -> dt.datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        dt.datetime: Current UTC datetime with timezone awareness
    """
    return dt.datetime.now(dt.timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (the stored timestamp format)."""
    return utc_now().isoformat()


def parse_iso(value: str) -> dt.datetime:
    """
    Parse an ISO-8601 timestamp, accepting the trailing "Z" that
    JavaScript clients emit.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return dt.datetime.fromisoformat(value)
