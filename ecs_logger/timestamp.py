"""Nanosecond UTC timestamps rendered as RFC3339 strings."""

import re
import time
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000

_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})"
    r"(?:\.(\d{1,9}))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


def now_ns() -> int:
    """Current wall-clock time in nanoseconds since the Unix epoch."""
    return time.time_ns()


def seconds_to_ns(seconds: float) -> int:
    return round(seconds * _NANOS_PER_SECOND)


def format_rfc3339(timestamp_ns: int) -> str:
    """Render ``timestamp_ns`` as ``YYYY-MM-DDTHH:MM:SS.fffffffffZ``.

    The fraction always carries nine digits so lines sort and compare
    lexically.
    """
    seconds, nanos = divmod(timestamp_ns, _NANOS_PER_SECOND)
    moment = _EPOCH + timedelta(seconds=seconds)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{nanos:09d}Z"


def parse_rfc3339(text: str) -> int:
    """Parse an RFC3339 timestamp back into nanoseconds since the epoch.

    Accepts any fraction length up to nine digits and numeric offsets.

    Raises:
        ValueError: If ``text`` is not an RFC3339 timestamp.
    """
    match = _RFC3339_RE.match(text)
    if match is None:
        raise ValueError(f"not an RFC3339 timestamp: {text!r}")

    date_part, time_part, fraction, _zulu, sign, off_h, off_m = match.groups()
    moment = datetime.strptime(f"{date_part}T{time_part}", "%Y-%m-%dT%H:%M:%S")
    moment = moment.replace(tzinfo=timezone.utc)
    if sign:
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        moment = moment - offset if sign == "+" else moment + offset

    seconds = (moment - _EPOCH) // timedelta(seconds=1)
    nanos = int((fraction or "").ljust(9, "0"))
    return seconds * _NANOS_PER_SECOND + nanos
