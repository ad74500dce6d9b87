"""Checks for the ``format`` keyword when format assertion is switched on."""

from __future__ import annotations

import ipaddress
import re
from datetime import date
from typing import Callable, Dict, Optional


_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})\Z", re.ASCII)
_TIME_RE = re.compile(
    r"^(\d{2}):(\d{2}):(\d{2})(\.\d+)?([Zz]|([+-])(\d{2}):(\d{2}))\Z", re.ASCII
)
_HOSTNAME_LABEL_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$", re.ASCII)
_URI_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:[^\s]*$")
_JSON_POINTER_RE = re.compile(r"^(/([^~/]|~[01])*)*$")


def is_date(value: str) -> bool:
    match = _DATE_RE.match(value)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def is_time(value: str) -> bool:
    match = _TIME_RE.match(value)
    if match is None:
        return False
    hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if hour > 23 or minute > 59 or second > 60:
        return False
    offset = 0
    if match.group(6) is not None:
        offset_hour, offset_minute = int(match.group(7)), int(match.group(8))
        if offset_hour > 23 or offset_minute > 59:
            return False
        offset = offset_hour * 60 + offset_minute
        if match.group(6) == "-":
            offset = -offset
    if second == 60:
        # leap seconds only happen at 23:59 UTC
        return (hour * 60 + minute - offset) % 1440 == 23 * 60 + 59
    return True


def is_date_time(value: str) -> bool:
    head, sep, tail = value.partition("T")
    if not sep:
        head, sep, tail = value.partition("t")
    return bool(sep) and is_date(head) and is_time(tail)


def is_email(value: str) -> bool:
    local, sep, domain = value.rpartition("@")
    if not (sep and local and domain) or " " in value:
        return False
    # dot-atom local part: no leading, trailing or doubled dots
    return not (local.startswith(".") or local.endswith(".") or ".." in local)


def is_hostname(value: str) -> bool:
    if not value or len(value) > 253:
        return False
    return all(_HOSTNAME_LABEL_RE.match(label) for label in value.rstrip(".").split("."))


def is_ipv4(value: str) -> bool:
    parts = value.split(".")
    # leading zeroes are ambiguous (octal) and rejected
    if any(len(part) > 1 and part.startswith("0") for part in parts):
        return False
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    # zone ids (fe80::1%eth0) are not part of the RFC 4291 text form
    if "%" in value:
        return False
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def is_uri(value: str) -> bool:
    return _URI_RE.match(value) is not None


def is_json_pointer(value: str) -> bool:
    return _JSON_POINTER_RE.match(value) is not None


def is_regex(value: str) -> bool:
    try:
        re.compile(value)
    except re.error:
        return False
    return True


FORMAT_CHECKS: Dict[str, Callable[[str], bool]] = {
    "date": is_date,
    "time": is_time,
    "date-time": is_date_time,
    "email": is_email,
    "hostname": is_hostname,
    "ipv4": is_ipv4,
    "ipv6": is_ipv6,
    "uri": is_uri,
    "json-pointer": is_json_pointer,
    "regex": is_regex,
}


def get_format_check(name: str) -> Optional[Callable[[str], bool]]:
    """Return the checker for ``name``, or ``None`` for formats we do not assert."""
    return FORMAT_CHECKS.get(name)
