"""Command-line helpers: duration parsing, flag errors and the confirmation prompt."""

from __future__ import annotations

import re
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_MAX_NANOS = (1 << 63) - 1
_COMPONENT = re.compile(r"(\d*)(\.\d*)?([^\d.]*)")

_WARNING = "THE NEXT STEPS ARE DESTRUCTIVE AND COMPLETELY IRREVERSIBLE, PROCEED WITH CAUTION!!!"
_HI_RED_BOLD = "\x1b[91;1m"
_RESET = "\x1b[0m"


class InvalidFlagError(ValueError):
    """A command-line flag was given a value it does not accept."""

    def __init__(self, name: str, value: str) -> None:
        super().__init__(f"Invalid value {value} for flag {name}")
        self.name = name
        self.value = value


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as '10m', '1h30m', '1.5h' or '-300ms'.

    Accepted units are ns, us (or µs), ms, s, m and h; a bare '0' is allowed.
    """
    original = value
    text = value
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"time: invalid duration {original!r}")

    total = Decimal(0)
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        whole, fraction, unit = match.group(1), match.group(2) or "", match.group(3)
        digits = fraction[1:]
        if not whole and not digits:
            raise ValueError(f"time: invalid duration {original!r}")
        if not unit:
            raise ValueError(f"time: missing unit in duration {original!r}")
        if unit not in _NANOS_PER_UNIT:
            raise ValueError(f"time: unknown unit {unit!r} in duration {original!r}")
        amount = Decimal(f"{whole or '0'}.{digits or '0'}")
        total += amount * _NANOS_PER_UNIT[unit]
        position = match.end()

    nanos = int(total)
    if nanos > _MAX_NANOS:
        raise ValueError(f"time: invalid duration {original!r}")
    seconds, rest = divmod(nanos, 1_000_000_000)
    duration = timedelta(seconds=seconds, microseconds=rest / 1000)
    return -duration if negative else duration


def parse_duration_param(value: str) -> datetime:
    """Return the local time that lies the given duration in the past."""
    duration = parse_duration(value)
    return datetime.now(timezone.utc).astimezone() - duration


def confirmation_prompt(prompt: str, max_prompts: int) -> bool:
    """Ask up to max_prompts times for 'nuke'; True once it is entered."""
    warning = f"{_HI_RED_BOLD}{_WARNING}{_RESET}" if sys.stdout.isatty() else _WARNING
    print(f"\n{warning}")

    for _ in range(max_prompts):
        sys.stdout.write(prompt)
        sys.stdout.flush()
        line = sys.stdin.readline()
        if not line:
            raise EOFError("no input available for confirmation prompt")
        answer = line.strip()
        if answer.lower() == "nuke":
            return True
        print(f"Invalid value '{answer}' was entered.")
    return False