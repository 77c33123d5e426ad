"""Conversion between human time strings and minute-of-day slots.

Slots are integers in ``[0, 1439]``. Accepted input shapes:

- ``H:MM`` / ``HH:MM`` (24-hour, hour 0-23)
- ``H:MM AM|PM`` / ``HH:MM AM|PM`` (12-hour, hour 1-12, space optional)
- ``HHMM`` / ``HHMM AM|PM`` and dotted ``A.M.``/``P.M.`` only when
  ``compact=True`` (the matrix import path)

No timezone conversion happens here; callers pass civil dates separately.
"""
import re

from resultboard.errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_COLON_RE = re.compile(r'^([0-9]{1,2}):([0-9]{2})\s*(AM|PM)?$')
_COMPACT_RE = re.compile(r'^([0-9]{1,2})([0-9]{2})\s*(AM|PM)?$')


def to_minutes(text, compact=False):
    """Parse *text* into a minute-of-day slot.

    Raises:
        InvalidTimeFormat: if *text* is not one of the accepted shapes or
            its hour/minute is out of range.
    """
    if text is None:
        raise InvalidTimeFormat('Invalid time: None')
    s = str(text).strip().upper()
    if compact:
        s = s.replace('.', '')

    m = _COLON_RE.match(s)
    if not m and compact:
        m = _COMPACT_RE.match(s)
    if not m:
        raise InvalidTimeFormat(f'Invalid time: {text}')

    hh, mm, meridiem = int(m.group(1)), int(m.group(2)), m.group(3)
    if mm > 59:
        raise InvalidTimeFormat(f'Invalid time: {text}')

    if meridiem:
        if hh < 1 or hh > 12:
            raise InvalidTimeFormat(f'Invalid time: {text}')
        if hh == 12:
            hh = 0
        if meridiem == 'PM':
            hh += 12
    elif hh > 23:
        raise InvalidTimeFormat(f'Invalid time: {text}')

    return hh * 60 + mm


def _check_slot(minutes):
    if isinstance(minutes, bool) or not isinstance(minutes, int) or not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeFormat(f'Invalid slot: {minutes}')


def to_display(minutes):
    """``940 -> "3:40 PM"``"""
    _check_slot(minutes)
    h24, mm = divmod(minutes, 60)
    meridiem = 'PM' if h24 >= 12 else 'AM'
    h12 = h24 % 12 or 12
    return f'{h12}:{mm:02d} {meridiem}'


def to_zero_padded_24h(minutes):
    """``940 -> "15:40"``"""
    _check_slot(minutes)
    h24, mm = divmod(minutes, 60)
    return f'{h24:02d}:{mm:02d}'


def display_or_raw(text):
    """Canonical display form of *text* if it parses, otherwise *text* unchanged."""
    if not text:
        return ''
    try:
        return to_display(to_minutes(text, compact=True))
    except InvalidTimeFormat:
        return text
