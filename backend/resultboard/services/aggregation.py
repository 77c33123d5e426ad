"""Read-side views derived from the catalog and the result store.

Nothing here writes. Every view fills ``PLACEHOLDER`` for a game that has no
observation where one was asked for; consumers match on it literally.
"""
import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from flask import current_app

from resultboard.services import catalog
from resultboard.services.results import find_by_date, find_latest_at_or_before, find_latest_per_day
from resultboard.services.timecodec import display_or_raw, to_display, to_minutes

PLACEHOLDER = 'XX'
# Values that do not count as an observation when looking for the latest slot
NO_RESULT_VALUES = (PLACEHOLDER, '--')
END_OF_DAY = '23:59'


def build_day_matrix(date_str: str, games) -> Dict[str, list]:
    """Slot-by-slot values for one date plus the latest result per game.

    ``rows`` has one entry per distinct slot recorded that day (ascending);
    ``items`` follows the order of *games* and carries the result id so the
    client can delete it.
    """
    by_id = {g.id: g for g in games}
    by_slot: Dict[int, Dict[str, str]] = {}
    latest = {}
    for r in find_by_date(date_str, by_id.keys()):
        game = by_id.get(r.game_id)
        if game is None:
            continue
        by_slot.setdefault(r.slot_min, {})[game.code] = r.value
        prev = latest.get(game.code)
        if prev is None or r.slot_min >= prev.slot_min:
            latest[game.code] = r

    rows = [
        {
            'slotMin': slot,
            'time': to_display(slot),
            'values': {g.code: seen.get(g.code, PLACEHOLDER) for g in games},
        }
        for slot, seen in sorted(by_slot.items())
    ]

    items = []
    for g in games:
        found = latest.get(g.code)
        if found is not None:
            items.append({
                'id': found.id,
                'gameCode': g.code,
                'slotMin': found.slot_min,
                'time': to_display(found.slot_min),
                'value': found.value,
            })
        else:
            items.append({
                'id': None,
                'gameCode': g.code,
                'slotMin': None,
                'time': display_or_raw(g.default_time),
                'value': '',
            })
    return {'rows': rows, 'items': items}


def build_snapshot(date_str: str, time_text: str, games) -> Dict[str, str]:
    """Per game code, the last value recorded at or before *time_text*."""
    slot = to_minutes(time_text)
    values = {g.code: PLACEHOLDER for g in games}
    code_by_id = {g.id: g.code for g in games}
    for r in find_latest_at_or_before(date_str, code_by_id.keys(), slot):
        values[code_by_id[r.game_id]] = r.value
    return values


def month_dates(year: int, month: int) -> List[str]:
    days = calendar.monthrange(year, month)[1]
    return [date(year, month, d).isoformat() for d in range(1, days + 1)]


def build_monthly_chart(year: int, month: int, games) -> List[Dict[str, str]]:
    """One row per calendar day with each game's last value of that day."""
    date_strs = month_dates(year, month)
    code_by_id = {g.id: g.code for g in games}
    grid = {d: {g.code: PLACEHOLDER for g in games} for d in date_strs}
    for r in find_latest_per_day(date_strs, code_by_id.keys()):
        grid[r.date_str][code_by_id[r.game_id]] = r.value
    return [dict(dateStr=d, **grid[d]) for d in date_strs]


def civil_today(offset_minutes: int, now: Optional[datetime] = None) -> str:
    """The calendar date at a fixed UTC offset, as ``YYYY-MM-DD``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone(timedelta(minutes=offset_minutes))).date().isoformat()


def yesterday_of(date_str: str) -> str:
    return (date.fromisoformat(date_str) - timedelta(days=1)).isoformat()


def latest_slot_by_code(rows, codes) -> Dict[str, Optional[int]]:
    latest = {code: None for code in codes}
    for row in rows or []:
        values = row.get('values') or {}
        for code in codes:
            if values.get(code, PLACEHOLDER) not in NO_RESULT_VALUES:
                latest[code] = row['slotMin']
    return latest


def build_home_view(date_str: Optional[str] = None, now: Optional[datetime] = None) -> dict:
    """Everything the landing page shows for a date and the day before it."""
    if not date_str:
        date_str = civil_today(current_app.config.get('HOME_UTC_OFFSET_MIN', 330), now)
    yesterday = yesterday_of(date_str)
    year, month = int(date_str[:4]), int(date_str[5:7])

    games = catalog.list_games(active_only=True)
    codes = [g.code for g in games]

    today_matrix = build_day_matrix(date_str, games)
    yesterday_matrix = build_day_matrix(yesterday, games)

    return {
        'dateStr': date_str,
        'yesterdayStr': yesterday,
        'games': [g.to_dict() for g in games],
        'timewise': {
            'yesterday': yesterday_matrix['rows'],
            'today': today_matrix['rows'],
        },
        'snapshot': {
            'yesterday': build_snapshot(yesterday, END_OF_DAY, games),
            'today': build_snapshot(date_str, END_OF_DAY, games),
        },
        'latestTime': {
            'yesterday': latest_slot_by_code(yesterday_matrix['rows'], codes),
            'today': latest_slot_by_code(today_matrix['rows'], codes),
        },
        'monthly': build_monthly_chart(year, month, games),
    }
