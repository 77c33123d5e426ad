"""Bulk loading: default catalog seed and month-matrix CSV import.

The matrix CSV looks like::

    DATE,DSWR,FRBD,GZBD,GALI
    01,XX,23,88,13
    02,45,XX,,07

Each non-empty, non-``XX`` cell becomes one result at the game's default
time slot, tagged ``source="bulk-matrix"``.
"""
import calendar
import csv
from typing import Dict, Iterable, List

from flask import current_app

from resultboard import db
from resultboard.errors import InvalidTimeFormat
from resultboard.models import Game
from resultboard.services.results import write_result
from resultboard.services.timecodec import to_minutes

IMPORT_SOURCE = 'bulk-matrix'

DEFAULT_GAMES = [
    {'name': 'DESAWAR', 'code': 'DSWR'},
    {'name': 'FARIDABAD', 'code': 'FRBD'},
    {'name': 'GHAZIABAD', 'code': 'GZBD'},
    {'name': 'GALI', 'code': 'GALI'},
    {'name': 'NEW GANGA', 'code': 'NGNG'},
    {'name': 'MAA BHAGWATI', 'code': 'MBGT'},
    {'name': 'BADLAPUR', 'code': 'BDLP'},
    {'name': 'MOHALI', 'code': 'MOHL'},
    {'name': 'DELHI BAZAR', 'code': 'DLBZ'},
    {'name': 'MEERUT CITY', 'code': 'MRTC'},
]

# CSV header code -> catalog code
CODE_ALIASES = {
    'DSWR': 'DISA',
    'FRBD': 'FRDA',
    'GZBD': 'GZB',
    'GALI': 'GLI',
    'DISA': 'DISA',
    'FRDA': 'FRDA',
    'GZB': 'GZB',
    'GLI': 'GLI',
}


def seed_default_games() -> int:
    """Replace the catalog with ``DEFAULT_GAMES`` ranked 1..n."""
    Game.query.delete()
    for rank, item in enumerate(DEFAULT_GAMES, start=1):
        db.session.add(Game(name=item['name'], code=item['code'], order_index=rank, is_active=True))
    db.session.commit()
    return len(DEFAULT_GAMES)


def _resolve_game(header_code: str, games_by_code: Dict[str, Game]):
    code = header_code.strip().upper()
    # An exact catalog match wins over the alias table
    if code in games_by_code:
        return games_by_code[code]
    return games_by_code.get(CODE_ALIASES.get(code, code))


def expand_matrix(rows: Iterable[Dict[str, str]], year: int, month: int) -> List[Dict[str, str]]:
    """Flatten matrix rows into ``{dateStr, headerCode, value}`` cells."""
    days = calendar.monthrange(year, month)[1]
    cells = []
    for row in rows:
        day_text = (row.get('DATE') or '').strip()
        if not day_text.isdigit() or not 1 <= int(day_text) <= days:
            continue
        date_str = f'{year:04d}-{month:02d}-{int(day_text):02d}'
        for header, raw in row.items():
            if header is None or header.strip().upper() == 'DATE':
                continue
            value = (raw or '').strip()
            if not value or value.upper() == 'XX':
                continue
            cells.append({'dateStr': date_str, 'headerCode': header.strip().upper(), 'value': value})
    return cells


def _slot_for(game: Game, fallback_time: str) -> int:
    text = (game.default_time or '').strip() or fallback_time
    try:
        return to_minutes(text, compact=True)
    except InvalidTimeFormat as exc:
        raise InvalidTimeFormat(f'Game {game.code} has an unusable default time: {text}') from exc


def import_matrix(rows: Iterable[Dict[str, str]], year: int, month: int) -> Dict[str, int]:
    """Upsert every filled matrix cell in one transaction.

    Every cell is resolved to a game and a slot before anything is written,
    so a game with an unusable default time aborts the whole month.
    Returns upserted/updated/skipped counts.
    """
    games_by_code = {g.code: g for g in Game.query.all()}
    fallback_time = current_app.config.get('IMPORT_DEFAULT_TIME', '03:40 PM')
    stats = {'upserted': 0, 'updated': 0, 'skipped': 0}
    unknown = set()
    slots = {}
    ops = []

    for cell in expand_matrix(rows, year, month):
        game = _resolve_game(cell['headerCode'], games_by_code)
        if game is None:
            unknown.add(cell['headerCode'])
            stats['skipped'] += 1
            continue
        if game.id not in slots:
            slots[game.id] = _slot_for(game, fallback_time)
        ops.append((game.id, cell['dateStr'], slots[game.id], cell['value']))

    try:
        for game_id, date_str, slot, value in ops:
            _, inserted = write_result(game_id, date_str, slot, value, source=IMPORT_SOURCE)
            stats['upserted' if inserted else 'updated'] += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    for header in sorted(unknown):
        current_app.logger.warning(f"[import-skip] no game for header {header}")
    current_app.logger.info(
        f"[import] {year:04d}-{month:02d} upserted={stats['upserted']} updated={stats['updated']} skipped={stats['skipped']}"
    )
    return stats


def import_matrix_file(path: str, year: int, month: int) -> Dict[str, int]:
    with open(path, newline='', encoding='utf-8-sig') as fh:
        rows = list(csv.DictReader(fh))
    return import_matrix(rows, year, month)
