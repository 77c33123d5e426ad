"""Persistence of per-game, per-day, per-slot result values.

A result is identified by ``(game_id, date_str, slot_min)``; writes to the
same triple overwrite the previous value instead of adding a row.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy import and_, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from resultboard import db
from resultboard.errors import NotFound, StoreUnavailable
from resultboard.models import Result

_UPSERT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


def write_result(game_id: int, date_str: str, slot_min: int, value: str,
                 note: Optional[str] = None, source: Optional[str] = None) -> Tuple[int, bool]:
    """Stage the single-statement upsert without committing.

    Returns ``(result_id, inserted)``. ``inserted`` is true when the
    statement created the row: ``created_at`` is only written on insert,
    so it comes back equal to this call's timestamp.
    """
    insert = _UPSERT_INSERTS.get(db.engine.dialect.name)
    if insert is None:
        raise StoreUnavailable(f'Atomic upsert not supported on {db.engine.dialect.name}')

    now = datetime.now(timezone.utc)
    on_conflict = {'value': value, 'updated_at': now}
    if note is not None:
        on_conflict['note'] = note
    if source is not None:
        on_conflict['source'] = source

    stmt = insert(Result).values(
        game_id=game_id,
        date_str=date_str,
        slot_min=slot_min,
        value=value,
        note=note or '',
        source=source or 'manual',
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Result.game_id, Result.date_str, Result.slot_min],
        set_=on_conflict,
    ).returning(Result.id, Result.created_at)
    row = db.session.execute(stmt).one()
    return row.id, _as_utc(row.created_at) == _as_utc(now)


def upsert_result(game_id: int, date_str: str, slot_min: int, value: str,
                  note: Optional[str] = None, source: Optional[str] = None) -> Result:
    """Write or overwrite the result at one slot in a single statement.

    ``note`` and ``source`` are only overwritten on an existing record when
    given; last writer wins on ``value``.
    """
    result_id, _ = write_result(game_id, date_str, slot_min, value, note=note, source=source)
    db.session.commit()
    current_app.logger.info(f"[result-upsert] game={game_id} date={date_str} slot={slot_min} value={value}")
    return db.session.get(Result, result_id)


def find_by_date(date_str: str, game_ids: Iterable[int]) -> List[Result]:
    game_ids = list(game_ids)
    if not game_ids:
        return []
    return (
        Result.query
        .filter(Result.date_str == date_str, Result.game_id.in_(game_ids))
        .order_by(Result.slot_min.asc(), Result.game_id.asc())
        .all()
    )


def _latest_per_game_and_date(*criteria) -> List[Result]:
    latest = (
        db.session.query(
            Result.game_id.label('game_id'),
            Result.date_str.label('date_str'),
            func.max(Result.slot_min).label('slot_min'),
        )
        .filter(*criteria)
        .group_by(Result.game_id, Result.date_str)
        .subquery()
    )
    return (
        Result.query
        .join(latest, and_(
            Result.game_id == latest.c.game_id,
            Result.date_str == latest.c.date_str,
            Result.slot_min == latest.c.slot_min,
        ))
        .order_by(Result.date_str.asc(), Result.game_id.asc())
        .all()
    )


def find_latest_at_or_before(date_str: str, game_ids: Iterable[int], slot_min: int) -> List[Result]:
    """Per game, the result with the greatest slot not after *slot_min*.

    Games without a qualifying result are absent from the list.
    """
    game_ids = list(game_ids)
    if not game_ids:
        return []
    return _latest_per_game_and_date(
        Result.date_str == date_str,
        Result.game_id.in_(game_ids),
        Result.slot_min <= slot_min,
    )


def find_latest_per_day(date_strs: Iterable[str], game_ids: Iterable[int]) -> List[Result]:
    """Per (date, game), the result with the greatest slot of that day."""
    date_strs, game_ids = list(date_strs), list(game_ids)
    if not date_strs or not game_ids:
        return []
    return _latest_per_game_and_date(
        Result.date_str.in_(date_strs),
        Result.game_id.in_(game_ids),
    )


def delete_result(result_id: int) -> dict:
    """Delete one result by id and return what it held."""
    result = db.session.get(Result, result_id)
    if result is None:
        raise NotFound('Result not found')
    removed = result.to_dict()
    db.session.delete(result)
    db.session.commit()
    current_app.logger.info(
        f"[result-delete] id={result_id} game={removed['gameId']} date={removed['dateStr']} slot={removed['slotMin']}"
    )
    return removed
