import math
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from resultboard import db
from resultboard.errors import DuplicateCode, NotFound, ValidationError
from resultboard.models import Game
from resultboard.schemas import CreateGame, UpdateGame, parse


def list_games(active_only: bool = False, codes: Optional[List[str]] = None) -> List[Game]:
    """Games sorted by rank, ties broken by name."""
    query = Game.query
    if active_only:
        query = query.filter(Game.is_active.is_(True))
    if codes is not None:
        query = query.filter(Game.code.in_([c.upper() for c in codes]))
    return query.order_by(Game.order_index.asc(), Game.name.asc()).all()


def get_game(code: str) -> Game:
    game = Game.query.filter_by(code=str(code).upper()).first()
    if not game:
        raise NotFound('Game not found')
    return game


def next_order_index() -> int:
    last = Game.query.order_by(Game.order_index.desc()).first()
    return (last.order_index or 0) + 1 if last else 1


def _requested_index(raw) -> Optional[int]:
    """A usable rank from *raw*, or None when absent, non-finite or below 1."""
    if raw is None:
        return None
    try:
        idx = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(idx) or idx < 1:
        return None
    return int(idx)


def make_room(target_index: int, exclude_id: Optional[int] = None) -> int:
    """Shift every game at or above *target_index* up by one if the slot is taken.

    The shift is a single UPDATE; the caller writes its game afterwards in
    the same transaction. Returns the number of games moved.
    """
    taken = Game.query.filter(Game.order_index == target_index)
    if exclude_id is not None:
        taken = taken.filter(Game.id != exclude_id)
    if taken.first() is None:
        return 0
    moved = Game.query.filter(Game.order_index >= target_index).update(
        {Game.order_index: Game.order_index + 1}, synchronize_session='fetch'
    )
    current_app.logger.info(f"[catalog-shift] from={target_index} moved={moved}")
    return moved


def upsert_ordered_rank(target_index, exclude_id: Optional[int] = None) -> int:
    """Resolve the rank a game should be written at, making room if needed."""
    idx = _requested_index(target_index)
    if idx is None:
        return next_order_index()
    make_room(idx, exclude_id=exclude_id)
    return idx


def _commit_or_duplicate(code: str) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise DuplicateCode(f'Game code {code} already exists') from exc


def create_game(data) -> Game:
    payload = data if isinstance(data, CreateGame) else parse(CreateGame, data)
    if Game.query.filter_by(code=payload.code).first():
        raise DuplicateCode(f'Game code {payload.code} already exists')

    idx = upsert_ordered_rank(payload.order_index)
    game = Game(
        name=payload.name,
        code=payload.code,
        default_time=payload.default_time,
        order_index=idx,
        is_active=payload.is_active,
    )
    db.session.add(game)
    _commit_or_duplicate(payload.code)
    current_app.logger.info(f"[catalog-create] code={game.code} rank={game.order_index}")
    return game


def update_game(code: str, data) -> Game:
    payload = data if isinstance(data, UpdateGame) else parse(UpdateGame, data)
    game = get_game(code)
    fields = payload.model_fields_set

    if payload.new_code and payload.new_code != game.code:
        clash = Game.query.filter(Game.code == payload.new_code, Game.id != game.id).first()
        if clash:
            raise DuplicateCode(f'Game code {payload.new_code} already exists')

    if 'order_index' in fields:
        idx = _requested_index(payload.order_index)
        if idx is None:
            idx = next_order_index()
        if idx != game.order_index:
            make_room(idx, exclude_id=game.id)
            game.order_index = idx

    if 'name' in fields and payload.name is not None:
        game.name = payload.name
    if 'default_time' in fields:
        game.default_time = payload.default_time or ''
    if 'is_active' in fields and payload.is_active is not None:
        game.is_active = payload.is_active
    if payload.new_code:
        game.code = payload.new_code

    _commit_or_duplicate(game.code)
    current_app.logger.info(f"[catalog-update] code={game.code} rank={game.order_index}")
    return game


def delete_game(code: str) -> int:
    """Remove a game; its results are left in place."""
    game = get_game(code)
    removed_id, removed_code = game.id, game.code
    db.session.delete(game)
    db.session.commit()
    current_app.logger.info(f"[catalog-delete] code={removed_code} id={removed_id}")
    return removed_id


def bulk_upsert(items) -> List[Dict[str, str]]:
    """Create or update each item by code, committing one item at a time.

    Later items see the ranks left by earlier ones. Items that fail
    validation or hit a constraint are skipped and left out of the report.
    """
    report = []
    for raw in items or []:
        try:
            item = parse(CreateGame, raw)
        except ValidationError as exc:
            current_app.logger.warning(f"[catalog-bulk-skip] item={raw!r} details={exc.details}")
            continue

        try:
            existing = Game.query.filter_by(code=item.code).first()
            if existing:
                existing.name = item.name
                existing.default_time = item.default_time
                idx = _requested_index(item.order_index)
                if idx is not None and idx != existing.order_index:
                    make_room(idx, exclude_id=existing.id)
                    existing.order_index = idx
                if 'is_active' in item.model_fields_set:
                    existing.is_active = item.is_active
                action = 'updated'
            else:
                idx = upsert_ordered_rank(item.order_index)
                db.session.add(Game(
                    name=item.name,
                    code=item.code,
                    default_time=item.default_time,
                    order_index=idx,
                    is_active=item.is_active,
                ))
                action = 'created'
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning(f"[catalog-bulk-skip] code={item.code} constraint violation")
            continue
        report.append({'code': item.code, 'action': action})

    current_app.logger.info(f"[catalog-bulk] applied={len(report)} received={len(items or [])}")
    return report
