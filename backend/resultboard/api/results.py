from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from resultboard.errors import NotFound
from resultboard.models import Game
from resultboard.schemas import (
    CreateResult, HomeQuery, MonthlyChartQuery, SnapshotQuery, TimewiseQuery, parse,
)
from resultboard.services import aggregation, catalog
from resultboard.services.results import delete_result, upsert_result
from resultboard.services.timecodec import to_minutes

results = Blueprint('results', __name__)


@results.route('/timewise', methods=['POST'])
@results.route('/', methods=['POST'])
@login_required
def create_result():
    """Upsert one result for a game/date/slot."""
    payload = parse(CreateResult, request.get_json(silent=True))
    game = Game.query.filter_by(code=payload.game_code, is_active=True).first()
    if not game:
        raise NotFound('Game not found')
    slot = to_minutes(payload.time)
    result = upsert_result(game.id, payload.date_str, slot, payload.value, note=payload.note)
    data = result.to_dict()
    data['gameCode'] = game.code
    return jsonify({'result': data}), 201


@results.route('/timewise', methods=['GET'])
def get_timewise():
    query = parse(TimewiseQuery, request.args.to_dict())
    games = catalog.list_games(active_only=True)
    matrix = aggregation.build_day_matrix(query.date_str, games)
    return jsonify({
        'dateStr': query.date_str,
        'games': [g.to_dict() for g in games],
        'rows': matrix['rows'],
        'items': matrix['items'],
    })


@results.route('/timewise/<int:result_id>', methods=['DELETE'])
@login_required
def delete_timewise(result_id):
    delete_result(result_id)
    return jsonify({'deletedId': result_id})


@results.route('/snapshot', methods=['GET'])
def get_snapshot():
    query = parse(SnapshotQuery, request.args.to_dict())
    games = catalog.list_games(active_only=True)
    values = aggregation.build_snapshot(query.date_str, query.time, games)
    return jsonify({'dateStr': query.date_str, 'time': query.time, 'values': values})


@results.route('/monthly', methods=['GET'])
def get_monthly_chart():
    args = request.args.to_dict()
    # Accept both ?games=A,B and ?games[]=A&games[]=B
    if 'games[]' in request.args:
        args['games'] = request.args.getlist('games[]')
    query = parse(MonthlyChartQuery, args)
    games = catalog.list_games(active_only=True, codes=query.games)
    rows = aggregation.build_monthly_chart(query.year, query.month, games)
    return jsonify({
        'year': query.year,
        'month': query.month,
        'games': [g.code for g in games],
        'rows': rows,
    })


@results.route('/home', methods=['GET'])
def get_home():
    query = parse(HomeQuery, request.args.to_dict())
    view = aggregation.build_home_view(query.date_str)
    response = jsonify(view)
    max_age = int(current_app.config.get('HOME_CACHE_MAX_AGE', 60))
    response.headers['Cache-Control'] = f'public, max-age={max_age}, s-maxage=300, stale-while-revalidate=86400'
    return response
