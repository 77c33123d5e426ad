from flask import Blueprint, jsonify, request
from flask_login import login_required

from resultboard.services import catalog

games = Blueprint('games', __name__)


@games.route('', methods=['GET'])
@games.route('/', methods=['GET'])
def list_games():
    return jsonify({'games': [g.to_dict() for g in catalog.list_games()]})


# Fixed paths before the <code> routes
@games.route('/bulk', methods=['POST'])
@login_required
def bulk_upsert_games():
    data = request.get_json(silent=True)
    items = data.get('items') if isinstance(data, dict) else data
    if not isinstance(items, list):
        items = []
    return jsonify({'results': catalog.bulk_upsert(items)})


@games.route('', methods=['POST'])
@games.route('/', methods=['POST'])
@login_required
def create_game():
    game = catalog.create_game(request.get_json(silent=True) or {})
    return jsonify({'game': game.to_dict()}), 201


@games.route('/<string:code>', methods=['GET'])
def get_game(code):
    return jsonify({'game': catalog.get_game(code).to_dict()})


@games.route('/<string:code>', methods=['PUT'])
@login_required
def update_game(code):
    game = catalog.update_game(code, request.get_json(silent=True) or {})
    return jsonify({'game': game.to_dict()})


@games.route('/<string:code>', methods=['DELETE'])
@login_required
def delete_game(code):
    return jsonify({'deleted': catalog.delete_game(code)})
