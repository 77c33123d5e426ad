from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from resultboard.models import User

main = Blueprint('main', __name__)


@main.route('/health')
def health():
    return jsonify({'ok': True})


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'success': True, 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password', 'code': 'unauthorized'}), 401


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@main.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
