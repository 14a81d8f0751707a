"""Authentication blueprint: login, logout and the current user."""
from flask import Blueprint, request, jsonify, g
from ..config import get_settings
from ..document_store import get_document_store
from ..services.user_service import UserService
from ..utils import api_error, bearer_token, get_json_data

bp = Blueprint('auth', __name__, url_prefix='/api')

PUBLIC_API_PATHS = ('/api/auth/login',)


def _user_service():
    return UserService(get_document_store(), get_settings())


@bp.route('/auth/login', methods=['POST'])
def login():
    """Login user and return token."""
    data = get_json_data()
    result = _user_service().login(data.get('username'), data.get('password'))
    if result is None:
        return api_error('Invalid username or password', 401)

    token, user = result
    return jsonify({'token': token, 'user': user.to_api()})


@bp.route('/auth/logout', methods=['POST'])
def logout():
    """Logout user by invalidating token."""
    _user_service().logout(g.token)
    return jsonify({'message': 'Logged out successfully'})


@bp.route('/auth/me', methods=['GET'])
def me():
    """Get current user info."""
    return jsonify(g.user.to_api())


def init_auth(app):
    """Require a valid bearer token on every /api route except login."""
    @app.before_request
    def check_auth():
        if not request.path.startswith('/api'):
            return
        if request.path.startswith(PUBLIC_API_PATHS):
            return

        token = bearer_token()
        user = _user_service().user_for_token(token) if token else None
        if user is None:
            return jsonify({'error': 'Authentication required'}), 401

        g.user = user
        g.token = token
