"""User management blueprint (super admin only)."""
from flask import Blueprint, jsonify
from ..config import get_settings
from ..document_store import get_document_store
from ..services.user_service import UserService
from ..utils import get_json_data, not_found, require_super_admin

bp = Blueprint('users', __name__, url_prefix='/api')


def _service():
    return UserService(get_document_store(), get_settings())


@bp.route('/users', methods=['GET'])
@require_super_admin
def list_users():
    return jsonify({'users': [user.to_api() for user in _service().list_users()]})


@bp.route('/users', methods=['POST'])
@require_super_admin
def create_user():
    user = _service().create_user(get_json_data())
    return jsonify({'id': user.id, 'user': user.to_api(), 'message': 'User created successfully'}), 201


@bp.route('/users/<user_id>', methods=['GET'])
@require_super_admin
def get_user(user_id):
    user = _service().get_user(user_id)
    if user is None:
        return not_found('User')
    return jsonify(user.to_api())


@bp.route('/users/<user_id>', methods=['PUT'])
@require_super_admin
def update_user(user_id):
    user = _service().update_user(user_id, get_json_data())
    if user is None:
        return not_found('User')
    return jsonify({'user': user.to_api(), 'message': 'User updated successfully'})


@bp.route('/users/<user_id>', methods=['DELETE'])
@require_super_admin
def delete_user(user_id):
    if not _service().delete_user(user_id):
        return not_found('User')
    return jsonify({'message': 'User deleted successfully'})


@bp.route('/users/<user_id>/toggle-status', methods=['POST'])
@require_super_admin
def toggle_user_status(user_id):
    user = _service().toggle_user_status(user_id)
    if user is None:
        return not_found('User')
    return jsonify({'user': user.to_api(), 'isActive': user.is_active})
