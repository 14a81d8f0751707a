"""Stores blueprint: store CRUD, managers, question groups and the survey link."""
from flask import Blueprint, jsonify, g
from pydantic import ValidationError as PydanticValidationError
from shared.access import can_create_store, can_manage_managers
from shared.schemas import ReorderRequest
from shared.validation import ValidationError, format_pydantic_errors
from ..config import get_settings
from ..document_store import get_document_store
from ..services.store_service import StoreService
from ..utils import api_error, get_json_data, not_found

bp = Blueprint('stores', __name__, url_prefix='/api')


def _service():
    return StoreService(get_document_store(), get_settings())


def _store_response(store, message=None, status=200):
    body = {'store': store.to_api()}
    if message:
        body['message'] = message
    return jsonify(body), status


@bp.route('/stores', methods=['GET'])
def list_stores():
    """List the stores the current user may access."""
    stores = _service().list_accessible(g.user)
    return jsonify({'stores': [store.to_api() for store in stores]})


@bp.route('/stores', methods=['POST'])
def create_store():
    if not can_create_store(g.user):
        return api_error('Insufficient permissions', 403)
    store = _service().create_store(g.user, get_json_data())
    body = {'id': store.id, 'store': store.to_api(), 'message': 'Store created successfully'}
    return jsonify(body), 201


@bp.route('/stores/<store_id>', methods=['GET'])
def get_store(store_id):
    store = _service().get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    return jsonify(store.to_api())


@bp.route('/stores/<store_id>', methods=['PUT'])
def update_store(store_id):
    service = _service()
    store = service.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    updated = service.update_store(store, get_json_data())
    if updated is None:
        return not_found('Store')
    return _store_response(updated, 'Store updated successfully')


@bp.route('/stores/<store_id>', methods=['DELETE'])
def delete_store(store_id):
    """Delete a store. Its stored responses are left in place."""
    service = _service()
    store = service.get_accessible(g.user, store_id)
    if store is None or not service.delete_store(store):
        return not_found('Store')
    return jsonify({'message': 'Store deleted successfully'})


@bp.route('/stores/<store_id>/managers', methods=['PUT'])
def set_managers(store_id):
    """Replace the store's managers: {"managers": [userId, ...]}."""
    service = _service()
    store = service.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    if not can_manage_managers(g.user, store):
        return api_error('Only the store creator can change its managers', 403)
    store = service.set_managers(store, get_json_data().get('managers'))
    return _store_response(store)


@bp.route('/stores/<store_id>/groups', methods=['PUT'])
def assign_groups(store_id):
    """Replace the store's ordered groups: {"questionGroupIds": [...]}."""
    service = _service()
    store = service.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    store = service.assign_groups(store, get_json_data().get('questionGroupIds'))
    return _store_response(store)


@bp.route('/stores/<store_id>/groups/reorder', methods=['POST'])
def reorder_groups(store_id):
    service = _service()
    store = service.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    try:
        move = ReorderRequest.model_validate(get_json_data())
    except PydanticValidationError as e:
        raise ValidationError(format_pydantic_errors(e))
    return _store_response(service.reorder_groups(store, move.from_index, move.to_index))


@bp.route('/stores/<store_id>/survey-link', methods=['GET'])
def survey_link(store_id):
    service = _service()
    store = service.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    return jsonify({'storeId': store.id, 'url': service.survey_link(store)})
