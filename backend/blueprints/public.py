"""Anonymous survey endpoints reached through a store's QR code link."""
from flask import Blueprint, jsonify
from ..config import get_settings
from ..document_store import get_document_store
from ..repositories.catalog import StoreRepository
from ..services.survey_service import SurveyService
from ..utils import get_json_data, not_found

bp = Blueprint('public', __name__, url_prefix='/survey')


def _active_store(store_id):
    store = StoreRepository(get_document_store()).get(store_id)
    if store is None or not store.is_active:
        return None
    return store


@bp.route('/<store_id>', methods=['GET'])
def survey_form(store_id):
    """The store's groups and questions in the order they are asked."""
    store = _active_store(store_id)
    if store is None:
        return not_found('Survey')
    return jsonify(SurveyService(get_document_store(), get_settings()).survey_form(store))


@bp.route('/<store_id>/responses', methods=['POST'])
def submit_survey(store_id):
    store = _active_store(store_id)
    if store is None:
        return not_found('Survey')
    response = SurveyService(get_document_store(), get_settings()).submit(store, get_json_data())
    return jsonify({
        'id': response.id,
        'completionStatus': response.completion_status,
        'metadata': response.metadata.to_api(),
        'message': 'Thank you for completing the survey',
    }), 201
