"""Survey results blueprint: per-store overview, response pages and details."""
from flask import Blueprint, request, jsonify, g
from shared.access import can_delete_survey_response
from shared.enums import Feature
from ..config import get_settings
from ..document_store import get_document_store
from ..services.store_service import StoreService
from ..services.survey_service import SurveyService
from ..utils import api_error, not_found, require_feature

bp = Blueprint('results', __name__, url_prefix='/api')


def _services():
    store, settings = get_document_store(), get_settings()
    return StoreService(store, settings), SurveyService(store, settings)


@bp.route('/results/subjects', methods=['GET'])
@require_feature(Feature.SURVEY_RESULTS)
def subjects_overview():
    """Response count and last submission of every accessible store."""
    stores, surveys = _services()
    return jsonify({'subjects': surveys.subjects_overview(stores.list_accessible(g.user))})


@bp.route('/stores/<store_id>/responses', methods=['GET'])
@require_feature(Feature.SURVEY_RESULTS)
def list_responses(store_id):
    stores, surveys = _services()
    store = stores.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    page = request.args.get('page', 1, type=int)
    return jsonify(surveys.page_responses(store, page))


@bp.route('/stores/<store_id>/responses/<response_id>', methods=['GET'])
@require_feature(Feature.SURVEY_RESULTS)
def get_response(store_id, response_id):
    """A response regrouped into its sections, in the order it was answered."""
    stores, surveys = _services()
    store = stores.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    detail = surveys.response_detail(store, response_id)
    if detail is None:
        return not_found('Response')
    return jsonify(detail)


@bp.route('/stores/<store_id>/responses/<response_id>', methods=['DELETE'])
def delete_response(store_id, response_id):
    stores, surveys = _services()
    store = stores.get_accessible(g.user, store_id)
    if store is None:
        return not_found('Store')
    if not can_delete_survey_response(g.user, store):
        return api_error('Insufficient permissions', 403)
    if not surveys.delete_response(store, response_id):
        return not_found('Response')
    return jsonify({'message': 'Response deleted successfully'})
