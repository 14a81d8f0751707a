"""Read-only access to legacy questionnaire documents."""
from flask import Blueprint, jsonify, g
from ..config import get_settings
from ..document_store import get_document_store
from ..repositories.responses import QuestionnaireRepository
from ..services.store_service import StoreService

bp = Blueprint('questionnaires', __name__, url_prefix='/api')


@bp.route('/questionnaires', methods=['GET'])
def list_questionnaires():
    """Legacy questionnaires of the stores the current user may access."""
    store = get_document_store()
    store_ids = [s.id for s in StoreService(store, get_settings()).list_accessible(g.user)]
    return jsonify({'questionnaires': QuestionnaireRepository(store).list_for_stores(store_ids)})
