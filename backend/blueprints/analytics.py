"""Analytics blueprint: per-type question statistics, answer rows and exports."""
from flask import Blueprint, request, jsonify, g, Response
from shared.enums import Feature, QuestionType
from ..config import get_settings
from ..document_store import get_document_store
from ..services.analytics_service import AnalyticsService
from ..services.store_service import StoreService
from ..utils import not_found, request_list_arg, require_feature

bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')

# URL slug -> stored question type
ANALYTICS_TYPES = {
    'rating': QuestionType.RATING.value,
    'slider': QuestionType.SLIDER.value,
    'multiple-choice': QuestionType.MULTIPLE_CHOICE.value,
    'checklist': QuestionType.CHECKLIST.value,
}


def _selected_store_ids():
    """Requested store ids the user may access, or every accessible store when none are given."""
    accessible = [store.id for store in
                  StoreService(get_document_store(), get_settings()).list_accessible(g.user)]
    requested = request_list_arg('store_id')
    if not requested:
        return accessible
    allowed = set(accessible)
    return [store_id for store_id in dict.fromkeys(requested) if store_id in allowed]


def _service():
    return AnalyticsService(get_document_store())


@bp.route('/rows', methods=['GET'])
@require_feature(Feature.SURVEY_ANALYTICS)
def answer_rows():
    view = _service().rows_view(
        _selected_store_ids(),
        group_ids=request_list_arg('group_id') or None,
        question_ids=request_list_arg('question_id') or None,
    )
    return jsonify(view)


@bp.route('/export', methods=['GET'])
@require_feature(Feature.SURVEY_ANALYTICS)
def export():
    """Download the answer rows as a spreadsheet (shape=long|wide, format=xlsx|csv)."""
    content, mimetype, filename = _service().export(
        _selected_store_ids(),
        shape=request.args.get('shape', 'long'),
        file_format=request.args.get('format', 'xlsx'),
        group_ids=request_list_arg('group_id') or None,
        question_ids=request_list_arg('question_id') or None,
    )
    return Response(content, mimetype=mimetype,
                    headers={'Content-Disposition': f'attachment; filename={filename}'})


@bp.route('/<slug>', methods=['GET'])
@require_feature(Feature.SURVEY_ANALYTICS)
def question_stats(slug):
    question_type = ANALYTICS_TYPES.get(slug)
    if question_type is None:
        return not_found('Analytics type')
    stats = _service().question_stats(
        question_type,
        _selected_store_ids(),
        section_name=request.args.get('section') or None,
        category_name=request.args.get('category') or None,
        min_responses=request.args.get('min_responses', type=int),
    )
    return jsonify(stats)
