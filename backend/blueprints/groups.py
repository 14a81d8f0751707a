"""Question groups blueprint for Flask API."""
from flask import Blueprint, jsonify
from pydantic import ValidationError as PydanticValidationError
from shared.enums import Feature
from shared.schemas import QuestionGroupCreate, QuestionGroupUpdate, ReorderRequest
from shared.validation import ValidationError, format_pydantic_errors
from ..base.crud_base import CRUDBase
from ..document_store import get_document_store
from ..repositories.catalog import QuestionGroupRepository
from ..services.group_service import GroupService
from ..utils import get_json_data, not_found, require_feature

bp = Blueprint('groups', __name__, url_prefix='/api')

group_crud = CRUDBase(QuestionGroupRepository, QuestionGroupCreate, QuestionGroupUpdate,
                      'group', 'groups', logger_name='groups')


def _load_group(group_id):
    return QuestionGroupRepository(get_document_store()).get(group_id)


def _group_response(group):
    return jsonify({'group': group.to_api()})


@bp.route('/question-groups', methods=['GET'])
def list_groups():
    return group_crud.get_list()


@bp.route('/question-groups', methods=['POST'])
@require_feature(Feature.QUESTIONS_GROUPS)
def create_group():
    return group_crud.create()


@bp.route('/question-groups/<group_id>', methods=['GET'])
def get_group(group_id):
    return group_crud.get_detail(group_id)


@bp.route('/question-groups/<group_id>', methods=['PUT'])
@require_feature(Feature.QUESTIONS_GROUPS)
def update_group(group_id):
    return group_crud.update(group_id)


@bp.route('/question-groups/<group_id>', methods=['DELETE'])
@require_feature(Feature.QUESTIONS_GROUPS)
def delete_group(group_id):
    return group_crud.delete(group_id)


@bp.route('/question-groups/<group_id>/questions', methods=['POST'])
@require_feature(Feature.QUESTIONS_GROUPS)
def add_question(group_id):
    """Append a question to the group: {"questionId": ..., "mandatory": false}."""
    group = _load_group(group_id)
    if group is None:
        return not_found('Group')
    data = get_json_data()
    question_id = data.get('questionId')
    if not question_id:
        raise ValidationError('questionId is required')
    group = GroupService(get_document_store()).add_question(group, question_id, bool(data.get('mandatory')))
    return _group_response(group)


@bp.route('/question-groups/<group_id>/questions/<question_id>', methods=['DELETE'])
@require_feature(Feature.QUESTIONS_GROUPS)
def remove_question(group_id, question_id):
    group = _load_group(group_id)
    if group is None:
        return not_found('Group')
    return _group_response(GroupService(get_document_store()).remove_question(group, question_id))


@bp.route('/question-groups/<group_id>/mandatory', methods=['PUT'])
@require_feature(Feature.QUESTIONS_GROUPS)
def set_mandatory(group_id):
    """Replace the mandatory subset: {"mandatoryQuestionIds": [...]}."""
    group = _load_group(group_id)
    if group is None:
        return not_found('Group')
    data = get_json_data()
    group = GroupService(get_document_store()).set_mandatory(group, data.get('mandatoryQuestionIds'))
    return _group_response(group)


@bp.route('/question-groups/<group_id>/reorder', methods=['POST'])
@require_feature(Feature.QUESTIONS_GROUPS)
def reorder_questions(group_id):
    """Move one question: {"fromIndex": 0, "toIndex": 2}."""
    group = _load_group(group_id)
    if group is None:
        return not_found('Group')
    try:
        move = ReorderRequest.model_validate(get_json_data())
    except PydanticValidationError as e:
        raise ValidationError(format_pydantic_errors(e))
    group = GroupService(get_document_store()).reorder_questions(group, move.from_index, move.to_index)
    return _group_response(group)
