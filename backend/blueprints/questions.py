"""Questions blueprint for Flask API."""
from flask import Blueprint, request, jsonify
from shared.enums import Feature, QuestionType
from shared.schemas import QuestionCreate, QuestionUpdate
from shared.validation import Validator, ValidationError
from ..base.crud_base import CRUDBase
from ..document_store import get_document_store
from ..repositories.catalog import QuestionRepository, CategoryRepository
from ..utils import require_feature

bp = Blueprint('questions', __name__, url_prefix='/api')


class QuestionCRUD(CRUDBase):
    """CRUD operations for questions."""

    def __init__(self):
        super().__init__(QuestionRepository, QuestionCreate, QuestionUpdate,
                         'question', 'questions', logger_name='questions')

    def pre_create(self, validated):
        """A question must reference an existing category."""
        if CategoryRepository(get_document_store()).get(validated.category_id) is None:
            raise ValidationError(f'categoryId {validated.category_id} does not exist')

    def pre_update(self, merged, changes):
        # A category list in the update replaces the stored category
        if 'categoryIds' in changes and 'categoryId' not in changes:
            merged.pop('categoryId', None)
        return merged


question_crud = QuestionCRUD()


def _parse_bool(value):
    if value is None or value == '':
        return None
    return value.lower() in ('1', 'true', 'yes')


@bp.route('/questions', methods=['GET'])
def list_questions():
    """List questions, filtered by search text, category, type and active flag."""
    question_type = request.args.get('type') or None
    if question_type:
        Validator.validate_choice(question_type, 'type', [t.value for t in QuestionType])

    questions = QuestionRepository(get_document_store()).search(
        search=request.args.get('search'),
        category_id=request.args.get('category_id'),
        question_type=question_type,
        is_active=_parse_bool(request.args.get('is_active')),
    )
    return jsonify({'questions': [question_crud.serialize(q) for q in questions]})


@bp.route('/questions', methods=['POST'])
@require_feature(Feature.QUESTIONS_CREATE)
def create_question():
    return question_crud.create()


@bp.route('/questions/<question_id>', methods=['GET'])
def get_question(question_id):
    return question_crud.get_detail(question_id)


@bp.route('/questions/<question_id>', methods=['PUT'])
@require_feature(Feature.QUESTIONS_COLLECTION)
def update_question(question_id):
    return question_crud.update(question_id)


@bp.route('/questions/<question_id>', methods=['DELETE'])
@require_feature(Feature.QUESTIONS_COLLECTION)
def delete_question(question_id):
    """Delete a question. Groups still referencing it skip it when resolved."""
    return question_crud.delete(question_id)
