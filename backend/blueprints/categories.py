"""Categories blueprint for Flask API."""
from flask import Blueprint
from shared.enums import Feature
from shared.schemas import CategoryCreate, CategoryUpdate
from ..base.crud_base import CRUDBase
from ..repositories.catalog import CategoryRepository
from ..utils import require_feature

bp = Blueprint('categories', __name__, url_prefix='/api')

category_crud = CRUDBase(CategoryRepository, CategoryCreate, CategoryUpdate,
                         'category', 'categories', logger_name='categories')


@bp.route('/categories', methods=['GET'])
def list_categories():
    return category_crud.get_list()


@bp.route('/categories', methods=['POST'])
@require_feature(Feature.QUESTIONS_CATEGORIES)
def create_category():
    return category_crud.create()


@bp.route('/categories/<category_id>', methods=['GET'])
def get_category(category_id):
    return category_crud.get_detail(category_id)


@bp.route('/categories/<category_id>', methods=['PUT'])
@require_feature(Feature.QUESTIONS_CATEGORIES)
def update_category(category_id):
    return category_crud.update(category_id)


@bp.route('/categories/<category_id>', methods=['DELETE'])
@require_feature(Feature.QUESTIONS_CATEGORIES)
def delete_category(category_id):
    return category_crud.delete(category_id)
