"""Repositories for stores, categories, questions and question groups."""
from shared.enums import Collection
from shared.schemas import Store, Category, Question, QuestionGroup
from .base import DocumentRepository


class StoreRepository(DocumentRepository):
    collection = Collection.STORES.value
    model = Store


class CategoryRepository(DocumentRepository):
    collection = Collection.CATEGORIES.value
    model = Category


class QuestionRepository(DocumentRepository):
    collection = Collection.QUESTIONS.value
    model = Question

    def search(self, search=None, category_id=None, question_type=None, is_active=None):
        """List questions matching every given filter.

        ``search`` is a case-insensitive substring of the question text.
        """
        questions = self.list()
        if search:
            needle = search.strip().lower()
            questions = [q for q in questions if needle in q.text.lower()]
        if category_id:
            questions = [q for q in questions if q.category_id == category_id]
        if question_type:
            questions = [q for q in questions if q.type == question_type]
        if is_active is not None:
            questions = [q for q in questions if q.is_active == is_active]
        return questions


class QuestionGroupRepository(DocumentRepository):
    collection = Collection.QUESTION_GROUPS.value
    model = QuestionGroup
