"""Tests for pydantic document schemas."""
import pytest
from pydantic import ValidationError as PydanticValidationError
from shared.schemas import (
    User, UserCreate, CategoryCreate, QuestionCreate, QuestionGroupCreate, StoreCreate, Store,
    SurveyResponse, ChecklistAnswer, RatingAnswer,
)


class TestUser:

    def test_display_name_aliases(self):
        assert User.model_validate({'username': 'a', 'name': 'Legacy'}).display_name == 'Legacy'
        user = User.model_validate({'username': 'a', 'displayName': 'Ana', 'role': 'admin'})
        document = user.to_api()
        assert document['displayName'] == 'Ana'
        assert document['role'] == 'admin'
        assert document['permissions']['survey'] == {'results': False, 'analytics': False, 'grafik': False}

    def test_super_admin_cannot_be_created_through_input(self):
        with pytest.raises(PydanticValidationError):
            UserCreate.model_validate({'username': 'x', 'displayName': 'X', 'role': 'super_admin',
                                       'password': 'secret1'})


class TestCategory:

    def test_defaults_and_sanitizing(self):
        category = CategoryCreate.model_validate({'name': ' Service ', 'description': '<b>Bold</b> text'})
        assert category.name == 'Service'
        assert category.color == '#3B82F6'
        assert '<b>' not in category.description

    def test_bad_color(self):
        with pytest.raises(PydanticValidationError):
            CategoryCreate.model_validate({'name': 'Service', 'color': 'red'})


class TestQuestionCreate:

    def test_first_category_id_wins(self):
        question = QuestionCreate.model_validate({'text': 'Q', 'categoryIds': ['c2', 'c3']})
        assert question.category_id == 'c2'
        assert 'categoryIds' not in question.to_document()

    def test_category_required(self):
        with pytest.raises(PydanticValidationError, match='categoryId is required'):
            QuestionCreate.model_validate({'text': 'Q'})

    def test_choice_questions_need_two_options(self):
        with pytest.raises(PydanticValidationError, match='at least 2'):
            QuestionCreate.model_validate({'text': 'Q', 'type': 'multiple_choice',
                                           'options': ['Only'], 'categoryId': 'c'})

    def test_options_dropped_for_other_types(self):
        question = QuestionCreate.model_validate({'text': 'Q', 'type': 'rating',
                                                  'options': ['a', 'b'], 'categoryId': 'c',
                                                  'checklistLimits': {'minSelections': 1}})
        assert question.options is None
        assert question.checklist_limits is None

    def test_checklist_limits_checked_against_options(self):
        with pytest.raises(PydanticValidationError, match='cannot exceed the number of options'):
            QuestionCreate.model_validate({'text': 'Q', 'type': 'checklist', 'options': ['a', 'b'],
                                           'checklistLimits': {'maxSelections': 3}, 'categoryId': 'c'})


class TestQuestionGroupCreate:

    def test_ids_deduplicated(self):
        group = QuestionGroupCreate.model_validate({'name': 'G', 'questionIds': ['a', 'b', 'a'],
                                                    'mandatoryQuestionIds': ['b', 'b']})
        assert group.question_ids == ['a', 'b']
        assert group.mandatory_question_ids == ['b']

    def test_mandatory_must_be_subset(self):
        with pytest.raises(PydanticValidationError, match='Mandatory questions must belong'):
            QuestionGroupCreate.model_validate({'name': 'G', 'questionIds': ['a'],
                                                'mandatoryQuestionIds': ['z']})


class TestStore:

    def test_store_create_validates_phone(self):
        with pytest.raises(PydanticValidationError, match='Invalid phone number format'):
            StoreCreate.model_validate({'name': 'Toko', 'phone': 'nope'})

    def test_effective_managers_include_creator(self):
        store = Store.model_validate({'name': 'Toko', 'createdBy': 'u1', 'managers': ['u2']})
        assert store.effective_managers() == ['u2', 'u1']

    def test_null_lists_tolerated(self):
        store = Store.model_validate({'name': 'Toko', 'managers': None, 'questionGroupIds': None})
        assert store.managers == []
        assert store.question_group_ids == []


class TestSurveyResponse:

    def test_answers_dispatch_on_question_type(self):
        response = SurveyResponse.model_validate({
            'storeId': 's1',
            'answers': {
                'q1': {'questionType': 'rating', 'answer': 4},
                'q2': {'questionType': 'checklist', 'answer': 'Milk'},
            },
        })
        assert isinstance(response.answers['q1'], RatingAnswer)
        assert isinstance(response.answers['q2'], ChecklistAnswer)
        assert response.answers['q2'].answer == ['Milk']
        assert response.question_groups_order is None

    def test_unreadable_answers_are_dropped_individually(self):
        response = SurveyResponse.model_validate({'answers': {
            'q1': {'questionType': 'video', 'answer': 'x'},
            'q2': {'questionType': 'rating', 'answer': ''},
            'q3': {'questionType': 'rating', 'answer': 5},
        }})
        assert list(response.answers) == ['q3']
        assert response.answers['q3'].answer == 5

    def test_document_keeps_numbers(self):
        response = SurveyResponse.model_validate({'answers': {'q1': {'questionType': 'rating', 'answer': 0}}})
        assert response.to_document()['answers']['q1']['answer'] == 0
