"""Pytest configuration and fixtures for Store Survey tests."""
import pytest
import tempfile
import os
from backend.app import create_app
from backend.models import db
from backend.repositories.catalog import (
    StoreRepository, CategoryRepository, QuestionRepository, QuestionGroupRepository,
)
from backend.services.user_service import UserService

SUPER_ADMIN_PASSWORD = 'super-secret'
STAFF_PASSWORD = 'staff-secret'


@pytest.fixture
def app(tmp_path):
    """Create and configure a test app instance."""
    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp()

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SETTINGS': {
            'log_dir': str(tmp_path / 'logs'),
            'public_base_url': 'https://survey.example.com',
            'responses_per_page': 20,
        },
    }

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    # Cleanup
    with app.app_context():
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def document_store(app):
    return app.extensions['document_store']


@pytest.fixture
def user_service(app, document_store):
    return UserService(document_store, app.extensions['settings'])


@pytest.fixture
def super_admin(user_service):
    user, _ = user_service.ensure_super_admin(SUPER_ADMIN_PASSWORD)
    return user


def login(client, username, password):
    """Log in through the API and return Authorization headers."""
    response = client.post('/api/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return {'Authorization': f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def admin_headers(client, super_admin):
    return login(client, super_admin.username, SUPER_ADMIN_PASSWORD)


@pytest.fixture
def staff_user(user_service):
    """A staff user with no feature permissions."""
    return user_service.create_user({
        'username': 'staff1',
        'displayName': 'Staff One',
        'role': 'staff',
        'password': STAFF_PASSWORD,
    })


@pytest.fixture
def staff_headers(client, staff_user):
    return login(client, staff_user.username, STAFF_PASSWORD)


@pytest.fixture
def survey_setup(document_store, super_admin):
    """A store with two ordered groups covering every question type.

    Group "Pelayanan" holds a mandatory rating question and a text question;
    group "Produk" holds slider, multiple choice and checklist questions.
    """
    categories = CategoryRepository(document_store)
    questions = QuestionRepository(document_store)
    groups = QuestionGroupRepository(document_store)
    stores = StoreRepository(document_store)

    service_category = categories.create({'name': 'Pelayanan', 'color': '#10B981'})
    product_category = categories.create({'name': 'Produk'})

    rating = questions.create({'text': 'How friendly was the staff?', 'type': 'rating',
                               'categoryId': service_category.id})
    comment = questions.create({'text': 'Any comments?', 'type': 'text',
                                'categoryId': service_category.id})
    slider = questions.create({'text': 'How likely are you to return?', 'type': 'slider',
                               'categoryId': product_category.id})
    choice = questions.create({'text': 'Favourite product?', 'type': 'multiple_choice',
                               'options': ['Coffee', 'Tea', 'Juice'],
                               'categoryId': product_category.id})
    checklist = questions.create({'text': 'What did you buy?', 'type': 'checklist',
                                  'options': ['Bread', 'Milk', 'Eggs'],
                                  'checklistLimits': {'minSelections': 1, 'maxSelections': 2},
                                  'categoryId': product_category.id})

    service_group = groups.create({'name': 'Pelayanan', 'questionIds': [rating.id, comment.id],
                                   'mandatoryQuestionIds': [rating.id]})
    product_group = groups.create({'name': 'Produk',
                                   'questionIds': [slider.id, choice.id, checklist.id]})

    store = stores.create({
        'name': 'Toko Makmur',
        'city': 'Jakarta',
        'createdBy': super_admin.id,
        'managers': [super_admin.id],
        'questionGroupIds': [service_group.id, product_group.id],
    })

    return {
        'store': store,
        'groups': {'service': service_group, 'product': product_group},
        'questions': {
            'rating': rating,
            'text': comment,
            'slider': slider,
            'multiple_choice': choice,
            'checklist': checklist,
        },
        'categories': {'service': service_category, 'product': product_category},
    }
