"""Tests for backend API endpoints."""
import csv
import io
from backend.repositories.catalog import StoreRepository


def _grant(client, admin_headers, user_id, permissions):
    response = client.put(f'/api/users/{user_id}', json={'permissions': permissions}, headers=admin_headers)
    assert response.status_code == 200


def _submit(client, store_id, answers, name='Budi'):
    return client.post(f'/survey/{store_id}/responses',
                       json={'customerName': name, 'customerPhone': '081234567', 'answers': answers})


class TestAuth:

    def test_api_requires_token(self, client):
        response = client.get('/api/stores')
        assert response.status_code == 401
        assert response.get_json() == {'error': 'Authentication required'}

        response = client.get('/api/stores', headers={'Authorization': 'Bearer bogus'})
        assert response.status_code == 401

    def test_login_me_logout(self, client, super_admin, admin_headers):
        response = client.get('/api/auth/me', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['username'] == super_admin.username

        assert client.post('/api/auth/logout', headers=admin_headers).status_code == 200
        assert client.get('/api/auth/me', headers=admin_headers).status_code == 401

    def test_bad_credentials(self, client, super_admin):
        response = client.post('/api/auth/login', json={'username': super_admin.username, 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid username or password'


class TestUsersApi:

    def test_super_admin_manages_users(self, client, admin_headers):
        response = client.post('/api/users', json={'username': 'kasir', 'displayName': 'Kasir',
                                                   'password': 'rahasia1'}, headers=admin_headers)
        assert response.status_code == 201
        user_id = response.get_json()['id']
        assert 'passwordHash' not in response.get_json()['user']

        response = client.post('/api/users', json={'username': 'kasir', 'displayName': 'Again',
                                                   'password': 'rahasia1'}, headers=admin_headers)
        assert response.status_code == 400

        response = client.post(f'/api/users/{user_id}/toggle-status', headers=admin_headers)
        assert response.get_json()['isActive'] is False

        assert client.delete(f'/api/users/{user_id}', headers=admin_headers).status_code == 200
        assert client.get(f'/api/users/{user_id}', headers=admin_headers).status_code == 404

    def test_staff_cannot_manage_users(self, client, staff_headers):
        assert client.get('/api/users', headers=staff_headers).status_code == 403

    def test_super_admin_cannot_be_deleted(self, client, super_admin, admin_headers):
        response = client.delete(f'/api/users/{super_admin.id}', headers=admin_headers)
        assert response.status_code == 400


class TestCatalogApi:

    def test_category_and_question_crud(self, client, admin_headers):
        response = client.post('/api/categories', json={'name': 'Kebersihan'}, headers=admin_headers)
        assert response.status_code == 201
        category_id = response.get_json()['id']

        response = client.post('/api/questions', json={
            'text': 'Which areas were clean?', 'type': 'checklist',
            'options': ['Floor', 'Shelves', 'Toilet'], 'categoryIds': [category_id],
            'checklistLimits': {'minSelections': 1},
        }, headers=admin_headers)
        assert response.status_code == 201
        question = response.get_json()['question']
        assert question['categoryId'] == category_id

        response = client.put(f"/api/questions/{question['id']}", json={'options': ['Floor']},
                              headers=admin_headers)
        assert response.status_code == 400

        response = client.put(f"/api/questions/{question['id']}", json={'text': 'Clean areas?'},
                              headers=admin_headers)
        assert response.status_code == 200
        updated = response.get_json()['question']
        assert updated['text'] == 'Clean areas?'
        assert updated['options'] == ['Floor', 'Shelves', 'Toilet']
        assert updated['createdAt'] == question['createdAt']

        response = client.get('/api/questions?search=clean&type=checklist', headers=admin_headers)
        assert [q['id'] for q in response.get_json()['questions']] == [question['id']]

        assert client.delete(f"/api/questions/{question['id']}", headers=admin_headers).status_code == 200

    def test_question_needs_existing_category(self, client, admin_headers):
        response = client.post('/api/questions', json={'text': 'Q', 'categoryId': 'ghost'},
                               headers=admin_headers)
        assert response.status_code == 400
        assert 'does not exist' in response.get_json()['error']

    def test_feature_permissions(self, client, admin_headers, staff_user, staff_headers):
        response = client.post('/api/categories', json={'name': 'X'}, headers=staff_headers)
        assert response.status_code == 403

        _grant(client, admin_headers, staff_user.id, {'questions': {'categories': True}})
        response = client.post('/api/categories', json={'name': 'X'}, headers=staff_headers)
        assert response.status_code == 201

    def test_group_editing(self, client, admin_headers, survey_setup):
        group_id = survey_setup['groups']['product'].id
        rating_id = survey_setup['questions']['rating'].id
        slider_id = survey_setup['questions']['slider'].id

        response = client.post(f'/api/question-groups/{group_id}/questions',
                               json={'questionId': rating_id, 'mandatory': True}, headers=admin_headers)
        assert response.status_code == 200
        group = response.get_json()['group']
        assert group['questionIds'][-1] == rating_id
        assert group['mandatoryQuestionIds'] == [rating_id]

        response = client.post(f'/api/question-groups/{group_id}/reorder',
                               json={'fromIndex': 3, 'toIndex': 0}, headers=admin_headers)
        assert response.get_json()['group']['questionIds'][0] == rating_id

        response = client.put(f'/api/question-groups/{group_id}/mandatory',
                              json={'mandatoryQuestionIds': ['ghost']}, headers=admin_headers)
        assert response.status_code == 400

        response = client.delete(f'/api/question-groups/{group_id}/questions/{slider_id}', headers=admin_headers)
        assert slider_id not in response.get_json()['group']['questionIds']

        response = client.post(f'/api/question-groups/{group_id}/reorder',
                               json={'fromIndex': 0, 'toIndex': 9}, headers=admin_headers)
        assert response.status_code == 400

    def test_group_update_keeps_mandatory_subset(self, client, admin_headers, survey_setup):
        group_id = survey_setup['groups']['service'].id
        response = client.put(f'/api/question-groups/{group_id}', json={'questionIds': []},
                              headers=admin_headers)
        assert response.status_code == 400


class TestStoresApi:

    def test_store_lifecycle(self, client, admin_headers, staff_user):
        response = client.post('/api/stores', json={'name': 'Toko Sentosa', 'city': 'Bandung'},
                               headers=admin_headers)
        assert response.status_code == 201
        store = response.get_json()['store']
        assert store['managers'] == [store['createdBy']]

        response = client.put(f"/api/stores/{store['id']}", json={'city': 'Bekasi'}, headers=admin_headers)
        assert response.get_json()['store']['city'] == 'Bekasi'

        response = client.put(f"/api/stores/{store['id']}/managers", json={'managers': [staff_user.id]},
                              headers=admin_headers)
        assert response.get_json()['store']['managers'] == [store['createdBy'], staff_user.id]

        response = client.get(f"/api/stores/{store['id']}/survey-link", headers=admin_headers)
        assert response.get_json()['url'] == f"https://survey.example.com/survey/{store['id']}"

        assert client.delete(f"/api/stores/{store['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/stores/{store['id']}", headers=admin_headers).status_code == 404

    def test_store_access_is_scoped(self, client, admin_headers, staff_user, staff_headers, survey_setup):
        store_id = survey_setup['store'].id

        assert client.get('/api/stores', headers=staff_headers).get_json()['stores'] == []
        assert client.get(f'/api/stores/{store_id}', headers=staff_headers).status_code == 404
        assert client.post('/api/stores', json={'name': 'Mine'}, headers=staff_headers).status_code == 403

        client.put(f'/api/stores/{store_id}/managers', json={'managers': [staff_user.id]}, headers=admin_headers)

        stores = client.get('/api/stores', headers=staff_headers).get_json()['stores']
        assert [s['id'] for s in stores] == [store_id]
        # Managers may see the store but not change its managers
        response = client.put(f'/api/stores/{store_id}/managers', json={'managers': []}, headers=staff_headers)
        assert response.status_code == 403

    def test_reorder_groups(self, client, admin_headers, survey_setup):
        store_id = survey_setup['store'].id
        product_id = survey_setup['groups']['product'].id
        response = client.post(f'/api/stores/{store_id}/groups/reorder', json={'fromIndex': 1, 'toIndex': 0},
                               headers=admin_headers)
        assert response.get_json()['store']['questionGroupIds'][0] == product_id

        form = client.get(f'/survey/{store_id}').get_json()
        assert form['groups'][0]['id'] == product_id


class TestPublicSurvey:

    def test_survey_form_needs_no_token(self, client, survey_setup):
        response = client.get(f"/survey/{survey_setup['store'].id}")
        assert response.status_code == 200
        assert response.get_json()['totalQuestions'] == 5
        assert client.get('/survey/ghost').status_code == 404

    def test_inactive_store_hidden(self, client, document_store, survey_setup):
        StoreRepository(document_store).update(survey_setup['store'].id, {'isActive': False})
        assert client.get(f"/survey/{survey_setup['store'].id}").status_code == 404

    def test_submit(self, client, survey_setup):
        questions = survey_setup['questions']
        response = _submit(client, survey_setup['store'].id, {
            questions['rating'].id: 3,
            questions['text'].id: 0,
        })
        assert response.status_code == 201
        body = response.get_json()
        assert body['completionStatus'] == 'partial'
        assert body['metadata'] == {'totalQuestions': 5, 'answeredQuestions': 2, 'completionRate': 40.0}

    def test_missing_mandatory(self, client, survey_setup):
        response = _submit(client, survey_setup['store'].id, {survey_setup['questions']['text'].id: 'hi'})
        assert response.status_code == 400
        assert response.get_json()['missing'] == [
            {'groupName': 'Pelayanan', 'questions': ['How friendly was the staff?']}
        ]

    def test_invalid_body(self, client, survey_setup):
        response = client.post(f"/survey/{survey_setup['store'].id}/responses", data='nope',
                               content_type='application/json')
        assert response.status_code == 400


class TestResultsApi:

    def test_results_flow(self, client, admin_headers, survey_setup):
        store_id = survey_setup['store'].id
        rating_id = survey_setup['questions']['rating'].id
        for name in ('Budi', 'Sari'):
            assert _submit(client, store_id, {rating_id: 4}, name=name).status_code == 201

        subjects = client.get('/api/results/subjects', headers=admin_headers).get_json()['subjects']
        assert subjects[0]['storeId'] == store_id
        assert subjects[0]['responseCount'] == 2

        page = client.get(f'/api/stores/{store_id}/responses?page=1', headers=admin_headers).get_json()
        assert page['total'] == 2
        assert page['perPage'] == 20
        assert {r['customerName'] for r in page['responses']} == {'Budi', 'Sari'}

        response_id = page['responses'][0]['id']
        detail = client.get(f'/api/stores/{store_id}/responses/{response_id}', headers=admin_headers).get_json()
        assert detail['sections'][0]['sectionName'] == 'Pelayanan'

        assert client.delete(f'/api/stores/{store_id}/responses/{response_id}',
                             headers=admin_headers).status_code == 200
        assert client.get(f'/api/stores/{store_id}/responses/{response_id}',
                          headers=admin_headers).status_code == 404

    def test_results_need_permission_and_access(self, client, admin_headers, staff_user, staff_headers,
                                                survey_setup):
        store_id = survey_setup['store'].id
        assert client.get(f'/api/stores/{store_id}/responses', headers=staff_headers).status_code == 403

        _grant(client, admin_headers, staff_user.id, {'survey': {'results': True}})
        assert client.get(f'/api/stores/{store_id}/responses', headers=staff_headers).status_code == 404
        assert client.get('/api/results/subjects', headers=staff_headers).get_json()['subjects'] == []


class TestAnalyticsApi:

    def _seed(self, client, survey_setup):
        questions = survey_setup['questions']
        store_id = survey_setup['store'].id
        _submit(client, store_id, {questions['rating'].id: 5, questions['multiple_choice'].id: 'Tea'},
                name='Budi')
        _submit(client, store_id, {questions['rating'].id: 3, questions['checklist'].id: ['Milk', 'Eggs']},
                name='Sari')

    def test_rating_analytics_default_to_accessible_stores(self, client, admin_headers, survey_setup):
        self._seed(client, survey_setup)
        body = client.get('/api/analytics/rating', headers=admin_headers).get_json()
        assert body['questions'][0]['average'] == 4
        assert body['summary']['totalQuestions'] == 1

        body = client.get('/api/analytics/multiple-choice', headers=admin_headers).get_json()
        assert body['questions'][0]['optionCounts'] == {'Tea': 1}

        body = client.get('/api/analytics/rating?min_responses=3', headers=admin_headers).get_json()
        assert body['questions'] == []

        assert client.get('/api/analytics/video', headers=admin_headers).status_code == 404

    def test_inaccessible_store_ids_are_ignored(self, client, admin_headers, staff_user, staff_headers,
                                                survey_setup):
        self._seed(client, survey_setup)
        _grant(client, admin_headers, staff_user.id, {'survey': {'analytics': True}})

        response = client.get(f"/api/analytics/rating?store_id={survey_setup['store'].id}", headers=staff_headers)
        assert response.status_code == 200
        assert response.get_json()['questions'] == []

    def test_rows_and_csv_export(self, client, admin_headers, survey_setup):
        self._seed(client, survey_setup)
        store_id = survey_setup['store'].id

        body = client.get(f'/api/analytics/rows?store_id={store_id}', headers=admin_headers).get_json()
        assert body['statistics']['totalResponses'] == 2
        assert body['statistics']['averageRating'] == 4.0

        response = client.get(f'/api/analytics/export?store_id={store_id}&format=csv', headers=admin_headers)
        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        assert 'attachment; filename=survey-analytics-' in response.headers['Content-Disposition']
        rows = list(csv.DictReader(io.StringIO(response.get_data(as_text=True))))
        assert len(rows) == 4
        assert {'Milk, Eggs'} <= {row['Jawaban'] for row in rows}

    def test_export_bad_format(self, client, admin_headers, survey_setup):
        response = client.get('/api/analytics/export?format=pdf', headers=admin_headers)
        assert response.status_code == 400


def test_legacy_questionnaires(client, admin_headers, document_store, survey_setup):
    document_store.add('questionnaires', {'storeId': survey_setup['store'].id, 'submittedAt': '2023-01-01'})
    document_store.add('questionnaires', {'storeId': 'elsewhere', 'submittedAt': '2023-01-02'})

    body = client.get('/api/questionnaires', headers=admin_headers).get_json()
    assert [q['storeId'] for q in body['questionnaires']] == [survey_setup['store'].id]


def test_staff_login_after_deactivation(client, admin_headers, staff_user):
    client.post(f'/api/users/{staff_user.id}/toggle-status', headers=admin_headers)
    response = client.post('/api/auth/login', json={'username': 'staff1', 'password': 'staff-secret'})
    assert response.status_code == 401
