"""Tests for response analytics aggregation."""
from shared import analytics
from shared.export import AnswerRow
from shared.schemas import SurveyResponse


def response(response_id, submitted_at, answers, store_id='s1'):
    return SurveyResponse.model_validate({
        'id': response_id,
        'storeId': store_id,
        'storeName': f'Store {store_id}',
        'submittedAt': submitted_at,
        'answers': answers,
    })


def rating(value, text='Friendly staff?', section='Pelayanan', category='Service'):
    return {'questionType': 'rating', 'answer': value, 'questionText': text,
            'sectionName': section, 'categoryName': category}


class TestRatingStats:

    def test_distribution_and_average(self):
        responses = [
            response('r1', '2024-05-01T10:00:00+07:00', {'q1': rating(5)}),
            response('r2', '2024-05-02T10:00:00+07:00', {'q1': rating(3)}),
            response('r3', '2024-05-03T10:00:00+07:00', {'q1': rating(5)}),
        ]

        [record] = analytics.rating_stats(responses)

        assert record['questionId'] == 'q1'
        assert record['totalResponses'] == 3
        assert abs(record['average'] - 13 / 3) < 1e-9
        buckets = {b['value']: b for b in record['distribution']}
        assert sorted(buckets) == [1, 2, 3, 4, 5]
        assert buckets[5]['count'] == 2
        assert buckets[5]['percentage'] == 66.67
        assert buckets[1]['percentage'] == 0
        assert sum(b['count'] for b in record['distribution']) == record['totalResponses']

    def test_latest_response_supplies_labels(self):
        responses = [
            response('old', '2024-01-01T08:00:00+07:00', {'q1': rating(4, text='Old text', section='Lama')}),
            response('new', '2024-06-01T08:00:00+07:00', {'q1': rating(2, text='New text', section='Baru')}),
        ]

        [record] = analytics.rating_stats(responses)

        assert record['questionText'] == 'New text'
        assert record['sectionName'] == 'Baru'
        assert record['values'] == [2, 4]

    def test_missing_section_defaults(self):
        entry = {'questionType': 'rating', 'answer': 4, 'questionText': 'Q'}
        [record] = analytics.rating_stats([response('r1', '2024-05-01T10:00:00Z', {'q1': entry})])
        assert record['sectionName'] == 'Umum'
        assert record['categoryName'] == 'Umum'

    def test_other_types_are_ignored(self):
        text = {'questionType': 'text', 'answer': 'hi', 'questionText': 'Q'}
        assert analytics.rating_stats([response('r1', '2024-05-01T10:00:00Z', {'q1': text})]) == []


def test_slider_domain_has_ten_buckets():
    slider = {'questionType': 'slider', 'answer': 10, 'questionText': 'Return?'}
    [record] = analytics.slider_stats([response('r1', '2024-05-01T10:00:00Z', {'q1': slider})])
    assert [b['value'] for b in record['distribution']] == list(range(1, 11))
    assert record['distribution'][-1]['percentage'] == 100


def test_multiple_choice_counts_observed_options():
    def choice(value):
        return {'questionType': 'multiple_choice', 'answer': value, 'questionText': 'Favourite?'}

    responses = [
        response('r1', '2024-05-01T10:00:00Z', {'q1': choice('Tea')}),
        response('r2', '2024-05-02T10:00:00Z', {'q1': choice('Coffee')}),
        response('r3', '2024-05-03T10:00:00Z', {'q1': choice('Tea')}),
        response('r4', '2024-05-04T10:00:00Z', {'q1': choice('Discontinued')}),
    ]

    [record] = analytics.multiple_choice_stats(responses)

    assert record['totalResponses'] == 4
    assert record['optionCounts'] == {'Discontinued': 1, 'Tea': 2, 'Coffee': 1}
    assert record['optionPercentages']['Tea'] == 50


def test_checklist_counts_each_response_once_per_option():
    def checklist(values):
        return {'questionType': 'checklist', 'answer': values, 'questionText': 'Bought?'}

    responses = [
        response('r1', '2024-05-01T10:00:00Z', {'q1': checklist(['Milk', 'Bread'])}),
        response('r2', '2024-05-02T10:00:00Z', {'q1': checklist(['Milk', 'Milk'])}),
    ]

    [record] = analytics.checklist_stats(responses)

    assert record['options'] == ['Milk', 'Bread']
    assert record['optionCounts'] == {'Milk': 2, 'Bread': 1}
    assert record['optionPercentages'] == {'Milk': 100, 'Bread': 50}

    summary = analytics.checklist_summary([record])
    assert summary['mostPopularOption'] == {'questionId': 'q1', 'option': 'Milk', 'count': 2}
    assert summary['leastPopularOption']['option'] == 'Bread'


class TestFiltersAndSummaries:

    def _stats(self):
        responses = [
            response('r1', '2024-05-01T10:00:00Z', {
                'q1': rating(5, text='A', section='Pelayanan'),
                'q2': rating(2, text='B', section='Produk', category='Product'),
            }),
            response('r2', '2024-05-02T10:00:00Z', {'q1': rating(4, text='A', section='Pelayanan')}),
        ]
        return analytics.rating_stats(responses)

    def test_filter_by_section_category_and_count(self):
        stats = self._stats()
        assert [r['questionId'] for r in analytics.filter_question_stats(stats, section_name='Produk')] == ['q2']
        assert [r['questionId'] for r in analytics.filter_question_stats(stats, category_name='Service')] == ['q1']
        assert [r['questionId'] for r in analytics.filter_question_stats(stats, min_responses=2)] == ['q1']

    def test_rating_summary(self):
        summary = analytics.rating_summary(self._stats())
        assert summary['totalQuestions'] == 2
        assert summary['totalResponses'] == 3
        assert summary['highestRatedQuestion']['questionId'] == 'q1'
        assert summary['lowestRatedQuestion']['questionId'] == 'q2'
        assert summary['averageRating'] == (4.5 + 2) / 2

    def test_empty_summaries(self):
        assert analytics.rating_summary([])['highestRatedQuestion'] is None
        assert analytics.checklist_summary([])['mostPopularOption'] is None


def test_overview_statistics():
    def row(response_id, store_id, question_id, question_type, answer):
        return AnswerRow(response_id=response_id, store_id=store_id, store_name=store_id,
                         group_id='g', group_name='G', question_id=question_id, question_text=question_id,
                         question_type=question_type, customer_name='C', customer_phone='',
                         answer=answer, submitted_at='2024-05-01T10:00:00Z')

    rows = [
        row('r1', 's1', 'q1', 'rating', 5),
        row('r1', 's1', 'q2', 'text', 'ok'),
        row('r2', 's2', 'q1', 'rating', 4),
        row('r3', 's2', 'q1', 'rating', 4),
    ]

    stats = analytics.overview_statistics(rows)

    assert stats == {'totalResponses': 3, 'averageRating': 4.3, 'uniqueStores': 2, 'uniqueQuestions': 2}
    assert analytics.overview_statistics([])['averageRating'] == 0


class TestWorkedExamples:
    """Reference datasets with known aggregates."""

    def test_rating_example(self):
        responses = [response(f'r{i}', f'2024-05-0{i + 1}T10:00:00Z', {'q1': rating(v)})
                     for i, v in enumerate([5, 5, 4, 3, 1])]

        [record] = analytics.rating_stats(responses)

        assert record['average'] == 3.6
        assert {b['value']: b['count'] for b in record['distribution']} == {1: 1, 2: 0, 3: 1, 4: 1, 5: 2}
        assert {b['value']: b['percentage'] for b in record['distribution']} == {1: 20, 2: 0, 3: 20, 4: 20, 5: 40}
        # Aggregation keeps no state between calls
        assert analytics.rating_stats(responses) == [record]

    def test_checklist_example(self):
        selections = [['A', 'B'], ['A'], ['B', 'C']]
        responses = [
            response(f'r{i}', f'2024-05-0{i + 1}T10:00:00Z',
                     {'q1': {'questionType': 'checklist', 'answer': chosen, 'questionText': 'Pick'}})
            for i, chosen in enumerate(selections)
        ]

        [record] = analytics.checklist_stats(responses)

        assert record['totalResponses'] == 3
        assert record['optionCounts'] == {'A': 2, 'B': 2, 'C': 1}
        assert record['optionPercentages'] == {'A': 66.67, 'B': 66.67, 'C': 33.33}

    def test_removed_option_still_tallied(self):
        def choice(value):
            return {'questionType': 'multiple_choice', 'answer': value, 'questionText': 'Pick one'}

        responses = [
            response('r1', '2024-05-01T10:00:00Z', {'q1': choice('X')}),
            response('r2', '2024-05-02T10:00:00Z', {'q1': choice('Z')}),
        ]

        [record] = analytics.multiple_choice_stats(responses)

        assert record['optionCounts']['Z'] == 1
        assert record['optionPercentages']['Z'] == 50
