"""Aggregation of survey responses into per-question analytics.

All functions are pure: they take response models (or rows) and return plain
camelCase dicts ready for JSON. Responses are walked most recent first, so the
question text, section and category reported for a question id come from the
latest response that answered it.
"""
from shared.enums import QuestionType
from shared.schemas import RatingAnswer, SliderAnswer, MultipleChoiceAnswer, ChecklistAnswer
from shared.utils import parse_timestamp

DEFAULT_SECTION = 'Umum'

RATING_DOMAIN = range(1, 6)
SLIDER_DOMAIN = range(1, 11)


def _percentage(count, total):
    if not total:
        return 0
    return round(count / total * 100, 2)


def _submitted_key(response):
    submitted = parse_timestamp(response.submitted_at)
    return submitted.timestamp() if submitted else float('-inf')


def _most_recent_first(responses):
    # sorted() is stable, so ties keep their input order
    return sorted(responses, key=_submitted_key, reverse=True)


def _collect(responses, answer_cls):
    """Group answers of one variant by question id.

    Returns an insertion-ordered dict of question id -> record holding the
    carried labels and the list of raw answers.
    """
    collected = {}
    for response in _most_recent_first(responses):
        for question_id, entry in response.answers.items():
            if not isinstance(entry, answer_cls):
                continue
            record = collected.get(question_id)
            if record is None:
                record = {
                    'questionId': question_id,
                    'questionText': entry.question_text,
                    'sectionName': entry.section_name or DEFAULT_SECTION,
                    'categoryName': entry.category_name or DEFAULT_SECTION,
                    'answers': [],
                }
                collected[question_id] = record
            record['answers'].append(entry.answer)
    return collected


def _numeric_stats(responses, answer_cls, domain):
    stats = []
    for record in _collect(responses, answer_cls).values():
        values = [v for v in record.pop('answers') if not isinstance(v, bool)]
        total = len(values)
        average = sum(values) / total if total else 0
        distribution = []
        for value in domain:
            count = sum(1 for v in values if v == value)
            distribution.append({
                'value': value,
                'count': count,
                'percentage': _percentage(count, total),
            })
        record.update({
            'values': values,
            'average': average,
            'totalResponses': total,
            'distribution': distribution,
        })
        stats.append(record)
    return stats


def rating_stats(responses):
    """Per-question statistics for rating questions over the 1..5 domain.

    Values outside the domain count toward the total and the average but
    have no histogram bucket.
    """
    return _numeric_stats(responses, RatingAnswer, RATING_DOMAIN)


def slider_stats(responses):
    """Per-question statistics for slider questions over the 1..10 domain."""
    return _numeric_stats(responses, SliderAnswer, SLIDER_DOMAIN)


def multiple_choice_stats(responses):
    """Tally observed options per multiple choice question.

    The option domain is open: answers naming options that were later removed
    from the question are still tallied.
    """
    stats = []
    for record in _collect(responses, MultipleChoiceAnswer).values():
        answers = record.pop('answers')
        total = len(answers)
        counts = {}
        for answer in answers:
            counts[answer] = counts.get(answer, 0) + 1
        record.update({
            'totalResponses': total,
            'optionCounts': counts,
            'optionPercentages': {option: _percentage(count, total) for option, count in counts.items()},
        })
        stats.append(record)
    return stats


def checklist_stats(responses):
    """Selection counts per checklist option.

    Each response contributes its selection as a set, so an option's count is
    the number of responses that selected it and percentages do not sum to 100.
    """
    stats = []
    for record in _collect(responses, ChecklistAnswer).values():
        answers = record.pop('answers')
        total = len(answers)
        counts = {}
        for answer in answers:
            for option in set(answer):
                counts[option] = counts.get(option, 0) + 1
        # Report options in first-seen order
        options = []
        for answer in answers:
            for option in answer:
                if option not in options:
                    options.append(option)
        counts = {option: counts[option] for option in options}
        record.update({
            'options': options,
            'totalResponses': total,
            'optionCounts': counts,
            'optionPercentages': {option: _percentage(count, total) for option, count in counts.items()},
        })
        stats.append(record)
    return stats


STATS_BY_TYPE = {
    QuestionType.RATING.value: rating_stats,
    QuestionType.SLIDER.value: slider_stats,
    QuestionType.MULTIPLE_CHOICE.value: multiple_choice_stats,
    QuestionType.CHECKLIST.value: checklist_stats,
}


def filter_question_stats(stats, section_name=None, category_name=None, min_responses=None):
    """Filter per-question records by section, category and response count."""
    filtered = []
    for record in stats:
        if section_name and record['sectionName'] != section_name:
            continue
        if category_name and record['categoryName'] != category_name:
            continue
        if min_responses and record['totalResponses'] < min_responses:
            continue
        filtered.append(record)
    return filtered


def rating_summary(stats):
    """Summarise rating (or slider) records.

    The highest and lowest rated questions are the first record holding the
    maximum and minimum average respectively.
    """
    if not stats:
        return {
            'totalQuestions': 0,
            'totalResponses': 0,
            'averageRating': 0,
            'highestRatedQuestion': None,
            'lowestRatedQuestion': None,
        }
    highest = stats[0]
    lowest = stats[0]
    for record in stats[1:]:
        if record['average'] > highest['average']:
            highest = record
        if record['average'] < lowest['average']:
            lowest = record
    return {
        'totalQuestions': len(stats),
        'totalResponses': sum(record['totalResponses'] for record in stats),
        'averageRating': sum(record['average'] for record in stats) / len(stats),
        'highestRatedQuestion': highest,
        'lowestRatedQuestion': lowest,
    }


def checklist_summary(stats):
    if not stats:
        return {
            'totalQuestions': 0,
            'totalResponses': 0,
            'mostPopularOption': None,
            'leastPopularOption': None,
        }
    most = None
    least = None
    for record in stats:
        for option, count in record['optionCounts'].items():
            if most is None or count > most['count']:
                most = {'questionId': record['questionId'], 'option': option, 'count': count}
            if least is None or count < least['count']:
                least = {'questionId': record['questionId'], 'option': option, 'count': count}
    return {
        'totalQuestions': len(stats),
        'totalResponses': sum(record['totalResponses'] for record in stats),
        'mostPopularOption': most if most and most['count'] > 0 else None,
        'leastPopularOption': least,
    }


def overview_statistics(rows):
    """Headline numbers over long-format answer rows (see shared.export)."""
    ratings = [row.answer for row in rows
               if row.question_type == QuestionType.RATING.value
               and isinstance(row.answer, (int, float)) and not isinstance(row.answer, bool)]
    average = round(sum(ratings) / len(ratings), 1) if ratings else 0
    return {
        'totalResponses': len({(row.store_id, row.response_id) for row in rows}),
        'averageRating': average,
        'uniqueStores': len({row.store_id for row in rows}),
        'uniqueQuestions': len({row.question_id for row in rows}),
    }
