"""Analytics and export over the responses of a set of stores."""
import logging
from shared import analytics
from shared.enums import QuestionType
from shared.export import (
    LONG_COLUMNS, build_answer_rows, long_records, wide_records, rows_to_csv, rows_to_xlsx,
)
from shared.utils import export_file_name
from shared.validation import ValidationError
from ..repositories.catalog import QuestionGroupRepository, QuestionRepository
from ..repositories.responses import ResponseRepository

logger = logging.getLogger(__name__)

EXPORT_SHAPES = ('long', 'wide')
EXPORT_FORMATS = {
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'csv': 'text/csv',
}


class AnalyticsService:
    """Aggregates responses for analytics views and spreadsheet exports.

    Every call reads the responses afresh; nothing is cached between calls.
    """

    def __init__(self, store):
        self.responses = ResponseRepository(store)
        self.questions = QuestionRepository(store)
        self.groups = QuestionGroupRepository(store)

    def question_stats(self, question_type, store_ids, section_name=None, category_name=None,
                       min_responses=None):
        """Per-question statistics plus a summary for one question type."""
        stats_func = analytics.STATS_BY_TYPE.get(question_type)
        if stats_func is None:
            raise ValidationError(f"No analytics for question type '{question_type}'")

        responses = self.responses.list_for_stores(store_ids)
        stats = analytics.filter_question_stats(
            stats_func(responses), section_name, category_name, min_responses)
        logger.debug(f"Computed {question_type} analytics for {len(store_ids)} stores: "
                     f"{len(responses)} responses, {len(stats)} questions")

        result = {'questions': stats}
        if question_type in (QuestionType.RATING.value, QuestionType.SLIDER.value):
            result['summary'] = analytics.rating_summary(stats)
        elif question_type == QuestionType.CHECKLIST.value:
            result['summary'] = analytics.checklist_summary(stats)
        else:
            result['summary'] = {
                'totalQuestions': len(stats),
                'totalResponses': sum(record['totalResponses'] for record in stats),
            }
        return result

    def answer_rows(self, store_ids, group_ids=None, question_ids=None):
        """Long-format answer rows for the given stores, filtered and sorted."""
        responses = self.responses.list_for_stores(store_ids)
        return build_answer_rows(
            responses,
            self.questions.index(),
            self.groups.list(order_by='createdAt'),
            list(store_ids),
            group_ids=group_ids,
            question_ids=question_ids,
        )

    def rows_view(self, store_ids, group_ids=None, question_ids=None):
        rows = self.answer_rows(store_ids, group_ids, question_ids)
        return {
            'rows': [row.to_api() for row in rows],
            'statistics': analytics.overview_statistics(rows),
        }

    def export(self, store_ids, shape='long', file_format='xlsx', group_ids=None, question_ids=None):
        """Render an export. Returns ``(content, mimetype, filename)``."""
        if shape not in EXPORT_SHAPES:
            raise ValidationError(f"shape must be one of: {', '.join(EXPORT_SHAPES)}")
        if file_format not in EXPORT_FORMATS:
            raise ValidationError(f"format must be one of: {', '.join(EXPORT_FORMATS)}")

        rows = self.answer_rows(store_ids, group_ids, question_ids)
        if shape == 'long':
            records, columns = long_records(rows), LONG_COLUMNS
        else:
            records, columns = wide_records(rows)

        if file_format == 'csv':
            content = rows_to_csv(records, columns).encode('utf-8')
        else:
            content = rows_to_xlsx(records, columns)
        logger.info(f"Exported {len(records)} {shape} rows as {file_format}")
        return content, EXPORT_FORMATS[file_format], export_file_name(file_format)
