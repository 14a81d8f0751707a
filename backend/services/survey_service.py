"""Survey presentation, submission and results."""
import logging
import concurrent.futures
from shared.ordering import resolve_survey_walk
from shared.submission import assemble_response, reconstruct_response
from shared.schemas import SurveySubmission
from shared.validation import ValidationError, format_pydantic_errors
from pydantic import ValidationError as PydanticValidationError
from ..document_store import DocumentStoreError
from ..repositories.catalog import StoreRepository, QuestionGroupRepository, QuestionRepository, CategoryRepository
from ..repositories.responses import ResponseRepository

logger = logging.getLogger(__name__)


class SurveyService:
    """Resolves survey walks, records submissions and serves stored responses."""

    def __init__(self, store, settings):
        self.stores = StoreRepository(store)
        self.groups = QuestionGroupRepository(store)
        self.questions = QuestionRepository(store)
        self.categories = CategoryRepository(store)
        self.responses = ResponseRepository(store)
        self.settings = settings

    def resolve_walk(self, store):
        """Resolve a store's groups and questions into the ordered survey walk."""
        return resolve_survey_walk(store, self.groups.index(), self.questions.index())

    def survey_form(self, store):
        """Public description of a store's survey, in walk order."""
        walk = self.resolve_walk(store)
        return {
            'store': {
                'id': store.id,
                'name': store.name,
                'address': store.address,
                'city': store.city,
                'logoUrl': store.logo_url,
            },
            'groups': [
                {
                    'id': resolved.group.id,
                    'name': resolved.group.name,
                    'description': resolved.group.description,
                    'mandatoryQuestionIds': [qid for qid in resolved.group.mandatory_question_ids
                                             if qid in resolved.question_ids],
                    'questions': [question.to_api() for question in resolved.questions],
                }
                for resolved in walk
            ],
            'totalQuestions': sum(len(resolved.questions) for resolved in walk),
        }

    def submit(self, store, data):
        """Validate and store one customer submission. Returns the stored response."""
        try:
            submission = SurveySubmission.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))

        walk = self.resolve_walk(store)
        response = assemble_response(
            store,
            walk,
            submission.answers,
            submission.customer_name,
            submission.customer_phone,
            categories_by_id=self.categories.index(),
        )
        response.id = self.responses.add(response)
        logger.info(f"Survey submitted for store {store.id}: response {response.id}, "
                    f"{response.metadata.answered_questions}/{response.metadata.total_questions} answered")
        return response

    def page_responses(self, store, page=1):
        """One page of a store's responses, newest first."""
        per_page = self.settings.responses_per_page
        page = max(int(page or 1), 1)
        items, total = self.responses.page(store.id, page, per_page)
        return {
            'responses': [
                {
                    'id': r.id,
                    'customerName': r.customer_info.name or 'Unknown',
                    'customerPhone': r.customer_info.phone,
                    'submittedAt': r.submitted_at,
                    'completionStatus': r.completion_status,
                    'answeredQuestions': r.metadata.answered_questions or len(r.answers),
                    'totalQuestions': r.metadata.total_questions,
                }
                for r in items
            ],
            'page': page,
            'perPage': per_page,
            'total': total,
            'hasMore': page * per_page < total,
        }

    def response_detail(self, store, response_id):
        """Reconstructed response for display, or None."""
        response = self.responses.get(store.id, response_id)
        if response is None:
            return None
        return reconstruct_response(response)

    def delete_response(self, store, response_id):
        return self.responses.delete(store.id, response_id)

    def _subject_summary(self, store):
        return {
            'storeId': store.id,
            'storeName': store.name,
            'responseCount': self.responses.count(store.id),
            'lastSubmission': self.responses.latest_submission(store.id),
        }

    def subjects_overview(self, stores):
        """Response count and last submission for each store.

        Stores are read concurrently; a store whose read fails is logged and
        left out of the result. The result keeps the input store order.
        """
        if not stores:
            return []
        summaries = {}
        workers = max(1, min(self.settings.subject_fetch_workers, len(stores)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self._subject_summary, store): store for store in stores}
            for future in concurrent.futures.as_completed(futures):
                store = futures[future]
                try:
                    summaries[store.id] = future.result()
                except DocumentStoreError as e:
                    logger.error(f"Failed to load survey summary for store {store.id}: {e}", exc_info=True)
        return [summaries[store.id] for store in stores if store.id in summaries]
