"""Repositories for survey responses."""
import logging
from pydantic import ValidationError as PydanticValidationError
from shared.enums import Collection, responses_collection
from shared.schemas import SurveyResponse
from shared.utils import parse_timestamp


def _submitted_key(response):
    submitted = parse_timestamp(response.submitted_at)
    return submitted.timestamp() if submitted else float('-inf')


def _newest_first(responses):
    return sorted(responses, key=_submitted_key, reverse=True)


class ResponseRepository:
    """Responses stored under ``stores/<store_id>/responses``."""

    def __init__(self, store):
        """Initialize repository with a DocumentStore."""
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    def _parse(self, store_id, document):
        if document is None:
            return None
        document.setdefault('storeId', store_id)
        try:
            return SurveyResponse.model_validate(document)
        except PydanticValidationError as e:
            self.logger.warning(f"Skipping malformed response {store_id}/{document.get('id')}: {e}")
            return None

    def list_for_store(self, store_id):
        """All responses of a store, newest first."""
        parsed = (self._parse(store_id, d) for d in self.store.list(responses_collection(store_id)))
        return _newest_first([r for r in parsed if r is not None])

    def list_for_stores(self, store_ids):
        """Responses of several stores, grouped by store in the given order."""
        responses = []
        for store_id in store_ids:
            responses.extend(self.list_for_store(store_id))
        return responses

    def page(self, store_id, page, per_page):
        """Return ``(responses, total)`` for a 1-based page, newest first."""
        responses = self.list_for_store(store_id)
        start = (max(page, 1) - 1) * per_page
        return responses[start:start + per_page], len(responses)

    def count(self, store_id):
        return self.store.count(responses_collection(store_id))

    def latest_submission(self, store_id):
        """Return the submittedAt of the most recent response, or None."""
        responses = self.list_for_store(store_id)
        return responses[0].submitted_at if responses else None

    def get(self, store_id, response_id):
        return self._parse(store_id, self.store.get(responses_collection(store_id), response_id))

    def add(self, response):
        """Write a new response document and return its id."""
        doc_id = self.store.add(responses_collection(response.store_id), response.to_document())
        self.logger.info(f"Stored response {doc_id} for store {response.store_id}")
        return doc_id

    def delete(self, store_id, response_id):
        deleted = self.store.delete(responses_collection(store_id), response_id)
        if deleted:
            self.logger.info(f"Deleted response {response_id} of store {store_id}")
        return deleted


class QuestionnaireRepository:
    """Read-only access to the legacy single-collection questionnaires."""

    collection = Collection.QUESTIONNAIRES.value

    def __init__(self, store):
        self.store = store

    def list_for_stores(self, store_ids):
        """Legacy documents whose storeId is one of ``store_ids``, newest first."""
        allowed = set(store_ids)
        documents = [d for d in self.store.list(self.collection) if d.get('storeId') in allowed]
        documents.sort(key=lambda d: str(d.get('submittedAt') or ''), reverse=True)
        return documents
