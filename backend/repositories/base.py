"""Base repository mapping a document collection to a pydantic model."""
import logging
from pydantic import ValidationError as PydanticValidationError
from shared.models import now_iso
from shared.utils import index_by_id


class DocumentRepository:
    """CRUD over one collection, returning fresh model snapshots.

    Repositories hold no cache: every call reads the document store again,
    so callers re-read after writing.
    """

    collection = None
    model = None

    def __init__(self, store):
        """Initialize repository with a DocumentStore."""
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    def _parse(self, document):
        """Validate a stored document, or return None if it is malformed."""
        if document is None:
            return None
        try:
            return self.model.model_validate(document)
        except PydanticValidationError as e:
            self.logger.warning(f"Skipping malformed document {self.collection}/{document.get('id')}: {e}")
            return None

    def _parse_many(self, documents):
        parsed = (self._parse(document) for document in documents)
        return [item for item in parsed if item is not None]

    def _has_field(self, name):
        return name in self.model.model_fields

    def list(self, order_by=None, descending=False, where=None):
        return self._parse_many(self.store.list(self.collection, order_by=order_by,
                                                descending=descending, where=where))

    def get(self, doc_id):
        return self._parse(self.store.get(self.collection, doc_id))

    def index(self):
        """Return an id -> model lookup of the whole collection."""
        return index_by_id(self.list())

    def create(self, document):
        """Insert a document, stamping timestamps, and return the stored model."""
        document = dict(document)
        timestamp = now_iso()
        if self._has_field('created_at'):
            document.setdefault('createdAt', timestamp)
        if self._has_field('updated_at'):
            document.setdefault('updatedAt', timestamp)
        doc_id = self.store.add(self.collection, document)
        self.logger.info(f"Created {self.collection}/{doc_id}")
        return self.get(doc_id)

    def update(self, doc_id, changes):
        """Shallow-merge changes into a document and return the stored model, or None."""
        changes = dict(changes)
        if self._has_field('updated_at'):
            changes['updatedAt'] = now_iso()
        if not self.store.update(self.collection, doc_id, changes):
            return None
        self.logger.info(f"Updated {self.collection}/{doc_id}")
        return self.get(doc_id)

    def delete(self, doc_id):
        deleted = self.store.delete(self.collection, doc_id)
        if deleted:
            self.logger.info(f"Deleted {self.collection}/{doc_id}")
        return deleted
