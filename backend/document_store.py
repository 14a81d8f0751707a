"""Document store client over the SQLAlchemy ``documents`` table.

Collections are addressed by path (``users``, ``stores/<id>/responses``...)
and documents are plain JSON objects. Every operation opens and closes its
own session, so a DocumentStore can be shared between threads.
"""
import logging
from contextlib import contextmanager
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from shared.enums import Collection
from shared.models import Document, now
from shared.utils import generate_id


class DocumentStoreError(Exception):
    """Raised when the underlying database operation fails."""

    def __init__(self, operation, collection):
        self.operation = operation
        self.collection = collection
        super().__init__(f"Failed to {operation} in '{collection}'")


def _path(collection):
    if isinstance(collection, Collection):
        return collection.value
    return str(collection)


def _to_dict(document):
    data = dict(document.data or {})
    data['id'] = document.doc_id
    return data


def _sort_value(value):
    # Missing values sort before present ones; values of one field share a type
    return (value is not None, value if value is not None else 0)


class DocumentStore:
    """Generic CRUD over named collections of JSON documents."""

    def __init__(self, session_factory):
        """Initialize the store with a SQLAlchemy session factory."""
        self.session_factory = session_factory
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def _session(self, operation, collection):
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error(f"Document store failed to {operation} in '{collection}': {e}", exc_info=True)
            raise DocumentStoreError(operation, collection) from e
        finally:
            session.close()

    def add(self, collection, data, doc_id=None):
        """Insert a new document and return its id."""
        path = _path(collection)
        doc_id = doc_id or generate_id()
        body = {k: v for k, v in data.items() if k != 'id'}
        with self._session('add document', path) as session:
            session.add(Document(collection=path, doc_id=doc_id, data=body))
        self.logger.debug(f"Added document {path}/{doc_id}")
        return doc_id

    def set(self, collection, doc_id, data):
        """Create or fully replace a document."""
        path = _path(collection)
        body = {k: v for k, v in data.items() if k != 'id'}
        with self._session('set document', path) as session:
            document = session.get(Document, (path, doc_id))
            if document is None:
                session.add(Document(collection=path, doc_id=doc_id, data=body))
            else:
                document.data = body
                document.updated_at = now()
        return doc_id

    def get(self, collection, doc_id):
        """Return a document as a dict including ``id``, or None."""
        path = _path(collection)
        if not doc_id:
            return None
        with self._session('get document', path) as session:
            document = session.get(Document, (path, doc_id))
            return _to_dict(document) if document is not None else None

    def list(self, collection, order_by=None, descending=False, limit=None, offset=0, where=None):
        """List documents of a collection.

        Args:
            collection: Collection path
            order_by: Document field to sort on (insertion order when None)
            descending: Reverse the sort order
            limit: Maximum number of documents to return
            offset: Number of documents to skip after sorting
            where: Dict of field -> value equality filters

        Returns:
            List of document dicts including ``id``
        """
        path = _path(collection)
        with self._session('list documents', path) as session:
            rows = (session.query(Document)
                    .filter(Document.collection == path)
                    .order_by(Document.created_at, Document.doc_id)
                    .all())
            documents = [_to_dict(row) for row in rows]

        if where:
            documents = [d for d in documents
                         if all(d.get(field) == value for field, value in where.items())]
        if order_by:
            documents.sort(key=lambda d: _sort_value(d.get(order_by)), reverse=descending)
        elif descending:
            documents.reverse()
        if offset:
            documents = documents[offset:]
        if limit is not None:
            documents = documents[:limit]
        return documents

    def find_by(self, collection, field, value):
        return self.list(collection, where={field: value})

    def count(self, collection, where=None):
        path = _path(collection)
        if where:
            return len(self.list(path, where=where))
        with self._session('count documents', path) as session:
            return session.query(Document).filter(Document.collection == path).count()

    def update(self, collection, doc_id, changes):
        """Shallow-merge ``changes`` into a document. Returns False if it does not exist."""
        path = _path(collection)
        body = {k: v for k, v in changes.items() if k != 'id'}
        with self._session('update document', path) as session:
            document = session.get(Document, (path, doc_id))
            if document is None:
                return False
            # Assign a new dict so the JSON column is flagged as modified
            document.data = {**(document.data or {}), **body}
            document.updated_at = now()
        self.logger.debug(f"Updated document {path}/{doc_id}: {sorted(body)}")
        return True

    def delete(self, collection, doc_id):
        """Delete a document. Returns False if it does not exist."""
        path = _path(collection)
        with self._session('delete document', path) as session:
            document = session.get(Document, (path, doc_id))
            if document is None:
                return False
            session.delete(document)
        self.logger.debug(f"Deleted document {path}/{doc_id}")
        return True


def get_document_store():
    """Return the document store of the current Flask app."""
    return current_app.extensions['document_store']
