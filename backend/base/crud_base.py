"""Base CRUD class for Flask blueprints."""
from flask import jsonify
from typing import Optional, Dict, Any, Callable
from pydantic import ValidationError as PydanticValidationError
from shared.validation import ValidationError, format_pydantic_errors
from ..document_store import get_document_store, DocumentStoreError
from ..utils import get_json_data, not_found
import logging


class CRUDBase:
    """Common CRUD endpoints over a document repository.

    Creation validates the request with ``create_schema``. Updates validate
    the partial body with ``update_schema``, merge it onto the stored
    document and validate the merged result with ``create_schema`` again, so
    cross-field rules hold after every update.

    Subclasses may override:
    - serialize() - to customize serialization
    - pre_create() - to check references before a create
    - pre_update() - to adjust the merged document before revalidation
    """

    def __init__(self, repository_class, create_schema, update_schema,
                 singular_name: str, plural_name: str, logger_name: Optional[str] = None):
        """Initialize CRUD base class.

        Args:
            repository_class: DocumentRepository subclass for the collection
            create_schema: Pydantic schema for creation
            update_schema: Pydantic schema for partial updates
            singular_name: Resource name for messages (e.g. 'category')
            plural_name: Key of the list response (e.g. 'categories')
            logger_name: Optional logger name (defaults to class name)
        """
        self.repository_class = repository_class
        self.create_schema = create_schema
        self.update_schema = update_schema
        self.singular_name = singular_name
        self.plural_name = plural_name
        self.logger = logging.getLogger(logger_name or self.__class__.__name__)

    @property
    def repository(self):
        # Bound per request to the current app's document store
        return self.repository_class(get_document_store())

    def get_list(self, filter_func: Optional[Callable] = None):
        """List every resource, optionally filtered by ``filter_func(items)``."""
        items = self.repository.list(order_by='createdAt')
        if filter_func:
            items = filter_func(items)
        return jsonify({self.plural_name: [self.serialize(item) for item in items]})

    def get_detail(self, resource_id: str):
        resource = self.repository.get(resource_id)
        if resource is None:
            return not_found(self.singular_name.title())
        return jsonify(self.serialize(resource))

    def create(self):
        """Create a new resource from the request body."""
        try:
            data = get_json_data()
            validated = self._validate(self.create_schema, data)
            self.pre_create(validated)
            resource = self.repository.create(validated.to_document())

            self.logger.info(f"Created {self.singular_name}: {resource.id} - {getattr(resource, 'name', getattr(resource, 'text', 'N/A'))}")
            return jsonify({
                'id': resource.id,
                self.singular_name: self.serialize(resource),
                'message': f'{self.singular_name.title()} created successfully'
            }), 201

        except ValidationError as e:
            self.logger.warning(f"Validation error in {self.singular_name} creation: {e}")
            return jsonify({'error': str(e)}), 400
        except DocumentStoreError as e:
            self.logger.error(f"Failed to create {self.singular_name}: {e}", exc_info=True)
            return jsonify({'error': f'Failed to create {self.singular_name}'}), 500

    def update(self, resource_id: str):
        """Apply a partial update and revalidate the whole resource."""
        try:
            data = get_json_data()
            repository = self.repository
            existing = repository.get(resource_id)
            if existing is None:
                return not_found(self.singular_name.title())

            changes = self._validate(self.update_schema, data).model_dump(
                mode='json', by_alias=True, exclude_unset=True)
            merged = {**existing.to_document(), **changes}
            merged = self.pre_update(merged, changes)
            validated = self._validate(self.create_schema, merged)
            self.pre_create(validated)

            resource = repository.update(resource_id, validated.to_document())
            self.logger.info(f"Updated {self.singular_name}: {resource_id}")
            return jsonify({
                self.singular_name: self.serialize(resource),
                'message': f'{self.singular_name.title()} updated successfully'
            })

        except ValidationError as e:
            self.logger.warning(f"Validation error in {self.singular_name} update: {e}")
            return jsonify({'error': str(e)}), 400
        except DocumentStoreError as e:
            self.logger.error(f"Failed to update {self.singular_name}: {e}", exc_info=True)
            return jsonify({'error': f'Failed to update {self.singular_name}'}), 500

    def delete(self, resource_id: str):
        try:
            if not self.repository.delete(resource_id):
                return not_found(self.singular_name.title())
            self.logger.info(f"Deleted {self.singular_name}: {resource_id}")
            return jsonify({'message': f'{self.singular_name.title()} deleted successfully'})
        except DocumentStoreError as e:
            self.logger.error(f"Failed to delete {self.singular_name}: {e}", exc_info=True)
            return jsonify({'error': f'Failed to delete {self.singular_name}'}), 500

    def serialize(self, resource) -> Dict[str, Any]:
        return resource.to_api()

    def pre_create(self, validated):
        """Hook for reference checks on a validated payload. Raise ValidationError to reject."""

    def pre_update(self, merged: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        return merged

    @staticmethod
    def _validate(schema, data):
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))
