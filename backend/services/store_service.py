"""Store (survey subject) management."""
import logging
from pydantic import ValidationError as PydanticValidationError
from shared.access import filter_accessible_stores, can_access_store
from shared.ordering import move_item
from shared.schemas import StoreCreate, StoreUpdate
from shared.validation import ValidationError, format_pydantic_errors
from ..repositories.catalog import StoreRepository, QuestionGroupRepository
from ..repositories.users import UserRepository

logger = logging.getLogger(__name__)


def _unique(ids):
    return list(dict.fromkeys(ids))


class StoreService:
    """Store CRUD plus manager and question group assignment.

    Access checks are left to the caller; methods taking a ``store`` expect
    one the caller has already been allowed to see.
    """

    def __init__(self, store, settings):
        self.stores = StoreRepository(store)
        self.groups = QuestionGroupRepository(store)
        self.users = UserRepository(store)
        self.settings = settings

    def list_accessible(self, user):
        return filter_accessible_stores(user, self.stores.list(order_by='createdAt'))

    def get_accessible(self, user, store_id):
        """Return the store if it exists and the user may access it, else None."""
        store = self.stores.get(store_id)
        if store is None or not can_access_store(user, store):
            return None
        return store

    def create_store(self, creator, data):
        """Create a store owned by ``creator``, who also becomes its first manager."""
        try:
            payload = StoreCreate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))

        document = payload.to_document()
        document['createdBy'] = creator.id
        document['managers'] = _unique([creator.id] + payload.managers)
        store = self.stores.create(document)
        logger.info(f"User {creator.id} created store {store.id} ({store.name})")
        return store

    def update_store(self, store, data):
        try:
            payload = StoreUpdate.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))
        changes = payload.model_dump(mode='json', by_alias=True, exclude_unset=True)
        if changes.get('name') is None:
            changes.pop('name', None)
        return self.stores.update(store.id, changes)

    def delete_store(self, store):
        deleted = self.stores.delete(store.id)
        if deleted:
            logger.info(f"Deleted store {store.id} ({store.name})")
        return deleted

    def set_managers(self, store, manager_ids):
        """Replace the manager list. The creator is always kept."""
        if not isinstance(manager_ids, list) or not all(isinstance(m, str) for m in manager_ids):
            raise ValidationError("managers must be a list of user ids")
        known = self.users.index()
        unknown = [m for m in manager_ids if m not in known]
        if unknown:
            raise ValidationError(f"Unknown users: {', '.join(unknown)}")
        managers = _unique(manager_ids)
        if store.created_by and store.created_by not in managers:
            managers.insert(0, store.created_by)
        return self.stores.update(store.id, {'managers': managers})

    def assign_groups(self, store, group_ids):
        """Replace the store's ordered question group ids."""
        if not isinstance(group_ids, list) or not all(isinstance(g, str) for g in group_ids):
            raise ValidationError("questionGroupIds must be a list of group ids")
        known = self.groups.index()
        unknown = [g for g in group_ids if g not in known]
        if unknown:
            raise ValidationError(f"Unknown question groups: {', '.join(unknown)}")
        updated = self.stores.update(store.id, {'questionGroupIds': _unique(group_ids)})
        logger.info(f"Assigned {len(updated.question_group_ids)} question groups to store {store.id}")
        return updated

    def reorder_groups(self, store, from_index, to_index):
        try:
            group_ids = move_item(store.question_group_ids, from_index, to_index)
        except IndexError as e:
            raise ValidationError(str(e))
        return self.stores.update(store.id, {'questionGroupIds': group_ids})

    def survey_link(self, store):
        """Public URL of the store's survey (the QR code payload)."""
        return f"{self.settings.public_base_url.rstrip('/')}/survey/{store.id}"
