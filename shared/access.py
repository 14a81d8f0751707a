"""Access control predicates over users and stores.

Every predicate is a pure function of its arguments. A missing user is
denied everything; none of these functions raise.
"""
from shared.enums import UserRole, Feature


def _is_super_admin(user):
    return user is not None and user.role == UserRole.SUPER_ADMIN.value


def can_access_store(user, store):
    """True for super admins, the store's creator, and its listed managers."""
    if user is None or store is None:
        return False
    if _is_super_admin(user):
        return True
    if store.created_by and store.created_by == user.id:
        return True
    return user.id in (store.managers or [])


def filter_accessible_stores(user, stores):
    """Return the stores the user may see, keeping the input order."""
    if user is None:
        return []
    if _is_super_admin(user):
        return list(stores)
    return [store for store in stores if can_access_store(user, store)]


def accessible_store_ids(user, stores):
    return [store.id for store in filter_accessible_stores(user, stores)]


def can_manage_managers(user, store):
    """Only the creator or a super admin may change the manager list."""
    if user is None or store is None:
        return False
    if _is_super_admin(user):
        return True
    return bool(store.created_by) and store.created_by == user.id


def can_delete_survey_response(user, store):
    if user is None or not user.is_active:
        return False
    return _is_super_admin(user) or can_access_store(user, store)


def can_create_store(user):
    if user is None:
        return False
    return _is_super_admin(user) or bool(user.permissions.subject)


def can_manage_users(user):
    return _is_super_admin(user) and user.is_active


def can_delete_user(user, target):
    """Super admins may delete users, but never another super admin."""
    if not can_manage_users(user) or target is None:
        return False
    return target.role != UserRole.SUPER_ADMIN.value


# Feature -> (permission section, flag); None section means top-level flag
_FEATURE_FLAGS = {
    Feature.SUBJECT: (None, 'subject'),
    Feature.SURVEY_RESULTS: ('survey', 'results'),
    Feature.SURVEY_ANALYTICS: ('survey', 'analytics'),
    Feature.SURVEY_CHARTS: ('survey', 'grafik'),
    Feature.QUESTIONS_CREATE: ('questions', 'create'),
    Feature.QUESTIONS_GROUPS: ('questions', 'groups'),
    Feature.QUESTIONS_CATEGORIES: ('questions', 'categories'),
    Feature.QUESTIONS_COLLECTION: ('questions', 'collection'),
}


def has_feature(user, feature):
    """Check a per-feature permission. Super admins hold every feature."""
    if user is None or not user.is_active:
        return False
    if _is_super_admin(user):
        return True
    section, flag = _FEATURE_FLAGS[Feature(feature)]
    holder = user.permissions if section is None else getattr(user.permissions, section)
    return bool(getattr(holder, flag))
