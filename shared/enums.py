import enum


class UserRole(str, enum.Enum):
    """User roles for access control.

    SUPER_ADMIN implicitly holds every permission; the other roles are gated
    by the per-feature permission set stored on the user.
    """
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    STAFF = "staff"


class QuestionType(str, enum.Enum):
    """Question field types used in question groups.

    Defines the type of answer expected for a question.
    """
    TEXT = "text"
    RATING = "rating"
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKLIST = "checklist"
    SLIDER = "slider"


class CompletionStatus(str, enum.Enum):
    """Completion state recorded on a submitted survey response."""
    COMPLETED = "completed"
    PARTIAL = "partial"


class Feature(str, enum.Enum):
    """Features gated by the per-user permission set.

    Used with shared.access.has_feature() instead of looking up permission
    sections by name.
    """
    SUBJECT = "subject"
    SURVEY_RESULTS = "survey.results"
    SURVEY_ANALYTICS = "survey.analytics"
    SURVEY_CHARTS = "survey.grafik"
    QUESTIONS_CREATE = "questions.create"
    QUESTIONS_GROUPS = "questions.groups"
    QUESTIONS_CATEGORIES = "questions.categories"
    QUESTIONS_COLLECTION = "questions.collection"


class Collection(str, enum.Enum):
    """Document store collection names.

    These names are the persisted wire contract; other tools read them.
    """
    USERS = "users"
    STORES = "stores"
    CATEGORIES = "categories"
    QUESTIONS = "questions"
    QUESTION_GROUPS = "questionGroups"
    QUESTIONNAIRES = "questionnaires"
    SESSIONS = "sessions"


def responses_collection(store_id):
    """Return the per-store response sub-collection path."""
    return f"{Collection.STORES.value}/{store_id}/responses"
