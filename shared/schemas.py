"""Pydantic schemas for validation and serialization.

Persisted documents use camelCase field names; the models expose snake_case
attributes and accept either spelling on input.
"""
import logging
from typing import Optional, List, Dict, Any, Union, Literal, Annotated
from pydantic import (
    BaseModel, Field, ConfigDict, AliasChoices, TypeAdapter, field_validator, model_validator,
    ValidationError as PydanticValidationError,
)
from pydantic.alias_generators import to_camel
from shared.enums import UserRole, QuestionType, CompletionStatus
from shared.validation import Validator, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = '#3B82F6'

# Choice-based questions carry options; other types never do
OPTION_QUESTION_TYPES = (QuestionType.MULTIPLE_CHOICE.value, QuestionType.CHECKLIST.value)


class DocumentModel(BaseModel):
    """Base model for everything stored in the document store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra='ignore',
    )

    def to_document(self, exclude=None) -> Dict[str, Any]:
        """Dump to the persisted camelCase shape, without the document id."""
        excluded = {'id'} | set(exclude or ())
        return self.model_dump(mode='json', by_alias=True, exclude=excluded)

    def to_api(self) -> Dict[str, Any]:
        """Dump to the camelCase shape returned by the API."""
        return self.model_dump(mode='json', by_alias=True)


def _sanitize(v):
    if v:
        return Validator.sanitize_html(v)
    return v or ""


# Users

class SurveyPermissions(DocumentModel):
    results: bool = False
    analytics: bool = False
    grafik: bool = False


class QuestionPermissions(DocumentModel):
    create: bool = False
    groups: bool = False
    categories: bool = False
    collection: bool = False


class Permissions(DocumentModel):
    """Per-feature permission set. Read through shared.access.has_feature()."""
    subject: bool = False
    survey: SurveyPermissions = Field(default_factory=SurveyPermissions)
    questions: QuestionPermissions = Field(default_factory=QuestionPermissions)


class User(DocumentModel):
    id: str = ''
    username: str
    display_name: str = Field(
        default='',
        validation_alias=AliasChoices('displayName', 'display_name', 'name'),
        serialization_alias='displayName',
    )
    role: UserRole = UserRole.STAFF
    permissions: Permissions = Field(default_factory=Permissions)
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value


class UserCreate(DocumentModel):
    username: str = Field(..., min_length=1, max_length=80)
    display_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        validation_alias=AliasChoices('displayName', 'display_name', 'name'),
        serialization_alias='displayName',
    )
    role: Literal['admin', 'staff'] = 'staff'
    password: str
    permissions: Permissions = Field(default_factory=Permissions)

    @field_validator('username', 'display_name')
    @classmethod
    def strip_text(cls, v):
        return v.strip()


class UserUpdate(DocumentModel):
    username: Optional[str] = Field(None, min_length=1, max_length=80)
    display_name: Optional[str] = Field(
        None,
        max_length=200,
        validation_alias=AliasChoices('displayName', 'display_name', 'name'),
        serialization_alias='displayName',
    )
    role: Optional[Literal['admin', 'staff']] = None
    password: Optional[str] = None
    permissions: Optional[Permissions] = None
    is_active: Optional[bool] = None


# Categories

class Category(DocumentModel):
    id: str = ''
    name: str
    description: str = ''
    color: str = DEFAULT_CATEGORY_COLOR
    is_active: bool = True
    created_at: Optional[str] = None


class CategoryCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default="", max_length=500)
    color: str = DEFAULT_CATEGORY_COLOR
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return Validator.validate_string_length(v, 'name', 1, 100)

    @field_validator('description')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        return Validator.validate_color(v)


class CategoryUpdate(DocumentModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return Validator.validate_string_length(v, 'name', 1, 100)
        return v

    @field_validator('description')
    @classmethod
    def sanitize_text_fields(cls, v):
        if v is not None:
            return _sanitize(v)
        return v

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        if v is not None:
            return Validator.validate_color(v)
        return v


# Questions

class ChecklistLimits(DocumentModel):
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None


class Question(DocumentModel):
    id: str = ''
    text: str
    type: QuestionType
    options: Optional[List[str]] = None
    checklist_limits: Optional[ChecklistLimits] = None
    category_id: str = ''
    is_active: bool = True
    created_at: Optional[str] = None

    @property
    def option_list(self) -> List[str]:
        return list(self.options or [])


class QuestionCreate(DocumentModel):
    """Question input.

    A question belongs to a single category. ``categoryIds`` is accepted for
    multi-select forms; only its first entry is kept.
    """
    text: str = Field(..., min_length=1, max_length=500)
    type: QuestionType = QuestionType.TEXT
    options: Optional[List[str]] = None
    checklist_limits: Optional[ChecklistLimits] = None
    category_id: Optional[str] = None
    category_ids: Optional[List[str]] = None
    is_active: bool = True

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        return _sanitize(Validator.validate_string_length(v, 'text', 1, 500))

    @model_validator(mode='after')
    def validate_question_shape(self):
        if not self.category_id and self.category_ids:
            self.category_id = self.category_ids[0]
        self.category_ids = None
        if not self.category_id:
            raise ValueError('categoryId is required')

        if self.type in OPTION_QUESTION_TYPES:
            try:
                self.options = Validator.validate_options(self.options)
            except ValidationError as e:
                raise ValueError(str(e))
        else:
            self.options = None

        if self.type == QuestionType.CHECKLIST.value and self.checklist_limits is not None:
            try:
                Validator.validate_checklist_limits(
                    self.checklist_limits.min_selections,
                    self.checklist_limits.max_selections,
                    len(self.options),
                )
            except ValidationError as e:
                raise ValueError(str(e))
        elif self.type != QuestionType.CHECKLIST.value:
            self.checklist_limits = None
        return self

    def to_document(self, exclude=None) -> Dict[str, Any]:
        return super().to_document(exclude={'category_ids'} | set(exclude or ()))


class QuestionUpdate(DocumentModel):
    """Partial question update; merged onto the stored question and revalidated."""
    text: Optional[str] = Field(None, min_length=1, max_length=500)
    type: Optional[QuestionType] = None
    options: Optional[List[str]] = None
    checklist_limits: Optional[ChecklistLimits] = None
    category_id: Optional[str] = None
    category_ids: Optional[List[str]] = None
    is_active: Optional[bool] = None


# Question groups

def _dedupe(ids):
    seen = set()
    ordered = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


class QuestionGroup(DocumentModel):
    id: str = ''
    name: str
    description: str = ''
    question_ids: List[str] = Field(default_factory=list)
    mandatory_question_ids: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('question_ids', 'mandatory_question_ids', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []


class QuestionGroupCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default="", max_length=1000)
    question_ids: List[str] = Field(default_factory=list)
    mandatory_question_ids: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return Validator.validate_string_length(v, 'name', 1, 200)

    @field_validator('description')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)

    @field_validator('question_ids', 'mandatory_question_ids')
    @classmethod
    def unique_ids(cls, v):
        return _dedupe(v)

    @model_validator(mode='after')
    def validate_mandatory(self):
        try:
            Validator.validate_mandatory_subset(self.question_ids, self.mandatory_question_ids)
        except ValidationError as e:
            raise ValueError(str(e))
        return self


class QuestionGroupUpdate(DocumentModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    question_ids: Optional[List[str]] = None
    mandatory_question_ids: Optional[List[str]] = None
    is_active: Optional[bool] = None


# Stores

class Store(DocumentModel):
    id: str = ''
    name: str
    address: str = ''
    city: str = ''
    region: str = ''
    area: str = ''
    phone: str = ''
    email: str = ''
    manager: str = ''
    logo_url: Optional[str] = None
    created_by: str = ''
    managers: List[str] = Field(default_factory=list)
    question_group_ids: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('managers', 'question_group_ids', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator('created_at', 'updated_at', mode='before')
    @classmethod
    def stringify_timestamp(cls, v):
        if v is not None and not isinstance(v, str):
            return str(v)
        return v

    def effective_managers(self) -> List[str]:
        """Manager ids including the creator, who can never be removed."""
        managers = list(self.managers)
        if self.created_by and self.created_by not in managers:
            managers.append(self.created_by)
        return managers


class StoreCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(default="", max_length=500)
    city: str = Field(default="", max_length=100)
    region: str = Field(default="", max_length=100)
    area: str = Field(default="", max_length=100)
    phone: str = Field(default="", max_length=30)
    email: str = Field(default="", max_length=120)
    manager: str = Field(default="", max_length=200)
    logo_url: Optional[str] = Field(None, max_length=1000)
    managers: List[str] = Field(default_factory=list)
    question_group_ids: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return Validator.validate_string_length(v, 'name', 1, 200)

    @field_validator('address', 'city', 'region', 'area', 'manager')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v.strip() if v else v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        try:
            return Validator.validate_phone(v)
        except ValidationError as e:
            raise ValueError(str(e))

    @field_validator('managers', 'question_group_ids')
    @classmethod
    def unique_ids(cls, v):
        return _dedupe(v)


class StoreUpdate(DocumentModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    area: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=120)
    manager: Optional[str] = Field(None, max_length=200)
    logo_url: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return Validator.validate_string_length(v, 'name', 1, 200)
        return v

    @field_validator('address', 'city', 'region', 'area', 'manager')
    @classmethod
    def sanitize_text_fields(cls, v):
        if v is not None:
            return _sanitize(v.strip())
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        if v is None:
            return v
        try:
            return Validator.validate_phone(v)
        except ValidationError as e:
            raise ValueError(str(e))


# Survey responses

class CustomerInfo(DocumentModel):
    name: str = ''
    phone: str = ''

    @field_validator('name', 'phone', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return v or ''


class _AnswerBase(DocumentModel):
    question_id: Optional[str] = None
    question_text: str = ''
    section_name: Optional[str] = None
    category_name: Optional[str] = None
    section_order: Optional[int] = None
    question_order: Optional[int] = None
    group_id: Optional[str] = None


class TextAnswer(_AnswerBase):
    question_type: Literal['text']
    answer: str


class RatingAnswer(_AnswerBase):
    question_type: Literal['rating']
    answer: Union[int, float]


class SliderAnswer(_AnswerBase):
    question_type: Literal['slider']
    answer: Union[int, float]


class MultipleChoiceAnswer(_AnswerBase):
    question_type: Literal['multiple_choice']
    answer: str


class ChecklistAnswer(_AnswerBase):
    question_type: Literal['checklist']
    answer: List[str]

    @field_validator('answer', mode='before')
    @classmethod
    def coerce_scalar(cls, v):
        # Legacy documents stored a single selection as a plain string
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


AnswerEntry = Annotated[
    Union[TextAnswer, RatingAnswer, SliderAnswer, MultipleChoiceAnswer, ChecklistAnswer],
    Field(discriminator='question_type'),
]

_answer_entry = TypeAdapter(AnswerEntry)


class GroupOrder(DocumentModel):
    group_id: str = ''
    group_name: str = ''
    order: int = 0
    question_ids: List[str] = Field(default_factory=list)

    @field_validator('question_ids', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []


class ResponseMetadata(DocumentModel):
    total_questions: int = 0
    answered_questions: int = 0
    completion_rate: float = 0.0


class SurveyResponse(DocumentModel):
    """One customer submission, stored under stores/{storeId}/responses."""
    id: str = ''
    store_id: str = ''
    store_name: str = ''
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    answers: Dict[str, AnswerEntry] = Field(default_factory=dict)
    question_group_names: List[str] = Field(default_factory=list)
    question_groups_order: Optional[List[GroupOrder]] = None
    submitted_at: str = ''
    completion_status: CompletionStatus = CompletionStatus.COMPLETED
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    @field_validator('answers', mode='before')
    @classmethod
    def drop_malformed_answers(cls, v):
        # Drop unreadable entries one by one and keep the rest
        if not v:
            return {}
        if not isinstance(v, dict):
            return v
        kept = {}
        for question_id, entry in v.items():
            try:
                _answer_entry.validate_python(entry)
            except PydanticValidationError as e:
                logger.warning(f"Dropping malformed answer {question_id}: {e.error_count()} error(s)")
                continue
            kept[question_id] = entry
        return kept

    @field_validator('question_group_names', mode='before')
    @classmethod
    def none_to_list(cls, v):
        return v or []


class SurveySubmission(BaseModel):
    """Public submission payload collected by the multi-section survey form."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    customer_name: str = ''
    customer_phone: Optional[str] = ''
    answers: Dict[str, Any] = Field(default_factory=dict)


class ReorderRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    from_index: int
    to_index: int
