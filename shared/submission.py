"""Survey submission assembly and response reconstruction.

``assemble_response`` turns the resolved walk and the answers collected by the
survey form into a SurveyResponse carrying its own order snapshot.
``reconstruct_response`` is the read path that lays a stored response out in
sections again.
"""
import logging
import math
from shared.enums import QuestionType, CompletionStatus
from shared.models import now_iso
from shared.schemas import SurveyResponse
from shared.validation import Validator, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_NAME = 'Umum'
DEFAULT_CUSTOMER_NAME = 'Unknown'

NUMERIC_TYPES = (QuestionType.RATING.value, QuestionType.SLIDER.value)


class MandatoryAnswersMissing(ValidationError):
    """Raised when mandatory questions are unanswered.

    ``missing`` lists ``(group_name, [question_text, ...])`` pairs in walk
    order so the form can point the customer at each section.
    """

    def __init__(self, missing):
        self.missing = missing
        parts = [f"{group_name}: {', '.join(texts)}" for group_name, texts in missing]
        super().__init__("Please answer all mandatory questions. " + '; '.join(parts))

    def to_dict(self):
        return [{'groupName': group_name, 'questions': texts} for group_name, texts in self.missing]


def is_answered(value):
    """Numbers (including 0) count as answered; blank strings and empty lists do not."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def find_missing_mandatory(walk, answers):
    """Return ``(group_name, [question_text])`` for groups with unanswered mandatory questions.

    Only mandatory ids that resolve to a question in the walk are enforced.
    """
    missing = []
    for resolved in walk:
        mandatory = set(resolved.group.mandatory_question_ids or [])
        texts = [question.text for question in resolved.questions
                 if question.id in mandatory and not is_answered(answers.get(question.id))]
        if texts:
            missing.append((resolved.group.name, texts))
    return missing


def _coerce_number(question, value):
    if isinstance(value, bool):
        raise ValidationError(f"Answer to '{question.text}' must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(f"Answer to '{question.text}' must be a number")
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"Answer to '{question.text}' must be a number")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return value


def validate_answer(question, value):
    """Validate an answered value against its question and return it normalized."""
    if question.type in NUMERIC_TYPES:
        return _coerce_number(question, value)

    if question.type == QuestionType.CHECKLIST.value:
        selections = [value] if isinstance(value, str) else value
        if not isinstance(selections, (list, tuple)) or not all(isinstance(s, str) for s in selections):
            raise ValidationError(f"Answer to '{question.text}' must be a list of options")
        selections = list(dict.fromkeys(selections))
        unknown = [s for s in selections if s not in question.option_list]
        if unknown:
            raise ValidationError(f"Unknown option for '{question.text}': {', '.join(unknown)}")
        limits = question.checklist_limits
        if limits is not None:
            if limits.min_selections is not None and len(selections) < limits.min_selections:
                raise ValidationError(f"Select at least {limits.min_selections} options for '{question.text}'")
            if limits.max_selections is not None and len(selections) > limits.max_selections:
                raise ValidationError(f"Select at most {limits.max_selections} options for '{question.text}'")
        return selections

    if question.type == QuestionType.TEXT.value and isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError(f"Answer to '{question.text}' must be text")
    if question.type == QuestionType.MULTIPLE_CHOICE.value:
        return Validator.validate_choice(value, question.text, question.option_list)
    return value.strip()


def assemble_response(store, walk, answers, customer_name, customer_phone=None,
                      categories_by_id=None, submitted_at=None):
    """Validate a submission and build the response document.

    Raises ValidationError (or MandatoryAnswersMissing) before anything is
    built. Only answered questions of the walk are stored.
    """
    customer_name = Validator.validate_required(customer_name, 'Customer name').strip()
    customer_phone = Validator.validate_phone(customer_phone)
    categories_by_id = categories_by_id or {}
    answers = answers or {}

    missing = find_missing_mandatory(walk, answers)
    if missing:
        raise MandatoryAnswersMissing(missing)

    entries = {}
    total = 0
    answered = 0
    for section_order, resolved in enumerate(walk):
        group = resolved.group
        for question in resolved.questions:
            total += 1
            value = answers.get(question.id)
            if not is_answered(value):
                continue
            answered += 1
            category = categories_by_id.get(question.category_id)
            entries[question.id] = {
                'questionId': question.id,
                'questionText': question.text,
                'questionType': question.type,
                'answer': validate_answer(question, value),
                'sectionName': group.name,
                'categoryName': category.name if category else DEFAULT_CATEGORY_NAME,
                'sectionOrder': section_order,
                'questionOrder': group.question_ids.index(question.id),
                'groupId': group.id,
            }

    completion_rate = round(answered / total * 100, 2) if total else 0
    return SurveyResponse.model_validate({
        'storeId': store.id,
        'storeName': store.name,
        'customerInfo': {'name': customer_name, 'phone': customer_phone},
        'answers': entries,
        'questionGroupNames': [resolved.group.name for resolved in walk],
        'questionGroupsOrder': [
            {
                'groupId': resolved.group.id,
                'groupName': resolved.group.name,
                'order': index,
                'questionIds': list(resolved.group.question_ids),
            }
            for index, resolved in enumerate(walk)
        ],
        'submittedAt': submitted_at or now_iso(),
        'completionStatus': (CompletionStatus.COMPLETED if answered == total
                             else CompletionStatus.PARTIAL).value,
        'metadata': {
            'totalQuestions': total,
            'answeredQuestions': answered,
            'completionRate': completion_rate,
        },
    })


def _answer_view(question_id, entry):
    return {
        'questionId': question_id,
        'questionText': entry.question_text,
        'questionType': entry.question_type,
        'answer': entry.answer,
        'categoryName': entry.category_name or DEFAULT_CATEGORY_NAME,
    }


def _sections_from_snapshot(response):
    sections = []
    for group in sorted(response.question_groups_order, key=lambda g: g.order):
        answers = [_answer_view(qid, response.answers[qid])
                   for qid in group.question_ids if qid in response.answers]
        if answers:
            sections.append({'sectionName': group.group_name, 'answers': answers})
    return sections


def _sections_from_entries(response):
    # Legacy documents: group by the section name stored on each answer
    grouped = {}
    for question_id, entry in response.answers.items():
        name = entry.section_name or DEFAULT_CATEGORY_NAME
        grouped.setdefault(name, []).append((question_id, entry))

    sections = []
    for name, items in grouped.items():
        items.sort(key=lambda item: item[1].question_order or 0)
        section_order = min(entry.section_order or 0 for _, entry in items)
        sections.append((section_order, name, [_answer_view(qid, entry) for qid, entry in items]))
    sections.sort(key=lambda s: s[0])
    return [{'sectionName': name, 'answers': answers} for _, name, answers in sections]


def reconstruct_response(response):
    """Lay a stored response out as ordered sections for display.

    The order snapshot is authoritative whenever the document carries one;
    otherwise answers are grouped by their own section name and sorted by
    their stored order fields.
    """
    if response.question_groups_order is not None:
        ordered = sorted(response.question_groups_order, key=lambda g: g.order)
        group_names = [group.group_name for group in ordered]
        sections = _sections_from_snapshot(response)
    else:
        logger.debug(f"Response {response.id} has no order snapshot, using answer order fields")
        sections = _sections_from_entries(response)
        group_names = list(response.question_group_names) or [s['sectionName'] for s in sections]

    return {
        'id': response.id,
        'storeId': response.store_id,
        'storeName': response.store_name,
        'customerName': response.customer_info.name or DEFAULT_CUSTOMER_NAME,
        'customerPhone': response.customer_info.phone,
        'submittedAt': response.submitted_at,
        'questionGroupNames': group_names,
        'sections': sections,
        'completionStatus': response.completion_status,
    }
