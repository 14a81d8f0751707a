"""Question group membership, mandatory subset and ordering."""
import logging
from shared.ordering import add_unique, remove_id, move_item
from shared.validation import Validator, ValidationError
from ..repositories.catalog import QuestionGroupRepository, QuestionRepository

logger = logging.getLogger(__name__)


class GroupService:
    """Edits a group's ordered question ids while keeping mandatory ids a subset."""

    def __init__(self, store):
        self.groups = QuestionGroupRepository(store)
        self.questions = QuestionRepository(store)

    def add_question(self, group, question_id, mandatory=False):
        if self.questions.get(question_id) is None:
            raise ValidationError(f"Question {question_id} does not exist")
        changes = {'questionIds': add_unique(group.question_ids, question_id)}
        if mandatory:
            changes['mandatoryQuestionIds'] = add_unique(group.mandatory_question_ids, question_id)
        logger.info(f"Adding question {question_id} to group {group.id}")
        return self.groups.update(group.id, changes)

    def remove_question(self, group, question_id):
        """Remove a question from the group and from its mandatory ids."""
        return self.groups.update(group.id, {
            'questionIds': remove_id(group.question_ids, question_id),
            'mandatoryQuestionIds': remove_id(group.mandatory_question_ids, question_id),
        })

    def set_mandatory(self, group, mandatory_ids):
        if not isinstance(mandatory_ids, list) or not all(isinstance(m, str) for m in mandatory_ids):
            raise ValidationError("mandatoryQuestionIds must be a list of question ids")
        mandatory_ids = list(dict.fromkeys(mandatory_ids))
        Validator.validate_mandatory_subset(group.question_ids, mandatory_ids)
        return self.groups.update(group.id, {'mandatoryQuestionIds': mandatory_ids})

    def reorder_questions(self, group, from_index, to_index):
        try:
            question_ids = move_item(group.question_ids, from_index, to_index)
        except IndexError as e:
            raise ValidationError(str(e))
        return self.groups.update(group.id, {'questionIds': question_ids})
