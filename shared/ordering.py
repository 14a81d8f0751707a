"""Resolution of ordered id references and list reordering."""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List


@dataclass
class ResolvedGroup:
    """A question group paired with its resolved, ordered questions."""
    group: Any
    questions: List[Any] = field(default_factory=list)

    @property
    def question_ids(self):
        return [question.id for question in self.questions]


def resolve_ordered(ids: Iterable[str], entities_by_id: Dict[str, Any]) -> List[Any]:
    """Map ids to entities in order, dropping ids with no matching entity."""
    return [entities_by_id[entity_id] for entity_id in (ids or []) if entity_id in entities_by_id]


def resolve_survey_walk(store, groups_by_id, questions_by_id) -> List[ResolvedGroup]:
    """Expand a store's group ids into the canonical group/question walk.

    Stale group or question ids are skipped. Groups without any resolvable
    questions are kept with an empty question list.
    """
    walk = []
    for group in resolve_ordered(store.question_group_ids, groups_by_id):
        walk.append(ResolvedGroup(group, resolve_ordered(group.question_ids, questions_by_id)))
    return walk


def move_item(items, old_index, new_index):
    """Return a new list with the item at old_index moved to new_index.

    Elements are the same objects as in the input; only positions change.
    Negative or out-of-range indices raise IndexError.
    """
    length = len(items)
    if not 0 <= old_index < length or not 0 <= new_index < length:
        raise IndexError(f"Cannot move item {old_index} -> {new_index} in list of {length}")
    moved = list(items)
    item = moved.pop(old_index)
    moved.insert(new_index, item)
    return moved


def add_unique(ids, item_id):
    """Append item_id unless it is already present."""
    if item_id in ids:
        return list(ids)
    return list(ids) + [item_id]


def remove_id(ids, item_id):
    return [existing for existing in ids if existing != item_id]
