"""Tabular export of survey answers.

Responses are flattened into ``AnswerRow`` records (one per answered
question), which can then be rendered in the long shape (one row per answer)
or the wide shape (one row per response, one column per question text) and
written as CSV or XLSX.
"""
import csv
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from openpyxl import Workbook
from shared.utils import format_local_date, index_by_id, parse_timestamp

logger = logging.getLogger(__name__)

LONG_COLUMNS = ['Toko', 'Grup', 'Pertanyaan', 'Jenis', 'Pelanggan', 'Telepon', 'Jawaban', 'Tanggal']
WIDE_BASE_COLUMNS = ['Nama', 'Whatsapp', 'Toko', 'Tanggal Submit']
DEFAULT_SHEET_NAME = 'Analytics Data'


@dataclass
class AnswerRow:
    """One answered question of one response."""
    response_id: str
    store_id: str
    store_name: str
    group_id: str
    group_name: str
    question_id: str
    question_text: str
    question_type: str
    customer_name: str
    customer_phone: str
    answer: Any
    submitted_at: str

    def to_api(self) -> Dict[str, Any]:
        return {
            'responseId': self.response_id,
            'storeId': self.store_id,
            'storeName': self.store_name,
            'groupId': self.group_id,
            'groupName': self.group_name,
            'questionId': self.question_id,
            'questionText': self.question_text,
            'questionType': self.question_type,
            'customerName': self.customer_name,
            'customerPhone': self.customer_phone,
            'answer': self.answer,
            'submittedAt': self.submitted_at,
        }


def render_answer(answer):
    """Render an answer value for a spreadsheet cell."""
    if answer is None:
        return ''
    if isinstance(answer, (list, tuple)):
        return ', '.join(str(item) for item in answer)
    return answer


def _position(items, item):
    # Unselected items sort after every selected one
    try:
        return items.index(item)
    except ValueError:
        return len(items)


def build_answer_rows(responses, questions_by_id, groups, store_order,
                      group_ids=None, question_ids=None) -> List[AnswerRow]:
    """Flatten responses into answer rows, filtered and sorted for display.

    Only answers to questions that still exist are kept. A question's group
    is the first group (in ``groups`` order) that lists it. Rows are ordered
    by store position in ``store_order``, then by group (selected group order
    when ``group_ids`` is given, otherwise ``groups`` order), then by question
    (selected question order, otherwise position in the group), then newest
    submission first.
    """
    group_ids = list(group_ids or [])
    question_ids = list(question_ids or [])
    groups_by_id = index_by_id(groups)
    selected_groups = [groups_by_id[gid] for gid in group_ids if gid in groups_by_id]
    group_positions = group_ids if group_ids else [group.id for group in groups]

    rows = []
    for response in responses:
        for question_id, entry in response.answers.items():
            if question_id not in questions_by_id:
                continue
            if selected_groups and not any(question_id in g.question_ids for g in selected_groups):
                continue
            if question_ids and question_id not in question_ids:
                continue
            group = next((g for g in groups if question_id in g.question_ids), None)
            rows.append(AnswerRow(
                response_id=response.id,
                store_id=response.store_id,
                store_name=response.store_name,
                group_id=group.id if group else '',
                group_name=group.name if group else (entry.section_name or ''),
                question_id=question_id,
                question_text=entry.question_text,
                question_type=entry.question_type,
                customer_name=response.customer_info.name or 'Unknown',
                customer_phone=response.customer_info.phone,
                answer=entry.answer,
                submitted_at=response.submitted_at,
            ))

    def sort_key(row):
        if question_ids:
            question_position = _position(question_ids, row.question_id)
        else:
            group = groups_by_id.get(row.group_id)
            question_position = _position(group.question_ids, row.question_id) if group else 0
        submitted = parse_timestamp(row.submitted_at)
        return (
            _position(store_order, row.store_id),
            _position(group_positions, row.group_id),
            question_position,
            -(submitted.timestamp() if submitted else 0),
        )

    rows.sort(key=sort_key)
    return rows


def long_records(rows) -> List[Dict[str, Any]]:
    """One record per answer row."""
    return [
        {
            'Toko': row.store_name,
            'Grup': row.group_name,
            'Pertanyaan': row.question_text,
            'Jenis': row.question_type,
            'Pelanggan': row.customer_name,
            'Telepon': row.customer_phone,
            'Jawaban': render_answer(row.answer),
            'Tanggal': format_local_date(row.submitted_at),
        }
        for row in rows
    ]


def wide_records(rows):
    """One record per response with a column per distinct question text.

    Returns ``(records, columns)``. The question columns are the question
    texts in first-seen order across ``rows``; unanswered cells are empty.
    """
    question_columns = []
    records = {}
    for row in rows:
        if row.question_text not in question_columns:
            question_columns.append(row.question_text)
        key = (row.store_id, row.response_id)
        record = records.get(key)
        if record is None:
            record = {
                'Nama': row.customer_name,
                'Whatsapp': row.customer_phone,
                'Toko': row.store_name,
                'Tanggal Submit': format_local_date(row.submitted_at),
            }
            records[key] = record
        record[row.question_text] = render_answer(row.answer)

    columns = WIDE_BASE_COLUMNS + [c for c in question_columns if c not in WIDE_BASE_COLUMNS]
    filled = [{column: record.get(column, '') for column in columns} for record in records.values()]
    return filled, columns


def rows_to_csv(rows, columns) -> str:
    """Write records to a CSV string with a header row."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction='ignore')
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()


def rows_to_xlsx(rows, columns, sheet_name: Optional[str] = None) -> bytes:
    """Write records to a single-sheet XLSX workbook and return its bytes."""
    workbook = Workbook()
    sheet = workbook.active
    # Excel limits sheet titles to 31 characters
    sheet.title = (sheet_name or DEFAULT_SHEET_NAME)[:31]
    sheet.append(list(columns))
    for row in rows:
        sheet.append([row.get(column, '') for column in columns])
    output = io.BytesIO()
    workbook.save(output)
    logger.debug(f"Wrote {len(rows)} rows to XLSX sheet '{sheet.title}'")
    return output.getvalue()
