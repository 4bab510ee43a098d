"""Assemble the nested detail record of a single audit.

Input rows are the flattened join for exactly one audit (one row per topic ×
question, carrying the question's latest answer if any). Rows spanning more
than one audit are a caller error and are not checked here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from audit_dashboard.clean.validate import validate_records
from audit_dashboard.models import (
    AnswerStatus,
    AuditDetail,
    AuditInfo,
    AuditRow,
    ClientInfo,
    DetailQuestion,
    DetailTopic,
)

log = logging.getLogger(__name__)


@dataclass
class _TopicDraft:
    topic: DetailTopic
    questions: list[DetailQuestion] = field(default_factory=list)


def _order_key(order: int | None) -> tuple[bool, int]:
    # unnumbered items go last; sorted() keeps first-seen order on ties
    return (order is None, order or 0)


def assemble_audit_detail(
    rows: Iterable[AuditRow | Mapping[str, Any]],
) -> AuditDetail | None:
    """Convert the flattened rows of one audit into an `AuditDetail`.

    Topics and questions are deduplicated by id (first occurrence keeps its
    display metadata) and sorted by display order. Every question seen gets
    an entry in the answers, comments and photos maps, defaulting to ``None``,
    ``""`` and ``[]``.

    Args:
        rows: Rows for exactly one audit, as models or mappings.

    Returns:
        The assembled detail, or ``None`` when there are no rows or the first
        row lacks the audit/client ids.
    """
    rows, _ = validate_records(rows, lenient_answers=True)
    if not rows:
        log.warning("No rows returned for the requested audit")
        return None

    head = rows[0]
    if head.audit_id is None or head.client_id is None:
        log.error(
            "Essential ids missing from audit rows (audit_id=%s, client_id=%s)",
            head.audit_id,
            head.client_id,
        )
        return None

    drafts: dict[int, _TopicDraft] = {}
    seen_questions: set[tuple[int, int]] = set()
    answers: dict[int, AnswerStatus | None] = {}
    comments: dict[int, str] = {}
    photos: dict[int, list[str]] = {}
    skipped = 0

    for row in rows:
        if row.topic_id is None or row.question_id is None:
            skipped += 1
            continue

        draft = drafts.get(row.topic_id)
        if draft is None:
            draft = _TopicDraft(
                DetailTopic(
                    id=row.topic_id,
                    name=row.topic_name,
                    requirements=row.topic_requirements,
                    order=row.topic_order,
                )
            )
            drafts[row.topic_id] = draft

        qid = row.question_id
        if (row.topic_id, qid) not in seen_questions:
            seen_questions.add((row.topic_id, qid))
            draft.questions.append(
                DetailQuestion(id=qid, text=row.question_text, order=row.question_order)
            )
            answers.setdefault(qid, None)
            comments.setdefault(qid, "")
            photos.setdefault(qid, [])

        if row.status is not None:
            answers[qid] = row.status
            comments[qid] = row.comment or ""
            photos[qid] = list(row.photo_paths or [])

    if skipped:
        log.debug("Skipped %d rows without topic/question ids for audit %s", skipped, head.audit_id)

    topics: list[DetailTopic] = []
    for draft in sorted(drafts.values(), key=lambda d: _order_key(d.topic.order)):
        questions = sorted(draft.questions, key=lambda q: _order_key(q.order))
        topics.append(draft.topic.model_copy(update={"questions": questions}))

    return AuditDetail(
        audit_info=AuditInfo(
            id=head.audit_id,
            audit_date=head.audit_date,
            general_comment=head.general_comment,
            auditor_name=head.auditor_name,
            audit_status=head.audit_status,
        ),
        client_info=ClientInfo(
            id=head.client_id,
            legal_name=head.client_name,
            tax_id=head.tax_id,
            contact=head.client_contact,
            phone=head.client_phone,
        ),
        topics=topics,
        answers=answers,
        comments=comments,
        photos=photos,
    )
