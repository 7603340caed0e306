# Overview: Atomic allocation of human-readable document numbers (PO-YYMM-NNNNN, INV-YYMM-NNNNN).

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from fashionhub.time_utils import utcnow


PURCHASE_ORDER = "PURCHASE_ORDER"
SALE = "SALE"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _period(at: datetime) -> str:
    return at.strftime("%y%m")


def _bump(document_type: str, period: str) -> int | None:
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.period == period,
        )
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type, period=period)
        .scalar()
    )
    return current - 1


def next_document_number(
    *,
    document_type: str,
    prefix: str,
    at: datetime | None = None,
    pad: int = 5,
) -> str:
    """
    Atomically allocate the next document number for a type in the current month.

    The counter row for (document_type, YYMM) is incremented in place, so two
    concurrent callers can never observe the same value. Numbering restarts
    at 1 each month.

    Call this before staging other changes in the session: on a first-use
    insert race the session is rolled back and the increment retried.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    if not prefix:
        raise DocumentSequenceError("prefix is required")

    period = _period(at or utcnow())

    next_num = _bump(document_type, period)
    if next_num is None:
        seq = DocumentSequence(document_type=document_type, period=period, next_number=2)
        db.session.add(seq)
        try:
            db.session.flush()
            next_num = 1
        except IntegrityError:
            # Another transaction created the row first
            db.session.rollback()
            next_num = _bump(document_type, period)
            if next_num is None:
                raise DocumentSequenceError(f"Could not allocate {document_type} number")

    return f"{prefix}-{period}-{next_num:0{pad}d}"
