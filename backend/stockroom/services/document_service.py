# Overview: Service-layer operations for document numbers (RENT-/BILL- per-day sequences).

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import DocumentSequence
from ..time_utils import day_stamp
from . import persistence

RENTAL_PREFIX = "RENT"
BILL_PREFIX = "BILL"


def format_document_number(prefix: str, stamp: str, number: int, pad: int = 4) -> str:
    return f"{prefix}-{stamp}-{number:0{pad}d}"


def next_document_number(*, document_type: str, prefix: str, when=None, pad: int = 4) -> str:
    """
    Atomically allocate the next number for a document type and day.

    The counter row is bumped with a single UPDATE; the first number of a
    day inserts the row. Numbering restarts at 0001 every day.
    """
    stamp = day_stamp(when)

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.sequence_date == stamp,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type, sequence_date=stamp)
            .scalar()
        )
        number = current - 1
    else:
        db.session.add(DocumentSequence(document_type=document_type, sequence_date=stamp, next_number=2))
        # A concurrent first-of-day insert loses on the unique key
        persistence.flush()
        number = 1

    return format_document_number(prefix, stamp, number, pad)


def next_rental_number(when=None) -> str:
    return next_document_number(document_type="rental", prefix=RENTAL_PREFIX, when=when)


def next_bill_number(when=None) -> str:
    return next_document_number(document_type="sale", prefix=BILL_PREFIX, when=when)
