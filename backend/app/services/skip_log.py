"""
Bookkeeping for records the balance engine had to leave out.
"""
import logging
from typing import List, Optional
from app.schemas.balance import SkippedRecord

logger = logging.getLogger(__name__)


def record_skip(
    skipped: Optional[List[SkippedRecord]],
    kind: str,
    record_id: int,
    reason: str
) -> None:
    """Log a skipped record and append it to ``skipped`` when collecting."""
    logger.warning(f"Skipping {kind} {record_id}: {reason}")
    if skipped is not None:
        skipped.append(SkippedRecord(kind=kind, record_id=record_id, reason=reason))
