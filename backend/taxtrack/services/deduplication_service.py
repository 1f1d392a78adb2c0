"""
Deduplication service for transactions.

The same real-world payment can reach us from more than one source: the live
bank feed and the downloadable statement file. The two can disagree on the
calendar day by one and only one of them tends to carry a reference, so a
plain fingerprint lookup is backed up by a fuzzy match over a three-day
window.
"""

import enum
import hashlib
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Set, Union

from sqlalchemy.orm import Session

from taxtrack.config import settings
from taxtrack.models.excluded_fingerprint import ExcludedFingerprint
from taxtrack.models.mileage_trip import MileageTrip
from taxtrack.models.transaction import Transaction

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")
FINGERPRINT_LENGTH = 32
# Rows up to two days away are read to recognise daily charges
SERIES_REACH_DAYS = 2

DateLike = Union[date, datetime]


class DuplicateDecision(str, enum.Enum):
    """Outcome of a duplicate check."""
    admit = "admit"
    duplicate = "duplicate"
    excluded = "excluded"


@dataclass(frozen=True)
class DuplicateCandidate:
    """An incoming transaction that has not been persisted yet."""
    date: DateLike
    amount: Decimal
    description: str
    reference: Optional[str] = None


@dataclass(frozen=True)
class DuplicateCheck:
    """Result of checking a candidate against stored transactions."""
    decision: DuplicateDecision
    fingerprint: str
    matched_transaction_id: Optional[str] = None
    reason: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.decision == DuplicateDecision.admit

    @property
    def is_duplicate(self) -> bool:
        return self.decision == DuplicateDecision.duplicate


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_description(description: Optional[str]) -> str:
    return (description or "").strip().lower()


def generate_transaction_fingerprint(
    txn_date: DateLike,
    amount: Decimal,
    description: str,
    reference: Optional[str] = None,
    occurrence: int = 0
) -> str:
    """
    Generate a 32 character hex fingerprint for deduplication.
    Uses date|amount|description. The reference is accepted but ignored:
    the live feed usually reports it as null while statement exports fill it
    in, so including it would split one payment into two fingerprints.

    occurrence > 0 distinguishes identical rows repeated within one import.
    """
    amount_str = format(_as_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP), "f")
    components = [
        _as_date(txn_date).isoformat(),
        amount_str,
        normalize_description(description),
    ]
    if occurrence:
        components.append(f"#{occurrence}")
    combined = "|".join(components)
    return hashlib.sha256(combined.encode()).hexdigest()[:FINGERPRINT_LENGTH]


def is_bulk_import(transaction, bulk_tags: Optional[Iterable[str]] = None) -> bool:
    """True if the row came from an offline statement file."""
    markers = settings.bulk_import_tags if bulk_tags is None else bulk_tags
    return any(transaction.has_tag(tag) for tag in markers)


def select_duplicate(
    candidate_date: DateLike,
    amount: Decimal,
    description: str,
    existing: Iterable[Transaction],
    exclude_fingerprints: Optional[Set[str]] = None,
    bulk_tags: Optional[Iterable[str]] = None
) -> Optional[Transaction]:
    """
    Pick the stored transaction that the candidate duplicates, if any.

    Matches need the same amount (within a penny) and the same trimmed,
    case-insensitive description within one day either side. A same-day
    match always wins. Otherwise exactly one match from a live source is
    treated as the same payment reported a day apart; two or more are a
    recurring daily charge and the candidate is admitted.

    The single live match is also a daily charge, not a duplicate, when the
    live source has the same charge again one day further from the
    candidate: the candidate is then the next day of that series.
    """
    target_day = _as_date(candidate_date)
    target_amount = _as_decimal(amount)
    target_description = normalize_description(description)
    exclude_fingerprints = exclude_fingerprints or set()

    similar = []
    for txn in existing:
        # Rows added earlier in the same import run are not duplicates of each other
        if txn.fingerprint and txn.fingerprint in exclude_fingerprints:
            continue
        if abs((_as_date(txn.date) - target_day).days) > SERIES_REACH_DAYS:
            continue
        if abs(_as_decimal(txn.amount) - target_amount) > AMOUNT_TOLERANCE:
            continue
        if normalize_description(txn.description) != target_description:
            continue
        similar.append(txn)

    matches = [txn for txn in similar if abs((_as_date(txn.date) - target_day).days) <= 1]

    for txn in matches:
        if _as_date(txn.date) == target_day:
            return txn

    live_matches = [txn for txn in matches if not is_bulk_import(txn, bulk_tags)]
    if len(live_matches) != 1:
        return None

    match = live_matches[0]
    match_day = _as_date(match.date)
    beyond = match_day + (match_day - target_day)
    continues_series = any(
        _as_date(txn.date) == beyond and not is_bulk_import(txn, bulk_tags)
        for txn in similar
    )
    if continues_series:
        return None
    return match


def find_potential_duplicate(
    db: Session,
    candidate_date: DateLike,
    amount: Decimal,
    description: str,
    exclude_fingerprints: Optional[Set[str]] = None
) -> Optional[Transaction]:
    """Load stored transactions around the candidate's day and run the matcher."""
    day = _as_date(candidate_date)
    window_start = datetime.combine(day - timedelta(days=SERIES_REACH_DAYS), time.min)
    window_end = datetime.combine(day + timedelta(days=SERIES_REACH_DAYS + 1), time.min)

    candidates = db.query(Transaction).filter(
        Transaction.date >= window_start,
        Transaction.date < window_end
    ).order_by(Transaction.date, Transaction.created_at).all()

    return select_duplicate(candidate_date, amount, description, candidates, exclude_fingerprints)


def check_duplicate(
    db: Session,
    candidate: DuplicateCandidate,
    batch_fingerprints: Optional[Set[str]] = None,
    excluded_fingerprints: Optional[Set[str]] = None
) -> DuplicateCheck:
    """
    Decide whether a candidate should be stored.

    Never raises for ambiguous input: when in doubt the candidate is
    admitted, since an extra row can be merged by hand while a dropped one
    silently loses income or expenses.
    """
    batch_fingerprints = batch_fingerprints or set()
    excluded_fingerprints = excluded_fingerprints or set()

    fingerprint = generate_transaction_fingerprint(
        candidate.date, candidate.amount, candidate.description, candidate.reference
    )

    if fingerprint in excluded_fingerprints:
        return DuplicateCheck(
            decision=DuplicateDecision.excluded,
            fingerprint=fingerprint,
            reason="Transaction excluded by user (do not reimport)"
        )

    if fingerprint not in batch_fingerprints:
        existing = db.query(Transaction).filter(Transaction.fingerprint == fingerprint).first()
        if existing is not None:
            return DuplicateCheck(
                decision=DuplicateDecision.duplicate,
                fingerprint=fingerprint,
                matched_transaction_id=existing.id,
                reason="Exact fingerprint match (already imported)"
            )

    match = find_potential_duplicate(
        db, candidate.date, candidate.amount, candidate.description, batch_fingerprints
    )
    if match is not None:
        return DuplicateCheck(
            decision=DuplicateDecision.duplicate,
            fingerprint=fingerprint,
            matched_transaction_id=match.id,
            reason=(
                f"Fuzzy match: transaction on {_as_date(match.date).isoformat()} "
                f"({match.description}, {match.amount})"
            )
        )

    # Identical rows within one statement are separate payments
    occurrence = 0
    while fingerprint in batch_fingerprints:
        occurrence += 1
        fingerprint = generate_transaction_fingerprint(
            candidate.date, candidate.amount, candidate.description, occurrence=occurrence
        )

    return DuplicateCheck(decision=DuplicateDecision.admit, fingerprint=fingerprint)


def get_excluded_fingerprints(db: Session) -> Set[str]:
    """Fingerprints the user has deleted and asked not to re-import."""
    return {row.fingerprint for row in db.query(ExcludedFingerprint.fingerprint).all()}


def exclude_transaction(
    db: Session,
    transaction: Transaction,
    reason: str = "User deleted"
) -> ExcludedFingerprint:
    """Delete a transaction and record its fingerprint so it is never re-admitted."""
    fingerprint = transaction.fingerprint or generate_transaction_fingerprint(
        transaction.date, transaction.amount, transaction.description, transaction.reference
    )

    exclusion = db.query(ExcludedFingerprint).filter(
        ExcludedFingerprint.fingerprint == fingerprint
    ).first()
    if exclusion is None:
        exclusion = ExcludedFingerprint(
            fingerprint=fingerprint,
            description=transaction.description,
            amount=transaction.amount,
            date=transaction.date,
            reason=reason
        )
        db.add(exclusion)

    db.query(MileageTrip).filter(
        MileageTrip.transaction_id == transaction.id
    ).update({MileageTrip.transaction_id: None}, synchronize_session=False)

    db.delete(transaction)
    db.commit()
    logger.info("Excluded transaction %s (%s)", transaction.id, fingerprint)
    return exclusion


def backfill_fingerprints(db: Session) -> int:
    """Assign fingerprints to legacy rows that have none. Returns rows updated."""
    taken = {
        row.fingerprint
        for row in db.query(Transaction.fingerprint).filter(Transaction.fingerprint.isnot(None)).all()
    }

    updated = 0
    for txn in db.query(Transaction).filter(Transaction.fingerprint.is_(None)).all():
        fingerprint = generate_transaction_fingerprint(
            txn.date, txn.amount, txn.description, txn.reference
        )
        if fingerprint in taken:
            logger.warning("Fingerprint collision for transaction %s, left unset", txn.id)
            continue
        txn.fingerprint = fingerprint
        taken.add(fingerprint)
        updated += 1

    db.commit()
    return updated
