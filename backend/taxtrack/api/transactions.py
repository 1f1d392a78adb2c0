"""
Transaction API endpoints.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taxtrack.database import get_db
from taxtrack.models.mileage_trip import MileageTrip
from taxtrack.models.transaction import Transaction, TransactionType, BusinessType
from taxtrack.schemas.transaction import (
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
    TransactionListResponse,
    DuplicateResponse,
)
from taxtrack.services.deduplication_service import (
    DuplicateCandidate,
    backfill_fingerprints,
    check_duplicate,
    exclude_transaction,
    generate_transaction_fingerprint,
    get_excluded_fingerprints,
)
from taxtrack.services.rules_service import get_rules, match_rule, apply_match, type_change_updates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _get_or_404(db: Session, transaction_id: str) -> Transaction:
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    type: Optional[TransactionType] = None,
    business_type: Optional[BusinessType] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List transactions with filtering and pagination"""
    query = db.query(Transaction)

    if type:
        query = query.filter(Transaction.type == type)
    if business_type:
        query = query.filter(Transaction.business_type == business_type)
    if category:
        query = query.filter(Transaction.category == category)
    if start_date:
        query = query.filter(Transaction.date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Transaction.date < datetime.combine(end_date + timedelta(days=1), time.min))
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Transaction.description.ilike(search_term),
                Transaction.merchant.ilike(search_term),
                Transaction.reference.ilike(search_term)
            )
        )

    total = query.count()

    query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    transactions = query.all()
    pages = (total + per_page - 1) // per_page

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        pages=pages
    )


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db)
):
    """Create a transaction by hand or from a live feed, rejecting duplicates"""
    check = check_duplicate(
        db,
        DuplicateCandidate(
            date=payload.date,
            amount=payload.amount,
            description=payload.description,
            reference=payload.reference,
        ),
        excluded_fingerprints=get_excluded_fingerprints(db)
    )
    if not check.admitted:
        raise HTTPException(
            status_code=409,
            detail=DuplicateResponse(
                decision=check.decision.value,
                fingerprint=check.fingerprint,
                matched_transaction_id=check.matched_transaction_id,
                reason=check.reason
            ).model_dump()
        )

    data = payload.model_dump()
    data["merchant"] = data["merchant"] or data["description"]
    transaction = Transaction(id=str(uuid.uuid4()), fingerprint=check.fingerprint, **data)

    if transaction.type == TransactionType.unreviewed:
        match = match_rule(transaction, get_rules(db))
        if match:
            apply_match(transaction, match)

    db.add(transaction)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Exact fingerprint match (already imported)")
    db.refresh(transaction)

    return TransactionResponse.model_validate(transaction)


@router.post("/backfill-fingerprints")
def backfill(db: Session = Depends(get_db)):
    """Assign fingerprints to rows stored before fingerprinting existed"""
    updated = backfill_fingerprints(db)
    return {"updated": updated}


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db)
):
    """Get a single transaction"""
    return TransactionResponse.model_validate(_get_or_404(db, transaction_id))


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    update: TransactionUpdate,
    db: Session = Depends(get_db)
):
    """Update a transaction; a type change also applies the matching rule"""
    transaction = _get_or_404(db, transaction_id)

    update_data = update.model_dump(exclude_unset=True)

    new_type = update_data.pop("type", None)
    if new_type is not None and new_type != transaction.type:
        # An explicit category in the same request replaces the rule entirely
        rules = [] if "category" in update_data else get_rules(db)
        changes = type_change_updates(
            transaction, new_type, rules, update_data.pop("business_type", None)
        )
        update_data = {**changes, **update_data}

    for field, value in update_data.items():
        setattr(transaction, field, value)

    if {"date", "amount", "description"} & update_data.keys():
        transaction.fingerprint = generate_transaction_fingerprint(
            transaction.date, transaction.amount, transaction.description, transaction.reference
        )

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Another transaction has the same fingerprint")
    db.refresh(transaction)

    return TransactionResponse.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    exclude: bool = True,
    db: Session = Depends(get_db)
):
    """Delete a transaction; by default its fingerprint is never re-imported"""
    transaction = _get_or_404(db, transaction_id)

    if exclude:
        exclude_transaction(db, transaction)
        return None

    db.query(MileageTrip).filter(
        MileageTrip.transaction_id == transaction.id
    ).update({MileageTrip.transaction_id: None}, synchronize_session=False)
    db.delete(transaction)
    db.commit()
    logger.info("Deleted transaction %s without exclusion", transaction_id)
    return None
