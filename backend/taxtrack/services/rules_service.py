"""Service for keyword categorization rules."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from taxtrack.models.categorization_rule import CategorizationRule
from taxtrack.models.transaction import Transaction, TransactionType, BusinessType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleMatch:
    """Classification suggested by the first matching rule."""
    type: TransactionType
    business_type: Optional[BusinessType]
    category: Optional[str]
    rule_id: Optional[str] = None

    def as_updates(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "business_type": self.business_type,
            "category": self.category,
        }


def get_rules(db: Session) -> List[CategorizationRule]:
    """All rules in creation order; the first match wins so the order must be stable."""
    return db.query(CategorizationRule).order_by(
        CategorizationRule.created_at, CategorizationRule.id
    ).all()


def match_rule(transaction, rules: Iterable[CategorizationRule]) -> Optional[RuleMatch]:
    """
    Return the first rule whose keyword appears in the description, merchant
    or reference (case-insensitive), or None.
    """
    fields = [
        (getattr(transaction, "description", None) or "").lower(),
        (getattr(transaction, "merchant", None) or "").lower(),
        (getattr(transaction, "reference", None) or "").lower(),
    ]

    for rule in rules:
        keyword = (rule.keyword or "").strip().lower()
        if not keyword:
            continue
        if any(keyword in field for field in fields):
            return RuleMatch(
                type=TransactionType(rule.type),
                business_type=BusinessType(rule.business_type) if rule.business_type else None,
                category=rule.category,
                rule_id=rule.id,
            )
    return None


def apply_match(transaction: Transaction, match: RuleMatch) -> bool:
    """Set type, business type and category together. Returns True if anything changed."""
    changed = False
    for field, value in match.as_updates().items():
        if getattr(transaction, field) != value:
            setattr(transaction, field, value)
            changed = True
    return changed


def type_change_updates(
    transaction,
    new_type: TransactionType,
    rules: Iterable[CategorizationRule],
    business_type: Optional[BusinessType] = None
) -> Dict[str, Any]:
    """
    Field updates for changing a transaction's type.

    Switching to Business picks up the matching rule's business type and
    category in the same update, so the row is never Business without a
    category when a rule could have supplied one. Without a rule category the
    business type is the one given, or follows the sign of the amount.
    Leaving Business clears both business type and category.
    """
    updates: Dict[str, Any] = {"type": new_type}

    if new_type != TransactionType.business:
        updates["business_type"] = None
        updates["category"] = None
        return updates

    match = match_rule(transaction, rules)
    if match and match.category:
        updates["business_type"] = match.business_type or business_type
        updates["category"] = match.category
    elif business_type is not None:
        updates["business_type"] = business_type
    else:
        updates["business_type"] = (
            BusinessType.income if transaction.amount > 0 else BusinessType.expense
        )

    return updates


def apply_rules_to_all(db: Session) -> int:
    """Apply rules to every stored transaction; returns the number of rows changed."""
    rules = get_rules(db)
    if not rules:
        return 0

    updated = 0
    for transaction in db.query(Transaction).all():
        match = match_rule(transaction, rules)
        if match and apply_match(transaction, match):
            updated += 1

    db.commit()
    logger.info("Applied %d rules to %d transactions", len(rules), updated)
    return updated
