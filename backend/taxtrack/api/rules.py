"""
Categorization rule API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from taxtrack.database import get_db
from taxtrack.models.categorization_rule import CategorizationRule
from taxtrack.schemas.rule import RuleCreate, RuleUpdate, RuleResponse, ApplyRulesResponse
from taxtrack.services import rules_service

router = APIRouter(prefix="/rules", tags=["rules"])


def _get_or_404(db: Session, rule_id: str) -> CategorizationRule:
    rule = db.query(CategorizationRule).filter(CategorizationRule.id == rule_id).first()
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule


@router.get("", response_model=list[RuleResponse])
def list_rules(db: Session = Depends(get_db)):
    """List rules in the order they are applied"""
    return rules_service.get_rules(db)


@router.post("", response_model=RuleResponse, status_code=201)
def create_rule(rule: RuleCreate, db: Session = Depends(get_db)):
    """Create a keyword rule"""
    db_rule = CategorizationRule(
        keyword=rule.keyword,
        type=rule.type,
        business_type=rule.business_type,
        category=rule.category
    )
    db.add(db_rule)
    db.commit()
    db.refresh(db_rule)
    return db_rule


@router.patch("/{rule_id}", response_model=RuleResponse)
def update_rule(rule_id: str, update: RuleUpdate, db: Session = Depends(get_db)):
    """Update a rule"""
    rule = _get_or_404(db, rule_id)
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(rule, field, value)
    db.commit()
    db.refresh(rule)
    return rule


@router.delete("/{rule_id}", status_code=204)
def delete_rule(rule_id: str, db: Session = Depends(get_db)):
    """Delete a rule"""
    rule = _get_or_404(db, rule_id)
    db.delete(rule)
    db.commit()
    return None


@router.post("/apply-all", response_model=ApplyRulesResponse)
def apply_all_rules(db: Session = Depends(get_db)):
    """Re-run every rule over every stored transaction"""
    updated = rules_service.apply_rules_to_all(db)
    return ApplyRulesResponse(updated=updated, message=f"Updated {updated} transactions")
