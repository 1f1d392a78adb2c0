"""Tests for keyword categorization rules."""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from taxtrack.models.categorization_rule import CategorizationRule
from taxtrack.models.transaction import Transaction, TransactionType, BusinessType
from taxtrack.services.rules_service import (
    apply_match,
    apply_rules_to_all,
    get_rules,
    match_rule,
    type_change_updates,
)


def _rule(keyword, type=TransactionType.business, business_type=BusinessType.expense, category=None):
    return CategorizationRule(keyword=keyword, type=type, business_type=business_type, category=category)


def _txn(description="", merchant="", reference=None, amount="-10.00"):
    return SimpleNamespace(
        description=description, merchant=merchant, reference=reference, amount=Decimal(amount)
    )


class TestMatchRule:
    """Test first-match keyword lookup."""

    def test_matches_merchant_case_insensitively(self):
        """'uber' matches a merchant of 'Uber Trip'."""
        rule = _rule("uber", category="Travel & Vehicle")
        match = match_rule(_txn(description="CARD PAYMENT", merchant="Uber Trip"), [rule])

        assert match is not None
        assert match.type == TransactionType.business
        assert match.business_type == BusinessType.expense
        assert match.category == "Travel & Vehicle"

    def test_matches_description_and_reference(self):
        rule = _rule("adobe")
        assert match_rule(_txn(description="ADOBE CREATIVE CLOUD"), [rule]) is not None
        assert match_rule(_txn(description="CARD", reference="Adobe Inc"), [rule]) is not None

    def test_missing_fields_treated_as_empty(self):
        rule = _rule("uber")
        assert match_rule(_txn(description=None, merchant=None, reference=None), [rule]) is None

    def test_first_rule_wins(self):
        first = _rule("amazon", category="Office Costs")
        second = _rule("amazon web", category="Other Expenses")
        match = match_rule(_txn(description="AMAZON WEB SERVICES"), [first, second])
        assert match.category == "Office Costs"

    def test_no_match(self):
        assert match_rule(_txn(description="TESCO"), [_rule("uber")]) is None

    def test_empty_keyword_never_matches(self):
        assert match_rule(_txn(description="ANYTHING"), [_rule("  ")]) is None

    def test_personal_rule_has_no_business_type(self):
        rule = _rule("netflix", type=TransactionType.personal, business_type=None)
        match = match_rule(_txn(description="NETFLIX.COM"), [rule])
        assert match.type == TransactionType.personal
        assert match.business_type is None


class TestTypeChange:
    """Test the updates applied when a transaction's type changes."""

    def test_business_with_rule_applies_category(self):
        rule = _rule("uber", category="Travel & Vehicle")
        updates = type_change_updates(_txn(merchant="Uber Trip"), TransactionType.business, [rule])

        assert updates == {
            "type": TransactionType.business,
            "business_type": BusinessType.expense,
            "category": "Travel & Vehicle",
        }

    def test_business_without_rule_follows_sign(self):
        income = type_change_updates(_txn(description="CLIENT", amount="500.00"), TransactionType.business, [])
        expense = type_change_updates(_txn(description="SHOP", amount="-5.00"), TransactionType.business, [])

        assert income["business_type"] == BusinessType.income
        assert expense["business_type"] == BusinessType.expense
        assert "category" not in income

    def test_explicit_business_type_used_without_rule(self):
        updates = type_change_updates(
            _txn(description="SAVINGS"), TransactionType.business, [], BusinessType.transfer
        )
        assert updates["business_type"] == BusinessType.transfer

    def test_personal_clears_classification(self):
        updates = type_change_updates(_txn(merchant="Uber Trip"), TransactionType.personal, [_rule("uber")])
        assert updates == {"type": TransactionType.personal, "business_type": None, "category": None}


class TestApplyRules:
    """Test applying rules to stored transactions."""

    def test_apply_match_reports_change(self, sample_rule, make_transaction):
        txn = make_transaction(description="UBER *TRIP")
        match = match_rule(txn, [sample_rule])

        assert apply_match(txn, match) is True
        assert apply_match(txn, match) is False

    def test_get_rules_in_creation_order(self, db_session):
        db_session.add(CategorizationRule(keyword="b", type=TransactionType.personal,
                                          created_at=datetime(2024, 1, 2)))
        db_session.add(CategorizationRule(keyword="a", type=TransactionType.personal,
                                          created_at=datetime(2024, 1, 1)))
        db_session.commit()

        assert [r.keyword for r in get_rules(db_session)] == ["a", "b"]

    def test_apply_rules_to_all(self, db_session, sample_rule, make_transaction):
        make_transaction(description="UBER *TRIP")
        make_transaction(description="TESCO STORES")

        assert apply_rules_to_all(db_session) == 1

        uber = db_session.query(Transaction).filter(Transaction.description == "UBER *TRIP").one()
        assert uber.type == TransactionType.business
        assert uber.category == "Travel & Vehicle"

    def test_apply_rules_without_rules(self, db_session, make_transaction):
        make_transaction()
        assert apply_rules_to_all(db_session) == 0
