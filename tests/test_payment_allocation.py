"""
Purchase order payments.

The allocation helpers are pure; processing creates drafts only, and money
moves when a draft is approved.
"""

from decimal import Decimal

import pytest
from sqlalchemy import update

from conftest import TENANT, USER
from crud import purchase_order_payment as payment_crud
from crud.expenses import approve_expense, reject_expense, submit_expense
from crud.audit_log import find_latest_audit
from exceptions import InvalidStateTransitionError, MissingChartOfAccountLinkError, ValidationError
from models.audit_log import AuditAction
from models.banks import Bank
from models.business_partners import BusinessPartner
from models.expenses import Expense, ExpenseStatus, FundingSource
from models.journal_entry import JournalEntry
from models.purchase_orders import PurchaseOrderStatus
from models.supplier_ledger import SupplierLedgerEntry, SupplierLedgerType


class TestBreakdown:

    @pytest.mark.parametrize("total_due, credit, expected", [
        ("1000", "400", ("400.00", "600.00", "1000.00")),
        ("1000", "0", ("0.00", "1000.00", "1000.00")),
        ("1000", "1500", ("1000.00", "0.00", "1000.00")),
        ("1000", "-50", ("0.00", "1000.00", "1000.00")),
        ("99.999", "10", ("10.00", "90.00", "100.00")),
    ])
    def test_credit_is_used_first(self, total_due, credit, expected):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal(total_due), Decimal(credit))
        assert (breakdown.from_credit, breakdown.from_bank, breakdown.total) == tuple(Decimal(v) for v in expected)

    def test_nothing_due(self):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("0"), Decimal("250"))
        assert breakdown.from_credit == breakdown.from_bank == Decimal("0.00")

    def test_overdraft_is_permitted(self):
        result = payment_crud.calculate_final_balance(Decimal("100"), Decimal("300"))
        assert result.final_balance == Decimal("-200.00")
        assert result.is_negative is True
        assert result.difference == Decimal("300.00")
        assert payment_crud.validate_payment(Decimal("100"), Decimal("300")).can_proceed is True

    def test_description_lists_both_parts(self):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), Decimal("400"))
        assert payment_crud.generate_payment_description("PO-12", breakdown) == (
            "Payment for PO-12 - Used supplier credit: ৳400.00 BDT - Paid from bank: ৳600.00 BDT"
        )

    def test_description_with_bank_only(self):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), Decimal("0"))
        assert payment_crud.generate_payment_description("PO-12", breakdown) == (
            "Payment for PO-12 - Paid from bank: ৳1,000.00 BDT"
        )


class TestDeductions:

    def test_zero_amounts_are_no_ops(self, db, supplier, bank):
        assert payment_crud.deduct_supplier_credit(db, supplier, Decimal("0"), "nothing") is None
        assert payment_crud.deduct_from_bank(db, bank, Decimal("-5")) is False
        assert bank.current_balance == Decimal("5000.00")
        assert db.query(SupplierLedgerEntry).count() == 0

    def test_supplier_credit_keeps_running_balance(self, db, supplier):
        first = payment_crud.deduct_supplier_credit(db, supplier, Decimal("150"), "PO-1", transaction_id="PO-1")
        second = payment_crud.deduct_supplier_credit(db, supplier, Decimal("300"), "PO-2", transaction_id="PO-2")
        db.commit()

        assert first.balance == Decimal("250.00")
        assert second.balance == Decimal("-50.00")
        assert second.type == SupplierLedgerType.DEBIT
        assert supplier.wallet_balance == Decimal("-50.00")

    def test_bank_may_go_negative(self, db, bank):
        assert payment_crud.deduct_from_bank(db, bank, Decimal("6000")) is True
        assert bank.current_balance == Decimal("-1000.00")

    def _withdraw_behind_the_session(self, db, model, row_id, column, amount):
        # Another writer changes the row; the session keeps its stale copy
        db.execute(
            update(model).where(model.id == row_id).values({column: getattr(model, column) - amount})
            .execution_options(synchronize_session=False)
        )

    def test_bank_deduction_keeps_concurrent_writes(self, db, bank):
        assert bank.current_balance == Decimal("5000.00")
        self._withdraw_behind_the_session(db, Bank, bank.id, "current_balance", Decimal("100"))
        assert bank.current_balance == Decimal("5000.00")

        payment_crud.deduct_from_bank(db, bank, Decimal("600"))
        db.commit()
        assert bank.current_balance == Decimal("4300.00")

    def test_wallet_debit_keeps_concurrent_writes(self, db, supplier):
        assert supplier.wallet_balance == Decimal("400.00")
        self._withdraw_behind_the_session(db, BusinessPartner, supplier.id, "wallet_balance", Decimal("50"))

        entry = payment_crud.deduct_supplier_credit(db, supplier, Decimal("100"), "PO-3", transaction_id="PO-3")
        db.commit()
        assert entry.balance == Decimal("250.00")
        assert supplier.wallet_balance == Decimal("250.00")


class TestProcessPayment:

    def _process(self, db, purchase_order, bank, credit="400"):
        breakdown = payment_crud.calculate_payment_breakdown(purchase_order.amount_due, Decimal(credit))
        return payment_crud.process_payment(db, purchase_order, bank, breakdown, USER)

    def test_creates_one_pending_draft_per_part(self, db, accounts, supplier, bank, purchase_order):
        drafts = self._process(db, purchase_order, bank)

        wallet, bank_draft = drafts["wallet_expense"], drafts["bank_expense"]
        assert wallet.amount == Decimal("400.00")
        assert wallet.funding_source == FundingSource.WALLET
        assert wallet.payment_account_id == accounts["advances"].id
        assert wallet.title == "PO-12 - Payment to Acme Feed Ltd from wallet"
        assert bank_draft.amount == Decimal("600.00")
        assert bank_draft.payment_account_id == accounts["bank"].id
        assert bank_draft.title == "PO-12 - Payment to Acme Feed Ltd from City Bank"
        for draft in (wallet, bank_draft):
            assert draft.status == ExpenseStatus.PENDING_APPROVAL
            assert draft.account_id == accounts["payable"].id
            assert draft.reference_number == "PO-12"

        # Nothing has moved yet
        db.refresh(supplier)
        db.refresh(bank)
        assert supplier.wallet_balance == Decimal("400.00")
        assert bank.current_balance == Decimal("5000.00")
        assert db.query(JournalEntry).count() == 0

    def test_wallet_only_payment_creates_no_bank_draft(self, db, accounts, supplier, purchase_order):
        drafts = self._process(db, purchase_order, None, credit="1500")
        assert drafts["bank_expense"] is None
        assert drafts["wallet_expense"].amount == Decimal("1000.00")

    def test_bank_without_account_link_fails_before_writing(self, db, accounts, supplier, purchase_order):
        unlinked = Bank(tenant_id=TENANT, name="Petty Bank", current_balance=Decimal("100.00"))
        db.add(unlinked)
        db.commit()

        with pytest.raises(MissingChartOfAccountLinkError) as exc_info:
            self._process(db, purchase_order, unlinked)

        assert "Petty Bank" in str(exc_info.value)
        assert db.query(Expense).count() == 0

    def test_bank_part_without_bank(self, db, accounts, supplier, purchase_order):
        with pytest.raises(ValidationError):
            self._process(db, purchase_order, None)

    def test_pending_drafts_count_against_amount_due(self, db, accounts, supplier, bank, purchase_order):
        self._process(db, purchase_order, bank)
        with pytest.raises(ValidationError):
            self._process(db, purchase_order, bank, credit="0")


class TestApproval:

    def test_approving_both_drafts_settles_the_order(self, db, accounts, supplier, bank, purchase_order):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), supplier.wallet_balance)
        drafts = payment_crud.process_payment(db, purchase_order, bank, breakdown, USER)

        wallet = approve_expense(db, drafts["wallet_expense"].id, TENANT, USER)
        assert wallet.status == ExpenseStatus.POSTED
        assert wallet.approved_by == USER
        db.refresh(purchase_order)
        assert purchase_order.total_amount_paid == Decimal("400.00")
        assert purchase_order.status == PurchaseOrderStatus.PARTIALLY_PAID

        ledger_entry = db.query(SupplierLedgerEntry).one()
        assert ledger_entry.amount == Decimal("400.00")
        assert ledger_entry.balance == Decimal("0.00")
        assert ledger_entry.transaction_id == "PO-12"

        paid_from_bank = approve_expense(db, drafts["bank_expense"].id, TENANT, USER)
        db.refresh(bank)
        db.refresh(purchase_order)
        assert bank.current_balance == Decimal("4400.00")
        assert purchase_order.status == PurchaseOrderStatus.PAID

        entry = db.get(JournalEntry, paid_from_bank.journal_entry_id)
        assert entry.reference_type == "Expense"
        assert {(i.account_id, i.debit, i.credit) for i in entry.items} == {
            (accounts["payable"].id, Decimal("600.00"), Decimal("0.00")),
            (accounts["bank"].id, Decimal("0.00"), Decimal("600.00")),
        }
        assert accounts["payable"].balance == Decimal("-1000.00")
        assert accounts["advances"].balance == Decimal("-400.00")
        assert accounts["bank"].balance == Decimal("-600.00")
        assert find_latest_audit(db, "Expense", paid_from_bank.id, AuditAction.APPROVED) is not None

    def test_rejected_draft_moves_nothing(self, db, accounts, supplier, bank, purchase_order):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), Decimal("400"))
        drafts = payment_crud.process_payment(db, purchase_order, bank, breakdown, USER)

        rejected = reject_expense(db, drafts["bank_expense"].id, TENANT, "wrong bank", USER)
        assert rejected.status == ExpenseStatus.REJECTED
        assert rejected.rejection_reason == "wrong bank"
        audit = find_latest_audit(db, "Expense", rejected.id, AuditAction.REJECTED)
        assert audit.description == "Rejected Expense: PO-12 - Payment to Acme Feed Ltd from City Bank. Reason: wrong bank"

        with pytest.raises(InvalidStateTransitionError):
            approve_expense(db, rejected.id, TENANT, USER)
        db.refresh(bank)
        assert bank.current_balance == Decimal("5000.00")
        assert db.query(JournalEntry).count() == 0

    def test_posted_draft_cannot_be_approved_twice(self, db, accounts, supplier, bank, purchase_order):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), Decimal("400"))
        drafts = payment_crud.process_payment(db, purchase_order, bank, breakdown, USER)
        approve_expense(db, drafts["bank_expense"].id, TENANT, USER)

        with pytest.raises(InvalidStateTransitionError):
            approve_expense(db, drafts["bank_expense"].id, TENANT, USER)
        with pytest.raises(InvalidStateTransitionError):
            reject_expense(db, drafts["bank_expense"].id, TENANT, "late", USER)
        assert db.query(JournalEntry).count() == 1

    def test_unsubmitted_drafts_wait_for_submission(self, db, accounts, supplier, bank, purchase_order):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), Decimal("0"))
        drafts = payment_crud.process_payment(db, purchase_order, bank, breakdown, USER, submit_for_approval=False)
        draft = drafts["bank_expense"]
        assert draft.status == ExpenseStatus.DRAFT

        # Unsubmitted drafts still hold the amount due
        with pytest.raises(ValidationError):
            payment_crud.process_payment(db, purchase_order, bank, breakdown, USER)
        with pytest.raises(InvalidStateTransitionError):
            approve_expense(db, draft.id, TENANT, USER)
        assert db.query(JournalEntry).count() == 0

        assert submit_expense(db, draft.id, TENANT, USER).status == ExpenseStatus.PENDING_APPROVAL
        assert approve_expense(db, draft.id, TENANT, USER).status == ExpenseStatus.POSTED
        db.refresh(bank)
        assert bank.current_balance == Decimal("4000.00")

    def test_approval_fails_when_bank_link_removed(self, db, accounts, supplier, bank, purchase_order):
        breakdown = payment_crud.calculate_payment_breakdown(Decimal("1000"), Decimal("0"))
        drafts = payment_crud.process_payment(db, purchase_order, bank, breakdown, USER)
        bank.chart_of_account_id = None
        db.commit()

        with pytest.raises(MissingChartOfAccountLinkError):
            approve_expense(db, drafts["bank_expense"].id, TENANT, USER)

        draft = db.get(Expense, drafts["bank_expense"].id)
        assert draft.status == ExpenseStatus.PENDING_APPROVAL
        db.refresh(bank)
        assert bank.current_balance == Decimal("5000.00")

    def test_draft_state_machine(self, db, accounts):
        from datetime import date

        draft = Expense(
            tenant_id=TENANT,
            title="Manual draft",
            amount=Decimal("10.00"),
            expense_date=date(2024, 3, 1),
            account_id=accounts["expense"].id,
            payment_account_id=accounts["cash"].id,
            funding_source=FundingSource.BANK,
            status=ExpenseStatus.DRAFT,
        )
        db.add(draft)
        db.commit()

        assert not draft.can_transition_to(ExpenseStatus.POSTED)
        submitted = submit_expense(db, draft.id, TENANT, USER)
        assert submitted.status == ExpenseStatus.PENDING_APPROVAL
        with pytest.raises(InvalidStateTransitionError):
            submit_expense(db, draft.id, TENANT, USER)
