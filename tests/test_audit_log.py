from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from conftest import TENANT, USER, make_entry
from crud import audit_log as audit_crud
from crud import chart_of_accounts as chart_of_accounts_crud
from crud import journal_entry as journal_entry_crud
from exceptions import AuditLogImmutableError
from models.audit_log import AuditAction, AuditLog
from models.banks import Bank
from schemas.audit_log import AuditLogCreate
from schemas.chart_of_accounts import ChartOfAccountsUpdate


class TestIdentifier:

    def test_first_populated_field_wins(self):
        entity = SimpleNamespace(id=3, name="", title=None, code="4000", reference_number="PO-1")
        assert audit_crud.resolve_entity_identifier(entity) == "4000"

    def test_falls_back_to_id(self):
        assert audit_crud.resolve_entity_identifier(SimpleNamespace(id=7)) == "#7"

    def test_journal_entry_is_labelled_by_number(self, db, accounts):
        posted = journal_entry_crud.post_journal_entry(
            db, make_entry([(accounts["cash"], Decimal("5"), 0), (accounts["revenue"], 0, Decimal("5"))]), TENANT, USER
        )
        assert audit_crud.resolve_entity_identifier(posted) == "JE-000001"

    def test_caller_supplied_accessors(self, db):
        bank = Bank(tenant_id=TENANT, name="City Bank", account_number="0012-345", current_balance=Decimal("0"))
        db.add(bank)
        db.flush()
        record = audit_crud.log_event(
            db, bank, AuditAction.CREATED,
            identifier_accessors=[lambda b: b.account_number],
        )
        assert record.entity_identifier == "0012-345"
        assert record.description == "Created new Bank: 0012-345"


class TestChangeTracking:

    def test_changed_fields_are_exactly_the_differing_ones(self, db, accounts):
        cash = accounts["cash"]
        chart_of_accounts_crud.update_account(
            db, cash.id,
            ChartOfAccountsUpdate(name="Cash in Hand", sub_type="current", description=None),
            TENANT, USER,
        )

        record = audit_crud.find_latest_audit(db, "ChartOfAccounts", cash.id, AuditAction.UPDATED)
        assert set(record.changed_fields) == {"name", "updated_by"}
        assert record.old_values["name"] == "Cash"
        assert record.new_values["name"] == "Cash in Hand"
        assert "sub_type" not in record.old_values
        assert record.description == "Updated ChartOfAccounts: Cash in Hand"

    def test_created_records_full_snapshot(self, db, accounts):
        posted = journal_entry_crud.post_journal_entry(
            db, make_entry([(accounts["cash"], Decimal("5"), 0), (accounts["revenue"], 0, Decimal("5"))]), TENANT, USER
        )
        record = audit_crud.find_latest_audit(db, "JournalEntry", posted.id, AuditAction.CREATED)

        assert record.old_values is None
        assert record.new_values["entry_number"] == "JE-000001"
        assert record.new_values["total_debit"] == "5.00"
        assert record.audit_metadata["connection"] == "sqlite"
        assert record.audit_metadata["table"] == "journal_entries"
        assert record.performed_by == USER
        assert record.tenant_id == TENANT

    def test_reported_update_derives_changed_fields(self, db):
        record = audit_crud.create_audit_log(
            db,
            AuditLogCreate(
                entity_type="BusinessPartner",
                entity_id=5,
                action=AuditAction.UPDATED,
                old_values={"name": "Acme Feed Ltd", "phone": "555-0100"},
                new_values={"name": "Acme Feed Ltd", "phone": "555-0199"},
            ),
            performed_by=USER,
            tenant_id=TENANT,
        )
        assert record.changed_fields == ["phone"]
        assert record.entity_identifier == "#5"
        assert record.description == "Updated BusinessPartner: #5"

    def test_reported_event_records_storage_location(self, db):
        record = audit_crud.create_audit_log(
            db,
            AuditLogCreate(
                entity_type="BusinessPartner",
                entity_id=5,
                action=AuditAction.CREATED,
                metadata={"source": "supplier-import", "table": "somewhere-else"},
            ),
            performed_by=USER,
            tenant_id=TENANT,
        )
        assert record.audit_metadata["source"] == "supplier-import"
        assert record.audit_metadata["connection"] == "sqlite"
        assert record.audit_metadata["table"] == "business_partners"

    def test_unmapped_entity_type_is_stored_under_audit_log(self, db):
        record = audit_crud.create_audit_log(
            db,
            AuditLogCreate(entity_type="Employee", entity_id=3, action=AuditAction.DELETED),
            performed_by=USER,
            tenant_id=TENANT,
        )
        assert record.audit_metadata["table"] == "audit_log"

    def test_import_and_access_records_storage_location(self, db):
        imported = audit_crud.log_import(db, "ChartOfAccounts", [1, 2], USER, TENANT)
        accessed = audit_crud.log_api_access(db, "/journal-entries", "GET", USER, TENANT)

        assert imported.audit_metadata["table"] == "chart_of_accounts"
        assert imported.audit_metadata["record_count"] == 2
        assert accessed.audit_metadata["table"] == "audit_log"
        assert accessed.audit_metadata["method"] == "GET"
        assert {imported.audit_metadata["connection"], accessed.audit_metadata["connection"]} == {"sqlite"}


class TestWriteOnce:

    def test_update_is_refused(self, db):
        record = audit_crud.log_api_access(db, "/journal-entries", "GET", USER, TENANT)
        record.description = "tampered"
        with pytest.raises(AuditLogImmutableError):
            db.commit()
        db.rollback()
        assert db.get(AuditLog, record.id).description == "API endpoint accessed: GET /journal-entries"

    def test_delete_is_refused(self, db):
        record = audit_crud.log_import(db, "ChartOfAccounts", [1, 2, 3], USER, TENANT)
        db.delete(record)
        with pytest.raises(AuditLogImmutableError):
            db.commit()
        db.rollback()
        assert db.query(AuditLog).count() == 1

    def test_ledger_operations_only_append(self, db, accounts):
        posted = journal_entry_crud.post_journal_entry(
            db, make_entry([(accounts["cash"], Decimal("5"), 0), (accounts["revenue"], 0, Decimal("5"))]), TENANT, USER
        )
        first = db.query(AuditLog).order_by(AuditLog.id).all()
        snapshot = [(r.id, r.action, r.new_values) for r in first]

        journal_entry_crud.delete_journal_entry(db, posted.id, TENANT, USER)

        after = db.query(AuditLog).order_by(AuditLog.id).all()
        assert [(r.id, r.action, r.new_values) for r in after[:len(snapshot)]] == snapshot
        assert after[-1].action == AuditAction.DELETED.value


class TestQueries:

    def test_history_and_search(self, db, accounts):
        posted = journal_entry_crud.post_journal_entry(
            db, make_entry([(accounts["cash"], Decimal("5"), 0), (accounts["revenue"], 0, Decimal("5"))]), TENANT, USER
        )
        audit_crud.log_api_access(db, "/journal-entries", "GET", "someone-else", TENANT)

        history = audit_crud.get_history(db, "JournalEntry", posted.id, TENANT)
        assert [r.action for r in history] == ["created"]

        assert len(audit_crud.search_audit_logs(db, TENANT, action=AuditAction.ACCESSED)) == 1
        assert len(audit_crud.search_audit_logs(db, TENANT, performed_by="someone-else")) == 1
        assert len(audit_crud.search_audit_logs(db, TENANT, search="JE-000001")) == 1
        assert audit_crud.search_audit_logs(db, "other-tenant") == []


class TestFireAndForget:

    def test_records_and_commits(self, db):
        bank = Bank(tenant_id=TENANT, name="City Bank", current_balance=Decimal("0"))
        db.add(bank)
        db.commit()

        record = audit_crud.record_audit_event(db, bank, AuditAction.CREATED, performed_by=USER)
        assert record.id is not None
        assert record.entity_identifier == "City Bank"

    def test_storage_failure_never_reaches_the_caller(self, db, monkeypatch):
        bank = Bank(tenant_id=TENANT, name="City Bank", current_balance=Decimal("0"))
        db.add(bank)
        db.commit()

        def failing_commit():
            raise OperationalError("INSERT INTO audit_log", {}, Exception("disk full"))

        monkeypatch.setattr(db, "commit", failing_commit)
        assert audit_crud.record_audit_event(db, bank, AuditAction.UPDATED, performed_by=USER) is None
