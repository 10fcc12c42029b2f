from decimal import Decimal

from conftest import USER


def _entry_payload(accounts, amount=500, description="Cash sale"):
    return {
        "date": "2024-03-15",
        "description": description,
        "items": [
            {"account_id": accounts["cash"].id, "debit": amount, "credit": 0},
            {"account_id": accounts["revenue"].id, "debit": 0, "credit": amount},
        ],
    }


class TestJournalEntryEndpoints:

    def test_post_reverse_and_guard(self, client, accounts):
        response = client.post("/journal-entries/", json=_entry_payload(accounts))
        assert response.status_code == 201
        body = response.json()
        assert body["entry_number"] == "JE-000001"
        assert Decimal(body["total_debit"]) == Decimal("500")
        assert body["is_balanced"] is True
        assert body["created_by"] == USER
        assert {item["account_code"] for item in body["items"]} == {"1000", "4000"}
        entry_id = body["id"]

        response = client.post(f"/journal-entries/{entry_id}/reverse", json={"reason": "duplicate"})
        assert response.status_code == 201
        assert response.json()["entry_number"] == "JE-000002"
        assert response.json()["reversal_of_entry_id"] == entry_id

        response = client.put(f"/journal-entries/{entry_id}", json={"items": _entry_payload(accounts, 10)["items"]})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IMMUTABLE_ENTRY"

        response = client.post(f"/journal-entries/{entry_id}/reverse", json={"reason": "again"})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "ALREADY_REVERSED"

        assert client.get("/journal-entries/next-number").json() == {"next_entry_number": "JE-000003"}
        assert client.get(f"/journal-entries/{entry_id}").json()["is_reversed"] is True

    def test_unbalanced_entry_is_422_with_amounts(self, client, accounts):
        payload = _entry_payload(accounts)
        payload["items"][1]["credit"] = 499
        response = client.post("/journal-entries/", json=payload)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "UNBALANCED_ENTRY"
        assert Decimal(detail["difference"]) == Decimal("1")

    def test_unknown_account_is_422(self, client, accounts):
        payload = _entry_payload(accounts)
        payload["items"][0]["account_id"] = 9999
        response = client.post("/journal-entries/", json=payload)
        assert response.status_code == 422
        assert response.json()["detail"] == {
            "code": "UNKNOWN_ACCOUNT",
            "message": "Account with id 9999 not found",
            "account_id": 9999,
        }

    def test_update_delete_and_missing(self, client, accounts):
        entry_id = client.post("/journal-entries/", json=_entry_payload(accounts)).json()["id"]

        response = client.put(f"/journal-entries/{entry_id}", json={"description": "Fixed", "items": _entry_payload(accounts, 250)["items"]})
        assert response.status_code == 200
        assert Decimal(response.json()["total_credit"]) == Decimal("250")

        response = client.delete(f"/journal-entries/{entry_id}")
        assert response.status_code == 200
        assert "JE-000001" in response.json()["message"]

        assert client.get(f"/journal-entries/{entry_id}").status_code == 404
        assert client.delete(f"/journal-entries/{entry_id}").json()["detail"]["code"] == "ENTRY_NOT_FOUND"

    def test_list_statistics_and_ledger(self, client, accounts):
        client.post("/journal-entries/", json=_entry_payload(accounts, 100, "Egg sale"))
        client.post("/journal-entries/", json=_entry_payload(accounts, 40, "Manure sale"))

        listed = client.get("/journal-entries/", params={"search": "manure"}).json()
        assert [e["entry_number"] for e in listed] == ["JE-000002"]

        stats = client.get("/journal-entries/statistics").json()
        assert stats["total_entries"] == 2
        assert Decimal(stats["total_debit_amount"]) == Decimal("140")

        ledger = client.get(f"/journal-entries/by-account/{accounts['cash'].id}").json()
        assert ledger["account"]["code"] == "1000"
        assert Decimal(ledger["account"]["balance"]) == Decimal("140")
        assert len(ledger["entries"]) == 2

    def test_missing_tenant_header(self, client, accounts):
        response = client.get("/journal-entries/", headers={"X-Tenant-ID": "  "})
        assert response.status_code == 400


class TestChartOfAccountsEndpoints:

    def test_create_duplicate_and_deactivate(self, client, accounts):
        response = client.post("/chart-of-accounts/", json={"code": "1500", "name": "Prepaid Rent", "account_type": "asset"})
        assert response.status_code == 201
        account_id = response.json()["id"]
        assert Decimal(response.json()["balance"]) == Decimal("0")

        duplicate = client.post("/chart-of-accounts/", json={"code": "1500", "name": "Other", "account_type": "asset"})
        assert duplicate.status_code == 400

        assert client.delete(f"/chart-of-accounts/{account_id}").status_code == 204
        codes = [a["code"] for a in client.get("/chart-of-accounts/").json()]
        assert "1500" not in codes

    def test_account_with_postings_keeps_its_type(self, client, accounts):
        client.post("/journal-entries/", json=_entry_payload(accounts))
        response = client.patch(f"/chart-of-accounts/{accounts['cash'].id}", json={"account_type": "expense"})
        assert response.status_code == 400
        assert client.delete(f"/chart-of-accounts/{accounts['cash'].id}").status_code == 400


class TestPaymentEndpoints:

    def test_preview_process_and_approve(self, client, accounts, supplier, bank, purchase_order):
        base = f"/purchase-orders/{purchase_order.id}/payments"

        preview = client.get(f"{base}/preview", params={"bank_id": bank.id}).json()
        assert Decimal(preview["breakdown"]["from_credit"]) == Decimal("400")
        assert Decimal(preview["breakdown"]["from_bank"]) == Decimal("600")
        assert Decimal(preview["bank_balance"]["final_balance"]) == Decimal("4400")
        assert preview["validation"]["can_proceed"] is True
        assert preview["description"].startswith("Payment for PO-12")

        response = client.post(f"{base}/", json={"bank_id": bank.id})
        assert response.status_code == 201
        result = response.json()
        assert result["wallet_expense"]["status"] == "pending_approval"
        bank_expense_id = result["bank_expense"]["id"]

        pending = client.get("/expenses/", params={"status": "pending_approval"}).json()
        assert len(pending) == 2

        approved = client.post(f"/expenses/{bank_expense_id}/approve")
        assert approved.status_code == 200
        assert approved.json()["status"] == "posted"
        entry_id = approved.json()["journal_entry_id"]

        response = client.delete(f"/journal-entries/{entry_id}")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IMMUTABLE_ENTRY"
        response = client.put(f"/journal-entries/{entry_id}", json={"items": [
            {"account_id": accounts["payable"].id, "debit": 1, "credit": 0},
            {"account_id": accounts["bank"].id, "debit": 0, "credit": 1},
        ]})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IMMUTABLE_ENTRY"

        again = client.post(f"/expenses/{bank_expense_id}/approve")
        assert again.status_code == 400
        assert again.json()["detail"]["code"] == "INVALID_STATE_TRANSITION"

    def test_drafts_held_back_are_submitted_separately(self, client, accounts, supplier, bank, purchase_order):
        base = f"/purchase-orders/{purchase_order.id}/payments"
        result = client.post(f"{base}/", json={"bank_id": bank.id, "submit_for_approval": False}).json()
        wallet_id = result["wallet_expense"]["id"]
        assert result["wallet_expense"]["status"] == "draft"
        assert result["bank_expense"]["status"] == "draft"

        assert client.post(f"/expenses/{wallet_id}/approve").status_code == 400
        submitted = client.post(f"/expenses/{wallet_id}/submit")
        assert submitted.status_code == 200
        assert submitted.json()["status"] == "pending_approval"
        assert client.post(f"/expenses/{wallet_id}/approve").json()["status"] == "posted"

    def test_unlinked_bank_is_rejected(self, client, db, accounts, supplier, bank, purchase_order):
        bank.chart_of_account_id = None
        db.commit()

        response = client.post(f"/purchase-orders/{purchase_order.id}/payments/", json={"bank_id": bank.id})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "MISSING_CHART_OF_ACCOUNT_LINK"
        assert response.json()["detail"]["message"] == "Bank account (City Bank) is not linked to a chart of account"

    def test_wallet_top_up_and_ledger(self, client, supplier):
        response = client.post(f"/suppliers/{supplier.id}/wallet/credit", json={"amount": "250.00", "reason": "Advance"})
        assert response.status_code == 201
        assert Decimal(response.json()["balance"]) == Decimal("650")

        ledger = client.get(f"/suppliers/{supplier.id}/ledger").json()
        assert [entry["type"] for entry in ledger] == ["credit"]
        assert client.get("/suppliers/999/ledger").status_code == 404


class TestAuditEndpoints:

    def test_report_and_read_history(self, client, accounts):
        response = client.post("/audit-logs/", json={
            "entity_type": "Employee",
            "entity_id": 9,
            "action": "updated",
            "old_values": {"salary": "1000.00"},
            "new_values": {"salary": "1200.00"},
            "metadata": {"source": "daily-report"},
        })
        assert response.status_code == 201
        assert response.json()["changed_fields"] == ["salary"]
        metadata = response.json()["metadata"]
        assert metadata["source"] == "daily-report"
        assert metadata["connection"] == "sqlite"
        assert metadata["table"] == "audit_log"
        assert response.json()["performed_by"] == USER

        history = client.get("/audit-logs/Employee/9").json()
        assert len(history) == 1
        assert client.get("/audit-logs/", params={"action": "updated"}).json()[0]["entity_id"] == 9


class TestBankEndpoints:

    def test_create_bank_is_audited(self, client, accounts):
        response = client.post("/banks/", json={
            "name": "Dutch Bangla",
            "account_number": "77-001",
            "chart_of_account_id": accounts["bank"].id,
            "opening_balance": "1200.00",
        })
        assert response.status_code == 201
        bank_id = response.json()["id"]
        assert Decimal(response.json()["current_balance"]) == Decimal("1200")

        history = client.get(f"/audit-logs/Bank/{bank_id}").json()
        assert [record["action"] for record in history] == ["created"]

    def test_bank_with_foreign_account_is_refused(self, client, accounts):
        response = client.post("/banks/", json={"name": "Ghost Bank", "chart_of_account_id": 9999})
        assert response.status_code == 400


class TestFinancialSettingsEndpoints:

    def test_defaults_resolve_to_existing_accounts(self, client, accounts):
        settings = client.get("/financial-settings/").json()
        assert settings["is_initialized"] is True
        assert settings["default_cash_account_id"] == accounts["cash"].id
        assert settings["default_accounts_payable_account_id"] == accounts["payable"].id

        resolved = client.get("/financial-settings/accounts").json()
        assert resolved["supplier_advance"]["code"] == "1300"

    def test_update_is_audited(self, client, accounts):
        client.get("/financial-settings/")
        response = client.patch("/financial-settings/", json={"default_cash_account_id": accounts["bank"].id})
        assert response.status_code == 200
        assert response.json()["default_cash_account_id"] == accounts["bank"].id

        history = client.get("/audit-logs/", params={"entity_type": "FinancialSettings"}).json()
        assert history[0]["changed_fields"] == ["default_cash_account_id"]
        assert history[0]["performed_by"] == USER
        assert history[0]["metadata"]["table"] == "financial_settings"

    def test_default_cannot_be_cleared(self, client, accounts):
        response = client.patch("/financial-settings/", json={"default_cash_account_id": None})
        assert response.status_code == 400
