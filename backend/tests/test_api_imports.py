"""Tests for import API endpoints."""

STATEMENT = (
    "Date,Counter Party,Reference,Type,Amount (GBP),Balance (GBP)\n"
    "01/05/2024,TFL TRAVEL,,CARD,-45.00,955.00\n"
    "02/05/2024,Client A Ltd,INV-001,FASTER PAYMENT,1200.00,2155.00\n"
)


def _upload(client, content=STATEMENT, filename="statement.csv"):
    return client.post(
        "/api/v1/imports/upload",
        files={"file": (filename, content.encode("utf-8"), "text/csv")}
    )


class TestImportsAPI:
    """Test the upload, confirm and status flow."""

    def test_upload_preview(self, client, import_dirs):
        response = _upload(client)
        assert response.status_code == 200
        data = response.json()
        assert data["row_count"] == 2
        assert data["detected_format"]["description_col"] == 1

    def test_upload_rejects_extension(self, client, import_dirs):
        response = _upload(client, filename="statement.pdf")
        assert response.status_code == 400

    def test_confirm_and_history(self, client, import_dirs):
        import_id = _upload(client).json()["import_id"]

        response = client.post(f"/api/v1/imports/{import_id}/confirm", json={})
        assert response.status_code == 200
        assert response.json()["transactions_imported"] == 2

        status = client.get(f"/api/v1/imports/{import_id}/status").json()
        assert status["status"] == "completed"

        history = client.get("/api/v1/imports/history").json()
        assert history[0]["id"] == import_id
        assert history[0]["source"] == "csv"

        transactions = client.get("/api/v1/transactions").json()
        assert transactions["total"] == 2
        assert all(t["tags"] == ["import:csv"] for t in transactions["items"])

    def test_reimport_reports_skipped(self, client, import_dirs):
        first = _upload(client).json()["import_id"]
        client.post(f"/api/v1/imports/{first}/confirm", json={})
        second = _upload(client).json()["import_id"]

        data = client.post(f"/api/v1/imports/{second}/confirm", json={}).json()

        assert data["transactions_imported"] == 0
        assert data["transactions_skipped"] == 2
        assert len(data["skipped_transactions"]) == 2

    def test_confirm_unknown_import(self, client, import_dirs):
        response = client.post("/api/v1/imports/missing/confirm", json={})
        assert response.status_code == 404

    def test_confirm_unrecognised_layout(self, client, import_dirs):
        import_id = _upload(client, "When,What,How much\n2024-05-01,X,1\n").json()["import_id"]
        response = client.post(f"/api/v1/imports/{import_id}/confirm", json={})
        assert response.status_code == 400

    def test_status_unknown(self, client, import_dirs):
        assert client.get("/api/v1/imports/missing/status").status_code == 404
