import pytest

API = "/api/v1"
PDF = ("document.pdf", b"%PDF-1.4 fake", "application/pdf")


def _upload_contract(client):
    response = client.post(f"{API}/contracts/upload", files={"file": ("contract.pdf", PDF[1], PDF[2])})
    assert response.status_code == 201, response.text
    return response.json()


def _upload_invoice(client, contract_id=None):
    data = {"contract_id": contract_id} if contract_id else {}
    response = client.post(f"{API}/invoices/upload", files={"file": ("invoice.pdf", PDF[1], PDF[2])}, data=data)
    assert response.status_code == 201, response.text
    return response.json()


def test_root(client):
    assert client.get("/").json()["message"] == "Welcome to Invoice Guard API"


class TestUploads:
    def test_contract_upload_and_lookup(self, client):
        contract = _upload_contract(client)
        assert contract["contract_number"] == "CONTRACT-001"
        assert len(contract["billable_items"]) == 3

        assert client.get(f"{API}/contracts/{contract['id']}").json()["vendor_name"] == "MediSupply Corp"
        assert [c["id"] for c in client.get(f"{API}/contracts/").json()] == [contract["id"]]

    def test_invoice_upload_linked_to_contract(self, client):
        contract = _upload_contract(client)
        invoice = _upload_invoice(client, contract["id"])
        assert invoice["contract_id"] == contract["id"]
        assert invoice["total_amount"] == 5925.0

    def test_invoice_upload_with_unknown_contract(self, client):
        response = client.post(f"{API}/invoices/upload", files={"file": PDF}, data={"contract_id": "missing"})
        assert response.status_code == 404

    def test_wrong_extension_rejected(self, client):
        response = client.post(f"{API}/contracts/upload", files={"file": ("contract.docx", b"data", "text/plain")})
        assert response.status_code == 400

    def test_empty_file_rejected(self, client):
        response = client.post(f"{API}/contracts/upload", files={"file": ("contract.pdf", b"", "application/pdf")})
        assert response.status_code == 400

    def test_extraction_failure_is_422_and_tracked(self, client):
        response = client.post(f"{API}/invoices/upload", files={"file": ("bad.pdf", b"broken", "application/pdf")})
        assert response.status_code == 422

        statuses = client.get(f"{API}/documents/status").json()
        assert [(s["file_name"], s["status"]) for s in statuses] == [("bad.pdf", "Failed")]
        assert client.get(f"{API}/invoices/").json() == []

    def test_successful_upload_is_completed(self, client):
        _upload_contract(client)
        (status,) = client.get(f"{API}/documents/status").json()
        assert status["status"] == "Completed"
        assert status["progress"] == 100

    def test_contract_update(self, client):
        contract = _upload_contract(client)
        response = client.put(f"{API}/contracts/{contract['id']}", json={"payment_terms": "Net 45"})
        assert response.status_code == 200
        assert response.json()["payment_terms"] == "Net 45"
        assert response.json()["vendor_name"] == "MediSupply Corp"
        assert client.put(f"{API}/contracts/nope", json={"vendor_name": "X"}).status_code == 404

    def test_missing_records(self, client):
        assert client.get(f"{API}/contracts/nope").status_code == 404
        assert client.get(f"{API}/invoices/nope").status_code == 404
        assert client.delete(f"{API}/invoices/nope").status_code == 404


class TestValidations:
    def test_validate_with_linked_contract(self, client):
        contract = _upload_contract(client)
        invoice = _upload_invoice(client, contract["id"])

        response = client.post(f"{API}/validations/", json={"invoice_id": invoice["id"]})
        assert response.status_code == 200, response.text
        result = response.json()

        assert result["invoice_id"] == invoice["id"]
        assert result["contract_id"] == contract["id"]
        assert result["overall_match"] is False
        assert result["total_variance"] == pytest.approx(450.0)
        assert [e["type"] for e in result["exceptions"]] == ["price_mismatch", "unauthorized_item"]
        proof = result["exceptions"][0]["proof_data"]
        assert proof["invoice_highlight"] == {"x": 50.0, "y": 200.0, "width": 175.0, "height": 12.0}
        assert proof["contract_page_number"] == 7

    def test_validation_history_and_exceptions(self, client):
        contract = _upload_contract(client)
        invoice = _upload_invoice(client)
        body = {"invoice_id": invoice["id"], "contract_id": contract["id"]}
        client.post(f"{API}/validations/", json=body)
        client.post(f"{API}/validations/", json=body)

        (summary,) = client.get(f"{API}/validations/").json()
        assert summary["overall_status"] == "Under Review"
        assert summary["vendor_name"] == "MediSupply Corp"
        assert summary["exception_count"] == 2

        detail = client.get(f"{API}/validations/{summary['id']}").json()
        assert detail["compliant_line_items"] == 1

        exceptions = client.get(f"{API}/validations/{summary['id']}/exceptions").json()
        assert sorted(e["exception_type"] for e in exceptions) == ["Business Rule", "Price Mismatch"]

    def test_unlinked_invoice_needs_contract(self, client):
        invoice = _upload_invoice(client)
        response = client.post(f"{API}/validations/", json={"invoice_id": invoice["id"]})
        assert response.status_code == 400

    def test_unknown_records(self, client):
        response = client.post(f"{API}/validations/", json={"invoice_id": "nope", "contract_id": "nope"})
        assert response.status_code == 404
        assert client.get(f"{API}/validations/nope").status_code == 404
        assert client.get(f"{API}/validations/nope/exceptions").status_code == 404

    def test_batch(self, client):
        contract = _upload_contract(client)
        first = _upload_invoice(client, contract["id"])
        second = _upload_invoice(client, contract["id"])
        response = client.post(
            f"{API}/validations/batch",
            json={"pairs": [{"invoice_id": first["id"]}, {"invoice_id": second["id"]}]},
        )
        assert response.status_code == 200
        assert [r["invoice_id"] for r in response.json()] == [first["id"], second["id"]]
        assert len(client.get(f"{API}/validations/").json()) == 2

    def test_deleting_invoice_removes_validations(self, client):
        contract = _upload_contract(client)
        invoice = _upload_invoice(client, contract["id"])
        client.post(f"{API}/validations/", json={"invoice_id": invoice["id"]})

        assert client.delete(f"{API}/invoices/{invoice['id']}").status_code == 200
        assert client.get(f"{API}/validations/").json() == []

    def test_review_workflow(self, client):
        contract = _upload_contract(client)
        invoice = _upload_invoice(client, contract["id"])
        client.post(f"{API}/validations/", json={"invoice_id": invoice["id"]})
        (summary,) = client.get(f"{API}/validations/").json()
        exceptions = client.get(f"{API}/validations/{summary['id']}/exceptions").json()

        response = client.patch(
            f"{API}/validations/{summary['id']}/exceptions/{exceptions[0]['id']}",
            json={"resolved": True},
        )
        assert response.status_code == 200
        assert response.json()["resolved"] is True

        response = client.patch(f"{API}/validations/{summary['id']}/status", json={"status": "Rejected"})
        assert response.status_code == 200
        assert response.json()["overall_status"] == "Rejected"
        assert response.json()["reviewed_at"] is not None

        (summary,) = client.get(f"{API}/validations/").json()
        assert summary["overall_status"] == "Rejected"
        resolved = [e["resolved"] for e in client.get(f"{API}/validations/{summary['id']}/exceptions").json()]
        assert sorted(resolved) == [False, True]

    def test_review_errors(self, client):
        contract = _upload_contract(client)
        invoice = _upload_invoice(client, contract["id"])
        client.post(f"{API}/validations/", json={"invoice_id": invoice["id"]})
        (summary,) = client.get(f"{API}/validations/").json()

        assert client.patch(f"{API}/validations/{summary['id']}/status",
                            json={"status": "Pending"}).status_code == 422
        assert client.patch(f"{API}/validations/nope/status",
                            json={"status": "Approved"}).status_code == 404
        assert client.patch(f"{API}/validations/{summary['id']}/exceptions/nope",
                            json={"resolved": True}).status_code == 404

    def test_evidence_lookup(self, client, invoice_tokens):
        response = client.post(
            f"{API}/validations/evidence",
            json={
                "tokens": [token.model_dump() for token in invoice_tokens],
                "search_text": "Unlisted Service",
                "page": 3,
            },
        )
        assert response.json() == {"x": 50.0, "y": 90.0, "width": 85.0, "height": 12.0}


def test_analysis_report(client):
    contract = _upload_contract(client)
    invoice = _upload_invoice(client, contract["id"])
    client.post(f"{API}/validations/", json={"invoice_id": invoice["id"]})

    report = client.get(f"{API}/reports/analysis").json()
    assert report["summary"]["total_invoices_processed"] == 1
    assert report["summary"]["total_savings"] == 450.0
    assert report["top_vendor_issues"][0]["vendor_name"] == "MediSupply Corp"
