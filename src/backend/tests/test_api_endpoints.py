"""
Tests for the HTTP API.

Runs the FastAPI app in-process with TestClient; no server needed.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from datetime import date, timedelta
import pytest
from fastapi.testclient import TestClient

from receipt_ocr.main import app

TEST_USER_ID = "00000000-0000-0000-0000-000000000000"

RECENT = date.today() - timedelta(days=30)
RECEIPT_TEXT = f"SuperMart\n{RECENT.isoformat()}\nMilk $3.50\nBread $2.25\nTotal $5.75"


@pytest.fixture
def client():
    return TestClient(app)


class TestService:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestParseEndpoint:

    def test_parse(self, client):
        response = client.post("/receipts/parse", json={"text": RECEIPT_TEXT, "engine_confidence": 88})
        assert response.status_code == 200
        data = response.json()
        assert data["store_name"] == "SuperMart"
        assert data["date"] == RECENT.isoformat()
        assert data["total"] == "5.75"
        assert [item["name"] for item in data["items"]] == ["Milk", "Bread"]
        assert data["ocr_confidence"] == 88
        assert data["needs_review"] is False
        assert data["review_reason"] is None

    def test_review_flags(self, client):
        response = client.post("/receipts/parse", json={"text": "RANDOM NOISE 123"})
        assert response.status_code == 200
        data = response.json()
        assert data["store_name"] == "Unknown Store"
        assert data["date"] == date.today().isoformat()
        assert data["needs_review"] is True
        assert data["review_reason"] == "No date found in receipt.; Store name not detected."

    def test_engine_confidences(self, client):
        response = client.post("/receipts/parse", json={
            "text": RECEIPT_TEXT,
            "engine": "textract",
            "engine_confidences": [90, 70],
        })
        assert response.status_code == 200
        assert response.json()["ocr_confidence"] == 80

    def test_empty_text_is_bad_request(self, client):
        response = client.post("/receipts/parse", json={"text": "  \n "})
        assert response.status_code == 400
        assert response.json()["detail"] == "No text extracted from receipt"

    def test_missing_text_is_unprocessable(self, client):
        response = client.post("/receipts/parse", json={})
        assert response.status_code == 422

    def test_confidence_out_of_range(self, client):
        response = client.post("/receipts/parse", json={"text": RECEIPT_TEXT, "engine_confidence": 150})
        assert response.status_code == 422

    def test_unknown_engine(self, client):
        response = client.post("/receipts/parse", json={
            "text": RECEIPT_TEXT,
            "engine": "abbyy",
            "engine_confidences": [0.5],
        })
        assert response.status_code == 422


class TestTransactionEndpoint:

    def test_transaction_payload(self, client):
        response = client.post("/receipts/transaction", json={
            "text": RECEIPT_TEXT,
            "user_id": TEST_USER_ID,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == TEST_USER_ID
        assert data["type"] == "expense"
        assert data["amount"] == "5.75"
        assert data["description"] == "Purchase at SuperMart"
        assert len(data["receipt"]["items"]) == 2

    def test_requires_user(self, client):
        response = client.post("/receipts/transaction", json={"text": RECEIPT_TEXT})
        assert response.status_code == 422

    def test_empty_text_is_bad_request(self, client):
        response = client.post("/receipts/transaction", json={"text": "", "user_id": TEST_USER_ID})
        assert response.status_code == 400
