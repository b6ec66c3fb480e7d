"""Integration tests for API endpoints"""

import inspect
import json
import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from fintrack.api.dependencies import get_llm_api_key, get_llm_client
from fintrack.api.v1 import fraud
from fintrack.domain.models import DatasetPatterns, PretrainedFraudPattern
from fintrack.infrastructure.datasets.loader import DatasetPatternStore

pytestmark = pytest.mark.integration


class StubLLMClient:
    def __init__(self, reply: str):
        self.reply = reply

    async def generate_text(self, prompt: str) -> str:
        return self.reply


def iso_now(offset: timedelta = timedelta()) -> str:
    return (datetime.now(timezone.utc) + offset).isoformat()


def post_transaction(client: TestClient, **overrides):
    body = {
        "user_id": "user_1",
        "date": iso_now(),
        "amount": 4.50,
        "merchant": "Starbucks Coffee",
        "type": "expense",
    }
    body.update(overrides)
    return client.post("/v1/transactions", json=body)


@pytest.fixture
def no_llm(client: TestClient):
    client.app.dependency_overrides[get_llm_api_key] = lambda: None
    return client


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fintrack_fraud_check" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


# Users

def test_user_lifecycle(client: TestClient):
    response = client.post(
        "/v1/users",
        json={"id": "alice", "username": "alice", "email": "alice@example.com", "monthly_income": 4000},
    )
    assert response.status_code == 201
    assert response.json()["id"] == "alice"

    duplicate = client.post("/v1/users", json={"id": "alice", "username": "alice2", "email": "a2@example.com"})
    assert duplicate.status_code == 409

    fetched = client.get("/v1/users/alice")
    assert fetched.status_code == 200
    assert float(fetched.json()["monthly_income"]) == 4000

    updated = client.patch("/v1/users/alice", json={"monthly_income": 5000})
    assert updated.status_code == 200
    assert float(updated.json()["monthly_income"]) == 5000

    # Income change triggers a health calculation (neutral with no transactions)
    health = client.get("/v1/financial-health/alice")
    assert health.status_code == 200
    assert health.json()["score"] == 50


def test_get_user_not_found(client: TestClient):
    assert client.get("/v1/users/nobody").status_code == 404
    assert client.patch("/v1/users/nobody", json={"username": "x"}).status_code == 404


def test_create_user_rejects_taken_username_and_email(client: TestClient):
    client.post("/v1/users", json={"id": "u1", "username": "bob", "email": "bob@example.com"})

    taken_username = client.post("/v1/users", json={"id": "u2", "username": "bob", "email": "b2@example.com"})
    assert taken_username.status_code == 409

    taken_email = client.post("/v1/users", json={"id": "u3", "username": "bobby", "email": "bob@example.com"})
    assert taken_email.status_code == 409


def test_transaction_for_id_matching_existing_username(client: TestClient):
    """An unregistered id equal to someone else's username still gets a demo user"""
    client.post("/v1/users", json={"id": "u1", "username": "bob", "email": "bob@example.com"})

    response = post_transaction(client, user_id="bob")
    assert response.status_code == 201

    demo_user = client.get("/v1/users/bob").json()
    assert demo_user["username"] == "demo_bob_1"
    assert client.get("/v1/users/u1").json()["username"] == "bob"


def test_upload_for_id_matching_existing_username(client: TestClient):
    client.post("/v1/users", json={"id": "u1", "username": "carol", "email": "carol@demo.local"})

    response = client.post(
        "/v1/transactions/upload",
        data={"user_id": "carol"},
        files={"file": ("transactions.csv", "merchant,amount\nCorner Store,12.00\n", "text/csv")},
    )

    assert response.status_code == 201
    assert response.json()["count"] == 1
    assert client.get("/v1/users/carol").json()["email"] == "demo_carol_1@demo.local"


# Transactions

def test_create_transaction_auto_categorizes(client: TestClient):
    response = post_transaction(client)

    assert response.status_code == 201
    data = response.json()
    assert data["transaction"]["category"] == "Food & Dining"
    assert data["transaction"]["amount"] == "4.50"
    assert data["fraud_check"] == {"is_fraudulent": False, "risk_score": 0, "reason": None}

    # Unknown users are created on the fly
    assert client.get("/v1/users/user_1").status_code == 200


def test_explicit_category_is_kept(client: TestClient):
    response = post_transaction(client, merchant="Starbucks Coffee", category="Business Meals")
    assert response.json()["transaction"]["category"] == "Business Meals"


def test_duplicate_transaction_is_flagged(client: TestClient):
    first = post_transaction(client, merchant="Gadget Hub", amount=49.99)
    assert first.json()["fraud_check"]["is_fraudulent"] is False

    second = post_transaction(client, merchant="Gadget Hub", amount=49.99)
    data = second.json()

    assert second.status_code == 201
    assert data["fraud_check"]["is_fraudulent"] is True
    assert data["fraud_check"]["risk_score"] == 90
    assert data["transaction"]["is_fraudulent"] is True
    assert data["transaction"]["fraud_reason"] == "Potential duplicate transaction"


def test_large_transaction_scored_but_not_flagged(client: TestClient):
    response = post_transaction(client, merchant="Electronics Store", amount=60000)
    data = response.json()

    assert data["fraud_check"]["risk_score"] == 55
    assert data["fraud_check"]["reason"] is None
    assert data["transaction"]["is_fraudulent"] is False
    assert data["transaction"]["fraud_reason"] is None


def test_create_transaction_validation(client: TestClient):
    response = post_transaction(client, amount=-5)
    assert response.status_code == 422

    response = post_transaction(client, type="refund")
    assert response.status_code == 422


def test_list_transactions_newest_first_and_range(client: TestClient):
    post_transaction(client, merchant="Old Book Store", date=iso_now(timedelta(days=-10)))
    post_transaction(client, merchant="Cinema City", date=iso_now(timedelta(days=-1)))

    response = client.get("/v1/transactions/user_1")
    assert response.status_code == 200
    assert [t["merchant"] for t in response.json()] == ["Cinema City", "Old Book Store"]

    start = (datetime.now(timezone.utc) - timedelta(days=3)).replace(tzinfo=None).isoformat()
    end = datetime.now(timezone.utc).replace(tzinfo=None).isoformat()
    ranged = client.get("/v1/transactions/user_1", params={"start_date": start, "end_date": end})
    assert [t["merchant"] for t in ranged.json()] == ["Cinema City"]


def test_upload_transactions_csv(client: TestClient):
    csv_content = (
        "merchant,amount,description\n"
        "Gadget Hub,49.99,Card purchase\n"
        "Gadget Hub,49.99,Card purchase\n"
        "ACME Salary Deposit,2500,\n"
    )
    response = client.post(
        "/v1/transactions/upload",
        data={"user_id": "csv_user"},
        files={"file": ("transactions.csv", csv_content, "text/csv")},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["count"] == 3
    assert data["fraud_count"] == 1
    assert data["fraudulent"][0]["fraud_reason"] == "Potential duplicate transaction"
    assert [t["type"] for t in data["transactions"]] == ["expense", "expense", "income"]

    listed = client.get("/v1/transactions/csv_user").json()
    assert len(listed) == 3


def test_upload_rejects_invalid_amount(client: TestClient):
    response = client.post(
        "/v1/transactions/upload",
        data={"user_id": "csv_user"},
        files={"file": ("transactions.csv", "merchant,amount\nGadget Hub,lots\n", "text/csv")},
    )

    assert response.status_code == 400
    assert client.get("/v1/transactions/csv_user").json() == []


def test_update_and_delete_transaction(client: TestClient):
    created = post_transaction(client).json()["transaction"]

    updated = client.patch(f"/v1/transactions/{created['id']}", json={"amount": 12.25, "location": "Seattle"})
    assert updated.status_code == 200
    assert updated.json()["amount"] == "12.25"
    assert updated.json()["location"] == "Seattle"

    deleted = client.delete(f"/v1/transactions/{created['id']}")
    assert deleted.status_code == 204
    assert client.get("/v1/transactions/user_1").json() == []


def test_update_transaction_not_found(client: TestClient):
    fake_uuid = "00000000-0000-0000-0000-000000000000"
    assert client.patch(f"/v1/transactions/{fake_uuid}", json={"amount": 1}).status_code == 404
    assert client.delete("/v1/transactions/not-a-uuid").status_code == 404


# Budgets and goals

def test_budget_crud_soft_delete(client: TestClient):
    created = client.post("/v1/budgets", json={"user_id": "user_1", "category": "Groceries", "amount": 500})
    assert created.status_code == 201
    budget_id = created.json()["id"]
    assert created.json()["period"] == "monthly"

    updated = client.patch(f"/v1/budgets/{budget_id}", json={"amount": 650})
    assert float(updated.json()["amount"]) == 650

    assert len(client.get("/v1/budgets/user_1").json()) == 1
    assert client.delete(f"/v1/budgets/{budget_id}").status_code == 204
    assert client.get("/v1/budgets/user_1").json() == []
    assert client.patch(f"/v1/budgets/{budget_id}", json={"amount": 1}).status_code == 404


def test_goal_crud_soft_delete(client: TestClient):
    created = client.post(
        "/v1/goals",
        json={"user_id": "user_1", "name": "Rainy day", "target_amount": 10000, "type": "emergency_fund"},
    )
    assert created.status_code == 201
    goal = created.json()
    assert goal["status"] == "active"
    assert float(goal["current_amount"]) == 0

    updated = client.patch(f"/v1/goals/{goal['id']}", json={"current_amount": 2500})
    assert float(updated.json()["current_amount"]) == 2500

    assert client.delete(f"/v1/goals/{goal['id']}").status_code == 204
    assert client.get("/v1/goals/user_1").json() == []
    assert client.delete(f"/v1/goals/{goal['id']}").status_code == 404


def test_goal_type_is_validated(client: TestClient):
    response = client.post(
        "/v1/goals",
        json={"user_id": "user_1", "name": "Boat", "target_amount": 10000, "type": "boat"},
    )
    assert response.status_code == 422


# Health and analytics

def test_financial_health_not_calculated(client: TestClient):
    assert client.get("/v1/financial-health/nobody").status_code == 404


def test_financial_health_follows_transactions(client: TestClient):
    client.post(
        "/v1/users",
        json={"id": "bob", "username": "bob", "email": "bob@example.com", "monthly_income": 3000},
    )
    post_transaction(client, user_id="bob", merchant="Employer", amount=3000, type="income")

    health = client.get("/v1/financial-health/bob").json()
    # One paycheck, no spending: stability 20, no expenses so liquidity 0
    assert health["income_stability"] == 20
    assert health["liquidity"] == 0
    assert health["score"] == 69


def test_dashboard_and_category_spending(client: TestClient):
    post_transaction(client, merchant="Starbucks Coffee", amount=4.50)
    post_transaction(client, merchant="Whole Foods", amount=120)
    post_transaction(client, merchant="Lyft Ride", amount=30)
    post_transaction(client, merchant="Employer", amount=3000, type="income")
    client.post("/v1/budgets", json={"user_id": "user_1", "category": "Groceries", "amount": 500})

    dashboard = client.get("/v1/analytics/dashboard/user_1").json()
    assert dashboard["total_spend"] == pytest.approx(154.5)
    assert dashboard["total_income"] == pytest.approx(3000)
    assert dashboard["savings"] == pytest.approx(2845.5)
    assert dashboard["budget_count"] == 1
    assert dashboard["transaction_count"] == 4
    assert dashboard["fraud_alerts"] == 0

    spending = client.get("/v1/analytics/spending-by-category/user_1").json()
    assert [s["category"] for s in spending] == ["Food & Dining", "Transportation"]
    assert spending[0]["amount"] == pytest.approx(124.5)


# Fraud analysis, datasets and system status

def test_fraud_analysis_rule_based_without_key(no_llm: TestClient):
    post_transaction(no_llm, merchant="Gadget Hub", amount=49.99)
    post_transaction(no_llm, merchant="Gadget Hub", amount=49.99)

    response = no_llm.get("/v1/fraud-analysis/user_1")

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "rule_based"
    assert data["debit_credit_analysis"]["debit_count"] == 2
    assert "Flagged transactions detected by fraud detector" in [p["pattern"] for p in data["fraud_patterns"]]
    assert len(data["recommendations"]) >= 5


def test_fraud_analysis_uses_llm_reply(client: TestClient):
    reply = json.dumps({"summary": "All good", "patterns": [], "riskScore": 5, "recommendations": ["Keep it up"]})
    client.app.dependency_overrides[get_llm_api_key] = lambda: "test-key"
    client.app.dependency_overrides[get_llm_client] = lambda: StubLLMClient(reply)
    post_transaction(client)

    data = client.get("/v1/fraud-analysis/user_1").json()

    assert data["source"] == "llm"
    assert data["summary"] == "All good"
    assert data["overall_fraud_risk"] == 5


def test_fraud_analysis_llm_garbage_falls_back(client: TestClient):
    client.app.dependency_overrides[get_llm_api_key] = lambda: "test-key"
    client.app.dependency_overrides[get_llm_client] = lambda: StubLLMClient("no json at all")

    response = client.get("/v1/fraud-analysis/user_1")

    assert response.status_code == 200
    assert response.json()["source"] == "rule_based"


def test_analyze_dataset_upload(client: TestClient):
    csv_content = (
        "TransactionID,isFraud,TransactionAmt,ProductCD,Merchant\n"
        "1,1,150000,W,Shady Shop\n"
        "2,0,40,S,Corner Store\n"
        "3,0,60,S,Corner Store\n"
        "4,0,20,S,Corner Store\n"
    )
    response = client.post(
        "/v1/datasets/analyze",
        files={"file": ("train_transaction.csv", csv_content, "text/csv")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_transactions"] == 4
    assert data["fraud_percentage"] == pytest.approx(25.0)
    assert data["top_merchants"][0]["name"] == "Shady Shop"
    assert data["amount_stats"]["median"] == 60.0


def test_analyze_dataset_rejects_empty_file(client: TestClient):
    response = client.post(
        "/v1/datasets/analyze",
        files={"file": ("empty.csv", "", "text/csv")},
    )
    assert response.status_code == 400


def test_analyze_dataset_runs_in_threadpool():
    # Sync routes run in the threadpool
    assert not inspect.iscoroutinefunction(fraud.analyze_dataset)


def test_system_status_without_dataset(no_llm: TestClient):
    data = no_llm.get("/v1/system/status").json()

    assert data["llm_configured"] is False
    assert data["dataset_trained"] is False
    assert data["dataset_info"] is None


def test_system_status_with_dataset(no_llm: TestClient, dataset_store: DatasetPatternStore):
    dataset_store.set(
        DatasetPatterns(
            patterns=[PretrainedFraudPattern("payment_W", 120, 88, "Withdrawal transaction")],
            total_transactions_analyzed=50000,
            fraud_percentage=3.499,
            last_updated=datetime(2024, 6, 1),
            high_risk_merchants=["Shady Shop", "Night Market"],
            common_fraud_indicators=["payment_W"],
        )
    )

    data = no_llm.get("/v1/system/status").json()

    assert data["dataset_trained"] is True
    assert data["dataset_info"]["patterns_learned"] == 1
    assert data["dataset_info"]["fraud_percentage"] == "3.50%"
    assert data["dataset_info"]["high_risk_merchants"] == 2
    assert "50000 transactions analyzed" in data["message"]
