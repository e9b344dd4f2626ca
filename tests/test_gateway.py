import base64

from src import tokens


def basic(client_id="test-client", secret="test-secret"):
    raw = f"{client_id}:{secret}".encode("utf-8")
    return {"Authorization": "BASIC " + base64.b64encode(raw).decode("ascii")}


def get_token(client):
    response = client.get("/v1/Authentication", headers=basic())
    assert response.status_code == 200
    return {"Authorization": "Bearer " + response.get_json()["token"]}


def test_issue_and_lookup_token(tmp_path):
    db_path = str(tmp_path / "tokens.db")
    tokens.init_db(db_path)

    token = tokens.issue_token("client-a", db_path, ttl_minutes=5)

    assert tokens.get_client_for_token(token, db_path) == "client-a"
    assert tokens.get_client_for_token("unknown", db_path) is None


def test_expired_token_is_rejected_and_cleaned(tmp_path):
    db_path = str(tmp_path / "tokens.db")
    tokens.init_db(db_path)

    # TTL 0 means immediately expired
    token = tokens.issue_token("client-a", db_path, ttl_minutes=0)
    assert tokens.get_client_for_token(token, db_path) is None

    tokens.clean_expired_tokens(db_path)
    assert tokens.get_client_for_token(token, db_path) is None


def test_authentication_issues_token(gateway_app):
    client = gateway_app.test_client()

    response = client.get("/v1/Authentication", headers=basic())

    body = response.get_json()
    assert response.status_code == 200
    assert body["schema"] == "JWT"
    assert body["expiresInMinutes"] == 20
    assert body["token"]


def test_authentication_rejects_bad_credentials(gateway_app):
    client = gateway_app.test_client()

    wrong = client.get("/v1/Authentication", headers=basic(secret="nope"))
    missing = client.get("/v1/Authentication")
    garbage = client.get("/v1/Authentication", headers={"Authorization": "BASIC !!!"})

    assert wrong.status_code == 401
    assert wrong.get_json()["message"] == "Invalid client credentials"
    assert missing.status_code == 401
    assert garbage.status_code == 401


def test_endpoints_require_bearer_token(gateway_app):
    client = gateway_app.test_client()

    no_token = client.get("/v1/Balance")
    basic_only = client.get("/v1/Balance", headers=basic())
    bad_token = client.get("/v1/Balance", headers={"Authorization": "Bearer nope"})

    for response in (no_token, basic_only, bad_token):
        assert response.status_code == 401
        assert response.get_json()["status"] == "Unauthorized"


def test_bulk_messages_deduct_parts(gateway_app):
    client = gateway_app.test_client()
    headers = get_token(client)

    response = client.post("/v1/BulkMessages", headers=headers, json={
        "SendOptions": {},
        "Messages": [
            {"Content": "short", "Destination": "27830000001"},
            {"Content": "x" * 200, "Destination": "27830000002"},
        ],
    })

    body = response.get_json()
    assert response.status_code == 200
    assert body["messages"] == 2
    assert body["parts"] == 3
    assert body["cost"] == 3
    assert body["remainingBalance"] == 47
    assert client.get("/v1/Balance", headers=headers).get_json() == {"balance": 47}


def test_bulk_messages_field_errors(gateway_app):
    client = gateway_app.test_client()
    headers = get_token(client)

    response = client.post("/v1/BulkMessages", headers=headers, json={
        "Messages": [{"Destination": "27830000001"}, {"Content": "hi"}],
    })

    body = response.get_json()
    assert response.status_code == 400
    assert body["message"] == ""
    assert [e["name"] for e in body["errors"]] == ["Messages[0].Content", "Messages[1].Destination"]


def test_bulk_messages_reject_wrongly_typed_fields(gateway_app):
    client = gateway_app.test_client()
    headers = get_token(client)

    response = client.post("/v1/BulkMessages", headers=headers, json={
        "SendOptions": "x",
        "Messages": [{"Content": 123, "Destination": "27830000001"},
                     {"Content": "hi", "Destination": 27830000002}],
    })

    body = response.get_json()
    assert response.status_code == 400
    assert [e["name"] for e in body["errors"]] == [
        "Messages[0].Content", "Messages[1].Destination", "SendOptions",
    ]
    assert gateway_app.config["MOCK_BALANCE"] == 50


def test_group_messages_reject_wrongly_typed_fields(gateway_app):
    client = gateway_app.test_client()
    headers = get_token(client)

    response = client.post("/v1/GroupMessages", headers=headers, json={
        "SendOptions": ["TestMode"],
        "Message": {"Content": 123},
        "Groups": ["Staff", 7],
    })

    body = response.get_json()
    assert response.status_code == 400
    assert [e["name"] for e in body["errors"]] == ["Message.Content", "Groups", "SendOptions"]


def test_insufficient_credits(gateway_app):
    gateway_app.config["MOCK_BALANCE"] = 0
    client = gateway_app.test_client()
    headers = get_token(client)

    response = client.post("/v1/BulkMessages", headers=headers, json={
        "Messages": [{"Content": "hi", "Destination": "27830000001"}],
    })

    assert response.status_code == 400
    assert response.get_json()["message"] == "Insufficient credits"


def test_group_messages_test_mode(gateway_app):
    client = gateway_app.test_client()
    headers = get_token(client)

    response = client.post("/v1/GroupMessages", headers=headers, json={
        "SendOptions": {"TestMode": True},
        "Message": {"Content": "hello"},
        "Groups": ["Staff", "Drivers"],
    })

    body = response.get_json()
    assert response.status_code == 200
    assert body["cost"] == 2
    assert body["remainingBalance"] == 50
    assert gateway_app.config["MOCK_BALANCE"] == 50


def test_health(gateway_app):
    assert gateway_app.test_client().get("/health").get_json() == {"status": "healthy"}
