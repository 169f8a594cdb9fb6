"""API tests using FastAPI's TestClient."""

from conftest import csv_bytes, xlsx_bytes

from campaign.rankings.service import EXPORT_COLUMNS


# ==================== HEALTH ====================


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_security_headers(client):
    resp = client.get("/")
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


# ==================== REGISTRATION AND LOGIN ====================


def test_register_and_login_influencer(client):
    resp = client.post(
        "/api/v1/auth/register/influencer",
        json={
            "first_name": "Sarah",
            "last_name": "Johnson",
            "password": "secret1",
            "code": "sarah1",
            "age": 27,
        },
    )
    assert resp.status_code == 201
    assert resp.json()["identifier"] == "SARAH1"

    resp = client.post(
        "/api/v1/auth/login",
        json={"identifier": "SARAH1", "password": "secret1", "user_type": "influencer"},
    )
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["type"] == "influencer"
    assert me.json()["name"] == "Sarah Johnson"


def test_register_influencer_errors_are_toast_shaped(client, influencer):
    resp = client.post(
        "/api/v1/auth/register/influencer",
        json={"first_name": "Other", "last_name": "Person", "password": "secret1", "code": "SARAH1"},
    )
    assert resp.status_code == 409
    assert resp.json()["title"] == "Code Already Exists"
    assert "detail" in resp.json()

    resp = client.post("/api/v1/auth/register/influencer", json={"first_name": "Only"})
    assert resp.status_code == 400
    assert resp.json()["title"] == "Missing Information"

    resp = client.post(
        "/api/v1/auth/register/influencer",
        json={"first_name": "Emma", "last_name": "Davis", "password": "secret1", "code": "EMMA-DAVIS-2024"},
    )
    assert resp.status_code == 400
    assert resp.json()["title"] == "Invalid Code"


def test_register_and_login_consumer(client):
    resp = client.post(
        "/api/v1/auth/register/consumer",
        json={"first_name": "Mike", "last_name": "Chen", "password": "hunter22"},
    )
    assert resp.status_code == 201

    resp = client.post("/api/v1/auth/login", json={"identifier": "Mike Chen", "password": "hunter22"})
    assert resp.status_code == 200
    assert resp.json()["session"]["type"] == "consumer"


def test_login_failure(client, influencer):
    resp = client.post(
        "/api/v1/auth/login",
        json={"identifier": "SARAH1", "password": "wrong12", "user_type": "influencer"},
    )
    assert resp.status_code == 401
    assert resp.json()["title"] == "Invalid Credentials"


def test_admin_login_failure(client):
    resp = client.post("/api/v1/auth/admin/login", json={"username": "admin", "password": "nope"})
    assert resp.status_code == 401


def test_logout_requires_session(client, admin_headers):
    assert client.post("/api/v1/auth/logout").status_code == 401
    assert client.post("/api/v1/auth/logout", headers=admin_headers).status_code == 200


# ==================== REDEMPTION ====================


def test_redeem_anonymously(client, influencer, product_codes):
    resp = client.post("/api/v1/redeem", json={"influencer_code": "sarah1", "product_code": "prod-1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Success!"
    assert body["redemption"]["influencer_points"] == 1


def test_redeem_errors(client, influencer, product_codes):
    resp = client.post("/api/v1/redeem", json={"influencer_code": "", "product_code": "PROD-1"})
    assert resp.status_code == 400

    resp = client.post("/api/v1/redeem", json={"influencer_code": "NOPE", "product_code": "PROD-1"})
    assert resp.status_code == 404
    assert resp.json()["title"] == "Invalid Influencer Code"

    client.post("/api/v1/redeem", json={"influencer_code": "SARAH1", "product_code": "PROD-1"})
    resp = client.post("/api/v1/redeem", json={"influencer_code": "SARAH1", "product_code": "PROD-1"})
    assert resp.status_code == 409
    assert resp.json()["title"] == "Product Code Already Used"


def test_redeem_as_logged_in_consumer(client, influencer, consumer, product_codes):
    login = client.post("/api/v1/auth/login", json={"identifier": "Mike Chen", "password": "hunter22"})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    for code in ("PROD-1", "PROD-2"):
        resp = client.post(
            "/api/v1/redeem",
            json={"influencer_code": "SARAH1", "product_code": code},
            headers=headers,
        )
        assert resp.status_code == 200

    influencer_login = client.post(
        "/api/v1/auth/login",
        json={"identifier": "SARAH1", "password": "secret1", "user_type": "influencer"},
    )
    dashboard = client.get(
        "/api/v1/influencers/me",
        headers={"Authorization": f"Bearer {influencer_login.json()['access_token']}"},
    ).json()
    assert dashboard["points"] == 2
    assert dashboard["consumer_count"] == 1


def test_influencer_sees_own_redemptions(client, influencer, product_codes):
    client.post("/api/v1/redeem", json={"influencer_code": "SARAH1", "product_code": "PROD-3"})
    login = client.post(
        "/api/v1/auth/login",
        json={"identifier": "SARAH1", "password": "secret1", "user_type": "influencer"},
    )
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    resp = client.get("/api/v1/influencers/me/redemptions", headers=headers)
    assert [r["product_code"] for r in resp.json()] == ["PROD-3"]


# ==================== ADMIN ====================


def test_admin_endpoints_require_admin(client, consumer):
    assert client.get("/api/v1/admin/influencers").status_code == 401

    login = client.post("/api/v1/auth/login", json={"identifier": "Mike Chen", "password": "hunter22"})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    assert client.get("/api/v1/admin/influencers", headers=headers).status_code == 403
    assert client.get("/api/v1/rankings", headers=headers).status_code == 403


def test_admin_adds_influencer(client, admin_headers):
    resp = client.post(
        "/api/v1/admin/influencers",
        json={"first_name": "Emma", "last_name": "Davis"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Influencer Added!"
    assert body["influencer"]["code"].startswith("INF-")
    assert "password_hash" not in body["influencer"]

    listed = client.get("/api/v1/admin/influencers", headers=admin_headers).json()
    assert [i["first_name"] for i in listed] == ["Emma"]


def test_admin_add_influencer_requires_names(client, admin_headers):
    resp = client.post("/api/v1/admin/influencers", json={"first_name": "Emma"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please enter both first and last name."


def test_upload_csv(client, admin_headers):
    resp = client.post(
        "/api/v1/admin/product-codes/upload",
        files={"file": ("codes.csv", csv_bytes("A-1", "A-2", "A-2"), "text/csv")},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["result"]["imported"] == 2
    assert body["result"]["duplicates"] == 1
    assert body["stats"]["total"] == 2


def test_upload_xlsx(client, admin_headers):
    resp = client.post(
        "/api/v1/admin/product-codes/upload",
        files={"file": ("codes.xlsx", xlsx_bytes("Code", "X-1"), "application/octet-stream")},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["result"]["imported"] == 1


def test_upload_rejects_other_files(client, admin_headers):
    resp = client.post(
        "/api/v1/admin/product-codes/upload",
        files={"file": ("codes.pdf", b"%PDF", "application/pdf")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please upload a CSV or Excel file."


def test_product_code_stats(client, admin_headers, influencer, product_codes):
    client.post("/api/v1/redeem", json={"influencer_code": "SARAH1", "product_code": "PROD-1"})

    stats = client.get("/api/v1/admin/product-codes/stats", headers=admin_headers).json()
    assert stats == {"total": 5, "used": 1, "available": 4, "usage_rate": 20.0}


def test_performance_and_history(client, admin_headers, influencer, product_codes):
    client.post("/api/v1/redeem", json={"influencer_code": "SARAH1", "product_code": "PROD-1"})

    performance = client.get("/api/v1/admin/influencers/performance", headers=admin_headers).json()
    assert performance[0]["percent"] == 100

    history = client.get("/api/v1/admin/redemptions", headers=admin_headers).json()
    assert history[0]["product_code"] == "PROD-1"


# ==================== RANKINGS ====================


def test_rankings(client, admin_headers, influencer, product_codes):
    client.post("/api/v1/redeem", json={"influencer_code": "SARAH1", "product_code": "PROD-1"})

    body = client.get("/api/v1/rankings", headers=admin_headers).json()
    assert body["max_points"] == 1
    assert body["top"][0]["code"] == "SARAH1"
    assert len(body["rankings"]) == 1


def test_rankings_export(client, admin_headers, influencer):
    resp = client.get("/api/v1/rankings/export", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "influencer-rankings.csv" in resp.headers["content-disposition"]
    lines = resp.text.splitlines()
    assert lines[0] == ",".join(EXPORT_COLUMNS)
    assert lines[1] == "1,Sarah Johnson,SARAH1,0,0"


# ==================== REALTIME ====================


def test_realtime_status(client):
    assert client.get("/api/v1/realtime/status").json() == {"connected": True, "subscribers": 0}


def test_realtime_streams_require_admin(client, consumer):
    assert client.get("/api/v1/realtime/leaderboard").status_code == 401
    assert client.get("/api/v1/realtime/influencers?token=garbage").status_code == 401

    login = client.post("/api/v1/auth/login", json={"identifier": "Mike Chen", "password": "hunter22"})
    token = login.json()["access_token"]
    assert client.get(f"/api/v1/realtime/influencers?token={token}").status_code == 403


def test_realtime_unknown_table(client, admin_headers):
    token = admin_headers["Authorization"].split()[1]
    resp = client.get(f"/api/v1/realtime/passwords?token={token}")
    assert resp.status_code == 404


def test_health_reports_database_and_feed(client):
    body = client.get("/health").json()
    assert body["database"] is True
    assert body["realtime"] == {"connected": True, "subscribers": 0}


def test_request_id_is_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"
    assert client.get("/").headers["X-Request-ID"]


# ==================== ERROR SHAPE ====================


def test_invalid_body_is_toast_shaped(client):
    resp = client.post("/api/v1/redeem", json={"influencer_code": "X" * 40, "product_code": "PROD-1"})
    assert resp.status_code == 422
    assert resp.json()["title"] == "Invalid Input"
    assert resp.json()["detail"].startswith("influencer_code: ")

    resp = client.post(
        "/api/v1/auth/register/consumer",
        json={"first_name": "Mike", "last_name": "Chen", "password": "hunter22", "age": 200},
    )
    assert resp.status_code == 422
    assert resp.json()["title"] == "Invalid Input"
    assert resp.json()["detail"].startswith("age: ")


def test_auth_failures_are_toast_shaped(client, consumer):
    resp = client.get("/api/v1/admin/influencers")
    assert resp.status_code == 401
    assert resp.json() == {"title": "Please Sign In", "detail": "Not authenticated"}
    assert resp.headers["WWW-Authenticate"] == "Bearer"

    login = client.post("/api/v1/auth/login", json={"identifier": "Mike Chen", "password": "hunter22"})
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    resp = client.get("/api/v1/admin/influencers", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["title"] == "Access Denied"
    assert "consumer" in resp.json()["detail"]


def test_unknown_route_is_toast_shaped(client, admin_headers):
    resp = client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"title": "Not Found", "detail": "Not Found"}

    token = admin_headers["Authorization"].split()[1]
    resp = client.get(f"/api/v1/realtime/passwords?token={token}")
    assert resp.json() == {"title": "Not Found", "detail": "Unknown table 'passwords'"}
