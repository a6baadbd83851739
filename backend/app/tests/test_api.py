"""HTTP tests: cookie sessions, error mapping, camelCase payloads, ownership."""

from datetime import datetime, timedelta
from uuid import uuid4

from app.deps import get_settings
from app.exceptions import NotFoundError
from app.models import Reminder


# ============================================================================
# Auth
# ============================================================================

def test_health_is_public(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_register_sets_cookie_and_hides_hash(client):
    response = client.post("/auth/register", json={"email": "a@x.com", "password": "secret1", "name": "Alex"})

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "a@x.com"
    assert user["hasGoogleApiKey"] is False
    assert "passwordHash" not in user and "password_hash" not in user

    set_cookie = response.headers["set-cookie"]
    assert "auth-token=" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "samesite=strict" in set_cookie.lower()


def test_register_duplicate_email_is_409(client, test_user):
    response = client.post("/auth/register", json={"email": "a@x.com", "password": "secret1", "name": "Again"})
    assert response.status_code == 409


def test_register_invalid_email_is_400(client):
    response = client.post("/auth/register", json={"email": "nope", "password": "secret1", "name": "Alex"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid email format"


def test_login_failures_are_indistinguishable(client, test_user):
    wrong_password = client.post("/auth/login", json={"email": "a@x.com", "password": "bad-pass"})
    unknown_email = client.post("/auth/login", json={"email": "who@x.com", "password": "secret1"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials"}


def test_me_requires_session(client):
    assert client.get("/auth/me").status_code == 401


def test_me_with_cookie(auth_client, test_user):
    response = auth_client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["id"] == str(test_user.id)


def test_expired_cookie_is_rejected(client, expired_token):
    client.cookies.set("auth-token", expired_token)
    assert client.get("/auth/me").status_code == 401


def test_user_id_header_ignored_unless_trusted(client, test_user):
    response = client.get("/auth/me", headers={"X-User-Id": str(test_user.id)})
    assert response.status_code == 401


def test_user_id_header_accepted_behind_trusted_gateway(app, client, settings, test_user, test_db_session):
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"TRUST_USER_ID_HEADER": True})

    known = client.get("/auth/me", headers={"X-User-Id": str(test_user.id)})
    assert known.status_code == 200
    assert known.json()["id"] == str(test_user.id)

    assert client.get("/auth/me", headers={"X-User-Id": str(uuid4())}).status_code == 401
    assert client.get("/auth/me", headers={"X-User-Id": "not-a-uuid"}).status_code == 401

    test_user.is_active = False
    test_db_session.commit()
    assert client.get("/auth/me", headers={"X-User-Id": str(test_user.id)}).status_code == 401


def test_session_cookie_lasts_seven_days(client):
    response = client.post("/auth/register", json={"email": "a@x.com", "password": "secret1", "name": "Alex"})

    set_cookie = response.headers["set-cookie"]
    assert "Max-Age=604800" in set_cookie
    assert "Path=/" in set_cookie
    assert "Secure" not in set_cookie


def test_session_cookie_is_secure_in_production(app, client, settings, test_user):
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"ENVIRONMENT": "production"})

    login = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    logout = client.post("/auth/logout")

    assert login.status_code == 200
    assert "Secure" in login.headers["set-cookie"]
    assert "Secure" in logout.headers["set-cookie"]


def test_deactivated_user_session_is_rejected(auth_client, test_user, test_db_session):
    assert auth_client.get("/auth/me").status_code == 200

    test_user.is_active = False
    test_db_session.commit()

    assert auth_client.get("/auth/me").status_code == 401
    assert auth_client.get("/campaigns").status_code == 401


def test_logout_clears_cookie(auth_client):
    response = auth_client.post("/auth/logout")

    assert response.status_code == 200
    set_cookie = response.headers["set-cookie"]
    assert "auth-token=" in set_cookie
    assert "Max-Age=0" in set_cookie
    assert auth_client.get("/auth/me").status_code == 401


def test_logout_without_session_is_ok(client):
    assert client.post("/auth/logout").status_code == 200


def test_change_password_flow(auth_client, client):
    response = auth_client.post(
        "/auth/change-password",
        json={"email": "a@x.com", "currentPassword": "secret1", "newPassword": "newpass1"},
    )
    assert response.status_code == 200

    assert client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"}).status_code == 401
    assert client.post("/auth/login", json={"email": "a@x.com", "password": "newpass1"}).status_code == 200


def test_change_email_reissues_cookie(auth_client):
    response = auth_client.post(
        "/auth/change-email",
        json={"currentEmail": "a@x.com", "newEmail": "new@x.com", "password": "secret1"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "new@x.com"
    assert "auth-token=" in response.headers["set-cookie"]
    assert auth_client.get("/auth/me").json()["email"] == "new@x.com"


def test_change_email_conflict_is_409(auth_client, other_user):
    response = auth_client.post(
        "/auth/change-email",
        json={"currentEmail": "a@x.com", "newEmail": "b@y.com", "password": "secret1"},
    )
    assert response.status_code == 409
    assert auth_client.get("/auth/me").json()["email"] == "a@x.com"


def test_profile_never_returns_api_key(auth_client):
    response = auth_client.put("/auth/user", json={"googleApiKey": "AIza-secret", "googleClientId": "cid"})

    assert response.status_code == 200
    body = response.json()
    assert body["hasGoogleApiKey"] is True
    assert body["googleClientId"] == "cid"
    assert "AIza-secret" not in response.text


# ============================================================================
# Influencers
# ============================================================================

def test_influencer_crud_uses_camel_case(auth_client):
    created = auth_client.post(
        "/influencers",
        json={"handle": "@jane", "followers": 100, "rate": 50, "followersAge": "18-24", "engagementRate": 4.2},
    )
    assert created.status_code == 201
    influencer = created.json()
    assert influencer["followersAge"] == "18-24"
    assert influencer["campaigns"] == []

    patched = auth_client.patch(f"/influencers/{influencer['id']}", json={"rate": 75})
    assert patched.status_code == 200
    assert patched.json()["rate"] == 75
    assert patched.json()["followers"] == 100

    listed = auth_client.get("/influencers")
    assert [i["handle"] for i in listed.json()] == ["@jane"]

    deleted = auth_client.delete(f"/influencers/{influencer['id']}")
    assert deleted.status_code == 200
    assert auth_client.get(f"/influencers/{influencer['id']}").status_code == 404


def test_influencer_validation_is_400(auth_client):
    response = auth_client.post("/influencers", json={"handle": "@jane", "engagementRate": 150})
    assert response.status_code == 400


def test_non_finite_numbers_are_400(auth_client):
    headers = {"Content-Type": "application/json"}

    influencer = auth_client.post("/influencers", content='{"handle": "@jane", "rate": NaN}', headers=headers)
    campaign = auth_client.post("/campaigns", content='{"name": "Odd", "budget": NaN}', headers=headers)

    assert influencer.status_code == 400
    assert campaign.status_code == 400
    assert auth_client.get("/campaigns").json() == []


def test_influencers_require_auth(client):
    assert client.get("/influencers").status_code == 401


def test_influencer_notes_and_messages(auth_client):
    influencer_id = auth_client.post("/influencers", json={"handle": "@jane"}).json()["id"]

    note = auth_client.post(f"/influencers/{influencer_id}/notes", json={"content": "Prefers email"})
    assert note.status_code == 201

    message = auth_client.post(
        f"/influencers/{influencer_id}/messages",
        json={"direction": "incoming", "subject": "Rates", "content": "My rate is 200"},
    )
    assert message.status_code == 201

    body = auth_client.get(f"/influencers/{influencer_id}").json()
    assert [n["content"] for n in body["notes"]] == ["Prefers email"]
    assert body["messages"][0]["direction"] == "incoming"

    removed = auth_client.delete(f"/influencers/{influencer_id}/notes/{note.json()['id']}")
    assert removed.status_code == 200


# ============================================================================
# Campaigns
# ============================================================================

def test_campaign_flow_with_aggregates(auth_client):
    influencer_id = auth_client.post("/influencers", json={"handle": "@jane"}).json()["id"]
    campaign = auth_client.post("/campaigns", json={"name": "Summer", "budget": 5000}).json()
    assert campaign["status"] == "draft"

    link = auth_client.post(
        f"/campaigns/{campaign['id']}/influencers",
        json={"influencerId": influencer_id, "rate": 300, "performanceRating": 4},
    )
    assert link.status_code == 201
    assert link.json()["status"] == "contacted"

    duplicate = auth_client.post(f"/campaigns/{campaign['id']}/influencers", json={"influencerId": influencer_id})
    assert duplicate.status_code == 409

    detail = auth_client.get(f"/campaigns/{campaign['id']}").json()
    assert detail["totalInfluencers"] == 1
    assert detail["totalSpent"] == 300
    assert detail["averagePerformanceRating"] == 4.0
    assert detail["influencers"][0]["influencer"]["handle"] == "@jane"

    updated = auth_client.patch(
        f"/campaigns/{campaign['id']}/influencers/{link.json()['id']}",
        json={"status": "posted", "performance": {"impressions": 5000}},
    )
    assert updated.status_code == 200
    assert updated.json()["performance"] == {"impressions": 5000}

    history = auth_client.get(f"/influencers/{influencer_id}/campaigns").json()
    assert history[0]["campaign"]["name"] == "Summer"

    profile = auth_client.get(f"/influencers/{influencer_id}").json()
    assert profile["campaigns"][0]["name"] == "Summer"
    assert profile["campaigns"][0]["status"] == "posted"

    assert auth_client.delete(f"/campaigns/{campaign['id']}").status_code == 200
    assert auth_client.get(f"/influencers/{influencer_id}/campaigns").json() == []


def test_other_users_campaign_is_404(auth_client, other_client):
    campaign_id = auth_client.post("/campaigns", json={"name": "Private"}).json()["id"]

    assert other_client.get(f"/campaigns/{campaign_id}").status_code == 404
    assert other_client.put(f"/campaigns/{campaign_id}", json={"name": "Mine now"}).status_code == 404
    assert other_client.delete(f"/campaigns/{campaign_id}").status_code == 404
    assert other_client.get("/campaigns").json() == []


def test_campaign_date_order_is_400(auth_client):
    response = auth_client.post(
        "/campaigns",
        json={"name": "Backwards", "startDate": "2026-07-10T00:00:00Z", "endDate": "2026-07-01T00:00:00Z"},
    )
    assert response.status_code == 400


# ============================================================================
# Reminders
# ============================================================================

def test_reminder_listing_with_pagination(auth_client):
    soon = (datetime.utcnow() + timedelta(days=1)).isoformat() + "Z"
    later = (datetime.utcnow() + timedelta(days=4)).isoformat() + "Z"
    past = (datetime.utcnow() - timedelta(days=1)).isoformat() + "Z"

    for title, when in (("Soon", soon), ("Later", later), ("Past", past)):
        response = auth_client.post("/reminders", json={"title": title, "expirationDate": when})
        assert response.status_code == 201

    active = auth_client.get("/reminders", params={"active": "true", "limit": 1}).json()
    assert [r["title"] for r in active["reminders"]] == ["Soon"]
    assert active["pagination"] == {"total": 2, "limit": 1, "offset": 0, "totalPages": 2}

    second_page = auth_client.get("/reminders", params={"active": "true", "limit": 1, "page": 2}).json()
    assert [r["title"] for r in second_page["reminders"]] == ["Later"]

    inactive = auth_client.get("/reminders", params={"active": "false"}).json()
    assert [r["title"] for r in inactive["reminders"]] == ["Past"]
    assert inactive["reminders"][0]["active"] is False


def test_reminder_complete_and_delete(auth_client):
    when = (datetime.utcnow() + timedelta(days=2)).isoformat() + "Z"
    reminder = auth_client.post(
        "/reminders",
        json={"title": "Pay", "expirationDate": when, "type": "payment", "metadata": {"amount": 200}},
    ).json()
    assert reminder["type"] == "payment"
    assert reminder["metadata"] == {"amount": 200}
    assert reminder["active"] is True

    done = auth_client.patch(f"/reminders/{reminder['id']}", json={"isCompleted": True}).json()
    assert done["isCompleted"] is True
    assert done["active"] is False

    assert auth_client.delete(f"/reminders/{reminder['id']}").status_code == 200
    assert auth_client.get(f"/reminders/{reminder['id']}").status_code == 404


def test_reminder_bad_date_is_400(auth_client):
    response = auth_client.post("/reminders", json={"title": "Bad", "expirationDate": "someday"})
    assert response.status_code == 400


def test_reminder_limit_out_of_range_is_422(auth_client):
    assert auth_client.get("/reminders", params={"limit": 500}).status_code == 422


def test_reminders_are_private(auth_client, other_client, test_db_session):
    when = (datetime.utcnow() + timedelta(days=2)).isoformat() + "Z"
    reminder_id = auth_client.post("/reminders", json={"title": "Mine", "expirationDate": when}).json()["id"]

    assert other_client.get(f"/reminders/{reminder_id}").status_code == 404
    assert other_client.get("/reminders").json()["pagination"]["total"] == 0
    assert test_db_session.query(Reminder).count() == 1


def test_unknown_reminder_is_404(auth_client):
    response = auth_client.get(f"/reminders/{uuid4()}")
    assert response.status_code == 404
    assert response.json() == {"detail": NotFoundError("Reminder").message}


def test_reminder_sort_accepts_camel_case_values(auth_client):
    for title, days in (("First", 1), ("Second", 2)):
        when = (datetime.utcnow() + timedelta(days=days)).isoformat() + "Z"
        auth_client.post("/reminders", json={"title": title, "expirationDate": when})

    response = auth_client.get("/reminders", params={"sortBy": "expirationDate", "sortOrder": "desc"})

    assert response.status_code == 200
    assert [r["title"] for r in response.json()["reminders"]] == ["Second", "First"]
    assert auth_client.get("/reminders", params={"sortBy": "priority"}).status_code == 400


# ============================================================================
# Analytics
# ============================================================================

def test_analytics_requires_auth(client):
    assert client.get("/analytics").status_code == 401


def test_analytics_summary_over_own_campaigns(auth_client, other_client):
    influencer_id = auth_client.post("/influencers", json={"handle": "@jane", "platform": "YouTube"}).json()["id"]
    campaign_id = auth_client.post("/campaigns", json={"name": "Summer", "status": "active"}).json()["id"]
    auth_client.post(
        f"/campaigns/{campaign_id}/influencers",
        json={"influencerId": influencer_id, "rate": 200, "performance": {"reach": 5000, "engagement": 40}},
    )

    body = auth_client.get("/analytics").json()

    assert body["totalCampaigns"] == 1
    assert body["activeCampaigns"] == 1
    assert body["totalSpend"] == 200
    assert body["totalReach"] == 5000
    assert body["totalRoi"] == 25
    assert body["topPerformingCampaigns"][0]["name"] == "Summer"
    assert body["platformDistribution"] == [{"platform": "YouTube", "count": 1, "reach": 5000}]
    assert body["campaignStatusDistribution"] == [{"status": "active", "count": 1}]

    assert other_client.get("/analytics").json()["totalCampaigns"] == 0
