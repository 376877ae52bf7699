import pytest
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import TokenKind, authenticated
from app.db.models.micropost import Micropost as MicropostModel
from app.db.models.relationship import Relationship as RelationshipModel
from app.repositories.user import get_user_by_email, get_user_by_id


@pytest.fixture(scope="function")
def sent_activations(monkeypatch) -> list[dict]:
    """Capture activation emails instead of talking to SMTP."""
    sent: list[dict] = []

    async def fake_send(email: str, name: str, activation_token: str) -> None:
        sent.append({"email": email, "name": name, "token": activation_token})

    monkeypatch.setattr("app.services.user.send_account_activation_email", fake_send)
    return sent


def _signup(client, **overrides):
    payload = {
        "name": "Example User",
        "email": "user@example.com",
        "password": "foobar",
        "password_confirmation": "foobar",
    }
    payload.update(overrides)
    return client.post("/api/v1/users", json=payload)


# ============================================================================
# SIGNUP TESTS
# ============================================================================


def test_signup_creates_inactive_user(client, db: Session, session_state, sent_activations):
    response = _signup(client)
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url

    user = get_user_by_email(db, "user@example.com")
    assert user is not None
    assert user.activated is False
    assert user.admin is False
    assert user.activation_digest is not None

    assert len(sent_activations) == 1
    assert sent_activations[0]["email"] == "user@example.com"
    assert authenticated(user, TokenKind.ACTIVATION, sent_activations[0]["token"])

    state = session_state()
    assert state["logged_in"] is False
    assert state["flash"]["kind"] == "info"


def test_signup_without_smtp_still_succeeds(client, db: Session):
    """Mail failures are logged; the account is still created."""
    response = _signup(client)
    assert response.status_code == 303
    assert get_user_by_email(db, "user@example.com") is not None


def test_signup_stores_email_lowercased(client, db: Session, sent_activations):
    _signup(client, email="Foo@ExAMPle.CoM")
    user = get_user_by_email(db, "foo@example.com")
    assert user is not None
    assert user.email == "foo@example.com"


def test_signup_rejects_blank_fields(client, db: Session):
    response = client.post("/api/v1/users", json={})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "can't be blank" in data["errors"]["name"]
    assert "can't be blank" in data["errors"]["email"]
    assert "can't be blank" in data["errors"]["password"]


def test_signup_rejects_long_name(client):
    response = _signup(client, name="a" * 51)
    assert response.status_code == 422
    assert response.json()["errors"]["name"] == ["is too long (maximum is 50 characters)"]


def test_signup_rejects_long_email(client):
    response = _signup(client, email="a" * 244 + "@example.com")
    assert response.status_code == 422
    assert "is too long (maximum is 255 characters)" in response.json()["errors"]["email"]


@pytest.mark.parametrize("email", ["user@example,com", "user_at_foo.org", "foo@bar..com"])
def test_signup_rejects_invalid_email(client, email):
    response = _signup(client, email=email)
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["is invalid"]


def test_signup_rejects_email_taken_in_other_case(client, db: Session, michael):
    response = _signup(client, email="MICHAEL@EXAMPLE.COM")
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["has already been taken"]
    assert db.query(type(michael)).filter_by(email="michael@example.com").count() == 1


def test_signup_rejects_short_password(client):
    response = _signup(client, password="foo", password_confirmation="foo")
    assert response.status_code == 422
    assert response.json()["errors"]["password"] == [
        "is too short (minimum is 6 characters)"
    ]


def test_signup_rejects_mismatched_confirmation(client):
    response = _signup(client, password_confirmation="barfoo")
    assert response.status_code == 422
    assert response.json()["errors"] == {
        "password_confirmation": ["doesn't match password"]
    }


# ============================================================================
# ACCOUNT ACTIVATION TESTS
# ============================================================================


def test_activation_flow(client, db: Session, log_in_as, session_state, sent_activations):
    _signup(client)
    token = sent_activations[0]["token"]
    user = get_user_by_email(db, "user@example.com")

    # Not activated yet: login is refused
    log_in_as("user@example.com", "foobar")
    assert session_state()["logged_in"] is False

    # Wrong token
    response = client.get(
        "/api/v1/auth/activate/not-the-token", params={"email": "user@example.com"}
    )
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url
    assert session_state()["flash"] == {"kind": "danger", "message": "Invalid activation link"}

    # Right token, wrong email
    response = client.get(
        f"/api/v1/auth/activate/{token}", params={"email": "wrong@example.com"}
    )
    assert response.headers["location"] == settings.root_url
    db.refresh(user)
    assert user.activated is False

    # Right token, right email (any case)
    response = client.get(
        f"/api/v1/auth/activate/{token}", params={"email": "USER@example.com"}
    )
    assert response.status_code == 303
    assert response.headers["location"].endswith(f"/api/v1/users/{user.id}")

    state = session_state()
    assert state["logged_in"] is True
    assert state["current_user"]["id"] == user.id
    assert state["flash"] == {"kind": "success", "message": "Account activated!"}

    db.refresh(user)
    assert user.activated is True
    assert user.activated_at is not None
    assert user.activation_digest is None

    # The link works only once
    response = client.get(
        f"/api/v1/auth/activate/{token}", params={"email": "user@example.com"}
    )
    assert response.headers["location"] == settings.root_url


# ============================================================================
# PROFILE TESTS
# ============================================================================


def test_profile_is_public(client, michael):
    response = client.get(f"/api/v1/users/{michael.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["user"] == {"id": michael.id, "name": "Michael Example"}
    assert data["is_self"] is False
    assert data["is_following"] is None
    assert data["stats"] == {"microposts": 0, "following": 0, "followers": 0}
    assert data["microposts"]["items"] == []


def test_profile_knows_its_owner(client, log_in_as, michael, archer):
    log_in_as(michael.email)
    assert client.get(f"/api/v1/users/{michael.id}").json()["is_self"] is True

    data = client.get(f"/api/v1/users/{archer.id}").json()
    assert data["is_self"] is False
    assert data["is_following"] is False


def test_profile_of_inactive_user_redirects_home(client, session_state, inactive_user):
    response = client.get(f"/api/v1/users/{inactive_user.id}")
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url
    assert session_state()["flash"]["kind"] == "warning"


def test_profile_of_unknown_user_redirects_home(client, session_state):
    response = client.get("/api/v1/users/9999")
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url
    assert session_state()["flash"] == {"kind": "error", "message": "User not found"}


# ============================================================================
# USER INDEX TESTS
# ============================================================================


def test_index_requires_login(client):
    response = client.get("/api/v1/users")
    assert response.status_code == 303
    assert response.headers["location"] == settings.login_url


def test_index_lists_only_activated_users(client, log_in_as, michael, archer, inactive_user):
    log_in_as(michael.email)
    response = client.get("/api/v1/users")
    assert response.status_code == 200
    data = response.json()
    ids = [user["id"] for user in data["items"]]
    assert michael.id in ids
    assert archer.id in ids
    assert inactive_user.id not in ids
    # The seeded admin is listed too
    assert data["total"] == 3
    assert "email" not in data["items"][0]


def test_index_paginates(client, log_in_as, michael, archer):
    log_in_as(michael.email)
    data = client.get("/api/v1/users", params={"page": 2, "page_size": 2}).json()
    assert data["page"] == 2
    assert data["total"] == 3
    assert len(data["items"]) == 1


# ============================================================================
# UPDATE TESTS
# ============================================================================


def test_update_own_profile(client, db: Session, log_in_as, session_state, michael):
    log_in_as(michael.email)
    response = client.patch(
        f"/api/v1/users/{michael.id}",
        json={"name": "Foo Bar", "email": "Foo@Bar.com", "password": "", "password_confirmation": ""},
    )
    assert response.status_code == 303
    assert response.headers["location"].endswith(f"/api/v1/users/{michael.id}")
    assert session_state()["flash"]["kind"] == "success"

    db.refresh(michael)
    assert michael.name == "Foo Bar"
    assert michael.email == "foo@bar.com"
    # Blank password leaves the old one in place
    assert authenticated(michael, TokenKind.PASSWORD, "password")


def test_update_password(client, db: Session, log_in_as, michael):
    log_in_as(michael.email)
    response = client.patch(
        f"/api/v1/users/{michael.id}",
        json={"password": "newpassword", "password_confirmation": "newpassword"},
    )
    assert response.status_code == 303
    db.refresh(michael)
    assert authenticated(michael, TokenKind.PASSWORD, "newpassword")


def test_update_rejects_invalid_data(client, db: Session, log_in_as, michael, archer):
    log_in_as(michael.email)
    response = client.patch(
        f"/api/v1/users/{michael.id}",
        json={"name": "", "email": archer.email, "password": "foo", "password_confirmation": "bar"},
    )
    assert response.status_code == 422
    errors = response.json()["errors"]
    assert errors["name"] == ["can't be blank"]
    assert errors["email"] == ["has already been taken"]
    assert "password" in errors
    assert "password_confirmation" in errors

    db.refresh(michael)
    assert michael.name == "Michael Example"


def test_update_keeping_own_email_is_allowed(client, log_in_as, michael):
    log_in_as(michael.email)
    response = client.patch(f"/api/v1/users/{michael.id}", json={"email": "MICHAEL@example.com"})
    assert response.status_code == 303


def test_update_requires_login(client, db: Session, michael):
    response = client.patch(f"/api/v1/users/{michael.id}", json={"name": "Hacked"})
    assert response.status_code == 303
    assert response.headers["location"] == settings.login_url
    db.refresh(michael)
    assert michael.name == "Michael Example"


def test_update_of_another_user_redirects_home(client, db: Session, log_in_as, archer, michael):
    log_in_as(archer.email)
    response = client.patch(f"/api/v1/users/{michael.id}", json={"name": "Hacked"})
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url
    db.refresh(michael)
    assert michael.name == "Michael Example"


def test_update_cannot_grant_admin(client, db: Session, log_in_as, michael):
    log_in_as(michael.email)
    client.patch(f"/api/v1/users/{michael.id}", json={"admin": True, "password": "", "password_confirmation": ""})
    db.refresh(michael)
    assert michael.admin is False


# ============================================================================
# DELETE TESTS
# ============================================================================


def test_delete_requires_login(client, db: Session, michael):
    response = client.delete(f"/api/v1/users/{michael.id}")
    assert response.status_code == 303
    assert response.headers["location"] == settings.login_url
    assert get_user_by_id(db, michael.id) is not None


def test_delete_requires_admin(client, db: Session, log_in_as, archer, michael):
    log_in_as(archer.email)
    response = client.delete(f"/api/v1/users/{michael.id}")
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url
    assert get_user_by_id(db, michael.id) is not None


def test_admin_deletes_user_with_posts_and_edges(
    client, db: Session, log_in_as, session_state, admin_user, michael, archer
):
    michael_id = michael.id
    db.add(MicropostModel(user_id=michael_id, content="Hello"))
    db.add(RelationshipModel(follower_id=michael_id, followed_id=archer.id))
    db.add(RelationshipModel(follower_id=archer.id, followed_id=michael_id))
    db.commit()

    log_in_as(admin_user["email"], admin_user["password"])
    response = client.delete(f"/api/v1/users/{michael_id}")
    assert response.status_code == 303
    assert response.headers["location"].endswith("/api/v1/users")
    assert session_state()["flash"] == {"kind": "success", "message": "User deleted"}

    db.expire_all()
    assert get_user_by_id(db, michael_id) is None
    assert db.query(MicropostModel).filter_by(user_id=michael_id).count() == 0
    assert db.query(RelationshipModel).count() == 0


def test_admin_deleting_unknown_user_redirects_home(client, log_in_as, admin_user):
    log_in_as(admin_user["email"], admin_user["password"])
    response = client.delete("/api/v1/users/9999")
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url


# ============================================================================
# OUT-OF-RANGE IDS
# ============================================================================

HUGE_ID = 99999999999999999999


def test_profile_with_out_of_range_id_redirects_home(client, session_state):
    response = client.get(f"/api/v1/users/{HUGE_ID}")
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url
    assert session_state()["flash"] == {"kind": "error", "message": "User not found"}


def test_update_with_out_of_range_id_redirects_home(client, log_in_as, michael):
    log_in_as(michael.email)
    response = client.patch(f"/api/v1/users/{HUGE_ID}", json={"name": "Nobody"})
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url


def test_delete_with_out_of_range_id_redirects_home(client, log_in_as, admin_user):
    log_in_as(admin_user["email"], admin_user["password"])
    response = client.delete(f"/api/v1/users/{HUGE_ID}")
    assert response.status_code == 303
    assert response.headers["location"] == settings.root_url


def test_following_with_out_of_range_id_redirects_home(client, log_in_as, michael):
    log_in_as(michael.email)
    for path in (f"/api/v1/users/{HUGE_ID}/following", f"/api/v1/users/{HUGE_ID}/followers"):
        response = client.get(path)
        assert response.status_code == 303
        assert response.headers["location"] == settings.root_url


def test_lookup_of_out_of_range_or_non_positive_id_finds_nothing(db: Session, michael):
    assert get_user_by_id(db, HUGE_ID) is None
    assert get_user_by_id(db, 0) is None
    assert get_user_by_id(db, -1) is None
    assert get_user_by_id(db, michael.id).id == michael.id
