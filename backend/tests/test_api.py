from datetime import timedelta
from types import SimpleNamespace

import pytest

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from engigrow.core.config import settings
from engigrow.core.security import token_service
from conftest import STRONG_PASSWORD


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email="ada@example.edu", name="Ada", **overrides):
    payload = {
        "name": name,
        "college": "Tech University",
        "interests": "robotics, ml",
        "email": email,
        "password": STRONG_PASSWORD,
        "confirmPassword": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return client.post("/register", json=payload)


@pytest.fixture
def token(client):
    response = register(client)
    assert response.status_code == 201
    return response.json()["data"]["token"]


@pytest.fixture
def post_id(client):
    response = client.post("/newpost", json={"post": "Hello campus", "user": "Anon"})
    assert response.status_code == 201
    return response.json()["data"]["id"]


# --- auth -------------------------------------------------------------------

def test_register_returns_usable_token(client, token):
    response = client.get("/profile", headers=auth(token))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User profile fetched successfully"
    assert body["data"] == {
        "name": "Ada",
        "institution": "Tech University",
        "interests": ["robotics", "ml"],
    }


def test_register_duplicate_email(client, token):
    response = register(client, name="Ada Again")

    assert response.status_code == 400
    assert response.json()["code"] == "duplicate_identity"


def test_register_password_mismatch(client):
    response = register(client, confirmPassword="Different1!")

    assert response.status_code == 400
    assert response.json()["error"] == "Passwords do not match."


def test_register_weak_password(client):
    response = register(client, password="abc", confirmPassword="abc")

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_register_missing_field(client):
    response = client.post("/register", json={"email": "ada@example.edu", "password": STRONG_PASSWORD})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_login(client, token):
    response = client.post("/login", json={"email": "ada@example.edu", "password": STRONG_PASSWORD})

    assert response.status_code == 200
    claims = token_service.verify(response.json()["data"]["token"])
    assert claims.identity == "ada@example.edu"


def test_login_with_mixed_case_email(client):
    assert register(client, email="Ada@Example.EDU").status_code == 201

    for email in ("Ada@Example.EDU", "ada@example.edu"):
        response = client.post("/login", json={"email": email, "password": STRONG_PASSWORD})
        assert response.status_code == 200
        assert token_service.verify(response.json()["data"]["token"]).identity == "ada@example.edu"


def test_login_wrong_password(client, token):
    response = client.post("/login", json={"email": "ada@example.edu", "password": "Wrong123!"})

    assert response.status_code == 401
    assert response.json()["code"] == "invalid_credentials"


def test_login_unknown_user(client):
    response = client.post("/login", json={"email": "ghost@example.edu", "password": STRONG_PASSWORD})

    assert response.status_code == 404


# --- access gate ----------------------------------------------------------

def test_profile_without_token(client):
    response = client.get("/profile")

    assert response.status_code == 401
    assert response.json()["code"] == "missing_token"
    assert response.headers["www-authenticate"] == "Bearer"


def test_profile_with_garbage_token(client):
    response = client.get("/profile", headers=auth("garbage"))

    assert response.status_code == 403
    assert response.json()["code"] == "malformed_token"


def test_profile_with_expired_token(client, token):
    user = SimpleNamespace(email="ada@example.edu", name="Ada")
    expired = token_service.issue(user, expires_delta=timedelta(seconds=-1))

    response = client.get("/profile", headers=auth(expired))

    assert response.status_code == 403
    assert response.json()["code"] == "expired_token"


def test_token_for_unknown_user(client):
    stranger = SimpleNamespace(email="gone@example.edu", name="Gone")

    response = client.get("/profile", headers=auth(token_service.issue(stranger)))

    assert response.status_code == 401
    assert response.json()["code"] == "identity_not_found"


# --- posts ----------------------------------------------------------------

def test_anonymous_post(client, post_id):
    posts = client.get("/allposts").json()["data"]

    assert [p["id"] for p in posts] == [post_id]
    assert posts[0]["author"] == "Anon"
    assert posts[0]["like_count"] == 0
    assert posts[0]["comments"] == []
    assert "liked_by" not in posts[0]


def test_post_with_token_uses_account_name(client, token):
    response = client.post("/newpost", json={"post": "Signed post", "user": "Pretender"},
                           headers=auth(token))

    assert response.status_code == 201
    assert response.json()["data"]["author"] == "Ada"


def test_post_with_bad_token_rejected(client):
    response = client.post("/newpost", json={"post": "x", "user": "Anon"}, headers=auth("garbage"))

    assert response.status_code == 403


def test_newpost_can_require_auth(client, monkeypatch):
    monkeypatch.setattr(settings, "NEWPOST_REQUIRES_AUTH", True)

    response = client.post("/newpost", json={"post": "x", "user": "Anon"})

    assert response.status_code == 401


def test_blank_post_rejected(client):
    response = client.post("/newpost", json={"post": "   ", "user": "Anon"})

    assert response.status_code == 400
    assert response.json()["error"] == "Enter a valid post"


def test_allposts_newest_first(client):
    for body in ("one", "two", "three"):
        client.post("/newpost", json={"post": body, "user": "Anon"})

    bodies = [p["body"] for p in client.get("/allposts").json()["data"]]

    assert bodies == ["three", "two", "one"]


def test_comment_flow(client, token, post_id):
    for text in ("first", "second", "third"):
        response = client.post(f"/posts/{post_id}/comments", json={"comment": text},
                               headers=auth(token))
        assert response.status_code == 201

    comments = client.get(f"/posts/{post_id}/allcomments").json()["data"]

    assert [c["text"] for c in comments] == ["first", "second", "third"]
    assert comments[0]["username"] == "Ada"
    assert "user" not in comments[0]


def test_comment_requires_auth(client, post_id):
    response = client.post(f"/posts/{post_id}/comments", json={"comment": "hi"})

    assert response.status_code == 401


def test_comment_on_unknown_post(client, token):
    response = client.post("/posts/999/comments", json={"comment": "hi"}, headers=auth(token))

    assert response.status_code == 404
    assert response.json()["error"] == "Post not found"


def test_comments_of_unknown_post(client):
    assert client.get("/posts/999/allcomments").status_code == 404


def test_like_flow(client, token, post_id):
    def like(liked):
        response = client.post("/posts/like", json={"postId": post_id, "liked": liked},
                               headers=auth(token))
        assert response.status_code == 200
        return response.json()["data"]["like_count"]

    assert like(True) == 1
    assert like(True) == 1

    status = client.get(f"/posts/{post_id}/likes", headers=auth(token)).json()["data"]
    assert status == {"liked": True, "like_count": 1}

    assert like(False) == 0
    assert like(False) == 0

    status = client.get(f"/posts/{post_id}/likes", headers=auth(token)).json()["data"]
    assert status == {"liked": False, "like_count": 0}


def test_like_unknown_post(client, token):
    response = client.post("/posts/like", json={"post_id": 999, "liked": True}, headers=auth(token))

    assert response.status_code == 404


def test_like_status_requires_auth(client, post_id):
    assert client.get(f"/posts/{post_id}/likes").status_code == 401


# --- collaboration requests -------------------------------------------------

COLLAB = {
    "title": "Drone navigation",
    "description": "Building an autonomous drone for the spring fair",
    "skills": "Python, ROS",
    "contact": "ada@example.edu",
}


def test_collaboration_requires_auth(client):
    assert client.post("/addcolabpost", json=COLLAB).status_code == 401


def test_collaboration_create_and_list(client, token):
    first = client.post("/addcolabpost", json=COLLAB, headers=auth(token))
    second = client.post("/addcolabpost", json={**COLLAB, "title": "Solar car"}, headers=auth(token))

    assert first.status_code == 201
    assert first.json()["data"]["owner_name"] == "Ada"

    listed = client.get("/collaboration/allcolabposts").json()["data"]
    assert [r["id"] for r in listed] == [second.json()["data"]["id"], first.json()["data"]["id"]]


def test_collaboration_blank_field(client, token):
    response = client.post("/addcolabpost", json={**COLLAB, "skills": " "}, headers=auth(token))

    assert response.status_code == 400


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_failed_commit_returns_storage_failure(client, token, post_id, monkeypatch):
    def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Session, "commit", failing_commit)
    response = client.post("/posts/like", json={"post_id": post_id, "liked": True}, headers=auth(token))

    assert response.status_code == 500
    assert response.json()["code"] == "storage_failure"
    assert "disk I/O error" in response.json()["error"]

    monkeypatch.undo()
    status = client.get(f"/posts/{post_id}/likes", headers=auth(token)).json()["data"]
    assert status == {"liked": False, "like_count": 0}
