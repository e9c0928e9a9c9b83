from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient
from jose import JWTError, jwt

from campus_news.config import settings
from campus_news.main import app
from campus_news.models.user import User, UserRole
from campus_news.utils.security import verify_access_token

client = TestClient(app)


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", "test-secret")


@pytest.fixture
def mock_firebase_service():
    with patch("campus_news.dependencies.firebase_service") as mock:
        mock.verify_id_token.side_effect = ValueError("not a Firebase token")
        yield mock


@pytest.fixture
def mock_publication_service():
    with patch("campus_news.api.routes.articles.publication_service") as mock:
        mock.list_for_author = AsyncMock(return_value=([], 0))
        yield mock


def access_token(claims, token_type="access", expires_in=timedelta(minutes=30)):
    """Mint a token the way the account service does"""
    now = datetime.now(timezone.utc)
    payload = dict(claims, iat=now, exp=now + expires_in, type=token_type)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def _user(role=UserRole.EDITOR, **overrides):
    data = dict(uid="u1", email="alice@university.edu", display_name="Alice", role=role)
    data.update(overrides)
    return User(**data)


def test_access_token_round_trip():
    token = access_token({"sub": "u1"})

    assert verify_access_token(token)["sub"] == "u1"
    with pytest.raises(JWTError):
        verify_access_token(token + "tampered")


def test_refresh_and_expired_tokens_are_rejected():
    with pytest.raises(JWTError):
        verify_access_token(access_token({"sub": "u1"}, token_type="refresh"))
    with pytest.raises(JWTError):
        verify_access_token(access_token({"sub": "u1"}, expires_in=timedelta(minutes=-1)))


def test_internal_token_authenticates(mock_firebase_service, mock_publication_service):
    mock_firebase_service.get_user_by_uid = AsyncMock(return_value=_user())
    token = access_token({"sub": "u1"})

    response = client.get("/api/articles/my-articles/all", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    principal = mock_publication_service.list_for_author.call_args.args[0]
    assert principal.uid == "u1"
    assert principal.role == UserRole.EDITOR
    mock_firebase_service.get_user_by_uid.assert_awaited_once_with("u1")


def test_firebase_token_is_tried_first(mock_firebase_service, mock_publication_service):
    mock_firebase_service.verify_id_token.side_effect = None
    mock_firebase_service.verify_id_token.return_value = {"uid": "u1"}
    mock_firebase_service.get_user_by_uid = AsyncMock(return_value=_user())

    response = client.get("/api/articles/my-articles/all", headers={"Authorization": "Bearer firebase-id-token"})

    assert response.status_code == 200
    mock_firebase_service.verify_id_token.assert_called_once_with("firebase-id-token")


def test_invalid_token_is_unauthorized(mock_firebase_service, mock_publication_service):
    response = client.get("/api/articles/my-articles/all", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401


def test_unknown_user_is_unauthorized(mock_firebase_service, mock_publication_service):
    mock_firebase_service.get_user_by_uid = AsyncMock(return_value=None)
    token = access_token({"sub": "ghost"})

    response = client.get("/api/articles/my-articles/all", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_disabled_user_is_forbidden(mock_firebase_service, mock_publication_service):
    mock_firebase_service.get_user_by_uid = AsyncMock(return_value=_user(is_active=False))
    token = access_token({"sub": "u1"})

    response = client.get("/api/articles/my-articles/all", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403


def test_reader_cannot_list_own_articles(mock_firebase_service, mock_publication_service):
    mock_firebase_service.get_user_by_uid = AsyncMock(return_value=_user(role=UserRole.READER))
    token = access_token({"sub": "u1"})

    response = client.get("/api/articles/my-articles/all", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403


def test_invalid_optional_token_reads_as_anonymous(mock_firebase_service, make_article):
    with patch("campus_news.api.routes.articles.publication_service") as mock:
        mock.get_article = AsyncMock(return_value=make_article())
        response = client.get("/api/articles/art1", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 200
    principal = mock.get_article.call_args.args[1]
    assert not principal.is_authenticated


def test_missing_token_is_unauthorized(mock_firebase_service, mock_publication_service):
    response = client.get("/api/articles/my-articles/all")

    assert response.status_code == 401
    mock_publication_service.list_for_author.assert_not_called()
