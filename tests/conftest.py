from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from campus_news.models.article import (
    Article,
    ArticleCategory,
    ArticleStatus,
    article_model_to_firestore,
    firestore_article_to_model,
)
from campus_news.services import article_store as article_store_module
from campus_news.models.user import Principal, UserRole

NOW = datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc)
EARLIER = datetime(2024, 4, 20, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_article():
    def _make(**overrides) -> Article:
        data = dict(
            article_id="art1",
            author_ids=["u1"],
            author_names_text="Alice",
            title="Robotics club wins regional final",
            content="The university robotics club took first place...",
            category=ArticleCategory.ACHIEVEMENTS,
            status=ArticleStatus.DRAFT,
            last_edited_by="u1",
            version=1,
            created_at=EARLIER,
            updated_at=EARLIER,
        )
        data.update(overrides)
        return Article(**data)

    return _make


@pytest.fixture
def alice():
    return Principal(uid="u1", role=UserRole.EDITOR, display_name="Alice")


@pytest.fixture
def bob():
    return Principal(uid="u2", role=UserRole.EDITOR, display_name="Bob")


@pytest.fixture
def carol():
    return Principal(uid="u3", role=UserRole.EDITOR, display_name="Carol")


@pytest.fixture
def admin():
    return Principal(uid="adm", role=UserRole.ADMIN, display_name="Admin")


@pytest.fixture
def reader():
    return Principal(uid="r1", role=UserRole.READER, display_name="Reader")


@pytest.fixture
def anonymous():
    return Principal.anonymous()


# --- In-memory stand-in for the Firestore client used by ArticleStore ---

class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, docs, doc_id):
        self.docs = docs
        self.id = doc_id

    def get(self, transaction=None):
        return FakeSnapshot(self.id, self.docs.get(self.id))

    def create(self, data):
        if self.id in self.docs:
            raise ValueError(f"Document {self.id} already exists")
        self.docs[self.id] = data

    def delete(self):
        self.docs.pop(self.id, None)


class FakeTransaction:
    def __init__(self):
        self.writes = 0

    def set(self, ref, data):
        ref.docs[ref.id] = data
        self.writes += 1


class FakeFirestore:
    """Documents of the ``articles`` collection keyed by id"""

    def __init__(self):
        self.docs = {}
        self.transactions = []
        self.service = MagicMock()
        collection = self.service.db.collection.return_value
        collection.document.side_effect = self._document
        self.service.db.transaction.side_effect = self._transaction
        self._next_id = 0

    def _document(self, doc_id=None):
        if doc_id is None:
            self._next_id += 1
            doc_id = f"generated{self._next_id}"
        return FakeDocumentRef(self.docs, doc_id)

    def _transaction(self):
        transaction = FakeTransaction()
        self.transactions.append(transaction)
        return transaction

    def put(self, article):
        self.docs[article.article_id] = article_model_to_firestore(article)

    def load(self, article_id):
        return firestore_article_to_model(self.docs[article_id], article_id)


@pytest.fixture
def fake_firestore():
    # Run transactional functions directly against the in-memory documents
    with patch.object(article_store_module.firestore, "transactional", lambda fn: fn):
        yield FakeFirestore()
