import pytest
from unittest.mock import MagicMock, PropertyMock, patch

from campus_news.services.comment_service import CommentService
from campus_news.services.firebase_service import FirebaseService, firebase_service


@pytest.mark.parametrize("url, path", [
    ("gs://campus-news.appspot.com/articles/a1/cover.png", "articles/a1/cover.png"),
    ("https://storage.googleapis.com/campus-news.appspot.com/articles/a%201.pdf", "articles/a 1.pdf"),
    ("/articles/a1/photo.jpg", "articles/a1/photo.jpg"),
    ("https://cdn.example.com/photo.jpg", None),
    ("", None),
])
def test_blob_path(url, path):
    assert FirebaseService._blob_path(url) == path


def _snapshot(uid, name):
    snap = MagicMock()
    snap.id = uid
    snap.exists = name is not None
    snap.to_dict.return_value = {"displayName": name} if name else None
    return snap


@pytest.mark.asyncio
async def test_display_names_fall_back_to_uid():
    db = MagicMock()
    db.get_all.return_value = [_snapshot("u1", "Alice"), _snapshot("u9", None)]

    with patch.object(FirebaseService, "db", new_callable=PropertyMock, return_value=db):
        names = await firebase_service.get_display_names(["u1", "u9", "u1"])

    assert names == {"u1": "Alice", "u9": "u9"}


@pytest.mark.asyncio
async def test_display_names_survive_directory_errors():
    db = MagicMock()
    db.get_all.side_effect = RuntimeError("unavailable")

    with patch.object(FirebaseService, "db", new_callable=PropertyMock, return_value=db):
        names = await firebase_service.get_display_names(["u1"])

    assert names == {"u1": "u1"}


@pytest.mark.asyncio
async def test_delete_file_skips_foreign_urls():
    assert await firebase_service.delete_file("https://cdn.example.com/photo.jpg") is False


@pytest.mark.asyncio
async def test_comment_cascade_deletes_in_batches():
    service = MagicMock()
    comments = service.db.collection.return_value.document.return_value.collection.return_value
    first_page = [MagicMock(), MagicMock()]
    comments.limit.return_value.stream.side_effect = [iter(first_page), iter([])]

    deleted = await CommentService(service=service).delete_for_article("art1")

    assert deleted == 2
    service.db.collection.return_value.document.assert_called_with("art1")
    service.db.collection.return_value.document.return_value.collection.assert_called_with("comments")
    batch = service.db.batch.return_value
    assert batch.delete.call_count == 2
    batch.commit.assert_called_once()


@pytest.mark.asyncio
async def test_query_collection_applies_each_sort_key():
    db = MagicMock()
    query = db.collection.return_value
    query.order_by.return_value = query
    query.stream.return_value = []

    with patch.object(FirebaseService, "db", new_callable=PropertyMock, return_value=db):
        await firebase_service.query_collection(
            "articles", order_by=[("likesCount", "DESCENDING"), ("title", "ASCENDING")])

    assert [c.args for c in query.order_by.call_args_list] == [("likesCount",), ("title",)]
    assert [c.kwargs["direction"] for c in query.order_by.call_args_list] == ["DESCENDING", "ASCENDING"]
