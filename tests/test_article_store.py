import pytest
from unittest.mock import AsyncMock, MagicMock

from firebase_admin import firestore

from campus_news.errors import ConflictError, ForbiddenError, NotFoundError
from campus_news.models.article import ArticleStatus
from campus_news.services import workflow
from campus_news.services.article_store import ArticleStore
from campus_news.services.workflow import ArticleChanges


@pytest.fixture
def store(fake_firestore):
    return ArticleStore(service=fake_firestore.service)


@pytest.mark.asyncio
async def test_get_missing_article_raises_not_found(store):
    with pytest.raises(NotFoundError):
        await store.get("nope")


@pytest.mark.asyncio
async def test_create_then_get(store, make_article):
    article = make_article(article_id=store.new_id())

    await store.create(article)

    assert await store.get(article.article_id) == article


@pytest.mark.asyncio
async def test_concurrent_edits_on_same_version_conflict(store, fake_firestore, make_article, alice, bob, now):
    fake_firestore.put(make_article(author_ids=["u1", "u2"], version=3))

    def edit_by(principal, title):
        def _apply(current):
            outcome = workflow.apply_edit(current, principal, ArticleChanges(title=title), now=now)
            return outcome.article, outcome
        return _apply

    first, _ = await store.transition("art1", edit_by(alice, "First"), expected_version=3)
    assert first.version == 4

    with pytest.raises(ConflictError):
        await store.transition("art1", edit_by(bob, "Second"), expected_version=3)

    stored = fake_firestore.load("art1")
    assert stored.title == "First"
    assert stored.version == 4
    assert stored.last_edited_by == "u1"


@pytest.mark.asyncio
async def test_transition_without_expected_version_applies_to_fresh_snapshot(store, fake_firestore, make_article):
    fake_firestore.put(make_article(status=ArticleStatus.PUBLISHED))

    await store.transition("art1", lambda current: workflow.toggle_like(current, "r1"))
    article, liked = await store.transition("art1", lambda current: workflow.toggle_like(current, "r2"))

    assert liked
    assert article.liked_by == ["r1", "r2"]
    assert fake_firestore.load("art1").likes_count == 2


@pytest.mark.asyncio
async def test_failed_transition_writes_nothing(store, fake_firestore, make_article, reader):
    fake_firestore.put(make_article())
    before = dict(fake_firestore.docs["art1"])

    def _apply(current):
        outcome = workflow.apply_edit(current, reader, ArticleChanges(title="Nope"))
        return outcome.article, outcome

    with pytest.raises(ForbiddenError):
        await store.transition("art1", _apply)

    assert fake_firestore.docs["art1"] == before
    assert fake_firestore.transactions[-1].writes == 0


@pytest.mark.asyncio
async def test_transition_returning_none_skips_write(store, fake_firestore, make_article):
    fake_firestore.put(make_article())

    article, result = await store.transition("art1", lambda current: (None, "checked"))

    assert result == "checked"
    assert article.article_id == "art1"
    assert fake_firestore.transactions[-1].writes == 0


@pytest.mark.asyncio
async def test_transition_on_missing_article_raises_not_found(store):
    with pytest.raises(NotFoundError):
        await store.transition("nope", lambda current: (current, None))


@pytest.mark.asyncio
async def test_list_articles_builds_filters_and_skips_invalid_docs(make_article):
    valid = make_article(status=ArticleStatus.PUBLISHED)
    service = MagicMock()
    service.query_collection = AsyncMock(return_value=(
        [
            ("art1", valid.model_dump(by_alias=True, exclude={"article_id"})),
            ("broken", {"title": "missing everything else"}),
        ],
        2,
    ))
    store = ArticleStore(service=service)

    articles, total = await store.list_articles(
        status=ArticleStatus.PUBLISHED, category="Events", author_id="u1",
        order_by="publishedAt", page=3, page_size=5)

    assert [a.article_id for a in articles] == ["art1"]
    assert total == 2
    kwargs = service.query_collection.call_args.kwargs
    assert kwargs["filters"] == [
        ("status", "==", "Published"),
        ("category", "==", "Events"),
        ("authorIds", "array_contains", "u1"),
    ]
    assert kwargs["limit"] == 5
    assert kwargs["offset"] == 10
    assert kwargs["order_by"] == "publishedAt"
    assert kwargs["get_total_count"] is True


@pytest.mark.asyncio
async def test_list_articles_passes_sort_keys_and_unpaged_fetch():
    service = MagicMock()
    service.query_collection = AsyncMock(return_value=([], 0))
    store = ArticleStore(service=service)
    order = [("likesCount", firestore.Query.DESCENDING), ("title", firestore.Query.ASCENDING)]

    await store.list_articles(status=ArticleStatus.PUBLISHED, order_by=order, page_size=None)

    kwargs = service.query_collection.call_args.kwargs
    assert kwargs["order_by"] == order
    assert kwargs["limit"] is None
    assert kwargs["offset"] is None
