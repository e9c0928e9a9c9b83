"""
Article persistence on Firestore.

Every state change goes through ``transition``: a Firestore transaction that
re-reads the document, checks the version the caller computed against, applies
a pure transition function to the fresh snapshot and writes the result. A
version mismatch raises ConflictError and nothing is written; an exception
raised by the transition function rolls the transaction back.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional, Any, List, Tuple, TypeVar, Union

from firebase_admin import firestore

from campus_news.errors import ConflictError, article_not_found
from campus_news.models.article import (
    Article,
    ArticleStatus,
    article_model_to_firestore,
    firestore_article_to_model,
)
from campus_news.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

ARTICLES_COLLECTION = "articles"

T = TypeVar("T")

# fn(current_article) -> (article_to_write or None for no write, extra result)
TransitionFn = Callable[[Article], Tuple[Optional[Article], T]]


class ArticleStore:
    """Reads and atomic conditional writes for the ``articles`` collection"""

    def __init__(self, service=None):
        self._service = service or firebase_service

    @property
    def collection(self):
        return self._service.db.collection(ARTICLES_COLLECTION)

    def new_id(self) -> str:
        return self.collection.document().id

    async def get(self, article_id: str) -> Article:
        """Load an article or raise NotFoundError"""
        doc = await asyncio.to_thread(self.collection.document(article_id).get)
        if not doc.exists:
            raise article_not_found(article_id)
        return firestore_article_to_model(doc.to_dict(), doc.id)

    async def create(self, article: Article) -> Article:
        ref = self.collection.document(article.article_id)
        # create() fails if the document already exists
        await asyncio.to_thread(ref.create, article_model_to_firestore(article))
        logger.info(f"Stored new article {article.article_id}")
        return article

    def _run_transition(
        self,
        article_id: str,
        fn: TransitionFn,
        expected_version: Optional[int],
    ) -> Tuple[Article, Any]:
        ref = self.collection.document(article_id)
        transaction = self._service.db.transaction()

        @firestore.transactional
        def _apply(transaction):
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise article_not_found(article_id)
            current = firestore_article_to_model(snapshot.to_dict(), snapshot.id)
            if expected_version is not None and current.version != expected_version:
                raise ConflictError(
                    f"Article {article_id} was modified concurrently "
                    f"(expected version {expected_version}, found {current.version})")
            updated, result = fn(current)
            if updated is None:
                return current, result
            transaction.set(ref, article_model_to_firestore(updated))
            return updated, result

        return _apply(transaction)

    async def transition(
        self,
        article_id: str,
        fn: TransitionFn,
        expected_version: Optional[int] = None,
    ) -> Tuple[Article, Any]:
        """
        Atomically read-modify-write one article.

        Args:
            article_id: Document id
            fn: Pure function of the fresh article returning the article to
                write (None to write nothing) and an extra result
            expected_version: If given, the stored version must still equal it

        Returns:
            (article after the transition, fn's extra result)

        Raises:
            NotFoundError, ConflictError, or whatever ``fn`` raises
        """
        return await asyncio.to_thread(self._run_transition, article_id, fn, expected_version)

    async def delete(self, article_id: str) -> None:
        await asyncio.to_thread(self.collection.document(article_id).delete)
        logger.info(f"Deleted article {article_id}")

    async def list_articles(
        self,
        status: Optional[ArticleStatus] = None,
        category: Optional[str] = None,
        author_id: Optional[str] = None,
        order_by: Union[str, List[tuple], None] = "createdAt",
        direction: str = firestore.Query.DESCENDING,
        page: int = 1,
        page_size: Optional[int] = 10,
    ) -> Tuple[List[Article], int]:
        """
        Filtered page of articles and the total match count.

        ``order_by`` is a field (sorted by ``direction``, newest first by
        default) or a list of (field, direction) pairs. A ``page_size`` of
        None returns every match.
        """
        filters: List[tuple] = []
        if status is not None:
            filters.append(("status", "==", ArticleStatus(status).value))
        if category:
            filters.append(("category", "==", category))
        if author_id:
            filters.append(("authorIds", "array_contains", author_id))

        docs, total = await self._service.query_collection(
            ARTICLES_COLLECTION,
            filters=filters,
            order_by=order_by,
            direction=direction,
            limit=page_size,
            offset=(page - 1) * page_size if page_size else None,
            get_total_count=True,
        )

        articles = []
        for doc_id, doc_data in docs:
            try:
                articles.append(firestore_article_to_model(doc_data, doc_id))
            except ValueError as e:
                logger.warning(f"Skipping invalid article document {doc_id}: {e}")
        return articles, total


article_store = ArticleStore()
