"""Comment collaborator

Comments live in the ``articles/{id}/comments`` subcollection and are owned by
the comment service, which also maintains ``commentCount``. The workflow only
asks it to drop an article's comments when the article is deleted.
"""

import asyncio
import logging

from campus_news.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 400


class CommentService:

    def __init__(self, service=None):
        self._service = service or firebase_service

    def _delete_all(self, article_id: str) -> int:
        comments = (
            self._service.db.collection("articles")
            .document(article_id)
            .collection("comments")
        )
        deleted = 0
        while True:
            docs = list(comments.limit(DELETE_BATCH_SIZE).stream())
            if not docs:
                return deleted
            batch = self._service.db.batch()
            for doc in docs:
                batch.delete(doc.reference)
            batch.commit()
            deleted += len(docs)

    async def delete_for_article(self, article_id: str) -> int:
        """Delete every comment on an article; returns how many were removed"""
        deleted = await asyncio.to_thread(self._delete_all, article_id)
        logger.info(f"Deleted {deleted} comments associated with article {article_id}")
        return deleted


comment_service = CommentService()
