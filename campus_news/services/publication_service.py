"""
Publication service: runs workflow transitions against the article store.

Each mutating call authorizes, consults the external capabilities that must
run outside the write (user directory, plagiarism checker, translator), then
applies the pure transition inside one store transaction. The plagiarism check
never runs inside a transaction; the edit is committed only if the article is
still at the version the check was computed for.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Tuple

from firebase_admin import firestore

from campus_news.errors import ConflictError, InvalidArgumentError
from campus_news.models.article import Article, ArticleCategory, ArticleStatus, Attachment
from campus_news.models.user import Principal
from campus_news.services import access_policy, workflow
from campus_news.services.article_store import article_store
from campus_news.services.comment_service import comment_service
from campus_news.services.firebase_service import firebase_service
from campus_news.services.plagiarism_service import plagiarism_service
from campus_news.services.translation_service import translation_cache, translate_text, normalize_language
from campus_news.services.workflow import ArticleChanges, ApprovalOutcome, EditOutcome, SideEffect

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("publishedAt", "createdAt", "updatedAt", "likesCount", "title")
DEFAULT_PUBLISHED_ORDER = [
    ("publishedAt", firestore.Query.DESCENDING),
    ("createdAt", firestore.Query.DESCENDING),
]


def parse_sort(sort_by: str) -> List[Tuple[str, str]]:
    """
    Parse a ``field[:asc|desc]`` list such as ``likesCount:desc,title``.

    Direction defaults to ascending.

    Raises:
        InvalidArgumentError: Unknown field or direction
    """
    order = []
    for part in sort_by.split(","):
        if not part.strip():
            continue
        field, _, direction = part.partition(":")
        field = field.strip()
        direction = direction.strip().lower() or "asc"
        if field not in SORTABLE_FIELDS:
            raise InvalidArgumentError(
                f"Cannot sort by '{field}'. Allowed: {', '.join(SORTABLE_FIELDS)}")
        if direction not in ("asc", "desc"):
            raise InvalidArgumentError(f"Invalid sort direction '{direction}'")
        order.append((field, firestore.Query.DESCENDING if direction == "desc"
                      else firestore.Query.ASCENDING))
    if not order:
        raise InvalidArgumentError("sortBy names no fields")
    return order


class PublicationService:

    def __init__(self, store=None, plagiarism=None, comments=None, directory=None):
        self.store = store or article_store
        self.plagiarism = plagiarism or plagiarism_service
        self.comments = comments or comment_service
        self.directory = directory or firebase_service

    # ============================================
    # READS
    # ============================================

    async def get_article(self, article_id: str, principal: Principal) -> Article:
        article = await self.store.get(article_id)
        access_policy.ensure_can_view(article, principal)
        return article

    async def list_published(
        self,
        category: Optional[str] = None,
        author_id: Optional[str] = None,
        q: Optional[str] = None,
        sort_by: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Article], int]:
        order_by = parse_sort(sort_by) if sort_by else DEFAULT_PUBLISHED_ORDER
        if not q:
            return await self.store.list_articles(
                status=ArticleStatus.PUBLISHED,
                category=category,
                author_id=author_id,
                order_by=order_by,
                page=page,
                page_size=page_size,
            )

        # Firestore has no substring queries: match over every published
        # article, then paginate the matches
        articles, _ = await self.store.list_articles(
            status=ArticleStatus.PUBLISHED,
            category=category,
            author_id=author_id,
            order_by=order_by,
            page_size=None,
        )
        needle = q.strip().lower()
        matches = [
            a for a in articles
            if needle in f"{a.title} {a.content} {a.author_names_text}".lower()
        ]
        start = (page - 1) * page_size
        return matches[start:start + page_size], len(matches)

    async def list_for_author(
        self,
        principal: Principal,
        status: Optional[ArticleStatus] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Article], int]:
        return await self.store.list_articles(
            status=status, author_id=principal.uid, page=page, page_size=page_size)

    async def list_all(
        self,
        status: Optional[ArticleStatus] = None,
        category: Optional[str] = None,
        author_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Article], int]:
        return await self.store.list_articles(
            status=status, category=category, author_id=author_id,
            page=page, page_size=page_size)

    # ============================================
    # WORKFLOW TRANSITIONS
    # ============================================

    async def create_article(
        self,
        principal: Principal,
        title: str,
        content: str,
        category: ArticleCategory,
        author_ids: Optional[List[str]] = None,
        image_url: str = "",
        attachments: Optional[List[Attachment]] = None,
        language: str = "en",
    ) -> Article:
        access_policy.ensure_can_create(principal)
        authors = list(dict.fromkeys([*(author_ids or []), principal.uid]))
        names = await self.directory.get_display_names(authors)
        plagiarism = await self.plagiarism.check(content)

        outcome = workflow.create_article(
            self.store.new_id(),
            principal,
            title=title,
            content=content,
            category=category,
            author_ids=author_ids,
            image_url=image_url,
            attachments=attachments,
            language=language,
            author_names=names,
            plagiarism=plagiarism,
        )
        return await self.store.create(outcome.article)

    async def edit_article(
        self,
        article_id: str,
        principal: Principal,
        changes: ArticleChanges,
        expected_version: Optional[int] = None,
    ) -> EditOutcome:
        """
        Apply an edit.

        Args:
            expected_version: Version the client edited; defaults to the
                version read here

        Raises:
            NotFoundError, ForbiddenError, InvalidArgumentError, ConflictError
        """
        article = await self.store.get(article_id)
        access_policy.ensure_can_mutate(article, principal, "update")
        if expected_version is not None and expected_version != article.version:
            raise ConflictError(
                f"Article {article_id} is at version {article.version}, "
                f"edit was based on version {expected_version}")

        # Dry run on the snapshot: authorizes, validates and tells us which
        # collaborators are needed before the write
        preview = workflow.apply_edit(article, principal, changes)
        if not preview.significant:
            return preview

        names = None
        if "author_ids" in preview.changed_fields:
            names = await self.directory.get_display_names(preview.article.author_ids)
        plagiarism = None
        if SideEffect.PLAGIARISM_CHECK in preview.side_effects:
            plagiarism = await self.plagiarism.check(changes.content)

        now = datetime.now(timezone.utc)

        def _apply(current: Article):
            outcome = workflow.apply_edit(current, principal, changes, names, plagiarism, now)
            return (outcome.article if outcome.significant else None), outcome

        _, outcome = await self.store.transition(
            article_id, _apply, expected_version=article.version)

        if {"image_url", "attachments"} & outcome.changed_fields:
            await self._delete_files(
                set(article.media_urls) - set(outcome.article.media_urls))
        return outcome

    async def approve_as_coauthor(
        self,
        article_id: str,
        principal: Principal,
        expected_version: Optional[int] = None,
    ) -> ApprovalOutcome:
        now = datetime.now(timezone.utc)

        def _apply(current: Article):
            outcome = workflow.approve_as_coauthor(current, principal, now)
            return (outcome.article if outcome.changed else None), outcome

        _, outcome = await self.store.transition(
            article_id, _apply, expected_version=expected_version)
        return outcome

    async def set_status(
        self,
        article_id: str,
        principal: Principal,
        new_status,
        review_notes: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Article:
        new_status = workflow.parse_status(new_status)
        access_policy.ensure_can_set_status(principal, new_status)
        now = datetime.now(timezone.utc)

        def _apply(current: Article):
            return workflow.set_status(current, new_status, review_notes, now), None

        article, _ = await self.store.transition(
            article_id, _apply, expected_version=expected_version)
        return article

    async def toggle_like(self, article_id: str, principal: Principal) -> Tuple[Article, bool]:
        def _apply(current: Article):
            access_policy.ensure_can_view(current, principal)
            return workflow.toggle_like(current, principal.uid)

        return await self.store.transition(article_id, _apply)

    async def translate(
        self, article_id: str, principal: Principal, language: str
    ) -> Tuple[Article, str]:
        """Return the article's translation, translating and caching on a miss."""
        language = normalize_language(language)
        article = await self.get_article(article_id, principal)
        cached = translation_cache.get(article, language)
        if cached is not None:
            logger.info(f"Returning cached translation '{language}' for article {article_id}")
            return article, cached

        text = await translate_text(article.content, language)

        def _apply(current: Article):
            if current.version != article.version:
                # Content moved on while translating; don't cache a stale text
                return None, False
            return translation_cache.put(current, language, text), True

        updated, stored = await self.store.transition(article_id, _apply)
        if not stored:
            logger.warning(
                f"Article {article_id} changed during translation; result not cached")
        return updated, text

    async def delete_article(self, article_id: str, principal: Principal) -> None:
        article = await self.store.get(article_id)
        access_policy.ensure_can_mutate(article, principal, "delete")

        await self._delete_files(article.media_urls)
        try:
            await self.comments.delete_for_article(article_id)
        except Exception as e:
            # Orphaned comments must not block deleting the article
            logger.error(f"Error deleting comments for article {article_id}: {e}")
        await self.store.delete(article_id)

    async def _delete_files(self, urls) -> None:
        for url in urls:
            await self.directory.delete_file(url)


publication_service = PublicationService()
