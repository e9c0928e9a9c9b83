"""
Article publication workflow.

Pure transitions over immutable Article values. Nothing here touches the
store: the publication service reads an article, calls one of these functions
and commits the returned article in a single transactional write. Every
transition therefore either yields a complete new article or raises before
anything is written.

States:
    Draft ──edit (multi-author)──▶ Pending Approval ──all co-authors──▶ Pending Admin Review
      ▲                                   │                                  │
      └──edit (single author)── Rejected ◀┴────────── admin override ───────▶ Published

Significant edits (title, content, category, authors, media) bump ``version``,
clear cached translations and restart co-author approval from scratch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from campus_news.errors import ForbiddenError, InvalidArgumentError, InvalidStateError
from campus_news.models.article import (
    Approval,
    Article,
    ArticleCategory,
    ArticleStatus,
    Attachment,
    PlagiarismStatus,
)
from campus_news.models.user import Principal
from campus_news.services import access_policy
from campus_news.services.plagiarism_service import PlagiarismResult
from campus_news.services.translation_service import translation_cache

logger = logging.getLogger(__name__)

SIGNIFICANT_FIELDS = frozenset(
    {"title", "content", "category", "author_ids", "image_url", "attachments"})


class SideEffect(Enum):
    PLAGIARISM_CHECK = "plagiarism_check"
    TRANSLATION_INVALIDATED = "translation_invalidated"


@dataclass(frozen=True)
class ArticleChanges:
    """Fields an editor submits; None means "not supplied"."""

    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[ArticleCategory] = None
    author_ids: Optional[List[str]] = None
    image_url: Optional[str] = None
    attachments: Optional[List[Attachment]] = None


@dataclass(frozen=True)
class EditOutcome:
    article: Article
    significant: bool
    changed_fields: FrozenSet[str] = frozenset()
    side_effects: FrozenSet[SideEffect] = frozenset()


@dataclass(frozen=True)
class ApprovalOutcome:
    article: Article
    changed: bool
    message: str
    implicit: bool = False
    recovered: bool = False


@dataclass(frozen=True)
class CreateOutcome:
    article: Article
    side_effects: FrozenSet[SideEffect] = field(default_factory=frozenset)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unique(ids) -> List[str]:
    return list(dict.fromkeys(str(i) for i in ids if i))


def fresh_approvals(author_ids: List[str], editor_id: Optional[str]) -> List[Approval]:
    """One unapproved entry per author except the one who produced the version."""
    return [Approval(user_id=uid) for uid in author_ids if uid != editor_id]


def author_names_text(author_ids: List[str], names: Optional[Dict[str, str]]) -> str:
    names = names or {}
    return " ".join(names.get(uid) or uid for uid in author_ids).strip()


def append_note(existing: str, note: str) -> str:
    return f"{existing}\n{note}" if existing else note


def diff_changes(article: Article, changes: ArticleChanges) -> Dict[str, object]:
    """Supplied fields whose value differs from the stored article."""
    changed: Dict[str, object] = {}
    if changes.title is not None and changes.title != article.title:
        changed["title"] = changes.title
    if changes.content is not None and changes.content != article.content:
        changed["content"] = changes.content
    if changes.category is not None and ArticleCategory(changes.category) != article.category:
        changed["category"] = ArticleCategory(changes.category)
    if changes.author_ids is not None:
        proposed = _unique(changes.author_ids)
        if not proposed:
            raise InvalidArgumentError("Article must have at least one author.")
        if set(proposed) != set(article.author_ids):
            changed["author_ids"] = proposed
    if changes.image_url is not None and changes.image_url != article.image_url:
        changed["image_url"] = changes.image_url
    if changes.attachments is not None and list(changes.attachments) != article.attachments:
        changed["attachments"] = list(changes.attachments)
    return changed


def _plagiarism_fields(plagiarism: Optional[PlagiarismResult]) -> dict:
    if plagiarism is None:
        return {"plagiarism_status": PlagiarismStatus.NOT_CHECKED, "plagiarism_score": None}
    return {"plagiarism_status": plagiarism.stored_status, "plagiarism_score": plagiarism.score}


def apply_edit(
    article: Article,
    principal: Principal,
    changes: ArticleChanges,
    author_names: Optional[Dict[str, str]] = None,
    plagiarism: Optional[PlagiarismResult] = None,
    now: Optional[datetime] = None,
) -> EditOutcome:
    """
    Compute the article that results from ``principal`` editing it.

    Args:
        article: Current stored article
        principal: The editor (admin or one of the authors)
        changes: Submitted fields
        author_names: uid -> display name, used when the author set changes
        plagiarism: Gate result for ``changes.content``; None resets the
            plagiarism fields to Not Checked when content changes
        now: Clock override for tests

    Raises:
        ForbiddenError: editor is neither admin nor author
        InvalidArgumentError: edit would leave the article without authors
    """
    access_policy.ensure_can_mutate(article, principal, "update")
    changed = diff_changes(article, changes)
    if not changed:
        logger.info(f"No significant changes detected for article {article.article_id}")
        return EditOutcome(article=article, significant=False)

    now = now or _utc_now()
    editor_id = principal.uid
    original_status = article.status
    author_ids = changed.get("author_ids", article.author_ids)

    updates = dict(changed)
    updates.update(
        version=article.version + 1,
        last_edited_by=editor_id,
        updated_at=now,
    )
    side_effects = set()

    if article.translated_content:
        side_effects.add(SideEffect.TRANSLATION_INVALIDATED)
    updates["translated_content"] = translation_cache.invalidate(article).translated_content

    if "author_ids" in changed:
        updates["author_names_text"] = author_names_text(author_ids, author_names)

    if len(author_ids) > 1:
        new_status = ArticleStatus.PENDING_APPROVAL
        updates["pending_approvals"] = fresh_approvals(author_ids, editor_id)
    else:
        if original_status == ArticleStatus.PUBLISHED:
            new_status = ArticleStatus.PENDING_ADMIN_REVIEW
        else:
            # Solo drafts stay drafts; rejected or under-review articles go
            # back to Draft so the author can resubmit.
            new_status = ArticleStatus.DRAFT
        updates["pending_approvals"] = []
    updates["status"] = new_status

    if original_status == ArticleStatus.PUBLISHED:
        updates["published_at"] = None
        note = (f"[System] Reverted to '{new_status.value}' due to edits on "
                f"{now.date().isoformat()} by {principal.label}.")
        updates["review_notes"] = append_note(article.review_notes, note)

    if "content" in changed:
        side_effects.add(SideEffect.PLAGIARISM_CHECK)
        updates.update(_plagiarism_fields(plagiarism))

    new_article = article.evolve(**updates)
    logger.info(
        f"Article {article.article_id} edited by {editor_id}: "
        f"{original_status.value} -> {new_status.value}, version {new_article.version}, "
        f"{len(new_article.pending_approvals)} approvals pending")
    return EditOutcome(
        article=new_article,
        significant=True,
        changed_fields=frozenset(changed),
        side_effects=frozenset(side_effects),
    )


def _approval_is_implicit(article: Article, approver_id: str) -> bool:
    """
    True when ``approver_id`` produced the version under approval.

    The list is built from every author except the editor, so besides the
    recorded last editor, an author who is the only one missing from a
    non-empty list is the editor of this version.
    """
    if approver_id == article.last_edited_by:
        return True
    pending_ids = {a.user_id for a in article.pending_approvals}
    return bool(pending_ids) and pending_ids == set(article.author_ids) - {approver_id}


def approve_as_coauthor(
    article: Article,
    principal: Principal,
    now: Optional[datetime] = None,
) -> ApprovalOutcome:
    """
    Record ``principal``'s sign-off on the current version.

    Raises:
        InvalidStateError: article is not awaiting co-author approval
        ForbiddenError: principal is not an author
    """
    if article.status != ArticleStatus.PENDING_APPROVAL:
        raise InvalidStateError(
            f"Article is not currently awaiting co-author approvals "
            f"(Status: {article.status.value})")
    approver_id = principal.uid
    if not article.is_author(approver_id):
        raise ForbiddenError("You are not an author of this article and cannot approve it.")

    now = now or _utc_now()
    entry = next((a for a in article.pending_approvals if a.user_id == approver_id), None)

    if entry is None:
        if article.pending_approvals and _approval_is_implicit(article, approver_id):
            return ApprovalOutcome(
                article=article,
                changed=False,
                implicit=True,
                message="You are the last editor; your approval is implicit. "
                        "Waiting for other co-authors.")
        logger.warning(
            f"Article {article.article_id} has no approval entry for author {approver_id}; "
            f"advancing to '{ArticleStatus.PENDING_ADMIN_REVIEW.value}'")
        recovered = article.evolve(
            status=ArticleStatus.PENDING_ADMIN_REVIEW,
            last_edited_by=approver_id,
            updated_at=now,
        )
        return ApprovalOutcome(
            article=recovered,
            changed=True,
            recovered=True,
            message="Approval list was incomplete; article sent to admin review.")

    if entry.approved:
        return ApprovalOutcome(
            article=article, changed=False,
            message="Your approval was already recorded for this version.")

    approvals = [
        Approval(user_id=a.user_id, approved=True, approved_at=now)
        if a.user_id == approver_id else a
        for a in article.pending_approvals
    ]
    all_approved = all(a.approved for a in approvals)
    new_status = ArticleStatus.PENDING_ADMIN_REVIEW if all_approved else ArticleStatus.PENDING_APPROVAL
    updated = article.evolve(
        pending_approvals=approvals,
        status=new_status,
        last_edited_by=approver_id,
        updated_at=now,
    )
    if all_approved:
        logger.info(
            f"All co-authors approved article {article.article_id}. "
            f"Status changed to {new_status.value}.")
    return ApprovalOutcome(article=updated, changed=True, message="Your approval has been recorded.")


def parse_status(value: Union[str, ArticleStatus]) -> ArticleStatus:
    try:
        return ArticleStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ArticleStatus)
        raise InvalidArgumentError(f"Invalid status: '{value}'. Must be one of: {allowed}")


def set_status(
    article: Article,
    new_status: Union[str, ArticleStatus],
    review_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Article:
    """Admin override: move the article to any status, bypassing approvals."""
    new_status = parse_status(new_status)
    now = now or _utc_now()
    old_status = article.status

    updates = {"status": new_status, "updated_at": now}
    if new_status == ArticleStatus.PUBLISHED and old_status != ArticleStatus.PUBLISHED:
        updates["published_at"] = now
    if new_status == ArticleStatus.PENDING_APPROVAL and old_status != ArticleStatus.PENDING_APPROVAL:
        updates["pending_approvals"] = fresh_approvals(article.author_ids, article.last_edited_by)
    if review_notes is not None:
        updates["review_notes"] = review_notes.strip()

    logger.info(
        f"Admin status override on article {article.article_id}: "
        f"{old_status.value} -> {new_status.value}")
    return article.evolve(**updates)


def create_article(
    article_id: str,
    principal: Principal,
    title: str,
    content: str,
    category: ArticleCategory,
    author_ids: Optional[List[str]] = None,
    image_url: str = "",
    attachments: Optional[List[Attachment]] = None,
    language: str = "en",
    author_names: Optional[Dict[str, str]] = None,
    plagiarism: Optional[PlagiarismResult] = None,
    now: Optional[datetime] = None,
) -> CreateOutcome:
    """Build a new article; the creator is always one of its authors."""
    access_policy.ensure_can_create(principal)
    now = now or _utc_now()
    authors = _unique(author_ids or [])
    if principal.uid not in authors:
        authors.append(principal.uid)

    multi_author = len(authors) > 1
    article = Article(
        article_id=article_id,
        author_ids=authors,
        author_names_text=author_names_text(authors, author_names),
        title=title,
        content=content,
        category=category,
        language=language,
        image_url=image_url or "",
        attachments=attachments or [],
        status=ArticleStatus.PENDING_APPROVAL if multi_author else ArticleStatus.DRAFT,
        pending_approvals=fresh_approvals(authors, principal.uid) if multi_author else [],
        last_edited_by=principal.uid,
        version=1,
        created_at=now,
        updated_at=now,
        **_plagiarism_fields(plagiarism),
    )
    logger.info(
        f"Article {article_id} created by {principal.uid} with {len(authors)} author(s), "
        f"status {article.status.value}")
    return CreateOutcome(article=article, side_effects=frozenset({SideEffect.PLAGIARISM_CHECK}))


def toggle_like(article: Article, user_id: str) -> Tuple[Article, bool]:
    """
    Like or unlike; the only place ``likedBy`` changes.

    ``likesCount`` is derived from ``likedBy`` by the model.
    """
    liked_by = list(article.liked_by)
    if user_id in liked_by:
        liked_by.remove(user_id)
        liked = False
    else:
        liked_by.append(user_id)
        liked = True
    return article.evolve(liked_by=liked_by), liked
