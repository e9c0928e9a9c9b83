"""
Access policy for articles.

Pure functions of a Principal and an Article. ``ensure_*`` helpers raise the
workflow error kinds; viewing an unpublished article without rights raises
NotFound with the same message as a missing article.
"""

from campus_news.errors import ForbiddenError, article_not_found
from campus_news.models.article import Article, ArticleStatus
from campus_news.models.user import Principal, UserRole

# Statuses only an admin may move an article into
ADMIN_ONLY_STATUSES = frozenset({ArticleStatus.PUBLISHED, ArticleStatus.REJECTED})


def can_view(article: Article, principal: Principal) -> bool:
    if article.status == ArticleStatus.PUBLISHED:
        return True
    if not principal.is_authenticated:
        return False
    return principal.is_admin or article.is_author(principal.uid)


def can_mutate(article: Article, principal: Principal) -> bool:
    """Edit or delete"""
    if not principal.is_authenticated:
        return False
    return principal.is_admin or article.is_author(principal.uid)


def can_create(principal: Principal) -> bool:
    return principal.is_authenticated and principal.role in (UserRole.EDITOR, UserRole.ADMIN)


def can_set_status(principal: Principal, new_status: ArticleStatus) -> bool:
    # Direct status overrides are the admin escape hatch; Published and
    # Rejected are admin-only regardless of how they are reached.
    return principal.is_admin


def ensure_can_view(article: Article, principal: Principal) -> None:
    if not can_view(article, principal):
        raise article_not_found(article.article_id)


def ensure_can_mutate(article: Article, principal: Principal, action: str = "modify") -> None:
    if not can_mutate(article, principal):
        raise ForbiddenError(f"User not authorized to {action} this article")


def ensure_can_create(principal: Principal) -> None:
    if not can_create(principal):
        raise ForbiddenError("Only editors and admins can create articles")


def ensure_can_set_status(principal: Principal, new_status: ArticleStatus) -> None:
    if not can_set_status(principal, new_status):
        if new_status in ADMIN_ONLY_STATUSES:
            raise ForbiddenError(f"Only admins can move an article to '{new_status.value}'")
        raise ForbiddenError("Only admins can change article status directly")
