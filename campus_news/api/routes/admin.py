"""Admin API routes"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from campus_news.config import settings
from campus_news.dependencies import require_admin
from campus_news.models.article import ArticleCategory, ArticleStatus
from campus_news.models.user import Principal
from campus_news.services.publication_service import publication_service
from campus_news.schemas.article import ArticleListResponse, ArticleResponse


router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/articles", response_model=ArticleListResponse)
async def list_all_articles(
    status_filter: Optional[ArticleStatus] = Query(None, alias="status"),
    category: Optional[ArticleCategory] = Query(None),
    authorId: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_admin),
):
    """All articles in every status, e.g. the review queue with status=Pending Admin Review"""
    articles, total = await publication_service.list_all(
        status=status_filter,
        category=category.value if category else None,
        author_id=authorId,
        page=page,
        page_size=limit,
    )
    return ArticleListResponse(
        articles=[ArticleResponse.from_article(a) for a in articles],
        total=total,
        page=page,
        page_size=limit,
    )
