"""Articles API routes"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional

from campus_news.config import settings
from campus_news.dependencies import (
    get_optional_principal,
    get_principal,
    require_admin,
    require_editor,
)
from campus_news.models.article import ArticleCategory, ArticleStatus
from campus_news.models.user import Principal
from campus_news.services.publication_service import publication_service
from campus_news.services.workflow import ArticleChanges
from campus_news.schemas.article import (
    ArticleCreateSchema,
    ArticleUpdateSchema,
    ArticleStatusUpdateSchema,
    ArticleResponse,
    ArticleListResponse,
    LikeResponse,
    TranslateRequest,
    TranslationResponse,
)


router = APIRouter(prefix="/api/articles", tags=["Articles"])


def _list_response(articles, total: int, page: int, page_size: int) -> ArticleListResponse:
    return ArticleListResponse(
        articles=[ArticleResponse.from_article(a) for a in articles],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/", response_model=ArticleListResponse)
async def list_articles(
    category: Optional[ArticleCategory] = Query(None),
    authorId: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    sortBy: Optional[str] = Query(None, description="e.g. likesCount:desc,title"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    """Published articles, newest first unless sortBy says otherwise"""
    articles, total = await publication_service.list_published(
        category=category.value if category else None,
        author_id=authorId,
        q=q,
        sort_by=sortBy,
        page=page,
        page_size=limit,
    )
    return _list_response(articles, total, page, limit)


@router.get("/my-articles/all", response_model=ArticleListResponse)
async def list_my_articles(
    status_filter: Optional[ArticleStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_editor),
):
    """Every article the caller is an author of, in any status"""
    articles, total = await publication_service.list_for_author(
        principal, status=status_filter, page=page, page_size=limit)
    return _list_response(articles, total, page, limit)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str, principal: Principal = Depends(get_optional_principal)
):
    article = await publication_service.get_article(article_id, principal)
    return ArticleResponse.from_article(article)


@router.post("/", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    payload: ArticleCreateSchema, principal: Principal = Depends(require_editor)
):
    article = await publication_service.create_article(
        principal,
        title=payload.title,
        content=payload.content,
        category=payload.category,
        author_ids=payload.author_ids,
        image_url=payload.image_url,
        attachments=payload.attachments,
        language=payload.language,
    )
    message = (
        "Article created and sent to co-authors for approval."
        if article.status == ArticleStatus.PENDING_APPROVAL
        else "Article created as draft."
    )
    return ArticleResponse.from_article(article, message)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    payload: ArticleUpdateSchema,
    principal: Principal = Depends(get_principal),
):
    changes = ArticleChanges(
        title=payload.title,
        content=payload.content,
        category=payload.category,
        author_ids=payload.author_ids,
        image_url=payload.image_url,
        attachments=payload.attachments,
    )
    outcome = await publication_service.edit_article(
        article_id, principal, changes, expected_version=payload.version)
    if not outcome.significant:
        return ArticleResponse.from_article(outcome.article, "No changes applied.")
    return ArticleResponse.from_article(
        outcome.article,
        f"Article updated. Status: {outcome.article.status.value}.",
    )


@router.put("/{article_id}/approve-coauthor", response_model=ArticleResponse)
async def approve_as_coauthor(
    article_id: str, principal: Principal = Depends(get_principal)
):
    outcome = await publication_service.approve_as_coauthor(article_id, principal)
    return ArticleResponse.from_article(outcome.article, outcome.message)


@router.put("/{article_id}/status", response_model=ArticleResponse)
async def update_article_status(
    article_id: str,
    payload: ArticleStatusUpdateSchema,
    principal: Principal = Depends(require_admin),
):
    article = await publication_service.set_status(
        article_id,
        principal,
        payload.status,
        review_notes=payload.review_notes,
        expected_version=payload.version,
    )
    return ArticleResponse.from_article(
        article, f"Article status updated to '{article.status.value}'.")


@router.put("/{article_id}/like", response_model=LikeResponse)
async def toggle_like(article_id: str, principal: Principal = Depends(get_principal)):
    article, liked = await publication_service.toggle_like(article_id, principal)
    return LikeResponse(
        liked=liked,
        total_likes=article.likes_count,
        message="Article liked successfully" if liked else "Article unliked successfully",
    )


@router.post("/{article_id}/translate", response_model=TranslationResponse)
async def translate_article(
    article_id: str,
    payload: TranslateRequest,
    principal: Principal = Depends(require_editor),
):
    article, text = await publication_service.translate(
        article_id, principal, payload.target_language)
    return TranslationResponse(
        article_id=article.article_id,
        language=payload.target_language.lower(),
        translated_content=text,
    )


@router.delete("/{article_id}")
async def delete_article(article_id: str, principal: Principal = Depends(get_principal)):
    await publication_service.delete_article(article_id, principal)
    return {"message": "Article deleted successfully", "articleId": article_id}
