"""
Article request/response schemas
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from campus_news.models.article import (
    Approval,
    Article,
    ArticleCategory,
    ArticleStatus,
    Attachment,
    PlagiarismStatus,
)


class ArticleCreateSchema(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, description="Article body")
    category: ArticleCategory
    author_ids: list[str] = Field(
        default_factory=list, alias="authorIds",
        description="Co-authors; the creator is always added")
    image_url: str = Field("", alias="imageUrl")
    attachments: list[Attachment] = Field(default_factory=list)
    language: str = Field("en", min_length=2, max_length=5)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Library extends exam-season opening hours",
                "content": "Starting next week the main library...",
                "category": "Announcements",
                "authorIds": ["uid_coauthor"],
                "imageUrl": "",
                "attachments": [],
            }
        }
    )


class ArticleUpdateSchema(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[ArticleCategory] = None
    author_ids: Optional[list[str]] = Field(None, alias="authorIds")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    attachments: Optional[list[Attachment]] = None
    version: Optional[int] = Field(
        None, ge=1, description="Version the edit is based on; 409 if stale")

    model_config = ConfigDict(populate_by_name=True)


class ArticleStatusUpdateSchema(BaseModel):
    status: ArticleStatus
    review_notes: Optional[str] = Field(None, alias="reviewNotes")
    version: Optional[int] = Field(None, ge=1)

    model_config = ConfigDict(populate_by_name=True)


class TranslateRequest(BaseModel):
    target_language: str = Field(..., min_length=2, max_length=5, alias="targetLanguage")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("target_language")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class ArticleResponse(BaseModel):
    article_id: str = Field(..., alias="articleId")
    author_ids: list[str] = Field(..., alias="authorIds")
    author_names_text: str = Field("", alias="authorNamesText")
    title: str
    content: str
    category: ArticleCategory
    language: str = "en"
    image_url: str = Field("", alias="imageUrl")
    attachments: list[Attachment] = Field(default_factory=list)
    status: ArticleStatus
    pending_approvals: list[Approval] = Field(default_factory=list, alias="pendingApprovals")
    last_edited_by: Optional[str] = Field(None, alias="lastEditedBy")
    version: int
    plagiarism_status: PlagiarismStatus = Field(..., alias="plagiarismStatus")
    plagiarism_score: Optional[int] = Field(None, alias="plagiarismScore")
    published_at: Optional[datetime] = Field(None, alias="publishedAt")
    review_notes: str = Field("", alias="reviewNotes")
    likes_count: int = Field(0, alias="likesCount")
    comment_count: int = Field(0, alias="commentCount")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    message: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
    )

    @classmethod
    def from_article(cls, article: Article, message: Optional[str] = None) -> "ArticleResponse":
        response = cls.model_validate(article)
        if message is not None:
            response = response.model_copy(update={"message": message})
        return response


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total: int
    page: int
    page_size: int = Field(..., alias="pageSize")

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
    )


class LikeResponse(BaseModel):
    liked: bool
    total_likes: int = Field(..., alias="totalLikes")
    message: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class TranslationResponse(BaseModel):
    article_id: str = Field(..., alias="articleId")
    language: str
    translated_content: str = Field(..., alias="translatedContent")

    model_config = ConfigDict(populate_by_name=True)
