"""
Article model and Firestore conversion helpers

Collection: articles/
Document ID: article id

Articles are treated as immutable values: every workflow transition builds a
new Article through ``Article.evolve`` so the model validators re-establish the
status invariants (approvals only while pending approval, ``publishedAt`` only
while published, ``likesCount`` always equal to ``len(likedBy)``).
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator


class ArticleStatus(str, Enum):
    """Publication workflow states"""

    DRAFT = "Draft"
    PENDING_APPROVAL = "Pending Approval"
    PENDING_ADMIN_REVIEW = "Pending Admin Review"
    PUBLISHED = "Published"
    REJECTED = "Rejected"


class PlagiarismStatus(str, Enum):
    """Cached verdict of the last plagiarism check against ``content``"""

    NOT_CHECKED = "Not Checked"
    PENDING = "Pending"
    CHECKED_OK = "Checked - OK"
    CHECKED_FLAGGED = "Checked - Flagged"
    CHECK_FAILED = "Check Failed"


class ArticleCategory(str, Enum):
    ACADEMICS = "Academics"
    EVENTS = "Events"
    RESEARCH = "Research"
    CAMPUS_LIFE = "Campus Life"
    ACHIEVEMENTS = "Achievements"
    ANNOUNCEMENTS = "Announcements"
    OTHER = "Other"


class Approval(BaseModel):
    """A co-author's sign-off on one article version"""

    user_id: str = Field(..., alias="userId")
    approved: bool = False
    approved_at: Optional[datetime] = Field(None, alias="approvedAt")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Attachment(BaseModel):
    file_name: Optional[str] = Field(None, alias="fileName")
    file_url: str = Field(..., alias="fileUrl")
    file_type: Optional[str] = Field(None, alias="fileType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Article(BaseModel):
    article_id: str = Field(..., alias="articleId")
    author_ids: list[str] = Field(..., min_length=1, alias="authorIds")
    author_names_text: str = Field("", alias="authorNamesText")
    title: str
    content: str
    category: ArticleCategory
    language: str = "en"
    image_url: str = Field("", alias="imageUrl")
    attachments: list[Attachment] = Field(default_factory=list)

    status: ArticleStatus = ArticleStatus.DRAFT
    pending_approvals: list[Approval] = Field(
        default_factory=list, alias="pendingApprovals")
    last_edited_by: Optional[str] = Field(None, alias="lastEditedBy")
    version: int = Field(1, ge=1)

    plagiarism_status: PlagiarismStatus = Field(
        PlagiarismStatus.NOT_CHECKED, alias="plagiarismStatus")
    plagiarism_score: Optional[int] = Field(
        None, ge=0, le=100, alias="plagiarismScore")
    translated_content: dict[str, str] = Field(
        default_factory=dict, alias="translatedContent")

    published_at: Optional[datetime] = Field(None, alias="publishedAt")
    review_notes: str = Field("", alias="reviewNotes")

    liked_by: list[str] = Field(default_factory=list, alias="likedBy")
    likes_count: int = Field(0, ge=0, alias="likesCount")
    comment_count: int = Field(0, ge=0, alias="commentCount")

    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("author_ids", "liked_by")
    @classmethod
    def _unique_in_order(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(str(v) for v in value))

    @model_validator(mode="after")
    def _status_invariants(self) -> "Article":
        if self.status != ArticleStatus.PENDING_APPROVAL:
            self.pending_approvals = []
        if self.status != ArticleStatus.PUBLISHED:
            self.published_at = None
        self.likes_count = len(self.liked_by)
        return self

    def evolve(self, **changes) -> "Article":
        """Return a re-validated copy with ``changes`` applied (field names)."""
        return type(self).model_validate({**self.model_dump(), **changes})

    def is_author(self, uid: Optional[str]) -> bool:
        return bool(uid) and uid in self.author_ids

    @property
    def media_urls(self) -> list[str]:
        urls = [self.image_url] if self.image_url else []
        urls.extend(a.file_url for a in self.attachments)
        return urls


def firestore_article_to_model(doc: dict, doc_id: str) -> Article:
    return Article.model_validate({**doc, "articleId": doc_id})


def article_model_to_firestore(article: Article) -> dict:
    data = article.model_dump(by_alias=True, mode="python")
    data.pop("articleId", None)
    for key in ("status", "plagiarismStatus", "category"):
        data[key] = data[key].value
    return data
