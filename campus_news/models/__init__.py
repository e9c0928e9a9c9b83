from campus_news.models.article import Article, ArticleStatus, Approval, PlagiarismStatus
from campus_news.models.user import Principal, User, UserRole

__all__ = ["Article", "ArticleStatus", "Approval", "PlagiarismStatus", "Principal", "User", "UserRole"]
