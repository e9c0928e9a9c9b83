"""
Error kinds raised by the publication workflow.

Every error aborts the transition before anything is written. The HTTP layer
renders them through the handler registered in ``campus_news.main``.
"""


class WorkflowError(Exception):
    """Base class for workflow failures surfaced to the HTTP layer."""

    status_code = 500
    kind = "WorkflowError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(WorkflowError):
    """Article (or approver reference) does not resolve."""

    status_code = 404
    kind = "NotFound"


class ForbiddenError(WorkflowError):
    """Principal lacks the role or authorship the mutation needs."""

    status_code = 403
    kind = "Forbidden"


class InvalidStateError(WorkflowError):
    """Action is not applicable to the article's current status."""

    status_code = 400
    kind = "InvalidState"


class InvalidArgumentError(WorkflowError):
    """Request would break an article invariant (e.g. empty author set)."""

    status_code = 400
    kind = "InvalidArgument"


class ConflictError(WorkflowError):
    """Observed version no longer matches the stored version."""

    status_code = 409
    kind = "Conflict"


class DependencyFailedError(WorkflowError):
    """An external capability (plagiarism, translation) failed or timed out."""

    status_code = 503
    kind = "DependencyFailed"


def article_not_found(article_id: str) -> NotFoundError:
    # Same message for missing and hidden articles
    return NotFoundError(f"Article not found with id {article_id}")
