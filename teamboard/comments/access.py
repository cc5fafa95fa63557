"""Who may be notified about a comment.

The server never trusts a recipient list sent by the client: whatever ids it is
given are re-filtered against the project row and the comment author it
fetched itself.
"""

from collections.abc import Iterable

from teamboard.errors import AuthorizationError, NotFoundError


def filter_recipients(
    identity_ids: Iterable[str], author_id: str, allowed_users: Iterable[str]
) -> list[str]:
    """Keep ids that are project members and not the author, de-duplicated in order."""
    allowed = set(allowed_users or [])
    found: list[str] = []
    seen: set[str] = set()
    for identity in identity_ids:
        if identity == author_id or identity not in allowed or identity in seen:
            continue
        found.append(identity)
        seen.add(identity)
    return found


def ensure_project_member(project: dict, user_id: str) -> None:
    if user_id not in set(project.get("allowed_users") or []):
        raise AuthorizationError("Forbidden", details="Caller is not a member of this project")


def authorize_comment_mention(
    caller_id: str,
    comment: dict | None,
    project: dict | None,
    project_id: str,
    author_id: str,
) -> None:
    """Check that ``caller_id`` may send mention notifications for ``comment``.

    Raises NotFoundError for absent rows and AuthorizationError when the caller
    does not own the comment, the ids disagree, or the caller is not a member.
    """
    if comment is None:
        raise NotFoundError("Comment not found")
    if comment.get("user_id") != caller_id or author_id != caller_id:
        raise AuthorizationError("Forbidden", details="Caller does not own this comment")
    if comment.get("project_id") != project_id:
        raise AuthorizationError("Forbidden", details="Comment does not belong to this project")
    if project is None:
        raise NotFoundError("Project not found")
    ensure_project_member(project, caller_id)
