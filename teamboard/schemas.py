"""Request bodies accepted by the API (camelCase on the wire)."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from teamboard.errors import ValidationError


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommentMentionRequest(CamelModel):
    project_id: str = ""
    comment_id: str = ""
    comment_text: str = ""
    mentioned_user_ids: list[str] = Field(default_factory=list)
    author_id: str = ""

    def validate_required(self) -> None:
        if not (
            self.project_id
            and self.comment_id
            and self.comment_text
            and self.mentioned_user_ids
            and self.author_id
        ):
            raise ValidationError("Missing required fields")


class CommentCreateRequest(CamelModel):
    content: str = ""
    parent_comment_id: str | None = None


class TaskAssignmentRequest(CamelModel):
    task_id: str = ""
    assigned_to_user_id: str = ""
    assigned_by_user_id: str = ""

    def validate_required(self) -> None:
        if not (self.task_id and self.assigned_to_user_id and self.assigned_by_user_id):
            raise ValidationError("Missing required fields")
