"""Post Schemas: the persisted Post record plus the inbound submission shapes.

Invariants:
    - Post is frozen; a created post is never mutated, only dropped on delete
    - Wire/file names are camelCase (attachmentRef, createdAt); legacy names
      (name, text, image) are accepted on load so older feed files stay readable
    - PostDraft strips author/message and turns absent values into ""

Design Decisions:
    - One model for file and wire format: the feed file IS the GET /api/posts payload
    - AliasChoices for legacy names instead of a migration step
"""

from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Post(BaseModel):
    """A single feed entry as stored on disk and pushed to clients."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    author: str = Field("", validation_alias=AliasChoices("author", "name"))
    message: str = Field("", validation_alias=AliasChoices("message", "text"))
    attachment_ref: str = Field(
        "",
        alias="attachmentRef",
        validation_alias=AliasChoices("attachmentRef", "attachment_ref", "image"),
    )
    created_at: datetime = Field(
        EPOCH,
        alias="createdAt",
        validation_alias=AliasChoices("createdAt", "created_at", "timestamp"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("author", "message", "attachment_ref", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    def to_payload(self) -> dict:
        """JSON-ready dict with wire field names."""
        return self.model_dump(by_alias=True, mode="json")


class PostDraft(BaseModel):
    """Author/message pair submitted for a new post."""
    author: str = ""
    message: str = ""

    @field_validator("author", "message", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v


class SocketPostSubmission(PostDraft):
    """new_post event body on the push channel.

    image is base64, either bare or as a data: URL. filename supplies the
    extension when the data URL does not.
    """
    image: str | None = None
    filename: str | None = None


class DeleteResponse(BaseModel):
    """Confirmation returned by DELETE /api/posts/{id}."""
    message: str = "Post deleted"
    id: str


class SaveResponse(BaseModel):
    """Confirmation returned by POST /api/save."""
    message: str = "Data saved"
    count: int
