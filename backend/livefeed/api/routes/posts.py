"""Post Routes: feed read, create, and delete over HTTP.

Invariants:
    - GET never touches disk: it serves the FeedCache snapshot
    - POST and DELETE go through MutationPipeline only; routes hold no feed state
    - POST accepts multipart or urlencoded forms; any other body is a 400
    - Missing author/message become "" (not an error)
    - An upload over the size limit is rejected from its declared size, and
      never read past limit + 1 bytes
    - POST /api/save replaces the whole feed through the same pipeline lock

Design Decisions:
    - /api/data kept as an alias of /api/posts for older clients
    - Create answers 200 with the created post (clients expect 200, not 201)
"""

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from livefeed.core.domain_types import PostId
from livefeed.core.errors import FeedValidationError
from livefeed.core.feed import AttachmentUpload, check_attachment_size, extension_of
from livefeed.schemas.post import DeleteResponse, Post, PostDraft, SaveResponse
from livefeed.services.feed_cache import FeedCache
from livefeed.services.feed_runtime import get_cache, get_pipeline
from livefeed.services.mutation_pipeline import MutationPipeline

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["posts"])

_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@router.get("/posts")
@router.get("/data")
async def list_posts(cache: FeedCache = Depends(get_cache)):
    """Full feed in insertion order."""
    return cache.get().to_payload()


@router.post("/posts")
async def create_post(
    request: Request,
    author: str = Form(""),
    message: str = Form(""),
    image: UploadFile | None = File(None),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Create a post from form fields and an optional image file."""
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(_FORM_CONTENT_TYPES):
        raise FeedValidationError(
            "Expected a multipart/form-data body", field="body",
        )
    upload = await _read_upload(image, pipeline.max_attachment_bytes)
    post = await pipeline.create_post(
        PostDraft(author=author, message=message), upload,
    )
    return post.to_payload()


@router.delete("/posts/{post_id}", response_model=DeleteResponse)
async def delete_post(
    post_id: str, pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Delete a post and its attachment."""
    await pipeline.delete_post(PostId(post_id))
    return DeleteResponse(id=post_id)


@router.post("/save", response_model=SaveResponse)
async def save_feed(
    posts: list[Post], pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Overwrite the whole feed with the posted array."""
    snapshot = await pipeline.replace_feed(tuple(posts))
    return SaveResponse(count=len(snapshot.posts))


async def _read_upload(
    image: UploadFile | None, max_bytes: int,
) -> AttachmentUpload | None:
    if image is None:
        return None
    try:
        if image.size is not None:
            check_attachment_size(image.size, max_bytes)
        content = await image.read(max_bytes + 1)
    finally:
        await image.close()
    return AttachmentUpload(content=content, extension=extension_of(image.filename))
