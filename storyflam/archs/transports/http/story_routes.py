"""FastAPI routes for stories, publications and the activity log."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Response, status

from storyflam.archs.newsroom import (
    ActivityLogModel,
    ActivityService,
    PublicationInfo,
    ServiceResult,
    StoryInput,
    StoryModel,
    StoryService,
    StoryUpdate,
)
from storyflam.archs.newsroom.export import export_to_txt

from .models import DeletedResponse, DeleteStoriesRequest, PinRequest


def _unwrap[T](result: ServiceResult[T]) -> T:
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)
    return result.data  # type: ignore[return-value]


def create_story_router(story_service: StoryService, activity_service: ActivityService) -> APIRouter:
    """Create the story router.

    Args:
        story_service: Service for story CRUD, publishing and pinning
        activity_service: Service for reading the newslab activity log

    Returns:
        Configured APIRouter with story, publication and activity endpoints.
    """
    router = APIRouter(tags=["stories"])

    @router.post("/stories", status_code=status.HTTP_201_CREATED)
    async def create_story(request: StoryInput) -> StoryModel:
        return _unwrap(await story_service.create_story(request))

    @router.post("/stories/delete")
    async def delete_stories(request: DeleteStoriesRequest) -> DeletedResponse:
        return DeletedResponse(deleted=_unwrap(await story_service.delete_stories(request.story_ids)))

    @router.get("/stories/{story_id}")
    async def get_story(story_id: str) -> StoryModel:
        return _unwrap(await story_service.get_story(story_id))

    @router.patch("/stories/{story_id}")
    async def update_story(story_id: str, request: StoryUpdate) -> StoryModel:
        """Save editor changes; only the fields present in the body are written."""
        return _unwrap(await story_service.update_story(story_id, request))

    @router.delete("/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_story(story_id: str) -> Response:
        _unwrap(await story_service.delete_story(story_id))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/stories/{story_id}/publish")
    async def publish_story(story_id: str) -> StoryModel:
        return _unwrap(await story_service.publish_story(story_id))

    @router.post("/stories/{story_id}/unpublish")
    async def unpublish_story(story_id: str) -> StoryModel:
        return _unwrap(await story_service.unpublish_story(story_id))

    @router.post("/stories/{story_id}/pin")
    async def pin_story(story_id: str, request: PinRequest) -> StoryModel:
        return _unwrap(await story_service.pin_story(story_id, request.course_id, request.publication_name))

    @router.post("/stories/{story_id}/unpin")
    async def unpin_story(story_id: str) -> StoryModel:
        return _unwrap(await story_service.unpin_story(story_id))

    @router.get("/stories/{story_id}/export.txt")
    async def export_story(story_id: str) -> Response:
        story = _unwrap(await story_service.get_story(story_id))
        filename, text = export_to_txt(story)
        return Response(
            content=text,
            media_type="text/plain; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @router.get("/newslabs/{course_id}/journalists/{author_name}/drafts")
    async def get_drafts(course_id: str, author_name: str) -> list[StoryModel]:
        return _unwrap(await story_service.get_drafts(course_id, author_name))

    @router.get("/newslabs/{course_id}/journalists/{author_name}/published")
    async def get_published(course_id: str, author_name: str) -> list[StoryModel]:
        return _unwrap(await story_service.get_published(course_id, author_name))

    @router.get("/newslabs/{course_id}/publications/{publication_name}")
    async def get_publication_info(course_id: str, publication_name: str) -> PublicationInfo:
        return _unwrap(await story_service.get_publication_info(course_id, publication_name))

    @router.get("/newslabs/{course_id}/publications/{publication_name}/stream")
    async def get_publication_stream(course_id: str, publication_name: str) -> list[StoryModel]:
        return _unwrap(await story_service.get_publication_stream(course_id, publication_name))

    @router.get("/newslabs/{course_id}/fallback-image")
    async def get_fallback_image(course_id: str) -> dict[str, str | None]:
        return {"fallback_image_url": _unwrap(await story_service.get_fallback_image_url(course_id))}

    @router.get("/newslabs/{course_id}/activity")
    async def get_activity(course_id: str, limit: int = Query(default=100, ge=1, le=1000)) -> list[ActivityLogModel]:
        return _unwrap(await activity_service.get_activity_log(course_id, limit=limit))

    return router
