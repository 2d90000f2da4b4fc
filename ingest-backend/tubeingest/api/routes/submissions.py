import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from tubeingest.api.deps import client_origin
from tubeingest.core.enums import VideoCategory, VideoSource, VideoStatus
from tubeingest.db.repositories import VideoRepository
from tubeingest.db.session import get_db
from tubeingest.schemas.video import SubmissionCreate, VideoOut
from tubeingest.services.throttle import SubmissionThrottle, get_submission_throttle
from tubeingest.services.youtube import default_thumbnail_url, extract_youtube_video_id, watch_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("", response_model=VideoOut, status_code=201)
def submit_video(
    body: SubmissionCreate,
    request: Request,
    db: Session = Depends(get_db),
    throttle: SubmissionThrottle = Depends(get_submission_throttle),
):
    """
    Submit a video link for manual review.
    Each origin gets a limited number of accepted submissions per window.
    """
    yt_id = extract_youtube_video_id(body.video_url)
    if not yt_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube URL")

    origin = client_origin(request)
    if not throttle.check_and_record(origin):
        logger.info(f"[throttle] Rejected submission from {origin}")
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again later.")

    videos = VideoRepository(db)
    inserted = videos.insert_if_absent(
        yt_id,
        url=watch_url(yt_id),
        title=body.title or f"Submitted video {yt_id}",
        description="",
        channel_name="",
        thumbnail_url=default_thumbnail_url(yt_id),
        published_at=None,
        duration_sec=0,
        status=VideoStatus.PENDING.value,
        category=VideoCategory.UNCATEGORIZED.value,
        source=VideoSource.SUBMISSION.value,
    )
    if not inserted:
        raise HTTPException(
            status_code=409,
            detail="This video already has a submission pending or is already categorized",
        )
    db.commit()
    return videos.get_by_youtube_id(yt_id)
