"""
Seen-review endpoints:
  POST   /feed/seen                        — mark reviews as seen (batch)
  GET    /feed/seen/{user_id}              — list seen review ids
  GET    /feed/seen/{user_id}/{review_id}  — is this review seen?
  DELETE /feed/seen/{user_id}/{review_id}  — show a review again
  DELETE /feed/seen/{user_id}              — forget everything seen

Typically called by the client after rendering a feed page. Redis failures
never surface here: SeenStore logs and absorbs them.
"""
from fastapi import APIRouter, Depends, status

from review_feed.clients.redis_client import SeenStore, get_seen_store
from review_feed.schemas import SeenListResponse, SeenRecord, SeenStatusResponse

router = APIRouter()


@router.post("/seen", status_code=status.HTTP_204_NO_CONTENT)
async def mark_seen(body: SeenRecord, seen_store: SeenStore = Depends(get_seen_store)):
    await seen_store.mark_seen_batch(body.user_id, body.review_ids)


@router.get("/seen/{user_id}", response_model=SeenListResponse)
async def list_seen(user_id: str, seen_store: SeenStore = Depends(get_seen_store)):
    review_ids = await seen_store.get_seen_ids(user_id)
    return SeenListResponse(user_id=user_id, review_ids=review_ids, count=len(review_ids))


@router.get("/seen/{user_id}/{review_id}", response_model=SeenStatusResponse)
async def is_seen(
    user_id: str, review_id: str, seen_store: SeenStore = Depends(get_seen_store)
):
    seen = await seen_store.is_seen(user_id, review_id)
    return SeenStatusResponse(user_id=user_id, review_id=review_id, seen=seen)


@router.delete("/seen/{user_id}/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_seen(
    user_id: str, review_id: str, seen_store: SeenStore = Depends(get_seen_store)
):
    await seen_store.remove_seen(user_id, review_id)


@router.delete("/seen/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_seen(user_id: str, seen_store: SeenStore = Depends(get_seen_store)):
    await seen_store.clear_seen(user_id)
