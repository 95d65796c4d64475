# ========================================
# onboard/routes/wishlist.py
# ========================================

from typing import List

from fastapi import APIRouter, Depends, status

from onboard.dependencies import get_discovery_service, get_wishlist_service
from onboard.schemas.session import present_session
from onboard.schemas.wishlist import WishlistCreate, WishlistItemResponse
from onboard.services.discovery_service import DiscoveryService
from onboard.services.wishlist_service import WishlistService
from onboard.utils.auth import get_current_user, require_role
from onboard.utils.ids import to_object_id

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])

JOB_SEEKER_ONLY = "Access denied. Job seeker account required."


def _present_item(item: dict) -> dict:
    return {
        "id": str(item["_id"]),
        "created_at": item["created_at"],
        "session": present_session(item["session_doc"]),
    }


# ✅ 1. Get my wishlist
@router.get("", response_model=List[WishlistItemResponse])
async def get_wishlist(
    current_user: dict = Depends(get_current_user),
    wishlist: WishlistService = Depends(get_wishlist_service),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """Bookmarked sessions, newest first, with organization details."""

    require_role(current_user, "job_seeker", JOB_SEEKER_ONLY)

    items = await wishlist.list_items(current_user["_id"])
    await discovery.annotate([item["session_doc"] for item in items], current_user)
    return [_present_item(item) for item in items]


# ✅ 2. Add a session
@router.post("", response_model=WishlistItemResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    payload: WishlistCreate,
    current_user: dict = Depends(get_current_user),
    wishlist: WishlistService = Depends(get_wishlist_service),
    discovery: DiscoveryService = Depends(get_discovery_service),
):
    """Bookmark a session for later."""

    require_role(current_user, "job_seeker", JOB_SEEKER_ONLY)

    item = await wishlist.add(current_user["_id"], to_object_id(payload.session_id, "session ID"))
    await discovery.annotate([item["session_doc"]], current_user)
    return _present_item(item)


# ✅ 3. Remove a session
@router.delete("/{session_id}")
async def remove_from_wishlist(
    session_id: str,
    current_user: dict = Depends(get_current_user),
    wishlist: WishlistService = Depends(get_wishlist_service),
):
    """Remove a bookmark by session id."""

    require_role(current_user, "job_seeker", JOB_SEEKER_ONLY)

    await wishlist.remove(current_user["_id"], to_object_id(session_id, "session ID"))
    return {"success": True, "message": "Session removed from wishlist successfully"}
