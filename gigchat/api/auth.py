from fastapi import APIRouter, Depends

from gigchat.core.auth import get_current_profile
from gigchat.models.marketplace import Profile

router = APIRouter()


@router.get("/me")
async def me(profile: Profile = Depends(get_current_profile)):
    return {
        "id": profile.id,
        "name": profile.name,
        "avatar_url": profile.avatar_url,
        "user_type": profile.user_type,
    }
