# =============================================================================================
# AUTHAPI/ROUTERS/USERS.PY - USER PROFILE ENDPOINTS
# =============================================================================================
# - GET /api/users/{user_id}: optional auth. The owner sees the full profile,
#                             everyone else (including anonymous callers) sees {id, name}
# - PUT /api/users/{user_id}: owner only (401 anonymous, 403 someone else)
# =============================================================================================

from fastapi import APIRouter, Depends

from authapi.core.deps import get_auth_service, get_optional_user, require_owner
from authapi.core.errors import NotFound
from authapi.schemas.user import ProfileViewOut, UpdateProfileIn, UserProfileOut
from authapi.services.auth import AuthService, UserProfile

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
)


@router.get("/{user_id}", response_model=ProfileViewOut, response_model_exclude_none=True)
def get_user(
    user_id: str,
    viewer: UserProfile | None = Depends(get_optional_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    profile = auth_service.get_user_by_id(user_id)
    if profile is None:
        raise NotFound()
    if viewer is not None and viewer.id == profile.id:
        return profile
    return {"id": profile.id, "name": profile.name}


@router.put("/{user_id}", response_model=UserProfileOut)
def update_user(
    user_id: str,
    data: UpdateProfileIn,
    current_user: UserProfile = Depends(require_owner("user_id")),
    auth_service: AuthService = Depends(get_auth_service),
):
    return auth_service.update_profile(current_user.id, name=data.name)
