from fastapi import APIRouter, Depends

from creditsub.core.auth_dependency import get_current_user_obj
from creditsub.db.models.user import User
from creditsub.schemas.credits import CreditsResponse

router = APIRouter(prefix="/me", tags=["Credits"])


@router.get("/credits")
def get_my_credits(user: User = Depends(get_current_user_obj)):
    return {"success": True, "data": CreditsResponse(user_id=user.id, credits=user.credits or 0)}
