from fastapi import APIRouter, Request
from schemas.auth_schemas import UpdatePermissionsRequest, UserResponse
from utils.deps import db_dependency, auth_service_dependency, identity_dependency
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/users",
    tags=["users"]
)


@router.get("", response_model=list[UserResponse])
@limiter.limit("30/minute")
def list_users(request: Request, identity: identity_dependency, db: db_dependency,
               auth: auth_service_dependency):
    return auth.list_users(identity, db)


@router.put("/{user_id}/permissions", response_model=UserResponse)
@limiter.limit("10/minute")
def update_permissions(request: Request, user_id: int, body: UpdatePermissionsRequest,
                       identity: identity_dependency, db: db_dependency, auth: auth_service_dependency):
    return auth.update_permissions(identity, user_id, body.permissions, db)
