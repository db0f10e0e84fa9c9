from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.modules.auth import auth_backend, fastapi_users, get_jwt_strategy


router = APIRouter()


@router.get("/.well-known/jwks.json", tags=["auth"])
async def jwks():
    """JWKS endpoint for public key distribution"""
    return JSONResponse(content=get_jwt_strategy().get_jwks())


# Login and logout only; accounts are provisioned with scripts/create_user.py
router.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix=f"/{settings.app.version}/auth",
    tags=["auth"],
)
