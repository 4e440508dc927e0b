"""Authentication endpoints."""
from fastapi import APIRouter, HTTPException, Response

from meetstake.schemas import AdminLoginRequest, SuccessResponse
from meetstake.core.security import ADMIN_COOKIE_NAME, verify_admin_password, create_access_token
from meetstake.core import config

router = APIRouter()


@router.post("/admin/login", response_model=SuccessResponse)
async def admin_login(request: AdminLoginRequest, response: Response) -> SuccessResponse:
    """
    Authenticate the operator and set a JWT in an httpOnly cookie.

    The admin session only unlocks the read-only ledger overview; it grants
    no authority over staking, check-in or settlement.

    Args:
        request: AdminLoginRequest containing the password field
        response: FastAPI Response object for setting cookies

    Returns:
        SuccessResponse

    Raises:
        HTTPException: 401 Unauthorized if password is invalid

    Example:
        Request:
            POST /api/v1/auth/admin/login
            {
                "password": "your-secure-password"
            }

        Response (200):
            {
                "success": true,
                "message": "Logged in successfully"
            }
            Set-Cookie: admin_token=eyJhbGc...; HttpOnly; SameSite=Lax
    """
    if not verify_admin_password(request.password):
        raise HTTPException(status_code=401, detail="Invalid password")

    access_token = create_access_token(data={"is_admin": True})

    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=config.settings.ENVIRONMENT == "production",
        samesite="lax",
        max_age=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

    return SuccessResponse(success=True, message="Logged in successfully")


@router.post("/admin/logout", response_model=SuccessResponse)
async def admin_logout(response: Response) -> SuccessResponse:
    """Clear the admin cookie. Safe to call when not logged in."""
    response.delete_cookie(key=ADMIN_COOKIE_NAME)
    return SuccessResponse(success=True, message="Logged out successfully")
