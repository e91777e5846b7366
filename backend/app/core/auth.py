import logging

import httpx
from fastapi import HTTPException, Request

from app.core.config import get_settings


logger = logging.getLogger("dialogue-backend.auth")

AUTH_TIMEOUT_SECONDS = 10


def bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="A valid authentication token is required.")
    return token.strip()


async def get_authenticated_user_id(request: Request) -> str:
    """Resolve the chat user from a Supabase access token."""
    token = bearer_token(request)
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise HTTPException(status_code=503, detail="Authentication backend is not configured.")

    try:
        async with httpx.AsyncClient(timeout=AUTH_TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{settings.supabase_url.rstrip('/')}/auth/v1/user",
                headers={"Authorization": f"Bearer {token}", "apikey": settings.supabase_service_role_key},
            )
    except httpx.HTTPError as exc:
        logger.warning("auth_backend_unreachable err=%s", exc)
        raise HTTPException(status_code=503, detail="Authentication backend is unavailable.") from exc

    if response.status_code >= 400:
        logger.info("auth_token_rejected status=%s", response.status_code)
        raise HTTPException(status_code=401, detail="Authentication token verification failed.")

    user_id = (response.json() or {}).get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Authenticated user could not be found.")
    return str(user_id)
