from typing import Any, Dict, Optional

from fastapi import Header

from journal.core.errors import Unauthorized
from journal.core.security import extract_token_from_header, verify_token


async def get_current_user_claims(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    """Все claims из токена провайдера идентификации"""
    token = extract_token_from_header(authorization)
    if not token:
        raise Unauthorized("Unauthorized: No user ID found in request")

    payload = verify_token(token)
    if payload is None:
        raise Unauthorized("Could not validate credentials")

    return payload


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Стабильный идентификатор пользователя (claim sub)"""
    claims = await get_current_user_claims(authorization)
    user_id = claims.get("sub")
    if not user_id:
        raise Unauthorized("Unauthorized: No user ID found in request")
    return str(user_id)


async def get_current_user_email(authorization: Optional[str] = Header(None)) -> Optional[str]:
    claims = await get_current_user_claims(authorization)
    return claims.get("email")
