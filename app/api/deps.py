"""
Dependencias reutilizables para routers (FastAPI Depends).

- Autenticación: extrae y valida el Access Token y devuelve el id del usuario (`sub`).
- Mantener esta capa delgada: sin lógica de negocio.
"""
from typing import Optional
from fastapi import HTTPException, Header
from jwt import InvalidTokenError
from starlette.status import HTTP_401_UNAUTHORIZED

from app.infrastructure.security.token_service import verify_access_token


def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = verify_access_token(token)
    except InvalidTokenError:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return str(user_id)
