import secrets
from typing import Optional
from fastapi import HTTPException, Header

import config

# One shared admin password; no user accounts

def verify_password(password: str) -> bool:
    return secrets.compare_digest(password.encode(), config.ADMIN_PASSWORD.encode())

def create_token() -> str:
    # The session token is fixed per deployment
    return config.ADMIN_TOKEN

def verify_token(Authorization: Optional[str] = Header(None)):
    if not Authorization or not Authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="No token")
    token = Authorization.split(" ", 1)[1].strip()
    if not secrets.compare_digest(token.encode(), config.ADMIN_TOKEN.encode()):
        raise HTTPException(status_code=403, detail="Bad token")
    return {"user": "admin"}
