from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from .security import decode_user_token
from ..database import get_db
from ..models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")

def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token.",
        headers={"WWW-Authenticate": "Bearer"},
    )

# 1. Bearer token -> user (both claims must match the same row)
async def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme)
) -> User:
    try:
        claims = decode_user_token(token)
    except JWTError:
        raise _invalid_token()

    username = claims.get("sub")
    if username is None:
        raise _invalid_token()

    query = db.query(User).filter(User.username == username)
    if claims.get("userId") is not None:
        query = query.filter(User.id == claims["userId"])
    user = query.first()
    if user is None:
        raise _invalid_token()
    return user

# 2. Task and wallet administration
async def get_current_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
