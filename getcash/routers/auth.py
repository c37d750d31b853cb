from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..core import security
from ..core.exceptions import AuthenticationError, ConflictError, PersistenceError, ValidationError
from ..core.logger import logger
from ..schemas import LoginRequest, RegisterRequest
from ..services.wallet import get_or_create_wallet
from .. import models

router = APIRouter(tags=["Auth"])

@router.post("/register")
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    if not body.username or not body.password or not body.phone:
        raise ValidationError("Username, password, and phone number required.")

    if db.query(models.User).filter(models.User.username == body.username).first():
        raise ConflictError("Username already exists.")

    new_user = models.User(
        username=body.username,
        hashed_password=security.get_password_hash(body.password),
        phone=body.phone,
    )
    try:
        db.add(new_user)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Register failed: {e}")
        raise PersistenceError("Registration failed, please contact the administrator")

    get_or_create_wallet(db, new_user.id)
    logger.info(f"New user registered: {body.username}")
    return {"message": "Registration successful.", "userId": new_user.id}

@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = None
    if body.username and body.password:
        user = db.query(models.User).filter(models.User.username == body.username).first()
    if not user or not security.verify_password(body.password, user.hashed_password):
        raise AuthenticationError("Invalid credentials.")

    token = security.create_user_token(user.username, user.id)
    return {
        "message": "Login successful.",
        "token": token,
        "userId": user.id,
        "username": user.username,
        "isAdmin": bool(user.is_admin),
    }
