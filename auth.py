import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import settings
from database import create_document, get_db, to_object_id
from errors import Forbidden, Unauthorized, ValidationFailed
from logging_setup import get_logger
from schemas import User as UserSchema

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


# ----------------------- Utils -----------------------
def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), settings.PASSWORD_HASH_ITERATIONS)
    return f"pbkdf2_sha256${settings.PASSWORD_HASH_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, iterations, salt, expected = password_hash.split("$")
    except (AttributeError, ValueError):
        return False
    if algo != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def create_token(payload: dict, expires_delta: Optional[timedelta] = None) -> str:
    exp = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {**payload, "exp": exp}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGO)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGO])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


def public_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role", "user"),
    }


def issue_token(user: dict) -> str:
    return create_token({"id": str(user["_id"]), "role": user.get("role", "user")})


# ----------------------- Dependencies -----------------------
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token, authorization denied")
    payload = decode_token(credentials.credentials)
    user_id = to_object_id(payload.get("id"))
    if user_id is None:
        raise Unauthorized("Invalid token payload")
    user = db["user"].find_one({"_id": user_id})
    if not user:
        raise Unauthorized("User not found")
    if not user.get("is_active", True):
        raise Unauthorized("Account disabled")
    return user


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        raise Forbidden("Access denied. Admin only.")
    return user


# ----------------------- Models -----------------------
class RegisterBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginBody(BaseModel):
    email: EmailStr
    password: str


# ----------------------- Routes -----------------------
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, db: Database = Depends(get_db)):
    email = body.email.lower()
    if db["user"].find_one({"email": email}):
        raise ValidationFailed("Email already registered")
    user = UserSchema(name=body.name, email=email, password_hash=hash_password(body.password))
    try:
        user_id = create_document(db, "user", user)
    except DuplicateKeyError:
        raise ValidationFailed("Email already registered")
    doc = db["user"].find_one({"_id": to_object_id(user_id)})
    logger.info("user_registered", user_id=user_id)
    return {"token": issue_token(doc), "user": public_user(doc)}


@router.post("/login")
def login(body: LoginBody, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": body.email.lower()})
    if not user or not verify_password(body.password, user.get("password_hash", "")):
        raise Unauthorized("Invalid credentials")
    if not user.get("is_active", True):
        raise Forbidden("Account disabled")
    return {"token": issue_token(user), "user": public_user(user)}


@router.get("/me")
def me(user: dict = Depends(get_current_user)):
    return public_user(user)
