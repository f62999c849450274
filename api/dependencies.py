"""API Dependencies - Authentication"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from typing import Optional
from uuid import UUID

from domain.auth import User, UserInDB
from domain.enums import UserRole
from infrastructure.repositories.in_memory_repositories import InMemoryUserRepository
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

user_repo = InMemoryUserRepository()

# Seed accounts for local runs; passwords are hashed on first lookup
_seed_users = {
    "admin": {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "plain_password": "admin123",
        "role": UserRole.ADMIN,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    },
    "guest": {
        "username": "guest",
        "full_name": "Guest User",
        "email": "guest@example.com",
        "phone": "+91-9000000000",
        "plain_password": "guest123",
        "role": UserRole.GUEST,
        "user_id": "123e4567-e89b-12d3-a456-426614174001"
    }
}

ADMIN_USER_ID = UUID(_seed_users["admin"]["user_id"])
GUEST_USER_ID = UUID(_seed_users["guest"]["user_id"])


async def seed_users(repo: InMemoryUserRepository = user_repo) -> None:
    for username, data in _seed_users.items():
        if await repo.find_by_username(username):
            continue
        user_dict = data.copy()
        user_dict["hashed_password"] = get_password_hash(user_dict.pop("plain_password"))
        await repo.save(UserInDB(**user_dict))


async def get_user(username: str) -> Optional[UserInDB]:
    await seed_users()
    return await user_repo.find_by_username(username)


async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    username = decode_access_token(token)
    if username is None:
        raise credentials_exception
    token_data = TokenData(username=username)

    user = await get_user(token_data.username)
    if user is None:
        raise credentials_exception
    return user

async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

async def require_admin(current_user: User = Depends(get_current_active_user)):
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return current_user
