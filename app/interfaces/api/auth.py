"""Auth API routes — login, register, me, user removal."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.infrastructure.database import get_db
from app.infrastructure.storage import FileStorage
from app.application.services.auth_service import (
    authenticate_user,
    create_user,
    create_user_token,
    delete_user,
    get_user_by_email,
    get_user_by_id,
)
from app.core.exceptions import EntityNotFoundException, UnauthorizedException
from app.domain.schemas.auth import Identity, LoginRequest, TokenResponse, UserCreate, UserRead
from app.interfaces.api.deps import get_current_user, require_admin
from app.interfaces.deps import get_storage

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, body.email, body.password)
    if not user:
        raise UnauthorizedException("Incorrect email or password")

    return TokenResponse(
        access_token=create_user_token(user),
        user=UserRead.model_validate(user),
    )


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    existing = get_user_by_email(db, body.email)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = create_user(
        db=db,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    return UserRead.model_validate(user)


@router.get("/me", response_model=UserRead)
def get_me(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return UserRead.model_validate(get_user_by_id(db, identity.id))


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    user_id: int,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    admin: Identity = Depends(require_admin),
):
    """Delete a user together with their uploaded files and saved charts."""
    user = get_user_by_id(db, user_id)
    if user is None:
        raise EntityNotFoundException("User not found", {"user_id": user_id})
    delete_user(db, user, storage=storage)
