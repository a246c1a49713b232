from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class Chirp(BaseModel):
    id: int = Field(..., description="Chirp id")
    author_id: int = Field(..., description="Id of the authoring user")
    body: str = Field(..., description="Chirp text")


class UserView(BaseModel):
    """Public projection of a user, without the password hash."""
    id: int = Field(..., description="User id")
    email: str = Field(..., description="User email address")


class User(BaseModel):
    id: int
    email: str
    hashed_password: str

    def to_view(self) -> UserView:
        return UserView(id=self.id, email=self.email)


class Document(BaseModel):
    """Everything the store persists, loaded and saved as a whole."""

    chirps: dict[int, Chirp] = Field(default_factory=dict)
    users: dict[int, User] = Field(default_factory=dict)
    revoked_tokens: dict[str, datetime] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _key_by_id(self) -> "Document":
        # Map keys always mirror the id stored in each value.
        self.chirps = {c.id: c for c in self.chirps.values()}
        self.users = {u.id: u for u in self.users.values()}
        return self


class Credentials(BaseModel):
    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class ChirpCreate(BaseModel):
    body: str = Field(..., description="Chirp text (max 140 chars)")


class LoginResponse(BaseModel):
    id: int = Field(..., description="User id")
    email: str = Field(..., description="User email address")
    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class RefreshResponse(BaseModel):
    token: str = Field(..., description="New JWT access token")
