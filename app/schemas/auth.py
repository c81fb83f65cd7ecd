"""Schémas Pydantic pour la session de l'opérateur."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.utils import Email


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=1, max_length=128)


class PasswordResetRequest(BaseModel):
    email: Email


class SessionUser(BaseModel):
    """Utilisateur connecté.

    Les attributs supplémentaires renvoyés par le fournisseur sont conservés.
    """

    model_config = ConfigDict(extra="allow")

    id: str | int
    email: str | None = None
    name: str | None = None
    role: str | None = None
    permissions: list[str] = Field(default_factory=list)

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "SessionUser":
        """Construit l'utilisateur à partir de la réponse du fournisseur d'auth."""
        metadata = payload.get("user_metadata") or {}
        app_metadata = payload.get("app_metadata") or {}
        return cls(
            id=payload.get("id", ""),
            email=payload.get("email"),
            name=metadata.get("name") or "",
            role=metadata.get("role") or app_metadata.get("role") or "user",
            permissions=list(metadata.get("permissions") or app_metadata.get("permissions") or []),
        )

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions

    def has_role(self, role: str) -> bool:
        return self.role == role

    def has_any_role(self, roles: list[str]) -> bool:
        return self.role in roles if self.role else False


class SessionState(BaseModel):
    """État de session en mémoire."""

    user: SessionUser | None = None
    token: str | None = None
    refresh_token: str | None = None
    is_authenticated: bool = False
    is_loading: bool = True
    error: str | None = None


class SessionStatus(BaseModel):
    """Vue publique de l'état de session (sans jetons)."""

    is_authenticated: bool
    is_loading: bool
    user: SessionUser | None = None
    error: str | None = None
    role: str | None = None
    permissions: list[str] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStatus":
        return cls(
            is_authenticated=state.is_authenticated,
            is_loading=state.is_loading,
            user=state.user,
            error=state.error,
            role=state.user.role if state.user else None,
            permissions=state.user.permissions if state.user else [],
        )


class LoginResponse(BaseModel):
    success: bool
    session: SessionStatus


class PasswordResetResponse(BaseModel):
    success: bool
    message: str
