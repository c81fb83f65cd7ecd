"""Schemas Pydantic pour validation des donnees."""

from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentSearchFilters,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    WeekViewResponse,
)
from app.schemas.auth import LoginRequest, SessionState, SessionStatus, SessionUser
from app.schemas.client import (
    ClientCreate,
    ClientDetails,
    ClientDetailsUpdate,
    ClientListResponse,
    ClientLookupItem,
    ClientResponse,
    ClientSearchFilters,
)
from app.schemas.person import Account, Address, Person
from app.schemas.responses import (
    COMMON_RESPONSES,
    ConflictErrorResponse,
    ProblemDetailResponse,
    ValidationErrorResponse,
)
from app.schemas.therapist import (
    TherapistCreate,
    TherapistListResponse,
    TherapistLookupItem,
    TherapistResponse,
    TherapistSearchFilters,
    TherapistUpdate,
)
from app.schemas.therapy import (
    TherapyCreate,
    TherapyListResponse,
    TherapyResponse,
    TherapySearchFilters,
    TherapyUpdate,
)

__all__ = [
    "COMMON_RESPONSES",
    "Account",
    "Address",
    "AppointmentCreate",
    "AppointmentListResponse",
    "AppointmentResponse",
    "AppointmentSearchFilters",
    "AppointmentStatusUpdate",
    "AppointmentUpdate",
    "ClientCreate",
    "ClientDetails",
    "ClientDetailsUpdate",
    "ClientListResponse",
    "ClientLookupItem",
    "ClientResponse",
    "ClientSearchFilters",
    "ConflictErrorResponse",
    "LoginRequest",
    "Person",
    "ProblemDetailResponse",
    "SessionState",
    "SessionStatus",
    "SessionUser",
    "TherapistCreate",
    "TherapistListResponse",
    "TherapistLookupItem",
    "TherapistResponse",
    "TherapistSearchFilters",
    "TherapistUpdate",
    "TherapyCreate",
    "TherapyListResponse",
    "TherapyResponse",
    "TherapySearchFilters",
    "TherapyUpdate",
    "ValidationErrorResponse",
    "WeekViewResponse",
]
