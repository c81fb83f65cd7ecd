from fastapi import APIRouter, Depends

from app.api.v1 import health
from app.api.v1.endpoints import appointments, auth, clients, therapies, therapists
from app.core.dependencies import require_authenticated_session
from app.schemas import COMMON_RESPONSES

# Router principal avec réponses RFC 9457 par défaut
router = APIRouter(responses=COMMON_RESPONSES)

# Écrans de gestion: session opérateur obligatoire
operator_session = [Depends(require_authenticated_session)]

router.include_router(health.router, tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(clients.router, prefix="/clients", tags=["clients"], dependencies=operator_session)
router.include_router(
    therapists.router, prefix="/therapists", tags=["therapists"], dependencies=operator_session
)
router.include_router(
    therapies.router, prefix="/therapies", tags=["therapies"], dependencies=operator_session
)
router.include_router(
    appointments.router, prefix="/appointments", tags=["appointments"], dependencies=operator_session
)
