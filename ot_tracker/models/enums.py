"""
Shared Enumerations for the work-order tracker models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents, so values read
back from the store (plain strings) compare directly against members.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class UserRole(StrEnum):
    """Profile roles.

    ``ADMIN`` is the privileged role.  ``PATIENT`` is the standard role;
    the stored value is kept as-is for compatibility with existing
    profile documents.
    """

    ADMIN = "admin"
    PATIENT = "patient"


class OrdenCategory(StrEnum):
    """Kind of work ("tipo de trabajo")."""

    CLIMATIZACION = "climatizacion"
    ELECTRICA = "electrica"
    MECANICA = "mecanica"
    ELECTRONICA = "electronica"
    OPERACION = "operacion"
    FONTANERIA = "fontaneria"
    ALBANILERIA = "albanileria"
    PINTURA = "pintura"
    CARPINTERIA = "carpinteria"


class OrdenActivity(StrEnum):
    """Kind of activity ("tipo de actividad")."""

    REPARACION = "reparacion"
    MANTENIMIENTO = "mantenimiento"
    MEJORAMIENTO = "mejoramiento"
    INSTALACION = "instalacion"
    TRASLADO = "traslado"
    REVISION = "revision"
    LIMPIEZA = "limpieza"
    REEMPLAZO = "reemplazo"
    VERIFICACION = "verificacion"


class OrdenPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OrdenStatus(StrEnum):
    """Work-order status label.

    Plain label with no transition table: administrators may set any
    status from any other.
    """

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Display labels (Spanish, as shown to hospital staff)
# ---------------------------------------------------------------------------

ROLE_LABELS: Final[dict[str, str]] = {
    UserRole.ADMIN: "Administrador",
    UserRole.PATIENT: "Paciente",
}

CATEGORY_LABELS: Final[dict[str, str]] = {
    OrdenCategory.CLIMATIZACION: "Climatización",
    OrdenCategory.ELECTRICA: "Eléctrica",
    OrdenCategory.MECANICA: "Mecánica",
    OrdenCategory.ELECTRONICA: "Electrónica",
    OrdenCategory.OPERACION: "Operación",
    OrdenCategory.FONTANERIA: "Fontanería",
    OrdenCategory.ALBANILERIA: "Albañilería",
    OrdenCategory.PINTURA: "Pintura",
    OrdenCategory.CARPINTERIA: "Carpintería",
}

ACTIVITY_LABELS: Final[dict[str, str]] = {
    OrdenActivity.REPARACION: "Reparación",
    OrdenActivity.MANTENIMIENTO: "Mantenimiento",
    OrdenActivity.MEJORAMIENTO: "Mejoramiento",
    OrdenActivity.INSTALACION: "Instalación",
    OrdenActivity.TRASLADO: "Traslado",
    OrdenActivity.REVISION: "Revisión",
    OrdenActivity.LIMPIEZA: "Limpieza",
    OrdenActivity.REEMPLAZO: "Reemplazo",
    OrdenActivity.VERIFICACION: "Verificación",
}

STATUS_LABELS: Final[dict[str, str]] = {
    OrdenStatus.OPEN: "Abierto",
    OrdenStatus.IN_PROGRESS: "En Progreso",
    OrdenStatus.PENDING: "Pendiente",
    OrdenStatus.RESOLVED: "Resuelto",
    OrdenStatus.CLOSED: "Cerrado",
    OrdenStatus.CANCELLED: "Cancelado",
}
