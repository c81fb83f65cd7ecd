"""Mapper between backend rows and appointment schemas."""

from typing import Any

from app.infrastructure.backend.mappers.embedding import full_name, unwrap_embedded
from app.schemas.appointment import AppointmentBase, AppointmentResponse


class AppointmentMapper:
    """Maps appointment rows, resolving client/therapist/service names from embeds."""

    @staticmethod
    def from_row(row: dict[str, Any]) -> AppointmentResponse:
        client = unwrap_embedded(row.get("client")) or {}
        therapist = unwrap_embedded(row.get("therapist")) or {}
        account = unwrap_embedded(therapist.get("app_user")) or {}
        therapy = unwrap_embedded(row.get("therapy")) or {}

        data = {key: value for key, value in row.items() if key not in ("client", "therapist", "therapy")}
        data["client_name"] = full_name(unwrap_embedded(client.get("person")))
        data["therapist_name"] = full_name(unwrap_embedded(account.get("person")))
        data["service_name"] = therapy.get("name")
        return AppointmentResponse.model_validate(data)

    @staticmethod
    def to_values(appointment: AppointmentBase, timestamp: str, *, created: bool = False) -> dict[str, Any]:
        """Column values for a full-field insert or update."""
        values = appointment.model_dump(mode="json")
        values["updated_at"] = timestamp
        if created:
            values["created_at"] = timestamp
        return values
