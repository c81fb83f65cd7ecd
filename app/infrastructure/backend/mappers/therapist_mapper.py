"""Mapper between backend rows and therapist schemas."""

from typing import Any

from app.infrastructure.backend.mappers.embedding import unwrap_embedded
from app.schemas.therapist import TherapistLookupItem, TherapistResponse, TherapistUpdate


def _normalize(row: dict[str, Any]) -> dict[str, Any]:
    """Flatten list-shaped embeds of the account and its person."""
    account = unwrap_embedded(row.get("app_user"))
    if account is None:
        raise ValueError(f"Therapist {row.get('id')} has no account")
    person = unwrap_embedded(account.get("person"))
    if person is None:
        raise ValueError(f"Therapist {row.get('id')} has no person")
    return {**row, "app_user": {**account, "person": person}}


class TherapistMapper:
    """Maps therapist rows (embedded account and person) to schemas and back."""

    @staticmethod
    def from_row(row: dict[str, Any]) -> TherapistResponse:
        return TherapistResponse.model_validate(_normalize(row))

    @staticmethod
    def to_lookup_item(row: dict[str, Any]) -> TherapistLookupItem:
        account = unwrap_embedded(row.get("app_user")) or {}
        person = unwrap_embedded(account.get("person")) or {}
        return TherapistLookupItem(
            id=row["id"],
            public_id=row.get("public_id"),
            name=person.get("name") or "",
            lastname=person.get("lastname") or "",
        )

    @staticmethod
    def person_values(therapist: TherapistUpdate, timestamp: str) -> dict[str, Any]:
        values = therapist.app_user.person.model_dump(
            mode="json", include={"name", "lastname", "birthdate"}
        )
        values["updated_at"] = timestamp
        return values

    @staticmethod
    def account_values(therapist: TherapistUpdate, timestamp: str) -> dict[str, Any]:
        values = therapist.app_user.model_dump(mode="json", include={"email", "username", "status"})
        values["updated_at"] = timestamp
        return values

    @staticmethod
    def therapist_values(therapist: TherapistUpdate, timestamp: str) -> dict[str, Any]:
        values = therapist.model_dump(mode="json", include={"resume", "onboard_date"})
        values["updated_at"] = timestamp
        return values
