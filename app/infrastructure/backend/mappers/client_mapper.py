"""Mapper between backend rows and the client aggregate schemas.

Rows arrive as plain dicts from the REST surface; every row is validated
into a pydantic model here, and outgoing values are rendered as
JSON-ready column dicts.
"""

from typing import Any

from app.infrastructure.backend.mappers.embedding import unwrap_embedded
from app.schemas.client import ClientDetails, ClientLookupItem, ClientResponse
from app.schemas.person import Account, AccountUpdate, Address, PersonBase


class ClientMapper:
    """Maps client, person, address and account rows.

    - client row (with embedded person) -> ClientResponse (from_row)
    - client row -> ClientLookupItem (to_lookup_item)
    - client row + address rows + account row -> ClientDetails (to_details)
    - schemas -> column values for insert/update (person_values, ...)
    """

    @staticmethod
    def from_row(row: dict[str, Any]) -> ClientResponse:
        person = unwrap_embedded(row.get("person"))
        if person is None:
            raise ValueError(f"Client {row.get('id')} has no person")
        return ClientResponse.model_validate({**row, "person": person})

    @staticmethod
    def to_lookup_item(row: dict[str, Any]) -> ClientLookupItem:
        person = unwrap_embedded(row.get("person")) or {}
        return ClientLookupItem(
            id=row["id"],
            public_id=row.get("public_id") or "",
            name=person.get("name") or "",
            lastname=person.get("lastname") or "",
        )

    @staticmethod
    def to_details(
        client_row: dict[str, Any],
        address_rows: list[dict[str, Any]],
        account_row: dict[str, Any] | None,
    ) -> ClientDetails:
        """Assemble the aggregate; address order is the fetch order."""
        person = unwrap_embedded(client_row.get("person"))
        if person is None:
            raise ValueError(f"Client {client_row.get('public_id')} has no person")
        return ClientDetails(
            id=client_row["id"],
            public_id=client_row["public_id"],
            person_id=client_row.get("person_id") or person["id"],
            person=person,
            onboard_date=client_row.get("onboard_date"),
            addresses=[Address.model_validate(row) for row in address_rows],
            user=Account.model_validate(account_row) if account_row else None,
        )

    @staticmethod
    def person_values(person: PersonBase, timestamp: str) -> dict[str, Any]:
        values = person.model_dump(mode="json", include={"name", "lastname", "birthdate"})
        values["updated_at"] = timestamp
        return values

    @staticmethod
    def address_values(address: Address, timestamp: str) -> dict[str, Any]:
        """Address columns without identifiers."""
        values = address.model_dump(mode="json", exclude={"id", "person_id"})
        values["updated_at"] = timestamp
        return values

    @staticmethod
    def account_values(account: AccountUpdate, timestamp: str) -> dict[str, Any]:
        values = account.model_dump(mode="json", include={"email", "username", "status"})
        values["updated_at"] = timestamp
        return values
