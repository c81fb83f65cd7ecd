"""Tests unitaires pour la reconciliation des adresses d'un client."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.infrastructure.backend.exceptions import BackendOperationError
from app.schemas.client import ClientDetails
from app.schemas.person import Account, Address
from app.services.client_service import plan_address_changes, update_client_details


def _address(address_id=None, street="1 Main St", city="Springfield"):
    return Address(id=address_id, person_id=10 if address_id else None, street=street, city=city)


def _details(addresses, user=None) -> ClientDetails:
    return ClientDetails(
        id=1,
        public_id="c-1",
        person_id=10,
        person={"id": 10, "name": "Ana", "lastname": "Ruiz", "birthdate": "1990-05-15"},
        onboard_date=date(2024, 1, 2),
        addresses=addresses,
        user=user,
    )


def _call_names(backend) -> list[str]:
    return [call[0] for call in backend.mock_calls]


# =============================================================================
# Tests plan_address_changes
# =============================================================================


class TestPlanAddressChanges:
    """Tests de la partition des adresses."""

    def test_update_delete_insert(self):
        """Test A=[1,2], A'=[1 modifiee, nouvelle]."""
        original = [_address(1), _address(2)]
        edited = [_address(1, street="9 Elm St"), _address(None, street="5 Oak Ave")]

        plan = plan_address_changes(original, edited)

        assert plan.to_delete == [2]
        assert [a.id for a in plan.to_update] == [1]
        assert plan.to_update[0].street == "9 Elm St"
        assert [a.street for a in plan.to_insert] == ["5 Oak Ave"]
        assert [a.street for a in plan.ordered] == ["9 Elm St", "5 Oak Ave"]

    def test_no_changes(self):
        original = [_address(1), _address(2)]

        plan = plan_address_changes(original, list(original))

        assert plan.to_delete == []
        assert [a.id for a in plan.to_update] == [1, 2]
        assert plan.to_insert == []

    def test_all_removed(self):
        plan = plan_address_changes([_address(1), _address(2)], [])

        assert plan.to_delete == [1, 2]
        assert plan.ordered == []

    def test_all_new(self):
        plan = plan_address_changes([], [_address(None), _address(None, street="2 Side St")])

        assert plan.to_delete == []
        assert len(plan.to_insert) == 2

    def test_ordered_follows_edited_list(self):
        edited = [_address(None, street="new"), _address(3, street="kept")]

        plan = plan_address_changes([_address(3)], edited)

        assert [a.street for a in plan.ordered] == ["new", "kept"]

    def test_duplicate_original_ids_deleted_once(self):
        plan = plan_address_changes([_address(4), _address(4)], [])

        assert plan.to_delete == [4]


# =============================================================================
# Tests update_client_details
# =============================================================================


class TestUpdateClientDetails:
    """Tests de la sequence d'ecritures de l'agregat."""

    @pytest.mark.asyncio
    async def test_write_order(self):
        backend = AsyncMock()
        backend.insert.return_value = {"id": 30, "person_id": 10, "street": "5 Oak Ave"}
        original = [_address(1), _address(2)]
        account = Account(id=7, person_id=10, email="ana@example.com", username="ana")
        details = _details(
            [_address(1, street="9 Elm St"), _address(None, street="5 Oak Ave")], user=account
        )

        await update_client_details(backend, details, original)

        assert _call_names(backend) == ["update", "update", "delete", "update", "insert", "update"]

        person_query, person_values = backend.update.await_args_list[0].args
        assert person_query.table == "person"
        assert person_query.filter_params() == [("id", "eq.10")]
        assert person_values["name"] == "Ana"
        assert person_values["birthdate"] == "1990-05-15"

        client_query, client_values = backend.update.await_args_list[1].args
        assert client_query.table == "client"
        assert client_query.filter_params() == [("public_id", "eq.c-1")]
        assert client_values["onboard_date"] == "2024-01-02"

        delete_query = backend.delete.await_args.args[0]
        assert delete_query.table == "address"
        assert delete_query.filter_params() == [("id", "eq.2")]

        address_query, address_values = backend.update.await_args_list[2].args
        assert address_query.filter_params() == [("id", "eq.1")]
        assert address_values["street"] == "9 Elm St"
        assert "id" not in address_values
        assert "person_id" not in address_values

        table, inserted = backend.insert.await_args.args
        assert table == "address"
        assert inserted["person_id"] == 10
        assert inserted["street"] == "5 Oak Ave"

        account_query, account_values = backend.update.await_args_list[3].args
        assert account_query.table == "app_user"
        assert account_values == {
            "email": "ana@example.com",
            "username": "ana",
            "status": "active",
            "updated_at": account_values["updated_at"],
        }

    @pytest.mark.asyncio
    async def test_account_skipped_when_absent(self):
        backend = AsyncMock()

        await update_client_details(backend, _details([_address(1)]), [_address(1)])

        assert _call_names(backend) == ["update", "update", "update"]

    @pytest.mark.asyncio
    async def test_first_failure_stops_sequence(self):
        """Test qu'un echec sur le client interrompt la suite sans annulation."""
        backend = AsyncMock()
        backend.update.side_effect = [
            [{"id": 10}],
            BackendOperationError(status_code=400, message="bad onboard_date"),
        ]

        with pytest.raises(BackendOperationError):
            await update_client_details(backend, _details([]), [_address(1)])

        assert _call_names(backend) == ["update", "update"]
        backend.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_on_address_delete_propagates(self):
        backend = AsyncMock()
        backend.delete.side_effect = BackendOperationError(status_code=409, message="still referenced")

        with pytest.raises(BackendOperationError):
            await update_client_details(backend, _details([]), [_address(1), _address(2)])

        assert backend.delete.await_count == 1
        backend.insert.assert_not_called()
