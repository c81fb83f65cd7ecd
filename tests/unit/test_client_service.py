"""Tests unitaires pour client_service."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.infrastructure.backend.client import SelectResult
from app.schemas.client import ClientCreate, ClientSearchFilters
from app.schemas.person import AddressBase
from app.services import client_service


@pytest.fixture
def backend():
    """Client backend mocke."""
    return AsyncMock()


@pytest.fixture
def client_row():
    return {
        "id": 1,
        "public_id": "c-1",
        "person_id": 10,
        "onboard_date": "2024-01-02",
        "created_at": "2024-01-02T10:00:00+00:00",
        "updated_at": None,
        "person": {"id": 10, "name": "Ana", "lastname": "Ruiz", "birthdate": None},
    }


class TestListClients:
    """Tests de la liste paginee."""

    @pytest.mark.asyncio
    async def test_list_returns_exact_total(self, backend, client_row):
        backend.select.return_value = SelectResult(rows=[client_row], count=42)

        result = await client_service.list_clients(backend, ClientSearchFilters(page=3, limit=10))

        assert result.total == 42
        assert result.page == 3
        assert result.limit == 10
        assert result.items[0].person.name == "Ana"

        query = backend.select.await_args.args[0]
        assert backend.select.await_args.kwargs["count"] is True
        params = dict(query.to_params())
        assert params["order"] == "created_at.desc"
        assert params["offset"] == "20"
        assert params["limit"] == "10"
        assert "!inner" not in params["select"]

    @pytest.mark.asyncio
    async def test_list_with_search_filters_person_names(self, backend, client_row):
        backend.select.return_value = SelectResult(rows=[client_row], count=1)

        await client_service.list_clients(backend, ClientSearchFilters(search="ana"))

        query = backend.select.await_args.args[0]
        params = query.to_params()
        assert ("person.or", "(name.ilike.*ana*,lastname.ilike.*ana*)") in params
        assert "person:person_id!inner" in dict(params)["select"]

    @pytest.mark.asyncio
    async def test_list_without_count_header(self, backend, client_row):
        backend.select.return_value = SelectResult(rows=[client_row, {**client_row, "id": 2}])

        result = await client_service.list_clients(backend, ClientSearchFilters())

        assert result.total == 2


class TestSearchClients:
    """Tests de la recherche rapide."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", ["", "a", "an", "  an  "])
    async def test_short_query_issues_no_request(self, backend, term):
        assert await client_service.search_clients(backend, term) == []
        backend.select.assert_not_called()

    @pytest.mark.asyncio
    async def test_lookup_items(self, backend):
        backend.select.return_value = SelectResult(
            rows=[{"id": 1, "public_id": "c-1", "person": [{"id": 10, "name": "Ana", "lastname": "Ruiz"}]}]
        )

        items = await client_service.search_clients(backend, "ruiz")

        assert len(items) == 1
        assert items[0].name == "Ana"
        assert items[0].lastname == "Ruiz"
        params = dict(backend.select.await_args.args[0].to_params())
        assert params["limit"] == "10"


class TestCreateClient:
    """Tests de la creation d'un client."""

    @pytest.mark.asyncio
    async def test_create_client_flow(self, backend, client_row):
        backend.insert.side_effect = [
            {"id": 10, "name": "Ana", "lastname": "Ruiz", "birthdate": None},
            {"id": 1, "person_id": 10, "public_id": "c-1"},
        ]
        backend.select_single.return_value = client_row

        created = await client_service.create_client(backend, ClientCreate(name=" Ana ", lastname="Ruiz"))

        assert created.id == 1
        assert created.public_id == "c-1"

        person_call, client_call = backend.insert.await_args_list
        assert person_call.args == ("person", {"name": "Ana", "lastname": "Ruiz", "birthdate": None})
        assert client_call.args[0] == "client"
        assert client_call.args[1] == {"person_id": 10, "onboard_date": date.today().isoformat()}

        reread = backend.select_single.await_args.args[0]
        assert reread.filter_params() == [("id", "eq.1")]

    @pytest.mark.asyncio
    async def test_create_client_stops_when_person_fails(self, backend):
        backend.insert.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await client_service.create_client(backend, ClientCreate(name="Ana", lastname="Ruiz"))

        assert backend.insert.await_count == 1
        backend.select_single.assert_not_called()


class InMemoryBackend:
    """Backend en memoire: identifiants generes et personne embarquee dans le client."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {"person": [], "client": [], "address": [], "app_user": []}

    def _matching(self, query) -> list[dict]:
        rows = self.tables[query.table]
        for column, condition in query.filter_params():
            rows = [row for row in rows if f"eq.{row.get(column)}" == condition]
        if query.table == "client":
            people = {person["id"]: person for person in self.tables["person"]}
            rows = [{**row, "person": people[row["person_id"]]} for row in rows]
        return rows

    async def insert(self, table, values, columns="*"):
        row = {**values, "id": len(self.tables[table]) + 1}
        if table == "client":
            row["public_id"] = f"c-{row['id']}"
        self.tables[table].append(row)
        return row

    async def select(self, query, count=False):
        rows = self._matching(query)
        return SelectResult(rows=rows, count=len(rows) if count else None)

    async def select_single(self, query):
        (row,) = self._matching(query)
        return row

    async def select_maybe_single(self, query):
        rows = self._matching(query)
        return rows[0] if rows else None


class TestCreateThenFetch:
    @pytest.mark.asyncio
    async def test_created_client_is_found_by_public_id(self):
        backend = InMemoryBackend()

        created = await client_service.create_client(backend, ClientCreate(name="Ana", lastname="Ruiz"))
        details = await client_service.get_client_details(backend, created.public_id)

        assert details is not None
        assert details.id == created.id
        assert details.person.name == "Ana"
        assert details.person.lastname == "Ruiz"
        assert details.person.birthdate is None
        assert details.onboard_date == date.today()
        assert details.addresses == []
        assert details.user is None


class TestGetClientDetails:
    """Tests de la lecture de l'agregat."""

    @pytest.mark.asyncio
    async def test_missing_client(self, backend):
        backend.select_maybe_single.return_value = None

        assert await client_service.get_client_details(backend, "missing") is None
        backend.select.assert_not_called()

    @pytest.mark.asyncio
    async def test_details_assembled(self, backend, client_row):
        backend.select_maybe_single.side_effect = [
            client_row,
            {"id": 7, "person_id": 10, "email": "ana@example.com", "username": "ana", "status": "active"},
        ]
        backend.select.return_value = SelectResult(
            rows=[
                {"id": 3, "person_id": 10, "street": "1 Main St", "city": "Springfield", "type": "home"},
                {"id": 4, "person_id": 10, "street": "2 Side St", "city": "Shelbyville", "type": "work"},
            ]
        )

        details = await client_service.get_client_details(backend, "c-1")

        assert details.public_id == "c-1"
        assert details.person.id == 10
        assert [a.id for a in details.addresses] == [3, 4]
        assert details.user.username == "ana"

        address_query = backend.select.await_args.args[0]
        assert address_query.filter_params() == [("person_id", "eq.10")]
        assert ("order", "id.asc") in address_query.to_params()

    @pytest.mark.asyncio
    async def test_details_without_account(self, backend, client_row):
        backend.select_maybe_single.side_effect = [client_row, None]
        backend.select.return_value = SelectResult(rows=[])

        details = await client_service.get_client_details(backend, "c-1")

        assert details.user is None
        assert details.addresses == []


class TestAddressOperations:
    """Tests des operations unitaires sur les adresses."""

    @pytest.mark.asyncio
    async def test_create_address(self, backend):
        backend.insert.return_value = {"id": 5, "person_id": 10, "street": "1 Main St", "type": "home"}

        created = await client_service.create_address(backend, 10, AddressBase(street="1 Main St"))

        assert created.id == 5
        table, values = backend.insert.await_args.args
        assert table == "address"
        assert values["person_id"] == 10
        assert "created_at" in values
        assert "id" not in values

    @pytest.mark.asyncio
    async def test_delete_address(self, backend):
        await client_service.delete_address(backend, 5)

        assert backend.delete.await_args.args[0].filter_params() == [("id", "eq.5")]
