"""Shared fixtures: an in-memory fake of the accounts API behind httpx.MockTransport."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from uuid import UUID, uuid4

import httpx
import pytest

from accountclient import (
    AccountAttributes,
    AccountClient,
    CreateAccountData,
    CreateAccountRequest,
    clear_settings_cache,
    configure_logging,
)

BASE_URL = "http://account-api.test/v1"
ACCOUNTS_PREFIX = "/v1/organisation/accounts"


class FakeAccountAPI:
    """Mimics the organisation accounts endpoints, including their uneven error bodies."""

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, object]] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if not path.startswith(ACCOUNTS_PREFIX):
            return httpx.Response(404)
        account_id = path[len(ACCOUNTS_PREFIX):].strip("/")

        match request.method, bool(account_id):
            case "POST", False:
                return self._create(request)
            case "GET", True:
                return self._fetch(account_id)
            case "DELETE", True:
                return self._delete(account_id, request.url.params.get("version"))
        return httpx.Response(405, text="method not allowed")

    def _create(self, request: httpx.Request) -> httpx.Response:
        data = json.loads(request.content)["data"]
        if not (data.get("attributes") or {}).get("country"):
            return httpx.Response(400, json={"error_message": "validation failure list:\ncountry in body is required"})
        if data["id"] in self.accounts:
            return httpx.Response(409, json={"error_message": "Account cannot be created as it violates a duplicate constraint"})
        now = datetime.now(UTC).isoformat()
        stored = {**data, "version": 0, "created_on": now, "modified_on": now}
        self.accounts[data["id"]] = stored
        return httpx.Response(201, json={"data": stored})

    def _fetch(self, account_id: str) -> httpx.Response:
        if (account := self.accounts.get(account_id)) is None:
            return httpx.Response(404, json={"error_message": f"record {account_id} does not exist"})
        return httpx.Response(200, json={"data": account})

    def _delete(self, account_id: str, version: str | None) -> httpx.Response:
        if (account := self.accounts.get(account_id)) is None:
            return httpx.Response(404)
        if version is None or int(version) != account["version"]:
            return httpx.Response(409, json={"error_message": "invalid version"})
        del self.accounts[account_id]
        return httpx.Response(204)


@pytest.fixture(autouse=True)
def quiet_logs() -> object:
    """Silence structured logging and reset cached settings around each test."""
    configure_logging(format="none")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def fake_api() -> FakeAccountAPI:
    return FakeAccountAPI()


@pytest.fixture
def client(fake_api: FakeAccountAPI) -> object:
    http = httpx.Client(transport=httpx.MockTransport(fake_api))
    with AccountClient(BASE_URL, http_client=http) as c:
        yield c
    http.close()


@pytest.fixture
def new_account() -> CreateAccountRequest:
    return make_account_request()


def make_account_request(account_id: UUID | None = None, country: str | None = "GB") -> CreateAccountRequest:
    return CreateAccountRequest(data=CreateAccountData(
        id=account_id or uuid4(),
        organisation_id=uuid4(),
        attributes=AccountAttributes(
            name=["Samantha Holder"],
            country=country,
            bank_id="400300",
            bank_id_code="GBDSC",
            bic="NWBKGB22",
        ),
    ))


@pytest.fixture
def account_factory() -> object:
    return make_account_request
