"""Account resource models for the organisation accounts API.

Request and response models are kept apart: the response carries fields the
API fills in itself (``created_on``, ``modified_on``) that a create request
must not send. All models ignore unknown fields so that additions on the API
side do not break decoding.

Example:
    >>> request = CreateAccountRequest(data=CreateAccountData(
    ...     id=uuid4(),
    ...     organisation_id=uuid4(),
    ...     attributes=AccountAttributes(name=["Samantha Holder"], country="GB"),
    ... ))
    >>> request.to_json()
    b'{"data":{"attributes":{"country":"GB","name":["Samantha Holder"]},...}}'
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class AccountAttributes(BaseModel):
    """Account attributes shared by create requests and responses."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    account_classification: str | None = None
    account_matching_opt_out: bool | None = None
    account_number: str | None = None
    alternative_names: list[str] | None = None
    bank_id: str | None = None
    bank_id_code: str | None = None
    base_currency: str | None = None
    bic: str | None = None
    country: str | None = None
    iban: str | None = None
    joint_account: bool | None = None
    name: list[str] | None = None
    secondary_identification: str | None = None
    status: str | None = None
    switched: bool | None = None


class CreateAccountData(BaseModel):
    """Resource data of a create request."""

    model_config = ConfigDict(extra="ignore")

    id: UUID
    organisation_id: UUID
    type: str = "accounts"
    version: NonNegativeInt | None = None
    attributes: AccountAttributes | None = None


class CreateAccountRequest(BaseModel):
    """Create account request envelope."""

    model_config = ConfigDict(extra="ignore")

    data: CreateAccountData

    def to_json(self) -> bytes:
        """Serialize for the wire, leaving out unset optional fields."""
        return self.model_dump_json(exclude_none=True).encode()


class AccountData(BaseModel):
    """Resource data of an account as returned by the API."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: UUID
    organisation_id: UUID
    type: str = "accounts"
    version: Annotated[int, Field(ge=0)] | None = None
    attributes: AccountAttributes | None = None
    created_on: datetime | None = None
    modified_on: datetime | None = None


class AccountResponse(BaseModel):
    """Account response envelope."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    data: AccountData
