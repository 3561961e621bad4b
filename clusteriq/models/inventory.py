"""Inventory data structures.

The inventory is a strict three-level hierarchy::

    Inventory.accounts[name] -> Account.clusters[name] -> Cluster.instances[i]

Snapshots arrive as a single JSON document with camelCase keys.  Models are
frozen: a snapshot is replaced wholesale on every refresh, never patched.
Fields the models do not declare are preserved verbatim so instance payloads
stay opaque to the cache.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class DeserializationError(Exception):
    """Raised when a snapshot blob does not decode into a valid Inventory."""


def _scalar_text(value: Any) -> Any:
    # Numeric ids and names are read as their text form.
    if isinstance(value, int | float):
        return str(value)
    return value


Text = Annotated[str, BeforeValidator(_scalar_text)]


class InventoryModel(BaseModel):
    """Shared pydantic configuration for every inventory level.

    A ``null`` on a declared field means "absent": the key is dropped before
    validation so the field default applies.  Undeclared fields are kept
    as-is, nulls included.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        declared = set(cls.model_fields) | {to_camel(name) for name in cls.model_fields}
        return {key: value for key, value in data.items() if value is not None or key not in declared}


class Instance(InventoryModel):
    """A single compute instance.  Only ``id`` and ``name`` are interpreted."""

    id: Text = ""
    name: Text = ""


class Cluster(InventoryModel):
    """A cluster and its ordered instances."""

    name: Text = ""
    # Name of the owning account, filled from the parent when absent.
    account_name: Text = ""
    instances: list[Instance] = Field(default_factory=list)

    @field_validator("instances", mode="before")
    @classmethod
    def _null_instances(cls, value: Any) -> Any:
        return [] if value is None else value


class Account(InventoryModel):
    """A cloud account owning clusters keyed by name."""

    name: Text = ""
    provider: Text = ""
    clusters: dict[str, Cluster] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_cluster_context(cls, data: Any) -> Any:
        """Default each cluster's name to its key and account to this account."""
        if not isinstance(data, dict):
            return data
        clusters = data.get("clusters")
        if clusters is None:
            return {**data, "clusters": {}}
        if not isinstance(clusters, dict):
            return data
        account_name = data.get("name", "")
        filled: dict[str, Any] = {}
        for key, cluster in clusters.items():
            if isinstance(cluster, dict):
                cluster = dict(cluster)
                if not cluster.get("name"):
                    cluster["name"] = key
                if account_name and not (cluster.get("accountName") or cluster.get("account_name")):
                    cluster["accountName"] = account_name
            filled[key] = cluster
        return {**data, "clusters": filled}


class Inventory(InventoryModel):
    """Root of a snapshot: every account keyed by name."""

    accounts: dict[str, Account] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_account_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        accounts = data.get("accounts")
        if accounts is None:
            return {**data, "accounts": {}}
        if not isinstance(accounts, dict):
            return data
        filled: dict[str, Any] = {}
        for key, account in accounts.items():
            if isinstance(account, dict) and not account.get("name"):
                account = {**account, "name": key}
            filled[key] = account
        return {**data, "accounts": filled}

    @classmethod
    def from_json(cls, blob: bytes | str) -> Inventory:
        """Decode a serialized snapshot.

        Raises:
            DeserializationError: if *blob* is not valid JSON or does not
                match the inventory shape.
        """
        try:
            return cls.model_validate_json(blob)
        except ValidationError as exc:
            raise DeserializationError(
                f"snapshot does not decode into an inventory ({exc.error_count()} errors): {exc.errors()[0]['msg']}"
            ) from exc

    def to_json(self) -> str:
        """Serialize to the same camelCase document accepted by from_json."""
        return self.model_dump_json(by_alias=True)

    @property
    def cluster_count(self) -> int:
        return sum(len(account.clusters) for account in self.accounts.values())

    @property
    def instance_count(self) -> int:
        return sum(
            len(cluster.instances) for account in self.accounts.values() for cluster in account.clusters.values()
        )
