"""Unit tests for clusteriq.models.inventory decoding and encoding."""

from __future__ import annotations

import json

import pytest
from conftest import make_cluster, make_instance, make_snapshot, shared_name_snapshot, single_cluster_snapshot
from pydantic import ValidationError

from clusteriq.models.inventory import Account, Cluster, DeserializationError, Instance, Inventory

# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestFromJson:
    def test_decodes_three_levels(self) -> None:
        inventory = Inventory.from_json(json.dumps(single_cluster_snapshot()))

        assert list(inventory.accounts) == ["acct1"]
        account = inventory.accounts["acct1"]
        assert isinstance(account, Account)
        assert account.provider == "AWS"
        cluster = account.clusters["clusterA"]
        assert isinstance(cluster, Cluster)
        assert [i.id for i in cluster.instances] == ["i-0a1", "i-0a2"]

    def test_accepts_bytes(self) -> None:
        inventory = Inventory.from_json(json.dumps(single_cluster_snapshot()).encode())
        assert inventory.instance_count == 2

    def test_instance_payload_kept_opaque(self) -> None:
        inventory = Inventory.from_json(json.dumps(single_cluster_snapshot()))
        instance = inventory.accounts["acct1"].clusters["clusterA"].instances[0]

        dumped = instance.model_dump(by_alias=True)
        assert dumped["instanceType"] == "m5.xlarge"
        assert dumped["tags"] == [{"key": "Owner", "value": "platform"}]

    def test_cluster_gets_owning_account_name(self) -> None:
        inventory = Inventory.from_json(json.dumps(shared_name_snapshot()))
        assert inventory.accounts["prod"].clusters["shared"].account_name == "prod"
        assert inventory.accounts["staging"].clusters["shared"].account_name == "staging"

    def test_explicit_account_name_on_cluster_is_kept(self) -> None:
        doc = make_snapshot({"acct1": {"c1": make_cluster("c1", [], accountName="legacy-acct")}})
        inventory = Inventory.from_json(json.dumps(doc))
        assert inventory.accounts["acct1"].clusters["c1"].account_name == "legacy-acct"

    def test_missing_names_default_to_keys(self) -> None:
        doc = {"accounts": {"acct9": {"clusters": {"c9": {"instances": []}}}}}
        inventory = Inventory.from_json(json.dumps(doc))

        account = inventory.accounts["acct9"]
        assert account.name == "acct9"
        assert account.clusters["c9"].name == "c9"
        assert account.clusters["c9"].account_name == "acct9"

    def test_null_collections_become_empty(self) -> None:
        doc = {
            "accounts": {
                "a": {"name": "a", "clusters": None},
                "b": {"name": "b", "clusters": {"c": {"name": "c", "instances": None}}},
            }
        }
        inventory = Inventory.from_json(json.dumps(doc))

        assert inventory.accounts["a"].clusters == {}
        assert inventory.accounts["b"].clusters["c"].instances == []

    def test_null_accounts_is_empty_inventory(self) -> None:
        assert Inventory.from_json('{"accounts": null}').accounts == {}

    def test_missing_accounts_is_empty_inventory(self) -> None:
        assert Inventory.from_json("{}").accounts == {}


class TestNullAndNumericScalars:
    def test_null_scalars_at_every_level_decode(self) -> None:
        blob = (
            '{"accounts":{"a":{"provider":null,"clusters":{"c":{"region":null,'
            '"instances":[{"id":"i1","name":null}]}}}}}'
        )
        inventory = Inventory.from_json(blob)

        account = inventory.accounts["a"]
        assert account.provider == ""
        cluster = account.clusters["c"]
        assert cluster.name == "c"
        assert cluster.account_name == "a"
        assert cluster.instances[0].id == "i1"
        assert cluster.instances[0].name == ""

    def test_null_names_default_to_keys(self) -> None:
        doc = {"accounts": {"acct1": {"name": None, "clusters": {"c1": {"name": None, "accountName": None}}}}}
        account = Inventory.from_json(json.dumps(doc)).accounts["acct1"]

        assert account.name == "acct1"
        assert account.clusters["c1"].name == "c1"
        assert account.clusters["c1"].account_name == "acct1"

    def test_null_undeclared_field_is_kept(self) -> None:
        blob = '{"accounts":{"a":{"clusters":{"c":{"region":null}}}}}'
        cluster = Inventory.from_json(blob).accounts["a"].clusters["c"]
        assert cluster.model_dump(by_alias=True)["region"] is None

    def test_numeric_instance_id_read_as_text(self) -> None:
        cluster = Cluster.model_validate({"instances": [{"id": 123, "name": 7}]})
        assert cluster.instances[0].id == "123"
        assert cluster.instances[0].name == "7"

    def test_numeric_account_provider_read_as_text(self) -> None:
        doc = {"accounts": {"a": {"provider": 42, "clusters": {}}}}
        assert Inventory.from_json(json.dumps(doc)).accounts["a"].provider == "42"

    def test_null_scalars_round_trip(self) -> None:
        instances = [make_instance("i-1", None), {"id": 9}]  # type: ignore[arg-type]
        doc = make_snapshot({"a": {"c": make_cluster("c", instances)}})
        decoded = Inventory.from_json(json.dumps(doc))

        assert [i.id for i in decoded.accounts["a"].clusters["c"].instances] == ["i-1", "9"]
        assert Inventory.from_json(decoded.to_json()) == decoded

    def test_structured_name_still_rejected(self) -> None:
        with pytest.raises(DeserializationError):
            Inventory.from_json('{"accounts": {"a": {"name": {"nested": true}}}}')


class TestFromJsonErrors:
    @pytest.mark.parametrize(
        "blob",
        [
            "",
            "not json",
            "null",
            "[]",
            '"Stock"',
            '{"accounts": []}',
            '{"accounts": {"a": {"clusters": {"c": {"instances": {}}}}}}',
            '{"accounts": {"a": "broken"}}',
        ],
    )
    def test_invalid_documents_raise_deserialization_error(self, blob: str) -> None:
        with pytest.raises(DeserializationError):
            Inventory.from_json(blob)

    def test_error_chains_validation_cause(self) -> None:
        with pytest.raises(DeserializationError) as info:
            Inventory.from_json("{")
        assert info.value.__cause__ is not None


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestToJson:
    def test_round_trip_is_structurally_equal(self) -> None:
        original = Inventory.from_json(json.dumps(shared_name_snapshot()))
        assert Inventory.from_json(original.to_json()) == original

    def test_round_trip_ignores_mapping_order(self) -> None:
        doc = shared_name_snapshot()
        reordered = {"accounts": dict(reversed(list(doc["accounts"].items())))}
        assert Inventory.from_json(json.dumps(doc)) == Inventory.from_json(json.dumps(reordered))

    def test_uses_camel_case_keys(self) -> None:
        inventory = Inventory.from_json(json.dumps(single_cluster_snapshot()))
        encoded = json.loads(inventory.to_json())

        cluster = encoded["accounts"]["acct1"]["clusters"]["clusterA"]
        assert cluster["accountName"] == "acct1"
        assert cluster["consoleLink"].startswith("https://")
        assert "account_name" not in cluster


class TestCounts:
    def test_counts_span_all_accounts(self) -> None:
        inventory = Inventory.from_json(json.dumps(shared_name_snapshot()))
        assert inventory.cluster_count == 3
        assert inventory.instance_count == 4

    def test_empty_inventory_counts(self) -> None:
        inventory = Inventory()
        assert inventory.cluster_count == 0
        assert inventory.instance_count == 0

    def test_models_are_frozen(self) -> None:
        instance = Instance(id="i-1", name="n")
        with pytest.raises(ValidationError):
            instance.name = "other"  # type: ignore[misc]

    def test_unknown_instance_fields_survive(self) -> None:
        doc = make_snapshot({"a": {"c": make_cluster("c", [make_instance("i-1", "n1", zone="eu-west-1a")])}})
        instance = Inventory.from_json(json.dumps(doc)).accounts["a"].clusters["c"].instances[0]
        assert instance.model_dump()["zone"] == "eu-west-1a"
