"""Command catalog tests."""

from __future__ import annotations

import pytest

from bofh.catalog import ArgumentKind, CommandCatalog, CommandSpec, parse_command
from bofh.errors import CatalogFetchFailed, CompletionLookupTimeout, RemoteFault, TransportTimeout

from conftest import SAMPLE_COMMANDS, StubClient


@pytest.mark.parametrize(
    "type_name,kind",
    [
        ("yesNo", ArgumentKind.BOOLEAN),
        ("id", ArgumentKind.NUMERIC),
        ("spread", ArgumentKind.ENUMERATED),
        ("accountName", ArgumentKind.REFERENCE),
        ("disk", ArgumentKind.REFERENCE),
        ("date", ArgumentKind.FREE_TEXT),
        (None, ArgumentKind.FREE_TEXT),
    ],
)
def test_argument_kind_classification(type_name, kind):
    assert ArgumentKind.classify(type_name) is kind


def test_parse_command_arguments():
    spec = parse_command("user_create", SAMPLE_COMMANDS["user_create"])
    assert spec.group == "user" and spec.subcommand == "create"
    first, second = spec.arguments
    assert first.name == "Account name"
    assert first.required and first.kind is ArgumentKind.REFERENCE
    assert second.optional and second.type_name == "date"
    assert spec.usage() == "user_create <accountName> [date]"
    assert spec.required_count == 1


def test_parse_prompt_func_command():
    spec = parse_command("access_grant", SAMPLE_COMMANDS["access_grant"])
    assert spec.prompt_func
    assert spec.argument_at(5) is spec.arguments[0]
    assert spec.arguments[0].kind is ArgumentKind.ENUMERATED


def test_parse_flags_as_strings():
    spec = parse_command("x", [["a", "b"], [{"type": "id", "optional": "True", "repeat": "False"}]])
    assert spec.arguments[0].optional
    assert not spec.arguments[0].repeat


def test_parse_rejects_malformed_entry():
    with pytest.raises(ValueError):
        parse_command("broken", [["a", "b"], ["not-a-dict"]])


def test_repeat_argument_absorbs_positions(catalog):
    spec = catalog.lookup("group_add_entity")
    assert spec.argument_at(1).type_name == "accountName"
    assert spec.argument_at(7).type_name == "accountName"
    assert catalog.lookup("user_delete").argument_at(1) is None


def test_prefix_search_is_sorted_subset_and_idempotent(catalog):
    names = catalog.names()
    for prefix in ["", "u", "user_", "group", "zzz"]:
        first = [spec.name for spec in catalog.prefix_search(prefix)]
        assert first == sorted(name for name in names if name.startswith(prefix))
        assert [spec.name for spec in catalog.prefix_search(prefix)] == first


def test_duplicate_specs_rejected():
    spec = CommandSpec("dup")
    with pytest.raises(ValueError):
        CommandCatalog.from_specs([spec, spec])


def test_groups_and_subcommands(catalog):
    assert catalog.groups() == ["access", "group", "misc", "spread", "user"]
    assert catalog.subcommand_search("user", "") == ["create", "delete", "password", "reserve"]
    assert catalog.subcommand_search("user", "d") == ["delete"]
    assert [spec.name for spec in catalog.group_commands("group")] == ["group_add_entity", "group_list"]


def test_resolve_exact(catalog):
    assert catalog.resolve(["user_create", "alice"]) == (catalog.lookup("user_create"), 1)
    assert catalog.resolve(["user", "create", "alice"]) == (catalog.lookup("user_create"), 2)
    assert catalog.resolve(["user", "cr"]) is None
    assert catalog.resolve(["user_cr"]) is None
    assert catalog.resolve([]) is None


def test_resolve_unique_prefixes(catalog):
    assert catalog.resolve(["us", "cr"], exact=False) == (catalog.lookup("user_create"), 2)
    assert catalog.resolve(["user_del"], exact=False) == (catalog.lookup("user_delete"), 1)
    assert catalog.resolve(["user_"], exact=False) is None


def test_load_is_atomic_on_failure():
    client = StubClient()
    client.errors["get_commands"] = TransportTimeout("get_commands timed out")
    with pytest.raises(CatalogFetchFailed):
        CommandCatalog.load(client, None, timeout=1.0)


def test_load_rejects_malformed_response():
    client = StubClient(commands={"bad": "nonsense"})
    with pytest.raises(CatalogFetchFailed):
        CommandCatalog.load(client, None)


def test_load_passes_timeout(stub_client, session):
    loaded = CommandCatalog.load(stub_client, session, timeout=2.5)
    assert len(loaded) == len(SAMPLE_COMMANDS)
    assert stub_client.remote_calls("get_commands") == [("get_commands", 2.5)]


def test_boolean_values_are_static(catalog, stub_client):
    spec = catalog.lookup("user_reserve")
    assert catalog.enumerated_values(spec, spec.arguments[1]) == ["no", "yes"]
    assert catalog.enumerated_values(spec, spec.arguments[1], "y") == ["yes"]
    assert not stub_client.remote_calls("call_prompt_func")


def test_free_text_and_numeric_values_are_empty(catalog, stub_client):
    spec = catalog.lookup("spread_add")
    assert catalog.enumerated_values(spec, spec.arguments[0]) == []
    assert catalog.enumerated_values(spec, spec.arguments[1]) == []
    assert not stub_client.remote_calls("call_prompt_func")


def test_remote_values_are_filtered_and_cached(catalog, stub_client):
    spec = catalog.lookup("user_delete")
    assert catalog.enumerated_values(spec, spec.arguments[0], "al") == ["albert", "alice"]
    assert catalog.enumerated_values(spec, spec.arguments[0], "b") == ["bob"]
    assert len(stub_client.remote_calls("call_prompt_func")) == 1


def test_remote_values_keyed_on_typed_arguments(catalog, stub_client):
    spec = catalog.lookup("group_add_entity")
    catalog.enumerated_values(spec, spec.arguments[1], typed=("staff",))
    catalog.enumerated_values(spec, spec.arguments[1], typed=("admins",))
    assert len(stub_client.remote_calls("call_prompt_func")) == 2


def test_lookup_timeout_degrades_to_empty(catalog, stub_client):
    spec = catalog.lookup("user_delete")
    stub_client.errors["call_prompt_func"] = CompletionLookupTimeout("slow")
    assert catalog.enumerated_values(spec, spec.arguments[0]) == []


def test_lookup_timeout_is_retried_on_next_request(catalog, stub_client):
    spec = catalog.lookup("user_delete")
    stub_client.errors["call_prompt_func"] = CompletionLookupTimeout("slow")
    assert catalog.enumerated_values(spec, spec.arguments[0]) == []
    assert catalog.enumerated_values(spec, spec.arguments[0], "b") == ["bob"]
    assert len(stub_client.remote_calls("call_prompt_func")) == 2


def test_rejected_lookup_is_not_repeated(catalog, stub_client):
    spec = catalog.lookup("user_delete")
    stub_client.errors["call_prompt_func"] = RemoteFault("No prompt function for user_delete")
    assert catalog.enumerated_values(spec, spec.arguments[0]) == []
    assert catalog.enumerated_values(spec, spec.arguments[0], "b") == []
    assert len(stub_client.remote_calls("call_prompt_func")) == 1


def test_values_without_transport_are_empty(example_catalog):
    spec = example_catalog.lookup("group_list")
    assert example_catalog.enumerated_values(spec, spec.arguments[0]) == []


def test_format_suggestion_is_cached(catalog, stub_client):
    spec = catalog.lookup("group_list")
    assert catalog.format_suggestion(spec) is None
    assert catalog.format_suggestion(spec) is None
    assert len(stub_client.remote_calls("get_format_suggestion")) == 1


def test_refresh_returns_new_catalog(catalog, stub_client):
    stub_client.commands = {"misc_motd": [["misc", "motd"], []]}
    fresh = catalog.refresh()
    assert fresh is not catalog
    assert fresh.names() == ["misc_motd"]
    assert "user_create" in catalog
