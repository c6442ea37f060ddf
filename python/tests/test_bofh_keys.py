"""Buffer editing behaviour of explicit completion."""

from __future__ import annotations

from prompt_toolkit.enums import EditingMode
from prompt_toolkit.keys import Keys

from bofh.commands import build_registry
from bofh.completion import ARGUMENTS, CompletionResult, Hint, complete
from bofh.context import ShellContext
from bofh.keys import apply_completion, build_key_bindings, editing_mode_for


def test_unique_candidate_replaces_partial_token():
    result = CompletionResult(("alice",), replace_start=12)
    action = apply_completion("user_delete al", 14, result)
    assert action.text == "user_delete alice "
    assert action.cursor == len("user_delete alice ")


def test_unique_candidate_keeps_existing_separator():
    result = CompletionResult(("user_delete",), replace_start=0)
    action = apply_completion("user_de alice", 7, result)
    assert action.text == "user_delete alice"
    assert action.cursor == len("user_delete ")


def test_candidate_with_space_is_quoted():
    result = CompletionResult(("domain admins",), replace_start=11)
    action = apply_completion("group_list do", 13, result)
    assert action.text == 'group_list "domain admins" '


def test_several_candidates_are_only_displayed(example_catalog):
    result = complete(example_catalog, "us")
    action = apply_completion("us", 2, result)
    assert action.text == "us"
    assert action.cursor == 2
    assert action.display == ("user_create", "user_delete")


def test_no_candidates_keeps_hint():
    hint = Hint(ARGUMENTS, command="user_create")
    action = apply_completion("user_create alice ", 18, CompletionResult((), 18, hint))
    assert action.text == "user_create alice "
    assert action.hint is hint


def test_editing_mode_follows_context():
    ctx = ShellContext(client=None)
    assert editing_mode_for(ctx) == EditingMode.EMACS
    ctx.toggle_editing_mode()
    assert editing_mode_for(ctx) == EditingMode.VI


def test_key_bindings_include_tab_and_toggle(shell_ctx):
    bindings = build_key_bindings(shell_ctx, build_registry(), toggle_key="f5")
    keys = {tuple(binding.keys) for binding in bindings.bindings}
    assert (Keys.ControlI,) in keys
    assert (Keys.F5,) in keys
