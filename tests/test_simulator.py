"""顺序模拟器测试

覆盖顺序组合、no-op、未找到与歧义匹配。
"""

import pytest

from core.edit_engine.errors import ErrorCode
from core.edit_engine.models import EditOperation
from core.edit_engine.simulator import simulate


def _edit(old, new, **kwargs):
    return EditOperation(old_string=old, new_string=new, **kwargs)


def test_single_replacement():
    result = simulate("hello world", [_edit("hello", "goodbye")])

    assert result.success
    assert result.final_content == "goodbye world"
    assert result.edits_applied == 1
    assert result.outcomes[0].matches == 1
    assert result.outcomes[0].replaced == 1


def test_ambiguous_match_reports_every_line():
    result = simulate("foo foo foo", [_edit("foo", "bar")])

    assert not result.success
    assert result.failure.reason == ErrorCode.AMBIGUOUS_MATCH
    assert result.failure.edit_index == 0
    assert result.failure.match_lines == [1, 1, 1]
    assert "Found 3 matches at lines 1, 1, 1" in result.failure.message
    assert "replace_all: true" in result.failure.message


def test_replace_all_replaces_every_match():
    result = simulate("foo foo foo", [_edit("foo", "bar", replace_all=True)])

    assert result.success
    assert result.final_content == "bar bar bar"
    assert result.outcomes[0].matches == 3
    assert result.outcomes[0].replaced == 3


def test_replace_all_with_zero_matches_fails():
    result = simulate("abc", [_edit("x", "y", replace_all=True)])

    assert not result.success
    assert result.failure.reason == ErrorCode.MATCH_NOT_FOUND


def test_not_found_message_names_edit_and_old_string():
    result = simulate("a", [_edit("a", "b"), _edit("x", "y")])

    assert not result.success
    assert result.failure.edit_index == 1
    assert result.edits_applied == 1
    assert result.failure.message == 'Edit 2 of 2 failed: "x" not found in file'
    # 失败时刻的内容是前一个编辑的产物
    assert result.failure.content == "b"


@pytest.mark.parametrize("content", ["", "abc", "the needle is here"])
def test_noop_edit_never_changes_or_fails(content):
    result = simulate(content, [_edit("needle", "needle")])

    assert result.success
    assert result.final_content == content
    assert result.outcomes[0].replaced == 0


def test_noop_edit_counts_exact_case_matches_only():
    result = simulate("Needle needle", [_edit("needle", "needle", case_insensitive=True)])

    assert result.success
    assert result.outcomes[0].matches == 1
    assert result.outcomes[0].replaced == 0


def test_sequential_composition_matches_stepwise_application():
    content = "alpha beta gamma"
    e1 = _edit("alpha", "delta")
    e2 = _edit("delta beta", "omega")

    batch = simulate(content, [e1, e2])
    step1 = simulate(content, [e1])
    step2 = simulate(step1.final_content, [e2])

    assert batch.success
    assert batch.final_content == step2.final_content == "omega gamma"


def test_later_edit_sees_text_created_by_earlier_edit():
    result = simulate("x", [_edit("x", "y"), _edit("y", "z")])

    assert result.success
    assert result.final_content == "z"


def test_earlier_edit_can_remove_later_target():
    result = simulate("foo bar", [_edit("foo bar", "baz"), _edit("bar", "qux")])

    assert not result.success
    assert result.failure.reason == ErrorCode.MATCH_NOT_FOUND
    assert result.failure.edit_index == 1


def test_empty_batch_is_success():
    result = simulate("unchanged", [])

    assert result.success
    assert result.final_content == "unchanged"
    assert result.edits_applied == 0


def test_case_insensitive_edit():
    result = simulate("Title: HELLO", [_edit("hello", "bye", case_insensitive=True)])

    assert result.success
    assert result.final_content == "Title: bye"


def test_input_content_not_mutated():
    edits = [_edit("a", "b")]
    content = "a"
    simulate(content, edits)
    assert content == "a"
    assert edits[0].old_string == "a"
