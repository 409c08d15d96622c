"""Tests for tag collection over nested component groups."""

from contourrig.components.group_tags import ComponentGroup, collect_groups_with_tags


def _group(gid, tags=(), nested=()):
    items = [{"id": f"i_{n}", "type": "group", "groupId": n} for n in nested]
    items.append({"id": "sprite", "type": "sprite"})
    return ComponentGroup.from_dict({
        "id": gid,
        "name": gid.upper(),
        "states": [{"id": "default", "tags": list(tags), "items": items}],
    })


def test_tags_are_trimmed_and_distinct():
    group = ComponentGroup.from_dict({
        "id": "g",
        "states": [
            {"id": "a", "tags": [" smile ", "blink", ""]},
            {"id": "b", "tags": ["smile", None, "  "]},
        ],
    })
    assert group.tags() == ["smile", "blink"]


def test_nested_groups_depth_first():
    groups = [
        _group("root", ["r"], nested=["a", "b"]),
        _group("a", ["x"], nested=["c"]),
        _group("b", ["y"]),
        _group("c", ["z"]),
    ]
    result = collect_groups_with_tags(groups[0], groups)
    assert [g.id for g, _ in result] == ["root", "a", "c", "b"]
    assert [tags for _, tags in result] == [["r"], ["x"], ["z"], ["y"]]


def test_cycles_terminate():
    groups = [
        _group("self", ["s"], nested=["self", "other"]),
        _group("other", ["o"], nested=["self"]),
    ]
    result = collect_groups_with_tags(groups[0], groups)
    assert [g.id for g, _ in result] == ["self", "other"]


def test_unknown_nested_ids_are_ignored():
    root = _group("root", nested=["missing"])
    assert [g.id for g, _ in collect_groups_with_tags(root, [root])] == ["root"]


def test_none_group():
    assert collect_groups_with_tags(None, []) == []
