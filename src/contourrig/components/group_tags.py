"""Tag collection over nested component groups.

A component group has states; each state carries tags and items, and an
item may embed another group by id. Groups can reference each other (or
themselves), so traversal tracks visited group ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class ComponentItem:
    id: str
    type: str  # "sprite" | "group" | ...
    group_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComponentItem":
        return cls(id=str(data.get("id", "")), type=str(data.get("type", "")),
                   group_id=data.get("groupId"))


@dataclass(frozen=True)
class ComponentState:
    id: str
    tags: tuple[str, ...] = ()
    items: tuple[ComponentItem, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComponentState":
        return cls(
            id=str(data.get("id", "")),
            tags=tuple(str(t) for t in data.get("tags") or () if t is not None),
            items=tuple(ComponentItem.from_dict(i) for i in data.get("items") or ()),
        )


@dataclass(frozen=True)
class ComponentGroup:
    id: str
    name: str = ""
    states: tuple[ComponentState, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComponentGroup":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            states=tuple(ComponentState.from_dict(s) for s in data.get("states") or ()),
        )

    def tags(self) -> list[str]:
        """Distinct non-blank tags over all states, trimmed, in first-seen order."""
        ordered: list[str] = []
        for state in self.states:
            for tag in state.tags:
                tag = tag.strip()
                if tag and tag not in ordered:
                    ordered.append(tag)
        return ordered

    def nested_group_ids(self) -> list[str]:
        return [it.group_id for s in self.states for it in s.items
                if it.type == "group" and it.group_id]


def collect_groups_with_tags(
    group: Optional[ComponentGroup],
    groups: Iterable[ComponentGroup],
) -> list[tuple[ComponentGroup, list[str]]]:
    """``(group, tags)`` for ``group`` and every group nested in it, depth first.

    Each group appears once, even with cyclic references. Unknown nested
    ids are ignored.
    """
    if group is None:
        return []
    by_id = {g.id: g for g in groups}
    seen: set[str] = set()
    result = []
    stack = [group]
    while stack:
        current = stack.pop()
        if current.id in seen:
            continue
        seen.add(current.id)
        result.append((current, current.tags()))
        nested = [by_id[gid] for gid in current.nested_group_ids() if gid in by_id]
        stack.extend(reversed(nested))
    return result
