"""Ordering helpers for the self-referencing category tree."""
from collections import deque
from typing import Dict, List, Sequence

from app.schemas.erpnext import ERPNextItemGroup

ROOT_ITEM_GROUP = "All Item Groups"


def sort_categories_by_hierarchy(groups: Sequence[ERPNextItemGroup]) -> List[ERPNextItemGroup]:
    """Order item groups so every parent comes before its children.

    Groups whose parent is missing, is the ERPNext root sentinel, or is not
    part of ``groups`` are treated as roots. Anything the walk never reaches
    (cycles) is appended at the end in input order.
    """
    by_name: Dict[str, ERPNextItemGroup] = {group.name: group for group in groups}
    children: Dict[str, List[str]] = {}
    roots: List[str] = []

    for group in groups:
        parent = group.parent_item_group
        if not parent or parent == ROOT_ITEM_GROUP or parent not in by_name:
            roots.append(group.name)
        else:
            children.setdefault(parent, []).append(group.name)

    ordered: List[ERPNextItemGroup] = []
    visited = set()
    queue = deque(roots)
    while queue:
        name = queue.popleft()
        if name in visited:
            continue
        visited.add(name)
        ordered.append(by_name[name])
        for child in children.get(name, ()):
            if child not in visited:
                queue.append(child)

    for group in groups:
        if group.name not in visited:
            visited.add(group.name)
            ordered.append(group)

    return ordered


def order_for_deletion(rows: Sequence) -> list:
    """Order category rows so descendants are deleted before their ancestors.

    ``rows`` need ``id`` and ``parent_id``. Depth is measured only through
    parents that are themselves in ``rows``; deeper rows go first and the
    input order breaks ties.
    """
    parent_of = {row.id: row.parent_id for row in rows}
    depths: Dict[str, int] = {}

    def depth(row_id: str) -> int:
        seen = set()
        current = row_id
        hops = 0
        while parent_of.get(current) in parent_of and current not in seen:
            seen.add(current)
            current = parent_of[current]
            hops += 1
        return hops

    for row in rows:
        depths[row.id] = depth(row.id)

    return sorted(rows, key=lambda row: -depths[row.id])
