from __future__ import annotations

from typing import Callable, Optional

from project_tree.core.model import FormattedTree, TreeNode


# All queries are pure: they return a new FormattedTree holding the same
# (immutable) nodes and never narrow a retained parent's children. Queries
# compose by feeding one result into the next.


def search(tree: FormattedTree, term: str) -> FormattedTree:
    """Keep phases/deliverables whose own or any direct child's name/description contains term."""
    needle = term.lower()

    def matches(node: TreeNode) -> bool:
        return _text_match(node, needle) or any(_text_match(c, needle) for c in node.children or ())

    return _keep(tree, matches)


def filter_by_status(tree: FormattedTree, status: str) -> FormattedTree:
    """Keep phases/deliverables whose own status equals status. Children are not inspected."""
    wanted = status.strip().lower()
    return _keep(tree, lambda node: node.status == wanted)


def filter_by_assignee(tree: FormattedTree, user_id: str) -> FormattedTree:
    """Keep phases with an activity owned by user_id and deliverables with a part assigned to them."""

    def assigned(node: TreeNode) -> bool:
        for child in node.children or ():
            who = child.owner if child.type == "activity" else child.assigned_to
            if who == user_id:
                return True
        return False

    return _keep(tree, assigned)


def apply_filters(
    tree: FormattedTree,
    *,
    search_term: Optional[str] = None,
    status: Optional[str] = None,
    assignee: Optional[str] = None,
) -> FormattedTree:
    out = tree
    if search_term:
        out = search(out, search_term)
    if status:
        out = filter_by_status(out, status)
    if assignee:
        out = filter_by_assignee(out, assignee)
    return out


def _text_match(node: TreeNode, needle: str) -> bool:
    if needle in node.name.lower():
        return True
    return bool(node.description) and needle in (node.description or "").lower()


def _keep(tree: FormattedTree, predicate: Callable[[TreeNode], bool]) -> FormattedTree:
    return FormattedTree(
        phases=tuple(p for p in tree.phases if predicate(p)),
        deliverables=tuple(d for d in tree.deliverables if predicate(d)),
    )
