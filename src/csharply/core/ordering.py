"""
Declaration classification and sort keys.

Members of a container are grouped into categories and the categories are
concatenated in MemberCategory order. Inside a category, keyed categories are
sorted stably by their key; the rest keep source order.
"""

from enum import IntEnum

from csharply.core.syntax import Node, NodeKind


class MemberCategory(IntEnum):
    """Member categories, valued by their position in the output"""

    PINNED = 0
    NAMESPACE = 1
    INTERFACE = 2
    FIELD = 3
    PROPERTY = 4
    CONSTRUCTOR = 5
    METHOD = 6
    CLASS = 7
    OTHER = 8
    ENUM = 9


VISIBILITY_RANK = {
    "public": 0,
    "internal": 1,
    "protected": 2,
    "private": 3,
}
DEFAULT_VISIBILITY_RANK = VISIBILITY_RANK["private"]

_CATEGORY_BY_KIND = {
    NodeKind.NAMESPACE: MemberCategory.NAMESPACE,
    NodeKind.INTERFACE: MemberCategory.INTERFACE,
    NodeKind.FIELD: MemberCategory.FIELD,
    NodeKind.PROPERTY: MemberCategory.PROPERTY,
    NodeKind.CONSTRUCTOR: MemberCategory.CONSTRUCTOR,
    NodeKind.METHOD: MemberCategory.METHOD,
    NodeKind.CLASS: MemberCategory.CLASS,
    NodeKind.ENUM: MemberCategory.ENUM,
}


def classify(node: Node) -> MemberCategory:
    if node.pinned:
        return MemberCategory.PINNED
    return _CATEGORY_BY_KIND.get(node.kind, MemberCategory.OTHER)


def visibility_rank(node: Node) -> int:
    visibility = node.visibility
    if visibility is None:
        return DEFAULT_VISIBILITY_RANK
    return VISIBILITY_RANK[visibility]


def member_sort_key(node: Node, category: MemberCategory) -> tuple | None:
    """Sort key inside a category, or None when the category keeps source order"""
    rank = visibility_rank(node)
    key = node.key

    if category in (MemberCategory.FIELD, MemberCategory.PROPERTY):
        return (rank, key.name)
    if category is MemberCategory.CONSTRUCTOR:
        return (rank, key.parameter_count)
    if category is MemberCategory.METHOD:
        return (rank, key.name, key.type_parameter_count, key.parameter_count)
    if category is MemberCategory.ENUM:
        return (rank,)
    return None


def is_standard_import(path: str, standard_prefixes: list[str]) -> bool:
    lowered = path.lower()
    return any(lowered.startswith(prefix.lower()) for prefix in standard_prefixes)


def import_sort_key(node: Node, standard_prefixes: list[str]) -> tuple:
    standard = 0 if is_standard_import(node.import_path, standard_prefixes) else 1
    return (int(node.import_group), standard, node.import_path)


def order_members(members: tuple[Node, ...]) -> tuple[Node, ...]:
    """Group members by category and sort each group by its key"""
    buckets: dict[MemberCategory, list[Node]] = {
        category: [] for category in MemberCategory
    }
    for member in members:
        buckets[classify(member)].append(member)

    ordered: list[Node] = []
    for category in MemberCategory:
        bucket = buckets[category]
        if bucket and member_sort_key(bucket[0], category) is not None:
            bucket = sorted(bucket, key=lambda node: member_sort_key(node, category))
        ordered.extend(bucket)
    return tuple(ordered)


def order_imports(
    imports: tuple[Node, ...],
    standard_prefixes: list[str],
) -> tuple[Node, ...]:
    return tuple(
        sorted(imports, key=lambda node: import_sort_key(node, standard_prefixes))
    )
