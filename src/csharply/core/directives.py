"""
Preprocessor directive handling: region marker removal and the conditional
compilation guard.
"""

from dataclasses import replace

from csharply.core.syntax import Node, Trivia, TriviaKind

REGION_DIRECTIVES = frozenset({"region", "endregion"})

DEFAULT_GUARD_DIRECTIVES = ("if", "elif", "else", "endif", "nullable")


def strip_region_trivia(trivia: tuple[Trivia, ...]) -> tuple[Trivia, ...]:
    """Remove #region/#endregion lines with their indentation and line ending"""
    result: list[Trivia] = []
    drop_end_of_line = False

    for token in trivia:
        if drop_end_of_line:
            drop_end_of_line = False
            if token.kind is TriviaKind.END_OF_LINE:
                continue

        if token.directive_name in REGION_DIRECTIVES:
            if result and result[-1].kind is TriviaKind.WHITESPACE:
                result.pop()
            drop_end_of_line = True
            continue

        result.append(token)

    return tuple(result)


def strip_region_lines(node: Node) -> Node:
    """Remove the #region/#endregion lines recorded inside a leaf body"""
    if not node.region_lines:
        return node

    parts = []
    cursor = 0
    for start, end in node.region_lines:
        parts.append(node.text[cursor:start])
        cursor = end
    parts.append(node.text[cursor:])
    return replace(node, text="".join(parts), region_lines=())


def strip_regions_from_items(items: tuple[Node, ...]) -> tuple[Node, ...]:
    return tuple(
        replace(
            strip_region_lines(item),
            leading=strip_region_trivia(item.leading),
            trailing=strip_region_trivia(item.trailing),
        )
        for item in items
    )


def _has_marker(trivia: tuple[Trivia, ...], names: frozenset[str]) -> bool:
    return any(token.directive_name in names for token in trivia)


def has_conditional_marker(
    items: tuple[Node, ...],
    guard_directives=DEFAULT_GUARD_DIRECTIVES,
    extra: tuple[Trivia, ...] = (),
) -> bool:
    """Check a sibling list for conditional compilation.

    Args:
        items: Imports or members of one container
        guard_directives: Directive names that block reordering
        extra: Additional span to scan, e.g. the text before a closing brace

    Returns:
        True if any item is an opaque conditional block or any scanned span
        holds a guarded directive
    """
    names = frozenset(name.lower() for name in guard_directives)
    for item in items:
        if item.conditional:
            return True
        if _has_marker(item.leading, names) or _has_marker(item.trailing, names):
            return True
    return _has_marker(extra, names)
