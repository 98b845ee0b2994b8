"""
Blank-line normalizer.

Rewrites the spacing around imports and members after reordering:

- imports form a tight block preceded by one blank line
- fields are glued together
- properties, constructors, methods, enums and nested containers are
  separated by one blank line
- nothing is inserted right after an opening brace or before a closing one

Other declarations keep whatever spacing they had, except that each one ends
its own line and takes the indentation of its siblings when it was moved off
a shared line.
"""

from dataclasses import replace

from csharply.core.ordering import MemberCategory, classify
from csharply.core.spans import (
    ensure_line_ending,
    ensure_one_leading_blank_line,
    strip_leading_blank_lines,
    strip_leading_blank_trivia,
    strip_trailing_blank_lines,
    strip_trailing_blank_trivia,
)
from csharply.core.syntax import Node, NodeKind, Trivia, TriviaKind

UNTOUCHED_CATEGORIES = (MemberCategory.OTHER, MemberCategory.PINNED)


def is_empty_inline(container: Node) -> bool:
    """An empty body written on one line, such as 'class C { }'"""
    if container.imports or container.members:
        return False
    spans = container.open_trailing + container.close_leading
    return not any(token.kind is TriviaKind.END_OF_LINE for token in spans)


def member_indent(members: tuple[Node, ...]) -> tuple[Trivia, ...]:
    """Indentation of the first member that begins its own line"""
    for member in members:
        leading = member.leading
        if not leading or leading[-1].kind is not TriviaKind.WHITESPACE:
            continue
        if len(leading) == 1 or leading[-2].kind is TriviaKind.END_OF_LINE:
            return (leading[-1],)
    return ()


class BlankLineNormalizer:
    """Applies the blank-line rules from a container down"""

    def __init__(self, newline: str = "\n"):
        self.newline = newline

    def normalize(self, container: Node) -> Node:
        if not container.is_container or not container.has_body:
            return container
        if is_empty_inline(container):
            return container

        imports = tuple(
            self._space_import(item, index == 0 and not container.braced)
            for index, item in enumerate(container.imports)
        )

        indent = () if container.kind is NodeKind.ROOT else member_indent(container.members)
        members = []
        for index, member in enumerate(container.members):
            at_brace = container.braced and index == 0 and not imports
            member = self._space_member(self.normalize(member), at_brace)
            members.append(self._indent(member, indent))

        open_trailing = container.open_trailing
        if container.kind is not NodeKind.ROOT:
            open_trailing = strip_trailing_blank_trivia(open_trailing, self.newline)

        return replace(
            container,
            open_trailing=open_trailing,
            imports=imports,
            members=tuple(members),
            close_leading=strip_leading_blank_trivia(container.close_leading),
        )

    def _space_import(self, item: Node, first: bool) -> Node:
        if first:
            item = ensure_one_leading_blank_line(item, self.newline)
        else:
            item = strip_leading_blank_lines(item)
        return strip_trailing_blank_lines(item, self.newline)

    def _space_member(self, member: Node, at_brace: bool) -> Node:
        category = classify(member)

        if category in UNTOUCHED_CATEGORIES:
            if at_brace:
                member = strip_leading_blank_lines(member)
            return ensure_line_ending(member, self.newline)

        if at_brace or category is MemberCategory.FIELD:
            member = strip_leading_blank_lines(member)
        else:
            member = ensure_one_leading_blank_line(member, self.newline)
        return strip_trailing_blank_lines(member, self.newline)

    @staticmethod
    def _indent(member: Node, indent: tuple[Trivia, ...]) -> Node:
        """Indent a member that was moved off the line it shared with another"""
        leading = member.leading
        if not indent or (leading and leading[-1].kind is not TriviaKind.END_OF_LINE):
            return member
        return replace(member, leading=leading + indent)
