"""
Lossless C# parser adapter.

tree-sitter with the C# grammar builds the concrete syntax tree. This module
walks it once and produces the immutable declaration model from byte offsets.
Declarations keep their exact source text. Everything between two
declarations is tokenized into trivia and split into the trailing span of the
previous declaration (the rest of its line) and the leading span of the next.
"""

import logging
import re
from dataclasses import replace

import tree_sitter_c_sharp as tscsharp
from tree_sitter import Language, Parser

from csharply.core.errors import SourceParseError
from csharply.core.syntax import (
    DisplayKey,
    ImportGroup,
    Node,
    NodeKind,
    Trivia,
    TriviaKind,
    tokenize_trivia,
)

logger = logging.getLogger(__name__)

CSHARP_LANGUAGE = Language(tscsharp.language())

CONTAINER_TYPES = {
    "namespace_declaration": NodeKind.NAMESPACE,
    "class_declaration": NodeKind.CLASS,
    "interface_declaration": NodeKind.INTERFACE,
}

MEMBER_TYPES = {
    "field_declaration": NodeKind.FIELD,
    "property_declaration": NodeKind.PROPERTY,
    "constructor_declaration": NodeKind.CONSTRUCTOR,
    "method_declaration": NodeKind.METHOD,
    "enum_declaration": NodeKind.ENUM,
}

# Value types and records are opaque: bodies untouched, placed with OTHER.
# Struct field order is the memory layout of the type.
OPAQUE_TYPES = {
    "struct_declaration",
    "record_declaration",
    "record_struct_declaration",
}

# File prologue items that C# requires ahead of type declarations
PINNED_TYPES = {
    "global_attribute",
    "global_attribute_list",
    "global_statement",
    "shebang_directive",
}

# Conditional-compilation blocks the grammar parses as one structural node
CONDITIONAL_TYPES = {"preproc_if", "preproc_elif", "preproc_else"}

_NON_TRIVIA_DIRECTIVES = {
    "using_directive",
    "extern_alias_directive",
    "shebang_directive",
}

# Stop scanning for a fallback identifier once the signature is over
_SIGNATURE_END_TYPES = {
    "parameter_list",
    "type_parameter_list",
    "accessor_list",
    "arrow_expression_clause",
    "block",
    "equals_value_clause",
}

_REGION_LINE = re.compile(r"#\s*(?:end)?region\b")
_USING_PREFIX = re.compile(r"^\s*(?:global\s+)?using\s+(?:static\s+)?(?:unsafe\s+)?")
_EXTERN_PREFIX = re.compile(r"^\s*extern\s+alias\s+")


def parse_source(source: str) -> Node:
    """Parse C# source text into the declaration model.

    Args:
        source: Complete content of a .cs file

    Returns:
        ROOT node whose to_source() reproduces the input exactly

    Raises:
        SourceParseError: If the grammar reports a syntax error
    """
    data = source.encode("utf-8")
    tree = Parser(CSHARP_LANGUAGE).parse(data)
    root = tree.root_node

    if root.has_error:
        error = _first_error(root)
        if error is None:
            raise SourceParseError("Unable to parse C# source")
        line, column = error.start_point
        raise SourceParseError("Unable to parse C# source", line + 1, column + 1)

    return _TreeBuilder(data).build_root(root)


def _first_error(node):
    """Depth-first search for the first ERROR or MISSING node"""
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _is_trivia_node(node) -> bool:
    """Comments and directive lines belong in spans, not in member lists"""
    if node.type == "comment" or node.type == "preprocessor_call":
        return True
    if node.type.startswith("preproc_"):
        return node.type not in CONDITIONAL_TYPES
    return node.type.endswith("_directive") and node.type not in _NON_TRIVIA_DIRECTIVES


def _split_gap(
    tokens: tuple[Trivia, ...],
    line_start: bool,
) -> tuple[tuple[Trivia, ...], tuple[Trivia, ...]]:
    """Split gap trivia into (rest of previous line, leading of next item)"""
    if line_start:
        return (), tokens
    for index, token in enumerate(tokens):
        if token.kind is TriviaKind.END_OF_LINE:
            return tokens[: index + 1], tokens[index + 1 :]
    return tokens, ()


def import_path(text: str) -> str:
    """Namespace or type named by a using directive, alias target included"""
    body = _USING_PREFIX.sub("", text, count=1).strip().rstrip(";")
    if "=" in body:
        body = body.split("=", 1)[1]
    return "".join(body.split())


class _TreeBuilder:
    """Builds Node objects from a tree-sitter tree over a fixed byte buffer"""

    def __init__(self, data: bytes):
        self.data = data

    # ============================================================
    # SOURCE ACCESS
    # ============================================================

    def text(self, start: int, end: int) -> str:
        return self.data[start:end].decode("utf-8")

    def node_text(self, node) -> str:
        return self.text(node.start_byte, node.end_byte)

    def at_line_start(self, offset: int) -> bool:
        return offset == 0 or self.data[offset - 1 : offset] == b"\n"

    def trivia(self, start: int, end: int) -> tuple[Trivia, ...]:
        return tokenize_trivia(self.text(start, end), self.at_line_start(start))

    # ============================================================
    # CONTAINERS
    # ============================================================

    def build_root(self, root) -> Node:
        items = self.collect_items(root.children)
        _, imports, members, close_leading = self.build_body(
            items, 0, len(self.data), split_first=False
        )
        return Node(
            kind=NodeKind.ROOT,
            has_body=True,
            imports=imports,
            members=members,
            close_leading=close_leading,
        )

    def collect_items(self, children) -> list[tuple[Node, int, int]]:
        """Build every declaration among children, with its byte span"""
        candidates = [
            child for child in children if child.is_named and not _is_trivia_node(child)
        ]
        items = []

        for index, child in enumerate(candidates):
            if child.type != "file_scoped_namespace_declaration":
                node = self.build_declaration(child)
                items.append((node, child.start_byte, child.end_byte))
                continue

            nested = self._file_scoped_members(child)
            if nested:
                items.append(self._build_file_scoped(child, nested, child.end_byte))
                continue

            # Older grammars leave the namespace members as siblings
            following = candidates[index + 1 :]
            end = following[-1].end_byte if following else child.end_byte
            items.append(self._build_file_scoped(child, following, end))
            break

        return items

    def build_body(
        self,
        items: list[tuple[Node, int, int]],
        start: int,
        end: int,
        split_first: bool = True,
    ) -> tuple[tuple[Trivia, ...], tuple[Node, ...], tuple[Node, ...], tuple[Trivia, ...]]:
        """Attach gap trivia to the items found between start and end.

        Args:
            items: Declarations with their byte spans, in source order
            start: Offset just after the opening token
            end: Offset of the closing token (or end of file)
            split_first: False at the file root, which has no opening token
                to own the first line

        Returns:
            (open_trailing, imports, members, close_leading)
        """
        open_trailing: tuple[Trivia, ...] = ()
        leading_spans = []
        trailing_spans = []
        cursor = start

        for index, (_, item_start, item_end) in enumerate(items):
            tokens = self.trivia(cursor, item_start)
            if index == 0:
                if split_first:
                    open_trailing, lead = _split_gap(tokens, self.at_line_start(cursor))
                else:
                    lead = tokens
            else:
                trail, lead = _split_gap(tokens, self.at_line_start(cursor))
                trailing_spans.append(trail)
            leading_spans.append(lead)
            cursor = item_end

        tokens = self.trivia(cursor, end)
        if items:
            trail, close_leading = _split_gap(tokens, self.at_line_start(cursor))
            trailing_spans.append(trail)
        elif split_first:
            open_trailing, close_leading = _split_gap(tokens, self.at_line_start(cursor))
        else:
            close_leading = tokens

        children = [
            replace(node, leading=lead, trailing=trail)
            for (node, _, _), lead, trail in zip(items, leading_spans, trailing_spans)
        ]
        imports = tuple(child for child in children if child.kind is NodeKind.IMPORT)
        members = tuple(child for child in children if child.kind is not NodeKind.IMPORT)
        return open_trailing, imports, members, close_leading

    def _build_container(self, node, kind: NodeKind) -> Node:
        modifiers = self._modifiers(node)
        key = DisplayKey(name=self._name(node))
        body = next((c for c in node.children if c.type == "declaration_list"), None)

        if body is None:
            return Node(kind=kind, text=self.node_text(node), modifiers=modifiers, key=key)

        open_brace = next(c for c in body.children if c.type == "{")
        close_brace = [c for c in body.children if c.type == "}"][-1]
        items = self.collect_items(body.children)
        open_trailing, imports, members, close_leading = self.build_body(
            items, open_brace.end_byte, close_brace.start_byte
        )

        return Node(
            kind=kind,
            text=self.text(node.start_byte, open_brace.end_byte),
            modifiers=modifiers,
            key=key,
            has_body=True,
            braced=True,
            open_trailing=open_trailing,
            imports=imports,
            members=members,
            close_leading=close_leading,
            close_text=self.text(close_brace.start_byte, node.end_byte),
        )

    def _file_scoped_members(self, node) -> list:
        children = list(node.children)
        semicolons = [i for i, child in enumerate(children) if child.type == ";"]
        if not semicolons:
            return []
        return [
            child
            for child in children[semicolons[0] + 1 :]
            if child.is_named and not _is_trivia_node(child)
        ]

    def _build_file_scoped(self, node, member_nodes, end: int) -> tuple[Node, int, int]:
        semicolon = next(c for c in node.children if c.type == ";")
        items = self.collect_items(member_nodes)
        open_trailing, imports, members, close_leading = self.build_body(
            items, semicolon.end_byte, end
        )
        namespace = Node(
            kind=NodeKind.NAMESPACE,
            text=self.text(node.start_byte, semicolon.end_byte),
            key=DisplayKey(name=self._name(node)),
            has_body=True,
            open_trailing=open_trailing,
            imports=imports,
            members=members,
            close_leading=close_leading,
        )
        return namespace, node.start_byte, end

    # ============================================================
    # DECLARATIONS
    # ============================================================

    def build_declaration(self, node) -> Node:
        """Map one tree-sitter declaration onto the Node variant it belongs to"""
        if node.type in CONTAINER_TYPES:
            return self._build_container(node, CONTAINER_TYPES[node.type])

        text = self.node_text(node)

        if node.type == "using_directive":
            group = (
                ImportGroup.GLOBAL_USING
                if text.lstrip().startswith("global")
                else ImportGroup.USING
            )
            return Node(
                kind=NodeKind.IMPORT,
                text=text,
                import_path=import_path(text),
                import_group=group,
            )

        if node.type == "extern_alias_directive":
            alias = _EXTERN_PREFIX.sub("", text, count=1).strip().rstrip(";").strip()
            return Node(
                kind=NodeKind.IMPORT,
                text=text,
                import_path=alias,
                import_group=ImportGroup.EXTERN_ALIAS,
            )

        if node.type in CONDITIONAL_TYPES:
            return Node(kind=NodeKind.OTHER, text=text, conditional=True)

        region_lines = self._region_lines(node)

        if node.type in MEMBER_TYPES:
            kind = MEMBER_TYPES[node.type]
            return Node(
                kind=kind,
                text=text,
                modifiers=self._modifiers(node),
                key=self._key(node, kind),
                region_lines=region_lines,
            )

        if node.type in PINNED_TYPES:
            return Node(
                kind=NodeKind.OTHER, text=text, pinned=True, region_lines=region_lines
            )

        if node.type in OPAQUE_TYPES:
            return Node(
                kind=NodeKind.OTHER,
                text=text,
                modifiers=self._modifiers(node),
                key=DisplayKey(name=self._name(node)),
                region_lines=region_lines,
            )

        logger.debug(f"Keeping unclassified declaration '{node.type}' in place")
        return Node(
            kind=NodeKind.OTHER,
            text=text,
            modifiers=self._modifiers(node),
            region_lines=region_lines,
        )

    def _modifiers(self, node) -> tuple[str, ...]:
        return tuple(
            self.node_text(child).strip()
            for child in node.children
            if child.type == "modifier"
        )

    def _region_lines(self, node) -> tuple[tuple[int, int], ...]:
        """Offsets in the node text of whole #region/#endregion lines.

        A line spans its indentation through its terminator. Directives
        sharing a line with the declaration header are not recorded.
        """
        spans = []
        stack = list(reversed(node.children))
        while stack:
            child = stack.pop()
            if not child.type.startswith("preproc"):
                stack.extend(reversed(child.children))
                continue
            if not _REGION_LINE.match(self.node_text(child).lstrip()):
                stack.extend(reversed(child.children))
                continue

            line_start = self.data.rfind(b"\n", node.start_byte, child.start_byte) + 1
            if line_start == 0 or self.data[line_start : child.start_byte].strip():
                continue
            line_end = self.data.find(b"\n", child.start_byte, node.end_byte)
            if line_end == -1:
                continue

            start = len(self.text(node.start_byte, line_start))
            end = start + len(self.text(line_start, line_end + 1))
            if not spans or spans[-1] != (start, end):
                spans.append((start, end))
        return tuple(spans)

    def _key(self, node, kind: NodeKind) -> DisplayKey:
        if kind is NodeKind.FIELD:
            return DisplayKey(name=self._field_name(node))
        if kind is NodeKind.PROPERTY or kind is NodeKind.ENUM:
            return DisplayKey(name=self._name(node))
        return DisplayKey(
            name=self._name(node),
            parameter_count=self._count(node, "parameter_list"),
            type_parameter_count=self._count(node, "type_parameter_list"),
        )

    def _name(self, node) -> str:
        name = node.child_by_field_name("name")
        if name is not None:
            return self.node_text(name)

        fallback = ""
        for child in node.children:
            if child.type in _SIGNATURE_END_TYPES:
                break
            if child.type == "identifier":
                fallback = self.node_text(child)
        return fallback

    def _field_name(self, node) -> str:
        declaration = next(
            (c for c in node.children if c.type == "variable_declaration"), None
        )
        if declaration is None:
            return ""
        declarator = next(
            (c for c in declaration.children if c.type == "variable_declarator"), None
        )
        if declarator is None:
            return ""
        name = declarator.child_by_field_name("name")
        if name is None:
            name = next((c for c in declarator.children if c.type == "identifier"), None)
        return self.node_text(name) if name is not None else ""

    def _count(self, node, list_type: str) -> int:
        """Number of entries in a parameter or type-parameter list"""
        entries = next((c for c in node.children if c.type == list_type), None)
        if entries is None:
            return 0
        return sum(1 for child in entries.named_children if child.type != "comment")
