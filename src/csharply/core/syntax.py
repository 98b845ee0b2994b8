"""
Declaration model for C# source files.

The model is a lossless, immutable view of a parsed file. Every declaration is
a Node carrying its own leading and trailing trivia (blank lines, indentation,
comments, directives). Containers (the file root, namespaces, classes and
interfaces) also own the spans of their braces and an ordered list of child
declarations. Concatenating everything in order yields the original text.

Nodes are frozen dataclasses. Passes that change spacing or ordering build new
nodes with dataclasses.replace() and never touch the input tree.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

# ============================================================
# TRIVIA
# ============================================================


class TriviaKind(Enum):
    """Kind of a non-code token"""

    END_OF_LINE = "end_of_line"
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    DIRECTIVE = "directive"
    TEXT = "text"


_DIRECTIVE_NAME = re.compile(r"#\s*([A-Za-z]+)")
_WHITESPACE = " \t\f\v\u00a0\ufeff"


@dataclass(frozen=True)
class Trivia:
    """A single piece of formatting text attached to a node"""

    kind: TriviaKind
    text: str

    @classmethod
    def end_of_line(cls, newline: str = "\n") -> "Trivia":
        return cls(TriviaKind.END_OF_LINE, newline)

    @property
    def is_blank(self) -> bool:
        """Line ends and indentation carry no content"""
        return self.kind in (TriviaKind.END_OF_LINE, TriviaKind.WHITESPACE)

    @property
    def directive_name(self) -> str | None:
        """Lower-cased directive keyword, e.g. 'region' for '#region Fields'"""
        if self.kind is not TriviaKind.DIRECTIVE:
            return None
        match = _DIRECTIVE_NAME.match(self.text)
        return match.group(1).lower() if match else ""


def _line_end(text: str, pos: int) -> int:
    """Index where the line containing pos ends, excluding the terminator"""
    end = text.find("\n", pos)
    if end == -1:
        return len(text)
    if end > pos and text[end - 1] == "\r":
        return end - 1
    return end


def tokenize_trivia(
    text: str,
    at_line_start: bool = False,
) -> tuple[Trivia, ...]:
    """Split the text between two declarations into trivia tokens.

    Args:
        text: Raw text containing only whitespace, comments and directives
        at_line_start: Whether text begins at the start of a line, which
            decides if a leading '#' opens a directive

    Returns:
        Tuple of Trivia whose texts concatenate back to the input
    """
    tokens: list[Trivia] = []
    pos = 0
    length = len(text)
    line_start = at_line_start

    while pos < length:
        char = text[pos]

        if char == "\n" or text.startswith("\r\n", pos):
            end = pos + (2 if char == "\r" else 1)
            tokens.append(Trivia(TriviaKind.END_OF_LINE, text[pos:end]))
            line_start = True

        elif char in _WHITESPACE or char == "\r":
            end = pos + 1
            while end < length and (
                text[end] in _WHITESPACE
                or (text[end] == "\r" and not text.startswith("\r\n", end))
            ):
                end += 1
            tokens.append(Trivia(TriviaKind.WHITESPACE, text[pos:end]))

        elif text.startswith("//", pos):
            end = _line_end(text, pos)
            tokens.append(Trivia(TriviaKind.COMMENT, text[pos:end]))
            line_start = False

        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            end = length if close == -1 else close + 2
            tokens.append(Trivia(TriviaKind.COMMENT, text[pos:end]))
            line_start = False

        elif char == "#" and line_start:
            end = _line_end(text, pos)
            tokens.append(Trivia(TriviaKind.DIRECTIVE, text[pos:end]))
            line_start = False

        else:
            end = pos + 1
            while (
                end < length
                and text[end] not in _WHITESPACE + "\r\n"
                and not text.startswith(("//", "/*"), end)
            ):
                end += 1
            tokens.append(Trivia(TriviaKind.TEXT, text[pos:end]))
            line_start = False

        pos = end

    return tuple(tokens)


def render_trivia(trivia: tuple[Trivia, ...]) -> str:
    return "".join(item.text for item in trivia)


# ============================================================
# DECLARATIONS
# ============================================================


class NodeKind(Enum):
    """Declaration variants recognized by the organizer"""

    ROOT = "root"
    IMPORT = "import"
    NAMESPACE = "namespace"
    CLASS = "class"
    INTERFACE = "interface"
    FIELD = "field"
    PROPERTY = "property"
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    ENUM = "enum"
    OTHER = "other"


CONTAINER_KINDS = frozenset(
    {NodeKind.ROOT, NodeKind.NAMESPACE, NodeKind.CLASS, NodeKind.INTERFACE}
)

ACCESS_MODIFIERS = ("public", "internal", "protected", "private")


class ImportGroup(int, Enum):
    """Import directive flavours, in the order C# requires them"""

    EXTERN_ALIAS = 0
    GLOBAL_USING = 1
    USING = 2


@dataclass(frozen=True)
class DisplayKey:
    """Identifier and arities used to sort declarations of one category"""

    name: str = ""
    parameter_count: int = 0
    type_parameter_count: int = 0


@dataclass(frozen=True)
class Node:
    """A declaration with its formatting spans.

    Leaf nodes keep their source in ``text`` and it is never rewritten.
    Containers keep their header (up to and including the opening brace) in
    ``text`` and their closing brace in ``close_text``; the spans and child
    tuples in between are what the organizer rearranges.
    """

    kind: NodeKind
    text: str = ""
    leading: tuple[Trivia, ...] = ()
    trailing: tuple[Trivia, ...] = ()
    modifiers: tuple[str, ...] = ()
    key: DisplayKey = field(default_factory=DisplayKey)

    # Containers only
    has_body: bool = False
    braced: bool = False
    open_trailing: tuple[Trivia, ...] = ()
    imports: tuple["Node", ...] = ()
    members: tuple["Node", ...] = ()
    close_leading: tuple[Trivia, ...] = ()
    close_text: str = ""

    # Imports only
    import_path: str = ""
    import_group: ImportGroup = ImportGroup.USING

    pinned: bool = False
    conditional: bool = False

    # Leaf nodes only: (start, end) offsets in text of whole #region/#endregion lines
    region_lines: tuple[tuple[int, int], ...] = ()

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    @property
    def visibility(self) -> str | None:
        """Most visible access keyword, or None when no keyword is present"""
        for modifier in ACCESS_MODIFIERS:
            if modifier in self.modifiers:
                return modifier
        return None

    @property
    def name(self) -> str:
        return self.key.name

    def to_source(self) -> str:
        """Serialize the node, its spans and all of its children"""
        parts = [render_trivia(self.leading), self.text]
        if self.is_container and self.has_body:
            parts.append(render_trivia(self.open_trailing))
            parts.extend(child.to_source() for child in self.imports)
            parts.extend(child.to_source() for child in self.members)
            parts.append(render_trivia(self.close_leading))
            parts.append(self.close_text)
        parts.append(render_trivia(self.trailing))
        return "".join(parts)

    def __repr__(self) -> str:
        label = self.name or self.import_path or self.kind.value
        return f"Node({self.kind.value}, {label!r})"
