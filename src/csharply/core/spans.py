"""
Blank-line edits on formatting spans.

A blank line is a line holding nothing but whitespace. The helpers here only
ever drop or insert blank lines; comments, directives and the indentation of
the first content line are kept.
"""

from dataclasses import replace

from csharply.core.syntax import Node, Trivia, TriviaKind


def strip_leading_blank_trivia(trivia: tuple[Trivia, ...]) -> tuple[Trivia, ...]:
    """Drop blank lines in front of the first non-blank token.

    The indentation on the line of the first content token is kept. A span
    with no content keeps its final indentation token so a following brace
    stays in its column.
    """
    last_end_of_line = -1
    for index, token in enumerate(trivia):
        if not token.is_blank:
            break
        if token.kind is TriviaKind.END_OF_LINE:
            last_end_of_line = index
    return trivia[last_end_of_line + 1 :]


def strip_trailing_blank_trivia(
    trivia: tuple[Trivia, ...],
    newline: str = "\n",
) -> tuple[Trivia, ...]:
    """Drop blank tokens from the end and terminate with exactly one line ending"""
    end = len(trivia)
    while end > 0 and trivia[end - 1].is_blank:
        end -= 1
    return trivia[:end] + (Trivia.end_of_line(newline),)


def strip_leading_blank_lines(node: Node) -> Node:
    return replace(node, leading=strip_leading_blank_trivia(node.leading))


def strip_trailing_blank_lines(node: Node, newline: str = "\n") -> Node:
    return replace(node, trailing=strip_trailing_blank_trivia(node.trailing, newline))


def ensure_one_leading_blank_line(node: Node, newline: str = "\n") -> Node:
    leading = strip_leading_blank_trivia(node.leading)
    return replace(node, leading=(Trivia.end_of_line(newline),) + leading)


def ensure_one_trailing_blank_line(node: Node, newline: str = "\n") -> Node:
    trailing = strip_trailing_blank_trivia(node.trailing, newline)
    return replace(node, trailing=trailing + (Trivia.end_of_line(newline),))


def ensure_line_ending(node: Node, newline: str = "\n") -> Node:
    """Terminate the trailing span if the next declaration shares its line"""
    if any(token.kind is TriviaKind.END_OF_LINE for token in node.trailing):
        return node
    return strip_trailing_blank_lines(node, newline)
