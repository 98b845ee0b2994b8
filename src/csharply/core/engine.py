"""
Entry point of the reorganize/normalize engine
"""

from csharply.core.config import OrganizeConfig
from csharply.core.normalizer import BlankLineNormalizer
from csharply.core.organizer import Reorganizer
from csharply.core.parser import parse_source
from csharply.core.spans import ensure_one_trailing_blank_line

NEWLINES = {"lf": "\n", "crlf": "\r\n"}


def resolve_newline(source: str, line_ending: str = "auto") -> str:
    """Line terminator inserted by the normalizer"""
    if line_ending in NEWLINES:
        return NEWLINES[line_ending]
    return "\r\n" if "\r\n" in source else "\n"


def reorganize_and_format(source: str, config: OrganizeConfig | None = None) -> str:
    """
    Reorder and respace the declarations of a C# file

    Args:
        source: Complete content of a .cs file
        config: Engine options, defaults when omitted

    Returns:
        Organized source, trimmed and ending with exactly one line terminator

    Raises:
        SourceParseError: If the source does not parse cleanly
    """
    config = config or OrganizeConfig()
    newline = resolve_newline(source, config.line_ending)

    root = parse_source(source)
    root = Reorganizer(config).reorganize(root)
    root = BlankLineNormalizer(newline).normalize(root)
    root = ensure_one_trailing_blank_line(root, newline)

    return root.to_source().strip() + newline
