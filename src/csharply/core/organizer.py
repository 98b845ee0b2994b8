"""
Recursive tree reorganizer
"""

import logging
from dataclasses import replace

from csharply.core.config import OrganizeConfig
from csharply.core.directives import (
    has_conditional_marker,
    strip_region_trivia,
    strip_regions_from_items,
)
from csharply.core.ordering import order_imports, order_members
from csharply.core.syntax import Node

logger = logging.getLogger(__name__)


class Reorganizer:
    """Reorders the imports and members of every container in a tree"""

    def __init__(self, config: OrganizeConfig | None = None):
        self.config = config or OrganizeConfig()

    def reorganize(self, container: Node) -> Node:
        """Return a copy of container with its scopes reordered.

        Nested containers are reorganized before their parent sorts its own
        members. A scope holding conditional compilation keeps its order but
        its nested containers are still visited.
        """
        if not container.is_container or not container.has_body:
            return container

        members = container.members
        close_leading = container.close_leading
        guarded = has_conditional_marker(
            members, self.config.guard_directives, close_leading
        )

        if guarded:
            logger.debug(
                f"Conditional compilation in '{container.name or container.kind.value}', "
                "keeping member order"
            )
            members = tuple(self.reorganize(member) for member in members)
        else:
            if self.config.strip_regions:
                members = strip_regions_from_items(members)
                close_leading = strip_region_trivia(close_leading)
            members = order_members(tuple(self.reorganize(member) for member in members))

        imports = container.imports
        if imports:
            if has_conditional_marker(imports, self.config.guard_directives):
                logger.debug("Conditional compilation among imports, keeping import order")
            else:
                if self.config.strip_regions:
                    imports = strip_regions_from_items(imports)
                imports = order_imports(imports, self.config.standard_prefixes)

        return replace(
            container,
            imports=imports,
            members=members,
            close_leading=close_leading,
        )
