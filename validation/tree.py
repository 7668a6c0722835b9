"""
Rebuild the information object hierarchy from the flat list in VEOContent.xml

The manifest lists information objects depth first, each annotated with its
depth. A node at depth d hangs off the most recent node seen at depth d-1.
Depth 0 means a flat list of objects; depth 1 objects hang off the VEO itself.
"""

import logging
from typing import List, Optional, Iterable

from .issues import ManifestStructureError

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Threads information objects into a tree as they are read

    ``last_seen[k]`` holds the most recent node at depth k+1, which is the
    parent for the next node at depth k+2.
    """

    def __init__(self):
        self.last_seen: List[Optional[object]] = []
        self.roots: List = []
        self.all_nodes: List = []

    def add(self, node):
        """
        Place a node in the tree

        Raises:
            ManifestStructureError: If the node's depth cannot be reconciled
            with the nodes seen before it
        """
        depth = node.depth
        seq = node.seq

        if depth < 0:
            raise ManifestStructureError(
                f"Information Object({seq}) has a negative depth of {depth}"
            )

        if depth == 0:
            self.roots.append(node)
        else:
            if depth > 1:
                if depth - 2 >= len(self.last_seen):
                    raise ManifestStructureError(
                        f"Information Object({seq}) has depth of {depth} "
                        f"but deepest previous IO was {len(self.last_seen)}"
                    )
                parent = self.last_seen[depth - 2]
                if parent is None:
                    raise ManifestStructureError(
                        f"Information Object({seq}) has depth of {depth} "
                        f"but last seen IO at depth-1 is missing"
                    )
                parent.add_child(node)

            if depth - 1 == len(self.last_seen):
                self.last_seen.append(node)
            elif depth - 1 < len(self.last_seen):
                self.last_seen[depth - 1] = node
            else:
                raise ManifestStructureError(
                    f"Information Object({seq}) has depth of {depth} which is more than "
                    f"one more than the maximum depth {len(self.last_seen)}"
                )

        self.all_nodes.append(node)


def build_tree(nodes: Iterable) -> TreeBuilder:
    """Thread an already ordered sequence of nodes into a tree"""
    builder = TreeBuilder()
    for node in nodes:
        builder.add(node)
    return builder
