"""Build the creation-order graph over legacy IDs and sort it."""

from collections import deque
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import CycleDetectedError
from .key_cache import normalize_key
from .models import ImportItem

PARENT = "parent"
DEPENDENCY = "dependency"


class DependencyGraph:
    """Graph over the legacy-bearing items of one batch.

    Nodes are normalized legacy IDs in declaration order. Edges run from the
    referenced ID to the dependent ID (creation direction) and carry their
    kind, ``parent`` or ``dependency``. Each parent relation and each
    dependency entry adds one edge and one unit of in-degree.
    """

    def __init__(self, items: Sequence[ImportItem]):
        self.items: Dict[str, ImportItem] = {}
        self.children: Dict[str, List[str]] = {}
        self.in_degree: Dict[str, int] = {}
        # dependent -> [(referenced, kind)], declaration order
        self.predecessors: Dict[str, List[Tuple[str, str]]] = {}
        self._build(items)

    def _build(self, items: Sequence[ImportItem]) -> None:
        for item in items:
            if not item.has_legacy_id:
                continue
            key = normalize_key(item.legacy_id)
            self.items[key] = item
            self.children[key] = []
            self.in_degree[key] = 0
            self.predecessors[key] = []

        for key, item in self.items.items():
            if item.legacy_parent_id:
                self._add_edge(normalize_key(item.legacy_parent_id), key, PARENT)
            for dep in item.dependencies:
                self._add_edge(normalize_key(dep), key, DEPENDENCY)

    def _add_edge(self, referenced: str, dependent: str, kind: str) -> None:
        # References outside the batch are the validator's concern
        if referenced not in self.children:
            return
        self.children[referenced].append(dependent)
        self.in_degree[dependent] += 1
        self.predecessors[dependent].append((referenced, kind))

    @property
    def nodes(self) -> List[str]:
        return list(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def get_children(self, node: str) -> List[str]:
        """Nodes that depend directly on ``node``."""
        return self.children.get(normalize_key(node), [])

    def get_predecessors(self, node: str) -> List[str]:
        """Nodes ``node`` depends on directly, in declaration order."""
        return [ref for ref, _ in self.predecessors.get(normalize_key(node), [])]

    def topological_order(self) -> List[str]:
        """Kahn's algorithm with a FIFO queue seeded in declaration order.

        Raises:
            CycleDetectedError: If some nodes can never reach in-degree zero.
        """
        in_degree = dict(self.in_degree)
        queue = deque(node for node in self.items if in_degree[node] == 0)
        ordered: List[str] = []

        while queue:
            node = queue.popleft()
            ordered.append(node)
            for child in self.children[node]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    queue.append(child)

        if len(ordered) < len(self.items):
            done = set(ordered)
            unsorted = [node for node in self.items if node not in done]
            raise self._cycle_error(unsorted)
        return ordered

    def find_cycle(self, unsorted: Sequence[str]) -> Tuple[List[str], List[str]]:
        """Walk back from the first unsorted node until a node repeats.

        Every node Kahn's algorithm left behind has at least one unsorted
        predecessor, over parent or dependency edges, so the walk always
        closes a real cycle.

        Returns:
            (cycle, edge_kinds): the cycle in creation direction and the kind
            of each edge along it, the closing edge included.
        """
        remaining = set(unsorted)
        path: List[str] = []
        kinds: List[str] = []
        position: Dict[str, int] = {}
        node: Optional[str] = unsorted[0]

        while node is not None and node not in position:
            position[node] = len(path)
            path.append(node)
            step = next(
                ((ref, kind) for ref, kind in self.predecessors[node] if ref in remaining),
                None,
            )
            if step is None:
                break
            node, kind = step
            kinds.append(kind)

        start = position[node] if node in position else len(path) - 1
        loop = path[start:]
        # kinds[i] labels the edge path[i + 1] -> path[i]; the last one closes the loop
        loop_kinds = kinds[start:start + len(loop)]
        if len(loop_kinds) < len(loop):
            loop_kinds = loop_kinds + [DEPENDENCY] * (len(loop) - len(loop_kinds))

        # Creation direction: referenced item first
        cycle = list(reversed(loop))
        edge_kinds = list(reversed(loop_kinds[:-1])) + loop_kinds[-1:]

        # Start the reported cycle at its earliest declared member
        order = {key: index for index, key in enumerate(unsorted)}
        shift = min(range(len(cycle)), key=lambda i: order[cycle[i]])
        return cycle[shift:] + cycle[:shift], edge_kinds[shift:] + edge_kinds[:shift]

    def _cycle_error(self, unsorted: Sequence[str]) -> CycleDetectedError:
        cycle_keys, edge_kinds = self.find_cycle(unsorted)
        cycle = [self.items[key].legacy_id for key in cycle_keys]
        members = [self.items[key].legacy_id for key in unsorted]
        return CycleDetectedError(cycle, members=members, edge_kinds=edge_kinds)


def topological_sort(items: Sequence[ImportItem]) -> List[ImportItem]:
    """Sort the legacy-bearing items so every reference precedes its dependents.

    Items without a legacy ID are ignored here.
    """
    graph = DependencyGraph(items)
    return [graph.items[key] for key in graph.topological_order()]
