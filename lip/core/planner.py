"""Install planner for lip.

Orders resolved archives so every tooth is installed after the tooths
it depends on. Edges only connect archives inside the resolved set; a
dependency satisfied by an already installed tooth contributes nothing.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Iterable, List

from lip.utils.logger import get_logger
from lip.exceptions import DependencyCycleError
from lip.models.metadata import ResolvedArchive

logger = get_logger("planner")

__all__ = ["plan_install_order"]


def plan_install_order(archives: Iterable[ResolvedArchive]) -> List[ResolvedArchive]:
    """Topologically sort ``archives`` (Kahn's algorithm).

    Archives that become ready at the same time keep their input order, so
    the plan is deterministic.

    Raises:
        DependencyCycleError: Some archives depend on each other in a cycle.
            The error lists every tooth path left unplanned.
    """
    nodes = list(archives)

    by_path: Dict[str, List[int]] = {}
    for index, archive in enumerate(nodes):
        by_path.setdefault(archive.tooth_path, []).append(index)

    # Edges run from dependency to dependent.
    dependents: List[List[int]] = [[] for _ in nodes]
    in_degree = [0] * len(nodes)

    for index, archive in enumerate(nodes):
        for dep_path in archive.metadata.dependencies:
            for dep_index in by_path.get(dep_path, []):
                dependents[dep_index].append(index)
                in_degree[index] += 1

    ready: Deque[int] = deque(i for i, degree in enumerate(in_degree) if degree == 0)
    order: List[ResolvedArchive] = []

    while ready:
        index = ready.popleft()
        order.append(nodes[index])
        for dependent in sorted(dependents[index]):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                ready.append(dependent)

    if len(order) < len(nodes):
        remaining = {nodes[i].tooth_path for i, degree in enumerate(in_degree) if degree > 0}
        raise DependencyCycleError(remaining)

    logger.debug("Install order: %s", ", ".join(str(a) for a in order))
    return order
