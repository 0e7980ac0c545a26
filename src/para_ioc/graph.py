"""Static inspection of the registered dependency graph.

Nothing here constructs a service or touches an instance cache: the graph is
read straight from the registrations, so problems can be reported at startup
instead of on first resolution.
"""

from typing import Dict, List, Optional, Set, Tuple

from .exceptions import CircularDependencyError, InvalidBindingError, cycle_path

Graph = Dict[str, Tuple[str, ...]]


def build_dependency_graph(container) -> Graph:
    """Map every registered key to its declared dependency keys."""
    return {key: reg.dependencies for key, reg in container.registrations()}


def find_cycle(graph: Graph) -> Optional[Tuple[str, ...]]:
    """Return the first cycle found as ``(a, b, ..., a)``, or ``None``.

    The walk mirrors resolution: keys are followed depth first from each
    registered key in graph order, carrying the chain of keys entered so
    far, and a key that reappears on its own chain closes a cycle.
    """
    settled: Set[str] = set()

    def walk(key: str, chain: Tuple[str, ...]) -> Optional[Tuple[str, ...]]:
        if key in chain:
            return cycle_path(key, chain)
        if key in settled:
            return None
        for dep in graph.get(key, ()):
            found = walk(dep, chain + (key,))
            if found:
                return found
        settled.add(key)
        return None

    for root in graph:
        found = walk(root, ())
        if found:
            return found
    return None


def missing_dependencies(graph: Graph) -> List[str]:
    errors: List[str] = []
    for key, deps in graph.items():
        for dep in deps:
            if dep not in graph:
                errors.append(f"{key} depends on '{dep}' which is not registered")
    return errors


def validate(container) -> None:
    """Fail fast on unregistered dependencies and dependency cycles.

    Raises:
        InvalidBindingError: Listing every missing dependency and, if present,
            one cycle.
    """
    graph = build_dependency_graph(container)
    errors = missing_dependencies(graph)
    cyc = find_cycle(graph)
    if cyc:
        errors.append(str(CircularDependencyError(cyc[-1], cyc[:-1])))
    if errors:
        raise InvalidBindingError(errors)


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def export_graph(
    container,
    path: str,
    *,
    include_lifecycles: bool = True,
    rankdir: str = "LR",
    title: Optional[str] = None,
) -> None:
    """Write the dependency graph to *path* in Graphviz DOT format.

    Unregistered dependency keys are drawn as dashed nodes.
    """
    registrations = dict(container.registrations())
    graph = {key: reg.dependencies for key, reg in registrations.items()}

    lines: List[str] = []
    lines.append("digraph Services {")
    lines.append(f'  rankdir="{rankdir}";')
    lines.append("  node [shape=box, fontsize=10];")
    if title:
        lines.append('  labelloc="t";')
        lines.append(f'  label="{_dot_escape(title)}";')

    ids: Dict[str, str] = {}

    def _node_id(k: str) -> str:
        if k not in ids:
            ids[k] = f"n{len(ids)}"
        return ids[k]

    def _node_label(k: str) -> str:
        reg = registrations.get(k)
        if reg is not None and include_lifecycles:
            return f"{_dot_escape(k)}\\n[{reg.lifecycle}]"
        return _dot_escape(k)

    for key in graph:
        lines.append(f'  {_node_id(key)} [label="{_node_label(key)}"];')

    for deps in graph.values():
        for dep in deps:
            if dep not in graph and dep not in ids:
                lines.append(f'  {_node_id(dep)} [label="{_dot_escape(dep)}", style=dashed];')

    for parent, deps in graph.items():
        for child in deps:
            lines.append(f"  {_node_id(parent)} -> {_node_id(child)};")

    lines.append("}")

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
