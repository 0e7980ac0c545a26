import pytest

from para_ioc import CircularDependencyError, InvalidBindingError, LIFECYCLE_TRANSIENT, ServiceContainer
from para_ioc.graph import build_dependency_graph, export_graph, find_cycle, missing_dependencies, validate


class Logger:
    pass


class Repo:
    def __init__(self, logger):
        self.logger = logger


class Service:
    def __init__(self, repo, logger):
        self.repo = repo
        self.logger = logger


def _wire(container):
    container.register_implementation("Logger", Logger)
    container.register_implementation("Repo", Repo, dependencies=["Logger"])
    container.register_implementation("Service", Service, lifecycle=LIFECYCLE_TRANSIENT, dependencies=["Repo", "Logger"])


def test_build_dependency_graph(container):
    _wire(container)

    assert build_dependency_graph(container) == {
        "Logger": (),
        "Repo": ("Logger",),
        "Service": ("Repo", "Logger"),
    }


def test_find_cycle():
    assert find_cycle({"a": ("b",), "b": ()}) is None
    assert find_cycle({"a": ("b",), "b": ("c",), "c": ("a",)}) == ("a", "b", "c", "a")
    assert find_cycle({"a": ("a",)}) == ("a", "a")
    assert find_cycle({"root": ("x",), "x": ("y",), "y": ("x",)}) == ("x", "y", "x")


def test_find_cycle_ignores_shared_dependencies():
    diamond = {"top": ("left", "right"), "left": ("base",), "right": ("base",), "base": ()}
    assert find_cycle(diamond) is None


def test_find_cycle_matches_resolution_error(container):
    container.register_factory("A", lambda b: b, dependencies=["B"])
    container.register_factory("B", lambda c: c, dependencies=["C"])
    container.register_factory("C", lambda a: a, dependencies=["A"])

    with pytest.raises(CircularDependencyError) as exc_info:
        container.resolve("A")

    assert find_cycle(build_dependency_graph(container)) == exc_info.value.path


def test_missing_dependencies():
    assert missing_dependencies({"a": ("b", "c"), "b": ()}) == ["a depends on 'c' which is not registered"]


def test_validate_passes_for_sound_graph(container):
    _wire(container)
    validate(container)
    assert container.stats()["cached_instances"] == 0


def test_validate_reports_missing_and_cycles(container):
    container.register_factory("X", lambda y: y, dependencies=["Y"])
    container.register_factory("Y", lambda x, z: x, dependencies=["X", "Z"])

    with pytest.raises(InvalidBindingError) as exc_info:
        validate(container)

    errors = exc_info.value.errors
    assert "Y depends on 'Z' which is not registered" in errors
    assert "Circular dependency detected: X -> Y -> X" in errors


def test_export_graph_writes_dot(container, tmp_path):
    _wire(container)
    container.register_implementation("Orphan", Repo, dependencies=["Unknown"])
    out = tmp_path / "services.dot"

    export_graph(container, str(out), title="PARA services")

    text = out.read_text(encoding="utf-8")
    assert text.startswith("digraph Services {")
    assert 'label="PARA services";' in text
    assert 'label="Service\\n[transient]"' in text
    assert 'label="Unknown", style=dashed' in text
    assert text.count("->") == 4
    assert text.rstrip().endswith("}")


def test_export_graph_without_lifecycles(container, tmp_path):
    container.register_implementation("Logger", Logger)
    out = tmp_path / "g.dot"

    export_graph(container, str(out), include_lifecycles=False, rankdir="TB")

    text = out.read_text(encoding="utf-8")
    assert 'rankdir="TB";' in text
    assert 'label="Logger"' in text
    assert "[singleton]" not in text


def test_export_graph_escapes_quotes_and_backslashes(tmp_path):
    container = ServiceContainer()
    container.register_implementation('Say "hi"', Logger)
    container.register_implementation("C:\\repo", Repo, dependencies=['Say "hi"', 'Gone"'])
    out = tmp_path / "quoted.dot"

    export_graph(container, str(out), title='The "main" graph')

    text = out.read_text(encoding="utf-8")
    assert 'label="The \\"main\\" graph";' in text
    assert 'label="Say \\"hi\\"\\n[singleton]"' in text
    assert 'label="C:\\\\repo\\n[singleton]"' in text
    assert 'label="Gone\\"", style=dashed' in text
