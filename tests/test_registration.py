import pytest

from para_ioc import (
    ConstructionError,
    ContainerError,
    InvalidRegistrationError,
    ServiceNotRegisteredError,
    ServiceRegistration,
    ServiceRegistry,
)


class Logger:
    pass


def test_defaults():
    reg = ServiceRegistration(key="Logger", implementation=Logger)

    assert reg.lifecycle == "singleton"
    assert reg.dependencies == ()
    assert reg.target is Logger


def test_dependencies_normalised_to_tuple():
    reg = ServiceRegistration(key="Repo", implementation=Logger, dependencies=["Logger"])
    assert reg.dependencies == ("Logger",)


@pytest.mark.parametrize("lifecycle", ["prototype", "request", ""])
def test_unknown_lifecycle_rejected(lifecycle):
    with pytest.raises(InvalidRegistrationError, match="unknown lifecycle"):
        ServiceRegistration(key="X", implementation=Logger, lifecycle=lifecycle)


def test_empty_key_rejected():
    with pytest.raises(InvalidRegistrationError, match="non-empty"):
        ServiceRegistration(key="", implementation=Logger)


def test_non_string_dependency_rejected():
    with pytest.raises(InvalidRegistrationError, match="dependency keys"):
        ServiceRegistration(key="X", implementation=Logger, dependencies=[Logger])


@pytest.mark.parametrize("dependencies", ["Logger", b"Logger"])
def test_single_string_dependencies_rejected(dependencies):
    with pytest.raises(InvalidRegistrationError, match="dependencies must be a sequence of keys"):
        ServiceRegistration(key="Repo", implementation=Logger, dependencies=dependencies)


def test_factory_preferred_target():
    def make():
        return "made"

    reg = ServiceRegistration(key="X", implementation=Logger, factory=make)
    assert reg.target is make
    assert reg.instantiate([]) == "made"


def test_non_callable_factory_is_invalid():
    reg = ServiceRegistration(key="X", factory="not-callable")

    with pytest.raises(InvalidRegistrationError, match="not callable"):
        reg.instantiate([])


def test_instantiate_passes_positional_args():
    reg = ServiceRegistration(key="X", factory=lambda a, b: a - b)
    assert reg.instantiate([5, 3]) == 2


def test_instantiate_wraps_type_errors():
    reg = ServiceRegistration(key="X", implementation=Logger)

    with pytest.raises(ConstructionError) as exc_info:
        reg.instantiate(["unexpected"])
    assert isinstance(exc_info.value.cause, TypeError)


def test_instantiate_propagates_container_errors_unwrapped():
    def factory():
        raise ServiceNotRegisteredError("Inner", "X")

    reg = ServiceRegistration(key="X", factory=factory)
    with pytest.raises(ServiceNotRegisteredError):
        reg.instantiate([])


def test_registry_bind_get_and_order():
    registry = ServiceRegistry()
    registry.bind(ServiceRegistration(key="b", implementation=Logger))
    registry.bind(ServiceRegistration(key="a", implementation=Logger))

    assert registry.keys() == ["b", "a"]
    assert list(registry) == ["b", "a"]
    assert len(registry) == 2
    assert registry.get("a").key == "a"

    with pytest.raises(ServiceNotRegisteredError, match="required by: 'caller'"):
        registry.get("missing")

    registry.clear()
    assert not registry.has("a")


def test_all_errors_share_base():
    assert issubclass(InvalidRegistrationError, ContainerError)
    assert issubclass(ServiceNotRegisteredError, ContainerError)
