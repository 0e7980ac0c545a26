import logging

import pytest

from para_ioc import (
    LIFECYCLE_TRANSIENT,
    SETTINGS_KEY,
    InvalidBindingError,
    InvalidRegistrationError,
    ServiceContainer,
    ServiceFactory,
    ServiceRegistration,
    Settings,
    init,
)


class Logger:
    pass


class Repo:
    def __init__(self, logger):
        self.logger = logger


class Service:
    def __init__(self, repo, logger):
        self.repo = repo
        self.logger = logger


class FakeRepo:
    def __init__(self, logger=None):
        self.logger = logger


def bootstrap_registrations():
    return [
        ServiceRegistration(key="Logger", implementation=Logger),
        ServiceRegistration(key="Repo", implementation=Repo, dependencies=("Logger",)),
        ServiceRegistration(
            key="Service",
            implementation=Service,
            lifecycle=LIFECYCLE_TRANSIENT,
            dependencies=("Repo", "Logger"),
        ),
    ]


def test_init_registers_in_order_and_returns_factory():
    factory = init(bootstrap_registrations(), settings=Settings({"mode": "folder"}))

    assert isinstance(factory, ServiceFactory)
    assert factory.container.keys() == [SETTINGS_KEY, "Logger", "Repo", "Service"]
    service = factory.create_service("Service")
    assert service.repo.logger is service.logger
    assert factory.create_service(SETTINGS_KEY)["mode"] == "folder"


def test_init_populates_given_container():
    container = ServiceContainer()

    factory = init(bootstrap_registrations(), container=container)

    assert factory.container is container
    assert container.has("Service")


def test_init_overrides_replace_registrations():
    fake = FakeRepo()

    factory = init(bootstrap_registrations(), overrides={"Repo": fake})

    assert factory.create_service("Repo") is fake
    assert factory.create_service("Service").repo is fake


def test_init_override_forms():
    factory = init(
        bootstrap_registrations(),
        overrides={
            "Logger": lambda: "callable-logger",
            "Repo": FakeRepo,
            "Extra": ServiceRegistration(key="Extra", factory=lambda logger: ("extra", logger), dependencies=("Logger",)),
        },
    )

    assert factory.create_service("Logger") == "callable-logger"
    assert isinstance(factory.create_service("Repo"), FakeRepo)
    assert factory.create_service("Extra") == ("extra", "callable-logger")


def test_init_validates_missing_dependencies():
    regs = [ServiceRegistration(key="Repo", implementation=Repo, dependencies=("Logger",))]

    with pytest.raises(InvalidBindingError, match="Repo depends on 'Logger'"):
        init(regs)


def test_init_validates_cycles():
    regs = [
        ServiceRegistration(key="A", factory=lambda b: b, dependencies=("B",)),
        ServiceRegistration(key="B", factory=lambda a: a, dependencies=("A",)),
    ]

    with pytest.raises(InvalidBindingError, match="A -> B -> A"):
        init(regs)


def test_init_without_validation_defers_errors():
    regs = [ServiceRegistration(key="Repo", implementation=Repo, dependencies=("Logger",))]

    factory = init(regs, validate=False)
    assert factory.container.has("Repo")


def test_init_rejects_foreign_entries():
    with pytest.raises(InvalidRegistrationError, match="expected ServiceRegistration"):
        init([("Logger", Logger)])


def test_init_logs_summary(caplog):
    logger = logging.getLogger("para_ioc.bootstrap_test")
    with caplog.at_level(logging.INFO, logger="para_ioc.bootstrap_test"):
        init(bootstrap_registrations(), logger=logger)
    assert "initialised with 3 registrations" in caplog.text
