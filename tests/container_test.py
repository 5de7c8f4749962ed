import pytest

from dockalot.container import DuplicateNameError
from dockalot.container import NamedContainer
from dockalot.container import UnknownNameError
from dockalot.provider import MissingValueError
from dockalot.provider import Property


class Thing:

    def __init__(self, name):
        self.name = name
        self.configured = 0


def _container():
    return NamedContainer(Thing, kind="thing")


def test_register_keeps_insertion_order():
    things = _container()
    for name in ["b", "a", "c"]:
        things.register(name)
    assert things.names == ("b", "a", "c")
    assert [t.name for t in things] == ["b", "a", "c"]
    assert len(things) == 3
    assert "a" in things
    assert "z" not in things


def test_register_duplicate_fails_immediately():
    things = _container()
    things.register("main")
    with pytest.raises(DuplicateNameError):
        things.register("main")
    assert len(things) == 1


def test_get_or_register_reuses_entry():
    things = _container()

    def configure(thing):
        thing.configured += 1

    first = things.get_or_register("registry", configure)
    second = things.get_or_register("registry", configure)
    assert first is second
    assert first.configured == 2
    assert len(things) == 1


def test_all_replays_and_follows_new_entries():
    things = _container()
    things.register("early")
    seen = []
    things.all(lambda thing: seen.append(thing.name))
    assert seen == ["early"]
    things.register("late")
    assert seen == ["early", "late"]
    things.get_or_register("late")
    assert seen == ["early", "late"]


def test_all_sees_configured_entry():
    things = _container()
    seen = []
    things.all(lambda thing: seen.append(thing.configured))
    things.register("x", lambda thing: setattr(thing, "configured", 7))
    assert seen == [7]


def test_main_and_unknown_lookup():
    things = _container()
    with pytest.raises(UnknownNameError):
        things.main
    main = things.register("main")
    assert things.main is main
    with pytest.raises(KeyError):
        things["nope"]
    assert things.get("nope") is None


def test_property_convention_and_set():
    prop = Property("version", convention="1.0")
    assert prop.get() == "1.0"
    prop.set("2.0")
    assert prop.get() == "2.0"


def test_property_is_lazy():
    state = {"version": "1.0"}
    prop = Property("version")
    prop.set(lambda: state["version"])
    state["version"] = "3.1"
    assert prop.get() == "3.1"


def test_property_from_other_property():
    source = Property("source", convention="a")
    target = Property("target")
    target.set(source)
    source.set("b")
    assert target.get() == "b"


def test_property_missing_value():
    prop = Property("nothing")
    assert not prop.is_present
    assert prop.or_none() is None
    with pytest.raises(MissingValueError):
        prop.get()


def test_register_rolls_back_when_subscriber_fails():
    things = _container()

    def refuse(thing):
        if thing.name == "bad":
            raise ValueError("cannot wire bad")

    things.all(refuse)
    with pytest.raises(ValueError):
        things.register("bad")
    assert "bad" not in things
    assert things.names == ()
    things.register("good")
    assert things.names == ("good",)
