from enum import Enum
from typing import Annotated

from rich.console import Console
from rich.pretty import pprint

from herald import *
from herald.utils import Unset

__prog__ = "universe"

console = Console()


class CelestialType(Enum):
    PLANET = "planet"
    DWARF_PLANET = "dwarf planet"
    MOON = "moon"


class Body:
    def __init__(self, type):
        self.type = type
        self.temperature = 0.0
        self.description = None


class BodyProvider(Provider):
    def __init__(self, universe):
        self.universe = universe

    def get(self, arguments, modifiers=()):
        name = arguments.next()
        try:
            return self.universe[name]
        except KeyError:
            raise ArgumentParseError(f"no celestial body by the name of '{name}' is known", token=name) from None

    def suggest(self, prefix, namespace=Unset, modifiers=()):
        return [name for name in self.universe if name.startswith(prefix)]


class UniverseModule(Module):
    def __init__(self, universe):
        self.universe = universe

    def configure(self):
        self.bind(dict).to_instance(self.universe)
        self.bind(Body).to_provider(BodyProvider(self.universe))
        self.bind(CelestialType).to_provider(EnumProvider(CelestialType))


class Subject:
    def __init__(self, name, *permissions):
        self.name = name
        self.permissions = set(permissions)


class SubjectAuthorizer(Authorizer):
    def test_permission(self, namespace, permission, /):
        return permission in namespace[Subject].permissions


class UniverseCommands:
    @command("settype", desc="Set the type of an object", require="body.settype")
    def set_type(self, body: Body, type: CelestialType):
        body.type = type

    @command("settemp", desc="Set the mean temperature of an object", require="body.settemp")
    def set_temp(self, body: Body, temperature: float, fahrenheit: Annotated[bool, Switch("f")]):
        body.temperature = (temperature - 32) * 5 / 9 if fahrenheit else temperature

    @command("setdesc", desc="Set the description of an object", require="body.setdesc")
    def set_desc(self, body: Body, description: Annotated[str, Text]):
        body.description = description

    @command("info", desc="Show information about an object", require="body.info")
    def info(self, body: Body, fahrenheit: Annotated[bool, Switch("f")]):
        temperature = body.temperature * 9 / 5 + 32 if fahrenheit else body.temperature
        console.print(f"type: {body.type.value}")
        console.print(f"mean temp: {temperature:.1f} deg {"F" if fahrenheit else "C"}")
        if body.description is not None:
            console.print(f"desc: {body.description}")

    @command("delete", desc="Delete a celestial body", require="body.deathstar")
    def delete(self, universe: dict, name: str):
        universe.pop(name, None)


if __name__ == '__main__':
    universe = {name: Body(CelestialType.PLANET) for name in (
        "mercury", "venus", "earth", "mars", "jupiter", "saturn", "uranus", "neptune", "pluto"
    )}

    namespace = Namespace()
    namespace.put(Subject, Subject("example_user", "body.settype", "body.settemp", "body.setdesc", "body.info"))

    builder = ParametricBuilder(create_injector(PrimitivesModule(), UniverseModule(universe)))
    builder.authorizer = SubjectAuthorizer()

    graph = CommandGraph(builder)
    graph.commands().group("body").describe("Manage celestial bodies").register_commands(UniverseCommands())

    for line in (
        "body info pluto",
        "body settype pluto dwarf-planet",
        "body info pluto",
        "body settype poseidon planet",
        "body settype pluto unknown",
        "body settemp mercury 167",
        "body setdesc mercury Closest to the Sun",
        "body info mercury",
        "body info -f mercury",
        "body settemp earth 59 -f",
        "body info earth",
        "body delete earth",
    ):
        console.rule(f"/{line}")
        invoke(graph.dispatcher, line, namespace, shell=True, fancy=True)

    pprint(graph.dispatcher.suggest("body info m", namespace))
