"""Typed seams for the subsystems plugged into the tick.

The driver and the dispatcher only talk to these protocols; every slot on
the simulation context may be ``None``, in which case the corresponding
step or action is skipped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from oasis.core.enums import WeatherKind, Zone
    from oasis.core.models import Agent, Item


@runtime_checkable
class Persistent(Protocol):
    def load(self) -> None: ...
    def save(self) -> None: ...


class WeatherSystem(Protocol):
    def tick(self) -> None: ...
    def current(self) -> WeatherKind: ...
    def temperature(self) -> float: ...
    def snapshot(self) -> dict[str, Any]: ...


class Ecosystem(Protocol):
    def tick(self) -> None: ...
    def record_harvest(self, zone: Zone) -> None: ...
    def abundance(self, zone: Zone) -> float: ...
    def exhausted(self, zone: Zone) -> bool: ...


class WorldMaster(Protocol):
    def tick(self) -> None: ...
    def dangers_for(self, zone: Zone) -> list[dict[str, Any]]: ...


class CollectiveProjects(Protocol):
    def tick(self) -> None: ...
    def in_zone(self, zone: Zone, status: str | None = "gathering") -> list[Any]: ...
    def contribute(self, agent: Agent, project_id: str, material: str, quantity: int) -> dict[str, Any]: ...
    def all(self) -> list[dict[str, Any]]: ...


class Achievements(Protocol):
    def record(self, agent: Agent, event: str, detail: Any = None) -> None: ...
    def check(self, agent: Agent) -> list[dict[str, Any]]: ...


class Proficiency(Protocol):
    def on_action(self, agent: Agent, action: str, zone: Zone, item: str | None = None) -> None: ...
    def level(self, agent: Agent, domain: str) -> int: ...


class Cooking(Protocol):
    def cook(self, agent: Agent, ingredients: list[Item]) -> dict[str, Any] | None: ...


class Experiments(Protocol):
    def combine(self, agent: Agent, first: Item, second: Item, force: str) -> dict[str, Any]: ...
    def known_property_count(self, agent_id: str) -> int: ...


class Encounters(Protocol):
    def check(self, agent: Agent) -> dict[str, Any] | None: ...
    def resolve(self, agent: Agent, encounter: dict[str, Any]) -> dict[str, Any]: ...


class NpcSocial(Protocol):
    def trade(self, agent: Agent, other: Agent) -> dict[str, Any] | None: ...
