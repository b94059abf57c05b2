"""Collective building projects.

A project is proposed for a zone, funded with gathered materials by any
agent standing in that zone, built for one game day and then completed.
Lifecycle: ``gathering -> building -> complete``. One active project per
zone. When a populated zone has none, the world may propose one.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from oasis.core.enums import Domain, Zone
from oasis.core.errors import Conflict, InvalidInput, NotFound
from oasis.core.grid import ZONE_NAMES

if TYPE_CHECKING:
    from oasis.core.models import Agent
    from oasis.engine.context import SimContext

logger = logging.getLogger(__name__)

GATHERING = "gathering"
BUILDING = "building"
COMPLETE = "complete"

PROPOSE_MIN_LEVEL = 5
PROPOSE_DEPOSIT = 50
COMPLETION_XP = 50
WORLD_PROPOSAL_CHANCE = 0.05

VALID_ZONES: tuple[Zone, ...] = (
    Zone.GRASS, Zone.FOREST, Zone.ROCKY, Zone.PATH, Zone.SAND, Zone.CAVE, Zone.COAST, Zone.SWAMP,
)


@dataclass(frozen=True, slots=True)
class ProjectType:
    name: str
    description: str
    materials: dict[str, int]
    effect: str
    build_days: int = 1


PROJECT_TYPES: dict[str, ProjectType] = {
    "bridge": ProjectType(
        "Bridge", "Connects two zones across difficult ground.",
        {"wood": 10, "stone": 6, "fiber": 4}, "Movement between connected zones is easier",
    ),
    "monument": ProjectType(
        "Monument", "A landmark that inspires every agent nearby.",
        {"stone": 12, "crystals": 6, "gems": 2}, "+25% XP gain in zone",
    ),
    "granary": ProjectType(
        "Granary", "Shared food storage for the zone.",
        {"wood": 12, "fiber": 6, "clay": 4}, "Zone gets a shared food chest",
    ),
    "watchtower": ProjectType(
        "Watchtower", "Early warning of danger in the zone.",
        {"wood": 8, "stone": 6, "ore": 3}, "Dangers in the zone are announced early",
    ),
    "library_expansion": ProjectType(
        "Library Expansion", "More shelves for the forest library.",
        {"wood": 6, "resin": 4, "reeds": 4}, "More room for books",
    ),
    "jetty": ProjectType(
        "Jetty", "A wooden landing reaching into the sea.",
        {"driftwood": 8, "shells": 6, "seaweed": 4}, "Fishing is easier along the coast",
    ),
}


@dataclass(slots=True)
class Project:
    id: str
    project_type: str
    name: str
    zone: str
    proposed_by: str | None
    proposed_by_name: str
    proposed_tick: int
    materials_required: dict[str, int]
    materials_contributed: dict[str, int] = field(default_factory=dict)
    contributors: dict[str, dict[str, Any]] = field(default_factory=dict)
    status: str = GATHERING
    build_started_tick: int | None = None
    completed_tick: int | None = None

    def remaining(self) -> dict[str, int]:
        out = {}
        for material, needed in self.materials_required.items():
            left = needed - self.materials_contributed.get(material, 0)
            if left > 0:
                out[material] = left
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectType": self.project_type,
            "name": self.name,
            "zone": self.zone,
            "proposedBy": self.proposed_by,
            "proposedByName": self.proposed_by_name,
            "proposedTick": self.proposed_tick,
            "materialsRequired": dict(self.materials_required),
            "materialsContributed": dict(self.materials_contributed),
            "contributors": {k: {"name": v["name"], "items": dict(v["items"])} for k, v in self.contributors.items()},
            "status": self.status,
            "buildStartedTick": self.build_started_tick,
            "completedTick": self.completed_tick,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            id=data["id"],
            project_type=data["projectType"],
            name=data.get("name", data["projectType"]),
            zone=data["zone"],
            proposed_by=data.get("proposedBy"),
            proposed_by_name=data.get("proposedByName", "World"),
            proposed_tick=int(data.get("proposedTick", 0)),
            materials_required=dict(data.get("materialsRequired") or {}),
            materials_contributed=dict(data.get("materialsContributed") or {}),
            contributors=dict(data.get("contributors") or {}),
            status=data.get("status", GATHERING),
            build_started_tick=data.get("buildStartedTick"),
            completed_tick=data.get("completedTick"),
        )


class ProjectBoard:
    FILE = "collective-projects.json"

    def __init__(self, ctx: SimContext) -> None:
        self._ctx = ctx
        self._projects: list[Project] = []

    # -- persistence --

    def load(self) -> None:
        raw = self._ctx.store.load(self.FILE, {})
        projects = []
        for entry in raw.get("projects") or []:
            try:
                projects.append(Project.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping unreadable project: %s", exc)
        self._projects = projects

    def save(self) -> None:
        self._ctx.store.save(self.FILE, {"projects": [p.to_dict() for p in self._projects]})

    # -- queries --

    def get(self, project_id: str) -> Project | None:
        return next((p for p in self._projects if p.id == project_id), None)

    def in_zone(self, zone: Zone, status: str | None = GATHERING) -> list[Project]:
        return [p for p in self._projects if p.zone == zone.value and (status is None or p.status == status)]

    def all(self) -> list[dict[str, Any]]:
        out = []
        for project in self._projects:
            data = project.to_dict()
            data["remaining"] = project.remaining() if project.status == GATHERING else {}
            data["contributorCount"] = len(project.contributors)
            out.append(data)
        return out

    def _active_in(self, zone: str) -> Project | None:
        return next((p for p in self._projects if p.zone == zone and p.status in (GATHERING, BUILDING)), None)

    # -- operations --

    def propose(self, agent: Agent | None, project_type: str, zone: Zone | str | None = None) -> Project:
        """Open a project. ``agent=None`` is a proposal by the world itself (no deposit)."""
        spec = PROJECT_TYPES.get(project_type)
        if spec is None:
            raise InvalidInput(f"Unknown project type: {project_type}. Valid types: {', '.join(PROJECT_TYPES)}")
        if zone is None:
            if agent is None:
                raise InvalidInput("Zone is required")
            zone = agent.zone
        try:
            zone = Zone(zone)
        except ValueError:
            raise InvalidInput(f"Invalid zone: {zone}") from None
        if zone not in VALID_ZONES:
            raise InvalidInput(f"Invalid zone: {zone.value}")
        if agent is not None:
            if agent.stats.level < PROPOSE_MIN_LEVEL:
                raise Conflict(f"Must be at least level {PROPOSE_MIN_LEVEL} to propose a project")
            if agent.coins < PROPOSE_DEPOSIT:
                raise Conflict(f"Proposing a project costs {PROPOSE_DEPOSIT} coins deposit. Not enough coins.")
        active = self._active_in(zone.value)
        if active is not None:
            raise Conflict(f'Zone "{zone.value}" already has an active project: {active.name}')

        if agent is not None:
            agent.coins -= PROPOSE_DEPOSIT
        project = Project(
            id=f"proj_{uuid.uuid4().hex[:12]}",
            project_type=project_type,
            name=spec.name,
            zone=zone.value,
            proposed_by=agent.id if agent else None,
            proposed_by_name=agent.name if agent else "World",
            proposed_tick=self._ctx.tick,
            materials_required=dict(spec.materials),
        )
        self._projects.append(project)
        logger.info("Project %s proposed in %s by %s", spec.name, zone.value, project.proposed_by_name)
        self._ctx.emit({
            "type": "projectProposed",
            "agentId": project.proposed_by,
            "agentName": project.proposed_by_name,
            "projectId": project.id,
            "projectName": project.name,
            "zone": zone.value,
        })
        self._ctx.add_news(
            "collective_project",
            f"{project.proposed_by_name} proposed a new {spec.name} project in {ZONE_NAMES[zone]}!",
            agent,
        )
        return project

    def contribute(self, agent: Agent, project_id: str, material: str, quantity: int) -> dict[str, Any]:
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1")
        project = self.get(project_id)
        if project is None:
            raise NotFound("Project not found")
        if project.status != GATHERING:
            raise Conflict(f"Project is not accepting contributions (status: {project.status})")
        if agent.zone.value != project.zone:
            raise Conflict(f"You must be in {project.zone} to contribute (currently in {agent.zone.value})")
        required = project.materials_required.get(material)
        if required is None:
            raise Conflict(f"{material} is not needed for this project")
        contributed = project.materials_contributed.get(material, 0)
        if contributed >= required:
            raise Conflict(f"{material} requirement already fulfilled")
        held = agent.find_item(material)
        amount = min(quantity, required - contributed)
        if held is None or held.quantity < amount:
            raise Conflict(f"Not enough {material}. Have: {held.quantity if held else 0}, need to contribute: {amount}")

        held.quantity -= amount
        if held.quantity <= 0:
            agent.inventory = [i for i in agent.inventory if i is not held]
        project.materials_contributed[material] = contributed + amount
        entry = project.contributors.setdefault(agent.id, {"name": agent.name, "items": {}})
        entry["items"][material] = entry["items"].get(material, 0) + amount

        started = False
        if not project.remaining():
            project.status = BUILDING
            project.build_started_tick = self._ctx.tick
            started = True
            self._ctx.emit({
                "type": "projectBuildStarted",
                "projectId": project.id,
                "projectName": project.name,
                "zone": project.zone,
            })
            self._ctx.add_news(
                "collective_project",
                f"The {project.name} in {project.zone} has all materials and construction has begun!",
                agent,
            )
        return {
            "ok": True,
            "project": project.name,
            "contributed": {"item": material, "quantity": amount},
            "remaining": project.remaining(),
            "buildStarted": started,
        }

    # -- tick --

    def tick(self) -> None:
        ctx = self._ctx
        day = ctx.config.ticks_per_game_day
        for project in self._projects:
            if project.status != BUILDING or project.build_started_tick is None:
                continue
            spec = PROJECT_TYPES.get(project.project_type)
            build_ticks = (spec.build_days if spec else 1) * day
            if ctx.tick - project.build_started_tick >= build_ticks:
                self._complete(project)
        self._maybe_world_proposal()

    def _complete(self, project: Project) -> None:
        ctx = self._ctx
        project.status = COMPLETE
        project.completed_tick = ctx.tick
        for contributor_id in project.contributors:
            agent = ctx.agents.get(contributor_id)
            if agent is None or not agent.alive:
                continue
            ctx.award_xp(agent, COMPLETION_XP)
            if ctx.achievements is not None:
                ctx.achievements.record(agent, "project_complete")
        if project.proposed_by is not None:
            proposer = ctx.agents.get(project.proposed_by)
            if proposer is not None:
                proposer.coins += PROPOSE_DEPOSIT
        spec = PROJECT_TYPES.get(project.project_type)
        effect = spec.effect if spec else ""
        logger.info("Project %s in %s completed", project.name, project.zone)
        ctx.emit({
            "type": "projectCompleted",
            "projectId": project.id,
            "projectName": project.name,
            "zone": project.zone,
            "effect": effect,
        })
        ctx.add_news("collective_project", f"The {project.name} in {project.zone} has been completed! Effect: {effect}")

    def _maybe_world_proposal(self) -> None:
        ctx = self._ctx
        if ctx.roll(Domain.PROJECTS, "world", 0) >= WORLD_PROPOSAL_CHANCE:
            return
        occupied: dict[str, int] = {}
        for agent in ctx.agents.alive():
            occupied[agent.zone.value] = occupied.get(agent.zone.value, 0) + 1
        candidates = [
            z for z in VALID_ZONES
            if occupied.get(z.value, 0) >= 2 and self._active_in(z.value) is None
        ]
        if not candidates:
            return
        zone = candidates[int(ctx.roll(Domain.PROJECTS, "world", 1) * len(candidates))]
        types = list(PROJECT_TYPES)
        project_type = types[int(ctx.roll(Domain.PROJECTS, "world", 2) * len(types))]
        self.propose(None, project_type, zone)
