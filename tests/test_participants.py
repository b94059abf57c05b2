"""Tests for the pluggable tick participants: ecosystem, projects, weather,
world master, achievements, proficiency, trading, encounters, experiments."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from oasis.core.enums import WeatherKind, Zone
from oasis.core.errors import Conflict, InvalidInput, NotFound
from oasis.core.models import Item
from oasis.systems.achievements import ACHIEVEMENTS, AchievementTracker
from oasis.systems.ecosystem import ZoneEcosystem
from oasis.systems.encounters import EncounterTable
from oasis.systems.experiments import ExperimentLab
from oasis.systems.npc_social import TradeBroker
from oasis.systems.proficiency import ProficiencyTracker, level_for_xp, title_for
from oasis.systems.projects import BUILDING, COMPLETE, GATHERING, ProjectBoard
from oasis.systems.weather import Atmosphere, WeatherModel, derive_weather, season_for_day
from oasis.systems.world_master import DangerMaster
from tests.helpers.oasis_world import add_agent, make_ctx


class FixedWeather:
    def __init__(self, kind):
        self.kind = kind

    def tick(self):
        pass

    def current(self):
        return self.kind

    def snapshot(self):
        return {"weather": self.kind.value}


# ---------------------------------------------------------------------------
# Ecosystem
# ---------------------------------------------------------------------------

class TestEcosystem:
    def test_harvest_and_regrowth(self, tmp_path):
        ctx = make_ctx(tmp_path)
        eco = ctx.ecosystem = ZoneEcosystem(ctx)
        eco.record_harvest(Zone.GRASS)
        assert eco.abundance(Zone.GRASS) == pytest.approx(0.99)
        eco.tick()
        assert eco.abundance(Zone.GRASS) == pytest.approx(0.992)

    def test_rain_speeds_regrowth(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ctx.weather = FixedWeather(WeatherKind.RAIN)
        eco = ZoneEcosystem(ctx)
        eco.record_harvest(Zone.GRASS)
        eco.tick()
        assert eco.abundance(Zone.GRASS) == pytest.approx(0.993)

    def test_exhaustion_announced_once(self, tmp_path):
        ctx = make_ctx(tmp_path)
        eco = ZoneEcosystem(ctx)
        for _ in range(90):
            eco.record_harvest(Zone.GRASS)
        assert not eco.exhausted(Zone.GRASS)

        eco.record_harvest(Zone.GRASS)
        eco.record_harvest(Zone.GRASS)
        assert eco.exhausted(Zone.GRASS)
        assert ctx.bus.count("zoneExhausted") == 1

    def test_barren_zones_untracked(self, tmp_path):
        ctx = make_ctx(tmp_path)
        eco = ZoneEcosystem(ctx)
        eco.record_harvest(Zone.WATER)
        assert eco.abundance(Zone.WATER) == 0.0
        assert not eco.exhausted(Zone.WATER)

    def test_persistence(self, tmp_path):
        ctx = make_ctx(tmp_path)
        eco = ZoneEcosystem(ctx)
        eco.record_harvest(Zone.FOREST)
        eco.save()
        again = ZoneEcosystem(ctx)
        again.load()
        assert again.abundance(Zone.FOREST) == pytest.approx(0.99)


# ---------------------------------------------------------------------------
# Collective projects
# ---------------------------------------------------------------------------

class TestProjects:
    def _board(self, tmp_path):
        ctx = make_ctx(tmp_path)
        board = ctx.projects = ProjectBoard(ctx)
        return ctx, board

    def test_proposal_needs_level(self, tmp_path):
        ctx, board = self._board(tmp_path)
        ada = add_agent(ctx, "Ada", 1, 1, coins=100)
        with pytest.raises(Conflict):
            board.propose(ada, "granary")

    def test_proposal_takes_deposit(self, tmp_path):
        ctx, board = self._board(tmp_path)
        ada = add_agent(ctx, "Ada", 1, 1, coins=60)
        ada.stats.level = 5
        project = board.propose(ada, "granary")
        assert project.zone == "grass"
        assert project.status == GATHERING
        assert ada.coins == 10
        assert ctx.bus.count("projectProposed") == 1

        with pytest.raises(Conflict):
            board.propose(ada, "bridge")

    def test_invalid_proposals(self, tmp_path):
        ctx, board = self._board(tmp_path)
        with pytest.raises(InvalidInput):
            board.propose(None, "castle", Zone.GRASS)
        with pytest.raises(InvalidInput):
            board.propose(None, "granary")
        with pytest.raises(InvalidInput):
            board.propose(None, "granary", Zone.WATER)

    def test_contributions_start_building(self, tmp_path):
        ctx, board = self._board(tmp_path)
        ada = add_agent(ctx, "Ada", 1, 1)
        ada.stack_item("wood", 28, 15)
        ada.stack_item("fiber", 28, 6)
        ada.stack_item("clay", 28, 4)
        project = board.propose(None, "granary", Zone.GRASS)

        result = board.contribute(ada, project.id, "wood", 20)
        assert result["contributed"] == {"item": "wood", "quantity": 12}
        assert ada.find_item("wood").quantity == 3
        assert result["remaining"] == {"fiber": 6, "clay": 4}

        board.contribute(ada, project.id, "fiber", 6)
        result = board.contribute(ada, project.id, "clay", 4)
        assert result["buildStarted"] is True
        assert project.status == BUILDING
        assert ada.find_item("fiber") is None

    def test_contribution_errors(self, tmp_path):
        ctx, board = self._board(tmp_path)
        ada = add_agent(ctx, "Ada", 1, 1)
        project = board.propose(None, "granary", Zone.FOREST)
        with pytest.raises(NotFound):
            board.contribute(ada, "proj_missing", "wood", 1)
        with pytest.raises(Conflict):
            board.contribute(ada, project.id, "wood", 1)

        grass = board.propose(None, "granary", Zone.GRASS)
        with pytest.raises(Conflict):
            board.contribute(ada, grass.id, "gems", 1)
        with pytest.raises(Conflict):
            board.contribute(ada, grass.id, "wood", 1)

    def test_completion_after_a_day(self, tmp_path):
        ctx, board = self._board(tmp_path)
        ada = add_agent(ctx, "Ada", 1, 1, coins=50)
        ada.stats.level = 5
        project = board.propose(ada, "library_expansion", Zone.GRASS)
        for material, qty in project.materials_required.items():
            ada.stack_item(material, 28, qty)
            board.contribute(ada, project.id, material, qty)
        assert project.status == BUILDING

        ctx.tick += ctx.config.ticks_per_game_day - 1
        board.tick()
        assert project.status == BUILDING

        ctx.tick += 1
        board.tick()
        assert project.status == COMPLETE
        assert ada.stats.xp == 50
        assert ada.coins == 50
        assert ctx.bus.count("projectCompleted") == 1

    def test_world_proposes_for_crowded_zone(self, tmp_path):
        ctx, board = self._board(tmp_path)
        add_agent(ctx, "Ada", 1, 1)
        add_agent(ctx, "Bo", 2, 2)
        ctx.rng.queue(0.0, 0.0, 0.0)
        board.tick()
        (project,) = board.all()
        assert project["proposedByName"] == "World"
        assert project["zone"] == "grass"
        assert project["projectType"] == "bridge"

    def test_persistence(self, tmp_path):
        ctx, board = self._board(tmp_path)
        board.propose(None, "jetty", Zone.COAST)
        board.save()
        again = ProjectBoard(ctx)
        again.load()
        assert [p["name"] for p in again.all()] == ["Jetty"]


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

class TestWeather:
    def test_derived_kinds(self):
        assert derive_weather(Atmosphere()) is WeatherKind.CLEAR
        assert derive_weather(Atmosphere(moisture=70, pressure=980, wind_speed=25)) is WeatherKind.STORM
        assert derive_weather(Atmosphere(temperature=0, moisture=40)) is WeatherKind.SNOW
        assert derive_weather(Atmosphere(moisture=60, pressure=1000)) is WeatherKind.RAIN
        assert derive_weather(Atmosphere(temperature=40, moisture=10)) is WeatherKind.HEATWAVE

    def test_seasons(self):
        assert season_for_day(1) == "spring"
        assert season_for_day(31) == "summer"
        assert season_for_day(120) == "winter"
        assert season_for_day(121) == "spring"

    def test_updates_every_two_game_hours(self, tmp_path):
        ctx = make_ctx(tmp_path)
        model = WeatherModel(ctx)
        ctx.tick = 5
        model.tick()
        assert model.atmosphere.updates == 0
        ctx.tick = 12
        model.tick()
        assert model.atmosphere.updates == 1

    def test_snapshot_and_persistence(self, tmp_path):
        ctx = make_ctx(tmp_path)
        model = WeatherModel(ctx)
        model.step()
        snap = model.snapshot()
        assert snap["season"] == "spring"
        assert set(snap["atmosphere"]) == {"moisture", "pressure", "windSpeed", "temperature", "windDirection"}

        model.save()
        again = WeatherModel(ctx)
        again.load()
        assert again.atmosphere == model.atmosphere

    def test_microclimate(self, tmp_path):
        ctx = make_ctx(tmp_path)
        model = WeatherModel(ctx)
        assert model.zone_temperature(Zone.CAVE) == model.temperature() - 8


# ---------------------------------------------------------------------------
# World master
# ---------------------------------------------------------------------------

class TestWorldMaster:
    def test_declare(self, tmp_path):
        ctx = make_ctx(tmp_path)
        master = DangerMaster(ctx)
        master.declare(Zone.FOREST)
        (danger,) = master.dangers_for(Zone.FOREST)
        assert danger["type"] == "wildfire"
        assert danger["energyCost"] == 5
        assert master.dangers_for(Zone.GRASS) == []
        assert ctx.news.latest(1)[0].type == "danger"

    def test_dangers_expire(self, tmp_path):
        ctx = make_ctx(tmp_path)
        master = DangerMaster(ctx)
        master.declare(Zone.CAVE, duration=10)
        ctx.tick = 10
        master.tick()
        assert master.active() == []
        assert ctx.bus.count("consequenceEnd") == 1

    def test_tick_rolls_a_danger(self, tmp_path):
        ctx = make_ctx(tmp_path)
        master = DangerMaster(ctx)
        ctx.rng.queue(0.0, 0.0)
        master.tick()
        assert [d.zone for d in master.active()] == ["grass"]

    def test_narrator(self, tmp_path):
        ctx = make_ctx(tmp_path)
        master = DangerMaster(ctx, narrator=lambda state: "The wind turns.")
        master.tick()
        assert master.last_narrative == "The wind turns."
        assert ctx.bus.count("narrative") == 1

    def test_failing_narrator_is_skipped(self, tmp_path):
        def broken(state):
            raise RuntimeError("offline")

        ctx = make_ctx(tmp_path)
        master = DangerMaster(ctx, narrator=broken)
        master.tick()
        assert master.last_narrative is None
        assert ctx.bus.count("narrative") == 0

    def test_persistence(self, tmp_path):
        ctx = make_ctx(tmp_path)
        master = DangerMaster(ctx)
        master.declare(Zone.SAND)
        master.save()
        again = DangerMaster(ctx)
        again.load()
        assert again.dangers_for(Zone.SAND)[0]["type"] == "sandstorm"


# ---------------------------------------------------------------------------
# Achievements and proficiency
# ---------------------------------------------------------------------------

class TestAchievements:
    def test_pioneer(self, tmp_path):
        ctx = make_ctx(tmp_path)
        tracker = AchievementTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        assert tracker.check(ada) == []

        tracker.record(ada, "discover_tile")
        unlocked = tracker.check(ada)
        assert [a["id"] for a in unlocked] == ["pioneer"]
        assert "Pioneer" in ada.titles
        assert tracker.check(ada) == []
        assert ctx.bus.count("achievementUnlocked") == 1

    def test_unique_crafts_counted_once(self, tmp_path):
        ctx = make_ctx(tmp_path)
        tracker = AchievementTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        tracker.record(ada, "craft", "Fired stone")
        tracker.record(ada, "craft", "Fired stone")
        assert tracker.stats(ada)["unique_items_crafted"] == 1

    def test_survivor(self, tmp_path):
        ctx = make_ctx(tmp_path)
        tracker = AchievementTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        ctx.tick = ctx.config.ticks_per_game_day * 30
        assert [a["id"] for a in tracker.check(ada)] == ["survivor"]

    def test_progress(self, tmp_path):
        ctx = make_ctx(tmp_path)
        tracker = AchievementTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        tracker.record(ada, "trade_earn", 40)
        rows = {row["id"]: row for row in tracker.progress(ada)}
        assert len(rows) == len(ACHIEVEMENTS)
        assert rows["merchant_prince"]["current"] == 40
        assert rows["merchant_prince"]["needed"] == 1000
        assert rows["merchant_prince"]["earned"] is False


class TestProficiency:
    def test_levels(self):
        assert level_for_xp(0) == 0
        assert level_for_xp(49) == 0
        assert level_for_xp(50) == 1
        assert level_for_xp(150) == 2

    def test_titles(self):
        assert title_for("mining", 0) == ""
        assert title_for("mining", 1) == "Novice Miner"
        assert title_for("cooking", 5) == "Cook Apprentice"
        assert title_for("cooking", 30) == "Cook Grandmaster"

    def test_add_xp(self, tmp_path):
        ctx = make_ctx(tmp_path)
        prof = ProficiencyTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        assert prof.add_xp(ada, "mining", 40) is False
        assert prof.add_xp(ada, "mining", 10) is True
        assert ada.proficiencies["mining"] == 1
        assert ctx.bus.count("proficiencyLevelUp") == 1
        assert prof.add_xp(ada, "juggling", 100) is False

    def test_grandmaster_makes_news(self, tmp_path):
        ctx = make_ctx(tmp_path)
        prof = ProficiencyTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        prof.add_xp(ada, "cooking", 23250)
        assert prof.level(ada, "cooking") == 30
        assert ctx.news.latest(1)[0].message == "Ada became a Cook Grandmaster!"

    def test_gather_rules(self, tmp_path):
        ctx = make_ctx(tmp_path)
        prof = ProficiencyTracker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        prof.on_action(ada, "gather", Zone.FOREST, "wood")
        summary = prof.summary(ada)
        assert summary["woodcraft"]["xp"] == 10
        assert summary["scholarship"]["xp"] == 10
        assert summary["mining"]["xp"] == 0

        # nothing matches shells on the coast
        prof.on_action(ada, "gather", Zone.COAST, "shells")
        assert prof.summary(ada)["mining"]["xp"] == 3


# ---------------------------------------------------------------------------
# Trading, encounters, experiments
# ---------------------------------------------------------------------------

class TestTrading:
    def test_sale(self, tmp_path):
        ctx = make_ctx(tmp_path)
        broker = TradeBroker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        bo = add_agent(ctx, "Bo", 1, 2, coins=100)
        ada.stack_item("berries", 28, 3)
        ctx.rng.queue(0.0, 0.0)

        result = broker.trade(ada, bo)
        assert result == {"kind": "sale", "seller": "Ada", "buyer": "Bo", "item": "berries", "price": 8}
        assert (ada.coins, bo.coins) == (8, 92)
        assert ada.find_item("berries").quantity == 2
        assert bo.find_item("berries").quantity == 1
        assert ada.relationships[bo.id].score == 2
        assert bo.relationships[ada.id].score == 2

    def test_barter_when_buyer_is_broke(self, tmp_path):
        ctx = make_ctx(tmp_path)
        broker = TradeBroker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        bo = add_agent(ctx, "Bo", 1, 2)
        ada.stack_item("berries", 28, 3)
        bo.stack_item("fish", 28, 2)
        ctx.rng.queue(0.0, 0.0, 0.0)

        result = broker.trade(ada, bo)
        assert result["kind"] == "barter"
        assert result["received"] == "fish"
        assert ada.find_item("fish").quantity == 1
        assert bo.find_item("fish").quantity == 1
        assert bo.find_item("berries").quantity == 1

    def test_no_surplus(self, tmp_path):
        ctx = make_ctx(tmp_path)
        broker = TradeBroker(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        bo = add_agent(ctx, "Bo", 1, 2, coins=100)
        ada.stack_item("berries", 28, 1)
        assert broker.trade(ada, bo) is None
        assert broker.trade(ada, ada) is None


class TestEncounters:
    def test_probability(self, tmp_path):
        ctx = make_ctx(tmp_path)
        table = EncounterTable(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        ctx.tick = 60
        assert table.probability(ada) == pytest.approx(0.05)
        ada.energy = 20
        assert table.probability(ada) == pytest.approx(0.10)
        ctx.tick = 0
        assert table.probability(ada) == pytest.approx(0.13)

    def test_check_and_cooldown(self, tmp_path):
        ctx = make_ctx(tmp_path)
        table = EncounterTable(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        ctx.rng.queue(0.0, 0.0)
        encounter = table.check(ada)
        assert encounter["type"] == "discovery"
        assert encounter["description"] == "A curious discovery is found in the grass!"

        ctx.rng.queue(0.0, 0.0)
        assert table.check(ada) is None

    def test_discovery_rewards(self, tmp_path):
        ctx = make_ctx(tmp_path)
        table = EncounterTable(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        ctx.rng.queue(0.0)
        result = table.resolve(ada, {"type": "discovery"})
        assert result == {"effects": ["Found 10 coins", "Gained 15 XP"], "survived": True}
        assert (ada.coins, ada.stats.xp) == (10, 15)
        assert len(table.history(ada.id)) == 1

    def test_creature_can_overwhelm(self, tmp_path):
        ctx = make_ctx(tmp_path)
        table = EncounterTable(ctx)
        ada = add_agent(ctx, "Ada", 1, 1, energy=10.0)
        ada.stack_item("berries", 28, 2)
        result = table.resolve(ada, {"type": "creature"})
        assert result["survived"] is False
        assert ada.energy == 0
        assert ada.hp == 80
        assert ada.find_item("berries").quantity == 1
        assert ctx.bus.count("encounter") == 1
        assert ctx.news.latest(1)[0].type == "encounter"


class TestExperiments:
    def test_combine_and_first_discovery(self, tmp_path):
        ctx = make_ctx(tmp_path)
        lab = ctx.experiments = ExperimentLab(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        herbs, berries = Item(name="herbs"), Item(name="berries")
        ada.inventory.extend([herbs, berries])

        result = lab.combine(ada, herbs, berries, "combine")
        assert result["success"] is True
        assert result["recipe"] == "combine:berries+herbs"
        assert result["discovery"] == {"first": True, "discoverer": "Ada"}
        assert [i.name for i in ada.inventory] == ["herbs-berries Blend"]
        assert lab.known_property_count(ada.id) == 4

        bo = add_agent(ctx, "Bo", 1, 2)
        again = (Item(name="berries"), Item(name="herbs"))
        bo.inventory.extend(again)
        assert lab.combine(bo, *again, "combine")["discovery"] is None
        assert len(lab.discoveries) == 1

    def test_force_requirement(self, tmp_path):
        ctx = make_ctx(tmp_path)
        lab = ExperimentLab(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        herbs, berries = Item(name="herbs"), Item(name="berries")
        ada.inventory.extend([herbs, berries])

        result = lab.combine(ada, herbs, berries, "heat")
        assert result["success"] is False
        assert result["destroyed"] is False
        assert len(ada.inventory) == 2

        ctx.rng.default = 0.0
        assert lab.combine(ada, herbs, berries, "heat")["destroyed"] is True
        assert ada.inventory == []

    def test_bad_requests(self, tmp_path):
        ctx = make_ctx(tmp_path)
        lab = ExperimentLab(ctx)
        ada = add_agent(ctx, "Ada", 1, 1)
        herbs = Item(name="herbs")
        ada.inventory.append(herbs)
        assert lab.combine(ada, herbs, herbs, "combine")["message"] == "Need two items to experiment."
        assert lab.combine(ada, herbs, herbs, "teleport")["message"] == "Unknown force: teleport"
