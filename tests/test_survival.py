"""Tests for bodily upkeep, death, resurrection and inventory decay."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from oasis.core.enums import KnowledgeType
from oasis.core.models import Item
from oasis.systems.decay import decay_inventory
from oasis.systems.survival import kill, resurrect, survival_update
from tests.helpers.oasis_world import add_agent, make_ctx


def _perishable(name="Cooked fish", condition=None, rarity=None):
    return Item(
        name=name,
        stackable=False,
        condition=condition,
        rarity=rarity,
        properties={"decay_rate": 0.5, "organic": 1.0},
    )


class TestSurvival:
    def test_zone_sets_temperature(self, tmp_path):
        ctx = make_ctx(tmp_path, ["ggo"])
        ada = add_agent(ctx, "Ada", 1, 0)
        ctx.tick = 1
        survival_update(ctx, ada)
        assert ada.temperature == 25

    def test_hourly_regen_is_stronger_on_grass(self, tmp_path):
        ctx = make_ctx(tmp_path, ["gf"])
        ada = add_agent(ctx, "Ada", 0, 0, energy=50.0)
        bo = add_agent(ctx, "Bo", 1, 0, energy=50.0)
        ctx.tick = 5
        survival_update(ctx, ada)
        assert ada.energy == 50
        ctx.tick = 6
        survival_update(ctx, ada)
        survival_update(ctx, bo)
        assert ada.energy == 53
        assert bo.energy == 51

    def test_starvation_drains_hp(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, hunger=100.0, energy=0.0)
        ctx.tick = 1
        survival_update(ctx, ada)
        assert ada.hp == 99.5
        assert ada.alive

    def test_death_by_starvation(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, hunger=100.0, energy=0.0, hp=0.4)
        ctx.knowledge.grant_random_lore(ada)
        ctx.tick = 1
        survival_update(ctx, ada)

        assert not ada.alive
        assert ada.hp == 0
        assert ctx.knowledge.get(ada.id) is None
        assert ctx.minds.get(ada.id).current_action == "dead"
        deaths = ctx.bus.messages("agent_death")
        assert deaths[0]["cause"] == "starvation"
        assert ctx.news.latest(1)[0].type == "death"

    def test_kill_is_idempotent(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        kill(ctx, ada, "exhaustion")
        kill(ctx, ada, "exhaustion")
        assert ctx.bus.count("agent_death") == 1

    def test_titles_survive_death(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.titles.add("Pathfinder")
        kill(ctx, ada, "exhaustion")
        assert ada.titles == {"Pathfinder"}

    def test_resurrect(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, hunger=100.0)
        kill(ctx, ada, "starvation")
        resurrect(ctx, ada)
        assert ada.alive
        assert (ada.hp, ada.energy, ada.hunger) == (50, 50, 0)
        assert ctx.bus.count("agent_resurrect") == 1
        assert not ctx.knowledge.knows(ada.id, KnowledgeType.LORE, "anything")


class TestDecay:
    def test_perishable_loses_condition(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.append(_perishable())
        decay_inventory(ctx, ada)
        # 0.5 * 10 * (10 / 60) per tick
        assert ada.inventory[0].condition == pytest.approx(99.1667)

    def test_heat_speeds_rot(self, tmp_path):
        ctx = make_ctx(tmp_path, ["ddd"] * 3)
        ada = add_agent(ctx, "Ada", 1, 1)
        ada.inventory.append(_perishable())
        decay_inventory(ctx, ada)
        assert ada.inventory[0].condition == pytest.approx(98.75)

    def test_durable_items_untouched(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.append(Item(name="Iron Bar", properties={"decay_rate": 0}))
        assert decay_inventory(ctx, ada) == []
        assert ada.inventory[0].condition is None

    def test_rotten_valuables_make_news(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.append(_perishable("Gourmet fish", condition=0.5, rarity="Rare"))
        ada.inventory.append(_perishable("Cooked fish", condition=0.5))
        destroyed = decay_inventory(ctx, ada)
        assert [i.name for i in destroyed] == ["Gourmet fish", "Cooked fish"]
        assert ada.inventory == []
        assert ctx.bus.count("itemDecayed") == 1
