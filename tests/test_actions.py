"""Tests for the action executors, one agent acting on its current tile."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from oasis.actions.dispatcher import execute
from oasis.core.enums import ActionKind, KnowledgeType
from oasis.core.mind import Intent
from oasis.core.models import Item
from oasis.systems.cooking import Kitchen
from tests.helpers.oasis_world import add_agent, make_ctx


def _act(ctx, agent, action):
    execute(ctx, agent, ctx.minds.get(agent.id), action)


def _count(agent, name):
    item = agent.find_item(name)
    return item.quantity if item else 0


# ---------------------------------------------------------------------------
# Gather
# ---------------------------------------------------------------------------

class TestGather:
    def test_weighted_roll_lands_in_inventory(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ctx.rng.queue(0.0)
        _act(ctx, ada, ActionKind.GATHER)
        assert _count(ada, "herbs") == 1
        assert ada.energy == 98.5
        assert ada.stats.xp == 2
        mind = ctx.minds.get(ada.id)
        assert mind.memory.gathered == {"herbs": 1}
        assert mind.current_action == "gather"

    def test_stacks_with_existing(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.append(Item(name="fiber", quantity=2))
        _act(ctx, ada, ActionKind.GATHER)
        assert _count(ada, "fiber") == 3
        assert len(ada.inventory) == 1

    def test_full_inventory_spends_energy_only(self, tmp_path):
        ctx = make_ctx(tmp_path, inventory_cap=2)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.extend([Item(name="stone"), Item(name="ore")])
        _act(ctx, ada, ActionKind.GATHER)
        assert [i.name for i in ada.inventory] == ["stone", "ore"]
        assert ada.energy == 98.5
        assert ada.stats.xp == 0

    def test_gathers_from_adjacent_water_tile(self, tmp_path):
        ctx = make_ctx(tmp_path, ["ggo", "ggo", "ggo"])
        ada = add_agent(ctx, "Ada", 0, 1)
        mind = ctx.minds.get(ada.id)
        mind.intent = Intent(ActionKind.GATHER, 0, 1, "fishing", 0, gather_x=1, gather_y=1)
        ctx.rng.queue(0.0)
        _act(ctx, ada, ActionKind.GATHER)
        # (1, 1) is coastline: fish is the first entry in its table
        assert _count(ada, "fish") == 1

    def test_zone_secret_after_five_gathers(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        for _ in range(5):
            _act(ctx, ada, ActionKind.GATHER)
        assert len(ctx.knowledge.get(ada.id).zone_secrets["grass"]) == 1


# ---------------------------------------------------------------------------
# Rest / eat
# ---------------------------------------------------------------------------

class TestRestAndEat:
    def test_rest(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, energy=50.0, hunger=10.0)
        _act(ctx, ada, ActionKind.REST)
        assert ada.energy == 55
        assert ada.hunger == 9

    def test_rest_caps_energy(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, energy=98.0, hunger=0.0)
        _act(ctx, ada, ActionKind.REST)
        assert ada.energy == 100
        assert ada.hunger == 0

    def test_eat_first_food(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, energy=50.0, hunger=50.0)
        ada.inventory.extend([Item(name="stone"), Item(name="berries", quantity=2)])
        _act(ctx, ada, ActionKind.EAT)
        assert ada.hunger == 20
        assert ada.energy == 60
        assert _count(ada, "berries") == 1
        assert _count(ada, "stone") == 1

    def test_eat_without_food(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5, energy=50.0, hunger=50.0)
        ada.inventory.append(Item(name="stone"))
        _act(ctx, ada, ActionKind.EAT)
        assert (ada.energy, ada.hunger) == (50, 50)


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------

class TestChat:
    def test_bonds_both_sides(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 6, 6)
        _act(ctx, ada, ActionKind.CHAT)
        assert ada.relationships[bo.id].score == 1
        assert bo.relationships[ada.id].score == 1
        assert ctx.minds.get(bo.id).relationship_score(ada.id) == 1
        assert ada.energy == pytest.approx(99.7)
        assert ctx.bus.count("chat") == 1
        assert ctx.news.latest(1)[0].type == "chat"

    def test_alone_does_nothing(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        add_agent(ctx, "Bo", 9, 9)
        _act(ctx, ada, ActionKind.CHAT)
        assert ada.relationships == {}
        assert ada.energy == 100

    def test_dead_neighbour_ignored(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        add_agent(ctx, "Bo", 5, 6, alive=False)
        _act(ctx, ada, ActionKind.CHAT)
        assert ada.relationships == {}

    def test_may_teach_lore(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 5, 6)
        fragment = ctx.knowledge.grant_random_lore(ada)
        # neighbour pick, then the teach roll
        ctx.rng.queue(0.0, 0.0)
        _act(ctx, ada, ActionKind.CHAT)
        assert ctx.knowledge.knows(bo.id, KnowledgeType.LORE, fragment)


class TestGift:
    def test_conserves_items(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 5, 6)
        ada.inventory.extend([Item(name="stone"), Item(name="berries", quantity=3)])
        _act(ctx, ada, ActionKind.GIFT)
        # duplicates are given away first
        assert _count(ada, "berries") == 2
        assert _count(bo, "berries") == 1
        assert _count(ada, "stone") == 1
        assert ada.relationships[bo.id].score == 8
        assert bo.relationships[ada.id].score == 10
        assert ada.stats.xp == 3

    def test_unique_item_moves_whole(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 5, 6)
        meal = Item(name="Cooked berries", id="item_1", stackable=False, quality="cooked")
        ada.inventory.append(meal)
        _act(ctx, ada, ActionKind.GIFT)
        assert ada.inventory == []
        assert bo.find_item_by_id("item_1").quality == "cooked"

    def test_split_unique_item_is_detached(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 5, 6)
        rope = Item(name="Rope", quantity=2, id="item_1", stackable=False, properties={"flammability": 6})
        ada.inventory.append(rope)
        _act(ctx, ada, ActionKind.GIFT)

        (given,) = bo.inventory
        assert given.quantity == 1
        assert rope.quantity == 1
        assert given.id not in (None, "item_1")
        given.properties["flammability"] = 0
        assert rope.properties == {"flammability": 6}

    def test_stack_keeps_condition(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 5, 6)
        ada.inventory.append(Item(name="Cooked fish", quantity=2, condition=80.0, properties={"decay_rate": 0.5}))
        _act(ctx, ada, ActionKind.GIFT)

        fish = bo.find_item("Cooked fish")
        assert (fish.quantity, fish.condition) == (1, 80.0)
        assert fish.properties == {"decay_rate": 0.5}
        assert fish.properties is not ada.find_item("Cooked fish").properties

    def test_full_receiver_changes_nothing(self, tmp_path):
        ctx = make_ctx(tmp_path, inventory_cap=1)
        ada = add_agent(ctx, "Ada", 5, 5)
        bo = add_agent(ctx, "Bo", 5, 6)
        ada.inventory.append(Item(name="berries", quantity=2))
        bo.inventory.append(Item(name="stone"))
        _act(ctx, ada, ActionKind.GIFT)
        assert _count(ada, "berries") == 2
        assert [i.name for i in bo.inventory] == ["stone"]
        assert ada.relationships == {}
        assert ada.energy == 100

    def test_empty_handed(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        add_agent(ctx, "Bo", 5, 6)
        _act(ctx, ada, ActionKind.GIFT)
        assert ctx.bus.count("gift") == 0


# ---------------------------------------------------------------------------
# Explore / craft
# ---------------------------------------------------------------------------

class TestExplore:
    def test_xp_and_visit(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        _act(ctx, ada, ActionKind.EXPLORE)
        assert ada.stats.xp == 3
        assert ada.energy == 99.5
        assert ctx.knowledge.get(ada.id).zone_counts["grass"]["visit"] == 1

    def test_lucky_roll_grants_lore(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        ctx.rng.queue(0.0)
        _act(ctx, ada, ActionKind.EXPLORE)
        assert len(ctx.knowledge.get(ada.id).lore_fragments) == 1


class TestCraft:
    def test_cooks_raw_food(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ctx.cooking = Kitchen(ctx)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.extend([Item(name="berries"), Item(name="herbs")])
        _act(ctx, ada, ActionKind.CRAFT)

        assert len(ada.inventory) == 1
        meal = ada.inventory[0]
        assert meal.name == "Cooked berries with herbs"
        assert meal.quality == "cooked"
        assert ada.stats.xp == 5
        assert ada.energy == 98
        assert ctx.knowledge.knows(ada.id, KnowledgeType.RECIPE, "cook:berries")
        assert ctx.bus.count("cookingSuccess") == 1

    def test_three_ingredients_can_burn(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ctx.cooking = Kitchen(ctx)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.extend([Item(name="berries"), Item(name="herbs"), Item(name="fish")])
        ctx.rng.queue(0.0)
        _act(ctx, ada, ActionKind.CRAFT)
        assert [i.name for i in ada.inventory] == ["Burnt berries"]
        assert ada.inventory[0].quality == "burnt"

    def test_meals_are_not_recooked(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ctx.cooking = Kitchen(ctx)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.extend([
            Item(name="Cooked berries", stackable=False, quality="cooked"),
            Item(name="stone"),
        ])
        _act(ctx, ada, ActionKind.CRAFT)
        assert [i.name for i in ada.inventory] == ["Cooked berries", "stone"]
        assert ctx.bus.count("cookingSuccess") == 0

    def test_needs_two_items(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ctx.cooking = Kitchen(ctx)
        ada = add_agent(ctx, "Ada", 5, 5)
        ada.inventory.append(Item(name="berries"))
        _act(ctx, ada, ActionKind.CRAFT)
        assert _count(ada, "berries") == 1
        assert ada.energy == 100
