"""Tests for knowledge transfer, mastery decay, zone secrets and the library."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from oasis.core.enums import KnowledgeSource, KnowledgeType, Zone
from oasis.core.errors import Conflict, InvalidInput, NotFound
from oasis.core.knowledge import ZONE_SECRETS, degrade
from oasis.core.models import Item
from tests.helpers.oasis_world import add_agent, make_ctx


def _trio(tmp_path, rows=None):
    ctx = make_ctx(tmp_path, rows)
    ada = add_agent(ctx, "Ada", 1, 1)
    bo = add_agent(ctx, "Bo", 1, 2)
    cy = add_agent(ctx, "Cy", 2, 1)
    return ctx, ada, bo, cy


class TestDegrade:
    def test_truncates_to_three_decimals(self):
        assert degrade(1.0, 0.8) == 0.8
        assert degrade(0.8, 0.8) == 0.64
        assert degrade(0.64, 0.8) == 0.512
        assert degrade(0.512, 0.8) == 0.409
        assert degrade(1.0, 0.3) == 0.3


# ---------------------------------------------------------------------------
# Teaching
# ---------------------------------------------------------------------------

class TestTeach:
    def test_chain_degrades_and_counts_generations(self, tmp_path):
        ctx, ada, bo, cy = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)

        first = ctx.knowledge.teach(ada, bo.id, "lore", fragment)
        assert first["mastery"] == 0.8
        assert first["generation"] == 1

        second = ctx.knowledge.teach(bo, cy.id, "lore", fragment)
        assert second["mastery"] == 0.64
        assert second["generation"] == 2

        row = ctx.knowledge.mastery_row(cy.id, KnowledgeType.LORE, fragment)
        assert row.source is KnowledgeSource.TAUGHT

    def test_energy_and_xp(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.teach(ada, bo.id, KnowledgeType.LORE, fragment)
        assert ada.energy == 85
        assert bo.energy == 90
        assert ada.stats.xp == 15
        assert bo.stats.xp == 10
        assert ctx.bus.count("knowledgeShared") == 1

    def test_lore_key_defaults_to_first_unknown(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        result = ctx.knowledge.teach(ada, bo.id, "lore", None)
        assert result["ok"]
        assert ctx.knowledge.knows(bo.id, KnowledgeType.LORE, fragment)

    def test_cannot_teach_yourself(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        with pytest.raises(Conflict, match="Cannot teach yourself"):
            ctx.knowledge.teach(ada, ada.id, "lore", "anything")

    def test_unknown_student(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        with pytest.raises(NotFound):
            ctx.knowledge.teach(ada, "ghost", "lore", "anything")

    def test_bad_type(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        with pytest.raises(InvalidInput):
            ctx.knowledge.teach(ada, bo.id, "gossip", "x")

    def test_must_share_zone(self, tmp_path):
        ctx = make_ctx(tmp_path, ["gf", "gf"])
        ada = add_agent(ctx, "Ada", 0, 0)
        bo = add_agent(ctx, "Bo", 1, 0)
        fragment = ctx.knowledge.grant_random_lore(ada)
        with pytest.raises(Conflict, match="same zone"):
            ctx.knowledge.teach(ada, bo.id, "lore", fragment)

    def test_cooldown(self, tmp_path):
        ctx, ada, bo, cy = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.teach(ada, bo.id, "lore", fragment)
        with pytest.raises(Conflict, match="cooldown"):
            ctx.knowledge.teach(ada, cy.id, "lore", fragment)

        ctx.tick += ctx.config.teach_cooldown_ticks
        assert ctx.knowledge.teach(ada, cy.id, "lore", fragment)["ok"]

    def test_failure_changes_nothing(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        bo.energy = 5
        with pytest.raises(Conflict):
            ctx.knowledge.teach(ada, bo.id, "lore", fragment)
        assert ada.energy == 100
        assert not ctx.knowledge.knows(bo.id, KnowledgeType.LORE, fragment)

    def test_already_known(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.grant_random_lore(bo)
        assert ctx.knowledge.knows(bo.id, KnowledgeType.LORE, fragment)
        with pytest.raises(Conflict, match="already know"):
            ctx.knowledge.teach(ada, bo.id, "lore", fragment)


# ---------------------------------------------------------------------------
# Scrolls
# ---------------------------------------------------------------------------

class TestScrolls:
    def _supplies(self, agent):
        agent.inventory.append(Item(name="Ancient Scroll"))
        agent.inventory.append(Item(name="Ink Vial"))

    def test_inscribe_then_read(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        self._supplies(ada)

        result = ctx.knowledge.inscribe(ada, "lore", fragment)
        assert result["mastery"] == 0.7
        assert result["generation"] == 1
        assert ada.energy == 88
        assert [i.name for i in ada.inventory] == ["Inscribed Scroll"]

        scroll = ada.inventory.pop()
        bo.inventory.append(scroll)
        read = ctx.knowledge.read_scroll(bo, scroll.id)
        assert read["mastery"] == 0.7
        assert read["generation"] == 2
        assert bo.inventory == []
        row = ctx.knowledge.mastery_row(bo.id, KnowledgeType.LORE, fragment)
        assert row.source is KnowledgeSource.SCROLL

    def test_inscribe_needs_supplies(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        with pytest.raises(Conflict, match="Ancient Scroll"):
            ctx.knowledge.inscribe(ada, "lore", fragment)

    def test_inscribe_unknown_knowledge(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        self._supplies(ada)
        with pytest.raises(Conflict):
            ctx.knowledge.inscribe(ada, "lore", "never heard of it")
        assert len(ada.inventory) == 2

    def test_reading_known_scroll_preserves_it(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        self._supplies(ada)
        scroll_id = ctx.knowledge.inscribe(ada, "lore", fragment)["scroll"]["id"]
        result = ctx.knowledge.read_scroll(ada, scroll_id)
        assert result["already_known"]
        assert ada.find_item_by_id(scroll_id) is not None

    def test_missing_scroll(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        with pytest.raises(NotFound):
            ctx.knowledge.read_scroll(ada, "item_nope")

    def test_water_damage_destroys_weak_scroll(self, tmp_path):
        ctx = make_ctx(tmp_path, ["ggo", "ggg"])
        ada = add_agent(ctx, "Ada", 1, 0)
        assert ada.zone is Zone.COAST
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.set_mastery(ada.id, KnowledgeType.LORE, fragment, 0.1)
        ada.inventory.append(Item(
            name="Inscribed Scroll", id="s1", stackable=False,
            scroll_data={"knowledge_type": "lore", "knowledge_key": fragment, "mastery": 0.7},
        ))

        ctx.rng.queue(0.0)
        assert ctx.knowledge.tick_scroll_damage(ada) == ["s1"]
        assert ada.inventory == []
        assert not ctx.knowledge.knows(ada.id, KnowledgeType.LORE, fragment)

    def test_water_damage_keeps_scroll_above_zero(self, tmp_path):
        ctx = make_ctx(tmp_path, ["ggo", "ggg"])
        ada = add_agent(ctx, "Ada", 1, 0)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.set_mastery(ada.id, KnowledgeType.LORE, fragment, 0.15)
        scroll = Item(
            name="Inscribed Scroll", id="s1", stackable=False,
            scroll_data={"knowledge_type": "lore", "knowledge_key": fragment, "mastery": 0.7},
        )
        ada.inventory.append(scroll)

        ctx.rng.queue(0.0)
        assert ctx.knowledge.tick_scroll_damage(ada) == []
        assert ada.inventory == [scroll]
        # the weakened row is left for decay to forget
        assert ctx.knowledge.mastery(ada.id, KnowledgeType.LORE, fragment) == 0.05
        assert ctx.knowledge.knows(ada.id, KnowledgeType.LORE, fragment)

    def test_dry_zone_is_safe(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        ada.inventory.append(Item(
            name="Inscribed Scroll", id="s1", stackable=False,
            scroll_data={"knowledge_type": "lore", "knowledge_key": "x"},
        ))
        ctx.rng.queue(0.0)
        assert ctx.knowledge.tick_scroll_damage(ada) == []
        assert len(ada.inventory) == 1


# ---------------------------------------------------------------------------
# Observation
# ---------------------------------------------------------------------------

class TestObservation:
    def test_bystander_learns_at_reduced_mastery(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        ctx.knowledge.learn_recipe(ada.id, "cook:berries")
        ctx.rng.queue(0.0, 0.99)
        seen = ctx.knowledge.on_observable_action(ada, KnowledgeType.RECIPE, "cook:berries")
        assert [o["name"] for o in seen] == ["Bo"]
        assert ctx.knowledge.mastery(bo.id, KnowledgeType.RECIPE, "cook:berries") == 0.3

    def test_failed_roll_learns_nothing(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path)
        ctx.knowledge.learn_recipe(ada.id, "cook:berries")
        assert ctx.knowledge.on_observable_action(ada, KnowledgeType.RECIPE, "cook:berries") == []
        assert not ctx.knowledge.knows(bo.id, KnowledgeType.RECIPE, "cook:berries")


# ---------------------------------------------------------------------------
# Decay
# ---------------------------------------------------------------------------

class TestDecay:
    def _grace_ticks(self, ctx):
        return ctx.config.knowledge_grace_days * ctx.config.ticks_per_game_day

    def test_no_decay_inside_grace(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.tick = self._grace_ticks(ctx)
        assert ctx.knowledge.tick_decay() == 0
        assert ctx.knowledge.mastery(ada.id, KnowledgeType.LORE, fragment) == 1.0

    def test_decay_scales_with_generation(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.set_mastery(ada.id, KnowledgeType.LORE, fragment, 0.5, generation=2)
        ctx.tick = self._grace_ticks(ctx) + 1
        ctx.knowledge.tick_decay()
        assert ctx.knowledge.mastery(ada.id, KnowledgeType.LORE, fragment) == 0.468

    def test_forgetting_removes_the_entry(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        fragment = ctx.knowledge.grant_random_lore(ada)
        ctx.knowledge.set_mastery(ada.id, KnowledgeType.LORE, fragment, 0.11)
        ctx.tick = self._grace_ticks(ctx) + 1
        assert ctx.knowledge.tick_decay() == 1
        assert not ctx.knowledge.knows(ada.id, KnowledgeType.LORE, fragment)
        assert ctx.knowledge.mastery_row(ada.id, KnowledgeType.LORE, fragment) is None
        assert ctx.bus.count("knowledgeForgotten") == 1

    def test_practice_resets_the_clock(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        ctx.knowledge.learn_recipe(ada.id, "cook:berries")
        ctx.tick = self._grace_ticks(ctx)
        ctx.knowledge.learn_recipe(ada.id, "cook:berries")
        ctx.tick += 10
        ctx.knowledge.tick_decay()
        assert ctx.knowledge.mastery(ada.id, KnowledgeType.RECIPE, "cook:berries") == 1.0


# ---------------------------------------------------------------------------
# Zone secrets
# ---------------------------------------------------------------------------

class TestZoneSecrets:
    def test_revealed_on_exact_threshold(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        revealed = [ctx.knowledge.track_zone_action(ada, Zone.GRASS, "gather") for _ in range(15)]
        assert revealed[3] == []
        assert revealed[4] == [ZONE_SECRETS[Zone.GRASS][0].text]
        assert revealed[14] == [ZONE_SECRETS[Zone.GRASS][1].text]
        assert sum(len(r) for r in revealed) == 2
        assert ctx.bus.count("secretDiscovered") == 2

    def test_wrong_action_reveals_nothing(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        for _ in range(5):
            assert ctx.knowledge.track_zone_action(ada, Zone.FOREST, "gather") == []
        assert ctx.knowledge.track_zone_action(ada, Zone.FOREST, "visit") == []


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

class TestLibrary:
    def test_write_and_read(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path, ["fff"] * 4)
        result = ctx.knowledge.write_book(ada, "Field Notes", "recipe", "cook:berries")
        book_id = result["book"]["id"]
        assert ada.energy == 80
        assert len(ctx.knowledge.books) == 1

        read = ctx.knowledge.read_book(bo, book_id)
        assert read["learned"] is True
        assert ctx.knowledge.knows(bo.id, KnowledgeType.RECIPE, "cook:berries")
        assert ctx.knowledge.read_book(bo, book_id)["learned"] is False

    def test_zone_secret_book(self, tmp_path):
        ctx, ada, bo, _ = _trio(tmp_path, ["fff"] * 4)
        book_id = ctx.knowledge.write_book(ada, "Shore", "zone_secret", "coast: the tide turns twice")["book"]["id"]
        ctx.knowledge.read_book(bo, book_id)
        assert ctx.knowledge.knows(bo.id, KnowledgeType.ZONE_SECRET, "coast:the tide turns twice")

    def test_library_is_in_the_forest(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path)
        with pytest.raises(Conflict, match="forest"):
            ctx.knowledge.write_book(ada, "Notes", "lore", "hello")

    def test_validation(self, tmp_path):
        ctx, ada, _, _ = _trio(tmp_path, ["fff"] * 4)
        with pytest.raises(InvalidInput):
            ctx.knowledge.write_book(ada, "x" * 61, "lore", "hello")
        with pytest.raises(InvalidInput):
            ctx.knowledge.write_book(ada, "Notes", "poetry", "hello")
        with pytest.raises(NotFound):
            ctx.knowledge.read_book(ada, "book_missing")
        assert ada.energy == 100
