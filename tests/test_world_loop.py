"""Tests for the tick driver: phase order, fault isolation, broadcast cadence, persistence."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import json
import logging

import pytest

from oasis.engine.world_loop import WorldLoop
from tests.helpers.oasis_world import add_agent, make_ctx


class RecordingBrain:
    """Stands in for AgentBrain: records who was ticked, optionally fails for one name."""

    def __init__(self, log, fail_for=None):
        self.log = log
        self.fail_for = fail_for

    def tick_agent(self, agent):
        if agent.name == self.fail_for:
            raise RuntimeError("boom")
        self.log.append(f"agent:{agent.name}")


class RecordingWeather:
    def __init__(self, log, fail=False):
        self.log = log
        self.fail = fail

    def tick(self):
        if self.fail:
            raise RuntimeError("weather broke")
        self.log.append("weather")

    def current(self):
        return None

    def snapshot(self):
        return {"kind": "clear"}


@pytest.fixture
def observer_loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


class TestTickOrder:
    def test_weather_then_agents_in_insertion_order(self, tmp_path):
        ctx = make_ctx(tmp_path)
        log = []
        ctx.weather = RecordingWeather(log)
        add_agent(ctx, "Ada", 1, 1)
        add_agent(ctx, "Bo", 2, 2)
        add_agent(ctx, "Cy", 3, 3, alive=False)
        loop = WorldLoop(ctx, brain=RecordingBrain(log))

        assert loop.tick_once() is True
        assert ctx.tick == 1
        assert log == ["weather", "agent:Ada", "agent:Bo"]

    def test_real_brain_runs(self, tmp_path):
        ctx = make_ctx(tmp_path)
        ada = add_agent(ctx, "Ada", 5, 5)
        WorldLoop(ctx).run(3)
        assert ctx.tick == 3
        assert ada.hunger > 0
        assert ada.temperature == 22

    def test_max_ticks(self, tmp_path):
        ctx = make_ctx(tmp_path, max_ticks=3)
        loop = WorldLoop(ctx, brain=RecordingBrain([]))
        loop.run(10)
        assert ctx.tick == 3
        assert loop.tick_once() is False


class TestFaultIsolation:
    def test_failing_agent_is_skipped(self, tmp_path, caplog):
        ctx = make_ctx(tmp_path)
        log = []
        ada = add_agent(ctx, "Ada", 1, 1)
        bo = add_agent(ctx, "Bo", 2, 2)
        loop = WorldLoop(ctx, brain=RecordingBrain(log, fail_for="Ada"))

        with caplog.at_level(logging.ERROR, logger="oasis.engine.world_loop"):
            loop.tick_once()

        assert log == ["agent:Bo"]
        # survival ran for Bo only
        assert bo.temperature == 22
        assert ada.temperature == 20
        assert any("Agent Ada" in r.getMessage() for r in caplog.records)

    def test_failing_participant_is_skipped(self, tmp_path, caplog):
        ctx = make_ctx(tmp_path)
        log = []
        ctx.weather = RecordingWeather(log, fail=True)
        add_agent(ctx, "Ada", 1, 1)
        loop = WorldLoop(ctx, brain=RecordingBrain(log))

        with caplog.at_level(logging.ERROR, logger="oasis.engine.world_loop"):
            loop.tick_once()

        assert log == ["agent:Ada"]
        assert any("weather" in r.getMessage() for r in caplog.records)


class TestBroadcast:
    def test_full_snapshot_every_fifth_tick(self, tmp_path):
        ctx = make_ctx(tmp_path)
        add_agent(ctx, "Ada", 1, 1)
        loop = WorldLoop(ctx, brain=RecordingBrain([]))
        loop.run(4)
        assert ctx.bus.count("tick") == 0

        loop.tick_once()
        (snapshot,) = ctx.bus.messages("tick")
        assert snapshot["tick"] == 5
        assert snapshot["gameTime"]["totalMinutes"] == 50
        assert snapshot["agents"][0]["name"] == "Ada"
        assert snapshot["agents"][0]["x"] == 1

    def test_deltas_only_with_observers(self, tmp_path, observer_loop):
        ctx = make_ctx(tmp_path)
        add_agent(ctx, "Ada", 1, 1)
        loop = WorldLoop(ctx, brain=RecordingBrain([]))
        observer = ctx.bus.subscribe(observer_loop)

        loop.tick_once()
        (delta,) = ctx.bus.messages("tick")
        assert "gameTime" not in delta
        assert delta["agents"][0]["tileX"] == 1

        ctx.bus.unsubscribe(observer)
        loop.tick_once()
        assert ctx.bus.count("tick") == 1


class TestPersistence:
    def test_snapshot_written_on_interval(self, tmp_path):
        ctx = make_ctx(tmp_path, persist_interval=2)
        add_agent(ctx, "Ada", 1, 1)
        loop = WorldLoop(ctx, brain=RecordingBrain([]))
        data_dir = tmp_path / "data"

        loop.tick_once()
        assert not (data_dir / "tick.json").exists()

        loop.tick_once()
        assert json.loads((data_dir / "tick.json").read_text()) == {"tick": 2}
        assert "id-ada" in json.loads((data_dir / "agents.json").read_text())
