"""Entry point: ``python -m oasis``.

Supports two modes:
  - ``python -m oasis``            → Launch the FastAPI server (HTTP + WebSocket)
  - ``python -m oasis cli``        → Headless run of N ticks, then save
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="The Oasis — autonomous agent tile world")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    _add_world_args(srv)

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Run a headless simulation")
    cli.add_argument("--ticks", type=int, default=200)
    _add_world_args(cli)

    return parser


def _add_world_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--world", type=str, default=None, help="World asset JSON; omit for a generated world")
    parser.add_argument("--agents", type=int, default=5, help="Agents to spawn into an empty world")
    parser.add_argument("--data-dir", type=str, default="data")
    parser.add_argument("--tick-ms", type=int, default=500)
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])


def _config_from(args: argparse.Namespace):
    from oasis.config import SimulationConfig

    return SimulationConfig(
        world_seed=args.seed,
        world_file=args.world,
        initial_agents=args.agents,
        data_dir=args.data_dir,
        tick_ms=args.tick_ms,
        log_level=args.log_level,
    )


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from oasis.api.app import create_app

    config = _config_from(args)
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from oasis.engine.context import build_context
    from oasis.engine.world_loop import WorldLoop
    from oasis.utils.logging import setup_logging

    config = _config_from(args)
    setup_logging(config.log_level)

    ctx = build_context(config)
    ctx.load_all()
    if len(ctx.agents) == 0:
        for _ in range(config.initial_agents):
            ctx.spawn_agent()

    loop = WorldLoop(ctx)
    try:
        loop.run(args.ticks)
    except KeyboardInterrupt:
        logger.info("Interrupted at tick %d", ctx.tick)
    finally:
        ctx.persist_all()

    alive = ctx.agents.alive()
    logger.info("Final: tick %d, %d/%d agents alive", ctx.tick, len(alive), len(ctx.agents))
    for agent in alive:
        logger.info(
            "  %-20s lvl %-2d %-10s hp %3.0f energy %3.0f hunger %3.0f  %s",
            agent.name, agent.stats.level, agent.stats.title,
            agent.hp, agent.energy, agent.hunger, agent.zone.value,
        )
    for item in ctx.news.latest(10):
        logger.info("  [news] %s", item.message)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
