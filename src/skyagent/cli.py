"""CLI entry point for skyagent."""

from __future__ import annotations

import asyncio
import logging
import os

import typer

from skyagent.bootstrap import ServicePipeline, build_pipeline
from skyagent.config import SkyAgentConfig
from skyagent.session.wire import EventType, Wire

app = typer.Typer(
    name="skyagent",
    help="AI customer-service agent for the Sky food-delivery platform.",
    no_args_is_help=True,
)

EXIT_WORDS = {"exit", "quit", "退出"}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config(config_file: str | None, model: str | None) -> SkyAgentConfig:
    config = SkyAgentConfig.load(config_file)
    if model:
        config.llm.model = model
    return config


def _show_api_key_status(config: SkyAgentConfig) -> None:
    """Print which API key is active so the user can verify the right one is loaded."""
    provider_prefix = config.llm.model.split("/")[0] if "/" in config.llm.model else ""
    key_env_map = {
        "anthropic": "ANTHROPIC_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "openai": "OPENAI_API_KEY",
    }
    env_var = key_env_map.get(provider_prefix, "")
    if not env_var:
        typer.echo(f"Provider: {provider_prefix or 'unknown'} (check API key manually)")
        return

    key = os.environ.get(env_var, "")
    if key:
        masked = f"{key[:8]}...{key[-4:]}" if len(key) > 12 else "***"
        typer.echo(f"API key: {env_var} = {masked}")
    else:
        typer.echo(f"WARNING: {env_var} is not set! Set it in .env or your shell.", err=True)


async def _consume_wire(wire: Wire) -> None:
    """Print runtime events as they happen."""
    queue = wire.subscribe()
    while True:
        event = await queue.get()
        if event is None:
            break

        d = event.data
        if event.type == EventType.STEP_BEGIN:
            print(f"\n[Step {d.get('step', 0)}/{d.get('max_steps', 0)}]", flush=True)
        elif event.type == EventType.THINKING:
            first_line = (d.get("text") or "").strip().split("\n")[0]
            print(f"[thinking] {first_line}", flush=True)
        elif event.type == EventType.TOOL_CALL:
            print(f"> {d.get('name')}({d.get('params', '')})", flush=True)
        elif event.type == EventType.TOOL_RESULT:
            status = "ok" if d.get("success") else "failed"
            first_line = (d.get("content") or "").strip().split("\n")[0]
            print(f"< {d.get('name')} [{status}, {d.get('elapsed_ms', 0)}ms]: {first_line}", flush=True)
        elif event.type == EventType.STATUS:
            print(f"[status] {d.get('message', '')}", flush=True)
        elif event.type == EventType.ERROR:
            print(f"\nERROR: {d.get('error', '')}", flush=True)
        elif event.type == EventType.TURN_END:
            print(f"--- {d.get('outcome')} after {d.get('steps', 0)} steps ---", flush=True)
    wire.unsubscribe(queue)


async def _chat_loop(pipeline: ServicePipeline, user: str, show_events: bool) -> None:
    consumer_task = asyncio.create_task(_consume_wire(pipeline.wire)) if show_events else None

    while True:
        try:
            line = await asyncio.to_thread(input, "你: ")
        except (EOFError, KeyboardInterrupt):
            break
        if line.strip().lower() in EXIT_WORDS:
            break
        if line.strip() == "/status":
            print(pipeline.service.agent_status(user))
            continue
        if line.strip() == "/reset":
            pipeline.service.reset_agent(user)
            print("已重置会话")
            continue

        reply = await pipeline.service.handle_message(line, user)
        print(f"小苍: {reply}", flush=True)

    if pipeline.wire is not None:
        pipeline.wire.close()
    if consumer_task is not None:
        await consumer_task
    pipeline.service.end_conversation(user)


@app.command()
def ask(
    message: str = typer.Argument(help="The customer's message."),
    user: str = typer.Option("cli-user", "--user", "-u", help="Conversation / user id."),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="LLM model to use (default: from env/config).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Send one message and print the reply."""
    setup_logging(verbose)
    config = _load_config(config_file, model)
    pipeline = build_pipeline(config)

    reply = asyncio.run(pipeline.service.handle_message(message, user))
    typer.echo(reply)


@app.command()
def chat(
    user: str = typer.Option("cli-user", "--user", "-u", help="Conversation / user id."),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="LLM model to use (default: from env/config).",
    ),
    events: bool = typer.Option(
        True, "--events/--no-events", help="Show steps and tool calls as they happen."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Interactive conversation with the agent. Type 'exit' to leave."""
    setup_logging(verbose)
    config = _load_config(config_file, model)

    typer.echo("skyagent v0.1.0")
    typer.echo(f"Model: {config.llm.model}")
    if config.llm.api_base:
        typer.echo(f"API base: {config.llm.api_base}")
    _show_api_key_status(config)
    typer.echo("Commands: /status, /reset, exit")
    typer.echo("---")

    pipeline = build_pipeline(config, wire=Wire() if events else None)
    asyncio.run(_chat_loop(pipeline, user, events))


@app.command()
def tools(
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """List the registered tools."""
    setup_logging(False)
    pipeline = build_pipeline(_load_config(config_file, None))

    for tool in pipeline.tool_registry.list_tools():
        typer.echo(f"{tool.name} [{tool.type}]")
        typer.echo(f"  {tool.description}")
        if tool.parameter_help:
            typer.echo(f"  参数: {tool.parameter_help}")
    typer.echo("---")
    typer.echo(pipeline.service.tool_stats())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
