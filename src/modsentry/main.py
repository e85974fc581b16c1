"""
Modsentry
=========

A Discord bot that classifies every message in configured servers with an
AI model and enforces each server's moderation settings, with a live
dashboard fed over WebSocket.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MODSENTRY_HOME environment variable, if set.
    2. If running in a frozen/compiled context, the executable's directory.
    3. Otherwise the repository root (two levels above this package).
    """
    if env_home := os.getenv("MODSENTRY_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from dataclasses import dataclass

import discord
from dotenv import load_dotenv

from modsentry.ai.classification_client import ClassificationClient
from modsentry.audit.audit_log_store import AuditLogStore
from modsentry.configuration.app_configuration import app_config
from modsentry.dashboard.app import create_dashboard_app
from modsentry.dashboard.broadcast_hub import BroadcastHub
from modsentry.dashboard.server import DashboardServer
from modsentry.database.database import Database
from modsentry.listener import events_listener, message_listener
from modsentry.moderation.action_executor import ActionExecutor
from modsentry.moderation.moderation_pipeline import ModerationPipeline
from modsentry.platform.discord_platform import DiscordPlatform
from modsentry.scheduler.unban_scheduler import UnbanScheduler
from modsentry.settings.configuration_store import ConfigurationStore
from modsentry.util.logger import get_logger, handle_exception

logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for reading guild messages and enforcing against members."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


@dataclass
class Runtime:
    """Everything async_main builds, kept together for shutdown."""
    bot: discord.Bot
    database: Database
    unban_scheduler: UnbanScheduler
    pipeline: ModerationPipeline
    dashboard: DashboardServer | None


def build_runtime(database: Database, config_store: ConfigurationStore) -> Runtime:
    """Construct the bot and every moderation component, and register the cogs."""
    bot = discord.Bot(intents=build_intents())
    unban_scheduler = UnbanScheduler(bot, database)
    platform = DiscordPlatform(bot, unban_scheduler)

    ai_settings = app_config.ai_settings
    enforcement = app_config.enforcement
    audit = app_config.audit
    dashboard_settings = app_config.dashboard

    audit_store = AuditLogStore(database, audit.write_attempts, audit.retry_backoff_seconds)
    hub = BroadcastHub(dashboard_settings.send_timeout_seconds)
    pipeline = ModerationPipeline(
        platform=platform,
        config_store=config_store,
        classifier=ClassificationClient.from_settings(ai_settings),
        executor=ActionExecutor(platform, enforcement.action_timeout_seconds, enforcement.ban_history_lookback_seconds),
        audit_store=audit_store,
        hub=hub,
        max_concurrent_classifications=ai_settings.max_concurrent_classifications,
    )

    events_listener.setup(bot, unban_scheduler)
    message_listener.setup(bot, pipeline)
    logger.info("All cogs loaded successfully.")

    dashboard = None
    if dashboard_settings.enabled:
        app = create_dashboard_app(
            config_store,
            audit_store,
            hub,
            platform=platform,
            recent_logs_default_limit=dashboard_settings.recent_logs_default_limit,
        )
        dashboard = DashboardServer(app, dashboard_settings.host, dashboard_settings.port)

    return Runtime(bot, database, unban_scheduler, pipeline, dashboard)


async def start_bot(bot: discord.Bot, token: str) -> None:
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(runtime: Runtime) -> None:
    """Stop intake first, then drain work, then release resources."""
    if not runtime.bot.is_closed():
        await runtime.bot.close()

    await runtime.pipeline.shutdown()

    if runtime.dashboard is not None:
        await runtime.dashboard.stop()

    await runtime.unban_scheduler.shutdown()
    await runtime.database.shutdown()
    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap storage, the bot and the dashboard, returning an exit code."""
    token = load_environment()

    database = Database(app_config.database.path)
    if not await database.initialize():
        logger.critical("Failed to initialize database at %s", database.db_path)
        return 1

    config_store = ConfigurationStore(database)
    try:
        await config_store.async_init()
        runtime = build_runtime(database, config_store)
    except Exception as exc:
        logger.critical("Failed to initialize Modsentry: %s", exc)
        await database.shutdown()
        return 1

    if runtime.dashboard is not None:
        runtime.dashboard.start()

    exit_code = 0
    try:
        await start_bot(runtime.bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(runtime)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    logger.info("Starting Modsentry…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 0 if code is None else 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
