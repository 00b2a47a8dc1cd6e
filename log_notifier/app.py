"""Wire configuration, Docker, transport and watcher together."""

import logging
import threading

import docker
import docker.errors

from log_notifier.config import Config
from log_notifier.errors import SetupError
from log_notifier.models import NotificationState
from log_notifier.notifier import Notifier
from log_notifier.retrieval import DockerLogFetcher, resolve_container_id
from log_notifier.stats import PipelineStats
from log_notifier.transport import ConsoleTransport, Transport, WebhookTransport
from log_notifier.watcher import ChangeWatcher

logger = logging.getLogger(__name__)


def docker_client() -> docker.DockerClient:
    try:
        return docker.from_env()
    except docker.errors.DockerException as e:
        raise SetupError(f"Cannot connect to Docker: {e}") from e


def build_transport(config: Config, dry_run: bool = False):
    if dry_run:
        return ConsoleTransport()
    return WebhookTransport(timeout=config.request_timeout,
                            username=config.webhook_username)


def build_watcher(config: Config, client: docker.DockerClient, transport: Transport,
                  shutdown_event: threading.Event | None = None,
                  stats: PipelineStats | None = None) -> ChangeWatcher:
    container_id = resolve_container_id(client, config.container_name)
    logger.info("Resolved container %s -> %s", config.container_name, container_id[:12])

    target = config.watch_target(container_id)
    fetcher = DockerLogFetcher(client, container_id, target.log_file, target.working_dir)
    notifier = Notifier(transport, target.webhook_url, NotificationState(),
                        max_attempts=config.delivery_attempts)
    return ChangeWatcher(target, fetcher, notifier, stats=stats,
                         shutdown_event=shutdown_event)


def run(config: Config, shutdown_event: threading.Event, dry_run: bool = False,
        client: docker.DockerClient | None = None) -> PipelineStats:
    """Block until *shutdown_event* is set. Raises SetupError on startup failure."""
    client = client or docker_client()
    transport = build_transport(config, dry_run)
    try:
        watcher = build_watcher(config, client, transport, shutdown_event)
        with watcher:
            logger.info("Notifier running. Press Ctrl+C to stop.")
            watcher.run()
    finally:
        transport.close()

    stats = watcher.stats.snapshot()
    logger.info("Stats: %d events (%d coalesced), %d sent, %d suppressed, "
                "%d partial, %d fetch errors, %d parse errors, %d delivery errors",
                stats["events"], stats["coalesced"], stats["sent"], stats["suppressed"],
                stats["partial"],
                stats["fetch_errors"], stats["parse_errors"], stats["delivery_errors"])
    return watcher.stats
