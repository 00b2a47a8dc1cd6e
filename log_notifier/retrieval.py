"""Retrieve the access log from inside a running container via the Docker API."""

import logging

import docker
import docker.errors

from log_notifier.errors import ContainerNotFoundError, FetchError, SetupError

logger = logging.getLogger(__name__)


def resolve_container_id(client: docker.DockerClient, name: str) -> str:
    """Return the id of the running container called *name*.

    Accepts the name with or without its leading slash, or an id prefix.
    """
    wanted = name.lstrip("/")
    try:
        containers = client.containers.list()
    except docker.errors.DockerException as e:
        raise SetupError(f"Cannot list containers: {e}") from e

    for container in containers:
        if container.name == wanted:
            return container.id
    for container in containers:
        if wanted and container.id.startswith(wanted):
            return container.id
    raise ContainerNotFoundError(f"Container with name {name} not found")


class DockerLogFetcher:
    """Runs ``cat <log_file>`` inside the container and returns stdout."""

    def __init__(self, client: docker.DockerClient, container_id: str,
                 log_file: str = "access.log", working_dir: str = "/var/log/caddy/"):
        self._client = client
        self._container_id = container_id
        self._log_file = log_file
        self._working_dir = working_dir

    def fetch_content(self) -> str:
        try:
            container = self._client.containers.get(self._container_id)
            result = container.exec_run(
                ["cat", self._log_file],
                workdir=self._working_dir,
                stdout=True,
                stderr=True,
            )
        except docker.errors.DockerException as e:
            raise FetchError(f"Exec in {self._container_id[:12]} failed: {e}") from e

        if result.exit_code != 0:
            raise FetchError(
                f"Command execution failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
            )
        output = result.output or b""
        logger.debug("Fetched %d bytes from %s", len(output), self._container_id[:12])
        return output.decode("utf-8", errors="replace")

    def __call__(self) -> str:
        return self.fetch_content()
