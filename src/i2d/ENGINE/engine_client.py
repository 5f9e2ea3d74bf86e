# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Docker engine client used to list images, read layer history and pull images.
Talks to the daemon through the Docker SDK.
"""

import logging
import sys
from typing import Optional, Dict, List
from dataclasses import dataclass

import docker
from docker.errors import DockerException
from docker.types import Mount
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..CONFIG.settings import Settings
from ..MODELS.image_history import HistoryRecord, LocalImage
from ..REGISTRY.image_reference import ImageReference
from ..exceptions import ImagePullError

DOCKER_SOCKET = "/var/run/docker.sock"
PROGRESS_WIDTH = 55


@dataclass
class RegistryAuth:
    """Authentication credentials for a registry."""

    username: Optional[str] = None
    password: Optional[str] = None

    def to_auth_config(self) -> Optional[Dict[str, str]]:
        """
        Get the credentials in the form the Docker SDK encodes into the
        X-Registry-Auth header, or None when no credentials are set.
        """
        if not self.username and not self.password:
            return None
        return {"username": self.username or "", "password": self.password or ""}


class ProgressLine:
    """Renders pull progress as a single line rewritten in place."""

    def __init__(self, out=None):
        self.out = out or sys.stderr
        self.started = False

    def update(self, progress: str) -> None:
        self.out.write(f"\r{' ' * PROGRESS_WIDTH}")
        self.out.write(f"\r{progress}")
        self.out.flush()
        self.started = True

    def finish(self) -> None:
        if self.started:
            self.out.write("\n")
            self.out.flush()


class EngineClient:
    """
    Client for the local Docker engine.
    Every call blocks until the daemon has answered in full.
    """

    def __init__(self, client: docker.DockerClient, logger: Optional[logging.Logger] = None):
        """
        Initialize the engine client.

        Args:
            client: Connected Docker SDK client
            logger: Logger for progress messages. Defaults to the 'i2d' logger
        """
        self.client = client
        self.logger = logger or logging.getLogger("i2d")

    @classmethod
    def connect(
        cls, settings: Settings, logger: Optional[logging.Logger] = None
    ) -> "EngineClient":
        """
        Connect to the daemon and check that it answers.

        Connection failures are retried with exponential backoff, up to
        ``settings.connect_retries`` attempts, then re-raised.

        Args:
            settings: Settings carrying the daemon address and timeouts
            logger: Logger for retry warnings

        Returns:
            A connected EngineClient
        """
        logger = logger or logging.getLogger("i2d")

        def _connect() -> docker.DockerClient:
            if settings.docker_host:
                client = docker.DockerClient(
                    base_url=settings.docker_host, timeout=settings.timeout
                )
            else:
                client = docker.from_env(timeout=settings.timeout)
            try:
                client.ping()
            except DockerException:
                client.close()
                raise
            return client

        retrying = Retrying(
            stop=stop_after_attempt(settings.connect_retries),
            wait=wait_exponential(multiplier=0.5, max=5),
            retry=retry_if_exception_type(DockerException),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        client = retrying(_connect)
        logger.debug("connected to docker daemon at %s", client.api.base_url)
        return cls(client, logger)

    def __enter__(self) -> "EngineClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection to the daemon."""
        self.client.close()

    def list_images(self) -> List[LocalImage]:
        """
        List all images known to the local engine.

        Returns:
            LocalImage models with the tags recorded against each image
        """
        return [LocalImage.from_api(data) for data in self.client.api.images()]

    def get_history(self, image_id: str) -> List[HistoryRecord]:
        """
        Get the layer history of an image.

        Args:
            image_id: Content identifier, layer id or tag of the image

        Returns:
            HistoryRecord models, newest layer first
        """
        return [HistoryRecord.from_api(data) for data in self.client.api.history(image_id)]

    def pull_image(
        self,
        reference: ImageReference,
        auth: Optional[RegistryAuth] = None,
        out=None,
    ) -> None:
        """
        Pull an image from its registry.

        The progress feed is read to completion and rendered on ``out``.

        Args:
            reference: Image to pull
            auth: Registry credentials, if the registry needs them
            out: Stream for the progress line. Defaults to stderr

        Raises:
            ImagePullError: If the daemon reports an error while pulling
        """
        repository, tag = reference.split_tag()
        self.logger.info(
            "pulling docker image '%s' from '%s'", reference.name, reference.pull_name
        )

        auth_config = auth.to_auth_config() if auth else None
        stream = self.client.api.pull(
            repository, tag=tag, stream=True, decode=True, auth_config=auth_config
        )
        progress = ProgressLine(out)
        try:
            for event in stream:
                if "error" in event:
                    raise ImagePullError(
                        f"error occurred when trying to pull image '{reference.pull_name}': "
                        f"{event['error']}"
                    )
                if not event.get("progress"):
                    continue
                progress.update(event["progress"])
        finally:
            stream.close()
            progress.finish()

    def run_container(
        self,
        reference: ImageReference,
        command: List[str],
        auth: Optional[RegistryAuth] = None,
        out=None,
    ) -> None:
        """
        Pull an image, run it with the docker socket mounted and copy its
        output to ``out`` once it exits.

        Args:
            reference: Image to run
            command: Command passed to the container
            auth: Registry credentials for the pull
            out: Stream for the container output. Defaults to stdout
        """
        out = out or sys.stdout
        self.logger.info("pulling image '%s'", reference.name)
        self.pull_image(reference, auth)

        container = self.client.containers.create(
            reference.pull_name,
            command=command,
            tty=True,
            mounts=[Mount(target=DOCKER_SOCKET, source=DOCKER_SOCKET, type="bind")],
        )
        try:
            container.start()
            container.wait()
            logs = container.logs(stdout=True, stderr=False)
            out.write(logs.decode("utf-8", errors="replace"))
            out.flush()
            container.stop()
        finally:
            container.remove(force=True)
