"""
Shared fixtures: an in-memory engine standing in for the Docker daemon.
"""
import pytest
from docker.errors import ImageNotFound
from i2d.MODELS.image_history import HistoryRecord, LocalImage


class FakeEngine:
    """Engine double answering image list, history and pull calls from memory."""

    def __init__(self, images=None, histories=None, registry=None):
        self.images = list(images or [])
        self.histories = dict(histories or {})
        # Images a pull makes available, keyed by image name
        self.registry = dict(registry or {})
        self.pulled = []
        self.containers = []
        self.closed = False

    def list_images(self):
        return list(self.images)

    def get_history(self, image_id):
        if image_id not in self.histories:
            raise ImageNotFound(f"No such image: {image_id}")
        return list(self.histories[image_id])

    def pull_image(self, reference, auth=None, out=None):
        self.pulled.append((reference, auth))
        if reference.name not in self.registry:
            raise ImageNotFound(f"pull access denied for {reference.pull_name}")
        self.images.append(self.registry[reference.name])

    def run_container(self, reference, command, auth=None, out=None):
        self.containers.append((reference, command))

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def record(created_by="", tags=None):
    return HistoryRecord(created_by=created_by, tags=tags or [])


@pytest.fixture
def local_build():
    """A locally built 'app:1.0' on top of 'base:1', which sits on 'debian:bookworm'."""
    history = [
        record('/bin/sh -c #(nop)  CMD ["python" "app.py"]', ["app:1.0"]),
        record("/bin/sh -c #(nop)  EXPOSE 8080"),
        record("/bin/sh -c pip install flask && pip cache purge"),
        record("/bin/sh -c #(nop) WORKDIR /app", ["base:1"]),
        record(""),
        record("/bin/sh -c apt-get update && apt-get install -y python3", ["debian:bookworm"]),
        record("/bin/sh -c #(nop) ADD file:1f4a in / "),
    ]
    images = [
        LocalImage(id="sha256:debian", repo_tags=["debian:bookworm"]),
        LocalImage(id="sha256:app", repo_tags=["app:1.0", "myregistry.example.com/base/app:1.0"]),
    ]
    return FakeEngine(images=images, histories={"sha256:app": history})


@pytest.fixture
def fake_engine_cls():
    return FakeEngine


@pytest.fixture
def make_record():
    return record
