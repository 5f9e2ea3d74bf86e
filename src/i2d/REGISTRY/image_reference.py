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
Image reference handling.
Pairs a repository prefix such as 'docker.io/library' or
'asia.gcr.io/google-containers' with an image name such as 'ubuntu:focal'.
"""

from typing import Tuple
from dataclasses import dataclass


@dataclass
class ImageReference:
    """
    Image reference made of a repository prefix and a name with optional tag.

    The engine records a tag either fully qualified or in short form:
        - asia.gcr.io/google-containers/ubuntu-slim:0.14 is stored as given
        - docker.io/library/ubuntu:focal is stored as ubuntu:focal, since the
          engine resolves short names against its default namespace
    Both surface forms denote the same image.
    """

    repository: str
    name: str

    DEFAULT_REPOSITORY = "docker.io/library"
    DEFAULT_TAG = "latest"

    def __post_init__(self):
        if not self.name:
            raise ValueError("Empty image name")
        self.repository = self.repository.rstrip("/")

    @property
    def qualified_tag(self) -> str:
        """Get the fully registry-qualified tag, 'repository/name:tag'."""
        if not self.repository:
            return self.name
        return f"{self.repository}/{self.name}"

    @property
    def short_tag(self) -> str:
        """Get the short form tag, the image name alone."""
        return self.name

    def matches(self, tag: str) -> bool:
        """
        Check whether a tag recorded by the engine denotes this reference.

        Args:
            tag: A tag as listed against a local image.

        Returns:
            True if the tag equals the qualified or the short form.
        """
        if not tag:
            return False
        return tag == self.qualified_tag or tag == self.short_tag

    def split_tag(self) -> Tuple[str, str]:
        """
        Split the qualified reference into repository and tag for a pull.

        The tag is whatever follows the last colon, unless that colon belongs
        to a registry port (e.g. 'localhost:5000/app'). Without a tag the
        engine default 'latest' is used.

        Returns:
            Tuple of (repository, tag).
        """
        reference = self.qualified_tag
        if "@" in reference:
            # Digest references keep the digest in place of the tag
            repository, digest = reference.rsplit("@", 1)
            return repository, digest
        last_colon = reference.rfind(":")
        if last_colon != -1:
            after_colon = reference[last_colon + 1 :]
            # A slash after the colon means the colon is a registry port
            if after_colon and "/" not in after_colon:
                return reference[:last_colon], after_colon
        return reference, self.DEFAULT_TAG

    @property
    def pull_name(self) -> str:
        """Get the canonical name to pull from the registry."""
        repository, tag = self.split_tag()
        if ":" in tag:
            return f"{repository}@{tag}"
        return f"{repository}:{tag}"

    def __str__(self) -> str:
        return self.qualified_tag

    def __repr__(self) -> str:
        return f"ImageReference({self.qualified_tag})"
