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
Orchestration of a reconstruction: image lookup, optional pull, anchor
discovery and recipe rendering.
"""
import logging
from typing import Optional
from ..REGISTRY.image_reference import ImageReference
from ..RESOLVERS.identity_resolver import IdentityResolver
from ..BUILDERS.recipe_builder import RecipeBuilder
from ..exceptions import ImageNotFoundError

# Public on docker.io, draws the layer tree of every local image
LAYER_TREE_IMAGE = ImageReference("docker.io", "nate/dockviz:latest")
LAYER_TREE_COMMAND = ["images", "-t"]

class ReconstructionOrchestrator:
    """
    Drives the reconstruction of a Dockerfile for one image.
    """
    def __init__(self, engine, repository: str = ImageReference.DEFAULT_REPOSITORY,
                 auth=None, logger: Optional[logging.Logger] = None):
        """
        Initializes the orchestrator.

        :param engine: Engine client used for listing, history and pulls.
        :param repository: Repository prefix image names are qualified with.
        :param auth: Registry credentials used when an image must be pulled.
        :param logger: Logger for progress messages.
        """
        self.engine = engine
        self.repository = repository
        self.auth = auth
        self.logger = logger or logging.getLogger("i2d")
        self.resolver = IdentityResolver(engine)
        self.builder = RecipeBuilder(engine)

    def image_id_for_name(self, image_name: str) -> str:
        """
        Resolves an image name to a content identifier, pulling the image
        when no local image carries the name.

        :param image_name: Image name with optional tag, e.g. 'ubuntu:focal'.
        :return: The content identifier of the image.
        """
        reference = ImageReference(self.repository, image_name)
        try:
            return self.resolver.resolve_by_name(reference)
        except ImageNotFoundError as e:
            self.logger.warning(str(e))

        self.logger.debug("the image could not be found in local disk")
        self.engine.pull_image(reference, self.auth)
        return self.resolver.resolve_by_name(reference)

    def reconstruct(self, image_id: str) -> str:
        """
        Reconstructs the Dockerfile of an image.

        :param image_id: Content identifier or layer id of the image.
        :return: The recipe text.
        :raises NoAnchorError: If the history holds no tagged layer.
        """
        base = self.resolver.require_anchor_tag(image_id)
        self.logger.debug("using '%s' as base image of '%s'", base, image_id)
        return self.builder.build(image_id, base)

    def run(self, image_name: Optional[str] = None, image_id: Optional[str] = None) -> str:
        """
        Reconstructs the Dockerfile of an image given by name or by id.
        A name takes precedence when both are given.

        :return: The recipe text.
        """
        if not image_name and not image_id:
            raise ValueError("either image name or image id should be provided")
        if image_name:
            image_id = self.image_id_for_name(image_name)
        return self.reconstruct(image_id)

    def show_layer_tree(self, out=None):
        """
        Prints the layer tree of all local images using a helper container.
        """
        self.logger.info("printing all local images layer tree")
        self.engine.run_container(LAYER_TREE_IMAGE, LAYER_TREE_COMMAND, out=out)
