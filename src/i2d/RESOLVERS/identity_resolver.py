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
Resolution between image references, content identifiers and anchor tags.
"""
from typing import List
from ..REGISTRY.image_reference import ImageReference
from ..MODELS.image_history import HistoryRecord
from ..exceptions import ImageNotFoundError, NoAnchorError

class IdentityResolver:
    """
    Maps image references to engine content identifiers and finds the tag
    a reconstructed recipe should be built FROM.

    The engine only needs two calls: ``list_images()`` returning LocalImage
    models and ``get_history(image_id)`` returning HistoryRecord models,
    newest layer first.
    """
    def __init__(self, engine):
        """
        Initializes the resolver.

        :param engine: Engine client used for image listing and history.
        """
        self.engine = engine

    def resolve_by_name(self, reference: ImageReference) -> str:
        """
        Finds the content identifier of the local image tagged as the reference.

        Only local images are considered; pulling is left to the caller.
        If two images carry the same tag the first one listed wins.

        :param reference: The image reference to look up.
        :return: The content identifier of the matching image.
        :raises ImageNotFoundError: If no local image carries a matching tag.
        """
        for image in self.engine.list_images():
            for tag in image.repo_tags:
                if reference.matches(tag):
                    return image.id
        raise ImageNotFoundError(
            f"could not find any local image tagged '{reference.qualified_tag}' "
            f"or '{reference.short_tag}'"
        )

    def anchor_tag_for(self, image_id: str) -> str:
        """
        Finds the tag of the oldest tagged layer in an image's history.

        Locally built images keep a tag at every layer where one was applied,
        and the oldest of them is the most likely base image. Images pulled
        from a registry usually expose no tagged layers at all.

        :param image_id: Content identifier of the image.
        :return: The first tag of the oldest tagged layer, or "" if none.
        """
        history = self.engine.get_history(image_id)
        return oldest_tag(history)

    def require_anchor_tag(self, image_id: str) -> str:
        """
        Like anchor_tag_for, but a missing anchor is an error.

        :raises NoAnchorError: If no layer in the history carries a tag.
        """
        tag = self.anchor_tag_for(image_id)
        if not tag:
            raise NoAnchorError(
                f"no tagged layer found in the history of image '{image_id}'"
            )
        return tag

def oldest_tag(history: List[HistoryRecord]) -> str:
    """
    Returns the first tag of the oldest tagged record of a newest-first history.
    """
    for record in reversed(history):
        if record.tags:
            return record.tags[0]
    return ""
