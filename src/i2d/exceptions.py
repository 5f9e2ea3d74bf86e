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
Exceptions raised while resolving images and reconstructing recipes.

Failures coming from the Docker daemon itself are not wrapped: they surface
as ``docker.errors.DockerException`` subclasses, re-exported here as
``UpstreamError`` so callers can catch them next to the i2d errors.
"""

from docker.errors import DockerException as UpstreamError


class I2DError(Exception):
    """Base exception for all i2d errors."""

    pass


class ImageNotFoundError(I2DError):
    """Raised when no local image carries a tag matching the reference."""

    pass


class NoAnchorError(I2DError):
    """Raised when an image history holds no tagged layer to build FROM."""

    pass


class ImagePullError(I2DError):
    """Raised when the daemon reports an error event while pulling."""

    pass


__all__ = [
    "I2DError",
    "ImageNotFoundError",
    "NoAnchorError",
    "ImagePullError",
    "UpstreamError",
]
