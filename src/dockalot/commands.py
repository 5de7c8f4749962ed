# Copyright 2024 Shane Loretz.
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


"""Argument lists handed to the docker CLI.

The order of the arguments is stable; tools downstream parse and snapshot
these command lines.
"""

from pathlib import Path
from typing import Iterable

from .model import DockerImage, DockerRegistry


DOCKER = "docker"
LATEST = "latest"


def _tags(image: DockerImage, prefix: str = "") -> list[str]:
    name = f"{prefix}{image.image_name.get()}"
    tags = [f"{name}:{image.image_version.get()}"]
    if image.is_latest_tag.get():
        tags.append(f"{name}:{LATEST}")
    return tags


def _build_arg_args(image: DockerImage) -> list[str]:
    args = []
    for arg_name, arg_value in image.build_args.get().items():
        args.append("--build-arg")
        args.append(f"{arg_name}={arg_value}")
    return args


def build_args(
    image: DockerImage, registries: Iterable[DockerRegistry], context: Path
) -> list[str]:
    """Arguments for a single platform `docker build`.

    The image is tagged locally and once more for every registry so the
    push tasks only have to push.
    """
    tags = _tags(image)
    for registry in registries:
        tags.extend(_tags(image, registry.prefix()))

    args = ["build"]
    args.extend(_build_arg_args(image))
    for tag in tags:
        args.append("-t")
        args.append(tag)
    args.append(str(context))
    return args


def _buildx_args(image: DockerImage, context: Path, tags: list[str], mode: str):
    args = ["buildx", "build"]
    platforms = list(image.platforms.get())
    if platforms:
        args.append("--platform")
        args.append(",".join(platforms))
    args.extend(_build_arg_args(image))
    for tag in tags:
        args.append("--tag")
        args.append(tag)
    args.append(mode)
    args.append(str(context))
    return args


def buildx_load_args(image: DockerImage, context: Path) -> list[str]:
    return _buildx_args(image, context, _tags(image), "--load")


def buildx_push_args(
    image: DockerImage, registry: DockerRegistry, context: Path
) -> list[str]:
    return _buildx_args(image, context, _tags(image, registry.prefix()), "--push")


def push_args(image: DockerImage, registry: DockerRegistry) -> list[str]:
    return [
        "push",
        f"{registry.prefix()}{image.image_name.get()}:{image.image_version.get()}",
    ]


def push_latest_args(image: DockerImage, registry: DockerRegistry) -> list[str]:
    return ["push", f"{registry.prefix()}{image.image_name.get()}:{LATEST}"]


def run_args(image: DockerImage) -> list[str]:
    return ["run", "--rm", f"{image.image_name.get()}:{image.image_version.get()}"]


def create_builder_args() -> list[str]:
    return ["buildx", "create", "--use"]
