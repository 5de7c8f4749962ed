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


from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .container import NamedContainer
from .naming import normalize_as_path_prefix
from .provider import Property
from . import jvm


@dataclass(frozen=True)
class CopySource:
    """One entry of a CopySpec. path and into may be callables."""

    path: object
    into: object = "."
    built_by: tuple[str, ...] = ()

    def resolved_path(self) -> Path:
        return Path(self.path() if callable(self.path) else self.path)

    def resolved_into(self) -> str:
        return str(self.into() if callable(self.into) else self.into)


class CopySpec:
    """Describes which files make up the build context of an image."""

    def __init__(self):
        self.__sources: list[CopySource] = []

    def from_(self, path, *, into=".", built_by=()) -> "CopySpec":
        if built_by is None:
            built_by = ()
        elif isinstance(built_by, str):
            built_by = (built_by,)
        self.__sources.append(
            CopySource(
                path=path if callable(path) else Path(path),
                into=into,
                built_by=tuple(built_by),
            )
        )
        return self

    @property
    def sources(self) -> tuple[CopySource, ...]:
        return tuple(self.__sources)

    @property
    def built_by(self) -> tuple[str, ...]:
        """Names of tasks producing any of the sources."""
        names = []
        for source in self.__sources:
            for name in source.built_by:
                if name not in names:
                    names.append(name)
        return tuple(names)

    def __bool__(self):
        return bool(self.__sources)


class DockerImage:
    """An image declared for building.

    Every attribute is a Property, so it can be given a value (or a
    callable producing one) at any time before the tasks reading it run.
    """

    def __init__(self, name: str, project):
        self.__name = name
        self.project = project
        self.image_name = Property(f"{name}.image_name", convention=lambda: project.name)
        self.image_version = Property(
            f"{name}.image_version", convention=lambda: project.version
        )
        self.is_latest_tag = Property(f"{name}.is_latest_tag", convention=True)
        self.build_args = Property(f"{name}.build_args", convention=dict)
        self.platforms = Property(f"{name}.platforms", convention=list)
        self.files = CopySpec()

    @property
    def name(self) -> str:
        return self.__name

    def __str__(self):
        yaml_dict = {}
        yaml_dict["image_name"] = self.image_name.get()
        yaml_dict["image_version"] = str(self.image_version.get())
        yaml_dict["latest"] = self.is_latest_tag.get()
        if self.build_args.get():
            yaml_dict["build_args"] = dict(self.build_args.get())
        if self.platforms.get():
            yaml_dict["platforms"] = list(self.platforms.get())
        if self.files:
            yaml_dict["files"] = [
                {"from": str(s.resolved_path()), "into": s.resolved_into()}
                for s in self.files.sources
            ]
        return yaml.dump({self.name: yaml_dict}, width=float("inf"))

    def __repr__(self):
        return f"<DockerImage:{self.name}>"


class DockerRegistry:
    """A destination images get pushed to."""

    def __init__(self, registry_name: str):
        self.__registry_name = registry_name
        self.__image_tag_prefix = Property(f"{registry_name}.image_tag_prefix")

    @property
    def registry_name(self) -> str:
        return self.__registry_name

    @property
    def name(self) -> str:
        return self.__registry_name

    @property
    def image_tag_prefix(self) -> Property:
        return self.__image_tag_prefix

    def prefix(self) -> str:
        """Return the tag prefix, always ending in a single '/'."""
        return normalize_as_path_prefix(str(self.__image_tag_prefix.get()))

    def __str__(self):
        return yaml.dump(
            {self.registry_name: {"image_tag_prefix": self.prefix()}},
            width=float("inf"),
        )

    def __repr__(self):
        return f"<DockerRegistry:{self.registry_name}>"


class DockerExtension:
    """Holds the images and registries declared for a project."""

    def __init__(self, project):
        self.project = project
        self.images: NamedContainer[DockerImage] = NamedContainer(
            lambda name: DockerImage(name, project), kind="image"
        )
        self.registries: NamedContainer[DockerRegistry] = NamedContainer(
            DockerRegistry, kind="registry"
        )

    def github_container_registry(
        self, owner: str, name: str = "githubContainerRegistry"
    ) -> DockerRegistry:
        def configure(registry):
            registry.image_tag_prefix.set(f"ghcr.io/{owner}")

        return self.registries.get_or_register(name, configure)

    def docker_hub(self, username: str, name: str = "dockerHub") -> DockerRegistry:
        def configure(registry):
            registry.image_tag_prefix.set(f"docker.io/{username}")

        return self.registries.get_or_register(name, configure)

    def configure_jvm_application(
        self,
        image: DockerImage,
        install_task: str = "installDist",
        *,
        app_name: Optional[str] = None,
        base_image_name: Optional[str] = None,
        base_image_tag: Optional[str] = None,
        additional_config: Optional[str] = None,
    ):
        return jvm.configure_jvm_application(
            self.project,
            image,
            install_task,
            app_name=app_name,
            base_image_name=base_image_name,
            base_image_tag=base_image_tag,
            additional_config=additional_config,
        )
