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


import collections.abc
from io import StringIO
from pathlib import Path
from typing import Optional

import yaml

from .model import DockerExtension, DockerImage
from .plugin import EXTENSION_NAME
from .project import Project


IMAGE_KEYS = frozenset(
    ["image_name", "image_version", "latest", "build_args", "platforms", "files", "jvm"]
)
JVM_KEYS = frozenset(
    ["app_name", "install_task", "base_image_name", "base_image_tag", "additional_config"]
)
REGISTRY_KEYS = frozenset(["image_tag_prefix", "github", "docker_hub"])
TOP_LEVEL_KEYS = frozenset(["project", "plugins", "application", "images", "registries"])


class ParseError(RuntimeError):

    def __init__(self, msg):
        super().__init__(msg)


def _expect_mapping(value, where):
    if value is None:
        return {}
    if not isinstance(value, collections.abc.Mapping):
        raise ParseError(f"{where} must be a dictionary")
    return value


def _expect_list(value, where):
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, collections.abc.Sequence):
        raise ParseError(f"{where} must be a list")
    return list(value)


def _check_keys(mapping, allowed, where):
    unknown = sorted(set(mapping.keys()) - allowed)
    if unknown:
        raise ParseError(f"{where} has unknown keys {unknown}, allowed: {sorted(allowed)}")


class Config:
    """A parsed project file declaring images and registries."""

    def __init__(
        self,
        *,
        name: str,
        version: str = "unspecified",
        build_dir: Optional[str] = None,
        plugins=(),
        application=None,
        images=None,
        registries=None,
    ):
        self.name = name
        self.version = version
        self.build_dir = build_dir
        self.plugins = tuple(plugins)
        self.application = dict(application or {})
        self.images = dict(images or {})
        self.registries = dict(registries or {})

    @classmethod
    def parse_string(cls, string):
        """Parse a config from a string."""
        with StringIO(string) as stream:
            return cls.parse_stream(stream)

    @classmethod
    def parse_stream(cls, stream):
        """Parse a project file describing images and registries."""
        yaml_dict = _expect_mapping(yaml.safe_load(stream), "Project file")
        _check_keys(yaml_dict, TOP_LEVEL_KEYS, "Project file")

        project = _expect_mapping(yaml_dict.get("project"), "project")
        _check_keys(project, frozenset(["name", "version", "build_dir"]), "project")
        if "name" not in project:
            raise ParseError("project must have a name")

        plugins = [str(p) for p in _expect_list(yaml_dict.get("plugins"), "plugins")]
        application = _expect_mapping(yaml_dict.get("application"), "application")
        _check_keys(application, frozenset(["name", "install_command"]), "application")
        _expect_list(application.get("install_command"), "application install_command")
        if application and "application" not in plugins:
            plugins.append("application")

        images = {}
        for key, item in _expect_mapping(yaml_dict.get("images"), "images").items():
            item = _expect_mapping(item, f"Image '{key}'")
            _check_keys(item, IMAGE_KEYS, f"Image '{key}'")
            _expect_mapping(item.get("build_args"), f"Image '{key}' build_args")
            _expect_list(item.get("platforms"), f"Image '{key}' platforms")
            for entry in _expect_list(item.get("files"), f"Image '{key}' files"):
                entry = _expect_mapping(entry, f"Image '{key}' files entry")
                _check_keys(
                    entry, frozenset(["from", "into"]), f"Image '{key}' files entry"
                )
                if "from" not in entry:
                    raise ParseError(f"Image '{key}' files entry is missing from:")
            if "latest" in item and not isinstance(item["latest"], bool):
                raise ParseError(f"Image '{key}' latest must be true or false")
            jvm = _expect_mapping(item.get("jvm"), f"Image '{key}' jvm")
            _check_keys(jvm, JVM_KEYS, f"Image '{key}' jvm")
            images[str(key)] = item

        registries = {}
        for key, item in _expect_mapping(yaml_dict.get("registries"), "registries").items():
            item = _expect_mapping(item, f"Registry '{key}'")
            _check_keys(item, REGISTRY_KEYS, f"Registry '{key}'")
            if len(item) != 1:
                raise ParseError(
                    f"Registry '{key}' needs exactly one of {sorted(REGISTRY_KEYS)}"
                )
            registries[str(key)] = item

        return cls(
            name=str(project["name"]),
            version=str(project.get("version", "unspecified")),
            build_dir=project.get("build_dir"),
            plugins=plugins,
            application=application,
            images=images,
            registries=registries,
        )

    def create_project(self, project_dir: Path) -> Project:
        """Return a project with the docker plugin applied and this config on it."""
        project_dir = Path(project_dir)
        build_dir = None
        if self.build_dir is not None:
            build_dir = project_dir / self.build_dir
        project = Project(
            self.name, self.version, project_dir=project_dir, build_dir=build_dir
        )
        project.plugins.apply(EXTENSION_NAME)
        self.apply_to(project)
        return project

    def apply_to(self, project: Project):
        for plugin_id in self.plugins:
            project.plugins.apply(plugin_id)

        if self.application:
            application = project.extensions["application"]
            if "name" in self.application:
                application.application_name.set(str(self.application["name"]))
            if "install_command" in self.application:
                application.install_command.set(
                    [str(a) for a in self.application["install_command"]]
                )

        extension: DockerExtension = project.extensions[EXTENSION_NAME]
        for name, item in self.images.items():
            image = extension.images.get_or_register(name)
            self._configure_image(extension, image, item)

        for name, item in self.registries.items():
            if "github" in item:
                extension.github_container_registry(str(item["github"]), name=name)
            elif "docker_hub" in item:
                extension.docker_hub(str(item["docker_hub"]), name=name)
            else:
                prefix = str(item["image_tag_prefix"])
                extension.registries.get_or_register(
                    name,
                    lambda registry, prefix=prefix: registry.image_tag_prefix.set(prefix),
                )

    @staticmethod
    def _configure_image(extension: DockerExtension, image: DockerImage, item):
        if "image_name" in item:
            image.image_name.set(str(item["image_name"]))
        if "image_version" in item:
            image.image_version.set(str(item["image_version"]))
        if "latest" in item:
            image.is_latest_tag.set(item["latest"])
        if "build_args" in item:
            image.build_args.set(
                {str(k): str(v) for k, v in (item["build_args"] or {}).items()}
            )
        if "platforms" in item:
            image.platforms.set([str(p) for p in item["platforms"] or []])
        for entry in item.get("files") or []:
            image.files.from_(entry["from"], into=str(entry.get("into", ".")))
        if "jvm" in item:
            jvm = dict(item["jvm"] or {})
            install_task = jvm.pop("install_task", "installDist")
            extension.configure_jvm_application(image, install_task, **jvm)

    def __str__(self):
        yaml_dict = {"project": {"name": self.name, "version": self.version}}
        if self.plugins:
            yaml_dict["plugins"] = list(self.plugins)
        if self.images:
            yaml_dict["images"] = self.images
        if self.registries:
            yaml_dict["registries"] = self.registries
        return yaml.dump(yaml_dict, width=float("inf"))
