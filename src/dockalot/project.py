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


from pathlib import Path
from typing import Callable, Optional

from .container import ConfigurationError, NamedContainer
from .tasks import Task


class PluginManager:
    """Applies plugins to a project and tells interested parties about them."""

    def __init__(self, project):
        self.__project = project
        self.__applied: NamedContainer = NamedContainer(
            lambda plugin_id: plugin_id, kind="plugin"
        )

    @staticmethod
    def known_plugins() -> dict:
        from .jvm import ApplicationPlugin
        from .plugin import DockerPlugin

        return {
            DockerPlugin.plugin_id: DockerPlugin,
            ApplicationPlugin.plugin_id: ApplicationPlugin,
        }

    def apply(self, plugin_id: str) -> None:
        """Apply a plugin by id; applying one twice does nothing."""
        if plugin_id in self.__applied:
            return
        known = self.known_plugins()
        if plugin_id not in known:
            raise ConfigurationError(
                f'Unknown plugin "{plugin_id}", expected one of {sorted(known)}'
            )
        known[plugin_id]().apply(self.__project)
        self.__applied.register(plugin_id)

    def has_plugin(self, plugin_id: str) -> bool:
        return plugin_id in self.__applied

    def with_id(self, plugin_id: str, action: Callable[[], None]) -> None:
        """Run action now if the plugin is applied, else once it gets applied."""

        def maybe_run(applied_id):
            if applied_id == plugin_id:
                action()

        self.__applied.all(maybe_run)


class Project:

    def __init__(
        self,
        name: str,
        version: str = "unspecified",
        project_dir: Optional[Path] = None,
        build_dir: Optional[Path] = None,
    ):
        self.name = name
        self.version = version
        if project_dir is None:
            project_dir = Path.cwd()
        self.project_dir = Path(project_dir)
        if build_dir is None:
            build_dir = self.project_dir / "build"
        self.build_dir = Path(build_dir)
        self.tasks: NamedContainer[Task] = NamedContainer(
            lambda task_name: Task(task_name, self), kind="task"
        )
        self.extensions: dict[str, object] = {}
        self.plugins = PluginManager(self)

    def __repr__(self):
        return f"<Project:{self.name}>"
