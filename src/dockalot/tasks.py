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


import graphlib
import os
from pathlib import Path
import shlex
import shutil
from typing import Callable, Iterable, Optional

from .cohesive_output import CohesiveOutput
from .container import NamedContainer
from .provider import Provider
from .work import ExecuteCommand, Work, WorkGraph


class Task:
    """A named unit of work known to a project.

    A task without actions only exists to depend on other tasks.
    """

    def __init__(self, name: str, project=None):
        self.__name = name
        self.project = project
        self.group: Optional[str] = None
        self.description: Optional[str] = None
        self.__dependencies: list = []
        self.__actions: list[Callable] = []
        self.__only_if: list[Callable[[], bool]] = []

    @property
    def name(self) -> str:
        return self.__name

    @property
    def dependencies(self) -> tuple[str, ...]:
        names = []
        for dependency in self.__dependencies:
            if callable(dependency):
                found = [d if isinstance(d, str) else d.name for d in dependency()]
            else:
                found = [dependency]
            for name in found:
                if name not in names:
                    names.append(name)
        return tuple(names)

    @property
    def actions(self) -> tuple[Callable, ...]:
        return tuple(self.__actions)

    def depends_on(self, *tasks) -> "Task":
        """Add dependencies by task, by name, or by a callable returning either.

        Callables are evaluated each time the dependencies are read.
        """
        for task in tasks:
            if callable(task):
                self.__dependencies.append(task)
                continue
            name = task if isinstance(task, str) else task.name
            if name not in self.__dependencies:
                self.__dependencies.append(name)
        return self

    def do_last(self, action: Callable) -> "Task":
        self.__actions.append(action)
        return self

    def only_if(self, predicate: Callable[[], bool]) -> "Task":
        """Skip this task's actions unless predicate holds when it runs."""
        self.__only_if.append(predicate)
        return self

    def should_run(self) -> bool:
        return all(predicate() for predicate in self.__only_if)

    def execute(self, output: CohesiveOutput):
        if not self.should_run():
            output.print("SKIPPED")
            return
        for action in self.__actions:
            action(output)

    def __repr__(self):
        return f"<Task:{self.name}>"


def _resolve(value):
    if isinstance(value, Provider):
        return value.get()
    if callable(value):
        return value()
    return value


class Exec:
    """Action running one external command.

    The argument list may be a callable, and is only computed when the
    command runs or is described.
    """

    def __init__(self, executable: str, args, working_directory=None):
        self.executable = executable
        self.__args = args
        self.working_directory = working_directory

    @property
    def args(self) -> list[str]:
        return [str(a) for a in _resolve(self.__args)]

    @property
    def command(self) -> list[str]:
        return [self.executable] + self.args

    def __str__(self):
        return shlex.join(self.command)

    def __call__(self, output: CohesiveOutput):
        working_directory = _resolve(self.working_directory)
        ExecuteCommand(self.command, working_directory=working_directory)(output)


class Sync:
    """Action making a directory contain exactly the files of a CopySpec."""

    def __init__(self, copy_spec, destination, base_directory=None):
        self.copy_spec = copy_spec
        self.__destination = destination
        self.__base_directory = base_directory

    @property
    def destination(self) -> Path:
        return Path(_resolve(self.__destination))

    def _source_path(self, path: Path) -> Path:
        base = _resolve(self.__base_directory)
        if base is None or path.is_absolute():
            return path
        return Path(base) / path

    def __str__(self):
        return f"sync {len(self.copy_spec.sources)} source(s) into {self.destination}"

    def __call__(self, output: CohesiveOutput):
        destination = self.destination
        if destination.exists():
            shutil.rmtree(destination)
        destination.mkdir(parents=True)
        for source in self.copy_spec.sources:
            path = self._source_path(source.resolved_path())
            target = destination / source.resolved_into()
            if path.is_dir():
                shutil.copytree(path, target, dirs_exist_ok=True)
            elif path.is_file():
                target.mkdir(parents=True, exist_ok=True)
                shutil.copy2(path, target / path.name)
            else:
                output.print(f"Ignoring missing source {path}")
        output.print(f"Synced {sum(len(f) for _, _, f in os.walk(destination))} file(s)")


class TaskWork(Work):

    def __init__(self, task: Task):
        super().__init__()
        self.task = task

    def __str__(self):
        return self.task.name

    def describe(self):
        if not self.task.should_run():
            return f":{self.task.name} SKIPPED"
        lines = [f":{self.task.name}"]
        for action in self.task.actions:
            lines.append(f"    {action}")
        return "\n".join(lines)

    def __call__(self):
        with CohesiveOutput(f"Task :{self.task.name}") as co:
            self.task.execute(co)


def build_work_graph(tasks: NamedContainer[Task], names: Iterable[str]) -> WorkGraph:
    """Return a work graph running the named tasks and everything they need."""
    wanted: dict[str, Task] = {}
    pending = list(names)
    while pending:
        name = pending.pop()
        if name in wanted:
            continue
        task = tasks[name]
        wanted[name] = task
        pending.extend(task.dependencies)

    # Raises graphlib.CycleError if tasks depend on each other
    ts = graphlib.TopologicalSorter({n: t.dependencies for n, t in wanted.items()})
    order = tuple(ts.static_order())

    works = {name: TaskWork(wanted[name]) for name in order}
    work_graph: WorkGraph = {}
    for name in order:
        work_graph[works[name]] = [works[dep] for dep in wanted[name].dependencies]
    return work_graph


def describe_tasks(tasks: NamedContainer[Task]) -> str:
    """List tasks by group, the way a build tool lists what it can run."""
    by_group: dict[str, list[Task]] = {}
    for task in tasks:
        by_group.setdefault(task.group or "other", []).append(task)
    lines = []
    for group in sorted(by_group):
        lines.append(f"{group.capitalize()} tasks")
        lines.append("-" * (len(group) + 6))
        for task in by_group[group]:
            if task.description:
                lines.append(f"{task.name} - {task.description}")
            else:
                lines.append(task.name)
        lines.append("")
    return "\n".join(lines)
