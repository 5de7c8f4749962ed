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


from abc import abstractmethod, ABC
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
import shlex
import subprocess
import sys
from threading import Event, Lock
from typing import Optional, TypeAlias

from .cohesive_output import CohesiveOutput


class Work(ABC):

    @abstractmethod
    def __str__(self) -> str: ...

    @abstractmethod
    def __call__(self) -> None: ...

    def describe(self) -> str:
        """Text printed for this work on a dry run."""
        return str(self)

    def __hash__(self) -> int:
        return str(self).__hash__()


# WorkGraph is a dictionary where:
#  Key = Work
#  Value = Work that must finish before Key can be started
WorkGraph: TypeAlias = dict[Work, list[Work]]


class WorkFailedError(Exception):

    def __init__(self, cmd: list[str], return_code: int):
        super().__init__(f"'{shlex.join(cmd)}' exited with code {return_code}")
        self.cmd = cmd
        self.return_code = return_code


def _dependents_of(graph: WorkGraph, failed_work: Work) -> set[Work]:
    """Return all work in the graph that transitively depends on failed_work."""
    doomed = {failed_work}
    changed = True
    while changed:
        changed = False
        for work, deps in graph.items():
            if work not in doomed and doomed.intersection(deps):
                doomed.add(work)
                changed = True
    doomed.discard(failed_work)
    return doomed


def execute(
    graph: WorkGraph, max_workers=None, dry_run=False, keep_going=False
) -> list[Work]:
    """Execute the given work graph and return the work that failed.

    This consumes the given graph and destroys it as work is completed.

    After a failure no new work is started unless keep_going is set, in
    which case only the work depending on the failure is dropped.
    """
    failed: list[Work] = []
    if not graph:
        return failed

    executor = ThreadPoolExecutor(max_workers=max_workers)
    all_done = Event()
    lock = Lock()
    in_flight = 0

    def work_done(future: Future, done_work: Work):
        nonlocal in_flight
        if future.cancelled():
            return
        e = future.exception()
        with lock:
            in_flight -= 1
            if e is not None:
                sys.stderr.write(f"Failed to execute {done_work}: {e}\n")
                failed.append(done_work)
                if not keep_going:
                    executor.shutdown(wait=False, cancel_futures=True)
                    all_done.set()
                    return
                for doomed in _dependents_of(graph, done_work):
                    sys.stderr.write(f"Not executing {doomed}: a dependency failed\n")
                    del graph[doomed]
            else:
                for deps in graph.values():
                    if done_work in deps:
                        deps.remove(done_work)
            if len(graph) == 0 and in_flight == 0:
                all_done.set()
                return
        queue_next_work()

    def queue_next_work():
        nonlocal in_flight
        submitted: list[tuple[Future, Work]] = []
        with lock:
            scheduled: list[Work] = []
            for work, deps in graph.items():
                if len(deps) == 0:
                    try:
                        if dry_run:
                            f = executor.submit(lambda work=work: print(work.describe()))
                        else:
                            f = executor.submit(work)
                    except RuntimeError:
                        # Executor shutting down, something went wrong
                        return
                    submitted.append((f, work))
                    scheduled.append(work)
            for work in scheduled:
                # Prevent work getting scheduled multiple times
                del graph[work]
            in_flight += len(scheduled)
            if in_flight == 0 and len(graph) > 0:
                sys.stderr.write(
                    "Work graph has work whose dependencies can never finish: "
                    + ", ".join(str(w) for w in graph)
                    + "\n"
                )
                failed.extend(graph.keys())
                graph.clear()
                all_done.set()
                return

        # Must add done callbacks outside of locking because lock is not reentrant
        for future, work in submitted:
            future.add_done_callback(lambda f, work=work: work_done(f, work))

    queue_next_work()
    all_done.wait()
    executor.shutdown()
    return failed


def graph_to_dot(graph: WorkGraph):

    def make_str(work: Work):
        return str(work).replace('"', r"\"")

    output = ["digraph work_graph {"]
    for node in graph.keys():
        output.append(f'  "{make_str(node)}";')
    for node, deps in graph.items():
        for dep in deps:
            output.append(f'  "{make_str(node)}" -> "{make_str(dep)}";')
    output.append("}")
    return "\n".join(output)


class ExecuteCommand(Work):

    def __init__(self, cmd: list[str], working_directory: Optional[Path] = None):
        super().__init__()
        self.__cmd = list(cmd)
        if working_directory is None:
            working_directory = Path.cwd()
        self.__working_directory = working_directory

    @property
    def cmd(self) -> list[str]:
        return list(self.__cmd)

    def __str__(self):
        return shlex.join(self.__cmd)

    def __call__(self, output: Optional[CohesiveOutput] = None):
        if output is None:
            with CohesiveOutput(str(self)) as co:
                return self(co)
        # Undecodable output bytes are replaced, only the exit code decides failure
        with subprocess.Popen(
            self.__cmd,
            cwd=self.__working_directory,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        ) as process:
            while line := process.stdout.readline():
                output.write(line)
            return_code = process.wait()
        if return_code != 0:
            raise WorkFailedError(self.__cmd, return_code)
