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


import argparse
import graphlib
from pathlib import Path
import sys

from .config import Config, ParseError
from .container import ConfigurationError
from .plugin import EXTENSION_NAME
from . import tasks
from . import work


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Build, push and run docker images declared in a project file"
    )
    parser.add_argument("--config", default="dockalot.yaml")
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument(
        "--continue",
        dest="keep_going",
        action="store_true",
        help="keep running tasks that do not depend on a failed one",
    )
    parser.add_argument("--max-workers", type=int, default=None)
    parser.add_argument(
        "--image-version", help="override the version of every image"
    )
    parser.add_argument("--list", action="store_true", help="list available tasks")
    parser.add_argument("tasks_to_run", nargs="*")

    args = parser.parse_args(argv)
    return args


def main(argv=None):
    args = parse_arguments(argv)

    config_path = Path(args.config)
    try:
        with open(config_path, "r") as fin:
            config = Config.parse_stream(fin)
        project = config.create_project(config_path.absolute().parent)
    except FileNotFoundError:
        sys.stderr.write(f"No project file at {config_path}\n")
        return 1
    except (ParseError, ConfigurationError) as e:
        sys.stderr.write(f"Invalid project file {config_path}: {e}\n")
        return 1

    extension = project.extensions[EXTENSION_NAME]
    if args.image_version is not None:
        extension.images.all(lambda image: image.image_version.set(args.image_version))

    if args.debug:
        print("-----------------")
        print("- Debug printing project file")
        print(config, end="")
        print("-----------------")
        print("- Debug printing images and registries")
        for image in extension.images:
            print(image, end="")
        for registry in extension.registries:
            print(registry, end="")

    if args.list or not args.tasks_to_run:
        print(tasks.describe_tasks(project.tasks))
        return 0

    try:
        work_graph = tasks.build_work_graph(project.tasks, args.tasks_to_run)
    except ConfigurationError as e:
        sys.stderr.write(f"{e}\n")
        return 1
    except graphlib.CycleError as e:
        sys.stderr.write(f"Tasks depend on each other: {e.args[1]}\n")
        return 1

    if args.debug:
        print("-----------------")
        print("- Debug printing Work graph")
        print(work.graph_to_dot(work_graph))
        print("-----------------")

    # Run all the tasks, invoking docker for the ones that need it
    failed = work.execute(
        work_graph,
        max_workers=args.max_workers,
        dry_run=args.dry_run,
        keep_going=args.keep_going,
    )
    if failed:
        sys.stderr.write(
            "Failed tasks: " + ", ".join(str(w) for w in failed) + "\n"
        )
        return 1
    return 0
