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


"""Turns declared images and registries into docker tasks.

For every image, and for every pair of image and registry, tasks are
registered and wired to the aggregate tasks. Images and registries declared
after the plugin was applied get the same treatment, because everything is
hooked up through the containers' all() subscriptions.
"""

from .commands import (
    DOCKER,
    build_args,
    buildx_load_args,
    buildx_push_args,
    create_builder_args,
    push_args,
    push_latest_args,
    run_args,
)
from .container import DEFAULT_NAME
from .model import DockerExtension, DockerImage, DockerRegistry
from .naming import to_camel_case
from .tasks import Exec, Sync, Task


EXTENSION_NAME = "docker"

PREPARE_ALL = "dockerPrepare"
BUILD_ALL = "dockerBuild"
PUSH_ALL = "dockerPush"
BUILDX_BUILD_ALL = "dockerBuildxBuild"
BUILDX_PUSH_ALL = "dockerBuildxPush"
CREATE_BUILDX_BUILDER = "createBuildxBuilder"


def prepare_task_name(image: DockerImage) -> str:
    return f"dockerPrepare{to_camel_case(image.name)}"


def build_task_name(image: DockerImage) -> str:
    return f"dockerBuild{to_camel_case(image.name)}"


def buildx_build_task_name(image: DockerImage) -> str:
    return f"dockerBuildxBuild{to_camel_case(image.name)}"


def run_task_name(image: DockerImage) -> str:
    if image.name == DEFAULT_NAME:
        return "dockerRun"
    return f"dockerRun{to_camel_case(image.name)}"


def push_task_name(image: DockerImage, registry: DockerRegistry) -> str:
    return f"dockerPush{to_camel_case(image.name)}To{to_camel_case(registry.registry_name)}"


def push_latest_task_name(image: DockerImage, registry: DockerRegistry) -> str:
    return (
        f"dockerPush{to_camel_case(image.name)}"
        f"LatestTo{to_camel_case(registry.registry_name)}"
    )


def buildx_push_task_name(image: DockerImage, registry: DockerRegistry) -> str:
    return (
        f"dockerBuildxPush{to_camel_case(image.name)}"
        f"To{to_camel_case(registry.registry_name)}"
    )


def push_all_images_task_name(registry: DockerRegistry) -> str:
    return f"dockerPushAllImagesTo{to_camel_case(registry.registry_name)}"


def push_all_buildx_images_task_name(registry: DockerRegistry) -> str:
    return f"pushAllBuildxImagesTo{to_camel_case(registry.registry_name)}"


class DockerPlugin:
    """Registers the docker extension and every task derived from it.

    Tasks registered on apply:
      * dockerPrepare: prepares the build context of every image
      * dockerBuild: builds every image with `docker build`
      * dockerPush: pushes every image to every registry
      * dockerBuildxBuild: builds every image with buildx, loading it locally
      * dockerBuildxPush: builds and pushes every image with buildx
      * createBuildxBuilder: creates and selects a buildx builder

    The default image is "main", named after the project. If the
    application plugin is applied it is set up to package the application
    with a JVM Dockerfile.
    """

    plugin_id = EXTENSION_NAME

    def apply(self, project) -> DockerExtension:
        extension = DockerExtension(project)
        project.extensions[EXTENSION_NAME] = extension

        main_image = extension.images.register(
            DEFAULT_NAME, lambda image: image.image_name.set(project.name)
        )

        project.plugins.with_id(
            "application", lambda: extension.configure_jvm_application(main_image)
        )

        tasks = project.tasks

        def umbrella(group, description, *depends_on):
            def configure(task: Task):
                task.group = group
                task.description = description
                task.depends_on(*depends_on)

            return configure

        tasks.register(PREPARE_ALL, umbrella("docker", "Prepares all build contexts"))
        tasks.register(
            BUILD_ALL, umbrella("build", "Builds all images", PREPARE_ALL)
        )
        tasks.register(
            PUSH_ALL, umbrella("pushing", "Pushes all images", BUILD_ALL)
        )
        tasks.register(
            BUILDX_BUILD_ALL,
            umbrella("build", "Builds all images with buildx", PREPARE_ALL),
        )
        tasks.register(
            BUILDX_PUSH_ALL,
            umbrella("pushing", "Builds and pushes all images with buildx", PREPARE_ALL),
        )

        def configure_builder(task: Task):
            task.group = "docker"
            task.description = "Creates and uses a docker buildx builder"
            task.do_last(Exec(DOCKER, create_builder_args()))

        tasks.register(CREATE_BUILDX_BUILDER, configure_builder)

        extension.images.all(lambda image: self._configure_image(project, extension, image))
        return extension

    def _configure_image(self, project, extension: DockerExtension, image: DockerImage):
        tasks = project.tasks
        prepare_dir = (project.build_dir / "docker" / "prepare" / image.name).absolute()

        def configure_prepare(task: Task):
            task.group = "docker"
            task.description = f"Copies the build context of image {image.name}"
            task.depends_on(lambda: image.files.built_by)
            task.do_last(Sync(image.files, prepare_dir, project.project_dir))

        prepare_task = tasks.register(prepare_task_name(image), configure_prepare)
        tasks[PREPARE_ALL].depends_on(prepare_task)

        def configure_build(task: Task):
            task.group = "build"
            task.description = f"Builds image {image.name}"
            task.depends_on(prepare_task)
            task.do_last(
                Exec(DOCKER, lambda: build_args(image, extension.registries, prepare_dir))
            )

        build_task = tasks.register(build_task_name(image), configure_build)
        tasks[BUILD_ALL].depends_on(build_task)

        self._configure_publication(project, extension, image, build_task)
        self._configure_buildx(project, extension, image, prepare_task, prepare_dir)

        def configure_run(task: Task):
            task.group = "docker"
            task.description = f"Runs image {image.name}"
            task.depends_on(build_task)
            task.do_last(Exec(DOCKER, lambda: run_args(image)))

        tasks.register(run_task_name(image), configure_run)

    def _configure_publication(
        self, project, extension: DockerExtension, image: DockerImage, build_task: Task
    ):
        tasks = project.tasks

        def configure_registry(registry: DockerRegistry):
            def configure_push(task: Task):
                task.group = "publishing"
                task.description = (
                    f"Pushes image {image.name} to {registry.registry_name}"
                )
                task.depends_on(build_task)
                task.do_last(Exec(DOCKER, lambda: push_args(image, registry)))

            push_task = tasks.register(push_task_name(image, registry), configure_push)

            def configure_push_latest(task: Task):
                task.group = "publishing"
                task.description = (
                    f"Pushes the latest tag of image {image.name}"
                    f" to {registry.registry_name}"
                )
                task.depends_on(build_task)
                task.only_if(lambda: bool(image.is_latest_tag.get()))
                task.do_last(Exec(DOCKER, lambda: push_latest_args(image, registry)))

            push_latest_task = tasks.register(
                push_latest_task_name(image, registry), configure_push_latest
            )

            push_all_to_registry = tasks.get_or_register(
                push_all_images_task_name(registry), _publishing
            )
            push_all_to_registry.depends_on(push_task, push_latest_task)
            tasks[PUSH_ALL].depends_on(push_task, push_latest_task)

        extension.registries.all(configure_registry)

    def _configure_buildx(
        self,
        project,
        extension: DockerExtension,
        image: DockerImage,
        prepare_task: Task,
        prepare_dir,
    ):
        tasks = project.tasks

        def configure_buildx_build(task: Task):
            task.group = "build"
            task.description = f"Builds image {image.name} with buildx"
            task.depends_on(prepare_task)
            task.do_last(Exec(DOCKER, lambda: buildx_load_args(image, prepare_dir)))

        buildx_build_task = tasks.register(
            buildx_build_task_name(image), configure_buildx_build
        )
        tasks[BUILDX_BUILD_ALL].depends_on(buildx_build_task)

        def configure_registry(registry: DockerRegistry):
            def configure_buildx_push(task: Task):
                task.group = "build"
                task.description = (
                    f"Builds image {image.name} with buildx and pushes it"
                    f" to {registry.registry_name}"
                )
                task.depends_on(prepare_task)
                task.do_last(
                    Exec(DOCKER, lambda: buildx_push_args(image, registry, prepare_dir))
                )

            buildx_push_task = tasks.register(
                buildx_push_task_name(image, registry), configure_buildx_push
            )
            tasks.get_or_register(
                push_all_buildx_images_task_name(registry), _publishing
            ).depends_on(buildx_push_task)
            tasks[BUILDX_PUSH_ALL].depends_on(buildx_push_task)

        extension.registries.all(configure_registry)


def _publishing(task: Task):
    task.group = "publishing"
