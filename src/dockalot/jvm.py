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


import functools
from pathlib import Path
from typing import Optional

from .naming import to_camel_case
from .provider import Property
from .work import ExecuteCommand


DEFAULT_BASE_IMAGE_NAME = "eclipse-temurin"
DEFAULT_BASE_IMAGE_TAG = "21-alpine"


def jvm_app_dockerfile(
    image_name: str,
    image_tag: str,
    app_name: str,
    additional_config: Optional[str] = None,
) -> str:
    """Return a Dockerfile running an application laid out like installDist."""
    lines = [
        f"FROM {image_name}:{image_tag}",
        "WORKDIR /app",
        f"COPY {app_name} /app",
    ]
    if additional_config:
        lines.append(additional_config.strip("\n"))
    lines.append(f'ENTRYPOINT ["/app/bin/{app_name}"]')
    return "\n".join(lines) + "\n"


class CreateJvmDockerfile:
    """Action writing a JVM application Dockerfile."""

    def __init__(self, destination_file: Path, app_name):
        self.destination_file = Path(destination_file)
        self.base_image_name = Property(
            "base_image_name", convention=DEFAULT_BASE_IMAGE_NAME
        )
        self.base_image_tag = Property("base_image_tag", convention=DEFAULT_BASE_IMAGE_TAG)
        self.app_name = Property("app_name", convention=app_name)
        self.additional_config = Property("additional_config")

    def render(self) -> str:
        return jvm_app_dockerfile(
            image_name=self.base_image_name.get(),
            image_tag=self.base_image_tag.get(),
            app_name=self.app_name.get(),
            additional_config=self.additional_config.or_none(),
        )

    def __str__(self):
        return f"write {self.destination_file}"

    def __call__(self, output):
        self.destination_file.parent.mkdir(parents=True, exist_ok=True)
        self.destination_file.write_text(self.render())
        output.print(f"Wrote {self.destination_file}")


class ApplicationExtension:

    def __init__(self, project):
        self.application_name = Property(
            "application_name", convention=lambda: project.name
        )
        # Command producing the distribution under build/install/<name>
        self.install_command = Property("install_command")


class ApplicationPlugin:
    """Marks a project as packaging an application distribution.

    It registers an installDist task, which runs the configured install
    command when there is one.
    """

    plugin_id = "application"

    def apply(self, project):
        extension = ApplicationExtension(project)
        project.extensions["application"] = extension

        def run_install_command(output):
            ExecuteCommand(
                [str(a) for a in extension.install_command.get()],
                working_directory=project.project_dir,
            )(output)

        def configure(task):
            task.group = "distribution"
            task.description = "Installs the application distribution"
            task.only_if(lambda: extension.install_command.is_present)
            task.do_last(run_install_command)

        project.tasks.register("installDist", configure)


def configure_jvm_application(
    project,
    image,
    install_task: str = "installDist",
    *,
    app_name: Optional[str] = None,
    base_image_name: Optional[str] = None,
    base_image_tag: Optional[str] = None,
    additional_config: Optional[str] = None,
) -> CreateJvmDockerfile:
    """Make the image package the installed application with a JVM Dockerfile.

    Calling this again for the same image only updates the Dockerfile
    settings.
    """
    task_name = f"createJvmDockerfile{to_camel_case(image.name)}"
    existing = project.tasks.get(task_name)
    if existing is not None:
        generator = existing.actions[0]
    else:
        destination = project.build_dir / "docker" / "jvm" / image.name / "Dockerfile"
        generator = CreateJvmDockerfile(
            destination, functools.partial(_application_name, project)
        )

        def configure(task):
            task.group = "docker"
            task.description = f"Writes the Dockerfile of image {image.name}"
            task.do_last(generator)

        project.tasks.register(task_name, configure)
        image.files.from_(
            lambda: project.build_dir / "install" / generator.app_name.get(),
            into=generator.app_name.get,
            built_by=install_task,
        )
        image.files.from_(destination, built_by=task_name)

    if app_name is not None:
        generator.app_name.set(app_name)
    if base_image_name is not None:
        generator.base_image_name.set(base_image_name)
    if base_image_tag is not None:
        generator.base_image_tag.set(base_image_tag)
    if additional_config is not None:
        generator.additional_config.set(additional_config)
    return generator


def _application_name(project) -> str:
    application = project.extensions.get("application")
    if application is not None:
        return application.application_name.get()
    return project.name
