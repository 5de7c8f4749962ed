import pytest

from dockalot.config import Config
from dockalot.config import ParseError
from dockalot.tasks import Exec


_single_image = """
project:
  name: app
  version: "1.0"
images:
  main:
    build_args:
      K: V
    platforms:
      - linux/amd64
      - linux/arm64
    files:
      - from: docker
registries:
  ghcr:
    image_tag_prefix: ghcr.io/me
"""


def test_single_image(tmp_path):
    config = Config.parse_string(_single_image)
    assert config.name == "app"
    assert config.version == "1.0"

    project = config.create_project(tmp_path)
    extension = project.extensions["docker"]
    image = extension.images.main
    assert image.image_name.get() == "app"
    assert image.image_version.get() == "1.0"
    assert image.build_args.get() == {"K": "V"}
    assert image.platforms.get() == ["linux/amd64", "linux/arm64"]
    assert image.files.sources[0].path.name == "docker"
    assert extension.registries["ghcr"].prefix() == "ghcr.io/me/"
    assert "dockerPushMainToGhcr" in project.tasks
    assert "pushAllBuildxImagesToGhcr" in project.tasks


_many_images = """
project:
  name: app
  version: 3
  build_dir: out
images:
  api:
    image_name: my-api
    image_version: "0.1"
    latest: false
  worker: {}
registries:
  github:
    github: me
  hub:
    docker_hub: someone
"""


def test_many_images(tmp_path):
    project = Config.parse_string(_many_images).create_project(tmp_path)
    extension = project.extensions["docker"]
    assert extension.images.names == ("main", "api", "worker")
    api = extension.images["api"]
    assert api.image_name.get() == "my-api"
    assert api.is_latest_tag.get() is False
    assert extension.images["worker"].image_version.get() == "3"
    assert extension.registries["github"].prefix() == "ghcr.io/me/"
    assert extension.registries["hub"].prefix() == "docker.io/someone/"
    assert project.build_dir == tmp_path / "out"

    run = project.tasks["dockerRunApi"]
    assert [a.command for a in run.actions if isinstance(a, Exec)] == [
        ["docker", "run", "--rm", "my-api:0.1"]
    ]
    for image in ["Main", "Api", "Worker"]:
        for registry in ["Github", "Hub"]:
            assert f"dockerPush{image}LatestTo{registry}" in project.tasks


_jvm_application = """
project:
  name: server
application:
  install_command: ["./gradlew", "installDist"]
images:
  main:
    jvm:
      base_image_tag: "21"
      additional_config: RUN echo hi
"""


def test_jvm_application(tmp_path):
    project = Config.parse_string(_jvm_application).create_project(tmp_path)
    assert project.plugins.has_plugin("application")
    assert "installDist" in project.tasks
    prepare = project.tasks["dockerPrepareMain"]
    assert prepare.dependencies == ("installDist", "createJvmDockerfileMain")
    generator = project.tasks["createJvmDockerfileMain"].actions[0]
    assert "FROM eclipse-temurin:21\n" in generator.render()
    assert "RUN echo hi\n" in generator.render()


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "images: {}\n",
        "project: {name: a}\nunexpected: 1\n",
        "project: {name: a}\nimages:\n  main:\n    colour: red\n",
        "project: {name: a}\nimages:\n  main:\n    platforms: linux/amd64\n",
        "project: {name: a}\nimages:\n  main:\n    files:\n      - into: x\n",
        "project: {name: a}\nimages:\n  main:\n    latest: \"false\"\n",
        "project: {name: a}\nregistries:\n  r: {}\n",
        "project: {name: a}\nregistries:\n  r:\n    github: me\n    docker_hub: me\n",
    ],
)
def test_invalid_config(text):
    with pytest.raises(ParseError):
        Config.parse_string(text)


def test_unknown_plugin(tmp_path):
    config = Config.parse_string("project: {name: a}\nplugins: [kotlin]\n")
    with pytest.raises(RuntimeError):
        config.create_project(tmp_path)
