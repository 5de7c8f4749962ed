from pathlib import Path

from dockalot import commands
from dockalot.model import DockerImage
from dockalot.model import DockerRegistry
from dockalot.project import Project


CONTEXT = Path("/work/build/docker/prepare/app")


def _image(**kwargs):
    project = Project("app", "1.0", project_dir=Path("/work"))
    image = DockerImage("app", project)
    image.image_name.set("app")
    image.image_version.set("1.0")
    image.build_args.set({"K": "V"})
    for key, value in kwargs.items():
        getattr(image, key).set(value)
    return image


def _registry(name="ghcr", prefix="ghcr.io/me"):
    registry = DockerRegistry(name)
    registry.image_tag_prefix.set(prefix)
    return registry


def test_build_args():
    assert commands.build_args(_image(), [_registry()], CONTEXT) == [
        "build",
        "--build-arg",
        "K=V",
        "-t",
        "app:1.0",
        "-t",
        "app:latest",
        "-t",
        "ghcr.io/me/app:1.0",
        "-t",
        "ghcr.io/me/app:latest",
        str(CONTEXT),
    ]


def test_build_args_registry_order_and_no_latest():
    registries = [_registry("b", "b.io/x/"), _registry("a", "a.io/y")]
    args = commands.build_args(_image(is_latest_tag=False), registries, CONTEXT)
    assert args == [
        "build",
        "--build-arg",
        "K=V",
        "-t",
        "app:1.0",
        "-t",
        "b.io/x/app:1.0",
        "-t",
        "a.io/y/app:1.0",
        str(CONTEXT),
    ]
    assert not any(a.endswith(":latest") for a in args)


def test_build_args_without_registries_or_build_args():
    image = _image(build_args={})
    assert commands.build_args(image, [], CONTEXT) == [
        "build",
        "-t",
        "app:1.0",
        "-t",
        "app:latest",
        str(CONTEXT),
    ]


def test_buildx_load_args():
    image = _image(platforms=["linux/amd64", "linux/arm64"])
    assert commands.buildx_load_args(image, CONTEXT) == [
        "buildx",
        "build",
        "--platform",
        "linux/amd64,linux/arm64",
        "--build-arg",
        "K=V",
        "--tag",
        "app:1.0",
        "--tag",
        "app:latest",
        "--load",
        str(CONTEXT),
    ]


def test_buildx_push_args_without_platforms():
    args = commands.buildx_push_args(_image(), _registry(), CONTEXT)
    assert args == [
        "buildx",
        "build",
        "--build-arg",
        "K=V",
        "--tag",
        "ghcr.io/me/app:1.0",
        "--tag",
        "ghcr.io/me/app:latest",
        "--push",
        str(CONTEXT),
    ]
    assert "--load" not in args


def test_push_args():
    image = _image()
    registry = _registry(prefix="ghcr.io/me/")
    assert commands.push_args(image, registry) == ["push", "ghcr.io/me/app:1.0"]
    assert commands.push_latest_args(image, registry) == [
        "push",
        "ghcr.io/me/app:latest",
    ]


def test_run_args():
    assert commands.run_args(_image()) == ["run", "--rm", "app:1.0"]


def test_image_name_defaults_to_project():
    project = Project("my-service", "2.3", project_dir=Path("/work"))
    image = DockerImage("main", project)
    assert commands.run_args(image) == ["run", "--rm", "my-service:2.3"]
