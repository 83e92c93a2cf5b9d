# test/test_image.py
from __future__ import annotations

import pytest

from bashwrap.errors import ConfigurationError
from bashwrap.platforms.image import ImageIdentity


@pytest.mark.parametrize("ref,parts,text", [
    ("ubuntu", ("ubuntu", "latest", None, None), "ubuntu:latest"),
    ("bash:5", ("bash", "5", None, None), "bash:5"),
    ("rocker/r-ver:4.3", ("r-ver", "4.3", None, "rocker"), "rocker/r-ver:4.3"),
    ("ghcr.io/org/tool:1.0", ("tool", "1.0", "ghcr.io", "org"), "ghcr.io/org/tool:1.0"),
    ("localhost:5000/tool", ("tool", "latest", "localhost:5000", None), "localhost:5000/tool:latest"),
    ("localhost/a/b/tool:x", ("tool", "x", "localhost", "a/b"), "localhost/a/b/tool:x"),
])
def test_parse(ref, parts, text):
    image = ImageIdentity.parse(ref)
    assert (image.name, image.tag, image.registry, image.organization) == parts
    assert str(image) == text


@pytest.mark.parametrize("ref", ["", "bad image", "tool:", ":tag"])
def test_parse_invalid(ref):
    with pytest.raises(ConfigurationError):
        ImageIdentity.parse(ref)


def test_for_component_defaults():
    assert str(ImageIdentity.for_component("tool")) == "tool:latest"
    assert str(ImageIdentity.for_component("tool", namespace="qc", version="0.2")) == "qc/tool:0.2"


def test_for_component_targets():
    image = ImageIdentity.for_component(
        "tool", namespace="qc", version="0.2",
        target_registry="ghcr.io", target_organization="lab", target_image="custom", target_tag="dev",
    )
    assert str(image) == "ghcr.io/lab/custom:dev"
