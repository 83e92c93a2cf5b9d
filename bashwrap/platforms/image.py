# bashwrap/platforms/image.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from bashwrap.errors import ConfigurationError


def _is_registry(part: str) -> bool:
    return "." in part or ":" in part or part == "localhost"


@dataclass(frozen=True)
class ImageIdentity:
    """
    Docker image reference split in its parts.

      ghcr.io/org/tool:1.0  -> registry='ghcr.io', organization='org', name='tool', tag='1.0'
      ubuntu                -> name='ubuntu', tag='latest'
    """

    name: str
    tag: str = "latest"
    registry: Optional[str] = None
    organization: Optional[str] = None

    @classmethod
    def parse(cls, ref: str) -> "ImageIdentity":
        ref = (ref or "").strip()
        if not ref or any(c.isspace() for c in ref):
            raise ConfigurationError(f"Invalid docker image reference {ref!r}")

        rest, tag = ref, "latest"
        idx = ref.rfind(":")
        # registry:port/name 의 ':'는 태그가 아님
        if idx != -1 and "/" not in ref[idx + 1:]:
            rest, tag = ref[:idx], ref[idx + 1:]
        if not rest or not tag:
            raise ConfigurationError(f"Invalid docker image reference {ref!r}")

        parts = rest.split("/")
        registry = None
        if len(parts) > 1 and _is_registry(parts[0]):
            registry = parts.pop(0)
        return cls(
            name=parts[-1],
            tag=tag,
            registry=registry,
            organization="/".join(parts[:-1]) or None,
        )

    @classmethod
    def for_component(
        cls,
        name: str,
        namespace: Optional[str] = None,
        version: Optional[str] = None,
        target_registry: Optional[str] = None,
        target_organization: Optional[str] = None,
        target_image: Optional[str] = None,
        target_tag: Optional[str] = None,
    ) -> "ImageIdentity":
        """Identity of an image built on the fly from the component's requirements."""
        image = target_image or (f"{namespace}/{name}" if namespace else name)
        return cls(
            name=image,
            tag=str(target_tag or version or "latest"),
            registry=target_registry,
            organization=target_organization,
        )

    def __str__(self) -> str:
        path = "/".join(p for p in (self.registry, self.organization, self.name) if p)
        return f"{path}:{self.tag}"
