"""Bootable OS image catalog."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

logger = py_logging.getLogger(__name__)


class OsImage(str, Enum):
    LINUX = "linux"
    FREEDOS = "freedos"
    OPENBSD = "openbsd"
    KOLIBRI = "kolibri"
    DSL = "dsl"
    WINDOWS7 = "windows7"


@dataclass(frozen=True)
class OsImageEntry:
    image: OsImage
    label: str
    url: str


DEFAULT_OS_IMAGE = OsImage.LINUX

OS_IMAGE_CATALOG: dict[OsImage, OsImageEntry] = {
    OsImage.LINUX: OsImageEntry(OsImage.LINUX, "Linux 2.6", "https://copy.sh/v86/images/linux26.img"),
    OsImage.FREEDOS: OsImageEntry(OsImage.FREEDOS, "FreeDOS", "https://cdn.milosantos.com/freedos722.img"),
    OsImage.OPENBSD: OsImageEntry(OsImage.OPENBSD, "OpenBSD", "https://copy.sh/v86/images/openbsd.img"),
    OsImage.KOLIBRI: OsImageEntry(OsImage.KOLIBRI, "KolibriOS", "https://copy.sh/v86/images/kolibri.img"),
    OsImage.DSL: OsImageEntry(OsImage.DSL, "Damn Small Linux", "https://cdn.milosantos.com/dsl-4.11.rc2.iso"),
    OsImage.WINDOWS7: OsImageEntry(OsImage.WINDOWS7, "Windows 7", "https://cdn.milosantos.com/Win7.iso"),
}


def os_image_choices() -> tuple[str, ...]:
    return tuple(item.value for item in OsImage)


def resolve_os_image(selector: object, *, default: OsImage = DEFAULT_OS_IMAGE) -> OsImage:
    if isinstance(selector, OsImage):
        return selector
    normalized = str(selector if selector is not None else "").strip().lower()
    for item in OsImage:
        if item.value == normalized:
            return item
    logger.warning("Unrecognized OS selector %r; falling back to %s", selector, default.value)
    return default


def image_url(image: OsImage, overrides: Mapping[str, str] | None = None) -> str:
    if overrides:
        override = overrides.get(image.value, "").strip()
        if override:
            return override
    return OS_IMAGE_CATALOG[image].url
