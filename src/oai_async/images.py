"""
Image request builders.

``build()`` returns a selector; pick the request kind, chain setters, then
await ``done()``::

    images = await images.build().generate("A brain-shaped CPU icon").n(3).size("256x256").done()

Generations are sent as JSON. Edits and variations upload image bytes as
multipart form data; image arguments may be raw PNG bytes or a file path.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .builder import RequestBuilder, require_int, require_str
from .client import client_scope
from .errors import ConfigurationError
from .schemas import IMAGE_RESPONSE_FORMATS, IMAGE_SIZES, ImageRequest, Images, parse_as

if TYPE_CHECKING:
    from .client import OpenAIClient

ImageInput = bytes | str | os.PathLike

MAX_IMAGES = 10


def load_image(name: str, image: ImageInput) -> tuple[str, bytes, str]:
    if isinstance(image, (bytes, bytearray)):
        if not image:
            raise ConfigurationError(f"{name} is empty.")
        return (f"{name}.png", bytes(image), "image/png")
    if isinstance(image, (str, os.PathLike)):
        path = Path(image)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ConfigurationError(f"Cannot read {name} file {str(path)!r}: {e.strerror}") from e
        return (path.name, content, "image/png")
    raise ConfigurationError(f"{name} must be bytes or a file path, got {type(image).__name__}.")


class _ImageBuilder(RequestBuilder):
    path = ""
    endpoint = ""

    def n(self, count: int):
        """How many images to produce, 1 to 10."""
        return self._set("n", require_int("n", count, minimum=1, maximum=MAX_IMAGES))

    def size(self, size: str):
        if size not in IMAGE_SIZES:
            raise ConfigurationError(f"size must be one of {', '.join(IMAGE_SIZES)}, got {size!r}.")
        return self._set("size", size)

    def response_format(self, fmt: str):
        if fmt not in IMAGE_RESPONSE_FORMATS:
            raise ConfigurationError(f"response_format must be one of {', '.join(IMAGE_RESPONSE_FORMATS)}.")
        return self._set("response_format", fmt)

    def user(self, identifier: str):
        return self._set("user", require_str("user", identifier, allow_empty=False))

    def to_request(self) -> ImageRequest:
        return self._freeze(ImageRequest, **self._fixed_fields())

    def _fixed_fields(self) -> dict[str, Any]:
        return {}

    def _files(self) -> dict[str, tuple[str, bytes, str]] | None:
        return None

    async def done(self) -> Images:
        payload = self.to_request().to_payload()
        files = self._files()
        self._consume()
        async with client_scope(self._client) as client:
            if files is None:
                body = await client.request(self.endpoint, "POST", self.path, json=payload)
            else:
                form = {k: str(v) for k, v in payload.items()}
                body = await client.request(self.endpoint, "POST", self.path, data=form, files=files)
        return parse_as(Images, body)


class ImageGenerationBuilder(_ImageBuilder):
    path = "/images/generations"
    endpoint = "images.generations"

    def __init__(self, prompt: str, *, client: "OpenAIClient | None" = None):
        super().__init__(client=client)
        self.prompt = require_str("prompt", prompt, allow_empty=False)

    def _fixed_fields(self) -> dict[str, Any]:
        return {"prompt": self.prompt}


class ImageEditBuilder(_ImageBuilder):
    path = "/images/edits"
    endpoint = "images.edits"

    def __init__(self, image: ImageInput, prompt: str, *, client: "OpenAIClient | None" = None):
        super().__init__(client=client)
        self.image = load_image("image", image)
        self.prompt = require_str("prompt", prompt, allow_empty=False)
        self._mask: tuple[str, bytes, str] | None = None

    def mask(self, image: ImageInput) -> "ImageEditBuilder":
        """PNG whose fully transparent areas mark where ``image`` should be edited."""
        self._ensure_open()
        self._mask = load_image("mask", image)
        return self

    def _fixed_fields(self) -> dict[str, Any]:
        return {"prompt": self.prompt}

    def _files(self) -> dict[str, tuple[str, bytes, str]]:
        files = {"image": self.image}
        if self._mask is not None:
            files["mask"] = self._mask
        return files


class ImageVariationBuilder(_ImageBuilder):
    path = "/images/variations"
    endpoint = "images.variations"

    def __init__(self, image: ImageInput, *, client: "OpenAIClient | None" = None):
        super().__init__(client=client)
        self.image = load_image("image", image)

    def _files(self) -> dict[str, tuple[str, bytes, str]]:
        return {"image": self.image}


class ImageRequestSelector:
    def __init__(self, *, client: "OpenAIClient | None" = None):
        self._client = client

    def generate(self, prompt: str) -> ImageGenerationBuilder:
        return ImageGenerationBuilder(prompt, client=self._client)

    def edits(self, image: ImageInput, prompt: str) -> ImageEditBuilder:
        return ImageEditBuilder(image, prompt, client=self._client)

    def variation(self, image: ImageInput) -> ImageVariationBuilder:
        return ImageVariationBuilder(image, client=self._client)


def build(*, client: "OpenAIClient | None" = None) -> ImageRequestSelector:
    return ImageRequestSelector(client=client)
