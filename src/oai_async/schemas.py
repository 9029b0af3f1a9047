from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import DeserializationError

IMAGE_SIZES = ("256x256", "512x512", "1024x1024")
IMAGE_RESPONSE_FORMATS = ("url", "b64_json")

_M = TypeVar("_M", bound=BaseModel)


def parse_as(cls: type[_M], body: Any) -> _M:
    try:
        return cls.model_validate(body)
    except ValidationError as e:
        raise DeserializationError(f"Unexpected {cls.__name__} response shape: {e.error_count()} error(s).") from e


class _Response(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Usage(_Response):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionChoice(_Response):
    text: str
    index: int = 0
    logprobs: dict[str, Any] | None = None
    finish_reason: str | None = None


class Completion(_Response):
    id: str
    object: str = "text_completion"
    created: int
    model: str
    choices: list[CompletionChoice]
    usage: Usage | None = None

    @property
    def text(self) -> str:
        return self.choices[0].text if self.choices else ""


class EditChoice(_Response):
    text: str
    index: int = 0


class Edit(_Response):
    object: str = "edit"
    created: int
    choices: list[EditChoice]
    usage: Usage | None = None

    @property
    def text(self) -> str:
        return self.choices[0].text if self.choices else ""


class ImageData(_Response):
    url: str | None = None
    b64_json: str | None = None

    @model_validator(mode="after")
    def _require_payload(self) -> "ImageData":
        if self.url is None and self.b64_json is None:
            raise ValueError("image entry carries neither url nor b64_json.")
        return self


class Images(_Response):
    created: int
    data: list[ImageData]


class ModelPermission(_Response):
    id: str
    object: str = "model_permission"
    created: int
    allow_create_engine: bool = False
    allow_sampling: bool = False
    allow_logprobs: bool = False
    allow_search_indices: bool = False
    allow_view: bool = False
    allow_fine_tuning: bool = False
    organization: str = "*"
    group: str | None = None
    is_blocking: bool = False


class Model(_Response):
    id: str
    object: str | None = None
    created: int | None = None
    owned_by: str | None = None
    permission: list[ModelPermission] | None = None


class ModelList(_Response):
    object: str = "list"
    data: list[Model]


class ErrorBody(BaseModel):
    message: str = ""
    type: str | None = None
    param: str | None = None
    code: str | int | None = None


class ErrorEnvelope(BaseModel):
    error: ErrorBody


class CompletionRequest(BaseModel):
    """Frozen request body produced by a completion builder at send time."""

    model_config = ConfigDict(frozen=True)

    model: str
    prompt: str | list[str] | None = None
    suffix: str | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, gt=0.0, le=1.0)
    n: int | None = Field(default=None, ge=1)
    stream: bool | None = None
    logprobs: int | None = Field(default=None, ge=0, le=5)
    echo: bool | None = None
    stop: str | list[str] | None = None
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    best_of: int | None = Field(default=None, ge=1)
    logit_bias: dict[str, int] | None = None
    user: str | None = None

    @model_validator(mode="after")
    def _validate_best_of(self) -> "CompletionRequest":
        if self.best_of is not None and self.n is not None and self.best_of < self.n:
            raise ValueError("best_of must be greater than or equal to n.")
        if self.stream and self.best_of is not None and self.best_of > 1:
            raise ValueError("best_of results cannot be streamed.")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class EditRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str
    instruction: str = Field(min_length=1)
    input: str | None = None
    n: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, gt=0.0, le=1.0)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ImageRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str | None = None
    n: int | None = Field(default=None, ge=1, le=10)
    size: Literal["256x256", "512x512", "1024x1024"] | None = None
    response_format: Literal["url", "b64_json"] | None = None
    user: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
