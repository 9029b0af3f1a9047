from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import quote

from .client import client_scope
from .errors import ConfigurationError
from .schemas import Model, ModelList, parse_as

if TYPE_CHECKING:
    from .client import OpenAIClient

_E = TypeVar("_E", bound="_ModelIdentifier")


class _ModelIdentifier(str, Enum):
    @classmethod
    def from_str(cls: type[_E], identifier: str) -> "_E | str":
        """Map a raw identifier to a known member, passing custom identifiers through."""
        if not isinstance(identifier, str) or not identifier.strip():
            raise ConfigurationError(f"Model identifier must be a non-empty string, got {identifier!r}.")
        try:
            return cls(identifier)
        except ValueError:
            return identifier


class CompletionModel(_ModelIdentifier):
    # Most capable GPT-3 model; longer output and better instruction-following.
    TEXT_DAVINCI_003 = "text-davinci-003"
    TEXT_DAVINCI_002 = "text-davinci-002"
    TEXT_DAVINCI_001 = "text-davinci-001"
    # Faster and cheaper; translation, classification, sentiment.
    TEXT_CURIE_001 = "text-curie-001"
    TEXT_BABBAGE_001 = "text-babbage-001"
    # Fastest and cheapest; parsing, simple classification, keywords.
    TEXT_ADA_001 = "text-ada-001"


class EditModel(_ModelIdentifier):
    TEXT_DAVINCI_EDIT_001 = "text-davinci-edit-001"


def model_name(model: _ModelIdentifier | str, kind: type[_ModelIdentifier]) -> str:
    if isinstance(model, _ModelIdentifier):
        if not isinstance(model, kind):
            raise ConfigurationError(f"{model.value!r} is not a {kind.__name__}.")
        return model.value
    resolved = kind.from_str(model)
    return resolved.value if isinstance(resolved, kind) else resolved


async def list_models(*, client: "OpenAIClient | None" = None) -> list[Model]:
    """Request every model currently available to the API key."""
    async with client_scope(client) as c:
        body = await c.request("models.list", "GET", "/models")
    return list(parse_as(ModelList, body).data)


async def get_model(model_id: str, *, client: "OpenAIClient | None" = None) -> Model:
    if not isinstance(model_id, str) or not model_id:
        raise ConfigurationError("model_id must be a non-empty string.")
    async with client_scope(client) as c:
        body = await c.request("models.get", "GET", f"/models/{quote(model_id, safe='')}")
    return parse_as(Model, body)
