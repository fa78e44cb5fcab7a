"""Schema-constrained extraction calls against an OpenAI-compatible API."""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Optional, Type

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from ..config import Settings
from ..domain.models import AllergenSuggestion, ExtractionContract
from ..errors import ExtractionFailure, SuggestionFailure, ValidationError
from ..logging import get_logger
from .prompts import (
    menu_system_prompt,
    menu_user_prompt,
    suggestion_system_prompt,
    suggestion_user_prompt,
)
from .schemas import ALLERGEN_SUGGESTION_RESPONSE_FORMAT, MENU_PARSE_RESPONSE_FORMAT
from .validator import ContractCheck, validate_menu_payload, validate_suggestion_payload

LOG = get_logger("extraction")

EXTRACTION_TEMPERATURE = 0.1
MIN_PRODUCT_NAME_LENGTH = 2


def build_openai_client(settings: Settings) -> OpenAI:
    """OpenAI client with an explicit transport timeout and no SDK retries."""
    api_key = settings.require_api_key()
    read_timeout = float(settings.openai_timeout)
    http_client = httpx.Client(
        timeout=httpx.Timeout(connect=10.0, read=read_timeout, write=30.0, pool=10.0),
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
    )
    return OpenAI(
        api_key=api_key,
        base_url=settings.openai_base_url,
        http_client=http_client,
        max_retries=0,
    )


def _usage_dict(completion: Any) -> Dict[str, Any]:
    usage = getattr(completion, "usage", None)
    return {k: getattr(usage, k, None) if usage else None for k in ("prompt_tokens", "completion_tokens", "total_tokens")}


def _message_content(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    return getattr(message, "content", None)


def _structured_call(
    client: Any,
    model: str,
    messages: List[Dict[str, Any]],
    response_format: Dict[str, Any],
    *,
    label: str,
    failure: Type[ExtractionFailure] = ExtractionFailure,
) -> Any:
    """Run one chat completion and return the decoded JSON payload.

    Transport errors, HTTP errors, empty content and invalid JSON all become
    :class:`ExtractionFailure`; nothing is retried.
    """
    t0 = time.perf_counter()
    try:
        completion = client.chat.completions.create(
            model=model,
            temperature=EXTRACTION_TEMPERATURE,
            response_format=response_format,
            messages=messages,
        )
    except (APIConnectionError, APITimeoutError) as exc:
        LOG.error("Network/timeout while calling %s (model=%s): %s", label, model, exc)
        raise failure(f"{label}: transport error: {exc}") from exc
    except APIStatusError as exc:
        body = getattr(getattr(exc, "response", None), "text", None)
        LOG.error("%s returned HTTP %s. Body preview: %r", label, getattr(exc, "status_code", "?"), (body[:300] if body else None))
        raise failure(f"{label}: HTTP error: {exc}") from exc

    LOG.info(
        "%s finished in %.2fs id=%s usage=%s",
        label,
        time.perf_counter() - t0,
        getattr(completion, "id", None),
        _usage_dict(completion),
    )

    content = _message_content(completion)
    if not content or not content.strip():
        LOG.error("%s returned empty content", label)
        raise failure(f"{label}: empty response")
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        LOG.error("%s output is not valid JSON; first 300 chars: %r", label, content[:300])
        raise failure(f"{label}: invalid JSON: {exc}") from exc


def _require_valid(check: ContractCheck, label: str, failure: Type[ExtractionFailure] = ExtractionFailure) -> Any:
    if not check.ok:
        LOG.error("%s broke its output contract: %s", label, check.summary())
        raise failure(f"{label}: contract violation: {check.summary()}")
    return check.value


class MenuExtractor:
    """Turns free menu text into validated product candidates."""

    def __init__(self, client: Any, model: str) -> None:
        self.client = client
        self.model = model

    def extract(self, text: str) -> ExtractionContract:
        messages = [
            {"role": "system", "content": menu_system_prompt()},
            {"role": "user", "content": menu_user_prompt(text)},
        ]
        LOG.info("Calling menu extraction model='%s' (%d characters)", self.model, len(text))
        payload = _structured_call(self.client, self.model, messages, MENU_PARSE_RESPONSE_FORMAT, label="menu extraction")
        contract: ExtractionContract = _require_valid(validate_menu_payload(payload), "menu extraction")
        LOG.info("Menu extraction returned %d product(s), %d warning(s)", len(contract.products), len(contract.warnings))
        return contract


class AllergenSuggester:
    def __init__(self, client: Any, model: str) -> None:
        self.client = client
        self.model = model

    def suggest(self, product_name: str) -> AllergenSuggestion:
        name = (product_name or "").strip()
        if len(name) < MIN_PRODUCT_NAME_LENGTH:
            raise ValidationError("Bitte einen gültigen Produktnamen senden.")
        messages = [
            {"role": "system", "content": suggestion_system_prompt()},
            {"role": "user", "content": suggestion_user_prompt(name)},
        ]
        payload = _structured_call(
            self.client,
            self.model,
            messages,
            ALLERGEN_SUGGESTION_RESPONSE_FORMAT,
            label="allergen suggestion",
            failure=SuggestionFailure,
        )
        # The validator already drops repeated codes.
        return _require_valid(validate_suggestion_payload(payload), "allergen suggestion", SuggestionFailure)
