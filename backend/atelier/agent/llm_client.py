import json
import logging
import re
from typing import Any, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from atelier.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

UserContent = str | list[dict[str, Any]]


def _extract_fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _extract_balanced_object(text: str) -> str | None:
    """Best-effort extraction of the first balanced top-level JSON object."""
    start_idx = text.find("{")
    if start_idx == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start_idx, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def _structured_text_candidates(raw_text: str) -> list[str]:
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates = [_extract_fenced_block(text), text, _extract_balanced_object(text)]

    # Deduplicate while preserving order.
    unique: list[str] = []
    for candidate in candidates:
        c = (candidate or "").strip()
        if c and c not in unique:
            unique.append(c)
    return unique


def image_content(instruction: str, image_url: str) -> list[dict[str, Any]]:
    """User message parts carrying a text instruction plus one image (URL or data URI)."""
    return [
        {"type": "text", "text": instruction},
        {"type": "image_url", "image_url": {"url": image_url}},
    ]


class LLMClient:
    """Provider-agnostic LLM client for structured generation using the OpenAI API spec."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        max_attempts: int | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT
        self.max_attempts = max(1, max_attempts or settings.LLM_MAX_ATTEMPTS)

        # Use LLM_API_KEY or fallback to GEMINI_API_KEY if only that one is configured
        resolved_api_key = api_key or settings.LLM_API_KEY or settings.GEMINI_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
        )

    def _chat_completion_kwargs(self, *, temperature: float | None) -> dict:
        model_name = (self.model_name or "").lower()
        # GPT-5 family rejects non-default temperature values in some OpenAI endpoints.
        if model_name.startswith("gpt-5") or temperature is None:
            return {}
        return {"temperature": temperature}

    def _parse(self, text_response: str, response_schema: type[T]) -> T:
        parse_candidates = _structured_text_candidates(text_response)
        if not parse_candidates:
            raise ValueError("Model returned empty content for structured response")
        parse_errors: list[str] = []
        for candidate in parse_candidates:
            try:
                return response_schema.model_validate(json.loads(candidate, strict=False))
            except (json.JSONDecodeError, ValidationError, ValueError) as candidate_error:
                parse_errors.append(str(candidate_error))
        raise ValueError(
            "Unable to parse structured response: " + " | ".join(parse_errors[:3])
        )

    async def generate_structured(
        self, system_prompt: str, user_prompt: UserContent, response_schema: type[T]
    ) -> T:
        """
        Generate a structured response matching the provided Pydantic schema.
        The schema requirement is injected into the system prompt; `user_prompt`
        may be plain text or a list of content parts (text + image).
        """
        schema_json = json.dumps(response_schema.model_json_schema())

        augmented_system_prompt = (
            f"{system_prompt}\n\n"
            "CRITICAL: You must respond in ONLY valid JSON format matching the following JSON Schema. "
            "Do not include markdown code blocks (```json) or any conversational text around the JSON.\n\n"
            f"EXPECTED SCHEMA:\n{schema_json}"
        )
        retry_system_prompt = (
            f"{augmented_system_prompt}\n\n"
            "RETRY INSTRUCTIONS: Your previous response was invalid or incomplete. "
            "Return ONLY a single JSON object matching the schema."
        )

        for attempt_idx in range(1, self.max_attempts + 1):
            system_prompt_attempt = augmented_system_prompt if attempt_idx == 1 else retry_system_prompt
            logger.info(
                "Issuing structured request to model %s (attempt %s/%s)...",
                self.model_name,
                attempt_idx,
                self.max_attempts,
            )
            try:
                response = await self.client.chat.completions.create(
                    model=self.model_name,
                    messages=[
                        {"role": "system", "content": system_prompt_attempt},
                        {"role": "user", "content": user_prompt},
                    ],
                    **self._chat_completion_kwargs(
                        temperature=0 if attempt_idx > 1 else 0.4
                    ),
                )
            except Exception as e:
                logger.error("Error calling LLM provider %s: %s", self.model_name, e)
                raise

            if not getattr(response, "choices", None):
                logger.error("Received no choices from %s: %s", self.model_name, response)
                raise ValueError(
                    f"Provider {self.model_name} returned no output. Try again or change model."
                )

            text_response = response.choices[0].message.content or ""
            try:
                parsed = self._parse(text_response, response_schema)
            except ValueError as e:
                if attempt_idx < self.max_attempts:
                    logger.warning(
                        "Structured parsing failed for %s on attempt %s/%s: %s. Retrying...",
                        self.model_name,
                        attempt_idx,
                        self.max_attempts,
                        e,
                    )
                    continue
                logger.error("Error parsing structured LLM response from %s: %s", self.model_name, e)
                raise

            logger.info(
                "Successfully received structured response from %s (attempt %s).",
                self.model_name,
                attempt_idx,
            )
            return parsed

        raise RuntimeError("Structured generation failed without a captured error")
