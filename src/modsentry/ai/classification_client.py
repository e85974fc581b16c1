"""
Classification client for chat messages.

One message, one request: the text and the server's sensitivity tier are
rendered into a prompt, sent to an OpenAI-compatible chat completion endpoint
with JSON output requested, and the reply is parsed into a `Verdict`.

Fail-open: any transport error, timeout or malformed reply yields a
non-violation verdict with confidence 0 and a reasoning string naming the
failure. A broken classifier therefore under-enforces; it never crashes the
pipeline and never produces a false positive.
"""

from __future__ import annotations

import asyncio
import json
from typing import Dict

from openai import AsyncOpenAI

from modsentry.ai.verdict_parsing import VerdictParseError, parse_verdict
from modsentry.configuration.ai_settings import AISettings
from modsentry.datatypes.moderation_datatypes import SensitivityLevel, Verdict
from modsentry.util.logger import get_logger

logger = get_logger("classification_client")

SENSITIVITY_GUIDELINES: Dict[SensitivityLevel, str] = {
    SensitivityLevel.LOW: "Only flag very obvious and severe violations that are clearly harmful.",
    SensitivityLevel.MEDIUM: "Flag moderate violations including toxicity, harassment, spam, and inappropriate content.",
    SensitivityLevel.HIGH: "Flag violations more strictly, including subtle forms of harassment and borderline content.",
    SensitivityLevel.STRICT: "Maximum sensitivity - flag any potentially problematic content, erring on the side of caution.",
}

DEFAULT_PROMPT_TEMPLATE = """You are a content moderation AI for chat communities. Analyze this message for rule violations.

Sensitivity Level: <|SENSITIVITY|>
Guideline: <|GUIDELINE|>

Message to analyze: <|MESSAGE|>

Evaluate if this message violates community guidelines. Consider:
- Toxicity (hostile, rude, disrespectful language)
- Harassment (targeted attacks, bullying)
- Spam (repetitive, promotional, off-topic)
- Inappropriate content (sexual content, graphic violence)
- Hate speech (discrimination, slurs, extremism)

Respond in JSON format:
{
  "isViolation": boolean,
  "violationType": "toxicity" | "harassment" | "spam" | "inappropriate" | "hate_speech" | "none",
  "confidenceScore": number (0-100),
  "reasoning": "brief explanation of why this is or isn't a violation"
}"""

TIMEOUT_REASONING = "Classification timed out"
TRANSPORT_REASONING = "Error analyzing message"
MALFORMED_REASONING = "Malformed classification response"


def build_prompt(text: str, sensitivity: SensitivityLevel, template: str = DEFAULT_PROMPT_TEMPLATE) -> str:
    """Render the classification prompt for one message.

    The message is JSON-quoted so quotes inside it cannot end the quoted block.
    """
    prompt = template.replace("<|SENSITIVITY|>", sensitivity.value.upper())
    prompt = prompt.replace("<|GUIDELINE|>", SENSITIVITY_GUIDELINES[sensitivity])
    return prompt.replace("<|MESSAGE|>", json.dumps(text, ensure_ascii=False))


class ClassificationClient:
    """Classify chat messages through an OpenAI-compatible API."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        request_timeout_seconds: float = 20.0,
        max_completion_tokens: int = 500,
        prompt_template: str | None = None,
    ) -> None:
        self._client = client
        self._model_name = model_name
        self._timeout = request_timeout_seconds
        self._max_completion_tokens = max_completion_tokens
        self._prompt_template = prompt_template or DEFAULT_PROMPT_TEMPLATE

    @classmethod
    def from_settings(cls, ai_settings: AISettings) -> ClassificationClient:
        client = AsyncOpenAI(
            api_key=ai_settings.api_key,
            base_url=ai_settings.base_url,
            timeout=ai_settings.request_timeout_seconds,
        )
        logger.info(
            "[CLASSIFIER] Initialized with base_url=%s, model=%s",
            ai_settings.base_url,
            ai_settings.model_name,
        )
        return cls(
            client,
            model_name=ai_settings.model_name,
            request_timeout_seconds=ai_settings.request_timeout_seconds,
            max_completion_tokens=ai_settings.max_completion_tokens,
            prompt_template=ai_settings.prompt_template,
        )

    async def classify(self, text: str, sensitivity: SensitivityLevel) -> Verdict:
        """
        Classify one message.

        Args:
            text: Message content.
            sensitivity: Strictness tier configured for the server.

        Returns:
            The parsed verdict, or a fail-open verdict if anything went wrong.
        """
        prompt = build_prompt(text, sensitivity, self._prompt_template)

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model_name,
                    messages=[{"role": "user", "content": prompt}],
                    response_format={"type": "json_object"},
                    max_completion_tokens=self._max_completion_tokens,
                ),
                timeout=self._timeout,
            )
        except TimeoutError:
            logger.warning("[CLASSIFIER] Request timed out after %.1fs", self._timeout)
            return Verdict.fail_open(TIMEOUT_REASONING)
        except Exception as exc:
            logger.error("[CLASSIFIER] API request failed: %s", exc)
            return Verdict.fail_open(TRANSPORT_REASONING)

        try:
            response_text = response.choices[0].message.content or "{}"
            verdict = parse_verdict(response_text)
        except (VerdictParseError, IndexError, AttributeError) as exc:
            logger.error("[CLASSIFIER] Could not parse response: %s", exc)
            return Verdict.fail_open(MALFORMED_REASONING)

        logger.debug(
            "[CLASSIFIER] violation=%s type=%s confidence=%d (%s)",
            verdict.is_violation,
            verdict.violation_type,
            verdict.confidence_score,
            sensitivity,
        )
        return verdict
