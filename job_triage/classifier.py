"""
LLM suitability classifier.

One call per posting. The fixed part of the request (instructions + resume)
always comes first and the posting last, so providers that cache prompt
prefixes can reuse it across the whole run.

Nothing here retries: a failed or invalid answer raises a ClassificationFailed
subclass, the posting stays out of the ledger, and the next run picks it up.
"""

import json
import math
from pathlib import Path
from typing import Any, Dict, List

from openai import OpenAIError

from .errors import ProfileMissing, ResponseValidationError, ServiceError
from .models import MAX_GAPS, MAX_SCORE, MIN_SCORE, STATUSES, ClassificationResult, Record
from .prompts import JOB_ANALYSIS_PROMPT, RESPONSE_SCHEMA


def load_profile(path: Path) -> str:
    """Read the candidate resume. Missing or blank is fatal."""
    path = Path(path)
    if not path.exists():
        raise ProfileMissing(
            f"Resume file not found at: {path}. "
            "Please ensure it exists (set PROFILE_FILE to point elsewhere)."
        )
    content = path.read_text(encoding="utf-8")
    if not content.strip():
        raise ProfileMissing(
            f"Resume file is empty: {path}. Please add your resume content.")
    return content


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ResponseValidationError(f"expected a list of strings, got {type(value).__name__}")
    return [str(x).strip() for x in value if str(x).strip()]


def parse_result(payload: Any) -> ClassificationResult:
    """
    Validate the model's JSON answer.

    status and score are required; score must be a number in [0, 10] and is
    never clamped. Gaps beyond the first five are dropped.
    """
    if not isinstance(payload, dict):
        raise ResponseValidationError("response is not a JSON object")

    status = payload.get("suitability_status")
    if status is None:
        raise ResponseValidationError("missing suitability_status")
    if status not in STATUSES:
        raise ResponseValidationError(f"unknown suitability_status {status!r}")

    score = payload.get("match_score")
    if score is None:
        raise ResponseValidationError("missing match_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ResponseValidationError(f"match_score is not a number: {score!r}")
    try:
        score = float(score)
    except (OverflowError, ValueError) as e:
        raise ResponseValidationError(f"match_score is not a usable number: {e}") from e
    if math.isnan(score) or not (MIN_SCORE <= score <= MAX_SCORE):
        raise ResponseValidationError(f"match_score {score} outside {MIN_SCORE:g}-{MAX_SCORE:g}")

    reasoning = payload.get("reasoning")
    if reasoning is not None:
        reasoning = str(reasoning).strip() or None

    return ClassificationResult(
        status=status,
        score=score,
        gaps=_string_list(payload.get("key_gaps"))[:MAX_GAPS],
        reasoning=reasoning,
        strengths=_string_list(payload.get("key_strengths")),
    )


class Classifier:
    def __init__(
        self,
        client,
        model: str,
        profile: str,
        temperature: float = 0.0,
        max_chars: int = 12000,
        instructions: str = JOB_ANALYSIS_PROMPT,
    ):
        if not (profile or "").strip():
            raise ProfileMissing("Candidate profile is empty.")
        self.client = client
        self.model = model
        self.profile = profile
        self.temperature = temperature
        self.max_chars = max_chars
        self.instructions = instructions

    def build_messages(self, posting_text: str) -> List[Dict[str, str]]:
        posting = (posting_text or "")[: self.max_chars]
        return [
            {"role": "system", "content": self.instructions},
            {
                "role": "user",
                "content": (
                    f"CANDIDATE RESUME:\n{self.profile}\n\n"
                    f"---\n\n"
                    f"JOB POSTING TO ANALYZE:\n{posting}"
                ),
            },
        ]

    def classify(self, record: Record) -> ClassificationResult:
        return self.classify_text(record.as_text())

    def classify_text(self, posting_text: str) -> ClassificationResult:
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=self.build_messages(posting_text),
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "job_suitability",
                        "schema": RESPONSE_SCHEMA,
                    },
                },
            )
        except OpenAIError as e:
            raise ServiceError(f"{type(e).__name__}: {e}") from e

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ResponseValidationError("empty response from model") from e
        if not content:
            raise ResponseValidationError("empty response from model")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ResponseValidationError(f"response is not valid JSON: {e}") from e

        return parse_result(data)
