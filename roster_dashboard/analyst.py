"""Question answering over a roster sample through the OpenAI API.

Failures never propagate: every public call returns either the model's
answer or a fixed apology string.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

try:
    from openai import OpenAI
except ImportError:  # pragma: no cover - handled at runtime
    OpenAI = None  # type: ignore[assignment]

from .app_logging import get_logger
from .config import (
    ANALYSIS_FALLBACK_MESSAGE,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_SAMPLE_ROWS,
    QUESTION_FALLBACK_MESSAGE,
)

logger = get_logger()

OPENAI_API_BASE_URL = os.environ.get("OPENAI_API_BASE", "https://api.openai.com/v1")
OPENAI_HTTP_TIMEOUT = 120
SYSTEM_PROMPT = "You are a data analyst reviewing a personnel roster."

ANALYSIS_PROMPT = """I am analyzing a CSV file named "{source}".

Here are the headers:
{headers}

Here is a sample of the data (first {count} rows):
{sample}

Please provide a concise but insightful analysis of this dataset.
1. Identify what kind of data this is.
2. Suggest 3 interesting questions one might ask this data.
3. Point out any potential data quality issues visible in the sample (missing values, inconsistent formats), if any.

Format the response in clean Markdown."""

QUESTION_PROMPT = """Context: A CSV dataset with headers: {headers}.
Sample Data:
{sample}

User Question: "{question}"

Answer the question based on the provided sample data and the inferred structure of the file.
Keep the answer short and direct."""


def format_sample(rows: Sequence[Mapping[str, str]], limit: int) -> str:
    return "\n".join(json.dumps(dict(row), ensure_ascii=False) for row in list(rows)[:limit])


def extract_response_text(response: Any) -> str:
    def _get(obj: Any, key: str, default: Any = None) -> Any:
        if isinstance(obj, dict):
            return obj.get(key, default)
        return getattr(obj, key, default)

    text_output = _get(response, "output_text")
    if text_output:
        if isinstance(text_output, (list, tuple)):
            combined = "\n".join(str(part).strip() for part in text_output if part).strip()
        else:
            combined = str(text_output).strip()
        if combined:
            return combined

    collected: List[str] = []
    for item in _get(response, "output", []) or []:
        for content in _get(item, "content", []) or []:
            if _get(content, "type") == "output_text":
                collected.append(str(_get(content, "text", "")))
    combined = "\n".join(part.strip() for part in collected if part).strip()
    if combined:
        return combined

    for choice in _get(response, "choices", []) or []:
        content = _get(_get(choice, "message"), "content")
        if isinstance(content, str) and content.strip():
            return content.strip()

    raise ValueError("OpenAI response did not contain any text output")


class RosterAnalyst:
    """Thin client that sends bounded roster samples to an OpenAI model."""

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_OPENAI_MODEL,
        sample_rows: int = DEFAULT_SAMPLE_ROWS,
    ) -> None:
        self.api_key = (api_key or os.environ.get("OPENAI_API_KEY", "")).strip()
        self.model = model.strip() or DEFAULT_OPENAI_MODEL
        self.sample_rows = sample_rows if sample_rows > 0 else DEFAULT_SAMPLE_ROWS
        self._client: Optional[Any] = None

    def analyze(
        self, source: str, headers: Sequence[str], rows: Sequence[Mapping[str, str]]
    ) -> str:
        sample = list(rows)[: self.sample_rows]
        prompt = ANALYSIS_PROMPT.format(
            source=source,
            headers=", ".join(headers),
            count=len(sample),
            sample=format_sample(sample, self.sample_rows),
        )
        try:
            return self.complete(prompt)
        except Exception:
            logger.exception("Roster analysis failed")
            return ANALYSIS_FALLBACK_MESSAGE

    def ask(
        self, question: str, headers: Sequence[str], rows: Sequence[Mapping[str, str]]
    ) -> str:
        if not question.strip():
            return ""
        prompt = QUESTION_PROMPT.format(
            headers=", ".join(headers),
            sample=format_sample(rows, self.sample_rows),
            question=question,
        )
        try:
            return self.complete(prompt)
        except Exception:
            logger.exception("Roster question failed")
            return QUESTION_FALLBACK_MESSAGE

    def complete(self, prompt: str) -> str:
        """Send ``prompt`` to the model and return its text; raises on failure."""

        if not self.api_key:
            raise ValueError("No OpenAI API key configured")

        client = self._sdk_client()
        logger.info("Submitting roster prompt (model=%s, characters=%s)", self.model, len(prompt))
        if client is not None:
            response = client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": [{"type": "input_text", "text": prompt}]},
                ],
            )
        else:
            response = self._http_request(
                "responses",
                {
                    "model": self.model,
                    "input": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": [{"type": "input_text", "text": prompt}]},
                    ],
                },
            )
        return extract_response_text(response)

    def _sdk_client(self) -> Optional[Any]:
        if OpenAI is None:
            return None
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self.api_key)
            except TypeError as exc:
                if "proxies" not in str(exc).lower():
                    raise
                logger.warning(
                    "OpenAI SDK initialization failed due to incompatible proxy arguments; "
                    "falling back to direct HTTP requests."
                )
                return None
        return self._client

    def _http_request(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{OPENAI_API_BASE_URL.rstrip('/')}/{endpoint.lstrip('/')}"
        response = requests.post(
            url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=OPENAI_HTTP_TIMEOUT,
        )
        if response.status_code >= 400:
            try:
                error_detail: Any = response.json()
            except ValueError:
                error_detail = response.text
            raise RuntimeError(
                f"OpenAI request to '{endpoint}' failed with status {response.status_code}: {error_detail}"
            )
        try:
            return response.json()
        except ValueError as exc:  # pragma: no cover - network response issue
            raise RuntimeError(f"OpenAI response for '{endpoint}' was not valid JSON") from exc
