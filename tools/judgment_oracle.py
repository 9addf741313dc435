"""Hosted judgment oracle used by the confidence validator."""

from __future__ import annotations

import threading
from typing import Optional

import google.generativeai as genai

from curator_app.config import CuratorConfig
from logic.safety import JUDGE_INSTRUCTION


class JudgmentOracle:
    """Answers a free-text prompt; failures surface as exceptions."""

    def judge(self, prompt: str) -> str:
        raise NotImplementedError


class GeminiJudgmentOracle(JudgmentOracle):
    """Judgment calls through a Gemini model constrained to JSON output."""

    def __init__(self, api_key: Optional[str], model: str, timeout_seconds: float = 20.0) -> None:
        self.api_key = api_key
        self.model_name = model
        self.timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._model: Optional[genai.GenerativeModel] = None

    def _get_model(self) -> genai.GenerativeModel:
        with self._lock:
            if self._model is None:
                genai.configure(api_key=self.api_key)
                self._model = genai.GenerativeModel(
                    self.model_name,
                    system_instruction=JUDGE_INSTRUCTION,
                    generation_config={"response_mime_type": "application/json", "temperature": 0},
                )
            return self._model

    def judge(self, prompt: str) -> str:
        response = self._get_model().generate_content(
            prompt, request_options={"timeout": self.timeout_seconds}
        )
        return response.text


def build_judgment_oracle(config: CuratorConfig) -> JudgmentOracle:
    return GeminiJudgmentOracle(
        api_key=config.google_api_key,
        model=config.judge_model,
        timeout_seconds=config.request_timeout_seconds,
    )


__all__ = ["JudgmentOracle", "GeminiJudgmentOracle", "build_judgment_oracle"]
