from __future__ import annotations
from typing import Optional, Sequence
import json
import logging

import httpx

from .config import ModelConfig
from .context import PromptContext
from .errors import CognitorError
from .extract import ExtractionError, extract
from .utils import redact, render, truncate

PLAN_INSTRUCTIONS = """You are a command line assistant that acts on the user's machine.
Based on the instruction and context below, write a step-by-step plan to achieve the goal.
Reply ONLY with plan steps in the following notation, one step after another:

THOUGHT <one line explaining your approach>          (optional)
CREATE_FILE path=<file path>
<file content, written literally, any number of lines>
END
RUN_COMMAND command=<shell command line>
ASK_USER question=<question for the user>

Rules:
- Only the tags THOUGHT, CREATE_FILE, RUN_COMMAND and ASK_USER exist.
- Every CREATE_FILE block must be closed by a line containing only END.
- Steps run in the order written; a later step may rely on an earlier one.
- If nothing needs to be done, reply with no steps at all.
- Do not add explanations outside THOUGHT lines.
"""

class ModelError(CognitorError):
    """Failure to obtain an answer from the configured backend."""

class ModelTransportError(ModelError):
    pass

class ModelHttpError(ModelError):
    def __init__(self, model: str, status: int, body_snippet: str):
        self.status = status
        self.body_snippet = body_snippet
        super().__init__(
            f"LLM API request failed for model '{model}' with status: {status}. Response: {body_snippet}"
        )

class ModelInvalidJson(ModelError):
    pass

class ModelExtractionError(ModelError):
    def __init__(self, model: str, err: ExtractionError):
        self.reason = err.reason
        self.path = err.path
        super().__init__(f"Could not extract the answer for model '{model}': {err}")

def build_request(model: ModelConfig, prompt: str) -> tuple[str, dict[str, str], str]:
    """Render url, headers and body for one completion call."""
    key = model.secret()
    ident = model.model_identifier or ""
    # values land inside JSON string literals of the body template
    body = render(model.request_format, {
        "prompt": json.dumps(prompt, ensure_ascii=False)[1:-1],
        "model": json.dumps(ident, ensure_ascii=False)[1:-1],
    })
    url = render(model.api_url, {"api_key": key or "", "model": ident})
    headers = {"Content-Type": "application/json"}
    if key:
        if model.api_key_header:
            name, _, value = model.api_key_header.partition(":")
            headers[name.strip()] = render(value.strip(), {"api_key": key})
        else:
            headers["Authorization"] = f"Bearer {key}"
    return url, headers, body

class LLM:
    """
    Backend-agnostic completion client.
    Request and response shapes come entirely from the ModelConfig templates.
    """
    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 120.0):
        self.client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def complete(self, model: ModelConfig, prompt: str) -> str:
        key = model.secret()
        url, headers, body = build_request(model, prompt)
        logging.debug("POST completion request for model '%s' (%d bytes)", model.name, len(body))
        try:
            r = self.client.post(url, content=body.encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            msg = redact(f"Failed to send request for model '{model.name}': {e}", key)
            raise ModelTransportError(msg) from None
        if not r.is_success:
            raise ModelHttpError(model.name, r.status_code, redact(truncate(r.text), key))
        try:
            data = r.json()
        except ValueError:
            raise ModelInvalidJson(
                f"Failed to parse LLM response as JSON. Raw response: {redact(truncate(r.text), key)}"
            ) from None
        try:
            return extract(data, model.response_json_path)
        except ExtractionError as e:
            raise ModelExtractionError(model.name, e) from None

    def ask(self, model: ModelConfig, question: str, context: PromptContext = PromptContext(),
            history: Sequence[str] = ()) -> str:
        prompt = f"Question: {question}\n"
        if context:
            prompt += f"\nContext: {context.render()}\n"
        if history:
            prompt += "\nConversation History:\n" + "\n".join(history) + "\n"
        return self.complete(model, prompt)

    def ask_for_plan(self, model: ModelConfig, instruction: str, context: PromptContext = PromptContext()) -> str:
        """Ask for a plan in the step notation; the caller parses the raw reply."""
        prompt = (
            f"{PLAN_INSTRUCTIONS}\n"
            f"Instruction: {instruction}\n\n"
            f"Context: {context.render() if context else 'No context provided.'}\n"
        )
        return self.complete(model, prompt)
