# llm/client.py
import os
import logging
from typing import Dict, List, Optional

from ollama import Client

from common.errors import ExternalServiceError

logger = logging.getLogger(__name__)

# ---- Config (env overridable) ----
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")
CHAT_MODEL = os.getenv("CHAT_MODEL", "llama3.1")
MODEL_TIMEOUT = float(os.getenv("MODEL_TIMEOUT", "30"))

# Fixed generation parameters, not per-call tunables
GENERATION_OPTIONS = {
    "temperature": 0.7,
    "top_p": 0.95,
    "top_k": 40,
    "num_predict": 1024,   # max output tokens
}


class OllamaChatModel:
    def __init__(
        self,
        host: str = OLLAMA_HOST,
        model: str = CHAT_MODEL,
        timeout: float = MODEL_TIMEOUT,
        client: Optional[Client] = None,
    ):
        self.model = model
        # timeout is forwarded to the underlying httpx client
        self.client = client or Client(host=host, timeout=timeout)

    def generate(self, turns: List[Dict[str, str]]) -> str:
        logger.debug(f"Calling {self.model} with {len(turns)} turns")
        try:
            resp = self.client.chat(
                model=self.model,
                messages=turns,
                options=GENERATION_OPTIONS,
                stream=False,
            )
            answer = ((resp.get("message") or {}).get("content") or "").strip()
        except Exception as e:
            raise ExternalServiceError(
                f"Model call failed: {type(e).__name__}",
                details={"model": self.model, "original_error": str(e)},
            ) from e

        if not answer:
            raise ExternalServiceError("Empty response from model", details={"model": self.model})
        return answer
