import time
import asyncio
import logging
from typing import Dict, Any, List, Optional

from langchain_ollama import ChatOllama
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from core.errors import AnalysisUnavailable

logger = logging.getLogger(__name__)


def message_text(content: Any) -> str:
    """
    Flatten a chat message's content to plain text.
    LangChain content is either a string or a list of str / {"type": "text"} parts.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return ""


class OllamaClient:
    """
    LangChain-based Ollama client used as the impact analysis service.

    One attempt per call, bounded by the client's own timeout. Every
    failure surfaces as AnalysisUnavailable so callers can fall back
    without knowing LangChain's error types.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.1,
        timeout: float = 10.0,
        num_ctx: int = 4096,
    ):
        # ChatOllama uses Ollama's native API, not OpenAI-compatible /v1 endpoint
        if base_url.endswith("/v1"):
            base_url = base_url[:-3]
        elif base_url.endswith("/v1/"):
            base_url = base_url[:-4]

        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout

        self.llm = ChatOllama(
            base_url=self.base_url,
            model=model,
            temperature=temperature,
            num_ctx=num_ctx,
        )

    async def _invoke(self, messages: List[BaseMessage]) -> Any:
        try:
            return await asyncio.wait_for(
                self.llm.ainvoke(messages),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise AnalysisUnavailable(f"analysis timed out after {self.timeout}s")
        except Exception as e:
            logger.warning(f"Ollama call failed: {e} (base_url={self.base_url}, model={self.model})")
            raise AnalysisUnavailable(f"analysis call failed: {e}") from e

    async def evaluate(self, prompt: str, system: Optional[str] = None) -> Dict[str, Any]:
        """
        Send a prompt and return the response text with metadata.

        Raises:
            AnalysisUnavailable: On timeout or any error from the model server
        """
        messages: List[BaseMessage] = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        start = time.time()
        response = await self._invoke(messages)
        latency_ms = int((time.time() - start) * 1000)

        return {
            "raw": response,
            "content": message_text(getattr(response, "content", None)),
            "latency_ms": latency_ms,
        }
