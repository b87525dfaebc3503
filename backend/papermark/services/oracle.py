"""
Grading oracle client - sends a structured request to Gemini and returns the
raw JSON text of its answer.

Any object with an async ``invoke(parts, schema_name, schema) -> str`` method
can stand in for the oracle; GeminiOracle is the production one.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import google.generativeai as genai
import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import UpstreamError
from ..utils import guess_image_mime_type

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Gemini takes an OpenAPI-style subset: upper-case type names and no
    additionalProperties. Closedness is enforced again when parsing.
    """
    converted = copy.deepcopy(schema)

    def _walk(node: Dict[str, Any]):
        node.pop("additionalProperties", None)
        if isinstance(node.get("type"), str):
            node["type"] = node["type"].upper()
        for child in node.get("properties", {}).values():
            _walk(child)
        if isinstance(node.get("items"), dict):
            _walk(node["items"])

    _walk(converted)
    return converted


def parse_oracle_response(text: Optional[str], payload_model: Type[PayloadT]) -> PayloadT:
    """
    Parse the oracle's text as a strict structured payload.

    Raises:
        UpstreamError: Empty text, invalid JSON or any schema violation
    """
    if not text or not text.strip():
        raise UpstreamError("No response from AI grading")
    try:
        return payload_model.model_validate_json(text)
    except PydanticValidationError as e:
        logger.warning(f"Oracle response rejected ({payload_model.__name__}): {e}")
        raise UpstreamError(
            f"AI response did not match the expected format ({e.error_count()} problem(s))"
        ) from e


class GeminiOracle:
    """Vision + PDF grading oracle backed by google-generativeai."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        timeout: float = 180,
        temperature: float = 0.0,
        max_output_tokens: int = 32768,
        max_concurrency: int = 5,
        fetch_timeout: float = 30,
        http_client: Optional[httpx.AsyncClient] = None,
        model: Any = None
    ):
        if api_key:
            genai.configure(api_key=api_key)
        self.model_name = model_name
        self.model = model or genai.GenerativeModel(model_name)
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.semaphore = asyncio.Semaphore(max_concurrency)
        self.http = http_client or httpx.AsyncClient(timeout=fetch_timeout, follow_redirects=True)

    async def aclose(self):
        await self.http.aclose()

    async def _fetch(self, url: str) -> bytes:
        try:
            response = await self.http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamError(f"Could not fetch {url}: {e}") from e
        return response.content

    async def build_content(self, parts: List[Dict[str, Any]]) -> List[Any]:
        """Dereference image/document references into inline Gemini parts."""
        content: List[Any] = []
        for part in parts:
            kind = part["type"]
            if kind == "text":
                content.append(part["text"])
            elif kind == "image_url":
                url = part["image_url"]["url"]
                content.append({"mime_type": guess_image_mime_type(url), "data": await self._fetch(url)})
            elif kind == "file_url":
                ref = part["file_url"]
                content.append({"mime_type": ref["mime_type"], "data": await self._fetch(ref["url"])})
            else:
                raise ValueError(f"Unknown request part type: {kind}")
        return content

    async def invoke(self, parts: List[Dict[str, Any]], schema_name: str, schema: Dict[str, Any]) -> str:
        """
        Run one structured request. Returns the response text, unparsed.

        Raises:
            UpstreamError: Fetch failure, SDK error or timeout
        """
        content = await self.build_content(parts)
        generation_config = genai.types.GenerationConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
            response_schema=to_gemini_schema(schema)
        )

        logger.info(f"⏳ Oracle call {schema_name} ({len(content)} parts) on {self.model_name}")
        async with self.semaphore:
            try:
                response = await asyncio.wait_for(
                    asyncio.to_thread(
                        lambda: self.model.generate_content(content, generation_config=generation_config)
                    ),
                    timeout=self.timeout
                )
                text = response.text
            except asyncio.TimeoutError as e:
                raise UpstreamError(f"AI grading timed out after {self.timeout} seconds") from e
            except Exception as e:
                logger.error(f"Oracle call {schema_name} failed: {e}", exc_info=True)
                raise UpstreamError(f"AI service error: {e}") from e

        logger.info(f"✅ Oracle call {schema_name} returned {len(text or '')} chars")
        return text
