"""
Enrichment service for Stash.

This module handles communication with the hosted Gemini API and runs the two
enrichment agents: per-block analysis and cross-block connections. Both are
advisory: every failure is logged and turned into a fixed fallback result.
"""

import httpx
import json
import time
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from ..models import AnalysisResult, Block, BlockType
from ..database import DatabaseManager
from ..config import config
from .registry import agent_registry


MISSING_KEY_MESSAGE = "Please set your API Key in Settings first."
CONNECTIONS_FAILED_MESSAGE = "Could not generate connections. Check API Key."


def empty_analysis() -> AnalysisResult:
    """Result used when no credential is configured."""
    return AnalysisResult(title="Untitled", summary="", tags=[])


def failed_analysis() -> AnalysisResult:
    """Result used when the backend call or its parsing fails."""
    return AnalysisResult(title="Untitled", summary="Analysis failed or Key invalid.", tags=["error"])


class EnrichmentService:
    """
    Calls the language model to enrich blocks.
    """

    def __init__(self, api_key: str = "", model: Optional[str] = None,
                 endpoint: Optional[str] = None, client: Optional[httpx.AsyncClient] = None,
                 database_manager: Optional[DatabaseManager] = None):
        """
        Initialize the enrichment service.

        Args:
            api_key: Credential for the backend; empty disables network calls
            model: The model name to use (defaults to config value)
            endpoint: The API base URL (defaults to config value)
            client: Optional HTTP client, e.g. one with a mock transport
            database_manager: Optional database manager used to record calls
        """
        self.api_key = api_key
        self.model = model or config.model_name
        self.endpoint = (endpoint or config.ai_endpoint).rstrip("/")
        self._client = client
        self.db = database_manager

    @property
    def client(self) -> httpx.AsyncClient:
        """The HTTP client, opened on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=config.ai_timeout)
        return self._client

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self):
        """Close the HTTP client if one was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    async def _call_gemini(self, prompt: str, response_schema: Optional[Dict[str, Any]] = None,
                           agent_name: str = "unknown") -> str:
        """
        Make a generateContent request and return the response text.

        Args:
            prompt: The user prompt
            response_schema: Optional schema constraining a JSON response
            agent_name: Name of the agent making the call, for the call log

        Returns:
            The model's response text

        Raises:
            Exception: If the request fails or the response has no text
        """
        start_time = time.time()
        success = False
        error_message = None
        raw_response = ""

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}]
        }
        if response_schema:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema
            }

        try:
            response = await self.client.post(
                f"{self.endpoint}/models/{self.model}:generateContent",
                headers={"x-goog-api-key": self.api_key},
                json=payload
            )
            response.raise_for_status()

            raw_response = response.text
            result = response.json()
            parts = result["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
            if not text.strip():
                raise ValueError("empty response")

            success = True
            return text

        except httpx.RequestError as e:
            error_message = f"Failed to connect to Gemini: {e}"
            raise Exception(error_message)
        except httpx.HTTPStatusError as e:
            error_message = f"Gemini request failed: {e}"
            raise Exception(error_message)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            error_message = f"Unexpected Gemini response: {e}"
            raise Exception(error_message)
        finally:
            execution_time_ms = int((time.time() - start_time) * 1000)

            if self.db:
                try:
                    self.db.log_ai_agent_call(
                        agent_name=agent_name,
                        user_prompt=prompt,
                        model_name=self.model,
                        raw_response=raw_response,
                        success=success,
                        error_message=error_message,
                        execution_time_ms=execution_time_ms
                    )
                except Exception as log_error:
                    logging.warning(f"Failed to log AI agent call: {log_error}")

    async def analyze_content(self, content: str, block_type: BlockType = BlockType.TEXT) -> AnalysisResult:
        """
        Suggest a title, summary and tags for one piece of content.

        Content over the configured cap is truncated for the request only.

        Args:
            content: The block payload
            block_type: The payload kind, mentioned in the prompt

        Returns:
            The analysis, or a fixed fallback when there is no credential or
            the call fails
        """
        if not self.has_credential:
            return empty_analysis()

        agent_config = agent_registry.get_agent("analyze")
        if not agent_config:
            raise ValueError("Analyze agent not found in registry")

        limit = config.max_content_chars
        preview = content[:limit] if len(content) > limit else content
        prompt = agent_config.render(block_type=BlockType(block_type).value, content=preview)

        response = ""
        try:
            response = await self._call_gemini(
                prompt=prompt,
                response_schema=agent_config.response_schema,
                agent_name="analyze"
            )

            response = response.strip()

            # Remove any markdown code block formatting if present
            if response.startswith("```json"):
                response = response[7:]
            if response.startswith("```"):
                response = response[3:]
            if response.endswith("```"):
                response = response[:-3]

            result = AnalysisResult.model_validate(json.loads(response.strip()))
            result.tags = [tag.strip().lower() for tag in result.tags if tag.strip()]
            return result

        except (json.JSONDecodeError, ValidationError) as e:
            logging.warning(f"Failed to parse analyze response: {e}")
            logging.warning(f"Raw response: {response}")
            return failed_analysis()

        except Exception as e:
            logging.error(f"Analyze agent failed: {e}")
            return failed_analysis()

    def _format_blocks_for_prompt(self, blocks: List[Block]) -> str:
        """
        Format the leading blocks as short previews.

        Args:
            blocks: Blocks in the order supplied

        Returns:
            One '[title]: preview' entry per block, separated by rules
        """
        limit = config.max_connection_blocks
        preview_chars = config.preview_chars
        return "\n---\n".join(
            f"[{block.title or 'Untitled'}]: {block.content[:preview_chars]}"
            for block in blocks[:limit]
        )

    async def find_connections(self, blocks: List[Block]) -> str:
        """
        Ask the model for a theme linking several blocks.

        Callers are expected to pass at least two blocks.

        Returns:
            The insight text, or a guidance message when there is no
            credential or the call fails
        """
        if not self.has_credential:
            return MISSING_KEY_MESSAGE

        agent_config = agent_registry.get_agent("connections")
        if not agent_config:
            raise ValueError("Connections agent not found in registry")

        prompt = agent_config.render(context=self._format_blocks_for_prompt(blocks))

        try:
            response = await self._call_gemini(prompt=prompt, agent_name="connections")
            return response.strip()
        except Exception as e:
            logging.error(f"Connections agent failed: {e}")
            return CONNECTIONS_FAILED_MESSAGE
