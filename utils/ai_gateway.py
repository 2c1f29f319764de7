"""
Client for the multimodal AI gateway that turns an item photo into structured
inventory attributes.

The gateway speaks the OpenAI-compatible chat completions protocol. Each call
forces the ``extract_item_details`` function so the answer arrives as a single
tool call whose arguments match ``ITEM_DETAILS_SCHEMA``.
"""
import json
import time
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from config.settings import settings
from core.exceptions import GatewayError
from modules.analysis.schemas import ExtractionResult
from modules.inventory.schemas import ITEM_CATEGORIES, ITEM_CONDITIONS, first_error_message

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert at analyzing items for insurance documentation. "
    "Extract detailed information from images of household items."
)

USER_PROMPT = (
    "Analyze this item and provide: name, description, "
    f"category ({', '.join(ITEM_CATEGORIES)}), estimated_value (numeric only), "
    f"condition ({', '.join(ITEM_CONDITIONS)}), brand (if visible), model (if visible), color."
)

EXTRACTION_FUNCTION_NAME = "extract_item_details"

ITEM_DETAILS_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "category": {"type": "string", "enum": list(ITEM_CATEGORIES)},
        "estimated_value": {"type": "number"},
        "condition": {"type": "string", "enum": list(ITEM_CONDITIONS)},
        "brand": {"type": "string"},
        "model": {"type": "string"},
        "color": {"type": "string"},
    },
    "required": ["name", "description", "category", "estimated_value", "condition"],
    "additionalProperties": False,
}

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

class ExtractionGateway:
    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        *,
        timeout: float = 60.0,
        max_retries: int = 2,
        retry_backoff: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.max_retries = max(0, int(max_retries))
        self.retry_backoff = max(0.0, float(retry_backoff))
        self.client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self):
        if not self.is_configured:
            raise GatewayError("AI gateway API key not configured")

    def build_payload(self, image_url: str) -> Dict[str, Any]:
        """Chat completion request for one image with the forced extraction tool"""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                },
            ],
            "tools": [
                {
                    "type": "function",
                    "function": {
                        "name": EXTRACTION_FUNCTION_NAME,
                        "description": "Extract structured details about the item",
                        "parameters": ITEM_DETAILS_SCHEMA,
                    },
                }
            ],
            "tool_choice": {"type": "function", "function": {"name": EXTRACTION_FUNCTION_NAME}},
        }

    def extract(self, image_url: str) -> ExtractionResult:
        """Run the extraction for one image URL; any failure raises GatewayError"""
        self.ensure_configured()
        logger.info(f"Analyzing image: {image_url}")

        response = self._post_with_retries(self.build_payload(image_url))
        try:
            body = response.json()
        except ValueError:
            raise GatewayError("AI analysis returned a non-JSON response")

        result = self.parse_response(body)
        logger.debug(f"Extracted details for {image_url}: {result.model_dump()}")
        return result

    def _post_with_retries(self, payload: Dict[str, Any]) -> httpx.Response:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self.client.post(self.url, json=payload)
            except httpx.TransportError as e:
                logger.warning(f"AI gateway request failed (attempt {attempt}/{attempts}): {e}")
                if attempt == attempts:
                    raise GatewayError("AI analysis failed")
                self._sleep_before_retry(attempt)
                continue

            if response.is_success:
                return response

            logger.error(
                f"AI gateway error (attempt {attempt}/{attempts}): "
                f"{response.status_code} {response.text[:500]}"
            )
            if response.status_code not in RETRYABLE_STATUS_CODES or attempt == attempts:
                raise GatewayError("AI analysis failed")
            self._sleep_before_retry(attempt)

        # Loop always returns or raises
        raise GatewayError("AI analysis failed")

    def _sleep_before_retry(self, attempt: int):
        if self.retry_backoff:
            time.sleep(self.retry_backoff * attempt)

    def parse_response(self, body: Any) -> ExtractionResult:
        """Pull the forced tool call out of a chat completion and validate it"""
        try:
            message = body["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            raise GatewayError("AI analysis returned no choices")

        tool_calls = message.get("tool_calls") or []
        if not tool_calls:
            raise GatewayError("AI analysis returned no structured result")

        arguments = (tool_calls[0].get("function") or {}).get("arguments")
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except json.JSONDecodeError:
                raise GatewayError("AI analysis returned malformed item details")
        if not isinstance(arguments, dict):
            raise GatewayError("AI analysis returned malformed item details")

        try:
            return ExtractionResult.model_validate(arguments)
        except ValidationError as e:
            raise GatewayError(f"AI returned invalid item details: {first_error_message(e.errors())}")

    def close(self):
        self.client.close()

_gateway: Optional[ExtractionGateway] = None

def get_extraction_gateway() -> ExtractionGateway:
    """FastAPI dependency returning the process-wide gateway client"""
    global _gateway
    if _gateway is None:
        config = settings.get_ai_gateway_config()
        _gateway = ExtractionGateway(
            config["url"],
            config["api_key"],
            config["model"],
            timeout=config["timeout"],
            max_retries=config["max_retries"],
            retry_backoff=config["retry_backoff"],
        )
    return _gateway

def close_extraction_gateway():
    global _gateway
    if _gateway is not None:
        _gateway.close()
        _gateway = None
