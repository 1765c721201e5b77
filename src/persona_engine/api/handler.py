"""
Request/response entry point of the persona engine.

Transport is left to the caller: ``ChatHandler.handle`` takes the request
method and the decoded JSON body and returns a status code with a JSON-ready
body.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..core.errors import MessageValidationError
from ..core.models import utcnow
from ..data.persona import APOLOGY_REPLY, TOO_LONG_REPLY, VALIDATION_REPLY
from ..engine import ConversationService
from ..utils.logging import StageLogger

MAX_MESSAGE_LENGTH = 1000


class ChatRequest(BaseModel):
    """Validated body of a chat request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, strict=True)

    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    user_id: str = Field(..., min_length=1)
    chat_id: str = Field(..., min_length=1)
    action: Optional[Literal["chat"]] = None

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message is blank")
        return value


@dataclass
class HandlerResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def parse_request(body: Any) -> ChatRequest:
    """Validate a raw request body.

    Args:
        body: Decoded JSON body

    Returns:
        The validated request

    Raises:
        MessageValidationError: If the body is unusable
    """
    if not isinstance(body, dict):
        raise MessageValidationError("Request body must be an object", field="body")

    try:
        return ChatRequest.model_validate(body)
    except ValidationError as exc:
        error = exc.errors()[0]
        name = str(error["loc"][0]) if error["loc"] else "body"
        if name == "action":
            raise MessageValidationError("Invalid action", field=name) from exc
        if name == "message" and error["type"] == "string_too_long":
            raise MessageValidationError(
                f"Message exceeds {MAX_MESSAGE_LENGTH} characters",
                field=name,
                code="too_long",
            ) from exc
        if name == "message":
            raise MessageValidationError("Message is required", field=name) from exc
        raise MessageValidationError(f"{name} is required", field=name) from exc


class ChatHandler:
    """Maps chat requests onto the conversation service."""

    def __init__(self, service: ConversationService):
        self.service = service
        self.logger = StageLogger("handler", service.config.log_level)

    async def handle(self, method: str, body: Any) -> HandlerResponse:
        """Answer one chat request.

        Args:
            method: HTTP method of the request
            body: Decoded JSON body

        Returns:
            Status code and response body
        """
        if str(method or "").upper() != "POST":
            return HandlerResponse(405, {"error": "Method not allowed"})

        try:
            request = parse_request(body)
        except MessageValidationError as exc:
            self.logger.info(f"Rejected request: {exc}")
            reply = TOO_LONG_REPLY if exc.code == "too_long" else VALIDATION_REPLY
            return HandlerResponse(400, {"error": str(exc), "response": reply})

        try:
            outcome = await self.service.respond(
                request.user_id, request.chat_id, request.message
            )
        except Exception:
            self.logger.exception("Unhandled error while answering chat request")
            return HandlerResponse(
                500,
                {
                    "error": "Internal server error",
                    "response": APOLOGY_REPLY,
                    "metadata": {
                        "topic": "error",
                        "sentiment": "neutral",
                        "timestamp": utcnow().isoformat(),
                    },
                },
            )

        return HandlerResponse(
            200,
            {
                "response": outcome.response,
                "metadata": outcome.metadata.model_dump(by_alias=True, mode="json"),
            },
        )
