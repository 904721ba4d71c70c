import logging

from fastapi import APIRouter, Depends, Request, Response

from app.core.config import settings
from app.core.errors import EMAIL_REQUIRED_MESSAGE, ValidationAppError
from app.core.rate_limit import enforce_rate_limit, rate_limit_headers
from app.schemas.generate import ErrorResponse, GenerateRequest, GenerateResponse
from app.services.responder import AbstractResponder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Generate"])


def get_responder(request: Request) -> AbstractResponder:
    """Responder built at startup by the app factory."""
    return request.app.state.responder


def require_email_text(payload: GenerateRequest) -> str:
    """Return the email text, rejecting missing or whitespace-only input.

    Raises:
        ValidationAppError: If the email is absent or blank.
    """
    if payload.email is None or not payload.email.strip():
        raise ValidationAppError(code="email_required", message=EMAIL_REQUIRED_MESSAGE)
    return payload.email


@router.options("/generate", include_in_schema=False)
async def generate_preflight() -> Response:
    """Answer pre-flight requests with an empty 200 without touching the limiter."""
    return Response(status_code=200)


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate(
    request: Request,
    response: Response,
    payload: GenerateRequest,
    responder: AbstractResponder = Depends(get_responder),
) -> GenerateResponse:
    """Draft professional, friendly and brief replies to a customer email.

    Input is validated before the rate check, so blank submissions always get
    a 400 and never spend the caller's quota. Failures of the responder are
    left to the global exception handlers, which return the generic 500.
    """
    email_text = require_email_text(payload)
    quota = enforce_rate_limit(request)
    if quota is not None and settings.app.rate_limit_include_headers:
        response.headers.update(rate_limit_headers(quota))

    bundle = await responder.respond(email_text)
    logger.info("generate.completed", extra={"mode": responder.mode})
    return GenerateResponse(responses=bundle)
