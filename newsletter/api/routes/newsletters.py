"""
Newsletter publishing endpoint.

Endpoints:
- POST /newsletters - Send an issue to every confirmed subscriber
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from newsletter.adapters.sqlite_db import SQLiteConfirmedSubscriberReader
from newsletter.api.deps import get_confirmed_reader, get_email_sender
from newsletter.api.routes._errors import ErrorResponse, raise_for_outcome
from newsletter.components.broadcast import PublishInput, run_publish
from newsletter.core.ports.email import EmailPort

router = APIRouter()


class IssueContent(BaseModel):
    html: str = Field(..., description="HTML body, sent verbatim")
    text: str = Field(..., description="Plain text body, sent verbatim")


class PublishRequest(BaseModel):
    title: str = Field(..., description="Email subject")
    content: IssueContent


class PublishResponse(BaseModel):
    success: bool
    delivered: int
    skipped: int


@router.post(
    "/newsletters",
    response_model=PublishResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Delivery aborted"},
    },
    summary="Publish a newsletter issue",
    description=(
        "Send the issue to every confirmed subscriber. Stops at the first "
        "delivery failure; subscribers emailed before it are not tracked."
    ),
)
async def publish_newsletter(
    body: PublishRequest,
    reader: SQLiteConfirmedSubscriberReader = Depends(get_confirmed_reader),
    email_sender: EmailPort = Depends(get_email_sender),
) -> PublishResponse:
    result = await run_publish(
        PublishInput(title=body.title, html=body.content.html, text=body.content.text),
        reader,
        email_sender,
    )
    if not result.success:
        raise_for_outcome(result.outcome, result.errors, "Unable to publish newsletter issue")

    return PublishResponse(success=True, delivered=result.delivered, skipped=result.skipped)
