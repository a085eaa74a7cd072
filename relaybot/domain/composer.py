"""Response composition: fold a handler outcome into the reply."""

import html
from typing import Any, Mapping

from relaybot.domain.errors import HandlerError
from relaybot.domain.models import Distribution, NluResult, ResponseMessage

APOLOGY = "Afraid I can't do that boss..."


def new_response(distribution: Distribution, thread_id: str, nlu: NluResult) -> ResponseMessage:
    """Seed the reply with the NLU's default fulfillment speech."""
    return ResponseMessage(
        distribution=distribution,
        thread_id=thread_id,
        text=nlu.speech or "",
    )


def apply_outcome(resp: ResponseMessage, outcome: Any) -> ResponseMessage:
    if isinstance(outcome, str):
        if outcome:
            resp.text = outcome
    elif isinstance(outcome, Mapping):
        try:
            resp.merge(outcome)
        except TypeError as e:
            raise HandlerError(str(e)) from e
    # None / falsy: keep the default speech
    return resp


def apply_failure(resp: ResponseMessage, error: BaseException) -> ResponseMessage:
    detail = str(error) or type(error).__name__
    resp.text = f"{APOLOGY}\n({detail})"
    resp.html = f"{APOLOGY}<br/><pre>{html.escape(detail)}</pre>"
    return resp


def finalize(resp: ResponseMessage, action: str) -> ResponseMessage:
    if not resp.text:
        resp.text = f'I have nothing to do with: "{action}"'
    return resp
