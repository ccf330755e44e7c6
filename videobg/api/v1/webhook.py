"""Provider callback endpoint."""

import logging

from fastapi import APIRouter, HTTPException, Request

router = APIRouter()

logger = logging.getLogger(__name__)

# Wired in during lifespan
_receiver = None


def set_receiver(receiver):
    global _receiver
    _receiver = receiver


@router.post("/webhook")
async def receive_webhook(request: Request):
    """Acknowledge a provider callback.

    Always answers 200 once the receiver is wired, whatever the body holds,
    so the provider does not retry.
    """
    if _receiver is None:
        raise HTTPException(status_code=503, detail="Webhook receiver not ready")

    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook body is not JSON, acknowledging anyway")
        return {"received": False}

    receipt = await _receiver.receive(payload)
    return {"received": receipt.received}
