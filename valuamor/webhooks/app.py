import json
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from valuamor.interactions.router import InteractionRouter


logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


def load_public_key(public_key: str) -> Ed25519PublicKey:
    return Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key))


def verify_signature(
    key: Ed25519PublicKey, signature: str, timestamp: str, body: bytes
) -> bool:
    try:
        key.verify(bytes.fromhex(signature), timestamp.encode() + body)
    except (InvalidSignature, ValueError):
        return False
    return True


def create_app(router: InteractionRouter, public_key: str) -> FastAPI:
    app = FastAPI()
    verify_key = load_public_key(public_key)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post("/discord/interactions")
    async def interactions(
        request: Request, background_tasks: BackgroundTasks
    ) -> Response:
        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER)
        timestamp = request.headers.get(TIMESTAMP_HEADER)
        if not signature or not timestamp:
            return Response(status_code=401)
        if not verify_signature(verify_key, signature, timestamp, body):
            logger.warning("Rejected interaction with a bad signature")
            return Response(status_code=401)

        try:
            payload = json.loads(body)
        except ValueError:
            return Response(status_code=400)

        result = await router.dispatch(payload)
        if result.background is not None:
            background_tasks.add_task(result.background)
        return JSONResponse(result.response)

    return app
