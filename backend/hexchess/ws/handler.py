from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from hexchess.auth import decode_token, new_guest
from hexchess.engine.errors import DuelNotFoundError, InvalidMoveError, InvariantViolation
from hexchess.engine.models import DuelId, Player
from hexchess.ws.messages import ClientMessage, ClientMessageType, ServerMessage, ServerMessageType

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(error: str, message: str) -> dict:
    return ServerMessage(type=ServerMessageType.ERROR, error=error, message=message).to_wire()


@router.websocket("/ws/duels/{duel_id}")
async def duel_websocket(
    ws: WebSocket,
    duel_id: str,
    token: str | None = Query(None),
):
    """WebSocket endpoint for playing or watching a duel."""
    # 1. Authenticate, or hand out a guest identity
    player: Player
    if token:
        try:
            player = decode_token(token)
        except HTTPException as e:
            logger.warning(f"Authentication failed: {e.detail}")
            await ws.accept()
            await ws.close(code=4001, reason="Authentication failed")
            return
    else:
        player = new_guest()

    # 2. Duel must exist
    service = ws.app.state.duel_service
    broadcaster = ws.app.state.broadcaster
    try:
        await service.get(DuelId(duel_id))
    except DuelNotFoundError:
        logger.warning(f"Duel {duel_id} not found")
        await ws.accept()
        await ws.close(code=4004, reason="Duel not found")
        return

    # 3. Subscribe, then take a seat if one is free
    await ws.accept()
    await broadcaster.subscribe(duel_id, ws)

    try:
        await service.join(DuelId(duel_id), player)

        # 4. Message loop
        while True:
            text = await ws.receive_text()

            try:
                client_msg = ClientMessage.model_validate_json(text)
            except ValidationError as e:
                logger.warning(f"Invalid message format: {e}")
                await ws.send_json(_error("InvalidMessage", "Malformed message"))
                continue

            try:
                if client_msg.type == ClientMessageType.MOVE:
                    if client_msg.move is None:
                        await ws.send_json(_error("InvalidMessage", "MOVE requires a move"))
                        continue
                    await service.make_move(DuelId(duel_id), player, client_msg.move)

                elif client_msg.type == ClientMessageType.FORFEIT:
                    await service.forfeit(DuelId(duel_id), player)

            except InvalidMoveError as e:
                logger.info(f"Rejected {client_msg.type.value} from {player.id} in duel {duel_id}: {e.message}")
                await ws.send_json(_error(type(e).__name__, e.message))
            except DuelNotFoundError as e:
                await ws.send_json(_error(type(e).__name__, str(e)))
            except InvariantViolation as e:
                logger.error(f"Invariant violated in duel {duel_id}: {e.message}", exc_info=True)
                await ws.send_json(_error("InternalError", "An internal error occurred"))
            except Exception as e:
                logger.error(f"Error handling message in duel {duel_id}: {e}", exc_info=True)
                await ws.send_json(_error("InternalError", "An internal error occurred"))

    except WebSocketDisconnect:
        logger.info(f"Player {player.id} disconnected from duel {duel_id}")
    finally:
        await broadcaster.unsubscribe(duel_id, ws)
