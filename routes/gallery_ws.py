"""WebSocket endpoint carrying gallery UI intents."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from dal.data_file_dal import DataFileDAL
from services.collection_store import CollectionStore
from services.gallery_session import GallerySessionHandler

router = APIRouter()


def _require_store(websocket: WebSocket) -> CollectionStore:
	store = getattr(websocket.app.state, "store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Screenshot store unavailable")
	return store


@router.websocket("/ws/gallery")
async def gallery_socket(websocket: WebSocket, store: CollectionStore = Depends(_require_store)):
	"""Apply gallery intents (edit, remove, search, import, ...) over one websocket."""
	await websocket.accept()
	state = websocket.app.state
	handler = GallerySessionHandler(
		store,
		state.pipeline,
		dialogs=getattr(state, "dialogs", None),
		search_delay=state.config.search_delay,
		websocket=websocket,
		data_files=DataFileDAL(state.storage.data_dir),
	)
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			try:
				payload = json.loads(raw)
			except json.JSONDecodeError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(websocket, payload)
	finally:
		await handler.close()
