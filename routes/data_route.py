"""FastAPI routes for named JSON documents and app metadata."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from controllers.data_controller import app_info, list_data_files, load_data_file, save_data_file

router = APIRouter(prefix="/api", tags=["data"])


@router.get("/data")
async def list_data_route(request: Request):
	try:
		return await list_data_files(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/data/{filename}")
async def get_data_route(request: Request, filename: str):
	try:
		return await load_data_file(request, filename)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/data/{filename}")
async def post_data_route(request: Request, filename: str, payload: Any = Body(...)):
	try:
		return await save_data_file(request, filename, payload)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/info")
async def info_route(request: Request):
	return await app_info(request)


@router.get("/health")
async def health_route():
	return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
