"""FastAPI routes for the screenshot collection and uploads."""

from typing import Any, List

from fastapi import APIRouter, Body, File, HTTPException, Request, UploadFile

from controllers.screenshot_controller import list_screenshots, save_screenshots, upload_screenshots

router = APIRouter(prefix="/api", tags=["screenshots"])


@router.get("/screenshots")
async def get_screenshots_route(request: Request):
	"""Return `{success, data, count}` for the stored collection."""
	try:
		return await list_screenshots(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/screenshots")
async def post_screenshots_route(request: Request, payload: Any = Body(...)):
	"""Replace the stored collection with the posted array."""
	try:
		return await save_screenshots(request, payload)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/upload")
async def upload_route(request: Request, screenshots: List[UploadFile] = File(...)):
	"""Store up to ten uploaded images and return their asset descriptors."""
	try:
		return await upload_screenshots(request, screenshots)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
