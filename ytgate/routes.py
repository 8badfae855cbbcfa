from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from . import __version__
from .gateway import Gateway
from .models import RenditionSelector

router = APIRouter(prefix="/api", tags=["YouTube"])
health_router = APIRouter(tags=["Health"])


class InfoRequest(BaseModel):
    url: Optional[str] = None


class DownloadRequest(BaseModel):
    url: Optional[str] = None
    type: Optional[str] = "video"
    format: Optional[str] = None


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


async def _download(gateway: Gateway, url: Optional[str], type: Optional[str],
                    format: Optional[str]):
    selector = RenditionSelector.from_request(type, format)
    download = await gateway.download(url, selector)
    return StreamingResponse(
        download.body,
        media_type=download.content_type,
        headers=download.headers,
    )


@router.get("")
async def api_root():
    """API Information"""
    return {
        "api_name": "YouTube Downloader API",
        "version": __version__,
        "endpoints": {
            "/api/info": "Get video information (title, author, thumbnail, formats)",
            "/api/download": "Stream the video or audio file",
            "/health": "Health check",
        },
        "usage": "GET /api/download?url=YOUTUBE_URL&type=video|audio&format=FORMAT_ID",
    }


@router.get("/info")
async def video_info(
    url: Optional[str] = Query(None, description="YouTube URL or Video ID"),
    gateway: Gateway = Depends(get_gateway),
):
    """Get video information without downloading"""
    return await gateway.get_info(url)


@router.post("/info")
async def video_info_post(
    payload: Optional[InfoRequest] = None,
    gateway: Gateway = Depends(get_gateway),
):
    return await gateway.get_info(payload.url if payload else None)


@router.get("/download")
async def download_media(
    url: Optional[str] = Query(None, description="YouTube URL or Video ID"),
    type: Optional[str] = Query("video", description="Type: video or audio"),
    format: Optional[str] = Query(None, description="Explicit format/itag id"),
    gateway: Gateway = Depends(get_gateway),
):
    """Stream the requested video or audio to the caller"""
    return await _download(gateway, url, type, format)


@router.post("/download")
async def download_media_post(
    payload: Optional[DownloadRequest] = None,
    gateway: Gateway = Depends(get_gateway),
):
    payload = payload or DownloadRequest()
    return await _download(gateway, payload.url, payload.type, payload.format)


@health_router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}
