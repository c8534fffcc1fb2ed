import base64
import binascii
import logging
import os
from typing import Any, Dict
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response

from .audio import IngestLimits, MediaIngestor
from .audio.types import ConversionRequest, MediaInput
from .errors import DecodeError, MediaTooLarge, RenderError, UnsupportedMediaType
from .formats import TargetFormat, format_duration, parse_bitrate
from .pipeline import ConversionPipeline
from .settings import settings as runtime_settings


app = FastAPI()
logger = logging.getLogger(__name__)

converter_cfg = runtime_settings.converter

media_ingestor = MediaIngestor(limits=IngestLimits(max_bytes=converter_cfg.max_bytes))

try:
    pipeline = ConversionPipeline.from_settings(converter_cfg)
except Exception:  # pragma: no cover - fallback to soundfile + WAV only if config invalid
    logger.exception("convert.pipeline_init_failed")
    pipeline = ConversionPipeline()


async def _prepare_request(body: Dict[str, Any]) -> ConversionRequest:
    raw_media = body.get("media")
    if not isinstance(raw_media, str) or not raw_media.strip():
        raise HTTPException(status_code=400, detail="media required")

    content_type = str(body.get("contentType") or "application/octet-stream")
    filename_value = body.get("filename")
    filename = str(filename_value).strip() if isinstance(filename_value, str) and filename_value.strip() else None

    try:
        target = TargetFormat.parse(str(body.get("targetFormat") or converter_cfg.default_format))
    except ValueError:
        raise HTTPException(status_code=400, detail="unknown target format")

    try:
        bitrate_kbps = parse_bitrate(body.get("bitrate"))
    except ValueError:
        raise HTTPException(status_code=400, detail="unsupported bitrate")

    try:
        media_bytes = base64.b64decode(raw_media, validate=True)
    except (binascii.Error, TypeError):
        raise HTTPException(status_code=400, detail="invalid media encoding")

    media: MediaInput = await media_ingestor.from_bytes(
        data=media_bytes,
        content_type=content_type,
        filename=filename,
    )
    return ConversionRequest(input=media, target_format=target, bitrate_kbps=bitrate_kbps)


@app.get("/health")
async def health() -> Dict[str, Any]:
    encoder = pipeline.selector.encoder
    return {
        "status": "ok",
        "service": "audio-extract",
        "decoder": pipeline.decoder.backend.name,
        "encoder": encoder.name if encoder is not None else None,
        "max_bytes": converter_cfg.max_bytes,
    }


@app.post("/convert")
async def convert(request: Request) -> Response:
    try:
        body = await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="invalid json")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="invalid json")

    try:
        conversion = await _prepare_request(body)
    except MediaTooLarge as exc:
        raise HTTPException(status_code=413, detail="media payload too large") from exc
    except UnsupportedMediaType as exc:
        raise HTTPException(status_code=415, detail="unsupported media type") from exc

    try:
        result = await pipeline.convert(conversion)
    except DecodeError as exc:
        raise HTTPException(status_code=422, detail=exc.user_message) from exc
    except RenderError as exc:
        raise HTTPException(status_code=500, detail="conversion failed") from exc

    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.suggested_filename)}",
        "X-Suggested-Filename": quote(result.suggested_filename),
    }
    if result.duration_seconds is not None:
        headers["X-Audio-Duration"] = format_duration(result.duration_seconds)
    if result.warning:
        headers["X-Conversion-Warning"] = result.warning
    return Response(content=result.blob, media_type=result.mime_type, headers=headers)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, runtime_settings.service.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run("audio_extract.app:app", host="0.0.0.0", port=int(os.getenv("PORT", str(runtime_settings.service.port))), reload=False)
