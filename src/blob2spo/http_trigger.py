# -*- coding: utf-8 -*-
"""
HTTP trigger for running transfers as an Azure Functions custom handler.

Exposes POST /api/HttpTriggerCopyBlob2SPO. The Functions host forwards the
request to this app on FUNCTIONS_CUSTOMHANDLER_PORT.
"""

import os
import traceback
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from .config import Config
from .errors import Blob2SpoError
from .transfer import copy_blob_to_spo
from .utils import is_debug_enabled

MAX_BODY_BYTES = 16 * 1024
DEFAULT_PORT = 3000


class CopyBlobRequest(BaseModel):
    tenant_id: str
    client_id: str
    client_secret: str
    share_point_domain: str
    share_point_site: str
    share_point_path: str
    account: str
    container: str
    blob_name: str


def error_response(message, status_code=500):
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


app = FastAPI(
    title="Blob to SharePoint copy trigger",
    description="Copies an Azure Storage blob into a SharePoint Online document library",
    version="1.0.0"
)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Reject oversized bodies from the headers, before the body is read."""
    if request.method == "POST":
        content_length = request.headers.get("content-length")
        if content_length is None:
            return error_response("Content-Length header is required", status_code=411)
        if not content_length.isdigit():
            return error_response("Content-Length header is invalid", status_code=400)
        if int(content_length) > MAX_BODY_BYTES:
            return error_response(f"Request body exceeds {MAX_BODY_BYTES} bytes", status_code=413)
    return await call_next(request)


@app.post("/api/HttpTriggerCopyBlob2SPO")
def copy_blob_trigger(payload: CopyBlobRequest):
    """Run one transfer; 200 with {} on success, 500 with {"error": {"message"}} on failure."""
    try:
        config = Config.from_mapping(payload.model_dump())
        session = copy_blob_to_spo(config)
    except Blob2SpoError as e:
        print(f"[Error] Transfer of {payload.blob_name} failed: {e}")
        return error_response(str(e))
    except Exception as e:
        print(f"[Error] Unexpected failure copying {payload.blob_name}: {e}")
        if is_debug_enabled():
            print(f"[DEBUG] Traceback: {traceback.format_exc()}")
        return error_response(f"Unexpected error: {e}")

    if is_debug_enabled():
        print(f"[✓] Copied {session.source_id} ({session.cumulative_offset:,} bytes)")
    return {}


def serve():
    """Run the trigger app on the Functions custom handler port."""
    import uvicorn

    port_value = os.environ.get("FUNCTIONS_CUSTOMHANDLER_PORT")
    try:
        port = int(port_value) if port_value else DEFAULT_PORT
    except ValueError:
        raise SystemExit(f"Custom Handler port is not a number: {port_value!r}")

    uvicorn.run(app, host="127.0.0.1", port=port)


if __name__ == "__main__":
    serve()
