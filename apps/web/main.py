"""FastAPI web application for libbump."""

from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from libbump.errors import AppError, ErrorKind
from libbump.models import DependencyKind
from libbump.upgrade import upgrade_manifest_content

app = FastAPI(
    title="libbump",
    description="Upgrade a library version in package.json content",
    version="0.1.0",
)

STATUS_BY_KIND = {
    ErrorKind.INVALID_VERSION_FORMAT: 400,
    ErrorKind.INVALID_MANIFEST: 400,
    ErrorKind.MISSING_REQUIRED_INPUT: 400,
    ErrorKind.LIBRARY_USAGE_NOT_FOUND: 404,
    ErrorKind.FILE_NOT_FOUND: 404,
    ErrorKind.MAYBE_LIBRARY_DOWNGRADE: 409,
}


class UpgradeRequest(BaseModel):
    """Request model for upgrading a library."""
    content: str
    library: str
    version: str
    dependency_kinds: Optional[list[DependencyKind]] = None


class UpgradeResponse(BaseModel):
    """Response model for a library upgrade."""
    original_content: str
    updated_content: str
    changes: list[dict]
    has_changes: bool


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/upgrade", response_model=UpgradeResponse)
async def upgrade_library(request: UpgradeRequest):
    """Upgrade a library in package.json content."""
    if not request.content.strip():
        raise HTTPException(status_code=400, detail="No content provided")

    try:
        result = upgrade_manifest_content(
            request.content,
            request.library,
            request.version,
            request.dependency_kinds,
        )
    except AppError as e:
        raise HTTPException(status_code=STATUS_BY_KIND.get(e.kind, 500), detail=e.message)

    changes = [
        {
            "kind": change.kind.value,
            "current_version": change.current_version,
            "new_version": change.new_version,
        }
        for change in result.changes
    ]

    return UpgradeResponse(
        original_content=request.content,
        updated_content=result.content,
        changes=changes,
        has_changes=result.has_changes,
    )


@app.post("/api/upload", response_model=UpgradeResponse)
async def upload_file(
    file: UploadFile = File(...),
    library: str = Form(...),
    version: str = Form(...),
    dependency_kinds: Optional[list[DependencyKind]] = Form(None),
):
    """Upload a package.json file and upgrade a library in it."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    content = await file.read()
    try:
        text_content = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be valid UTF-8 text")

    request = UpgradeRequest(
        content=text_content,
        library=library,
        version=version,
        dependency_kinds=dependency_kinds,
    )
    return await upgrade_library(request)
