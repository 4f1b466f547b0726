# Serves the built single-page app from STATIC_DIR, falling back to index.html for client-side routes.
# Registered last so every API route wins.
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

from .. import config
from ..errors import NotFound

router = APIRouter()


@router.get("/{full_path:path}", include_in_schema=False)
def spa(full_path: str) -> FileResponse:
    if full_path == "api" or full_path.startswith("api/"):
        raise NotFound("Not found")

    root = Path(config.STATIC_DIR).resolve()
    candidate = (root / full_path).resolve()
    # Only files inside the bundle directory are served
    if full_path and candidate.is_file() and root in candidate.parents:
        return FileResponse(candidate)

    index = root / "index.html"
    if not index.is_file():
        raise NotFound("Not found")
    return FileResponse(index)
