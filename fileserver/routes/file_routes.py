"""Serves stored files with the content-type recorded for their path."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from common.logging_config import get_logger
from fileserver.service_locator import get_serving_adapter
from fileserver.serving import ServingAdapter

logger = get_logger(__name__)

router = APIRouter(tags=["Files"])


def require_serving_adapter(adapter: ServingAdapter = Depends(get_serving_adapter)) -> ServingAdapter:
    if adapter is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="File store not started"
        )
    return adapter


@router.get("/{category}/{identifier}")
def get_file(
    category: str,
    identifier: str,
    adapter: ServingAdapter = Depends(require_serving_adapter)
):
    """
    Return the bytes stored at ``<category>/<identifier>``.

    Parameters:
        - category: b, bcat, chunks or c
        - identifier: Transaction id, or SHA-256 hex digest for c

    Returns:
        - File content; Content-Type from the metadata index when recorded,
          otherwise inferred by the server

    Raises:
        - 400: Not a valid logical path
        - 404: Nothing stored at that path
    """
    relative_path = f"{category}/{identifier}"
    path = adapter.resolve(relative_path)
    content_type = adapter.content_type_for(relative_path)
    logger.debug(f"PATH: {relative_path} content_type={content_type}")
    return FileResponse(path, media_type=content_type)
