"""Entry point for the file server: feed intake plus static file serving."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from fileserver import config
from fileserver.routes.feed_routes import router as feed_router
from fileserver.routes.file_routes import router as file_router
from fileserver.service_locator import set_pipeline, set_serving_adapter
from fileserver.serving import ServingAdapter
from store.context import StorageContext
from store.exceptions import InvalidPathError, NeonFSError, StoredFileNotFoundError
from store.ingestion import IngestionPipeline
from store.metadata_index import MetadataIndex

logger = setup_logging('fileserver')

app = FastAPI(
    title="neonfs file server",
    description="Serves files reconstructed from B/BCAT/BCHUNK transactions",
    version="1.0.0"
)


def build_services(context: StorageContext) -> IngestionPipeline:
    """
    Create the storage components for a context and register them for the routes.

    Args:
        context: Storage root and metadata database location

    Returns:
        The registered ingestion pipeline
    """
    context.ensure_layout()
    metadata_index = MetadataIndex(context.database_path)
    pipeline = IngestionPipeline(
        context,
        metadata_index=metadata_index,
        retry_pending=config.RETRY_PENDING_MANIFESTS,
        start_height=config.START_HEIGHT
    )
    set_pipeline(pipeline)
    set_serving_adapter(ServingAdapter(context, metadata_index))
    return pipeline


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    logger.debug(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id
    return response


@app.on_event("startup")
async def startup_event():
    """
    Prepare the storage layout and metadata database.
    """
    logger.info("File server starting up...")
    context = StorageContext.from_paths(config.DATA_PATH, config.DATABASE_PATH)
    pipeline = build_services(context)

    pending = pipeline.pending.count()
    if pending and pipeline.retry_pending:
        logger.info(f"Re-checking {pending} deferred manifest(s)")
        pipeline.retry_all_pending()


@app.exception_handler(InvalidPathError)
async def invalid_path_handler(request: Request, exc: InvalidPathError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid path error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "INVALID_PATH"}
    )


@app.exception_handler(StoredFileNotFoundError)
async def file_not_found_handler(request: Request, exc: StoredFileNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(
        f"File not found: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "FILE_NOT_FOUND"}
    )


@app.exception_handler(NeonFSError)
async def neonfs_exception_handler(request: Request, exc: NeonFSError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


@app.get("/")
async def root():
    """
    Health check endpoint.
    """
    return {"status": "running", "service": "neonfs"}


app.include_router(feed_router)
app.include_router(file_router)


def main() -> None:
    """Run the file server with uvicorn."""
    uvicorn.run(app, host=config.SERVER_HOST, port=config.SERVER_PORT)


if __name__ == "__main__":
    main()
