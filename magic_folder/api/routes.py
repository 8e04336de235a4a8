"""API routes for indexing and search."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from magic_folder.logging_config import get_logger
from magic_folder.pipeline.models import ProcessOutcome, SearchHit
from magic_folder.pipeline.query import DEFAULT_TOP_K
from magic_folder.services import MagicFolder

logger = get_logger(__name__)


router = APIRouter(tags=["Files"])


class ProcessFileRequest(BaseModel):
    """Request body for file processing."""

    file_path: str = Field(description="Path of the file to index")


class ProcessFileResponse(BaseModel):
    """Response from file processing."""

    message: str = Field(description="Outcome summary")
    file_id: int | None = Field(default=None, description="Catalog id")
    vector_id: str | None = Field(default=None, description="Vector index key")


class SearchRequest(BaseModel):
    """Request body for search."""

    query: str = Field(description="Text to search for")
    top_k: int = Field(default=DEFAULT_TOP_K, ge=0, description="Number of results")


class SearchResponseFile(BaseModel):
    """One search result."""

    path: str = Field(description="Matching file path")
    score: float = Field(description="Distance to the query (lower is closer)")


def get_services(request: Request) -> MagicFolder:
    """Resolve the running services, or answer 503 when not configured."""
    services: MagicFolder | None = getattr(request.app.state, "services", None)
    if services is None:
        logger.warning("Services not configured - rejecting request")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "Services not configured",
                "message": "The pipeline requires the embedding service and both stores",
            },
        )
    return services


@router.post("/process_file", response_model=ProcessFileResponse)
async def process_file_endpoint(
    request: ProcessFileRequest,
    services: MagicFolder = Depends(get_services),
) -> ProcessFileResponse:
    """Index one file."""
    outcome = await services.indexing.process(request.file_path)
    return outcome_to_response(outcome)


@router.post("/search", response_model=list[SearchResponseFile])
async def search_endpoint(
    request: SearchRequest,
    services: MagicFolder = Depends(get_services),
) -> list[SearchResponseFile]:
    """Search indexed files."""
    hits = await services.query.search(request.query, request.top_k)
    return [hit_to_response(hit) for hit in hits]


def outcome_to_response(outcome: ProcessOutcome) -> ProcessFileResponse:
    """Convert a pipeline outcome to the API response."""
    return ProcessFileResponse(
        message=outcome.message,
        file_id=outcome.id,
        vector_id=outcome.vector_key,
    )


def hit_to_response(hit: SearchHit) -> SearchResponseFile:
    """Convert a search hit to the API response."""
    return SearchResponseFile(path=hit.path, score=hit.score)
