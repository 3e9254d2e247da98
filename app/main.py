from typing import Annotated, Optional

from fastapi import FastAPI, HTTPException, Path, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, StrictStr
import logging
import uvicorn
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config import CORS_ORIGINS, PORT, RATE_LIMIT, RATE_LIMIT_ENABLED
from database import init_db_engine, dispose_db_engine, SchemaError, StoreError
import post_service
import project_service

# Initialize the API App
app = FastAPI(
    title="Project Journal API",
    description="Personal projects and their dated posts, stored in SQLite",
    version="1.0.0"
)
logger = logging.getLogger("uvicorn")

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate Limiter
limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Error mapping
async def schema_error_handler(request: Request, exc: SchemaError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

app.add_exception_handler(SchemaError, schema_error_handler)
app.add_exception_handler(StoreError, store_error_handler)


# Lifecycle Events
@app.on_event("startup")
async def startup_event():
    """Open the store and define both tables before serving requests."""
    init_db_engine()
    project_service.define_table()
    post_service.define_table()
    logger.info("Application startup complete")

@app.on_event("shutdown")
async def shutdown_event():
    """Release resources during shutdown."""
    dispose_db_engine()
    logger.info("Clean shutdown complete")


# SQLite INTEGER is a signed 64-bit value
MAX_ROW_ID = 2**63 - 1
ProjectId = Annotated[int, Path(ge=1, le=MAX_ROW_ID, description="Project id")]
PostId = Annotated[int, Path(ge=1, le=MAX_ROW_ID, description="Post id")]


# Request models
class ProjectRequest(BaseModel):
    title: StrictStr = Field(..., description="Project title")
    description: StrictStr = Field(..., description="Short description")
    dateCreated: StrictStr = Field(..., description="Date the project started")
    dateEnded: Optional[StrictStr] = Field(default=None, description="Date the project ended")


class PostRequest(BaseModel):
    title: StrictStr = Field(..., description="Post title")
    content: Optional[StrictStr] = Field(default=None, description="Post body")


# Health Check Endpoint
@app.get("/")
@limiter.limit(RATE_LIMIT)
async def health_check(request: Request):
    return {"status": "healthy", "service": "project-journal", "version": "1.0.0"}


# Projects
@app.get("/api/projects")
@limiter.limit(RATE_LIMIT)
async def list_projects(request: Request):
    return project_service.get_all_projects()


@app.post("/api/projects")
@limiter.limit(RATE_LIMIT)
async def create_project(request: Request, body: ProjectRequest):
    project_service.add_project(body.title, body.description, body.dateCreated, body.dateEnded)
    logger.info(f"Added project '{body.title}'")
    return {}


@app.post("/api/projects/{project_id}/update")
@limiter.limit(RATE_LIMIT)
async def update_project(request: Request, project_id: ProjectId, body: ProjectRequest):
    updated = project_service.update_project(
        project_id, body.title, body.description, body.dateCreated, body.dateEnded
    )
    if updated == 0:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return {}


@app.get("/api/projects/{project_id}")
@limiter.limit(RATE_LIMIT)
async def get_project(request: Request, project_id: ProjectId):
    project = project_service.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return project


@app.delete("/api/projects/{project_id}")
@limiter.limit(RATE_LIMIT)
async def delete_project(request: Request, project_id: ProjectId):
    project_service.delete_project(project_id)
    logger.info(f"Deleted project {project_id} and its posts")
    return {}


# Posts
@app.get("/api/projects/{project_id}/posts")
@limiter.limit(RATE_LIMIT)
async def list_posts(request: Request, project_id: ProjectId):
    return post_service.get_all_posts_for_project(project_id)


@app.post("/api/projects/{project_id}/posts")
@limiter.limit(RATE_LIMIT)
async def create_post(request: Request, project_id: ProjectId, body: PostRequest):
    if not project_service.does_project_exist(project_id):
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    post_service.add_post_to_project(project_id, body.title, body.content)
    return {}


@app.post("/api/projects/{project_id}/posts/{post_id}")
@limiter.limit(RATE_LIMIT)
async def update_post(request: Request, project_id: ProjectId, post_id: PostId, body: PostRequest):
    if post_service.get_post_by_id(project_id, post_id) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Post {post_id} not found in project {project_id}"
        )
    post_service.update_post(project_id, post_id, body.title, body.content)
    return {}


@app.get("/api/projects/{project_id}/posts/{post_id}")
@limiter.limit(RATE_LIMIT)
async def get_post(request: Request, project_id: ProjectId, post_id: PostId):
    post = post_service.get_post_by_id(project_id, post_id)
    if post is None:
        raise HTTPException(
            status_code=404,
            detail=f"Post {post_id} not found in project {project_id}"
        )
    return post


@app.delete("/api/projects/{project_id}/posts/{post_id}")
@limiter.limit(RATE_LIMIT)
async def delete_post(request: Request, project_id: ProjectId, post_id: PostId):
    post_service.remove_project_post_by_id(project_id, post_id)
    return {}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
