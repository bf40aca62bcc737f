"""
Scorecard - FastAPI Application

Main entry point for the Balanced Scorecard evidence tracker backend.

Workflow:
- Asignador assigns an Indicator → AssignedIndicator (all methods Pending)
- Responsable uploads evidence per verification method → Submitted
- Jury reviews each method → Approved / Rejected / reopened to Pending
- Overall status is always derived from the method statuses
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import auth_router, evidence_router, assignments_router, indicators_router, notifications_router
from .database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Scorecard",
    description="""
    Scorecard - Balanced Scorecard Evidence Tracker

    Tracks the evidence responsible users submit for the indicators assigned
    to them, and the jury evaluation of that evidence.

    ## Statuses
    - **Pending**: waiting for evidence
    - **Submitted**: evidence uploaded, awaiting review
    - **Approved** / **Rejected**: jury decision
    - **Overdue**: a Pending method past its due date (computed on read, never stored)
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(evidence_router)
app.include_router(assignments_router)
app.include_router(indicators_router)
app.include_router(notifications_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Scorecard",
        "version": "1.0.0",
        "description": "Balanced Scorecard Evidence Tracker",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m scorecard.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
