from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from . import config
from .routes import notes_routes, qa_routes

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Paper Notes API",
    description="Take notes on academic papers and ask questions about them",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For development; restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notes_routes.router)
app.include_router(qa_routes.router)

logger.info(f"Paper Notes API ready (vector backend: {config.VECTOR_BACKEND})")

@app.get("/")
def read_root():
    """Health check"""
    return {
        "status": "ok",
        "vector_backend": config.VECTOR_BACKEND
    }

def main():
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)

# Run the API server when this script is executed directly
if __name__ == "__main__":
    main()
