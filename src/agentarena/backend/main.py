"""
Entry point for running the FastAPI backend server.

Usage:
    agentarena-server

Or with uvicorn directly:
    uvicorn agentarena.backend.app:app --reload
"""

import logging
import os

import uvicorn


def main():
    """Run the FastAPI server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "agentarena.backend.app:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "3000")),
        reload=os.environ.get("ARENA_RELOAD") == "1",
        log_level="info",
    )


if __name__ == "__main__":
    main()
