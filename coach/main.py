"""
FastAPI server exposing the conversational session orchestrator to the app UI.

This module initializes and configures the FastAPI application the mobile coach
screen connects to. Each UI WebSocket on ``/ws`` gets its own orchestrator; the
UI sends actions (start, send, switch mode, load history) and receives state
updates as the agent conversation progresses.
"""

import os
from pathlib import Path

import dotenv
from fastapi import FastAPI, WebSocket

from coach.config.agents import is_unresolved, load_agent_configs
from coach.config.logging_config import configure_logging
from coach.websocket_manager import WebSocketManager

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

# Configure logging
logger = configure_logging()

# Get configuration from environment variables
PORT = int(os.getenv("PORT", "8000"))
HOST = os.getenv("HOST", "0.0.0.0")

app = FastAPI(
    title="Gestalt Coach",
    description="Conversational session orchestrator for the ElevenLabs coach agents",
    version="1.0.0",
)

websocket_manager = WebSocketManager()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for the coach UI.

    Query parameters:
    - persona: Language Coach, Parent Support or Child Mode (default Language Coach)
    - clientId: identifies the app install so saved conversations survive reconnects
    """
    await websocket_manager.handle_websocket(websocket)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information including which personas are fully configured
    """
    configs = load_agent_configs()
    return {
        "status": "healthy",
        "elevenlabs_api_key_configured": not is_unresolved(os.getenv("ELEVENLABS_API_KEY")),
        "personas_configured": {
            persona.value: not is_unresolved(config.agent_id)
            for persona, config in configs.items()
        },
        "active_connections": len(websocket_manager.active_connections),
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": "Gestalt Coach",
        "description": "Conversational session orchestrator for the ElevenLabs coach agents",
        "version": "1.0.0",
        "endpoints": {
            "/ws": "WebSocket endpoint for the coach UI",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT, websocket_ping_interval=5, websocket_ping_timeout=20)
