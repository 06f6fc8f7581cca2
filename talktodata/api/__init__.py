"""FastAPI application for TalkToData."""
