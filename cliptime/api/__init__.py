"""FastAPI application for cliptime webhooks and cron endpoints."""
