"""Shared building blocks for the cliptime service: models, repositories, math."""
