"""Adapters that turn raw market data payloads into engine inputs."""
