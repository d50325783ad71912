"""Inbound transports: HTTP API and gRPC server."""
