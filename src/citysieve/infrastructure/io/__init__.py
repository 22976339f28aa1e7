"""IO helpers: HTTP transport, filesystem and inbound validation."""
