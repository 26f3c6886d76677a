"""Commons package - settings, telemetry and storage adapters shared by all layers."""
