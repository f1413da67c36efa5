"""Commons package - shared infrastructure clients, settings and telemetry."""
