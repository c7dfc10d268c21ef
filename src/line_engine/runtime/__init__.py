"""Runtime services shared by the engine (telemetry, env helpers)."""
