"""Agent core: session continuity, cancellation, turn queue and watchdog."""
