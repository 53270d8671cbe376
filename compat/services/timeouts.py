from __future__ import annotations

# Image build (pulls the upstream proxy image on a cold cache)
DOCKER_BUILD_TIMEOUT_SECONDS = 30 * 60.0

# Compose lifecycle (up/stop/rm/down)
COMPOSE_TIMEOUT_SECONDS = 10 * 60.0

# One-shot commands inside running services (probe inject/observe, spire-server CLI)
COMPOSE_EXEC_TIMEOUT_SECONDS = 60.0

# Identity server readiness after `up`
IDENTITY_READY_ATTEMPTS = 30
IDENTITY_READY_DELAY_SECONDS = 1.0
