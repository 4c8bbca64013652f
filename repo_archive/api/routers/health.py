"""Health check endpoints."""

from fastapi import APIRouter, Request

from repo_archive.api.models import HealthCheckResponse
from repo_archive.lib.config_manager import config

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request):
    """Check that the GitHub API is reachable."""
    checks = {"github": await check_github(request)}

    all_ok = all(check["status"] == "ok" for check in checks.values())
    status = "ok" if all_ok else "degraded"

    return HealthCheckResponse(status=status, checks=checks)


async def check_github(request: Request) -> dict:
    """Probe the GitHub API through the shared connection monitor."""
    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        return {"status": "error", "message": "Connection monitor not started"}

    online = await monitor.check()
    if online:
        return {"status": "ok", "message": f"{config.get('GITHUB_API_URL')} reachable"}
    return {"status": "error", "message": f"{config.get('GITHUB_API_URL')} unreachable"}
