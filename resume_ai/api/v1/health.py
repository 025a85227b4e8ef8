from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check(request: Request):
    registry = getattr(request.app.state, "registry", None)
    providers = registry.list_providers() if registry is not None else []
    return {
        "status": "healthy",
        "providers": providers,
        "defaultProvider": registry.get_default_provider_name() if registry is not None else None,
    }
