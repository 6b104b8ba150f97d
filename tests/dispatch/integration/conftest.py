import pytest
from dispatch.api.routes import location_router, order_router, partner_router
from dispatch.exceptions import Unauthorized
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.exception_handler(Unauthorized)
    async def _forbidden(request, exc):
        return JSONResponse(status_code=403, content={"error": exc.messages})

    app.include_router(order_router)
    app.include_router(partner_router)
    app.include_router(location_router)
    return TestClient(app)
