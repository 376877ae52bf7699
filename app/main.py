from urllib.parse import urlparse

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.exception_handlers import register_exception_handlers
from app.api.v1.router import api_router
from app.core.config import settings
from app.services.session import apply_cookie_writes

app = FastAPI()

if settings.frontend_url:
    parsed = urlparse(settings.frontend_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def persistent_login_cookies(request: Request, call_next):
    """Write the remember-me cookies queued by the SessionManager during this request."""
    response = await call_next(request)
    apply_cookie_writes(request, response)
    return response


# Signed, browser-session lifetime cookie holding the login session.
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie_name,
    max_age=None,
    same_site="lax",
    https_only=settings.secure_cookies,
)

register_exception_handlers(app)
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "ok"}
