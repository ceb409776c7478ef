# backend/eventvote/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

# rate limiting
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from eventvote.core.errors import VotingError
from eventvote.core.limits import limiter
from eventvote.core.logger import app_logger as logger
from eventvote.core.settings import get_settings
from eventvote.db import database_state, init_db
from eventvote.security.passwords import AdminSecret
from eventvote.security.pii import PiiCipher
from eventvote.security.tokens import InMemoryTokenStore
from eventvote.voting import RevoteThrottle

# ---- Default security headers ----
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "frame-ancestors 'none'; "
        "object-src 'none'; "
        "base-uri 'self'; "
        "form-action 'self'"
    ),
}
# NOTE: HSTS only takes effect when served over HTTPS (enable at your reverse proxy in prod)
STRICT_TRANSPORT_SECURITY = "max-age=31536000; includeSubDomains"

settings = get_settings()
ALLOWED_ORIGINS = settings.allowed_origins


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"Database ready: {database_state()}")
    yield


app = FastAPI(title="Event Vote Backend", lifespan=lifespan)

# Collaborators the routers pull through request.app.state; tests may swap them.
app.state.token_store = InMemoryTokenStore()
app.state.admin_secret = AdminSecret(settings.admin_password, settings.password_pepper)
app.state.pii_cipher = PiiCipher(settings.pii_key)
app.state.throttle = RevoteThrottle(settings.revote_window_seconds)

if not app.state.admin_secret.configured:
    logger.warning("ADMIN_PASSWORD is not set; admin login is disabled")
if not app.state.pii_cipher.enabled:
    logger.warning("PII_KEY is not set; voter IP addresses are stored unencrypted")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = JSONResponse(
        status_code=429,
        content={"message": "Too many requests. Try again later."},
    )
    for header, value in (getattr(exc, "headers", {}) or {}).items():
        response.headers.setdefault(header, value)
    return response


@app.exception_handler(VotingError)
def _voting_error_handler(request: Request, exc: VotingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=exc.headers())


@app.exception_handler(RequestValidationError)
def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request data"
    if errors:
        message = str(errors[0].get("msg", message)).removeprefix("Value error, ")
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Server error"})


# ---- JSON body enforcement ----
def _has_body(request: Request) -> bool:
    raw = request.headers.get("content-length")
    if raw is None:
        return "transfer-encoding" in request.headers
    try:
        return int(raw) > 0
    except ValueError:
        # Unparseable length: assume a body so the content type is still enforced.
        return True


@app.middleware("http")
async def require_json_body(request: Request, call_next):
    # Bodies on POST/PATCH must be JSON; bodiless admin actions (reset, toggle) pass through.
    if request.method in ("POST", "PATCH"):
        content_type = request.headers.get("content-type", "")
        if _has_body(request) and not content_type.lower().startswith("application/json"):
            return JSONResponse(
                status_code=415,
                content={"message": "Unsupported Media Type. Must be application/json"},
            )

    response: Response = await call_next(request)
    return response


# ---- Security headers middleware ----
# Registered after require_json_body so it wraps it and 415s carry the headers too.
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    # HSTS (effective only when behind HTTPS)
    response.headers.setdefault("Strict-Transport-Security", STRICT_TRANSPORT_SECURITY)
    return response


# Outermost: preflights and early 415s still get CORS headers.
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "content-type", "x-requested-with"],
    max_age=3600,
)


@app.get("/health")
def health():
    return {"status": "ok", "database": database_state()}


from eventvote.routers import admin, public  # noqa: E402

app.include_router(public.router)
app.include_router(admin.router)
