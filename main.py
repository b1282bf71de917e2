from __future__ import annotations

import enum
import logging
import os
import random
from functools import partial
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from optimize_utils import (
    DEFAULT_TIMEOUT_SECONDS,
    SERVICE_DEFAULT_MODELS,
    SERVICE_KEY_NAMES,
    OptimizeError,
    generate_optimized_prompt,
    normalize_service,
    optimize_with_fallback,
)
from prompt_builder import (
    apply_quick_starter,
    build_prompt,
    build_prompt_document,
    export_prompt_json,
    fields_to_form,
    randomize_fields,
)
from prompts_lib import (
    ARTISTS,
    ASPECT_RATIOS,
    CAMERA_LENSES,
    COMPOSITIONS,
    DEFAULT_NEGATIVE,
    LIGHTING,
    MATERIALS,
    MODEL_USAGE_TIPS,
    MOODS,
    PLANS,
    QUALITY_TIERS,
    QUICK_STARTERS,
    REVIEWS,
    STYLE_PRESETS,
)
from schemas import BuildResponse, PromptFieldsIn, QuickStarterRequest, SendResponse

load_dotenv()

BASE_DIR = Path(__file__).parent
ENV_PATH = BASE_DIR / ".env"
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"
EXPORT_FILENAME = "prompt.json"
OPTIMIZE_PATH = "/api/optimize"

logger = logging.getLogger("prompt_workshop")


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_env_file() -> tuple[dict[str, str], bool]:
    if not ENV_PATH.exists():
        return {}, False
    values: dict[str, str] = {}
    for line in ENV_PATH.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        values[key.strip()] = value.strip()
    return values, True


def update_env_file(updates: dict[str, str]) -> None:
    existing_lines = []
    if ENV_PATH.exists():
        existing_lines = ENV_PATH.read_text().splitlines()

    remaining = {key: value for key, value in updates.items()}
    output_lines = []
    for line in existing_lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            output_lines.append(line)
            continue
        key, _ = stripped.split("=", 1)
        key = key.strip()
        if key in remaining:
            value = remaining.pop(key)
            if value:
                output_lines.append(f"{key}={value}")
            continue
        output_lines.append(line)

    for key, value in remaining.items():
        if value:
            output_lines.append(f"{key}={value}")

    if output_lines:
        ENV_PATH.write_text("\n".join(output_lines).strip() + "\n")


def _clean_env_value(value: str) -> str:
    cleaned = value.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in {"'", '"'}:
        return cleaned[1:-1]
    return cleaned


def _setting(name: str, env_values: dict[str, str], default: str = "") -> str:
    # blank entries in .env (as in .env.example) defer to the process environment
    value = _clean_env_value(env_values.get(name) or "")
    if not value:
        value = _clean_env_value(os.environ.get(name) or "")
    return value or default


def _resolve_service_key(service: str, env_values: dict[str, str]) -> str:
    return _setting(SERVICE_KEY_NAMES[normalize_service(service)], env_values)


def _resolve_timeout(env_values: dict[str, str]) -> float:
    raw = _setting("OPTIMIZE_TIMEOUT", env_values)
    try:
        return float(raw) if raw else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        logger.warning("Ignoring invalid OPTIMIZE_TIMEOUT=%r", raw)
        return DEFAULT_TIMEOUT_SECONDS


def optimizer_settings() -> Dict[str, Any]:
    env_values, _ = load_env_file()
    service = normalize_service(_setting("OPTIMIZE_SERVICE", env_values))
    return {
        "service": service,
        "key_name": SERVICE_KEY_NAMES[service],
        "api_key": _resolve_service_key(service, env_values),
        "model": _setting("OPTIMIZE_MODEL", env_values) or SERVICE_DEFAULT_MODELS[service],
        "timeout": _resolve_timeout(env_values),
    }


class Route(enum.Enum):
    HOME = "/"
    PRICING = "/pricing"

    @classmethod
    def from_path(cls, path: str) -> "Route":
        cleaned = (path or "").lstrip("#").rstrip("/") or "/"
        if cleaned == cls.PRICING.value:
            return cls.PRICING
        return cls.HOME


ROUTE_PAGES = {
    Route.HOME: "index.html",
    Route.PRICING: "pricing.html",
}


def page_for_route(route: Route) -> str:
    return ROUTE_PAGES[route]


def catalog() -> Dict[str, Any]:
    return {
        "style_presets": STYLE_PRESETS,
        "artists": ARTISTS,
        "lenses": CAMERA_LENSES,
        "lighting": LIGHTING,
        "compositions": COMPOSITIONS,
        "materials": MATERIALS,
        "moods": MOODS,
        "aspect_ratios": ASPECT_RATIOS,
        "quality_tiers": QUALITY_TIERS,
        "default_negative": DEFAULT_NEGATIVE,
        "quick_starters": QUICK_STARTERS,
    }


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


configure_logging()

app = FastAPI(title="Prompt Workshop")
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Response:
    # verbs the optimize route does not list still get its error body
    if exc.status_code == 405 and request.url.path == OPTIMIZE_PATH:
        return _error(405, "Method not allowed")
    return await http_exception_handler(request, exc)


def _render(request: Request, route: Route, context: Optional[Dict[str, Any]] = None) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        page_for_route(route),
        {
            "route": route.name.lower(),
            **(context or {}),
        },
    )


@app.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    return _render(
        request,
        Route.HOME,
        {
            "catalog": catalog(),
            "reviews": REVIEWS,
            "usage_tips": MODEL_USAGE_TIPS,
        },
    )


@app.get("/pricing", response_class=HTMLResponse)
async def pricing(request: Request) -> HTMLResponse:
    return _render(request, Route.PRICING, {"plans": PLANS})


@app.post("/settings")
async def update_settings(request: Request) -> JSONResponse:
    form = await request.form()
    service = normalize_service(str(form.get("service") or "openai"))
    api_key = str(form.get("api_key") or "").strip()

    updates = {SERVICE_KEY_NAMES[service]: api_key, "OPTIMIZE_SERVICE": service}
    update_env_file(updates)
    for key, value in updates.items():
        if value:
            os.environ[key] = value
    logger.info("Updated optimizer settings for service %s", service)
    return JSONResponse({"status": "ok"})


@app.get("/api/catalog")
async def get_catalog() -> JSONResponse:
    return JSONResponse(catalog())


@app.post("/api/build", response_model=BuildResponse)
async def build(payload: PromptFieldsIn) -> BuildResponse:
    fields = payload.to_fields()
    return BuildResponse(
        prompt=build_prompt(fields),
        negative=fields.negative,
        document=build_prompt_document(fields),
    )


@app.post("/api/export")
async def export(payload: PromptFieldsIn) -> Response:
    return Response(
        content=export_prompt_json(payload.to_fields()),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@app.post("/api/surprise")
async def surprise(payload: PromptFieldsIn) -> JSONResponse:
    fields = randomize_fields(payload.to_fields(), random.Random())
    return JSONResponse({"fields": fields_to_form(fields), "prompt": build_prompt(fields)})


@app.post("/api/quick-starter")
async def quick_starter(payload: QuickStarterRequest) -> JSONResponse:
    try:
        fields = apply_quick_starter(payload.fields.to_fields(), payload.title)
    except KeyError:
        return _error(404, f"Unknown quick starter: {payload.title}")
    return JSONResponse({"fields": fields_to_form(fields), "prompt": build_prompt(fields)})


@app.api_route(OPTIMIZE_PATH, methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def optimize(request: Request) -> JSONResponse:
    if request.method != "POST":
        return _error(405, "Method not allowed")

    settings = optimizer_settings()
    if not settings["api_key"]:
        logger.error("Optimize request rejected: %s is not configured", settings["key_name"])
        return _error(500, f"Missing {settings['key_name']}")

    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    idea = body.get("idea")
    if not idea or not isinstance(idea, str):
        return _error(400, "Missing 'idea' (string)")

    try:
        prompt = await run_in_threadpool(
            generate_optimized_prompt,
            idea,
            body.get("fields"),
            settings["api_key"],
            service=settings["service"],
            model=settings["model"],
            timeout=settings["timeout"],
        )
    except OptimizeError as exc:
        return _error(500, exc.detail)

    return JSONResponse({"prompt": prompt})


@app.post("/api/send", response_model=SendResponse)
async def send(payload: PromptFieldsIn) -> SendResponse:
    fields = payload.to_fields()
    settings = optimizer_settings()

    optimizer = None
    if settings["api_key"]:
        optimizer = partial(
            generate_optimized_prompt,
            api_key=settings["api_key"],
            service=settings["service"],
            model=settings["model"],
            timeout=settings["timeout"],
        )
    else:
        logger.error("%s is not configured, optimizer disabled", settings["key_name"])

    prompt, source = await run_in_threadpool(optimize_with_fallback, fields, optimizer)
    return SendResponse(prompt=prompt, negative=fields.negative, source=source)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=int(os.environ.get("PORT", "8000")))
