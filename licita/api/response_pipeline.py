import time
import uuid
from typing import Callable
from fastapi import FastAPI, Request, Response

# Шаг конвейера: (ответ, контекст запроса) -> ответ
ResponseDecorator = Callable[[Response, dict], Response]


def add_response_time(response: Response, context: dict) -> Response:
    response.headers["X-Response-Time"] = f"{context['elapsed_ms']:.2f}ms"
    return response


def add_security_headers(response: Response, context: dict) -> Response:
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


def echo_request_id(response: Response, context: dict) -> Response:
    response.headers["X-Request-ID"] = context["request_id"]
    return response


DEFAULT_PIPELINE: tuple[ResponseDecorator, ...] = (
    add_response_time,
    add_security_headers,
    echo_request_id,
)


def apply_pipeline(response: Response, context: dict, pipeline=DEFAULT_PIPELINE) -> Response:
    for step in pipeline:
        response = step(response, context)
    return response


def install_response_pipeline(app: FastAPI, pipeline=DEFAULT_PIPELINE) -> None:
    @app.middleware("http")
    async def decorate_response(request: Request, call_next) -> Response:
        started = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "elapsed_ms": (time.perf_counter() - started) * 1000,
        }
        return apply_pipeline(response, context, pipeline)
