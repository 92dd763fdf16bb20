from fastapi import Response

from licita.api.response_pipeline import (
    DEFAULT_PIPELINE,
    add_response_time,
    add_security_headers,
    apply_pipeline,
    echo_request_id,
)

CONTEXT = {"request_id": "req-42", "method": "GET", "path": "/v1/biddings", "elapsed_ms": 12.3456}


def test_default_pipeline_order():
    assert DEFAULT_PIPELINE == (add_response_time, add_security_headers, echo_request_id)


def test_apply_pipeline_sets_all_headers():
    response = apply_pipeline(Response("ok"), CONTEXT)

    assert response.headers["X-Response-Time"] == "12.35ms"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Request-ID"] == "req-42"


def test_custom_pipeline_runs_steps_in_order():
    calls = []

    def first(response, context):
        calls.append("first")
        response.headers["X-Step"] = "first"
        return response

    def second(response, context):
        calls.append("second")
        response.headers["X-Step"] = response.headers["X-Step"] + ",second"
        return response

    response = apply_pipeline(Response("ok"), CONTEXT, pipeline=(first, second))

    assert calls == ["first", "second"]
    assert response.headers["X-Step"] == "first,second"
    assert "X-Request-ID" not in response.headers


def test_step_may_replace_response():
    def replace(response, context):
        return Response("replaced", status_code=202)

    response = apply_pipeline(Response("ok"), CONTEXT, pipeline=(replace, echo_request_id))

    assert response.status_code == 202
    assert response.headers["X-Request-ID"] == "req-42"
