# Prometheus metrics for FastAPI
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Request
from starlette.responses import Response as StarletteResponse
from starlette.middleware.base import BaseHTTPMiddleware
import time

# HTTP metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'http_status'])
REQUEST_LATENCY = Histogram('http_request_latency_seconds', 'HTTP request latency', ['endpoint'])

# Credits and AI vendor metrics
CREDITS_SPENT = Counter('credits_spent_total', 'Credits debited for AI requests', ['kind'])
CREDITS_GRANTED = Counter('credits_granted_total', 'Credits granted by paid plan purchases', ['plan'])
AI_REQUESTS = Counter('ai_requests_total', 'Requests sent to AI vendors', ['kind', 'outcome'])
AI_REQUEST_LATENCY = Histogram('ai_request_latency_seconds', 'AI vendor request latency', ['kind'])


def _endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    if route is None:
        return "unmatched"
    if not request.path_params:
        return request.url.path
    # Templated route: keep one series per template, not per id
    return request.scope.get("root_path", "") + route.path


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        endpoint = _endpoint_label(request)
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_time)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, http_status=response.status_code).inc()
        return response


def metrics_endpoint():
    return StarletteResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)
