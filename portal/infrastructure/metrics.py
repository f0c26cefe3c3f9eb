from prometheus_client import Counter, Histogram, generate_latest
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Попытки входа: success / invalid_credentials
auth_attempts_total = Counter('auth_attempts_total', 'Login attempts', ['outcome'])

# Сдачи работ: created / updated / graded
submissions_total = Counter('submissions_total', 'Submission writes', ['action'])


def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type="text/plain")
