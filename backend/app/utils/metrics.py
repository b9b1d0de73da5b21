"""
Prometheus metrics definitions for the upload API.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Upload metrics
uploads_total = Counter(
    'uploads_total',
    'Total upload attempts',
    ['source', 'status']
)

upload_size_bytes = Histogram(
    'upload_size_bytes',
    'Size of stored uploads in bytes',
    ['source'],
    buckets=[1024, 16384, 131072, 524288, 1048576, 4194304, 10485760, 20971520]
)

# Storage backend metrics
storage_operations_total = Counter(
    'storage_operations_total',
    'Total storage backend operations',
    ['operation', 'status']
)

storage_operation_duration_seconds = Histogram(
    'storage_operation_duration_seconds',
    'Storage backend operation duration in seconds',
    ['operation'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Access gate
access_denied_total = Counter(
    'access_denied_total',
    'Requests rejected by the network origin gate'
)
