"""Environment-based configuration for convergence verification."""

from pydantic_settings import BaseSettings


class ConvergenceSettings(BaseSettings):
    """Convergence verification defaults.

    All settings can be overridden via environment variables with
    CONVERGE_ prefix. For example:
        CONVERGE_MAX_ITERATIONS=600
        CONVERGE_REST_URL=http://hbase-rest:8080
    """

    # Retry budget: 200 x 100ms = 20s total wait
    max_iterations: int = 200
    interval_ms: int = 100

    # REST gateway used for status observation
    rest_url: str = "http://localhost:8080"
    rest_timeout_seconds: float = 10.0

    model_config = {"env_prefix": "CONVERGE_"}
