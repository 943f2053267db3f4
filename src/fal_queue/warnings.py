import os
import warnings

WARNINGS: dict[str, str] = {
    "WARN_STATUS_REGRESSION": "Server reported {reported} for request {request_id} after {current}; keeping {current}.",
    "WARN_EMPTY_STREAM": "Stream {path} ended without any events.",
    "WARN_NON_NUMERIC_RETRY": "Non-numeric SSE retry field {value!r}, treating as 0.",
}


def maybe_warn(warning: str, stacklevel: int = 3, **kwargs):
    """Warn once per process; the env var doubles as the "already shown" flag."""
    if os.getenv(warning):
        return
    # default stacklevel points past maybe_warn and the library method to user code
    warnings.warn(WARNINGS[warning].format(**kwargs), stacklevel=stacklevel)
    os.environ[warning] = "1"
