# src/mobile_post_office/core/logging/
# ├─ __init__.py            # public API: setup_logging, set_request_id, RequestIDMiddleware
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # RequestIdFilter (+ contextvar helpers), RedactFilter
# ├─ handlers.py            # handler factories (console / rotating file)
# └─ middleware.py          # FastAPI/Starlette middleware to set request id

from .builder import make_dict_config, setup_logging, stop_queue_logging
from .filters import RequestIdFilter, get_request_id, set_request_id
from .middleware import RequestIDMiddleware

__all__ = [
    "setup_logging",
    "make_dict_config",
    "stop_queue_logging",
    "set_request_id",
    "get_request_id",
    "RequestIdFilter",
    "RequestIDMiddleware",
]
