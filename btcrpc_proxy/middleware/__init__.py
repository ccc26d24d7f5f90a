from .errors import PROBLEM_CT, install_error_handlers  # noqa: F401
from .request_id import RequestIdMiddleware  # noqa: F401
