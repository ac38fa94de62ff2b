"""reqchain: a chainable asynchronous HTTP request client.

Requests are described with a fluent builder and executed by awaiting them.
The execution engine adds retries with backoff, per-attempt timeouts,
cooperative cancellation and before-request / after-response / before-retry /
before-error hooks on top of httpx.
"""

from . import (
    auth,
    builder,
    cancellation,
    client,
    config,
    encoding,
    exceptions,
    hooks,
    instance,
    log_config,
    models,
    retry,
    types,
)
from .builder import Request
from .cancellation import CancellationScope, CancellationToken
from .client import RequestExecutor
from .exceptions import (
    HookError,
    HTTPError,
    ReqchainError,
    TimeoutError,
    TransportError,
)
from .instance import Client, create_instance
from .models import Response
from .retry import RetryPolicy, default_retry_delay
from .types import Attachment, Hooks, RequestContext, RequestSpec, TimeoutOptions
from .version import __version__

__author__ = "reqchain contributors"

request = create_instance()
create = create_instance

get = request.get
post = request.post
put = request.put
patch = request.patch
delete = request.delete
head = request.head
options = request.options

__all__ = [
    "__version__",
    "__author__",
    "auth",
    "builder",
    "cancellation",
    "client",
    "config",
    "encoding",
    "exceptions",
    "hooks",
    "instance",
    "log_config",
    "models",
    "retry",
    "types",
    "Attachment",
    "CancellationScope",
    "CancellationToken",
    "Client",
    "HTTPError",
    "HookError",
    "Hooks",
    "ReqchainError",
    "Request",
    "RequestContext",
    "RequestExecutor",
    "RequestSpec",
    "Response",
    "RetryPolicy",
    "TimeoutError",
    "TimeoutOptions",
    "TransportError",
    "create",
    "create_instance",
    "default_retry_delay",
    "delete",
    "get",
    "head",
    "options",
    "patch",
    "post",
    "put",
    "request",
]
