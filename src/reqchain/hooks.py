"""Sequential execution of the four hook extension points.

Hooks run in registration order, one at a time; a hook that returns an
awaitable is awaited before the next one starts. A hook that raises aborts
the whole request with a :class:`~reqchain.exceptions.HookError`.
"""

import inspect
from collections.abc import Callable
from typing import Any

from .exceptions import HookError, HTTPError
from .log_config import logger
from .models import Response
from .types import Hooks, RequestContext


def _hook_name(hook: Callable[..., Any]) -> str:
    return getattr(hook, "__name__", None) or repr(hook)


class HookPipeline:
    """Runs the hooks of one logical request.

    Attributes:
        hooks: The frozen hook lists taken from the request spec.
    """

    def __init__(self, hooks: Hooks):
        self.hooks = hooks

    async def _call(self, hook_type: str, hook: Callable[..., Any], *args: Any) -> Any:
        try:
            result = hook(*args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Error executing {hook_type} hook {_hook_name(hook)}: {e}")
            raise HookError(
                f"{hook_type} hook {_hook_name(hook)} failed: {e}",
                hook_type=hook_type,
            ) from e
        return result

    async def before_request(self, context: RequestContext) -> None:
        if not self.hooks.before_request:
            return
        logger.debug(
            f"Executing {len(self.hooks.before_request)} before_request hooks "
            f"for {context.method} {context.url}"
        )
        for hook in self.hooks.before_request:
            await self._call("before_request", hook, context)

    async def after_response(self, response: Response) -> Response:
        """Returns the last non-None replacement, or ``response`` unchanged."""
        for hook in self.hooks.after_response:
            result = await self._call("after_response", hook, response)
            if result is not None:
                response = result
        return response

    async def before_retry(self, error: BaseException, attempt: int) -> None:
        for hook in self.hooks.before_retry:
            await self._call("before_retry", hook, error, attempt)

    async def before_error(self, error: HTTPError) -> BaseException:
        """Returns the error to raise: the last non-None replacement, or ``error``."""
        current: BaseException = error
        for hook in self.hooks.before_error:
            result = await self._call("before_error", hook, current)
            if result is not None:
                current = result
        return current
