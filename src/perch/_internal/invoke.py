"""Init invocation — run sync or async init callbacks uniformly.

Init callbacks registered in an ``InitRegistry`` can be ``def`` or
``async def`` and are always called as ``init(owner, data)``. Components
and intents both go through ``invoke_init`` so the sync/async check and
the error wrapping live in one place.

Usage::

    from perch._internal.invoke import invoke_init

    await invoke_init(payload.init, component, component.data)
"""

import inspect
from typing import Any

from perch.errors import InitError


async def invoke_init(init: Any, owner: Any, data: Any) -> None:
    """Call ``init(owner, data)``, awaiting the result when it is awaitable.

    Any exception raised by the callback is re-raised as ``InitError``.
    """
    try:
        result = init(owner, data)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        raise InitError(owner.url, exc) from exc
