from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from relay.schemas.events import EventContext

HandlerCallableType = Callable[[EventContext, Any], Awaitable[None]]
PayloadModelType = type[BaseModel]
