#!/usr/bin/env python3
# %% [markdown]
# # Safe Functions — Interactive Demo
#
# Walks through the safe function builder: middleware ordering, context
# accumulation, validation and error recovery.  Run the cells top to bottom.

# %%
import logging
import sys
from pathlib import Path

from pydantic import BaseModel, Field

# Make the project root importable when run from examples/.
_here = Path(__file__).resolve().parent if "__file__" in dir() else Path.cwd()
for _p in [_here] + list(_here.parents):
    if (_p / "safefn" / "__init__.py").exists():
        sys.path.insert(0, str(_p))
        break

from safefn import (
    ErrorContext,
    ValidationError,
    create_client,
    create_middleware,
)

logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")

# %% [markdown]
# ## Onion ordering
#
# Code before ``next()`` runs in registration order, code after it in reverse.

# %%
events: list[str] = []


def tagged(tag: str):
    async def middleware(params):
        events.append(f"before:{tag}")
        result = await params.next()
        events.append(f"after:{tag}")
        return result

    middleware.__name__ = f"tagged_{tag}"
    return middleware


fn = (
    create_client()
    .use([tagged("1"), tagged("2"), tagged("3")])
    .handler(lambda p: events.append("handler") or "done")
)
print(fn.run(), events)

# %% [markdown]
# ## Context accumulation
#
# Each ``next(fragment)`` merges the fragment into the context seen
# downstream.  Later middleware win on key conflicts.

# %%
client = create_client(default_context={"requestId": "req-1"})


async def authenticate(params):
    return await params.next({"userId": "u1"})


whoami = client.use(authenticate).handler(
    lambda p: f"{p.ctx['userId']} handled {p.ctx['requestId']}"
)
print(whoami.run())
print(whoami.run(context={"requestId": "req-2"}))

# %% [markdown]
# ## Validation
#
# Input and output schemas can be pydantic models, standard schemas or plain
# parse functions.  Failures raise ``ValidationError`` with issue paths.


# %%
class CreateUser(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(ge=0)


create_user = (
    client.metadata({"operation": "create_user"})
    .input(CreateUser)
    .handler(lambda p: {"created": p.input.name, "by": p.ctx["requestId"]})
)
print(create_user.run({"name": "ada", "age": "36"}))

try:
    create_user.run({"name": "", "age": -1})
except ValidationError as exc:
    for issue in exc.issues:
        print(f"  {issue.path}: {issue.message}")

# %% [markdown]
# ## Error recovery
#
# A hook middleware's ``on_error`` handles failures in its own scope first;
# the client's ``on_error`` sees whatever escapes.  Returning ``None``
# rethrows, any other value replaces the result.


# %%
class Throttled(Exception):
    pass


def on_error(err: ErrorContext):
    if isinstance(err.error, Throttled):
        return {"status": "retry-later", "request": err.ctx["requestId"]}
    return None


def call_upstream(params):
    raise Throttled("rate limit")


resilient = (
    create_client(default_context={"requestId": "req-3"}, on_error=on_error)
    .use(create_middleware(before=lambda p: {"stage": "upstream"}))
    .handler(call_upstream)
)
print(resilient.run())
