"""In-memory rollback for aggregates mutated by the engines."""

from collections.abc import Iterator
from contextlib import contextmanager

from pydantic import BaseModel


@contextmanager
def rollback_on_error(*models: BaseModel) -> Iterator[None]:
    """Restore every field of the given models if the block raises.

    Only top-level field values are captured, so collections on the models
    must be replaced rather than mutated in place inside the block.

    Args:
        *models: Models the block is about to mutate

    Raises:
        Whatever the block raised, after the models are restored
    """
    saved = [
        (model, {name: getattr(model, name) for name in type(model).model_fields})
        for model in models
    ]
    try:
        yield
    except Exception:
        for model, state in saved:
            for name, value in state.items():
                setattr(model, name, value)
        raise
