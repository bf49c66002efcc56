"""
Module: processors.py
Description: Message filter/transform hooks for the receive and modify pipelines.

A message processor decides whether a message is kept and, if so, what
it becomes. Processors are plain Python objects supplied by the caller;
the CLI builds one from importable functions given as module:function.

Key Components:
- MessageProcessor: Protocol with accept() and transform()
- FilterTransformProcessor: Processor built from two optional callables
- apply_processor(): Drop-on-reject, else transform
- load_callable(): Resolve a 'package.module:function' reference
"""

import importlib
from typing import Callable, Optional, Protocol, runtime_checkable

from sqs_utility.models.message import Message


@runtime_checkable
class MessageProcessor(Protocol):
    """Decide whether a message is kept and how it is rewritten."""

    def accept(self, message: Message) -> bool:
        """Return True to keep the message, False to drop it."""
        ...

    def transform(self, message: Message) -> Optional[Message]:
        """Return the message to use in place of an accepted one."""
        ...


class FilterTransformProcessor:
    """
    Processor built from optional filter and transform functions.

    Missing functions default to accept-everything and identity.

    Example:
        >>> processor = FilterTransformProcessor(
        ...     filter_fn=lambda m: m.body.startswith("order"),
        ...     transform_fn=lambda m: m.model_copy(update={"body": m.body.upper()}),
        ... )
    """

    def __init__(
        self,
        filter_fn: Optional[Callable[[Message], bool]] = None,
        transform_fn: Optional[Callable[[Message], Optional[Message]]] = None
    ):
        self.filter_fn = filter_fn
        self.transform_fn = transform_fn

    def accept(self, message: Message) -> bool:
        if self.filter_fn is None:
            return True
        return bool(self.filter_fn(message))

    def transform(self, message: Message) -> Optional[Message]:
        if self.transform_fn is None:
            return message
        return self.transform_fn(message)


def apply_processor(processor: Optional[MessageProcessor], message: Message) -> Optional[Message]:
    """
    Run a message through a processor.

    Args:
        processor: Processor to apply, or None to keep every message as-is
        message: Message to process

    Returns:
        None if the message is dropped, otherwise the transformed message
    """
    if processor is None:
        return message
    if not processor.accept(message):
        return None
    return processor.transform(message)


def load_callable(reference: str) -> Callable:
    """
    Import a function given as 'package.module:function'.

    Args:
        reference: Module path and attribute name separated by a colon

    Returns:
        The referenced callable

    Raises:
        ValueError: If the reference is malformed or not callable
        ImportError: If the module cannot be imported
    """
    if not reference or not isinstance(reference, str) or ':' not in reference:
        raise ValueError(f"Expected 'module:function', got {reference!r}")

    module_name, _, attribute_path = reference.partition(':')
    if not module_name or not attribute_path:
        raise ValueError(f"Expected 'module:function', got {reference!r}")

    target = importlib.import_module(module_name)
    for attribute in attribute_path.split('.'):
        try:
            target = getattr(target, attribute)
        except AttributeError:
            raise ValueError(f"{module_name} has no attribute {attribute_path!r}") from None

    if not callable(target):
        raise ValueError(f"{reference} is not callable")

    return target


def build_processor(
    filter_ref: Optional[str] = None,
    transform_ref: Optional[str] = None
) -> Optional[FilterTransformProcessor]:
    """Build a processor from CLI references, or None when neither is given."""
    if not filter_ref and not transform_ref:
        return None

    return FilterTransformProcessor(
        filter_fn=load_callable(filter_ref) if filter_ref else None,
        transform_fn=load_callable(transform_ref) if transform_ref else None
    )
