"""
Contract base class and transaction registry.

Concrete contracts subclass `Contract`, set `name`, and mark their
transactions with `@transaction`. The platform invokes a transaction by its
stable string name with string arguments; `Contract.invoke` parses those
arguments according to the method's annotations and encodes the return value
to wire bytes.
"""

from __future__ import annotations

import abc
import inspect
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple, TypeVar

from passport.contract.stub import TransactionContext
from passport.domain.errors import InvalidArgument
from passport.domain.models import encode, parse_bool

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class TransactionInfo:
    """
    Registry entry for one transaction.

    Attributes
    ----------
    name : str
        Stable name the transaction is invoked by.
    submit : bool
        Whether the transaction changes state (submit) or only reads
        (evaluate). Peers refuse to evaluate submit transactions.
    method : str
        Python method implementing it.
    params : tuple[tuple[str, type], ...]
        Ordered parameter names and types after the context argument.
    """

    name: str
    submit: bool
    method: str
    params: Tuple[Tuple[str, type], ...]


def transaction(name: str, submit: bool = True) -> Callable[[F], F]:
    """Mark a contract method as a transaction invokable by `name`."""

    def decorator(func: F) -> F:
        func.__transaction__ = (name, submit)  # type: ignore[attr-defined]
        return func

    return decorator


def _parse_arg(value: str, kind: type, param: str) -> Any:
    if kind is str:
        return value
    if kind is bool:
        try:
            return parse_bool(value)
        except ValueError as exc:
            raise InvalidArgument(
                f"error managing parameter {param}: cannot convert {value!r} to bool"
            ) from exc
    raise InvalidArgument(f"unsupported parameter type {kind!r} for {param}")


class Contract(abc.ABC):
    """
    Base for contracts hosted by a peer.

    Subclasses should set `name` and declare transactions with `@transaction`.
    Every transaction method takes a `TransactionContext` first, followed by
    `str`/`bool` parameters.
    """

    name: str
    _transactions: Dict[str, TransactionInfo] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry: Dict[str, TransactionInfo] = {}
        for attr, member in inspect.getmembers(cls, inspect.isfunction):
            marker = getattr(member, "__transaction__", None)
            if marker is None:
                continue
            tx_name, submit = marker
            hints = typing.get_type_hints(member)
            names = list(inspect.signature(member).parameters)[2:]  # self, ctx
            registry[tx_name] = TransactionInfo(
                name=tx_name,
                submit=submit,
                method=attr,
                params=tuple((param, hints.get(param, str)) for param in names),
            )
        cls._transactions = registry

    @classmethod
    def transactions(cls) -> List[TransactionInfo]:
        """List registered transactions sorted by name."""
        return sorted(cls._transactions.values(), key=lambda info: info.name)

    @classmethod
    def describe(cls, function: str) -> TransactionInfo:
        info = cls._transactions.get(function)
        if info is None:
            raise InvalidArgument(f"function {function} not found in contract {cls.name}")
        return info

    def invoke(self, ctx: TransactionContext, function: str, args: Sequence[str]) -> bytes:
        """
        Run a transaction by name and return its encoded result.

        Raises
        ------
        InvalidArgument
            Unknown function, wrong number of arguments, or an unparsable value.
        ContractError
            Any failure raised by the transaction itself.
        """
        info = self.describe(function)
        if len(args) != len(info.params):
            raise InvalidArgument(
                f"incorrect number of params for {function}. "
                f"Expected {len(info.params)}, received {len(args)}"
            )
        parsed = [_parse_arg(value, kind, param) for value, (param, kind) in zip(args, info.params)]
        result = getattr(self, info.method)(ctx, *parsed)
        if result is None:
            return b""
        return encode(result)


__all__ = ["Contract", "TransactionInfo", "transaction"]
