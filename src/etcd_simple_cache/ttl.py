"""Resolução de TTL para o formato aceito pelo etcd (segundos)."""

from datetime import timedelta
from typing import TypeAlias

from .exceptions import CacheTTLError

TTL: TypeAlias = int | timedelta | None


def resolve_ttl(ttl: TTL) -> int | None:
    """Converte o TTL em segundos inteiros.

    None significa "sem expiração" e o campo não é enviado. Zero e valores
    negativos são repassados sem alteração; o etcd decide o que fazer.

    Raises:
        CacheTTLError: Se o tipo não for None, int ou timedelta
    """
    if ttl is None:
        return None
    if isinstance(ttl, bool):
        raise CacheTTLError(f"TTL inválido: {ttl!r}")
    if isinstance(ttl, int):
        return ttl
    if isinstance(ttl, timedelta):
        return int(ttl.total_seconds())
    raise CacheTTLError(f"TTL deve ser int, timedelta ou None, recebido {type(ttl).__name__}")
