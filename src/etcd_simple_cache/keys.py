"""Mapeamento determinístico de chaves de cache para paths do etcd."""

import hashlib
from collections.abc import Iterable
from typing import Any

from .exceptions import CacheKeyError

PATH_SEPARATOR = "/"
SEGMENT_WIDTH = 2
ENTRY_LEAF = "v"


def validate_key(key: Any) -> str:
    """Valida uma chave de cache.

    Args:
        key: Chave fornecida pela aplicação

    Returns:
        A própria chave

    Raises:
        CacheKeyError: Se a chave não for uma string não-vazia
    """
    if not isinstance(key, str):
        raise CacheKeyError(f"Chave deve ser str, recebido {type(key).__name__}")
    if not key:
        raise CacheKeyError("Chave não pode ser vazia", key=key)
    return key


def validate_keys(keys: Any) -> list[str]:
    """Valida uma coleção de chaves, preservando a ordem.

    Strings e bytes são rejeitados: iterar sobre eles produziria caracteres,
    não chaves.
    """
    if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
        raise CacheKeyError(f"Chaves devem ser um iterável de str, recebido {type(keys).__name__}")
    return [validate_key(key) for key in keys]


def key_to_path(key: str) -> str:
    """Converte a chave no path fragmentado do SHA-1.

    O digest hexadecimal (40 caracteres) é dividido em 20 segmentos de
    2 caracteres separados por '/'. Precisa ser bit-exato: dados já gravados
    por outras implementações dependem desse formato.

    Example:
        ```python
        key_to_path("foo")
        # '0b/ee/c7/b5/ea/3f/0f/db/c9/5d/0d/d4/7f/3c/5b/c2/75/da/8a/33'
        ```
    """
    digest = hashlib.sha1(validate_key(key).encode("utf-8")).hexdigest()
    return PATH_SEPARATOR.join(digest[i : i + SEGMENT_WIDTH] for i in range(0, len(digest), SEGMENT_WIDTH))


def entry_path(key: str) -> str:
    """Path da folha 'v' onde o valor da chave é armazenado."""
    return f"{key_to_path(key)}{PATH_SEPARATOR}{ENTRY_LEAF}"
