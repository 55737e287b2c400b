"""Codificação de valores para o campo texto do etcd."""

import base64
import binascii
from typing import Any, Protocol

import msgpack

from .exceptions import CacheSerializationError


class Serializer(Protocol):
    """Protocol para serializers customizados."""

    def serialize(self, data: Any) -> bytes:
        """Serializa dados Python para bytes."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Deserializa bytes para dados Python."""
        ...


class MsgPackSerializer:
    """Serializer usando MessagePack.

    Suporta tipos Python nativos: None, bool, int, float, str, bytes,
    list, tuple e dict.
    """

    def serialize(self, data: Any) -> bytes:
        """Serializa dados Python para bytes MsgPack.

        Raises:
            CacheSerializationError: Se falhar ao serializar
        """
        try:
            result = msgpack.packb(data, use_bin_type=True)
            if result is None:
                raise CacheSerializationError("msgpack.packb retornou None")
            return result
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(f"Falha ao serializar dados: {e}") from e

    def deserialize(self, data: bytes) -> Any:
        """Deserializa bytes MsgPack para dados Python.

        Raises:
            CacheSerializationError: Se falhar ao deserializar
        """
        try:
            return msgpack.unpackb(data, raw=False)
        except (msgpack.UnpackException, ValueError) as e:
            raise CacheSerializationError(f"Falha ao deserializar dados: {e}") from e


class ValueCodec:
    """Converte valores Python no texto gravado no campo `value` do etcd.

    Sem serializer o valor precisa ser str e é gravado como está, legível por
    qualquer outro cliente do mesmo store. Com serializer os bytes produzidos
    são codificados em base64.
    """

    def __init__(self, serializer: Serializer | None = None) -> None:
        self._serializer = serializer

    @property
    def serializer(self) -> Serializer | None:
        return self._serializer

    def encode(self, value: Any, key: str | None = None) -> str:
        if self._serializer is None:
            if not isinstance(value, str):
                raise CacheSerializationError(
                    f"Valor deve ser str quando nenhum serializer é configurado, recebido {type(value).__name__}",
                    key=key,
                )
            return value
        return base64.b64encode(self._serializer.serialize(value)).decode("ascii")

    def decode(self, text: str, key: str | None = None) -> Any:
        if self._serializer is None:
            return text
        try:
            raw = base64.b64decode(text.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise CacheSerializationError(f"Valor não está em base64: {e}", key=key) from e
        return self._serializer.deserialize(raw)
