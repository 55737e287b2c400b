"""Exceções do etcd-simple-cache."""


class CacheError(Exception):
    """Erro base para operações de cache."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class CacheKeyError(CacheError):
    """Chave de cache ilegal (vazia, não-string) ou coleção de chaves inválida."""

    pass


class CacheTTLError(CacheError):
    """TTL de tipo não suportado."""

    pass


class CacheSerializationError(CacheError):
    """Erro de serialização/deserialização de valores."""

    pass


class CacheConnectionError(CacheError):
    """Falha de transporte (conexão, timeout, protocolo) com o etcd."""

    pass


class CacheStatusError(CacheError):
    """O etcd respondeu com status de erro.

    Attributes:
        status_code: Status HTTP retornado
    """

    def __init__(self, message: str, key: str | None = None, status_code: int = 0) -> None:
        self.status_code = status_code
        super().__init__(message, key=key)


class CacheRejectedError(CacheStatusError):
    """O etcd rejeitou a requisição (4xx)."""

    pass


class CacheServerError(CacheStatusError):
    """Erro interno do etcd (5xx). Nunca é convertido em False."""

    pass


class CacheResponseError(CacheError):
    """Resposta de leitura sem o envelope esperado (node.value)."""

    pass
