"""Configuração de conexão com o etcd."""

import os
from dataclasses import dataclass, replace
from typing import Any

DEFAULT_PROTOCOL = "http"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2379
DEFAULT_KEY_BASE_URI = "/v2/keys/"
DEFAULT_KEY_ROOT_PREFIX = ""


@dataclass(frozen=True)
class EtcdCacheConfig:
    """Endereço do etcd e namespace das chaves deste cache.

    Attributes:
        protocol: Esquema da URL (http ou https)
        host: Host do etcd
        port: Porta HTTP do etcd
        key_base_uri: Path base da API de chaves (v2: /v2/keys/)
        key_root_prefix: Prefixo que isola as chaves desta instância
    """

    protocol: str = DEFAULT_PROTOCOL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    key_base_uri: str = DEFAULT_KEY_BASE_URI
    key_root_prefix: str = DEFAULT_KEY_ROOT_PREFIX

    def __post_init__(self) -> None:
        if not self.protocol:
            raise ValueError("protocol não pode ser vazio")
        if not self.host:
            raise ValueError("host não pode ser vazio")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ValueError(f"port inválida: {self.port!r}")

    @classmethod
    def from_env(cls) -> "EtcdCacheConfig":
        """Cria configuração a partir das variáveis ETCD_*."""
        return cls(
            protocol=os.getenv("ETCD_PROTOCOL", DEFAULT_PROTOCOL),
            host=os.getenv("ETCD_HOST", DEFAULT_HOST),
            port=int(os.getenv("ETCD_PORT", str(DEFAULT_PORT))),
            key_base_uri=os.getenv("ETCD_KEY_BASE_URI", DEFAULT_KEY_BASE_URI),
            key_root_prefix=os.getenv("ETCD_KEY_ROOT_PREFIX", DEFAULT_KEY_ROOT_PREFIX),
        )

    def with_changes(self, **changes: Any) -> "EtcdCacheConfig":
        """Retorna uma nova configuração com os campos alterados."""
        return replace(self, **changes)

    def build_url(self, store_path: str) -> str:
        """Constrói a URL absoluta de um path do store.

        Separadores redundantes são removidos; nenhum outro encoding é feito,
        os paths gerados pelo hash já são seguros.
        """
        segments = (self.key_base_uri, self.key_root_prefix, store_path)
        path = "/".join(part for part in (segment.strip("/") for segment in segments) if part)
        return f"{self.protocol}://{self.host}:{self.port}/{path}"
