"""etcd-simple-cache: cache chave/valor sobre a API HTTP do etcd v2.

Cada chave é mapeada para um path fragmentado do seu SHA-1, compatível
com dados já gravados por outras implementações do mesmo esquema.

Uso básico:
    ```python
    from etcd_simple_cache import EtcdCacheConfig, EtcdV2Cache

    cache = EtcdV2Cache(EtcdCacheConfig(host="etcd", key_root_prefix="my-app"))

    cache.set("user:123", "John", ttl=300)
    cache.get("user:123")              # "John"
    cache.get("missing", default="?")  # "?"
    cache.delete("user:123")

    # Assíncrono
    await cache.set_async("user:456", "Mary")
    ```

Com valores arbitrários e métricas OpenTelemetry:
    ```python
    from etcd_simple_cache import EtcdV2Cache, MsgPackSerializer, OpenTelemetryMetrics

    cache = EtcdV2Cache(serializer=MsgPackSerializer(), metrics=OpenTelemetryMetrics())
    cache.set("profile", {"name": "John", "age": 30})
    ```
"""

__version__ = "0.1.0"

from .client import EtcdV2Cache
from .config import EtcdCacheConfig

# Exceções
from .exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheRejectedError,
    CacheResponseError,
    CacheSerializationError,
    CacheServerError,
    CacheStatusError,
    CacheTTLError,
)

# Mapeamento de chaves
from .keys import entry_path, key_to_path

# Métricas
from .metrics import CacheMetrics, CacheStats, InMemoryMetrics, NoOpMetrics, OpenTelemetryMetrics

# Serialização
from .serializer import MsgPackSerializer, Serializer
from .ttl import TTL, resolve_ttl

__all__ = [
    # Cache
    "EtcdV2Cache",
    "EtcdCacheConfig",
    # Chaves e TTL
    "key_to_path",
    "entry_path",
    "TTL",
    "resolve_ttl",
    # Serialização
    "MsgPackSerializer",
    "Serializer",
    # Métricas
    "CacheMetrics",
    "CacheStats",
    "NoOpMetrics",
    "InMemoryMetrics",
    "OpenTelemetryMetrics",
    # Exceções
    "CacheError",
    "CacheKeyError",
    "CacheTTLError",
    "CacheSerializationError",
    "CacheConnectionError",
    "CacheStatusError",
    "CacheRejectedError",
    "CacheServerError",
    "CacheResponseError",
]
