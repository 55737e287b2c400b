"""Cache sobre o store de chaves HTTP do etcd v2."""

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from threading import Lock
from typing import Any

import httpx

from .config import EtcdCacheConfig
from .exceptions import (
    CacheConnectionError,
    CacheKeyError,
    CacheRejectedError,
    CacheResponseError,
    CacheSerializationError,
    CacheServerError,
    CacheStatusError,
    CacheTTLError,
)
from .keys import entry_path, key_to_path, validate_key, validate_keys
from .metrics import CacheMetrics, NoOpMetrics
from .serializer import Serializer, ValueCodec
from .ttl import TTL, resolve_ttl

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class EtcdV2Cache:
    """Cache chave/valor sobre a API HTTP de chaves do etcd v2.

    Cada chave da aplicação é convertida num path fragmentado do SHA-1
    (ver `keys.key_to_path`) e o valor fica na folha `v` desse path:

    - HEAD {base}/{prefixo}/{path}/v - existência
    - GET {base}/{prefixo}/{path}/v - leitura (envelope JSON node.value)
    - PUT {base}/{prefixo}/{path}/v - escrita (form: value, ttl)
    - DELETE {base}/{prefixo}/{path}/v - remoção

    Escritas e remoções rejeitadas pelo etcd (4xx) viram False. Falhas de
    transporte, erros 5xx e respostas malformadas sempre propagam. Não há
    retry: cada operação faz exatamente uma tentativa, e o timeout é o do
    cliente httpx.

    Example:
        ```python
        cache = EtcdV2Cache(EtcdCacheConfig(host="etcd", key_root_prefix="app"))
        cache.set("user:123", "John", ttl=300)
        cache.get("user:123")  # "John"
        await cache.get_async("user:123")
        ```

    Attributes:
        config: Configuração atual (substituível em runtime)
    """

    def __init__(
        self,
        config: EtcdCacheConfig | None = None,
        client: httpx.Client | None = None,
        async_client: httpx.AsyncClient | None = None,
        serializer: Serializer | None = None,
        metrics: CacheMetrics | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Inicializa o cache.

        Args:
            config: Endereço do etcd e namespace (default: EtcdCacheConfig())
            client: Cliente httpx síncrono (criado sob demanda se omitido)
            async_client: Cliente httpx assíncrono (criado sob demanda se omitido)
            serializer: Serializer de valores; sem ele os valores devem ser str
            metrics: Coletor de métricas (default: NoOpMetrics)
            timeout: Timeout dos clientes criados internamente
        """
        self._config = config or EtcdCacheConfig()
        self._timeout = timeout
        self._codec = ValueCodec(serializer)
        self._metrics: CacheMetrics = metrics or NoOpMetrics()

        # Clientes injetados pertencem ao chamador e não são fechados aqui
        self._sync_client = client
        self._async_client = async_client
        self._owns_sync_client = client is None
        self._owns_async_client = async_client is None

        self._sync_client_lock = Lock()
        # Criado sob demanda: não pode existir antes de um event loop
        self._async_client_lock: asyncio.Lock | None = None

    # ========== Configuração ==========

    @property
    def config(self) -> EtcdCacheConfig:
        return self._config

    @config.setter
    def config(self, config: EtcdCacheConfig) -> None:
        if not isinstance(config, EtcdCacheConfig):
            raise TypeError(f"config deve ser EtcdCacheConfig, recebido {type(config).__name__}")
        self._config = config

    def reconfigure(self, **changes: Any) -> None:
        """Substitui campos da configuração (host, port, key_root_prefix...).

        Operações em andamento podem usar a configuração antiga ou a nova.
        """
        self._config = self._config.with_changes(**changes)

    @property
    def protocol(self) -> str:
        return self._config.protocol

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def key_base_uri(self) -> str:
        return self._config.key_base_uri

    @property
    def key_root_prefix(self) -> str:
        return self._config.key_root_prefix

    def key_to_path(self, key: str) -> str:
        """Path fragmentado da chave (sem a folha `v`)."""
        return key_to_path(key)

    def build_key_url(self, store_path: str) -> str:
        """URL absoluta de um path do store sob o prefixo configurado."""
        return self._config.build_url(store_path)

    # ========== Clientes HTTP ==========

    def _get_sync_client(self) -> httpx.Client:
        """Obtém ou cria cliente HTTP síncrono (double-checked locking)."""
        if self._sync_client is None:
            with self._sync_client_lock:
                if self._sync_client is None:
                    self._sync_client = httpx.Client(timeout=self._timeout, follow_redirects=True)
        return self._sync_client

    def _get_async_lock(self) -> asyncio.Lock:
        if self._async_client_lock is None:
            self._async_client_lock = asyncio.Lock()
        return self._async_client_lock

    async def _get_async_client(self) -> httpx.AsyncClient:
        """Obtém ou cria cliente HTTP assíncrono sem bloquear o event loop."""
        if self._async_client is None:
            async with self._get_async_lock():
                if self._async_client is None:
                    self._async_client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._async_client

    # ========== Tradução de requisições e respostas ==========

    def _entry_url(self, key: str) -> str:
        return self._config.build_url(entry_path(key))

    def _connection_error(self, error: httpx.RequestError, key: str, operation: str) -> CacheConnectionError:
        logger.error(f"Falha de transporte no {operation} da chave {key}: {error}")
        return CacheConnectionError(f"Não foi possível completar {operation} no etcd: {error}", key=key)

    def _raise_for_status(self, response: httpx.Response, key: str, operation: str) -> None:
        """Lança CacheRejectedError (4xx), CacheServerError (5xx) ou CacheStatusError (1xx/3xx)."""
        status = response.status_code
        if response.is_client_error:
            raise CacheRejectedError(f"etcd rejeitou {operation} ({status})", key=key, status_code=status)
        if response.is_server_error:
            raise CacheServerError(f"Erro do etcd em {operation} ({status})", key=key, status_code=status)
        if not response.is_success:
            logger.warning(f"Status inesperado do etcd em {operation} da chave {key}: {status}")
            raise CacheStatusError(
                f"Status inesperado do etcd em {operation} ({status})", key=key, status_code=status
            )

    def _interpret_head(self, response: httpx.Response, key: str) -> bool:
        if response.status_code == httpx.codes.OK:
            return True
        if response.status_code == httpx.codes.NOT_FOUND:
            return False
        self._raise_for_status(response, key, "has")
        return False

    def _extract_value(self, response: httpx.Response, key: str) -> Any:
        """Extrai node.value do envelope JSON e decodifica o valor."""
        self._raise_for_status(response, key, "get")
        try:
            text = response.json()["node"]["value"]
        except ValueError as e:
            raise CacheResponseError(f"Resposta do etcd não é JSON: {e}", key=key) from e
        except (KeyError, TypeError) as e:
            raise CacheResponseError(f"Resposta do etcd sem node.value: {e!r}", key=key) from e
        if not isinstance(text, str):
            raise CacheResponseError(f"node.value deveria ser str, recebido {type(text).__name__}", key=key)
        return self._codec.decode(text, key=key)

    def _build_form(self, key: str, value: Any, ttl: TTL) -> dict[str, str] | None:
        """Monta os campos do PUT.

        Valor ou TTL que não podem ser codificados contam como escrita
        rejeitada: retorna None sem nenhuma requisição.
        """
        try:
            return self._encode_form(key, value, ttl)
        except (CacheSerializationError, CacheTTLError) as e:
            logger.warning(f"Falha no set da chave {key}: {e}")
            self._metrics.record_rejection(key, e)
            return None

    def _encode_form(self, key: str, value: Any, ttl: TTL) -> dict[str, str]:
        data = {"value": self._codec.encode(value, key=key)}
        ttl_seconds = resolve_ttl(ttl)
        if ttl_seconds is not None:
            data["ttl"] = str(ttl_seconds)
        return data

    def _interpret_write(self, response: httpx.Response, key: str, operation: str) -> bool:
        """True em 2xx; 4xx vira False, qualquer outro status propaga."""
        if response.is_success:
            return True
        if not response.is_client_error:
            self._raise_for_status(response, key, operation)
        error = CacheRejectedError(
            f"etcd rejeitou {operation} ({response.status_code})", key=key, status_code=response.status_code
        )
        logger.warning(f"Falha no {operation} da chave {key}: {error}")
        self._metrics.record_rejection(key, error)
        return False

    def _record_read(self, key: str, hit: bool, started: float) -> None:
        latency = time.perf_counter() - started
        if hit:
            logger.debug(f"Cache hit para chave: {key}")
            self._metrics.record_hit(key, latency)
        else:
            logger.debug(f"Cache miss para chave: {key}")
            self._metrics.record_miss(key, latency)

    @staticmethod
    def _iter_items(values: Any) -> list[tuple[str, Any]]:
        if isinstance(values, Mapping):
            items = list(values.items())
        elif isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise CacheKeyError(
                f"Valores devem ser um mapping ou pares (chave, valor), recebido {type(values).__name__}"
            )
        else:
            try:
                items = [(key, value) for key, value in values]
            except (TypeError, ValueError) as e:
                raise CacheKeyError(f"Valores devem ser pares (chave, valor): {e}") from e
        for key, _ in items:
            validate_key(key)
        return items

    # ========== Métodos Síncronos ==========

    def has(self, key: str) -> bool:
        """Verifica se a chave existe no cache (HEAD, sem transferir o valor).

        Sujeito a race condition: a entrada pode ser removida logo após a
        verificação. Use para aquecimento de cache, não como guarda de get.

        Returns:
            True somente em 200; False em 404

        Raises:
            CacheKeyError: Se a chave for inválida
            CacheRejectedError: Para outros status 4xx
            CacheServerError: Para status 5xx
            CacheConnectionError: Em falha de transporte
        """
        url = self._entry_url(key)
        try:
            response = self._get_sync_client().head(url)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "has") from e
        return self._interpret_head(response, key)

    def get(self, key: str, default: Any = None) -> Any:
        """Busca valor do cache.

        Args:
            key: Chave do cache
            default: Valor retornado quando a chave não existe

        Returns:
            Valor armazenado ou `default`

        Raises:
            CacheResponseError: Se o envelope não tiver node.value
        """
        started = time.perf_counter()
        if not self.has(key):
            self._record_read(key, False, started)
            return default

        url = self._entry_url(key)
        try:
            response = self._get_sync_client().get(url)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "get") from e
        value = self._extract_value(response, key)
        self._record_read(key, True, started)
        return value

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Armazena valor no cache.

        Args:
            key: Chave do cache
            value: Valor (str, ou qualquer tipo aceito pelo serializer)
            ttl: Segundos, timedelta ou None (sem expiração)

        Returns:
            True se o etcd aceitou a escrita; False se a rejeitou (4xx) ou se
            o valor/TTL não puderem ser codificados
        """
        url = self._entry_url(key)
        data = self._build_form(key, value, ttl)
        if data is None:
            return False
        try:
            response = self._get_sync_client().put(url, data=data)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "set") from e
        success = self._interpret_write(response, key, "set")
        if success:
            logger.debug(f"Cache set para chave: {key}, TTL: {data.get('ttl')}")
            self._metrics.record_write(key, len(data["value"].encode("utf-8")))
        return success

    def delete(self, key: str) -> bool:
        """Remove a chave do cache.

        Returns:
            True se o etcd aceitou a remoção, False se a rejeitou
        """
        url = self._entry_url(key)
        try:
            response = self._get_sync_client().delete(url)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "delete") from e
        success = self._interpret_write(response, key, "delete")
        if success:
            logger.debug(f"Cache delete para chave: {key}")
            self._metrics.record_delete(key)
        return success

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        """Busca várias chaves, uma requisição por vez, na ordem recebida.

        Exceções de `get` (ex.: CacheResponseError) interrompem o lote.
        """
        return {key: self.get(key, default) for key in validate_keys(keys)}

    def set_multiple(self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None) -> bool:
        """Armazena vários valores de forma independente e não atômica.

        Sempre retorna True: falhas individuais não são agregadas.
        """
        items = self._iter_items(values)
        failed = [key for key, value in items if not self.set(key, value, ttl)]
        if failed:
            logger.debug(f"set_multiple: {len(failed)} de {len(items)} escritas rejeitadas")
        return True

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        """Remove várias chaves de forma independente. Sempre retorna True."""
        keys = validate_keys(keys)
        failed = [key for key in keys if not self.delete(key)]
        if failed:
            logger.debug(f"delete_multiple: {len(failed)} de {len(keys)} remoções rejeitadas")
        return True

    def clear(self) -> bool:
        """Não suportado: o etcd v2 não remove um prefixo sem listagem recursiva.

        Sempre retorna False, sem nenhuma requisição.
        """
        logger.debug("clear() não é suportado pelo backend etcd v2")
        return False

    # ========== Métodos Assíncronos ==========

    async def has_async(self, key: str) -> bool:
        """Versão assíncrona de `has`."""
        url = self._entry_url(key)
        client = await self._get_async_client()
        try:
            response = await client.head(url)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "has") from e
        return self._interpret_head(response, key)

    async def get_async(self, key: str, default: Any = None) -> Any:
        """Versão assíncrona de `get`."""
        started = time.perf_counter()
        if not await self.has_async(key):
            self._record_read(key, False, started)
            return default

        url = self._entry_url(key)
        client = await self._get_async_client()
        try:
            response = await client.get(url)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "get") from e
        value = self._extract_value(response, key)
        self._record_read(key, True, started)
        return value

    async def set_async(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """Versão assíncrona de `set`."""
        url = self._entry_url(key)
        data = self._build_form(key, value, ttl)
        if data is None:
            return False
        client = await self._get_async_client()
        try:
            response = await client.put(url, data=data)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "set") from e
        success = self._interpret_write(response, key, "set")
        if success:
            logger.debug(f"Cache set para chave: {key}, TTL: {data.get('ttl')}")
            self._metrics.record_write(key, len(data["value"].encode("utf-8")))
        return success

    async def delete_async(self, key: str) -> bool:
        """Versão assíncrona de `delete`."""
        url = self._entry_url(key)
        client = await self._get_async_client()
        try:
            response = await client.delete(url)
        except httpx.RequestError as e:
            raise self._connection_error(e, key, "delete") from e
        success = self._interpret_write(response, key, "delete")
        if success:
            logger.debug(f"Cache delete para chave: {key}")
            self._metrics.record_delete(key)
        return success

    async def get_multiple_async(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        """Versão assíncrona de `get_multiple` (sequencial, sem fan-out)."""
        result: dict[str, Any] = {}
        for key in validate_keys(keys):
            result[key] = await self.get_async(key, default)
        return result

    async def set_multiple_async(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None
    ) -> bool:
        """Versão assíncrona de `set_multiple`. Sempre retorna True."""
        items = self._iter_items(values)
        failed = [key for key, value in items if not await self.set_async(key, value, ttl)]
        if failed:
            logger.debug(f"set_multiple: {len(failed)} de {len(items)} escritas rejeitadas")
        return True

    async def delete_multiple_async(self, keys: Iterable[str]) -> bool:
        """Versão assíncrona de `delete_multiple`. Sempre retorna True."""
        keys = validate_keys(keys)
        failed = [key for key in keys if not await self.delete_async(key)]
        if failed:
            logger.debug(f"delete_multiple: {len(failed)} de {len(keys)} remoções rejeitadas")
        return True

    async def clear_async(self) -> bool:
        """Versão assíncrona de `clear`. Sempre retorna False."""
        return self.clear()

    # ========== Gerenciamento de Recursos ==========

    def close(self) -> None:
        """Fecha o cliente síncrono criado internamente."""
        if self._sync_client is not None and self._owns_sync_client:
            self._sync_client.close()
            self._sync_client = None

    async def aclose(self) -> None:
        """Fecha o cliente assíncrono criado internamente."""
        if self._async_client is not None and self._owns_async_client:
            await self._async_client.aclose()
            self._async_client = None

    def __enter__(self) -> "EtcdV2Cache":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    async def __aenter__(self) -> "EtcdV2Cache":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
