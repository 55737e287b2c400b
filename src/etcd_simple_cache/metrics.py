"""Métricas de cache usando OpenTelemetry."""

from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from opentelemetry import metrics as otel_metrics


class CacheMetrics(Protocol):
    """Protocol para coletores de métricas."""

    def record_hit(self, key: str, latency: float) -> None:
        """Registra cache hit."""
        ...

    def record_miss(self, key: str, latency: float) -> None:
        """Registra cache miss."""
        ...

    def record_write(self, key: str, size: int) -> None:
        """Registra escrita aceita pelo etcd."""
        ...

    def record_delete(self, key: str) -> None:
        """Registra remoção aceita pelo etcd."""
        ...

    def record_rejection(self, key: str, error: Exception) -> None:
        """Registra escrita ou remoção rejeitada (4xx)."""
        ...


class NoOpMetrics:
    """Coletor de métricas que não faz nada (default)."""

    def record_hit(self, key: str, latency: float) -> None:
        pass

    def record_miss(self, key: str, latency: float) -> None:
        pass

    def record_write(self, key: str, size: int) -> None:
        pass

    def record_delete(self, key: str) -> None:
        pass

    def record_rejection(self, key: str, error: Exception) -> None:
        pass


@dataclass
class CacheStats:
    """Estatísticas agregadas do cache."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    deletes: int = 0
    rejections: int = 0
    total_latency: float = 0.0
    total_bytes_written: int = 0

    @property
    def total_reads(self) -> int:
        return self.hits + self.misses

    @property
    def hit_ratio(self) -> float:
        total = self.total_reads
        return self.hits / total if total > 0 else 0.0

    @property
    def avg_read_latency_ms(self) -> float:
        total = self.total_reads
        return self.total_latency / total * 1000 if total > 0 else 0.0


class InMemoryMetrics:
    """Coletor de métricas em memória, thread-safe.

    Útil para desenvolvimento e testes.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._stats = CacheStats()

    def record_hit(self, key: str, latency: float) -> None:
        with self._lock:
            self._stats.hits += 1
            self._stats.total_latency += latency

    def record_miss(self, key: str, latency: float) -> None:
        with self._lock:
            self._stats.misses += 1
            self._stats.total_latency += latency

    def record_write(self, key: str, size: int) -> None:
        with self._lock:
            self._stats.writes += 1
            self._stats.total_bytes_written += size

    def record_delete(self, key: str) -> None:
        with self._lock:
            self._stats.deletes += 1

    def record_rejection(self, key: str, error: Exception) -> None:
        with self._lock:
            self._stats.rejections += 1

    def get_stats(self) -> CacheStats:
        """Retorna uma cópia das estatísticas."""
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                writes=self._stats.writes,
                deletes=self._stats.deletes,
                rejections=self._stats.rejections,
                total_latency=self._stats.total_latency,
                total_bytes_written=self._stats.total_bytes_written,
            )

    def reset(self) -> None:
        """Reseta todas as estatísticas."""
        with self._lock:
            self._stats = CacheStats()


class OpenTelemetryMetrics:
    """Coletor de métricas usando OpenTelemetry.

    Métricas exportadas:
    - etcd_cache.hits (counter)
    - etcd_cache.misses (counter)
    - etcd_cache.writes (counter)
    - etcd_cache.deletes (counter)
    - etcd_cache.rejections (counter)
    - etcd_cache.read_latency (histogram, segundos)

    As chaves não são usadas como atributo para evitar cardinalidade
    ilimitada; apenas o tipo do erro é anexado às rejeições.
    """

    def __init__(self, meter_name: str = "etcd_simple_cache") -> None:
        meter = otel_metrics.get_meter(meter_name)

        self._hits_counter = meter.create_counter("etcd_cache.hits", description="Número de cache hits", unit="1")
        self._misses_counter = meter.create_counter(
            "etcd_cache.misses", description="Número de cache misses", unit="1"
        )
        self._writes_counter = meter.create_counter(
            "etcd_cache.writes", description="Número de escritas aceitas", unit="1"
        )
        self._deletes_counter = meter.create_counter(
            "etcd_cache.deletes", description="Número de remoções aceitas", unit="1"
        )
        self._rejections_counter = meter.create_counter(
            "etcd_cache.rejections", description="Escritas e remoções rejeitadas pelo etcd", unit="1"
        )
        self._latency_histogram = meter.create_histogram(
            "etcd_cache.read_latency", description="Latência das leituras", unit="s"
        )

    def record_hit(self, key: str, latency: float) -> None:
        self._hits_counter.add(1)
        self._latency_histogram.record(latency, {"result": "hit"})

    def record_miss(self, key: str, latency: float) -> None:
        self._misses_counter.add(1)
        self._latency_histogram.record(latency, {"result": "miss"})

    def record_write(self, key: str, size: int) -> None:
        self._writes_counter.add(1)

    def record_delete(self, key: str) -> None:
        self._deletes_counter.add(1)

    def record_rejection(self, key: str, error: Exception) -> None:
        self._rejections_counter.add(1, {"error_type": type(error).__name__})
