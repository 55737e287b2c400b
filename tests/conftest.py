"""Configuração de fixtures para testes."""

import httpx
import pytest
from fake_etcd import FakeEtcd

from etcd_simple_cache import EtcdCacheConfig, EtcdV2Cache


@pytest.fixture
def fake_etcd() -> FakeEtcd:
    """Store etcd em memória."""
    return FakeEtcd()


@pytest.fixture
def config() -> EtcdCacheConfig:
    """Configuração de exemplo para testes."""
    return EtcdCacheConfig(host="etcd.test", port=2379, key_root_prefix="test-cache")


@pytest.fixture
def cache(fake_etcd: FakeEtcd, config: EtcdCacheConfig) -> EtcdV2Cache:
    """Cache síncrono ligado ao store em memória."""
    return EtcdV2Cache(config, client=httpx.Client(transport=httpx.MockTransport(fake_etcd)))


@pytest.fixture
def async_cache(fake_etcd: FakeEtcd, config: EtcdCacheConfig) -> EtcdV2Cache:
    """Cache assíncrono ligado ao store em memória."""
    return EtcdV2Cache(config, async_client=httpx.AsyncClient(transport=httpx.MockTransport(fake_etcd)))
