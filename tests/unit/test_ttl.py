"""Testes para a resolução de TTL."""

from datetime import timedelta

import pytest

from etcd_simple_cache.exceptions import CacheTTLError
from etcd_simple_cache.ttl import resolve_ttl


class TestResolveTTL:
    """Testes para resolve_ttl."""

    def test_none_means_no_expiry(self) -> None:
        """None não deve gerar TTL."""
        assert resolve_ttl(None) is None

    def test_int_seconds(self) -> None:
        """Inteiro é repassado como segundos."""
        assert resolve_ttl(300) == 300

    def test_timedelta_is_truncated_to_seconds(self) -> None:
        """timedelta é convertido em segundos inteiros."""
        assert resolve_ttl(timedelta(minutes=5, milliseconds=900)) == 300

    @pytest.mark.parametrize("ttl", [0, -10])
    def test_zero_and_negative_pass_through(self, ttl: int) -> None:
        """Zero e negativos são repassados sem alteração."""
        assert resolve_ttl(ttl) == ttl

    @pytest.mark.parametrize("ttl", [True, 1.5, "60"])
    def test_unsupported_type_raises_error(self, ttl: object) -> None:
        """Tipos não suportados devem lançar CacheTTLError."""
        with pytest.raises(CacheTTLError):
            resolve_ttl(ttl)  # type: ignore[arg-type]
