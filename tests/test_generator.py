"""Tests for credential generation."""

import string

import pytest

from keyservice.exceptions import GenerationError
from keyservice.identity import generator
from keyservice.identity.generator import (
    generate_bundle,
    generate_pair,
    generate_random_string,
)
from keyservice.identity.models import CredentialBundle


class TestGenerateRandomString:
    """generate_random_string contract."""

    @pytest.mark.parametrize("n", [1, 2, 25, 32, 100])
    def test_exact_length(self, n):
        assert len(generate_random_string(n)) == n

    def test_only_ascii_letters(self):
        value = generate_random_string(500)
        assert set(value) <= set(string.ascii_letters)

    def test_successive_calls_differ(self):
        assert generate_random_string(32) != generate_random_string(32)

    @pytest.mark.parametrize("n", [0, -1])
    def test_rejects_non_positive_length(self, n):
        with pytest.raises(ValueError):
            generate_random_string(n)

    def test_secure_source_failure_raises_generation_error(self, monkeypatch):
        def broken_choice(seq):
            raise OSError("no entropy")

        monkeypatch.setattr(generator.secrets, "choice", broken_choice)
        with pytest.raises(GenerationError):
            generate_random_string(8)


class TestBatches:
    """Pairs and bundles."""

    def test_pair_defaults_to_32_characters(self):
        key, secret = generate_pair()
        assert len(key) == 32
        assert len(secret) == 32
        assert key != secret

    def test_bundle_has_five_25_character_fields(self):
        bundle = generate_bundle()
        assert isinstance(bundle, CredentialBundle)
        assert len(bundle.values()) == 5
        assert all(len(v) == 25 for v in bundle.values())
        assert len(set(bundle.values())) == 5

    def test_bundle_fails_as_a_whole(self, monkeypatch):
        calls = []
        real = generator.generate_random_string

        def flaky(n):
            calls.append(n)
            if len(calls) == 3:
                raise GenerationError("source failed")
            return real(n)

        monkeypatch.setattr(generator, "generate_random_string", flaky)
        with pytest.raises(GenerationError):
            generate_bundle()
        assert len(calls) == 3
