"""Tests for the opaque id codec."""

import pytest

from creator_live.utils.id_codec import ENCODED_ID_LENGTH, IdCodec


@pytest.fixture
def codec() -> IdCodec:
    return IdCodec("unit-test-secret-0123456789abcdefghij")


class TestIdCodec:
    def test_encrypt_produces_fixed_length_url_safe_token(self, codec: IdCodec):
        token = codec.encrypt(42)

        assert len(token) == ENCODED_ID_LENGTH
        assert IdCodec.looks_encoded(token)

    def test_encrypt_is_deterministic(self, codec: IdCodec):
        assert codec.encrypt(1234) == codec.encrypt(1234)
        assert codec.encrypt(1234) != codec.encrypt(1235)

    def test_decrypt_returns_original_id(self, codec: IdCodec):
        assert codec.decrypt(codec.encrypt(987654321)) == 987654321

    def test_other_secret_cannot_decrypt(self, codec: IdCodec):
        other = IdCodec("another-secret-0123456789abcdefghijkl")

        token = codec.encrypt(77)

        assert other.decrypt(token) != 77

    @pytest.mark.parametrize("token", [None, "", "123", "not a token!", "abc=="])
    def test_decrypt_rejects_garbage(self, codec: IdCodec, token):
        assert codec.decrypt(token) is None

    def test_short_secret_rejected(self):
        with pytest.raises(ValueError):
            IdCodec("too-short")
