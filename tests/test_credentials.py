"""
Credential generation and password hashing tests
"""
import re

from app.services.credential_service import CredentialService


credentials = CredentialService(bcrypt_rounds=4)


class TestGeneration:

    def test_username_format(self):
        assert re.fullmatch(r"user_[0-9a-f]{8}", credentials.generate_username())

    def test_password_is_128_bit_hex(self):
        assert re.fullmatch(r"[0-9a-f]{32}", credentials.generate_password())

    def test_token_is_256_bit_hex(self):
        assert re.fullmatch(r"[0-9a-f]{64}", credentials.generate_token())

    def test_tokens_do_not_repeat(self):
        tokens = {credentials.generate_token() for _ in range(200)}
        assert len(tokens) == 200


class TestHashing:

    def test_hash_is_not_plaintext(self):
        hashed = credentials.hash_password("s3cret-value")
        assert hashed != "s3cret-value"
        assert hashed.startswith("$2")

    def test_verify_roundtrip(self):
        hashed = credentials.hash_password("s3cret-value")
        assert credentials.verify_password("s3cret-value", hashed) is True
        assert credentials.verify_password("other-value", hashed) is False

    def test_verify_missing_hash(self):
        assert credentials.verify_password("anything", None) is False
        assert credentials.verify_password("anything", "") is False

    def test_verify_malformed_hash(self):
        assert credentials.verify_password("anything", "not-a-bcrypt-hash") is False

    def test_verify_empty_password(self):
        hashed = credentials.hash_password("s3cret-value")
        assert credentials.verify_password("", hashed) is False
