"""
sync/credentials.py 테스트
"""

import pytest

from core.storage.connection_store import ExchangeConnection
from sync.credentials import FernetCredentialCipher, decrypt_credentials
from sync.errors import CredentialDecryptError


class TestFernetCredentialCipher:

    def test_round_trip(self, cipher: FernetCredentialCipher) -> None:
        token = cipher.encrypt("my-secret")

        assert token != "my-secret"
        assert cipher.decrypt(token) == "my-secret"

    def test_unicode(self, cipher: FernetCredentialCipher) -> None:
        assert cipher.decrypt(cipher.encrypt("비밀번호")) == "비밀번호"

    def test_encrypt_not_deterministic(self, cipher: FernetCredentialCipher) -> None:
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_wrong_key(self, cipher: FernetCredentialCipher) -> None:
        token = cipher.encrypt("my-secret")
        other = FernetCredentialCipher(FernetCredentialCipher.generate_key())

        with pytest.raises(CredentialDecryptError):
            other.decrypt(token)

    def test_corrupted_token(self, cipher: FernetCredentialCipher) -> None:
        with pytest.raises(CredentialDecryptError):
            cipher.decrypt("not-a-fernet-token")

    def test_invalid_key(self) -> None:
        with pytest.raises(ValueError):
            FernetCredentialCipher("too-short")


class TestDecryptCredentials:

    def test_with_passphrase(self, cipher: FernetCredentialCipher) -> None:
        connection = ExchangeConnection(
            id=1,
            exchange_name="okx",
            api_key=cipher.encrypt("key"),
            api_secret=cipher.encrypt("secret"),
            api_passphrase=cipher.encrypt("pass"),
        )

        credentials = decrypt_credentials(cipher, connection)

        assert credentials.api_key == "key"
        assert credentials.api_secret == "secret"
        assert credentials.api_passphrase == "pass"
        assert credentials.has_passphrase

    def test_without_passphrase(self, cipher: FernetCredentialCipher) -> None:
        connection = ExchangeConnection(
            id=1,
            exchange_name="binance",
            api_key=cipher.encrypt("key"),
            api_secret=cipher.encrypt("secret"),
        )

        credentials = decrypt_credentials(cipher, connection)

        assert credentials.api_passphrase is None
        assert not credentials.has_passphrase
