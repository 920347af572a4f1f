"""
자격 증명 암/복호화

Fernet(AES-128-CBC + HMAC-SHA256) 대칭 암호화.
키는 settings.yaml의 credential_key (Fernet.generate_key() 결과).
"""

from cryptography.fernet import Fernet, InvalidToken

from adapters.models import ExchangeCredentials
from core.storage.connection_store import ExchangeConnection
from sync.errors import CredentialDecryptError


class FernetCredentialCipher:
    """ICredentialCipher 구현 (Fernet)

    Args:
        key: urlsafe base64 32바이트 키

    Raises:
        ValueError: 키 형식 오류
    """

    def __init__(self, key: str | bytes):
        self._fernet = Fernet(key)

    @staticmethod
    def generate_key() -> str:
        """새 키 생성 (scripts/init_db.py 안내용)"""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Raises:
            CredentialDecryptError: 키 불일치 또는 손상된 암호문
        """
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            raise CredentialDecryptError() from e


def decrypt_credentials(cipher: FernetCredentialCipher, connection: ExchangeConnection) -> ExchangeCredentials:
    """연결의 암호화된 자격 증명 → ExchangeCredentials

    Raises:
        CredentialDecryptError: 복호화 실패
    """
    return ExchangeCredentials(
        api_key=cipher.decrypt(connection.api_key),
        api_secret=cipher.decrypt(connection.api_secret),
        api_passphrase=cipher.decrypt(connection.api_passphrase) if connection.api_passphrase else None,
    )
