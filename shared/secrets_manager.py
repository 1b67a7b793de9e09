"""
Secrets management for the access layer services.
"""

import os
import json
import base64
from typing import Dict, Optional
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from shared.errors import ConfigurationError
from shared.logging import get_logger

logger = get_logger("shared.secrets")


class SecretsManager:
    """
    Resolves secrets from the environment or an encrypted secrets file.

    Environment variables take precedence and are looked up as
    ``ACCESS_<KEY>``. The secrets file (``ACCESS_SECRETS_FILE``) is a JSON
    object whose values are Fernet-encrypted with a key derived from the
    master key; it is only read when a master key is configured.
    """

    def __init__(self, master_key: Optional[str] = None, secrets_file: Optional[str] = None):
        """
        Initialize the secrets manager.

        Args:
            master_key: Master key for decrypting the secrets file
            secrets_file: Path of the encrypted secrets file
        """
        self.master_key = master_key or os.getenv("ACCESS_MASTER_KEY")
        self.secrets_file = secrets_file or os.getenv("ACCESS_SECRETS_FILE")
        self._fernet = self._create_fernet() if self.master_key else None

    def _create_fernet(self) -> Fernet:
        """
        Create a Fernet cipher instance.

        Returns:
            Fernet cipher instance
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b'access_layer_salt',
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(self.master_key.encode()))
        return Fernet(key)

    def encrypt_secret(self, secret: str) -> str:
        """
        Encrypt a secret for storage in the secrets file.

        Args:
            secret: Secret to encrypt

        Returns:
            Encrypted secret
        """
        if self._fernet is None:
            raise ConfigurationError("Master key is required to encrypt secrets")
        encrypted = self._fernet.encrypt(secret.encode())
        return base64.urlsafe_b64encode(encrypted).decode()

    def decrypt_secret(self, encrypted_secret: str) -> str:
        """
        Decrypt a secret read from the secrets file.

        Args:
            encrypted_secret: Encrypted secret

        Returns:
            Decrypted secret
        """
        if self._fernet is None:
            raise ConfigurationError("Master key is required to decrypt secrets")
        decoded = base64.urlsafe_b64decode(encrypted_secret.encode())
        return self._fernet.decrypt(decoded).decode()

    def _read_secrets_file(self) -> Dict[str, str]:
        if not self.secrets_file or not os.path.exists(self.secrets_file):
            return {}
        with open(self.secrets_file, 'r') as f:
            return json.load(f)

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a secret by key.

        Args:
            key: Secret key
            default: Default value if secret not found

        Returns:
            Secret value or default
        """
        secret = os.getenv(f"ACCESS_{key.upper()}")
        if secret:
            return secret

        if self._fernet is not None:
            secrets = self._read_secrets_file()
            if key in secrets:
                return self.decrypt_secret(secrets[key])

        return default

    def require_secret(self, key: str) -> str:
        """
        Get a secret that the service cannot start without.

        Raises:
            ConfigurationError: if the secret is not configured anywhere
        """
        secret = self.get_secret(key)
        if not secret:
            logger.error("Missing required secret", secret=key)
            raise ConfigurationError(
                f"Required secret '{key}' is not configured",
                details={"env": f"ACCESS_{key.upper()}"}
            )
        return secret

    def set_secret(self, key: str, value: str) -> None:
        """
        Encrypt a secret and write it to the secrets file.

        Args:
            key: Secret key
            value: Secret value
        """
        if not self.secrets_file:
            raise ConfigurationError("ACCESS_SECRETS_FILE is not configured")

        secrets = self._read_secrets_file()
        secrets[key] = self.encrypt_secret(value)

        with open(self.secrets_file, 'w') as f:
            json.dump(secrets, f, indent=2)
        logger.info("Secret saved", secret=key, path=self.secrets_file)
