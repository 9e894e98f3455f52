import pytest
from cryptography.fernet import Fernet

from xero_portal.utils.crypto import FernetEncryption


@pytest.fixture(autouse=True)
def fresh_instance():
    FernetEncryption.reset()
    yield
    FernetEncryption.reset()


def test_encrypt_decrypt():
    crypto = FernetEncryption(Fernet.generate_key().decode())

    encrypted = crypto.encrypt("test_access_secret")

    assert encrypted != "test_access_secret"
    assert crypto.decrypt(encrypted) == "test_access_secret"


def test_instance_is_shared():
    assert FernetEncryption() is FernetEncryption()


def test_value_from_another_key_is_unreadable():
    other = Fernet(Fernet.generate_key()).encrypt(b"secret").decode()

    assert FernetEncryption().decrypt(other) is None


def test_invalid_key():
    with pytest.raises(ValueError):
        FernetEncryption("dG9vLXNob3J0")


def test_encrypt_requires_string():
    with pytest.raises(ValueError):
        FernetEncryption().encrypt(b"bytes")
