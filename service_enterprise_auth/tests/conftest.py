"""
Shared fixtures for enterprise auth tests.
"""

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from service_enterprise_auth.app.exchange.cipher import RsaExchangeCipher
from shared.config import get_config
from shared.metrics import MetricsCollector
from shared.test_helpers import TEST_SECRET, FakeExchangeCipher


@pytest.fixture(scope="session")
def merchant_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def gateway_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def merchant_cipher(merchant_key, gateway_key):
    """Cipher as held by the service."""
    return RsaExchangeCipher(merchant_key, gateway_key.public_key())


@pytest.fixture
def gateway_cipher(merchant_key, gateway_key):
    """Cipher as held by the gateway."""
    return RsaExchangeCipher(gateway_key, merchant_key.public_key())


@pytest.fixture
def fake_cipher():
    return FakeExchangeCipher()


@pytest.fixture
def metrics():
    return MetricsCollector("enterprise-auth")


@pytest.fixture
def config(tmp_path):
    return get_config(
        app_env="dev",
        jwt_secret=TEST_SECRET,
        unionpay_3060_api="https://gateway.test/3060",
        merchant_no="M0001",
        bank_json_path=str(tmp_path / "bank.json"),
    )
