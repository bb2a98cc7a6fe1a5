"""
Secure exchange with the enterprise verification gateway.

Structure:
- cipher: signing/verification and field encryption contract.
- encoding: form codec, digests and order ids.
- request_builder: assemble, encrypt and sign outgoing requests.
- client: HTTP transport.
- response_processor: verify, decode and decrypt replies.
- service: the end-to-end pipeline and result mapping.
"""

from .cipher import CipherResult, RsaExchangeCipher, SignedExchangeCipher
from .models import CallerIdentity, EnterpriseAuthRequest, EnterpriseAuthResult, GatewayResponse, SensitiveData
from .request_builder import ExchangeRequestBuilder, SignedExchangeRequest
from .response_processor import ExchangeResponseProcessor
from .client import GatewayClient
from .service import EnterpriseAuthExchange

__all__ = [
    "CallerIdentity",
    "CipherResult",
    "EnterpriseAuthExchange",
    "EnterpriseAuthRequest",
    "EnterpriseAuthResult",
    "ExchangeRequestBuilder",
    "ExchangeResponseProcessor",
    "GatewayClient",
    "GatewayResponse",
    "RsaExchangeCipher",
    "SensitiveData",
    "SignedExchangeCipher",
    "SignedExchangeRequest",
]
