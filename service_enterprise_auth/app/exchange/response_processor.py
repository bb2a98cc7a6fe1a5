"""
Verifies and decodes gateway replies.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, Optional

from pydantic import ValidationError as ModelValidationError

from shared.errors import DecryptionFailedError, GatewayResponseError, SignatureVerificationFailedError
from shared.logging import get_logger

from .cipher import SignedExchangeCipher
from .encoding import parse_form, sha512_hex
from .models import GatewayResponse, SensitiveData


class ExchangeResponseProcessor:
    """Turn a raw gateway form body into a verified ``GatewayResponse``.

    Order matters: the envelope signature is verified before ``respData`` is
    decoded, and ``sensData`` is only decrypted after verification succeeded.
    """

    def __init__(self, cipher: SignedExchangeCipher):
        self.cipher = cipher
        self.logger = get_logger("enterprise-auth.response_processor")

    def process(self, body: Optional[str]) -> GatewayResponse:
        envelope = parse_form(body)
        resp_data = envelope.get("respData")

        self.verify(envelope)
        fields = self.decode(resp_data)

        sens_data = fields.pop("sensData", None)
        try:
            response = GatewayResponse.model_validate(fields)
        except ModelValidationError as e:
            raise GatewayResponseError(
                "respData fields have unexpected types",
                details={"error_count": e.error_count()}
            )

        if sens_data is not None:
            response.sens_data = self.decrypt_sensitive(sens_data)

        return response

    def verify(self, envelope: Dict[str, str]) -> None:
        resp_data = envelope.get("respData")
        signature = envelope.get("signature")
        if resp_data is None or not signature:
            raise SignatureVerificationFailedError(
                "Gateway reply is missing respData or signature",
                details={"fields": sorted(envelope)}
            )

        result = self.cipher.verify({"respData": sha512_hex(resp_data), "signature": signature})
        if not result.ok:
            self.logger.error("Gateway signature verification failed", status=result.status)
            raise SignatureVerificationFailedError(details={"status": result.status})

    def decode(self, resp_data: str) -> Dict[str, Any]:
        try:
            decoded = json.loads(base64.b64decode(resp_data, validate=True).decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise GatewayResponseError("respData is not base64 JSON", details={"error": str(e)})
        if not isinstance(decoded, dict):
            raise GatewayResponseError("respData is not a JSON object")
        return decoded

    def decrypt_sensitive(self, sens_data: Any) -> SensitiveData:
        if not isinstance(sens_data, str):
            raise DecryptionFailedError("sensData is not a string")

        result = self.cipher.decrypt_field(sens_data)
        if not result.ok or result.value is None:
            self.logger.error("Failed to decrypt sensitive data", status=result.status)
            raise DecryptionFailedError(
                f"Failed to decrypt sensitive data: {result.message}",
                details={"status": result.status}
            )

        try:
            return SensitiveData.model_validate_json(result.value)
        except ModelValidationError:
            raise DecryptionFailedError("Decrypted sensitive data is not a valid JSON object")
