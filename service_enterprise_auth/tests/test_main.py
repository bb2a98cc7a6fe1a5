"""
Unit tests for the enterprise auth HTTP service.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from service_enterprise_auth.app.banks import DirectoryCache
from service_enterprise_auth.app.exchange import EnterpriseAuthExchange
from service_enterprise_auth.app.main import EnterpriseAuthService, create_app
from service_enterprise_auth.app.tokens import TokenCodec
from shared.errors import ConfigurationError
from shared.test_helpers import TEST_SECRET, FakeExchangeCipher, TestDataFactory, build_gateway_reply

SENSITIVE = {"accountNo": "6222020200112233445", "keyName": "上海示例科技有限公司", "usrName": "张三"}


class GatewayStub:
    """Scriptable verification gateway."""

    def __init__(self, cipher):
        self.cipher = cipher
        self.status = 200
        self.reply = build_gateway_reply(cipher, TestDataFactory.create_gateway_fields(), SENSITIVE)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, content=self.reply.encode())


class TestEnterpriseAuthService:
    """Test cases for EnterpriseAuthService."""

    @pytest.fixture
    def gateway(self):
        return GatewayStub(FakeExchangeCipher())

    @pytest.fixture
    def bank_file(self, config):
        with open(config.bank_json_path, "w", encoding="utf-8") as handle:
            json.dump(TestDataFactory.create_bank_directory(), handle, ensure_ascii=False)

    def _client(self, config, gateway, **overrides) -> TestClient:
        exchange = EnterpriseAuthExchange.from_config(
            config, cipher=gateway.cipher, transport=httpx.MockTransport(gateway)
        )
        app = create_app(config, exchange=exchange, **overrides)
        return TestClient(app, raise_server_exceptions=False)

    @pytest.fixture
    def client(self, config, gateway):
        return self._client(config, gateway)

    @pytest.fixture
    def auth_headers(self):
        token = TokenCodec(TEST_SECRET).issue(TestDataFactory.create_test_users()[0].claims(), 3600)
        return {"Authorization": f"Bearer {token}"}

    @pytest.fixture
    def payload(self):
        return TestDataFactory.create_enterprise_auth_request().model_dump(by_alias=True, exclude_none=True)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "enterprise-auth"

    def test_health_endpoint(self, client, bank_file):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"bank_directory": "ok"}

    def test_health_reports_missing_bank_file(self, client):
        assert client.get("/health").json()["dependencies"] == {"bank_directory": "missing"}

    def test_metrics_endpoint(self, client):
        client.get("/")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_metrics_label_unknown_paths_as_unmatched(self, client):
        client.get("/")
        assert client.get("/scan-1").status_code == 404
        assert client.get("/scan-2/admin").status_code == 404

        text = client.get("/metrics").text

        assert 'http_requests_total{method="GET",endpoint="unmatched",status_code="404"} 2.0' in text
        assert 'http_requests_total{method="GET",endpoint="/",status_code="200"} 1.0' in text
        assert "/scan-1" not in text

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_test_endpoint_requires_token(self, client, auth_headers):
        assert client.get("/test").status_code == 401

        response = client.get("/test", headers=auth_headers)
        assert response.status_code == 200
        assert response.text == "Test response"

    @pytest.mark.parametrize("header,code", [
        (None, "MALFORMED_TOKEN"),
        ("Bearer abc", "MALFORMED_TOKEN"),
        ("Bearer a.b.c", "BAD_SIGNATURE"),
    ])
    def test_rejected_tokens(self, client, payload, header, code):
        headers = {"Authorization": header} if header else {}

        response = client.post("/v1/enterprise-auth", json=payload, headers=headers)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == code
        assert body["error"]["error_id"]

    def test_enterprise_auth_success(self, client, gateway, auth_headers, payload):
        response = client.post("/v1/enterprise-auth", json=payload, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["isTransactionSuccess"] is True
        assert body["data"]["enterpriseName"] == "上海示例科技有限公司"
        assert body["data"]["isCharged"] is True
        assert len(gateway.requests) == 1
        assert gateway.requests[0].headers["Content-Type"].startswith("application/x-www-form-urlencoded")

    def test_enterprise_auth_business_failure_is_200(self, client, gateway, auth_headers, payload):
        fields = TestDataFactory.create_gateway_fields("20000001")
        gateway.reply = build_gateway_reply(gateway.cipher, fields)

        response = client.post("/v1/enterprise-auth", json=payload, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isTransactionSuccess"] is False
        assert data["enterpriseName"] == payload["keyName"]
        assert "transAmt" not in data

    @pytest.mark.parametrize("change", [
        {"key": "123"},
        {"key": "   "},
        {"subBank": "123"},
        {"accountNo": ""},
        {"keyName": None},
    ])
    def test_enterprise_auth_validation(self, client, gateway, auth_headers, payload, change):
        payload.update(change)
        payload = {k: v for k, v in payload.items() if v is not None}

        response = client.post("/v1/enterprise-auth", json=payload, headers=auth_headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"]
        assert gateway.requests == []

    def test_gateway_failure_is_redacted_in_production(self, config, gateway, auth_headers, payload):
        config.app_env = "prod"
        gateway.status = 502
        client = self._client(config, gateway)

        response = client.post("/v1/enterprise-auth", json=payload, headers=auth_headers)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "GATEWAY_HTTP_ERROR"
        assert error["message"].endswith(error["error_id"])
        assert error["details"] == {}

    def test_gateway_failure_is_detailed_in_development(self, client, gateway, auth_headers, payload):
        gateway.status = 502

        response = client.post("/v1/enterprise-auth", json=payload, headers=auth_headers)

        assert response.status_code == 500
        error = response.json()["error"]
        assert "502" in error["message"]
        assert error["details"]["status_code"] == 502

    def test_tampered_reply(self, client, gateway, auth_headers, payload):
        gateway.reply = gateway.reply.replace("signature=", "signature=x")

        response = client.post("/v1/enterprise-auth", json=payload, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "SIGNATURE_VERIFICATION_FAILED"

    def test_banks(self, client, auth_headers, bank_file):
        response = client.get("/v1/banks", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": TestDataFactory.create_bank_directory()}

    def test_banks_missing_file(self, client, auth_headers):
        response = client.get("/v1/banks", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "SOURCE_NOT_FOUND"

    def test_banks_requires_token(self, client, bank_file):
        assert client.get("/v1/banks").status_code == 401

    def test_unknown_route(self, client):
        response = client.get("/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    def test_unhandled_exception_is_redacted_in_production(self, config, gateway, auth_headers):
        config.app_env = "prod"
        broken = DirectoryCache(config.bank_json_path)
        broken.get = lambda: 1 / 0
        client = self._client(config, gateway, bank_directory=broken)

        response = client.get("/v1/banks", headers=auth_headers)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert "division" not in error["message"]
        assert error["error_id"] in error["message"]

    def test_docs_only_in_development(self, config, gateway):
        assert self._client(config, gateway).get("/docs").status_code == 200

        config.app_env = "prod"
        assert self._client(config, gateway).get("/docs").status_code == 404

    def test_missing_secret_aborts_startup(self, config, gateway):
        config.jwt_secret = None
        with pytest.raises(ConfigurationError):
            EnterpriseAuthService(config, exchange=EnterpriseAuthExchange.from_config(config, cipher=gateway.cipher))
