"""
Unit tests for EnterpriseAuthExchange.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from service_enterprise_auth.app.exchange import (
    EnterpriseAuthExchange,
    ExchangeRequestBuilder,
    ExchangeResponseProcessor,
    GatewayClient,
    GatewayResponse,
    SensitiveData,
)
from shared.errors import ConfigurationError, GatewayHttpError, GatewayResponseError
from shared.test_helpers import TestDataFactory, build_gateway_reply

SENSITIVE = {"accountNo": "6222020200112233445", "keyName": "上海示例科技有限公司", "usrName": "张三"}


def _metric_value(metrics, name, **labels):
    return metrics.registry.get_sample_value(name, labels)


class TestEnterpriseAuthExchange:
    """Test cases for EnterpriseAuthExchange."""

    @pytest.fixture
    def identity(self):
        return TestDataFactory.create_test_users()[0].identity()

    @pytest.fixture
    def auth_request(self):
        return TestDataFactory.create_enterprise_auth_request()

    def _exchange(self, cipher, metrics, reply: str = "", status: int = 200):
        def handler(request):
            return httpx.Response(status, content=reply.encode())

        return EnterpriseAuthExchange(
            ExchangeRequestBuilder(cipher, "M0001", clock=lambda: datetime(2024, 1, 1)),
            GatewayClient("https://gateway.test/3060", transport=httpx.MockTransport(handler)),
            ExchangeResponseProcessor(cipher),
            metrics=metrics,
        )

    @pytest.mark.asyncio
    async def test_successful_verification(self, fake_cipher, metrics, auth_request, identity):
        reply = build_gateway_reply(fake_cipher, TestDataFactory.create_gateway_fields(), SENSITIVE)
        exchange = self._exchange(fake_cipher, metrics, reply)

        result = await exchange.run(auth_request, identity)

        assert result.is_transaction_success is True
        assert result.resp_code == "00000000"
        assert result.enterprise_name == "上海示例科技有限公司"
        assert result.legal_person_name == "张三"
        assert result.account_prov == "310000"
        assert result.is_charged is True
        assert result.trans_amt == "100"
        assert _metric_value(
            metrics, "business_events_total", event_type="exchange_succeeded", service="enterprise-auth"
        ) == 1.0
        assert _metric_value(metrics, "gateway_request_duration_seconds_count", outcome="ok") == 1.0

    @pytest.mark.asyncio
    async def test_business_failure_echoes_request(self, fake_cipher, metrics, identity):
        auth_request = TestDataFactory.create_enterprise_auth_request(keyName="错误名称")
        fields = TestDataFactory.create_gateway_fields("20000001", orderStatus="0001", key="IGNORED")
        exchange = self._exchange(fake_cipher, metrics, build_gateway_reply(fake_cipher, fields))

        result = await exchange.run(auth_request, identity)

        assert result.is_transaction_success is False
        assert result.resp_code == "20000001"
        assert result.resp_msg == "account name mismatch"
        assert result.key == auth_request.key
        assert result.enterprise_name == "错误名称"
        assert result.legal_person_name == auth_request.usr_name
        assert result.order_id == fields["orderId"]
        assert result.is_charged is False
        assert result.trans_amt is None
        assert _metric_value(
            metrics, "business_events_total", event_type="exchange_business_failure", service="enterprise-auth"
        ) == 1.0

    @pytest.mark.asyncio
    async def test_gateway_http_error_propagates(self, fake_cipher, metrics, auth_request, identity):
        exchange = self._exchange(fake_cipher, metrics, status=502)

        with pytest.raises(GatewayHttpError):
            await exchange.run(auth_request, identity)

        assert _metric_value(metrics, "gateway_request_duration_seconds_count", outcome="error") == 1.0

    @pytest.mark.asyncio
    async def test_processor_not_called_on_transport_error(self, fake_cipher, auth_request, identity):
        builder = ExchangeRequestBuilder(fake_cipher, "M0001")
        client = AsyncMock(spec=GatewayClient)
        client.post_form.side_effect = GatewayHttpError("Gateway unavailable")
        processor = MagicMock(spec=ExchangeResponseProcessor)

        with pytest.raises(GatewayHttpError):
            await EnterpriseAuthExchange(builder, client, processor).run(auth_request, identity)

        processor.process.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancellation_abandons_gateway_call(self, fake_cipher, metrics, auth_request, identity):
        started = asyncio.Event()

        async def handler(request):
            started.set()
            await asyncio.sleep(3600)
            return httpx.Response(200)

        exchange = EnterpriseAuthExchange(
            ExchangeRequestBuilder(fake_cipher, "M0001"),
            GatewayClient("https://gateway.test/3060", transport=httpx.MockTransport(handler)),
            ExchangeResponseProcessor(fake_cipher),
            metrics=metrics,
        )

        task = asyncio.create_task(exchange.run(auth_request, identity))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert "verify" not in fake_cipher.calls
        assert "decrypt" not in fake_cipher.calls
        assert _metric_value(metrics, "gateway_request_duration_seconds_count", outcome="ok") is None

    @pytest.mark.asyncio
    async def test_rsa_end_to_end(self, merchant_cipher, gateway_cipher, metrics, auth_request, identity):
        reply = build_gateway_reply(gateway_cipher, TestDataFactory.create_gateway_fields(), SENSITIVE)
        exchange = self._exchange(merchant_cipher, metrics, reply)

        result = await exchange.run(auth_request, identity)

        assert result.enterprise_name == SENSITIVE["keyName"]

    def test_success_without_sensitive_data(self):
        response = GatewayResponse(resp_code="00000000", order_status="0000")

        with pytest.raises(GatewayResponseError):
            EnterpriseAuthExchange.to_result(TestDataFactory.create_enterprise_auth_request(), response)

    def test_success_not_charged(self):
        response = GatewayResponse(
            resp_code="00000000",
            order_status="0001",
            sens_data=SensitiveData(key_name="A", usr_name="B"),
        )

        result = EnterpriseAuthExchange.to_result(TestDataFactory.create_enterprise_auth_request(), response)

        assert result.is_transaction_success is True
        assert result.is_charged is False

    def test_result_wire_names(self):
        response = GatewayResponse(resp_code="00000000", sens_data=SensitiveData(key_name="A", usr_name="B"))

        wire = EnterpriseAuthExchange.to_result(TestDataFactory.create_enterprise_auth_request(), response).to_wire()

        assert wire["isTransactionSuccess"] is True
        assert wire["enterpriseName"] == "A"
        assert wire["legalPersonName"] == "B"
        assert "transAmt" not in wire


class TestExchangeFromConfig:
    """Construction from configuration."""

    def test_requires_merchant_number(self, config, fake_cipher):
        config.merchant_no = None
        with pytest.raises(ConfigurationError):
            EnterpriseAuthExchange.from_config(config, cipher=fake_cipher)

    def test_requires_gateway_url(self, config, fake_cipher):
        config.unionpay_3060_api = None
        with pytest.raises(ConfigurationError):
            EnterpriseAuthExchange.from_config(config, cipher=fake_cipher)

    def test_requires_cipher_keys(self, config, tmp_path):
        config.secss_config_path = str(tmp_path / "missing")
        with pytest.raises(ConfigurationError):
            EnterpriseAuthExchange.from_config(config)

    def test_uses_configured_timeout(self, config, fake_cipher):
        config.gateway_timeout_seconds = 5.0
        exchange = EnterpriseAuthExchange.from_config(config, cipher=fake_cipher)
        assert exchange.client.timeout == 5.0
