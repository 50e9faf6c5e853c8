"""
RequestsClient ユニットテスト
ディスパッチ・インターセプター・デコード処理のテストケース
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from hookfeed_client.exceptions import DecodeError, TransportError
from hookfeed_client.transport.http_client import RequestsClient
from hookfeed_client.transport.models import RequestArgs, RequestConfig, TransportConfig


URL = "https://api.example.com/feeds/"


def make_client(handler, headers=None, config=None):
    """MockTransportを使うRequestsClientを作成"""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RequestsClient(headers=headers, config=config, http_client=http_client)


def recording_handler(sent, response=None):
    """送信リクエストを記録するハンドラー"""
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        if response is not None:
            return response
        return httpx.Response(200, json={"ok": True})
    return handler


class TestDispatch:
    """リクエスト組み立てのテストクラス"""

    @pytest.mark.asyncio
    async def test_instance_headers_override_call_headers(self):
        """ヘッダー衝突時はインスタンス共通ヘッダーが優先されるテスト"""
        sent = []
        client = make_client(recording_handler(sent), headers={"X-Client": "instance"})

        await client.get(RequestArgs(url=URL, headers={"X-Client": "call", "X-Trace": "abc"}))

        assert sent[0].headers["X-Client"] == "instance"
        assert sent[0].headers["X-Trace"] == "abc"

    @pytest.mark.asyncio
    async def test_json_body_forces_content_type(self):
        """bodyはJSONにシリアライズされContent-Typeが強制されるテスト"""
        sent = []
        client = make_client(recording_handler(sent))
        body = {"name": "alerts", "tags": [1, 2]}

        await client.post(RequestArgs(url=URL, body=body, headers={"Content-Type": "text/plain"}))

        assert sent[0].content == json.dumps(body).encode()
        assert sent[0].headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_raw_data_sent_verbatim_without_content_type(self):
        """dataはそのまま送信されContent-Typeが付与されないテスト"""
        sent = []
        client = make_client(recording_handler(sent))

        await client.put(RequestArgs(url=URL, body={"ignored": True}, data=b"\x00raw-bytes"))

        assert sent[0].content == b"\x00raw-bytes"
        assert "Content-Type" not in sent[0].headers

    @pytest.mark.asyncio
    async def test_get_never_sends_body(self):
        """GETではbodyが送信されないテスト"""
        sent = []
        client = make_client(recording_handler(sent))

        await client.get(RequestArgs(url=URL, body={"q": 1}))

        assert sent[0].content == b""
        assert "Content-Type" not in sent[0].headers

    @pytest.mark.asyncio
    async def test_patch_and_delete_methods(self):
        """PATCH/DELETEのメソッドが正しく送信されるテスト"""
        sent = []
        client = make_client(recording_handler(sent))

        await client.patch(RequestArgs(url=URL, body={"state": "read"}))
        await client.delete(RequestArgs(url=URL))

        assert [r.method for r in sent] == ["PATCH", "DELETE"]
        assert sent[0].headers["Content-Type"] == "application/json"


class TestTokenSource:
    """トークンソースのテストクラス"""

    @pytest.mark.asyncio
    async def test_empty_token_produces_no_authorization(self):
        """トークンが空の場合Authorizationヘッダーが付かないテスト"""
        sent = []
        client = make_client(recording_handler(sent)).with_token_source(lambda: None)

        await client.get(RequestArgs(url=URL))
        client.with_token_source(lambda: "")
        await client.get(RequestArgs(url=URL))

        assert all("Authorization" not in r.headers for r in sent)

    @pytest.mark.asyncio
    async def test_token_rotation_visible_on_next_call(self):
        """トークンの変更が再設定なしで次の呼び出しに反映されるテスト"""
        sent = []
        state = {"token": None}
        client = make_client(recording_handler(sent)).with_token_source(lambda: state["token"])

        await client.get(RequestArgs(url=URL))
        state["token"] = "T1"
        await client.get(RequestArgs(url=URL))
        state["token"] = "T2"
        await client.get(RequestArgs(url=URL))

        assert "Authorization" not in sent[0].headers
        assert sent[1].headers["Authorization"] == "Bearer T1"
        assert sent[2].headers["Authorization"] == "Bearer T2"

    @pytest.mark.asyncio
    async def test_token_overrides_caller_authorization(self):
        """トークンが呼び出し側のAuthorizationを上書きするテスト"""
        sent = []
        client = make_client(recording_handler(sent)).with_token_source(lambda: "T1")

        await client.get(RequestArgs(url=URL, headers={"authorization": "Basic abc"}))

        assert sent[0].headers.get_list("Authorization") == ["Bearer T1"]

    @pytest.mark.asyncio
    async def test_token_source_object(self):
        """current_token()を持つオブジェクトをトークンソースに使えるテスト"""
        class Source:
            def current_token(self):
                return "object-token"

        sent = []
        client = make_client(recording_handler(sent)).with_token_source(Source())

        await client.get(RequestArgs(url=URL))

        assert sent[0].headers["Authorization"] == "Bearer object-token"


class TestInterceptors:
    """インターセプターのテストクラス"""

    @pytest.mark.asyncio
    async def test_request_interceptors_compose_in_order(self):
        """リクエストインターセプターが登録順に合成されるテスト"""
        sent = []
        order = []

        def first(request: RequestConfig) -> RequestConfig:
            order.append("first")
            return request.with_header("X-Step", "1")

        def second(request: RequestConfig) -> RequestConfig:
            order.append("second")
            return request.with_header("X-Step", request.headers["X-Step"] + "2")

        client = (
            make_client(recording_handler(sent))
            .with_request_interceptor(first)
            .with_request_interceptor(second)
        )

        await client.get(RequestArgs(url=URL))

        assert order == ["first", "second"]
        assert sent[0].headers["X-Step"] == "12"

    @pytest.mark.asyncio
    async def test_request_interceptor_sees_token_and_body(self):
        """リクエストインターセプターがトークン注入後の設定を受け取るテスト"""
        seen = []

        def capture(request: RequestConfig) -> RequestConfig:
            seen.append(request)
            return request

        client = (
            make_client(recording_handler([]))
            .with_token_source(lambda: "T1")
            .with_request_interceptor(capture)
        )

        await client.post(RequestArgs(url=URL, body={"a": 1}))

        assert seen[0].headers["Authorization"] == "Bearer T1"
        assert seen[0].content == json.dumps({"a": 1})

    @pytest.mark.asyncio
    async def test_response_interceptors_once_in_order(self):
        """レスポンスインターセプターが登録順に1回ずつ呼ばれるテスト"""
        calls = []

        def observer(name):
            def interceptor(response: httpx.Response, request: RequestConfig):
                calls.append((name, response.status_code, request.method))
            return interceptor

        client = (
            make_client(recording_handler([], httpx.Response(200, json={"items": [1, 2]})))
            .with_response_interceptor(observer("a"))
            .with_response_interceptor(observer("b"))
        )

        result = await client.get(RequestArgs(url=URL))

        assert calls == [("a", 200, "GET"), ("b", 200, "GET")]
        assert result.data == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_async_response_interceptor_is_awaited(self):
        """非同期レスポンスインターセプターがawaitされるテスト"""
        interceptor = AsyncMock()
        client = make_client(recording_handler([])).with_response_interceptor(interceptor)

        await client.get(RequestArgs(url=URL))

        interceptor.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_derived_client_does_not_alias_configuration(self):
        """派生クライアントへの追加設定が元のクライアントに影響しないテスト"""
        sent = []
        base = make_client(recording_handler(sent))
        derived = base.derive().with_token_source(lambda: "derived-token")

        await base.get(RequestArgs(url=URL))
        await derived.get(RequestArgs(url=URL))

        assert "Authorization" not in sent[0].headers
        assert sent[1].headers["Authorization"] == "Bearer derived-token"
        assert base.config.token_sources == ()

    @pytest.mark.asyncio
    async def test_derived_client_shares_lazily_created_connection(self):
        """接続生成前に派生しても同じhttpx.AsyncClientを共有するテスト"""
        base = RequestsClient()
        derived = base.derive()
        nested = derived.derive()

        assert base._http_client is not None
        assert derived._http_client is base._http_client
        assert nested._http_client is base._http_client

        await nested.aclose()
        await derived.aclose()
        assert base._http_client.is_closed is False

        shared = base._http_client
        await base.aclose()
        assert shared.is_closed is True

    def test_builder_returns_same_instance(self):
        """with_*メソッドが同じインスタンスを返すテスト"""
        client = RequestsClient()

        assert client.with_token_source(lambda: None) is client
        assert client.with_request_interceptor(lambda r: r) is client
        assert client.with_response_interceptor(Mock()) is client
        assert len(client.config.token_sources) == 1

    def test_shared_config_value(self):
        """同じTransportConfigを複数クライアントで共有できるテスト"""
        config = TransportConfig(headers={"X-App": "hookfeed"}, timeout=5)

        first = RequestsClient(config=config)
        second = RequestsClient(config=config)

        assert first.config is second.config


class TestDecoding:
    """レスポンスデコードのテストクラス"""

    @pytest.mark.asyncio
    async def test_204_decodes_to_empty_object(self):
        """204はContent-Typeに関係なく空オブジェクトになるテスト"""
        response = httpx.Response(204, headers={"Content-Type": "application/json"})
        client = make_client(recording_handler([], response))

        result = await client.delete(RequestArgs(url=URL))

        assert result.status == 204
        assert result.error is False
        assert result.data == {}

    @pytest.mark.asyncio
    async def test_json_with_charset_parameter(self):
        """charset付きのapplication/jsonもJSONとしてデコードされるテスト"""
        response = httpx.Response(
            200,
            content=b'{"id": "f1"}',
            headers={"Content-Type": "Application/JSON; charset=utf-8"}
        )
        client = make_client(recording_handler([], response))

        result = await client.get(RequestArgs(url=URL))

        assert result.data == {"id": "f1"}

    @pytest.mark.asyncio
    async def test_malformed_json_degrades_to_empty_object(self):
        """不正なJSONは空オブジェクトになるテスト"""
        response = httpx.Response(200, content=b"{not json", headers={"Content-Type": "application/json"})
        client = make_client(recording_handler([], response))

        result = await client.get(RequestArgs(url=URL))

        assert result.data == {}
        assert result.error is False

    @pytest.mark.asyncio
    async def test_malformed_json_raises_in_strict_mode(self):
        """strict_jsonでは不正なJSONがDecodeErrorになるテスト"""
        response = httpx.Response(502, content=b"<html>", headers={"Content-Type": "application/json"})
        client = make_client(recording_handler([], response), config=TransportConfig(strict_json=True))

        with pytest.raises(DecodeError) as exc_info:
            await client.get(RequestArgs(url=URL))

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_non_json_body_passed_through_raw(self):
        """JSON以外のボディは未加工のまま返されるテスト"""
        response = httpx.Response(200, content=b"id,name\n1,alerts\n", headers={"Content-Type": "text/csv"})
        client = make_client(recording_handler([], response))

        result = await client.get(RequestArgs(url=URL))

        assert result.data == b"id,name\n1,alerts\n"
        assert result.response.status_code == 200

    @pytest.mark.asyncio
    async def test_http_error_is_data_not_exception(self):
        """HTTPエラーは例外ではなくerrorフラグで表現されるテスト"""
        response = httpx.Response(404, json={"error": "not found"})
        client = make_client(recording_handler([], response))

        result = await client.get(RequestArgs(url=URL))

        assert result.status == 404
        assert result.error is True
        assert result.data == {"error": "not found"}

    @pytest.mark.asyncio
    async def test_transport_fault_propagates(self):
        """接続エラーがTransportErrorとして伝播するテスト"""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        interceptor = Mock()
        client = make_client(handler).with_response_interceptor(interceptor)

        with pytest.raises(TransportError) as exc_info:
            await client.get(RequestArgs(url=URL))

        assert exc_info.value.url == URL
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        interceptor.assert_not_called()


class TestDownload:
    """download_to_fileのテストクラス"""

    @pytest.mark.asyncio
    async def test_download_writes_file_without_interceptors(self, tmp_path):
        """ダウンロードがインターセプターを経由せずファイルに保存されるテスト"""
        sent = []
        response = httpx.Response(200, content=b"binary-export")
        request_interceptor = Mock(side_effect=lambda r: r)
        response_interceptor = Mock()
        client = (
            make_client(recording_handler(sent, response), headers={"X-Default": "1"})
            .with_token_source(lambda: "T1")
            .with_request_interceptor(request_interceptor)
            .with_response_interceptor(response_interceptor)
        )
        target = tmp_path / "exports" / "feed.bin"

        result = await client.download_to_file(URL, target)

        assert result is True
        assert target.read_bytes() == b"binary-export"
        assert sent[0].headers["Authorization"] == "Bearer T1"
        assert sent[0].headers["Content-Type"] == "application/octet-stream"
        assert "X-Default" not in sent[0].headers
        request_interceptor.assert_not_called()
        response_interceptor.assert_not_called()

    @pytest.mark.asyncio
    async def test_download_failure_returns_false(self, tmp_path):
        """ダウンロード失敗時は例外を送出せずFalseを返すテスト"""
        client = make_client(recording_handler([], httpx.Response(500)))
        target = tmp_path / "feed.bin"

        result = await client.download_to_file(URL, target)

        assert result is False
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_download_transport_fault_returns_false(self, tmp_path):
        """ダウンロード中の接続エラーでもFalseを返すテスト"""
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = make_client(handler)

        assert await client.download_to_file(URL, tmp_path / "feed.bin") is False

    @pytest.mark.asyncio
    async def test_download_invalid_url_returns_false(self, tmp_path):
        """不正なURLでも例外を送出せずFalseを返すテスト"""
        client = make_client(recording_handler([]))
        target = tmp_path / "feed.bin"

        assert await client.download_to_file("http://[::1", target) is False
        assert not target.exists()


if __name__ == '__main__':
    pytest.main([__file__])
