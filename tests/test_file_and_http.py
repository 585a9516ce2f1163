import os

import httpx
import pytest

from ponscript import pon_http
from ponscript.pon_file import file_get_text, resolve_locator
from ponscript.pon_serialize import decode_text, load_object_literal


def test_resolve_locator_variants(tmp_path):
    base = str(tmp_path)
    assert resolve_locator("file:///abs/x.pon", base) == "/abs/x.pon"
    assert resolve_locator("/abs/x.pon", base) == "/abs/x.pon"
    assert resolve_locator("x.pon", base) == os.path.join(base, "x.pon")
    assert resolve_locator("file://./sub/x.pon", base) == os.path.join(base, "sub", "x.pon")
    assert resolve_locator("../x.pon", base) == os.path.normpath(os.path.join(base, "..", "x.pon"))
    assert resolve_locator("", base) == base
    assert resolve_locator("~/x.pon", base) == os.path.expanduser("~/x.pon")


@pytest.mark.asyncio
async def test_file_get_text(tmp_path):
    (tmp_path / "s.pon").write_text("héllo", encoding="utf-8")
    assert await file_get_text("s.pon", base_dir=str(tmp_path)) == "héllo"
    (tmp_path / "l.pon").write_bytes("caf\xe9".encode("latin-1"))
    assert await file_get_text("l.pon", {"encoding": "latin-1"}, base_dir=str(tmp_path)) == "café"


@pytest.mark.asyncio
async def test_file_get_text_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        await file_get_text("nope.pon", base_dir=str(tmp_path))
    with pytest.raises(IsADirectoryError):
        await file_get_text(str(tmp_path))


def test_decode_text_uses_charset():
    assert decode_text("caf\xe9".encode("latin-1"), content_type="text/plain; charset=latin-1") == "café"
    assert decode_text(b"\xef\xbb\xbfabc") == "abc"


def test_load_object_literal_json_then_yaml():
    assert load_object_literal('{"a": 1}') == {"a": 1}
    assert load_object_literal("{a: 1, b: 'x'}") == {"a": 1, "b": "x"}
    with pytest.raises(ValueError):
        load_object_literal('{"a": ')


def _patch_client(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(pon_http.httpx, "AsyncClient", factory)


@pytest.mark.asyncio
async def test_http_get_text_success(monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=":x\n".encode("utf-8"), headers={"Content-Type": "text/plain; charset=utf-8"})

    _patch_client(monkeypatch, handler)
    text = await pon_http.http_get_text("http://example.com/a.pon", {"headers": {"X-Test": "1"}})
    assert text == ":x\n"
    assert seen[0].headers["X-Test"] == "1"


@pytest.mark.asyncio
async def test_http_get_text_retries_then_raises(monkeypatch):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404, text="missing")

    _patch_client(monkeypatch, handler)
    with pytest.raises(RuntimeError) as ei:
        await pon_http.http_get_text("http://example.com/a.pon", {"retries": 2, "backoff": 0})
    assert "HTTP 404" in str(ei.value)
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_http_get_text_recovers_on_retry(monkeypatch):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, text="ok")

    _patch_client(monkeypatch, handler)
    assert await pon_http.http_get_text("http://example.com/a.pon", {"backoff": 0}) == "ok"
    assert len(calls) == 2
