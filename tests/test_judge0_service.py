import asyncio
import json
from decimal import Decimal

import pytest

from codejudge.common.errors import JudgeTimeout, JudgeUnavailable
from codejudge.features.judge0 import schemas as judge0_schemas
from codejudge.features.judge0.schemas import Judge0Status, JudgeResult
from codejudge.features.judge0.service import Judge0Service


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


def _service(batch_size=20, attempts=5):
    service = Judge0Service()
    service.base_url = "http://example.test"
    service.max_batch_size = batch_size
    service.max_poll_attempts = attempts
    service.poll_interval = 0
    return service


def _case(stdin):
    return judge0_schemas.TestInvocation(language_id=109, source_code="print(input())", stdin=stdin, expected_output=stdin)


def _tokens_from_path(path):
    query = path.split("tokens=", 1)[1]
    return query.split("&", 1)[0].split(",")


def _result(token, status_id=3, time="0.01", memory=256, stdout="ok"):
    return {
        "token": token,
        "stdout": stdout,
        "stderr": None,
        "compile_output": None,
        "message": None,
        "time": time,
        "memory": memory,
        "status": {"id": status_id, "description": "x"},
    }


def test_submit_batch_chunks_and_keeps_order(monkeypatch):
    service = _service(batch_size=2)
    posted = []

    async def fake_request(method, path, **kwargs):
        assert method == "POST"
        subs = kwargs["json"]["submissions"]
        posted.append([s["stdin"] for s in subs])
        return _FakeResponse([{"token": f"tok-{s['stdin']}"} for s in subs], status_code=201)

    monkeypatch.setattr(service, "_request", fake_request)

    tokens = asyncio.run(service.submit_batch([_case(str(i)) for i in range(5)]))

    assert posted == [["0", "1"], ["2", "3"], ["4"]]
    assert tokens == ["tok-0", "tok-1", "tok-2", "tok-3", "tok-4"]


def test_submit_batch_accepts_submission_tokens_shape(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        return _FakeResponse({"submission_tokens": [{"token": "a"}, {"token": "b"}]})

    monkeypatch.setattr(service, "_request", fake_request)

    assert asyncio.run(service.submit_batch([_case("1"), _case("2")])) == ["a", "b"]


def test_submit_batch_token_count_mismatch_is_unavailable(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        return _FakeResponse([{"token": "only-one"}], status_code=201)

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(JudgeUnavailable):
        asyncio.run(service.submit_batch([_case("1"), _case("2")]))


def test_submit_batch_http_error_is_unavailable(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        return _FakeResponse({"error": "quota"}, status_code=429)

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(JudgeUnavailable, match="429"):
        asyncio.run(service.submit_batch([_case("1")]))


def test_fetch_batch_aligns_results_to_tokens(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        toks = _tokens_from_path(path)
        # Judge0 echoes tokens; respond in reverse to check alignment by token
        return _FakeResponse({"submissions": [_result(t, stdout=t) for t in reversed(toks)]})

    monkeypatch.setattr(service, "_request", fake_request)

    results = asyncio.run(service.fetch_batch(["x", "y", "z"]))

    assert [r.token for r in results] == ["x", "y", "z"]
    assert [r.stdout for r in results] == ["x", "y", "z"]
    assert results[0].time == Decimal("0.01")


def test_fetch_batch_malformed_entry_is_unavailable(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        return _FakeResponse({"submissions": [{"token": "x", "time": "0.1"}]})

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(JudgeUnavailable, match="Malformed"):
        asyncio.run(service.fetch_batch(["x"]))


def test_fetch_batch_unknown_status_is_unavailable(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        return _FakeResponse({"submissions": [_result("x", status_id=99)]})

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(JudgeUnavailable):
        asyncio.run(service.fetch_batch(["x"]))


def test_poll_waits_until_every_token_is_terminal(monkeypatch):
    service = _service(attempts=5)
    rounds = {"n": 0}

    async def fake_request(method, path, **kwargs):
        rounds["n"] += 1
        toks = _tokens_from_path(path)
        status = 2 if rounds["n"] < 3 else 3
        return _FakeResponse({"submissions": [_result(t, status_id=status) for t in toks]})

    monkeypatch.setattr(service, "_request", fake_request)

    results = asyncio.run(service.poll_until_complete(["a", "b"]))

    assert rounds["n"] == 3
    assert all(r.status is Judge0Status.ACCEPTED for r in results)


def test_poll_ceiling_raises_judge_timeout(monkeypatch):
    service = _service(attempts=3)
    rounds = {"n": 0}

    async def fake_request(method, path, **kwargs):
        rounds["n"] += 1
        return _FakeResponse({"submissions": [_result("a", status_id=1)]})

    monkeypatch.setattr(service, "_request", fake_request)

    with pytest.raises(JudgeTimeout):
        asyncio.run(service.poll_until_complete(["a"]))
    assert rounds["n"] == 3


def test_execute_returns_results_in_case_order(monkeypatch):
    service = _service(batch_size=2)

    async def fake_request(method, path, **kwargs):
        if method == "POST":
            subs = kwargs["json"]["submissions"]
            return _FakeResponse([{"token": f"t{s['stdin']}"} for s in subs], status_code=201)
        toks = _tokens_from_path(path)
        return _FakeResponse([_result(t, stdout=t[1:]) for t in toks])

    monkeypatch.setattr(service, "_request", fake_request)

    results = asyncio.run(service.execute([_case("1"), _case("2"), _case("3")]))

    assert [r.stdout for r in results] == ["1", "2", "3"]


def test_execute_with_no_cases_makes_no_request(monkeypatch):
    service = _service()

    async def fake_request(method, path, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(service, "_request", fake_request)

    assert asyncio.run(service.execute([])) == []


def test_request_without_base_url_is_unavailable():
    service = Judge0Service()
    service.base_url = ""

    with pytest.raises(JudgeUnavailable, match="not configured"):
        asyncio.run(service._request("GET", "/languages"))


def test_from_payload_accepts_flat_status_id_and_diagnostic_order():
    result = JudgeResult.from_payload({
        "status_id": 11,
        "time": None,
        "memory": None,
        "stderr": "",
        "compile_output": None,
        "message": "Exited with error status 1",
    })

    assert result.status is Judge0Status.RUNTIME_ERROR_NZEC
    assert result.status.is_runtime_error
    assert result.time == Decimal("0")
    assert result.memory == 0
    assert result.diagnostic == "Exited with error status 1"
