"""Tests for the HTTP surface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from coderunner import main, schemas

client = TestClient(main.app)


def test_health() -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_run_uses_camel_case_and_omits_empty_fields(monkeypatch) -> None:
    seen = []

    def fake_execute(req):
        seen.append(req)
        return schemas.ExecutionResponse(success=True, raw_output="hi")

    monkeypatch.setattr(main, "execute", fake_execute)

    resp = client.post("/run", json={"sourceCode": "print('hi')", "mode": "run"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "rawOutput": "hi"}
    assert seen[0].source_code == "print('hi')"
    assert seen[0].test_cases == []


def test_test_results_are_serialised_with_wire_names(monkeypatch) -> None:
    result = schemas.TestResult(
        input_expression="add(2, 3)",
        expected_output="5",
        actual_output="5",
        passed=True,
        description="adds",
    )

    def fake_execute(req):
        assert req.test_cases[0].input_expression == "add(2, 3)"
        assert req.test_cases[0].id == 2
        return schemas.ExecutionResponse(success=True, raw_output="", test_results=[result], summary="1/1 passed")

    monkeypatch.setattr(main, "execute", fake_execute)

    resp = client.post(
        "/run",
        json={
            "sourceCode": "def add(a, b): return a + b",
            "mode": "test",
            "testCases": [{"id": 2, "inputExpression": "add(2, 3)", "expectedOutput": "5", "description": "adds"}],
        },
    )

    body = resp.json()
    assert body["summary"] == "1/1 passed"
    assert body["testResults"] == [
        {
            "inputExpression": "add(2, 3)",
            "expectedOutput": "5",
            "actualOutput": "5",
            "passed": True,
            "description": "adds",
        }
    ]


def test_invalid_mode_is_rejected() -> None:
    resp = client.post("/run", json={"sourceCode": "print(1)", "mode": "compile"})

    assert resp.status_code == 422


def test_unexpected_errors_map_to_500(monkeypatch) -> None:
    def explode(req):
        raise RuntimeError("bug")

    monkeypatch.setattr(main, "execute", explode)

    resp = client.post("/run", json={"sourceCode": "print(1)"})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "execution error"}


def test_end_to_end_print_output(local_sandbox) -> None:
    resp = client.post(
        "/run",
        json={
            "sourceCode": "print(5)\n",
            "mode": "test",
            "testCases": [{"inputExpression": "print_output", "expectedOutput": "5", "description": "prints five"}],
        },
    )

    body = resp.json()
    assert body["success"] is True
    assert body["summary"] == "1/1 passed"
    assert body["testResults"][0]["actualOutput"] == "5"
    assert "error" not in body["testResults"][0]
