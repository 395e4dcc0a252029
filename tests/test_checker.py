import pytest
import requests

from arena.core.errors import InvalidStepError, NotFoundError, UpstreamCheckError
from arena.services.checker import AnswerChecker


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def make_checker(**kwargs):
    session = FakeSession(**kwargs)
    return AnswerChecker(timeout=3.0, session=session), session


def check(checker, step=1, answer="42", address="http://catalog.test/"):
    return checker.check(address, "aoc", "p-1", step, "u-1", answer)


@pytest.mark.parametrize("matches", [True, False])
def test_check_returns_verdict(matches):
    checker, session = make_checker(response=FakeResponse(payload={"matches": matches}))
    assert check(checker) is matches


def test_check_builds_step_url_and_params():
    checker, session = make_checker(response=FakeResponse(payload={"matches": True}))
    check(checker, step=2, answer="a b&c")

    ((url, params, timeout),) = session.requests
    assert url == "http://catalog.test/puzzle/check/second"
    assert params == {"theme": "aoc", "puzzle": "p-1", "unique_id": "u-1", "solution": "a b&c"}
    assert timeout == 3.0


def test_invalid_step_is_rejected_before_any_request():
    checker, session = make_checker(response=FakeResponse(payload={"matches": True}))
    with pytest.raises(InvalidStepError):
        check(checker, step=3)
    assert session.requests == []


def test_catalog_without_address():
    checker, _ = make_checker(response=FakeResponse(payload={"matches": True}))
    with pytest.raises(NotFoundError):
        check(checker, address="")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"error": requests.ConnectionError("refused")},
        {"error": requests.Timeout("slow")},
        {"response": FakeResponse(status_code=500, payload={"matches": True})},
        {"response": FakeResponse(invalid_json=True)},
        {"response": FakeResponse(payload={})},
        {"response": FakeResponse(payload={"matches": "yes"})},
        {"response": FakeResponse(payload=["matches"])},
    ],
)
def test_upstream_failures(kwargs):
    checker, _ = make_checker(**kwargs)
    with pytest.raises(UpstreamCheckError):
        check(checker)


def test_fetch_puzzle_input():
    checker, session = make_checker(response=FakeResponse(payload={"input": "1 2 3"}))

    assert checker.fetch_puzzle_input("http://catalog.test", "aoc", "p-1", "u-1") == {"input": "1 2 3"}
    ((url, params, _),) = session.requests
    assert url == "http://catalog.test/puzzle/generate/input"
    assert params == {"theme": "aoc", "puzzle": "p-1", "unique_id": "u-1"}


def test_fetch_puzzle_input_rejects_non_objects():
    checker, _ = make_checker(response=FakeResponse(payload=[1, 2, 3]))
    with pytest.raises(UpstreamCheckError):
        checker.fetch_puzzle_input("http://catalog.test", "aoc", "p-1", "u-1")
