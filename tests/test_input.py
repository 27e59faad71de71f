import json

import pytest
import requests

from bethyw.core.errors import InputSourceError
from bethyw.input import InputFile, StatsWalesSource


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        return self.pages[url]


def test_input_file_opens_and_reads(tmp_path):
    path = tmp_path / "areas.csv"
    path.write_text("code,eng,cym\nW1,Name1,Enw1\n", encoding="utf-8")

    source = InputFile(path)
    assert source.get_source() == str(path)
    with source.open() as stream:
        assert stream.readline().strip() == "code,eng,cym"


def test_input_file_missing_raises(tmp_path):
    source = InputFile(tmp_path / "missing.csv")
    with pytest.raises(InputSourceError, match="Failed to open file"):
        source.open()


def test_statswales_source_follows_next_link():
    base = "http://example.test/dataset"
    first = f"{base}/popu1009"
    second = f"{first}?$skip=1"
    session = FakeSession(
        {
            first: FakeResponse({"value": [{"a": 1}], "odata.nextLink": second}),
            second: FakeResponse({"value": [{"a": 2}]}),
        }
    )

    source = StatsWalesSource("popu1009", base_url=base, session=session)
    with source.open() as stream:
        document = json.load(stream)

    assert session.requested == [first, second]
    assert document == {"value": [{"a": 1}, {"a": 2}]}


def test_statswales_source_stops_at_page_cap():
    base = "http://example.test/dataset"
    url = f"{base}/loop"
    session = FakeSession({url: FakeResponse({"value": [{"a": 1}], "odata.nextLink": url})})

    source = StatsWalesSource("loop", base_url=base, session=session, max_pages=3)

    assert len(source.fetch_records()) == 3


def test_statswales_source_http_error():
    base = "http://example.test/dataset"
    session = FakeSession({f"{base}/popu1009": FakeResponse({}, status_code=503)})

    with pytest.raises(InputSourceError, match="status 503"):
        StatsWalesSource("popu1009", base_url=base, session=session).open()


def test_statswales_source_connection_error():
    class BrokenSession:
        def get(self, url, timeout=None):
            raise requests.ConnectionError("boom")

    with pytest.raises(InputSourceError, match="HTTP error"):
        StatsWalesSource("popu1009", session=BrokenSession()).open()
