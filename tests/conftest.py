"""Shared fixtures: a fake receiver behind httpx.MockTransport and builders."""
import io
from xml.sax.saxutils import escape

import httpx
import pytest
from PIL import Image

from e2catalog.config import CustomSettings
from e2catalog.services.cache_service import ExpiringCache
from e2catalog.services.bouquet_service import BouquetDirectory
from e2catalog.services.channel_service import ChannelDirectory
from e2catalog.services.enigma2_client import Enigma2Client
from e2catalog.services.picon_service import PiconService


RECEIVER_HOST = "192.168.1.50"

NEWS_REF = '1:7:1:0:0:0:0:0:0:0:FROM BOUQUET "userbouquet.news.tv" ORDER BY bouquet'
SPORT_REF = '1:7:1:0:0:0:0:0:0:0:FROM BOUQUET "userbouquet.sport.tv" ORDER BY bouquet'
EMPTY_REF = '1:7:1:0:0:0:0:0:0:0:FROM BOUQUET "userbouquet.empty.tv" ORDER BY bouquet'

BBC_REF = "1:0:19:1B1D:802:2:11A0000:0:0:0:"
CNN_REF = "1:0:1:6F1C:2EE:1:C00000:0:0:0:"
ESPN_REF = "1:0:19:2B66:3F3:1:C00000:0:0:0:"


def services_xml(*entries: tuple[str, str]) -> bytes:
    """Build a getservices document from (reference, name) pairs."""
    blocks = "".join(
        "<e2service>"
        f"<e2servicereference>{escape(ref)}</e2servicereference>"
        f"<e2servicename>{escape(name)}</e2servicename>"
        "</e2service>"
        for ref, name in entries
    )
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<e2servicelist>{blocks}</e2servicelist>'.encode()


def png_bytes(width: int, height: int, color=(255, 0, 0, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeReceiver:
    """In-memory OpenWebif: lineup, per-bouquet listings and picons."""

    def __init__(self):
        self.lineup = services_xml()
        self.bouquets: dict[str, bytes] = {}
        self.picons: dict[str, bytes] = {}
        self.down = False
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/web/getservices":
            if self.down:
                raise httpx.ConnectError("receiver down", request=request)
            sref = request.url.params.get("sRef")
            if sref is None:
                return httpx.Response(200, content=self.lineup)
            if sref in self.bouquets:
                return httpx.Response(200, content=self.bouquets[sref])
            return httpx.Response(404)

        if path.startswith("/picon/") and path.endswith(".png"):
            name = path[len("/picon/"):-len(".png")]
            if name in self.picons:
                return httpx.Response(200, content=self.picons[name])
            return httpx.Response(404)

        return httpx.Response(404)

    def count(self, path: str, sref: str | None = None) -> int:
        return sum(
            1 for request in self.requests
            if request.url.path == path
            and (sref is None or request.url.params.get("sRef") == sref)
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def receiver() -> FakeReceiver:
    fake = FakeReceiver()
    fake.lineup = services_xml(
        (NEWS_REF, "News"),
        (SPORT_REF, "Sport"),
    )
    fake.bouquets[NEWS_REF] = services_xml((BBC_REF, "BBC World HD"), (CNN_REF, "CNN"))
    fake.bouquets[SPORT_REF] = services_xml((ESPN_REF, "ESPN"))
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(receiver: FakeReceiver) -> Enigma2Client:
    return Enigma2Client(RECEIVER_HOST, 80, http_client=receiver.client())


@pytest.fixture
def channel_directory(client: Enigma2Client, clock: FakeClock) -> ChannelDirectory:
    return ChannelDirectory(client, ExpiringCache(300, name="channels", clock=clock))


@pytest.fixture
def make_bouquet_directory(client: Enigma2Client, channel_directory: ChannelDirectory, clock: FakeClock):
    def _make(**options) -> BouquetDirectory:
        return BouquetDirectory(
            client,
            channel_directory,
            ExpiringCache(300, name="bouquets", clock=clock),
            **options,
        )
    return _make


@pytest.fixture
def picon_service(client: Enigma2Client) -> PiconService:
    return PiconService(client)


@pytest.fixture
def settings() -> CustomSettings:
    return CustomSettings(
        _env_file=None,
        enigma2_ip=RECEIVER_HOST,
        preload_cron="",
        preload_batch_delay_ms=0,
    )
